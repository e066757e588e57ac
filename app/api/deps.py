from fastapi import Request

from app.services.product_service import ProductStore


def get_product_store(request: Request) -> ProductStore:
    """Get the product store created at application startup."""
    return request.app.state.product_store
