from fastapi import APIRouter, Depends

from app.api.deps import get_product_store
from app.services.product_service import ProductStore

router = APIRouter(prefix="/health", tags=["Health"])


@router.get(
    "/",
    summary="Health check",
    description="Basic health check endpoint."
)
def health_check():
    """Simple health check."""
    return {"status": "healthy"}


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if the product storage backend is reachable."
)
def readiness_check(store: ProductStore = Depends(get_product_store)):
    """
    Readiness check for the storage backend.

    Returns status of:
    - Storage connection
    - Number of products currently loaded
    """
    checks = {
        "storage": store.storage.ping(),
        "storage_backend": type(store.storage).__name__,
        "products_loaded": len(store.products),
    }

    return {
        "status": "ready" if checks["storage"] else "not_ready",
        "checks": checks
    }
