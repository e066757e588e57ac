from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Optional

from app.api.deps import get_product_store
from app.services.product_service import ProductStore, ValidationError
from app.schemas.product import (
    PAGE_SIZE_CHOICES,
    Product,
    ProductCreate,
    ProductPage,
    PaginationUpdate,
)

router = APIRouter(prefix="/products", tags=["Products"])


@router.get(
    "/",
    response_model=ProductPage,
    summary="Show the product table",
    description="Get the current page of products. Optional query parameters move the table first."
)
def list_products(
    page: Optional[int] = Query(None, description="Page to show, clamped to the valid range"),
    page_size: Optional[int] = Query(None, description=f"Items per page, one of {PAGE_SIZE_CHOICES}"),
    store: ProductStore = Depends(get_product_store)
):
    """Get the current page of the product table."""
    if page_size is not None and page_size not in PAGE_SIZE_CHOICES:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"page_size must be one of {list(PAGE_SIZE_CHOICES)}"
        )

    return store.paginate(page=page, page_size=page_size)


@router.post(
    "/",
    response_model=Product,
    status_code=status.HTTP_201_CREATED,
    summary="Add a product",
    description="Add a product to the top of the list. The table jumps back to page 1."
)
def create_product(
    product_data: ProductCreate,
    store: ProductStore = Depends(get_product_store)
):
    """
    Add a new product.

    - **name**: Product name, must not be blank (required)
    - **price**: Price as typed, e.g. `"1500"` or `"1.500 đ"`; must be positive (required)
    - **inStock**: Initial stock flag, default is true (optional)
    """
    try:
        return store.add_product(product_data.name, product_data.price, product_data.in_stock)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )


@router.put(
    "/pagination",
    response_model=ProductPage,
    summary="Change page or page size",
    description="Set the page size (resets to page 1) and/or move to a page."
)
def update_pagination(
    pagination: PaginationUpdate,
    store: ProductStore = Depends(get_product_store)
):
    """Apply the pagination controls and return the resulting page."""
    return store.paginate(page=pagination.page, page_size=pagination.page_size)


@router.post(
    "/{product_id}/toggle-stock",
    response_model=ProductPage,
    summary="Toggle stock status",
    description="Flip a product between in stock and out of stock. Unknown ids are ignored."
)
def toggle_stock(
    product_id: str,
    store: ProductStore = Depends(get_product_store)
):
    """Flip the stock flag of a product."""
    store.toggle_stock(product_id)
    return store.derived_view()


@router.post(
    "/{product_id}/toggle-mark",
    response_model=ProductPage,
    summary="Toggle highlight",
    description="Mark or unmark a product row. Unknown ids are ignored."
)
def toggle_mark(
    product_id: str,
    store: ProductStore = Depends(get_product_store)
):
    """Flip the highlight flag of a product."""
    store.toggle_mark(product_id)
    return store.derived_view()


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a product",
    description="Delete a product by ID. Deleting an unknown ID succeeds without changes."
)
def delete_product(
    product_id: str,
    store: ProductStore = Depends(get_product_store)
):
    """Delete a product."""
    store.delete_product(product_id)
    return None
