import math

from pydantic import BaseModel, Field, ConfigDict, StrictInt, field_validator
from typing import Literal, Optional, Union

# Allowed values for the table's "items per page" selector
PAGE_SIZE_CHOICES = (3, 5, 10, 20)
PageSize = Literal[3, 5, 10, 20]


class Product(BaseModel):
    """
    A single inventory item.

    Stored and returned with the ``inStock`` key so lists written by the
    browser client load unchanged.
    """
    id: str = Field(..., description="Opaque unique identifier")
    name: str = Field(..., min_length=1, description="Product name")
    price: int = Field(..., ge=0, description="Price in the smallest currency unit")
    in_stock: bool = Field(default=True, alias="inStock", description="Whether the item is in stock")
    marked: bool = Field(default=False, description="Highlighted by the user")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_legacy_id(cls, value):
        # Older lists used millisecond timestamps as ids
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("price", mode="before")
    @classmethod
    def round_legacy_price(cls, value):
        # Older lists stored whatever the number input held, e.g. 12.5
        if isinstance(value, float) and math.isfinite(value):
            return round(value)
        return value


class ProductCreate(BaseModel):
    """Schema for the add-product form. Price is validated by the store."""
    name: str = Field(..., description="Product name")
    price: Union[StrictInt, str] = Field(..., description="Raw price as typed, e.g. '1.500 đ'")
    in_stock: bool = Field(default=True, alias="inStock", description="Whether the item is in stock")

    model_config = ConfigDict(populate_by_name=True)


class PaginationUpdate(BaseModel):
    """Schema for the pagination controls. Both fields are optional."""
    page: Optional[int] = Field(None, description="Requested page, clamped to the valid range")
    page_size: Optional[PageSize] = Field(None, description="Items per page")


class ProductPage(BaseModel):
    """Schema for the current page of the product table."""
    items: list[Product]
    total: int
    page: int
    page_size: int
    total_pages: int
