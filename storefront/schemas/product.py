# storefront/schemas/product.py
import uuid
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from storefront.schemas.common import Money

ProductSort = Literal["newest", "lowest", "highest", "rating"]


class ProductCreate(SQLModel):
    """
    Payload for creating a product.

    - slug is optional: if omitted, generated from `name`.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=3, max_length=255)
    slug: str | None = None
    category: str = Field(min_length=3, max_length=100)
    brand: str = Field(min_length=3, max_length=100)
    description: str = Field(min_length=3)
    images: list[str] = Field(default_factory=list)
    is_featured: bool = False
    banner: str | None = None
    stock: int = Field(default=0, ge=0)
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)

    @field_validator("name", "category", "brand")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("slug")
    @classmethod
    def normalize_slug(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("slug cannot be empty if provided")
        return v


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.
    All fields are optional.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=3, max_length=255)
    slug: str | None = None
    category: str | None = Field(default=None, min_length=3, max_length=100)
    brand: str | None = Field(default=None, min_length=3, max_length=100)
    description: str | None = None
    images: list[str] | None = None
    is_featured: bool | None = None
    banner: str | None = None
    stock: int | None = Field(default=None, ge=0)
    price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)

    @field_validator("slug")
    @classmethod
    def normalize_slug(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("slug cannot be empty")
        return v


class ProductRead(SQLModel):
    """
    Product representation for clients.
    """

    id: uuid.UUID
    name: str
    slug: str
    category: str
    brand: str
    description: str
    images: list[str]
    is_featured: bool
    banner: str | None
    stock: int
    price: Money
    rating: Money
    num_reviews: int
    created_at: datetime


class ProductQuery(SQLModel):
    """
    Search / filter parameters shared by the storefront search page
    and the admin product list.

      - query:    case-insensitive substring of the name ("all" = none)
      - category: exact category ("all" = none)
      - price:    "min-max" range ("all" = none)
      - rating:   minimum rating ("all" = none)
      - sort:     newest | lowest | highest | rating
    """

    query: str | None = None
    category: str | None = None
    price: str | None = None
    rating: str | None = None
    sort: ProductSort = "newest"
    page: int = Field(default=1, ge=1)

    @field_validator("price")
    @classmethod
    def validate_price_range(cls, v: str | None) -> str | None:
        if v is None or v == "all":
            return v
        low, sep, high = v.partition("-")
        try:
            Decimal(low)
            Decimal(high)
        except InvalidOperation:
            raise ValueError("price must look like 'min-max'")
        if not sep:
            raise ValueError("price must look like 'min-max'")
        return v

    @field_validator("rating")
    @classmethod
    def validate_rating(cls, v: str | None) -> str | None:
        if v is None or v == "all":
            return v
        try:
            Decimal(v)
        except InvalidOperation:
            raise ValueError("rating must be a number")
        return v


class CategoryCount(SQLModel):
    category: str
    count: int
