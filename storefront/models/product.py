# storefront/models/product.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class Product(SQLModel, table=True):
    """
    Product catalog entry.

    Stock is only decremented when an order is paid; adding to cart
    checks availability but reserves nothing.
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=255,
        min_length=3,
        index=True,
        description="Display name of the product",
    )

    slug: str = Field(
        max_length=255,
        unique=True,
        index=True,
        description="URL-friendly identifier (unique)",
    )

    category: str = Field(
        max_length=100,
        index=True,
    )

    brand: str = Field(max_length=100)

    description: str = Field(default="")

    images: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
        description="Public image URLs, first one is the thumbnail",
    )

    is_featured: bool = Field(default=False, index=True)

    banner: str | None = Field(
        default=None,
        description="Banner image URL shown for featured products",
    )

    price: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=12,
        decimal_places=2,
        ge=0,
    )

    stock: int = Field(
        default=0,
        description="How many units currently in stock",
    )

    rating: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=3,
        decimal_places=2,
        description="Mean of all review ratings",
    )

    num_reviews: int = Field(default=0, ge=0)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
