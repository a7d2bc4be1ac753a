# storefront/models/cart.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class Cart(SQLModel, table=True):
    """
    Shopping cart, one per browser session or per signed-in user.

    Line items live in a JSON array:
        {product_id, name, slug, image, price, qty}

    The four money columns are derived from `items` and are rewritten
    together on every mutation.
    """

    __tablename__ = "carts"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    session_cart_id: str = Field(
        index=True,
        description="Anonymous session token from the cart cookie",
    )

    user_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="users.id",
        index=True,
    )

    items: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    items_price: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    shipping_price: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    tax_price: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    total_price: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
