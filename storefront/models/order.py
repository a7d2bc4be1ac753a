# storefront/models/order.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    Customer order.

    - shipping_address / payment_method are frozen copies of the
      user's preferences at checkout time.
    - money fields are copied verbatim from the cart.
    - payment_result holds the gateway record:
        {id, status, email_address, price_paid}
    - is_paid is never reset once true; is_delivered requires is_paid.
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    shipping_address: dict[str, Any] = Field(
        sa_column=Column(JSON, nullable=False),
    )

    payment_method: str = Field(
        description="PayPal | Stripe | CashOnDelivery",
    )

    payment_result: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
    )

    items_price: Decimal = Field(max_digits=12, decimal_places=2)
    shipping_price: Decimal = Field(max_digits=12, decimal_places=2)
    tax_price: Decimal = Field(max_digits=12, decimal_places=2)
    total_price: Decimal = Field(max_digits=12, decimal_places=2)

    is_paid: bool = Field(default=False, index=True)
    paid_at: datetime | None = None

    is_delivered: bool = Field(default=False)
    delivered_at: datetime | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )


class OrderItem(SQLModel, table=True):
    """
    Line item inside an order.

    A denormalized product snapshot; product_id is kept for stock
    updates but carries no FK so products can be deleted later.
    """

    __tablename__ = "order_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    product_id: uuid.UUID = Field(index=True)

    name: str
    slug: str
    image: str | None = None

    price: Decimal = Field(
        max_digits=12,
        decimal_places=2,
        description="Unit price at time of order",
    )

    qty: int = Field(
        gt=0,
        description="Quantity ordered (>=1)",
    )
