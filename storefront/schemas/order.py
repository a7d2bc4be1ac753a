# storefront/schemas/order.py
import uuid
from datetime import datetime

from pydantic import ConfigDict
from sqlmodel import SQLModel

from storefront.schemas.common import Money
from storefront.schemas.user import PaymentMethodType, ShippingAddress

# Gateway status that marks a finished capture
PAYMENT_COMPLETED = "COMPLETED"


class PaymentResult(SQLModel):
    """
    Gateway record stored on the order.

    Before capture only `id` is filled; the rest are placeholders.
    """

    id: str
    status: str = ""
    email_address: str = ""
    price_paid: str = "0"


class OrderItemRead(SQLModel):
    """
    Representation of a single order line item.
    """

    product_id: uuid.UUID
    name: str
    slug: str
    image: str | None
    price: Money
    qty: int


class OrderBuyer(SQLModel):
    name: str
    email: str


class OrderRead(SQLModel):
    """
    Lightweight representation of an order (without items).
    """

    id: uuid.UUID
    user_id: uuid.UUID
    shipping_address: ShippingAddress
    payment_method: PaymentMethodType
    payment_result: PaymentResult | None = None
    items_price: Money
    shipping_price: Money
    tax_price: Money
    total_price: Money
    is_paid: bool
    paid_at: datetime | None
    is_delivered: bool
    delivered_at: datetime | None
    created_at: datetime


class OrderWithItemsRead(OrderRead):
    """
    Full order view including items and buyer.
    """

    items: list[OrderItemRead]
    user: OrderBuyer | None = None


class AdminOrderRead(OrderRead):
    """
    Admin list row: order plus buyer name.
    """

    user_name: str | None = None


class PayPalApprove(SQLModel):
    """
    Payload sent by the PayPal button after the buyer approves.
    """

    model_config = ConfigDict(extra="forbid")

    order_id: str
