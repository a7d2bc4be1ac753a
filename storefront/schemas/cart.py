# storefront/schemas/cart.py
import uuid
from datetime import datetime

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field

from storefront.schemas.common import Money


class CartItemCreate(SQLModel):
    """
    Payload for adding one unit of a product to the cart.

    Only product_id is trusted; name, price and image are re-read
    from the catalog.
    """

    model_config = ConfigDict(extra="ignore")

    product_id: uuid.UUID


class CartLine(SQLModel):
    """
    A single line of the cart as stored in the JSON column.
    """

    product_id: uuid.UUID
    name: str
    slug: str
    image: str | None = None
    price: Money
    qty: int = Field(gt=0)


class CartRead(SQLModel):
    """
    Full cart response model with derived prices.
    """

    id: uuid.UUID
    session_cart_id: str
    user_id: uuid.UUID | None
    items: list[CartLine]
    items_price: Money
    shipping_price: Money
    tax_price: Money
    total_price: Money
    created_at: datetime
