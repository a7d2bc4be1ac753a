# storefront/schemas/stats.py
import uuid
from datetime import datetime

from pydantic import ConfigDict
from sqlmodel import SQLModel

from storefront.schemas.common import Money


class MonthlySales(SQLModel):
    """
    Revenue per calendar month, labelled "MM/YY".
    """
    model_config = ConfigDict(extra="forbid")

    month: str
    total_sales: Money


class LatestSale(SQLModel):
    """
    Lightweight info for last N orders.
    """
    model_config = ConfigDict(extra="forbid")

    id: uuid.UUID
    created_at: datetime
    user_name: str | None
    total_price: Money
    is_paid: bool
    is_delivered: bool


class AdminSummary(SQLModel):
    """
    Full payload for admin dashboard.
    """
    model_config = ConfigDict(extra="forbid")

    orders_count: int
    products_count: int
    users_count: int
    total_sales: Money
    sales_data: list[MonthlySales]
    latest_sales: list[LatestSale]
