# storefront/schemas/common.py
from decimal import Decimal
from typing import Annotated, Generic, TypeVar

from pydantic import BaseModel, PlainSerializer

# Money is always sent to clients as a fixed 2-decimal string, e.g. "105.00"
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: f"{v:.2f}", return_type=str, when_used="json"),
]

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """
    One page of a paginated listing.

    total_pages = ceil(total rows matching the filter / page size)
    """

    data: list[T]
    total_pages: int
