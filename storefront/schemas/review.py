# storefront/schemas/review.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class ReviewCreate(SQLModel):
    """
    Payload for creating or updating the caller's review of a product.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    rating: int = Field(ge=1, le=5)
    title: str = Field(min_length=3)
    description: str = Field(min_length=3)

    @field_validator("title", "description")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class ReviewRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    product_id: uuid.UUID
    rating: int
    title: str
    description: str
    is_verified_purchase: bool
    created_at: datetime
    user_name: str | None = None
