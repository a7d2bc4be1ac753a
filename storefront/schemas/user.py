# storefront/schemas/user.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import EmailStr, ConfigDict, field_validator
from sqlmodel import SQLModel, Field

# App-level roles. Anonymous shoppers have no row.
Role = Literal["user", "admin"]

PaymentMethodType = Literal["PayPal", "Stripe", "CashOnDelivery"]
DEFAULT_PAYMENT_METHOD: PaymentMethodType = "PayPal"


class ShippingAddress(SQLModel):
    """
    Shipping address saved on the user and frozen into each order.
    """

    model_config = ConfigDict(extra="forbid")

    full_name: str = Field(min_length=3)
    street_address: str = Field(min_length=3)
    city: str = Field(min_length=3)
    postal_code: str = Field(min_length=3)
    country: str = Field(min_length=3)
    lat: float | None = None
    lng: float | None = None

    @field_validator("full_name", "street_address", "city", "postal_code", "country")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class PaymentMethodUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    type: PaymentMethodType = DEFAULT_PAYMENT_METHOD


class UserRead(SQLModel):
    """Response schema returned to clients."""

    id: uuid.UUID
    email: EmailStr
    name: str
    role: Role
    address: ShippingAddress | None = None
    payment_method: PaymentMethodType | None = None
    created_at: datetime


class UserUpdate(SQLModel):
    """
    Partial profile update for authenticated users.
    Only editable field is `name` here.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=100)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class UserAdminUpdate(SQLModel):
    """
    Admin-only update schema: name and role.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=100)
    role: Role | None = None

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class SignInComplete(SQLModel):
    """
    Sent by the client right after signing in with the auth provider.
    """

    model_config = ConfigDict(extra="forbid")

    callback_url: str | None = None

    @field_validator("callback_url")
    @classmethod
    def relative_path_only(cls, v: str | None) -> str | None:
        # Same-site paths only: "//host" and "/\host" are read as other origins.
        if v is None:
            return v
        v = v.strip()
        if not v.startswith("/") or v.startswith(("//", "/\\")):
            raise ValueError("callback_url must be a relative path")
        return v
