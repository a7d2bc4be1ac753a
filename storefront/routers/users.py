# storefront/routers/users.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.core.auth import get_request_context, require_admin, require_auth
from storefront.core.context import RequestContext
from storefront.core.results import ActionResult, to_response
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.common import Page
from storefront.schemas.user import (
    PaymentMethodUpdate,
    ShippingAddress,
    SignInComplete,
    UserAdminUpdate,
    UserRead,
    UserUpdate,
)
from storefront.services.cart_service import CartService
from storefront.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

repo = UserRepository()
service = UserService(repo, CartService(CartRepository(), ProductRepository()))


# -------- Self profile --------


@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(require_auth)):
    """
    Return the authenticated user's profile.

    Auth:
      - Requires valid Supabase JWT.
    """
    return current_user


@router.post("/me/sign-in", response_model=ActionResult)
def complete_sign_in(
    payload: SignInComplete,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
    _: User = Depends(require_auth),
):
    """
    Finish a sign-in.

    The user profile row is auto-created on first request (auth dependency),
    with default name derived from email and role="user". This call moves
    the browser's session cart onto the account and redirects to
    `callback_url` when one is given.
    """
    return to_response(service.complete_sign_in(session, ctx, payload))


@router.patch("/me", response_model=ActionResult)
def update_me(
    payload: UserUpdate,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
    _: User = Depends(require_auth),
):
    """
    Update the authenticated user's profile (partial update).

    Currently, only `name` is editable.
    """
    return to_response(service.update_profile(session, ctx, payload))


@router.put("/me/address", response_model=ActionResult)
def update_my_address(
    payload: ShippingAddress,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
    _: User = Depends(require_auth),
):
    """Save the shipping address used by the next order."""
    return to_response(service.update_address(session, ctx, payload))


@router.put("/me/payment-method", response_model=ActionResult)
def update_my_payment_method(
    payload: PaymentMethodUpdate,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
    _: User = Depends(require_auth),
):
    """Choose PayPal, Stripe or CashOnDelivery."""
    return to_response(service.update_payment_method(session, ctx, payload))


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=Page[UserRead],
    dependencies=[Depends(require_admin)],
)
def list_users(
    page: int = 1,
    query: str | None = None,
    session: Session = Depends(get_session),
):
    """
    List all users (admin only).

    `query` filters on name; pages hold PAGE_SIZE users.
    """
    return service.list_users(session, page, query)


@router.get(
    "/{user_id}",
    response_model=UserRead,
    dependencies=[Depends(require_admin)],
)
def get_user(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Get a specific user by id (admin only).
    """
    return service.get_user(session, user_id)


@router.patch(
    "/{user_id}",
    response_model=ActionResult,
    dependencies=[Depends(require_admin)],
)
def update_user(
    user_id: uuid.UUID,
    payload: UserAdminUpdate,
    session: Session = Depends(get_session),
):
    """
    Update a user's name and/or role (admin only).

    Allowed roles: user, admin.
    """
    return to_response(service.update_user(session, user_id, payload))


@router.delete(
    "/{user_id}",
    response_model=ActionResult,
    dependencies=[Depends(require_admin)],
)
def delete_user(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Delete a user with their orders, reviews and carts (admin only).
    """
    return to_response(service.delete_user(session, user_id))
