# storefront/routers/orders.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.core.auth import get_request_context, require_admin, require_auth
from storefront.core.context import RequestContext
from storefront.core.paypal_client import PayPalClient
from storefront.core.results import ActionResult, to_response
from storefront.database import get_session
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.common import Page
from storefront.schemas.order import (
    AdminOrderRead,
    OrderRead,
    OrderWithItemsRead,
    PayPalApprove,
)
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])

service = OrderService(
    OrderRepository(),
    CartRepository(),
    ProductRepository(),
    UserRepository(),
    PayPalClient(),
)


# -------- User-facing endpoints --------


@router.post(
    "",
    response_model=ActionResult,
    dependencies=[Depends(require_auth)],
)
def place_order(
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Create an order from the current user's cart.

    On a failed precondition the body carries `redirect_to`
    (/cart, /shipping-address or /payment-method).
    """
    return to_response(service.create_order(session, ctx))


@router.get(
    "/me",
    response_model=Page[OrderRead],
    dependencies=[Depends(require_auth)],
)
def list_my_orders(
    page: int = 1,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    List the authenticated user's orders (without items), newest first.
    """
    return service.list_my_orders(session, ctx, page)


@router.get(
    "/{order_id}",
    response_model=OrderWithItemsRead,
    dependencies=[Depends(require_auth)],
)
def get_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Get a single order with items. Owner or admin only.
    """
    return service.get_order(session, ctx, order_id)


@router.post(
    "/{order_id}/paypal",
    response_model=ActionResult,
    dependencies=[Depends(require_auth)],
)
def create_paypal_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Create the PayPal order for this order's total.
    `data` holds the PayPal order id for the client-side button.
    """
    return to_response(service.create_paypal_order(session, ctx, order_id))


@router.post(
    "/{order_id}/paypal/approve",
    response_model=ActionResult,
    dependencies=[Depends(require_auth)],
)
def approve_paypal_order(
    order_id: uuid.UUID,
    payload: PayPalApprove,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Capture an approved PayPal payment and mark the order paid.
    """
    return to_response(service.approve_paypal_order(session, ctx, order_id, payload))


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=Page[AdminOrderRead],
    dependencies=[Depends(require_admin)],
)
def list_all_orders(
    page: int = 1,
    query: str | None = None,
    session: Session = Depends(get_session),
):
    """
    List all orders (admin only). `query` filters on the buyer's name.
    """
    return service.list_all_orders(session, page, query)


@router.delete(
    "/{order_id}",
    response_model=ActionResult,
    dependencies=[Depends(require_admin)],
)
def delete_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Delete an order and its items (admin only).
    """
    return to_response(service.delete_order(session, order_id))


@router.post(
    "/{order_id}/pay",
    response_model=ActionResult,
    dependencies=[Depends(require_admin)],
)
def mark_order_paid(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Mark a cash-on-delivery order as paid (admin only).
    """
    return to_response(service.mark_paid_cod(session, order_id))


@router.post(
    "/{order_id}/deliver",
    response_model=ActionResult,
    dependencies=[Depends(require_admin)],
)
def mark_order_delivered(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Mark a paid order as delivered (admin only).
    """
    return to_response(service.mark_delivered(session, order_id))
