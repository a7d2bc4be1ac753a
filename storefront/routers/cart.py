# storefront/routers/cart.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.core.auth import get_request_context
from storefront.core.context import RequestContext
from storefront.core.results import ActionResult, to_response
from storefront.database import get_session
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.cart import CartItemCreate, CartRead
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])

cart_repo = CartRepository()
product_repo = ProductRepository()
service = CartService(cart_repo, product_repo)


@router.get("", response_model=CartRead)
def get_my_cart(
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Get the caller's cart.

    Signed-in users get their own cart, anonymous shoppers the cart
    bound to the session cookie.
    """
    return service.get_my_cart(session, ctx)


@router.post("/items", response_model=ActionResult)
def add_to_cart(
    payload: CartItemCreate,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Add one unit of a product to the cart.

    Returns the outcome and, on success, the updated cart.
    """
    return to_response(service.add_item(session, ctx, payload))


@router.delete("/items/{product_id}", response_model=ActionResult)
def remove_from_cart(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Remove one unit of a product from the cart.
    """
    return to_response(service.remove_item(session, ctx, product_id))
