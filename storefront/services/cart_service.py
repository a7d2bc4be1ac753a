# storefront/services/cart_service.py
import logging
from typing import Any

from sqlmodel import Session

from storefront.core.context import RequestContext
from storefront.core.errors import (
    AuthorizationError,
    CartSessionError,
    InsufficientStockError,
    NotFoundError,
)
from storefront.core.results import ActionResult, action
from storefront.models.cart import Cart
from storefront.models.product import Product
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.cart import CartItemCreate, CartRead
from storefront.services.pricing import calc_price

logger = logging.getLogger(__name__)


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - locate the caller's cart (user cart when signed in, else session cart)
      - validate product existence and stock on every add
      - snapshot name/slug/image/price from the product into the line
      - recompute all four derived prices from the full item list
        after every mutation
    """

    def __init__(self, cart_repo: CartRepository, product_repo: ProductRepository):
        self.cart_repo = cart_repo
        self.product_repo = product_repo

    # ---- internal helpers ----

    @staticmethod
    def _require_session(ctx: RequestContext) -> str:
        if not ctx.session_cart_id:
            raise CartSessionError("Cart session not found")
        return ctx.session_cart_id

    def _get_product(self, session: Session, product_id) -> Product:
        product = self.product_repo.get_by_id(session, product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    @staticmethod
    def _line_from_product(product: Product) -> dict[str, Any]:
        return {
            "product_id": str(product.id),
            "name": product.name,
            "slug": product.slug,
            "image": product.images[0] if product.images else None,
            "price": f"{product.price:.2f}",
            "qty": 1,
        }

    @staticmethod
    def _apply_items(cart: Cart, items: list[dict[str, Any]]) -> None:
        # Assign a fresh list so the JSON column is flagged dirty.
        cart.items = items
        for field, value in calc_price(items).items():
            setattr(cart, field, value)

    @staticmethod
    def _to_data(cart: Cart) -> dict[str, Any]:
        return CartRead.model_validate(cart).model_dump(mode="json")

    # ---- reads ----

    def find_cart(self, session: Session, ctx: RequestContext) -> Cart | None:
        """
        Return the caller's cart or None.

        Signed-in users are looked up by user id, anonymous shoppers
        by the session cookie. A cookie is required either way.
        """
        session_cart_id = self._require_session(ctx)
        if ctx.user_id is not None:
            return self.cart_repo.get_for_user(session, ctx.user_id)
        return self.cart_repo.get_for_session(session, session_cart_id)

    def get_my_cart(self, session: Session, ctx: RequestContext) -> Cart:
        cart = self.find_cart(session, ctx)
        if cart is None:
            raise NotFoundError("Cart not found")
        return cart

    # ---- mutations ----

    @action
    def add_item(
        self,
        session: Session,
        ctx: RequestContext,
        payload: CartItemCreate,
    ) -> ActionResult:
        """
        Add one unit of a product to the caller's cart.

        Rules:
          - no cart yet => create one holding this single line
          - product already in cart => qty + 1, needs stock >= qty + 1
          - new product => append with qty 1, needs stock >= 1
        """
        session_cart_id = self._require_session(ctx)
        product = self._get_product(session, payload.product_id)
        cart = self.find_cart(session, ctx)

        if cart is None:
            if product.stock < 1:
                raise InsufficientStockError("Not enough stock")
            cart = Cart(session_cart_id=session_cart_id, user_id=ctx.user_id)
            self._apply_items(cart, [self._line_from_product(product)])
            cart = self.cart_repo.save(session, cart)
            logger.info("Created cart %s", cart.id)
            return ActionResult.ok(
                f"{product.name} added to cart", data=self._to_data(cart)
            )

        items = [dict(line) for line in cart.items]
        existing = next(
            (line for line in items if line["product_id"] == str(product.id)),
            None,
        )

        if existing is not None:
            if product.stock < existing["qty"] + 1:
                raise InsufficientStockError("Not enough stock")
            existing["qty"] += 1
        else:
            if product.stock < 1:
                raise InsufficientStockError("Not enough stock")
            items.append(self._line_from_product(product))

        self._apply_items(cart, items)
        cart = self.cart_repo.save(session, cart)

        verb = "updated in" if existing is not None else "added to"
        return ActionResult.ok(
            f"{product.name} {verb} the cart", data=self._to_data(cart)
        )

    @action
    def remove_item(
        self,
        session: Session,
        ctx: RequestContext,
        product_id,
    ) -> ActionResult:
        """
        Remove one unit of a product; the line disappears when it was the last.
        """
        self._require_session(ctx)
        product = self._get_product(session, product_id)

        cart = self.find_cart(session, ctx)
        if cart is None:
            raise NotFoundError("Cart not found")

        items = [dict(line) for line in cart.items]
        existing = next(
            (line for line in items if line["product_id"] == str(product.id)),
            None,
        )
        if existing is None:
            raise NotFoundError("Item not found")

        if existing["qty"] == 1:
            items = [line for line in items if line["product_id"] != str(product.id)]
        else:
            existing["qty"] -= 1

        self._apply_items(cart, items)
        cart = self.cart_repo.save(session, cart)

        return ActionResult.ok(
            f"{product.name} removed from cart", data=self._to_data(cart)
        )

    def claim_session_cart(self, session: Session, ctx: RequestContext) -> Cart | None:
        """
        Hand the anonymous session cart over to the signed-in user.

        Any other cart the user owned is discarded, including one created
        under the same cookie while signed in. Returns the claimed cart,
        or None when the browser has no anonymous cart.
        """
        if ctx.user is None:
            raise AuthorizationError("User is not authenticated")
        if not ctx.session_cart_id:
            return None

        session_cart = self.cart_repo.get_for_session(session, ctx.session_cart_id)
        if session_cart is None:
            return None

        self.cart_repo.delete_for_user(session, ctx.user_id, keep_cart_id=session_cart.id)
        session_cart.user_id = ctx.user_id
        logger.info("Cart %s assigned to user %s", session_cart.id, ctx.user_id)
        return self.cart_repo.save(session, session_cart)
