# storefront/services/order_service.py
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlmodel import Session

from storefront.core.config import get_settings
from storefront.core.context import RequestContext
from storefront.core.errors import (
    AlreadyPaidError,
    AuthorizationError,
    InsufficientStockError,
    NotFoundError,
    NotPaidError,
    PaymentGatewayError,
)
from storefront.core.pagination import page_offset, total_pages
from storefront.core.paypal_client import PayPalClient
from storefront.core.results import ActionResult, action
from storefront.models.order import Order, OrderItem
from storefront.models.user import User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.common import Page
from storefront.schemas.order import (
    PAYMENT_COMPLETED,
    AdminOrderRead,
    OrderBuyer,
    OrderItemRead,
    OrderRead,
    OrderWithItemsRead,
    PaymentResult,
    PayPalApprove,
)
from storefront.services.pricing import zero_prices

logger = logging.getLogger(__name__)

settings = get_settings()


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Create an order from the signed-in user's cart (one transaction:
        order row, order items, cart reset)
      - Two-phase PayPal payment: create remote order, then capture and
        reconcile against the stored gateway id
      - Mark paid (stock decrement + paid flag, one transaction)
      - Cash-on-delivery settlement and delivery marking (admin)
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        user_repo: UserRepository,
        gateway: PayPalClient,
    ):
        self.order_repo = order_repo
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.user_repo = user_repo
        self.gateway = gateway

    # -------- helpers --------

    def _get_order(self, session: Session, order_id: uuid.UUID) -> Order:
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    @staticmethod
    def _require_user(ctx: RequestContext) -> User:
        if ctx.user is None:
            raise AuthorizationError("User is not authenticated")
        return ctx.user

    def _get_visible_order(
        self,
        session: Session,
        ctx: RequestContext,
        order_id: uuid.UUID,
    ) -> Order:
        # Other users' orders are reported as missing
        user = self._require_user(ctx)
        order = self._get_order(session, order_id)
        if order.user_id != user.id and user.role != "admin":
            raise NotFoundError("Order not found")
        return order

    # -------- checkout --------

    @action
    def create_order(self, session: Session, ctx: RequestContext) -> ActionResult:
        """
        Convert the signed-in user's cart into an Order.

        Preconditions, first failure wins:
          1. cart has items        -> else redirect /cart
          2. user saved an address -> else redirect /shipping-address
          3. user picked a method  -> else redirect /payment-method

        Then in one transaction:
          - insert the order with the cart prices copied verbatim
          - insert one order item per cart line
          - empty the cart and zero its prices
        """
        current = self._require_user(ctx)
        user = self.user_repo.get_by_id(session, current.id)
        if user is None:
            raise NotFoundError("User not found")

        cart = self.cart_repo.get_for_user(session, user.id)

        if cart is None or not cart.items:
            return ActionResult.fail("Your cart is empty", redirect_to="/cart")

        if not user.address:
            return ActionResult.fail(
                "No shipping address", redirect_to="/shipping-address"
            )

        if not user.payment_method:
            return ActionResult.fail(
                "No payment method", redirect_to="/payment-method"
            )

        try:
            order = Order(
                user_id=user.id,
                shipping_address=dict(user.address),
                payment_method=user.payment_method,
                items_price=cart.items_price,
                shipping_price=cart.shipping_price,
                tax_price=cart.tax_price,
                total_price=cart.total_price,
            )
            order = self.order_repo.create_order(session, order)
            order_id = order.id

            order_items = [
                OrderItem(
                    order_id=order_id,
                    product_id=uuid.UUID(str(line["product_id"])),
                    name=line["name"],
                    slug=line["slug"],
                    image=line.get("image"),
                    price=Decimal(str(line["price"])),
                    qty=int(line["qty"]),
                )
                for line in cart.items
            ]
            self.order_repo.create_items(session, order_items)

            cart.items = []
            for field, value in zero_prices().items():
                setattr(cart, field, value)
            self.cart_repo.save_in_tx(session, cart)

            session.commit()
        except Exception:
            session.rollback()
            raise

        logger.info("Order %s created for user %s", order_id, user.id)
        return ActionResult.ok(
            "Order created",
            redirect_to=f"/order/{order_id}",
            data={"order_id": str(order_id)},
        )

    # -------- reads --------

    def get_order(
        self,
        session: Session,
        ctx: RequestContext,
        order_id: uuid.UUID,
    ) -> OrderWithItemsRead:
        """
        Get a single order with items and buyer.

        Only the owner or an admin can see it; anyone else gets NotFound.
        """
        order = self._get_visible_order(session, ctx, order_id)
        items = self.order_repo.list_items_for_order(session, order.id)
        buyer = self.user_repo.get_by_id(session, order.user_id)
        return self._build_order_with_items_dto(order, items, buyer)

    def list_my_orders(
        self,
        session: Session,
        ctx: RequestContext,
        page: int = 1,
    ) -> Page[OrderRead]:
        user = self._require_user(ctx)
        size = settings.PAGE_SIZE
        orders = self.order_repo.list_for_user(
            session, user.id, skip=page_offset(page, size), limit=size
        )
        total = self.order_repo.count_for_user(session, user.id)
        return Page[OrderRead](
            data=[OrderRead.model_validate(o) for o in orders],
            total_pages=total_pages(total, size),
        )

    def list_all_orders(
        self,
        session: Session,
        page: int = 1,
        query: str | None = None,
    ) -> Page[AdminOrderRead]:
        """
        List all orders (admin only), optionally filtered by buyer name.
        """
        size = settings.PAGE_SIZE
        rows = self.order_repo.list_all(
            session, query=query, skip=page_offset(page, size), limit=size
        )
        total = self.order_repo.count_all(session, query=query)
        data = [
            AdminOrderRead.model_validate(
                {**OrderRead.model_validate(order).model_dump(), "user_name": name}
            )
            for order, name in rows
        ]
        return Page[AdminOrderRead](data=data, total_pages=total_pages(total, size))

    # -------- admin mutations --------

    @action
    def delete_order(self, session: Session, order_id: uuid.UUID) -> ActionResult:
        order = self._get_order(session, order_id)
        self.order_repo.delete(session, order)
        logger.info("Order %s deleted", order_id)
        return ActionResult.ok("Order deleted successfully")

    @action
    def mark_paid_cod(self, session: Session, order_id: uuid.UUID) -> ActionResult:
        """
        Cash on delivery: run the mark-paid transaction without the gateway.
        """
        self._mark_paid(session, order_id, payment_result=None)
        return ActionResult.ok("Order marked as paid")

    @action
    def mark_delivered(self, session: Session, order_id: uuid.UUID) -> ActionResult:
        order = self._get_order(session, order_id)
        if not order.is_paid:
            raise NotPaidError("Order is not paid")

        order.is_delivered = True
        order.delivered_at = datetime.now(timezone.utc)
        self.order_repo.update_order(session, order)
        session.commit()
        return ActionResult.ok("Order has been marked delivered")

    # -------- PayPal --------

    @action
    def create_paypal_order(
        self,
        session: Session,
        ctx: RequestContext,
        order_id: uuid.UUID,
    ) -> ActionResult:
        """
        Phase 1: create the remote payment order for the stored total and
        remember its id in payment_result (other fields are placeholders).
        """
        order = self._get_visible_order(session, ctx, order_id)
        if order.is_paid:
            raise AlreadyPaidError("Order is already paid")

        remote = self.gateway.create_order(order.total_price)

        order.payment_result = PaymentResult(id=remote.id).model_dump()
        self.order_repo.update_order(session, order)
        session.commit()

        logger.info("PayPal order %s created for order %s", remote.id, order_id)
        return ActionResult.ok("Item order created successfully", data=remote.id)

    @action
    def approve_paypal_order(
        self,
        session: Session,
        ctx: RequestContext,
        order_id: uuid.UUID,
        payload: PayPalApprove,
    ) -> ActionResult:
        """
        Phase 2: capture the payment and reconcile.

        The capture id must match the stored gateway id and the status
        must be COMPLETED; otherwise nothing changes. Stock is checked
        before capturing, so a short item never charges the buyer. If
        stock runs out between that check and the decrement, the capture
        is still stored on the order for manual reconciliation.
        """
        order = self._get_visible_order(session, ctx, order_id)
        if order.is_paid:
            raise AlreadyPaidError("Order is already paid")

        self._ensure_stock(session, self.order_repo.list_items_for_order(session, order.id))

        capture = self.gateway.capture_payment(payload.order_id)

        stored_id = (order.payment_result or {}).get("id")
        if capture.id != stored_id or capture.status != PAYMENT_COMPLETED:
            logger.warning(
                "PayPal capture mismatch for order %s: id=%s status=%s",
                order_id,
                capture.id,
                capture.status,
            )
            raise PaymentGatewayError("Error in paypal payment")

        result = PaymentResult(
            id=capture.id,
            status=capture.status,
            email_address=capture.payer_email,
            price_paid=capture.amount,
        )
        try:
            self._mark_paid(session, order_id, payment_result=result)
        except InsufficientStockError:
            self._record_capture(session, order_id, result)
            raise
        return ActionResult.ok("Your order has been paid")

    def _ensure_stock(self, session: Session, items: list[OrderItem]) -> None:
        for item in items:
            product = self.product_repo.get_by_id(session, item.product_id)
            if product is None or product.stock < item.qty:
                raise InsufficientStockError(f"Not enough stock for {item.name}")

    def _record_capture(
        self,
        session: Session,
        order_id: uuid.UUID,
        payment_result: PaymentResult,
    ) -> None:
        """Keep a captured payment on an order that could not be marked paid."""
        order = self._get_order(session, order_id)
        order.payment_result = payment_result.model_dump()
        try:
            self.order_repo.update_order(session, order)
            session.commit()
        except Exception:
            session.rollback()
            raise
        logger.warning(
            "Order %s captured as %s but left unpaid: stock ran out",
            order_id,
            payment_result.id,
        )

    def _mark_paid(
        self,
        session: Session,
        order_id: uuid.UUID,
        payment_result: PaymentResult | None,
    ) -> None:
        """
        Mark-paid transaction shared by PayPal capture and COD.

          - rejects orders that are already paid (before any write)
          - decrements stock per order item; a product without enough
            stock aborts the whole transaction
          - sets is_paid, paid_at and, when given, payment_result
        """
        order = self._get_order(session, order_id)
        if order.is_paid:
            raise AlreadyPaidError("Order is already paid")

        items = self.order_repo.list_items_for_order(session, order.id)

        try:
            for item in items:
                if not self.product_repo.decrement_stock(session, item.product_id, item.qty):
                    raise InsufficientStockError(f"Not enough stock for {item.name}")

            order.is_paid = True
            order.paid_at = datetime.now(timezone.utc)
            if payment_result is not None:
                order.payment_result = payment_result.model_dump()
            self.order_repo.update_order(session, order)

            session.commit()
        except Exception:
            session.rollback()
            raise

        logger.info("Order %s paid", order_id)

    # -------- Helper DTO builder --------

    def _build_order_with_items_dto(
        self,
        order: Order,
        items: list[OrderItem],
        buyer: User | None,
    ) -> OrderWithItemsRead:
        """
        Compose OrderWithItemsRead from ORM models.
        """
        return OrderWithItemsRead(
            **OrderRead.model_validate(order).model_dump(),
            items=[OrderItemRead.model_validate(it) for it in items],
            user=OrderBuyer(name=buyer.name, email=buyer.email) if buyer else None,
        )
