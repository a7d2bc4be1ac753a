# storefront/repositories/cart_repo.py
import uuid

from sqlalchemy import delete
from sqlmodel import Session, select

from storefront.models.cart import Cart


class CartRepository:
    """
    Data access layer for carts.

    NOTE:
      - `save` commits; `save_in_tx` only flushes so the cart reset can
        join the order-creation transaction.
    """

    def get_for_user(self, session: Session, user_id: uuid.UUID) -> Cart | None:
        stmt = select(Cart).where(Cart.user_id == user_id)
        return session.exec(stmt).first()

    def get_for_session(self, session: Session, session_cart_id: str) -> Cart | None:
        """Anonymous cart for a cookie value; carts owned by a user are skipped."""
        stmt = (
            select(Cart)
            .where(Cart.session_cart_id == session_cart_id)
            .where(Cart.user_id.is_(None))
        )
        return session.exec(stmt).first()

    def get_by_id(self, session: Session, cart_id: uuid.UUID) -> Cart | None:
        return session.get(Cart, cart_id)

    def save(self, session: Session, cart: Cart) -> Cart:
        session.add(cart)
        session.commit()
        session.refresh(cart)
        return cart

    def save_in_tx(self, session: Session, cart: Cart) -> Cart:
        session.add(cart)
        session.flush()
        return cart

    def delete_for_user(
        self,
        session: Session,
        user_id: uuid.UUID,
        keep_cart_id: uuid.UUID | None = None,
    ) -> None:
        """Delete every cart owned by the user, except `keep_cart_id`. No commit."""
        stmt = delete(Cart).where(Cart.user_id == user_id)
        if keep_cart_id is not None:
            stmt = stmt.where(Cart.id != keep_cart_id)
        session.exec(stmt)
