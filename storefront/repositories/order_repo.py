# storefront/repositories/order_repo.py
import uuid

from sqlalchemy import delete, func
from sqlmodel import Session, select

from storefront.models.order import Order, OrderItem
from storefront.models.user import User


class OrderRepository:
    """
    Data access layer for orders and order_items.

    NOTE:
      - No commits here except `delete`; order creation and payment are
        multi-step transactions. The service is responsible for calling
        session.commit().
    """

    # ---- Orders ----

    def list_for_user(
        self,
        session: Session,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 10,
    ) -> list[Order]:
        stmt = (
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def count_for_user(self, session: Session, user_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(Order).where(Order.user_id == user_id)
        return int(session.exec(stmt).one() or 0)

    @staticmethod
    def _buyer_filter(query: str | None) -> list:
        if query and query != "all":
            return [User.name.ilike(f"%{query}%")]
        return []

    def list_all(
        self,
        session: Session,
        query: str | None = None,
        skip: int = 0,
        limit: int = 10,
    ) -> list[tuple[Order, str | None]]:
        """All orders newest first, each paired with the buyer's name."""
        stmt = (
            select(Order, User.name)
            .join(User, User.id == Order.user_id, isouter=True)
            .where(*self._buyer_filter(query))
            .order_by(Order.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def count_all(self, session: Session, query: str | None = None) -> int:
        stmt = (
            select(func.count(Order.id))
            .join(User, User.id == Order.user_id, isouter=True)
            .where(*self._buyer_filter(query))
        )
        return int(session.exec(stmt).one() or 0)

    def get_by_id(self, session: Session, order_id: uuid.UUID) -> Order | None:
        return session.get(Order, order_id)

    def create_order(self, session: Session, order: Order) -> Order:
        """
        Insert an Order without committing, but ensure id is populated.
        """
        session.add(order)
        session.flush()  # Assign PK
        session.refresh(order)
        return order

    def update_order(self, session: Session, order: Order) -> Order:
        session.add(order)
        session.flush()
        return order

    def delete(self, session: Session, order: Order) -> None:
        session.exec(delete(OrderItem).where(OrderItem.order_id == order.id))
        session.delete(order)
        session.commit()

    # ---- Order items ----

    def list_items_for_order(
        self,
        session: Session,
        order_id: uuid.UUID,
    ) -> list[OrderItem]:
        stmt = select(OrderItem).where(OrderItem.order_id == order_id)
        return session.exec(stmt).all()

    def create_items(
        self,
        session: Session,
        items: list[OrderItem],
    ) -> list[OrderItem]:
        session.add_all(items)
        session.flush()
        return items
