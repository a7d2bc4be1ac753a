# storefront/repositories/stats_repo.py
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func
from sqlmodel import Session, select

from storefront.models.order import Order
from storefront.models.product import Product
from storefront.models.user import User


class StatsRepository:
    """
    Read-only aggregated queries for admin dashboard.
    """

    def count_orders(self, session: Session) -> int:
        stmt = select(func.count()).select_from(Order)
        # SQLModel's Session.exec() -> ScalarResult -> use .one()
        value = session.exec(stmt).one()
        return int(value or 0)

    def count_products(self, session: Session) -> int:
        value = session.exec(select(func.count()).select_from(Product)).one()
        return int(value or 0)

    def count_users(self, session: Session) -> int:
        value = session.exec(select(func.count()).select_from(User)).one()
        return int(value or 0)

    def total_sales(self, session: Session) -> Decimal:
        """
        Sum of total_price over all orders.
        """
        stmt = select(func.coalesce(func.sum(Order.total_price), 0))
        value = session.exec(stmt).one()
        return Decimal(str(value or 0))

    def order_totals(self, session: Session) -> list[tuple[datetime, Decimal]]:
        """
        (created_at, total_price) for every order, oldest first.
        Month bucketing happens in the service so it works on any backend.
        """
        stmt = select(Order.created_at, Order.total_price).order_by(Order.created_at)
        return list(session.exec(stmt).all())

    def latest_orders(
        self,
        session: Session,
        limit: int = 6,
    ) -> list[tuple[Order, str | None]]:
        """
        Latest N orders by created_at, with buyer name.
        """
        stmt = (
            select(Order, User.name)
            .join(User, User.id == Order.user_id, isouter=True)
            .order_by(Order.created_at.desc())
            .limit(limit)
        )
        return list(session.exec(stmt).all())
