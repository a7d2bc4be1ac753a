# storefront/repositories/user_repo.py
import uuid

from sqlalchemy import delete, func
from sqlmodel import Session, select

from storefront.models.cart import Cart
from storefront.models.order import Order, OrderItem
from storefront.models.review import Review
from storefront.models.user import User


class UserRepository:
    """
    Data access layer for User.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic
    """

    # ----- Basic CRUD -----

    def get_by_id(self, session: Session, user_id: uuid.UUID) -> User | None:
        """Return a User by primary key, or None if not found."""
        return session.get(User, user_id)

    def create(self, session: Session, user: User) -> User:
        """Insert a new User and return the refreshed row."""
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    @staticmethod
    def _name_filter(query: str | None) -> list:
        if query and query != "all":
            return [User.name.ilike(f"%{query}%")]
        return []

    def list(
        self,
        session: Session,
        query: str | None = None,
        skip: int = 0,
        limit: int = 10,
    ) -> list[User]:
        """
        Paginated user listing, newest first.

        Args:
            query: case-insensitive substring of the name ("all" = no filter)
            skip: offset rows (for paging)
            limit: max number of rows returned
        """
        stmt = (
            select(User)
            .where(*self._name_filter(query))
            .order_by(User.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def count(self, session: Session, query: str | None = None) -> int:
        stmt = select(func.count()).select_from(User).where(*self._name_filter(query))
        return int(session.exec(stmt).one() or 0)

    def update(self, session: Session, user: User) -> User:
        """Persist changes to an existing User."""
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    def delete(self, session: Session, user: User) -> None:
        """Delete a User together with their carts, reviews and orders."""
        order_ids = select(Order.id).where(Order.user_id == user.id)
        session.exec(delete(OrderItem).where(OrderItem.order_id.in_(order_ids)))
        session.exec(delete(Order).where(Order.user_id == user.id))
        session.exec(delete(Review).where(Review.user_id == user.id))
        session.exec(delete(Cart).where(Cart.user_id == user.id))
        session.delete(user)
        session.commit()
