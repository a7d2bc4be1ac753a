# storefront/repositories/review_repo.py
import uuid

from sqlalchemy import delete, func
from sqlmodel import Session, select

from storefront.models.review import Review
from storefront.models.user import User


class ReviewRepository:
    """
    Data access layer for reviews.

    No commits: the upsert and the product aggregate update share one
    transaction owned by the service.
    """

    def get_for_user_product(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
    ) -> Review | None:
        stmt = select(Review).where(
            Review.user_id == user_id, Review.product_id == product_id
        )
        return session.exec(stmt).first()

    def list_for_product(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> list[tuple[Review, str | None]]:
        """Reviews newest first, each paired with the reviewer's name."""
        stmt = (
            select(Review, User.name)
            .join(User, User.id == Review.user_id, isouter=True)
            .where(Review.product_id == product_id)
            .order_by(Review.created_at.desc())
        )
        return list(session.exec(stmt).all())

    def aggregate_for_product(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> tuple[float | None, int]:
        """Return (average rating, review count) over all reviews of a product."""
        stmt = select(func.avg(Review.rating), func.count(Review.id)).where(
            Review.product_id == product_id
        )
        avg_rating, count = session.exec(stmt).one()
        return avg_rating, int(count or 0)

    def add(self, session: Session, review: Review) -> Review:
        session.add(review)
        session.flush()
        return review

    def delete_for_product(self, session: Session, product_id: uuid.UUID) -> None:
        session.exec(delete(Review).where(Review.product_id == product_id))
