# storefront/services/review_service.py
import logging
import uuid

from sqlmodel import Session

from storefront.core.context import RequestContext
from storefront.core.errors import AuthorizationError, NotFoundError
from storefront.core.results import ActionResult, action
from storefront.models.review import Review
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.review_repo import ReviewRepository
from storefront.schemas.review import ReviewCreate, ReviewRead
from storefront.services.pricing import round2

logger = logging.getLogger(__name__)


class ReviewService:
    """
    Reviews and the product rating aggregate.

    Every write recounts the product's reviews from scratch; the
    aggregate is never adjusted incrementally.
    """

    def __init__(self, review_repo: ReviewRepository, product_repo: ProductRepository):
        self.review_repo = review_repo
        self.product_repo = product_repo

    @action
    def create_or_update(
        self,
        session: Session,
        ctx: RequestContext,
        payload: ReviewCreate,
    ) -> ActionResult:
        """
        Upsert the caller's review of a product, then rewrite the
        product's rating and num_reviews in the same transaction.
        """
        if ctx.user is None:
            raise AuthorizationError("User is not authenticated")

        product = self.product_repo.get_by_id(session, payload.product_id)
        if not product:
            raise NotFoundError("Product not found")

        existing = self.review_repo.get_for_user_product(
            session, ctx.user.id, product.id
        )

        try:
            if existing is not None:
                existing.title = payload.title
                existing.description = payload.description
                existing.rating = payload.rating
                self.review_repo.add(session, existing)
            else:
                self.review_repo.add(
                    session,
                    Review(
                        user_id=ctx.user.id,
                        product_id=product.id,
                        rating=payload.rating,
                        title=payload.title,
                        description=payload.description,
                    ),
                )

            avg_rating, count = self.review_repo.aggregate_for_product(session, product.id)
            self.product_repo.set_rating(
                session, product, round2(avg_rating or 0), count
            )
            session.commit()
        except Exception:
            session.rollback()
            raise

        verb = "Updated" if existing is not None else "Created"
        logger.info("Review %s for product %s by %s", verb.lower(), product.id, ctx.user.id)
        return ActionResult.ok(f"Review {verb} successfully")

    def list_for_product(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> list[ReviewRead]:
        rows = self.review_repo.list_for_product(session, product_id)
        return [
            ReviewRead.model_validate(
                {**review.model_dump(), "user_name": name}
            )
            for review, name in rows
        ]

    def get_mine_for_product(
        self,
        session: Session,
        ctx: RequestContext,
        product_id: uuid.UUID,
    ) -> Review:
        if ctx.user is None:
            raise AuthorizationError("User is not authenticated")
        review = self.review_repo.get_for_user_product(session, ctx.user.id, product_id)
        if review is None:
            raise NotFoundError("Review not found")
        return review
