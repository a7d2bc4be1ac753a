# storefront/routers/reviews.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.core.auth import get_request_context, require_auth
from storefront.core.context import RequestContext
from storefront.core.results import ActionResult, to_response
from storefront.database import get_session
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.review_repo import ReviewRepository
from storefront.schemas.review import ReviewCreate, ReviewRead
from storefront.services.review_service import ReviewService

router = APIRouter(prefix="/reviews", tags=["Reviews"])

service = ReviewService(ReviewRepository(), ProductRepository())


@router.post(
    "",
    response_model=ActionResult,
    dependencies=[Depends(require_auth)],
)
def create_or_update_review(
    payload: ReviewCreate,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Create the caller's review of a product, or update it if one exists.

    The product's rating and review count are recomputed on every write.
    """
    return to_response(service.create_or_update(session, ctx, payload))


@router.get("/product/{product_id}", response_model=list[ReviewRead])
def list_product_reviews(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """Reviews of a product, newest first (public)."""
    return service.list_for_product(session, product_id)


@router.get(
    "/product/{product_id}/mine",
    response_model=ReviewRead,
    dependencies=[Depends(require_auth)],
)
def get_my_review(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return service.get_mine_for_product(session, ctx, product_id)
