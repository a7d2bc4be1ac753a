# storefront/routers/products.py
import uuid

from fastapi import (
    APIRouter,
    Depends,
    File,
    UploadFile,
    status,
)
from sqlmodel import Session

from storefront.core.auth import require_admin
from storefront.core.results import ActionResult, to_response
from storefront.database import get_session
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.review_repo import ReviewRepository
from storefront.schemas.common import Page
from storefront.schemas.product import (
    CategoryCount,
    ProductCreate,
    ProductQuery,
    ProductRead,
    ProductSort,
    ProductUpdate,
)
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

repo = ProductRepository()
service = ProductService(repo, ReviewRepository())


# -------- Public endpoints --------


@router.get("", response_model=Page[ProductRead])
def search_products(
    query: str | None = None,
    category: str | None = None,
    price: str | None = None,
    rating: str | None = None,
    sort: ProductSort = "newest",
    page: int = 1,
    session: Session = Depends(get_session),
):
    """
    Search the catalog.

    - `price` is a "min-max" range, `rating` a minimum rating.
    - Any filter may be "all" or omitted.
    - `total_pages` counts only matching products.
    """
    params = ProductQuery(
        query=query,
        category=category,
        price=price,
        rating=rating,
        sort=sort,
        page=page,
    )
    return service.search(session, params)


@router.get("/latest", response_model=list[ProductRead])
def latest_products(session: Session = Depends(get_session)):
    """Newest products for the home page."""
    return service.get_latest(session)


@router.get("/featured", response_model=list[ProductRead])
def featured_products(session: Session = Depends(get_session)):
    return service.get_featured(session)


@router.get("/categories", response_model=list[CategoryCount])
def product_categories(session: Session = Depends(get_session)):
    """Distinct categories with their product counts."""
    return service.get_categories(session)


@router.get("/slug/{slug}", response_model=ProductRead)
def get_product_by_slug(
    slug: str,
    session: Session = Depends(get_session),
):
    return service.get_by_slug(session, slug)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Get a single product by id.
    """
    return service.get_product(session, product_id)


# -------- Admin endpoints --------


@router.post(
    "",
    response_model=ActionResult,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
):
    """
    Create a new product (admin only).
    """
    result = service.create_product(session, payload)
    if result.success:
        result.status_code = status.HTTP_201_CREATED
    return to_response(result)


@router.patch(
    "/{product_id}",
    response_model=ActionResult,
    dependencies=[Depends(require_admin)],
)
def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
):
    """
    Update an existing product (admin only).
    """
    return to_response(service.update_product(session, product_id, payload))


@router.delete(
    "/{product_id}",
    response_model=ActionResult,
    dependencies=[Depends(require_admin)],
)
def delete_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Delete a product, its reviews and its images (admin only).
    """
    return to_response(service.delete_product(session, product_id))


@router.post(
    "/{product_id}/images",
    response_model=ActionResult,
    dependencies=[Depends(require_admin)],
    summary="Upload an image for a product",
)
def upload_product_image(
    product_id: uuid.UUID,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
):
    """
    Upload an image and append it to the product's images.

    - Accepts JPEG, PNG, WEBP.
    - `data` holds the public URL.
    """
    if not file.content_type:
        return to_response(
            ActionResult.fail("Missing content-type for uploaded file")
        )

    file_bytes = file.file.read()
    return to_response(
        service.add_image(
            session=session,
            product_id=product_id,
            content_type=file.content_type,
            file_bytes=file_bytes,
        )
    )
