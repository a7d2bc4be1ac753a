# storefront/services/product_service.py
import logging
import re
import uuid

from sqlmodel import Session

from storefront.core.config import get_settings
from storefront.core.errors import NotFoundError, ValidationFailedError
from storefront.core.pagination import page_offset, total_pages
from storefront.core.results import ActionResult, action
from storefront.core.storage_utils import (
    delete_public_url,
    generate_filename,
    upload_to_storage,
)
from storefront.models.product import Product
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.review_repo import ReviewRepository
from storefront.schemas.common import Page
from storefront.schemas.product import (
    CategoryCount,
    ProductCreate,
    ProductQuery,
    ProductRead,
    ProductUpdate,
)

logger = logging.getLogger(__name__)

settings = get_settings()

# --- Image config ---

MAX_IMAGE_BYTES = 4 * 1024 * 1024  # 4MB per image

ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}

FEATURED_LIMIT = 4


class ProductService:
    """
    Business logic for the product catalog.

    Responsibilities:
      - storefront reads (latest, featured, by slug, search, categories)
      - slug generation & uniqueness
      - admin CRUD and image uploads to Supabase Storage
    """

    def __init__(self, repo: ProductRepository, review_repo: ReviewRepository):
        self.repo = repo
        self.review_repo = review_repo

    # ----- Helpers -----

    @staticmethod
    def _slugify(raw: str) -> str:
        """
        Basic slugification:
          - lowercase
          - non-alphanumeric -> '-'
          - collapse multiple '-'
          - strip leading/trailing '-'
        """
        value = raw.strip().lower()
        value = re.sub(r"[^a-z0-9]+", "-", value)
        value = re.sub(r"-+", "-", value)
        value = value.strip("-")
        return value or "product"

    def _ensure_unique_slug(self, session: Session, base_slug: str) -> str:
        """
        Ensure slug is unique by appending -2, -3, ... if needed.
        """
        slug = base_slug
        i = 2
        while self.repo.get_by_slug(session, slug) is not None:
            slug = f"{base_slug}-{i}"
            i += 1
        return slug

    @staticmethod
    def _validate_and_get_ext(content_type: str, file_bytes: bytes) -> str:
        if content_type not in ALLOWED_IMAGE_CONTENT_TYPES:
            raise ValidationFailedError(
                "Unsupported image type. Allowed: JPEG, PNG, WEBP."
            )

        if len(file_bytes) > MAX_IMAGE_BYTES:
            raise ValidationFailedError("Image too large (max 4MB).")

        return ALLOWED_IMAGE_CONTENT_TYPES[content_type]

    # ----- Storefront reads -----

    def get_latest(self, session: Session) -> list[Product]:
        return self.repo.latest(session, limit=settings.LATEST_PRODUCTS_LIMIT)

    def get_featured(self, session: Session) -> list[Product]:
        return self.repo.featured(session, limit=FEATURED_LIMIT)

    def get_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def get_by_slug(self, session: Session, slug: str) -> Product:
        product = self.repo.get_by_slug(session, slug)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def search(self, session: Session, params: ProductQuery) -> Page[ProductRead]:
        """
        Filtered, sorted, paginated product listing.
        total_pages counts only rows that match the filters.
        """
        size = settings.PAGE_SIZE
        rows = self.repo.search(
            session, params, skip=page_offset(params.page, size), limit=size
        )
        total = self.repo.count_search(session, params)
        return Page[ProductRead](
            data=[ProductRead.model_validate(p) for p in rows],
            total_pages=total_pages(total, size),
        )

    def get_categories(self, session: Session) -> list[CategoryCount]:
        return [
            CategoryCount(category=category, count=count)
            for category, count in self.repo.categories(session)
        ]

    # ----- Admin mutations -----

    @action
    def create_product(
        self,
        session: Session,
        payload: ProductCreate,
    ) -> ActionResult:
        """
        Create a new product with a unique slug.

        - If slug is provided => slugify & ensure unique.
        - Else => slugify from name & ensure unique.
        """
        base_slug = self._slugify(payload.slug or payload.name)
        slug = self._ensure_unique_slug(session, base_slug)

        product = Product(
            name=payload.name,
            slug=slug,
            category=payload.category,
            brand=payload.brand,
            description=payload.description,
            images=list(payload.images),
            is_featured=payload.is_featured,
            banner=payload.banner,
            stock=payload.stock,
            price=payload.price,
        )
        product = self.repo.create(session, product)
        logger.info("Product %s created (%s)", product.id, product.slug)
        return ActionResult.ok(
            "Product created successfully", data={"id": str(product.id), "slug": product.slug}
        )

    @action
    def update_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        payload: ProductUpdate,
    ) -> ActionResult:
        """
        Partial update of a product.

        - If slug is changed, enforce uniqueness.
        """
        product = self.get_product(session, product_id)
        changes = payload.model_dump(exclude_unset=True)

        new_slug = changes.pop("slug", None)
        if new_slug is not None:
            new_base_slug = self._slugify(new_slug)
            if new_base_slug != product.slug:
                product.slug = self._ensure_unique_slug(session, new_base_slug)

        for field, value in changes.items():
            if value is not None:
                setattr(product, field, value)

        self.repo.update(session, product)
        return ActionResult.ok("Product updated successfully")

    @action
    def delete_product(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> ActionResult:
        """
        Delete a product and its reviews, and clean up Storage.

        Existing order items keep their own snapshot of the product.
        Images are removed from Storage only once the rows are gone; a
        Storage failure at that point leaves an orphaned file, not a
        product pointing at missing images.
        """
        product = self.get_product(session, product_id)
        images = list(product.images)

        try:
            self.review_repo.delete_for_product(session, product.id)
            self.repo.delete(session, product)
        except Exception:
            session.rollback()
            raise
        logger.info("Product %s deleted", product_id)

        for url in images:
            try:
                delete_public_url(url)
            except Exception:
                logger.exception("Could not remove %s from storage", url)
        return ActionResult.ok("Product deleted successfully")

    @action
    def add_image(
        self,
        session: Session,
        product_id: uuid.UUID,
        content_type: str,
        file_bytes: bytes,
    ) -> ActionResult:
        """
        Upload an image and append its public URL to the product.

        Path pattern:
            products/<product_id>/<uuid>.<ext>
        """
        product = self.get_product(session, product_id)
        ext = self._validate_and_get_ext(content_type, file_bytes)

        path = f"products/{product.id}/{generate_filename(ext)}"
        url = upload_to_storage(path, file_bytes, content_type)

        product.images = [*product.images, url]
        self.repo.update(session, product)
        return ActionResult.ok("Image uploaded successfully", data=url)
