from datetime import datetime, timedelta, timezone
from decimal import Decimal
import uuid

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from storefront.core.errors import NotFoundError
from storefront.models.review import Review
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.review_repo import ReviewRepository
from storefront.schemas.product import ProductCreate, ProductQuery, ProductUpdate
from storefront.services import product_service as product_service_module
from storefront.services.product_service import ProductService


@pytest.fixture()
def service():
    return ProductService(ProductRepository(), ReviewRepository())


def _create_payload(**overrides):
    data = {
        "name": "Polo Shirt",
        "category": "Shirts",
        "brand": "Brand",
        "description": "Soft cotton polo",
        "price": "25.00",
        "stock": 4,
    }
    data.update(overrides)
    return ProductCreate(**data)


class TestSearch:
    def test_filters_and_counts_matching_rows_only(self, session, service, make_product):
        for i in range(12):
            make_product(name=f"Shirt {i:02d}", category="Shirts", price="20.00")
        for i in range(3):
            make_product(name=f"Jeans {i}", category="Jeans", price="50.00")

        first = service.search(session, ProductQuery(category="Shirts"))
        second = service.search(session, ProductQuery(category="Shirts", page=2))

        assert len(first.data) == 10
        assert len(second.data) == 2
        assert first.total_pages == 2

    def test_query_is_case_insensitive_substring(self, session, service, make_product):
        make_product(name="Polo Shirt")
        make_product(name="Blue Jeans")

        page = service.search(session, ProductQuery(query="polo"))

        assert [p.name for p in page.data] == ["Polo Shirt"]
        assert page.total_pages == 1

    def test_all_means_no_filter(self, session, service, make_product):
        make_product(name="Polo Shirt")
        make_product(name="Blue Jeans", category="Jeans")

        page = service.search(
            session,
            ProductQuery(query="all", category="all", price="all", rating="all"),
        )

        assert len(page.data) == 2

    def test_price_range_and_sort(self, session, service, make_product):
        make_product(name="Cheap Shirt", price="5.00")
        make_product(name="Mid Shirt", price="20.00")
        make_product(name="Fine Shirt", price="40.00")
        make_product(name="Luxury Shirt", price="500.00")

        page = service.search(session, ProductQuery(price="10-100", sort="highest"))

        assert [p.name for p in page.data] == ["Fine Shirt", "Mid Shirt"]

    def test_min_rating(self, session, service, make_product):
        make_product(name="Loved Shirt", rating=Decimal("4.50"))
        make_product(name="Meh Shirt", rating=Decimal("2.00"))

        page = service.search(session, ProductQuery(rating="4", sort="rating"))

        assert [p.name for p in page.data] == ["Loved Shirt"]

    def test_empty_result_has_zero_pages(self, session, service):
        page = service.search(session, ProductQuery(query="nothing"))
        assert page.data == []
        assert page.total_pages == 0

    def test_malformed_price_range_rejected(self):
        with pytest.raises(ValidationError):
            ProductQuery(price="cheap")


class TestStorefrontReads:
    def test_latest_is_newest_first(self, session, service, make_product):
        now = datetime.now(timezone.utc)
        for i in range(5):
            make_product(name=f"Shirt {i}", created_at=now - timedelta(days=i))

        latest = service.get_latest(session)

        assert [p.name for p in latest] == ["Shirt 0", "Shirt 1", "Shirt 2", "Shirt 3"]

    def test_featured_only(self, session, service, make_product):
        make_product(name="Star Shirt", is_featured=True, banner="https://cdn.test/b.jpg")
        make_product(name="Plain Shirt")

        assert [p.name for p in service.get_featured(session)] == ["Star Shirt"]

    def test_categories_with_counts(self, session, service, make_product):
        make_product(name="Polo Shirt", category="Shirts")
        make_product(name="Dress Shirt", category="Shirts")
        make_product(name="Blue Jeans", category="Jeans")

        categories = service.get_categories(session)

        assert [(c.category, c.count) for c in categories] == [("Jeans", 1), ("Shirts", 2)]

    def test_unknown_slug(self, session, service):
        with pytest.raises(NotFoundError):
            service.get_by_slug(session, "missing")


class TestAdminMutations:
    def test_create_generates_unique_slug(self, session, service):
        first = service.create_product(session, _create_payload())
        second = service.create_product(session, _create_payload())

        assert first.success is True
        assert first.message == "Product created successfully"
        assert first.data["slug"] == "polo-shirt"
        assert second.data["slug"] == "polo-shirt-2"

    def test_create_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            _create_payload(color="red")

    def test_partial_update(self, session, service, make_product):
        product = make_product(name="Polo Shirt", price="25.00")

        result = service.update_product(
            session, product.id, ProductUpdate(price=Decimal("19.99"), slug="Summer Polo")
        )

        assert result.success is True
        session.refresh(product)
        assert product.price == Decimal("19.99")
        assert product.slug == "summer-polo"
        assert product.name == "Polo Shirt"

    def test_update_unknown_product(self, session, service):
        result = service.update_product(session, uuid.uuid4(), ProductUpdate(stock=1))
        assert result.success is False
        assert result.status_code == 404

    def test_delete_removes_reviews(self, session, service, make_product, make_user):
        product = make_product()
        user = make_user()
        session.add(
            Review(
                user_id=user.id,
                product_id=product.id,
                rating=5,
                title="Great",
                description="Loved it",
            )
        )
        session.commit()
        product_id = product.id

        result = service.delete_product(session, product_id)

        assert result.success is True
        assert ProductRepository().get_by_id(session, product_id) is None
        assert ReviewRepository().list_for_product(session, product_id) == []

    def test_delete_removes_images_after_commit(
        self, session, service, make_product, monkeypatch
    ):
        product = make_product(images=["https://cdn.test/a.png", "https://cdn.test/b.png"])
        product_id = product.id
        removed = []

        def _remove(url):
            # the row must already be gone when Storage is touched
            assert ProductRepository().get_by_id(session, product_id) is None
            removed.append(url)

        monkeypatch.setattr(product_service_module, "delete_public_url", _remove)

        result = service.delete_product(session, product_id)

        assert result.success is True
        assert removed == ["https://cdn.test/a.png", "https://cdn.test/b.png"]

    def test_failed_delete_keeps_images(self, session, service, make_product, monkeypatch):
        product = make_product(images=["https://cdn.test/a.png"])
        removed = []

        def _fail(session, product):
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(product_service_module, "delete_public_url", removed.append)
        monkeypatch.setattr(service.repo, "delete", _fail)

        result = service.delete_product(session, product.id)

        assert result.success is False
        assert removed == []
        assert ProductRepository().get_by_id(session, product.id) is not None

    def test_storage_failure_does_not_undo_delete(
        self, session, service, make_product, monkeypatch
    ):
        product = make_product(images=["https://cdn.test/a.png"])
        product_id = product.id

        def _boom(url):
            raise RuntimeError("storage down")

        monkeypatch.setattr(product_service_module, "delete_public_url", _boom)

        result = service.delete_product(session, product_id)

        assert result.success is True
        assert ProductRepository().get_by_id(session, product_id) is None

    def test_add_image_appends_public_url(self, session, service, make_product, monkeypatch):
        product = make_product(images=[])
        uploads = []

        def _upload(path, file_bytes, content_type):
            uploads.append((path, content_type))
            return f"https://cdn.test/{path}"

        monkeypatch.setattr(product_service_module, "upload_to_storage", _upload)

        result = service.add_image(session, product.id, "image/png", b"\x89PNG")

        assert result.success is True
        assert result.data.startswith(f"https://cdn.test/products/{product.id}/")
        assert result.data.endswith(".png")
        session.refresh(product)
        assert product.images == [result.data]
        assert uploads[0][1] == "image/png"

    def test_add_image_rejects_unsupported_type(self, session, service, make_product):
        product = make_product()

        result = service.add_image(session, product.id, "image/gif", b"GIF89a")

        assert result.success is False
        assert result.status_code == 422

