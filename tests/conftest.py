import os

# Settings are read at import time; configure them before importing the app.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("PAYPAL_CLIENT_ID", "test-client")
os.environ.setdefault("PAYPAL_APP_SECRET", "test-secret")

import uuid  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from storefront.core.config import get_settings  # noqa: E402
from storefront.core.context import RequestContext  # noqa: E402
from storefront.core.paypal_client import GatewayCapture, GatewayOrder  # noqa: E402
from storefront.database import get_session  # noqa: E402
from storefront.main import app  # noqa: E402
from storefront.models.product import Product  # noqa: E402
from storefront.models.user import User  # noqa: E402

settings = get_settings()


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture()
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def client(session):
    def _get_session_override():
        yield session

    app.dependency_overrides[get_session] = _get_session_override
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---- factories ----


@pytest.fixture()
def make_user(session):
    def _make_user(
        name="jane",
        role="user",
        address=None,
        payment_method=None,
    ) -> User:
        user = User(
            id=uuid.uuid4(),
            email=f"{name}-{uuid.uuid4().hex[:6]}@mail.com",
            name=name,
            role=role,
            address=address,
            payment_method=payment_method,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def make_product(session):
    def _make_product(
        name="Polo Shirt",
        price="12.50",
        stock=5,
        category="Shirts",
        **fields,
    ) -> Product:
        product = Product(
            name=name,
            slug=fields.pop("slug", None) or f"{name.lower().replace(' ', '-')}-{uuid.uuid4().hex[:6]}",
            category=category,
            brand=fields.pop("brand", "Brand"),
            description=fields.pop("description", "A product"),
            images=fields.pop("images", ["https://cdn.test/p.jpg"]),
            price=Decimal(price),
            stock=stock,
            **fields,
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make_product


@pytest.fixture()
def address():
    return {
        "full_name": "Jane Doe",
        "street_address": "1 Main Street",
        "city": "Springfield",
        "postal_code": "12345",
        "country": "USA",
        "lat": None,
        "lng": None,
    }


def make_ctx(user=None, session_cart_id="sess-1") -> RequestContext:
    return RequestContext(user=user, session_cart_id=session_cart_id)


def auth_headers(user: User) -> dict[str, str]:
    token = jwt.encode(
        {
            "sub": str(user.id),
            "email": user.email,
            "exp": datetime.now(timezone.utc) + timedelta(hours=1),
        },
        settings.SUPABASE_JWT_SECRET,
        algorithm=settings.SUPABASE_JWT_ALG,
    )
    return {"Authorization": f"Bearer {token}"}


class FakeGateway:
    """In-memory stand-in for the PayPal client."""

    def __init__(self, order_id="PAYPAL-1", capture_id=None, status="COMPLETED"):
        self.order_id = order_id
        self.capture_id = capture_id or order_id
        self.status = status
        self.created: list[Decimal] = []
        self.captured: list[str] = []

    def create_order(self, price: Decimal) -> GatewayOrder:
        self.created.append(price)
        return GatewayOrder(id=self.order_id, status="CREATED")

    def capture_payment(self, order_id: str) -> GatewayCapture:
        self.captured.append(order_id)
        return GatewayCapture(
            id=self.capture_id,
            status=self.status,
            payer_email="buyer@mail.com",
            amount="24.38",
        )


@pytest.fixture()
def gateway():
    return FakeGateway()
