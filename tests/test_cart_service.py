from decimal import Decimal
import uuid

import pytest
from sqlmodel import select

from conftest import make_ctx
from storefront.core.errors import CartSessionError, NotFoundError
from storefront.models.cart import Cart
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.cart import CartItemCreate
from storefront.services.cart_service import CartService


@pytest.fixture()
def service():
    return CartService(CartRepository(), ProductRepository())


def _add(service, session, ctx, product):
    return service.add_item(session, ctx, CartItemCreate(product_id=product.id))


class TestAddItem:
    def test_creates_cart_for_anonymous_session(self, service, session, make_product):
        product = make_product(price="20.00")

        result = _add(service, session, make_ctx(), product)

        assert result.success is True
        assert result.message == "Polo Shirt added to cart"
        cart = CartRepository().get_for_session(session, "sess-1")
        assert cart.user_id is None
        assert cart.items[0]["qty"] == 1
        assert cart.items[0]["image"] == "https://cdn.test/p.jpg"
        assert cart.total_price == Decimal("33.00")

    def test_second_add_increments_quantity(self, service, session, make_product):
        product = make_product(price="30.00")
        ctx = make_ctx()

        _add(service, session, ctx, product)
        result = _add(service, session, ctx, product)

        assert result.success is True
        assert result.message == "Polo Shirt updated in the cart"
        assert result.data["items"][0]["qty"] == 2
        assert result.data["items_price"] == "60.00"

    def test_new_line_appended_to_existing_cart(self, service, session, make_product):
        shirt = make_product(name="Polo Shirt", price="30.00")
        jeans = make_product(name="Blue Jeans", price="45.00")
        ctx = make_ctx()

        _add(service, session, ctx, shirt)
        _add(service, session, ctx, shirt)
        result = _add(service, session, ctx, jeans)

        assert result.message == "Blue Jeans added to the cart"
        assert result.data["items_price"] == "105.00"
        assert result.data["shipping_price"] == "0.00"
        assert result.data["tax_price"] == "15.75"
        assert result.data["total_price"] == "120.75"

    def test_quantity_limited_by_stock(self, service, session, make_product):
        product = make_product(stock=1)
        ctx = make_ctx()

        _add(service, session, ctx, product)
        result = _add(service, session, ctx, product)

        assert result.success is False
        assert result.message == "Not enough stock"
        assert result.status_code == 409
        cart = CartRepository().get_for_session(session, "sess-1")
        assert cart.items[0]["qty"] == 1

    def test_out_of_stock_product_never_creates_cart(self, service, session, make_product):
        product = make_product(stock=0)

        result = _add(service, session, make_ctx(), product)

        assert result.success is False
        assert CartRepository().get_for_session(session, "sess-1") is None

    def test_requires_session_cookie(self, service, session, make_product):
        product = make_product()

        result = _add(service, session, make_ctx(session_cart_id=None), product)

        assert result.success is False
        assert result.message == "Cart session not found"

    def test_unknown_product(self, service, session):
        result = service.add_item(
            session, make_ctx(), CartItemCreate(product_id=uuid.uuid4())
        )
        assert result.success is False
        assert result.message == "Product not found"
        assert result.status_code == 404

    def test_signed_in_user_cart_is_keyed_by_user(
        self, service, session, make_user, make_product
    ):
        user = make_user()
        product = make_product()

        _add(service, session, make_ctx(user=user, session_cart_id="sess-a"), product)
        _add(service, session, make_ctx(user=user, session_cart_id="sess-b"), product)

        cart = CartRepository().get_for_user(session, user.id)
        assert cart.items[0]["qty"] == 2
        assert CartRepository().get_for_session(session, "sess-b") is None


class TestRemoveItem:
    def test_decrements_then_removes_line(self, service, session, make_product):
        product = make_product(price="10.00")
        ctx = make_ctx()
        _add(service, session, ctx, product)
        _add(service, session, ctx, product)

        first = service.remove_item(session, ctx, product.id)
        assert first.success is True
        assert first.message == "Polo Shirt removed from cart"
        assert first.data["items"][0]["qty"] == 1

        second = service.remove_item(session, ctx, product.id)
        assert second.data["items"] == []
        assert second.data["items_price"] == "0.00"
        assert second.data["shipping_price"] == "10.00"

    def test_item_not_in_cart(self, service, session, make_product):
        in_cart = make_product(name="Polo Shirt")
        other = make_product(name="Blue Jeans")
        ctx = make_ctx()
        _add(service, session, ctx, in_cart)

        result = service.remove_item(session, ctx, other.id)

        assert result.success is False
        assert result.message == "Item not found"

    def test_no_cart(self, service, session, make_product):
        product = make_product()
        result = service.remove_item(session, make_ctx(), product.id)
        assert result.message == "Cart not found"


class TestGetMyCart:
    def test_missing_cart_raises(self, service, session):
        with pytest.raises(NotFoundError):
            service.get_my_cart(session, make_ctx())

    def test_missing_cookie_raises(self, service, session):
        with pytest.raises(CartSessionError):
            service.get_my_cart(session, make_ctx(session_cart_id=None))


class TestClaimSessionCart:
    def test_session_cart_moves_to_user_and_old_cart_is_dropped(
        self, service, session, make_user, make_product
    ):
        user = make_user()
        old = Cart(session_cart_id="old-device", user_id=user.id, items=[])
        session.add(old)
        session.commit()
        old_id = old.id

        _add(service, session, make_ctx(), make_product())

        claimed = service.claim_session_cart(session, make_ctx(user=user))

        assert claimed.user_id == user.id
        assert claimed.session_cart_id == "sess-1"
        assert CartRepository().get_by_id(session, old_id) is None
        assert CartRepository().get_for_user(session, user.id).id == claimed.id

    def test_no_session_cart(self, service, session, make_user):
        user = make_user()
        assert service.claim_session_cart(session, make_ctx(user=user)) is None

    def test_same_cookie_cart_created_while_signed_in(
        self, service, session, make_user, make_product
    ):
        user = make_user()
        anonymous = make_ctx()
        _add(service, session, anonymous, make_product(name="Hat"))
        anonymous_cart = CartRepository().get_for_session(session, "sess-1")
        # signed in without claiming yet: a second cart shares the cookie
        _add(service, session, make_ctx(user=user), make_product(name="Scarf"))

        assert CartRepository().get_for_session(session, "sess-1").id == anonymous_cart.id

        claimed = service.claim_session_cart(session, make_ctx(user=user))

        assert claimed.id == anonymous_cart.id
        assert claimed.user_id == user.id
        user_carts = session.exec(select(Cart).where(Cart.user_id == user.id)).all()
        assert [c.id for c in user_carts] == [anonymous_cart.id]
        assert CartRepository().get_for_session(session, "sess-1") is None

    def test_claimed_cart_is_not_claimed_again(self, service, session, make_user, make_product):
        user = make_user()
        _add(service, session, make_ctx(), make_product())
        service.claim_session_cart(session, make_ctx(user=user))

        assert service.claim_session_cart(session, make_ctx(user=make_user(name="bob"))) is None
        assert CartRepository().get_for_user(session, user.id).session_cart_id == "sess-1"
