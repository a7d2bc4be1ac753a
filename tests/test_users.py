import uuid

import pytest
from pydantic import ValidationError

from conftest import make_ctx
from storefront.core.errors import NotFoundError, RedirectSignal
from storefront.models.cart import Cart
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.cart import CartItemCreate
from storefront.schemas.user import (
    PaymentMethodUpdate,
    ShippingAddress,
    SignInComplete,
    UserAdminUpdate,
    UserUpdate,
)
from storefront.services.cart_service import CartService
from storefront.services.user_service import UserService


@pytest.fixture()
def cart_service():
    return CartService(CartRepository(), ProductRepository())


@pytest.fixture()
def service(cart_service):
    return UserService(UserRepository(), cart_service)


class TestSignIn:
    def test_claims_anonymous_cart(self, session, service, cart_service, make_user, make_product):
        user = make_user(name="jane")
        cart_service.add_item(session, make_ctx(), CartItemCreate(product_id=make_product().id))

        result = service.complete_sign_in(session, make_ctx(user=user), SignInComplete())

        assert result.success is True
        assert result.message == "Signed in successfully. Cart restored for jane."
        assert CartRepository().get_for_user(session, user.id).session_cart_id == "sess-1"

    def test_without_session_cart(self, session, service, make_user):
        result = service.complete_sign_in(
            session, make_ctx(user=make_user()), SignInComplete()
        )
        assert result.message == "Signed in successfully."

    def test_callback_url_redirects(self, session, service, make_user):
        with pytest.raises(RedirectSignal) as exc:
            service.complete_sign_in(
                session,
                make_ctx(user=make_user()),
                SignInComplete(callback_url="/shipping-address"),
            )
        assert exc.value.location == "/shipping-address"

    @pytest.mark.parametrize(
        "url", ["https://evil.example/phish", "//evil.example", "/\\evil.example", "shipping"]
    )
    def test_callback_url_must_stay_on_site(self, url):
        with pytest.raises(ValidationError):
            SignInComplete(callback_url=url)


class TestProfile:
    def test_update_name(self, session, service, make_user):
        user = make_user(name="jane")

        result = service.update_profile(session, make_ctx(user=user), UserUpdate(name=" Janet "))

        assert result.message == "User updated successfully"
        session.refresh(user)
        assert user.name == "Janet"

    def test_update_address(self, session, service, make_user, address):
        user = make_user()

        service.update_address(session, make_ctx(user=user), ShippingAddress(**address))

        session.refresh(user)
        assert user.address["city"] == "Springfield"

    def test_update_payment_method(self, session, service, make_user):
        user = make_user()

        service.update_payment_method(
            session, make_ctx(user=user), PaymentMethodUpdate(type="CashOnDelivery")
        )

        session.refresh(user)
        assert user.payment_method == "CashOnDelivery"

    def test_anonymous_caller(self, session, service):
        result = service.update_profile(session, make_ctx(), UserUpdate(name="x"))
        assert result.success is False
        assert result.status_code == 403


class TestAdmin:
    def test_list_users_paginates_and_filters(self, session, service, make_user):
        for i in range(11):
            make_user(name=f"shopper{i}")
        make_user(name="admin", role="admin")

        page = service.list_users(session, page=1)
        filtered = service.list_users(session, query="admin")

        assert len(page.data) == 10
        assert page.total_pages == 2
        assert [u.name for u in filtered.data] == ["admin"]
        assert filtered.total_pages == 1

    def test_promote_user(self, session, service, make_user):
        user = make_user()

        result = service.update_user(session, user.id, UserAdminUpdate(role="admin"))

        assert result.success is True
        session.refresh(user)
        assert user.role == "admin"

    def test_delete_user_removes_their_carts(self, session, service, make_user):
        user = make_user()
        session.add(Cart(session_cart_id="sess-x", user_id=user.id, items=[]))
        session.commit()
        user_id = user.id

        result = service.delete_user(session, user_id)

        assert result.message == "User deleted successfully"
        assert CartRepository().get_for_user(session, user_id) is None
        with pytest.raises(NotFoundError):
            service.get_user(session, user_id)

    def test_delete_unknown_user(self, session, service):
        result = service.delete_user(session, uuid.uuid4())
        assert result.success is False
        assert result.status_code == 404
