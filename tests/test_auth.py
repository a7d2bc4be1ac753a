import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from jose import jwt
from starlette.requests import Request

from conftest import settings
from storefront.core.auth import (
    TokenClaims,
    get_request_context,
    provision_user,
    read_claims,
    require_admin,
    require_auth,
)
from storefront.core.context import RequestContext
from storefront.models.user import User


def _token(secret=None, **claims):
    claims.setdefault("exp", datetime.now(timezone.utc) + timedelta(hours=1))
    return jwt.encode(
        claims,
        secret or settings.SUPABASE_JWT_SECRET,
        algorithm=settings.SUPABASE_JWT_ALG,
    )


def _request(cookies: dict[str, str]) -> Request:
    header = "; ".join(f"{k}={v}" for k, v in cookies.items())
    headers = [(b"cookie", header.encode())] if header else []
    return Request({"type": "http", "headers": headers})


class TestReadClaims:
    def test_valid_token(self):
        user_id = uuid.uuid4()

        claims = read_claims(_token(sub=str(user_id), email="a@mail.com"))

        assert claims == TokenClaims(user_id=user_id, email="a@mail.com")

    def test_wrong_secret(self):
        token = _token(secret="other", sub=str(uuid.uuid4()), email="a@mail.com")
        with pytest.raises(HTTPException) as exc:
            read_claims(token)
        assert exc.value.status_code == 401

    def test_expired(self):
        token = _token(
            sub=str(uuid.uuid4()),
            email="a@mail.com",
            exp=datetime.now(timezone.utc) - timedelta(minutes=1),
        )
        with pytest.raises(HTTPException):
            read_claims(token)

    def test_missing_email(self):
        with pytest.raises(HTTPException) as exc:
            read_claims(_token(sub=str(uuid.uuid4())))
        assert exc.value.detail == "Token missing sub/email"

    def test_sub_must_be_uuid(self):
        with pytest.raises(HTTPException) as exc:
            read_claims(_token(sub="user-42", email="a@mail.com"))
        assert exc.value.detail == "Invalid sub in token"


class TestProvisionUser:
    def test_creates_profile_once(self, session):
        claims = TokenClaims(user_id=uuid.uuid4(), email="sam@mail.com")

        first = provision_user(session, claims)
        second = provision_user(session, claims)

        assert first.id == second.id == claims.user_id
        assert first.name == "sam"
        assert first.role == "user"
        assert session.get(User, claims.user_id) is not None

    def test_existing_profile_is_untouched(self, session, make_user):
        admin = make_user(name="boss", role="admin")

        user = provision_user(session, TokenClaims(user_id=admin.id, email="x@mail.com"))

        assert user.role == "admin"
        assert user.name == "boss"


class TestRequestContext:
    def test_carries_user_and_cart_cookie(self, make_user):
        user = make_user()
        request = _request({settings.SESSION_CART_COOKIE: "sess-9"})

        ctx = get_request_context(request, user=user)

        assert ctx.user_id == user.id
        assert ctx.session_cart_id == "sess-9"

    def test_anonymous_without_cookie(self):
        ctx = get_request_context(_request({}), user=None)

        assert ctx == RequestContext()
        assert ctx.user_id is None

    def test_require_auth_rejects_anonymous(self):
        with pytest.raises(HTTPException) as exc:
            require_auth(RequestContext(session_cart_id="sess-1"))
        assert exc.value.status_code == 401

    def test_require_admin(self, make_user):
        assert require_admin(make_user(role="admin")).role == "admin"
        with pytest.raises(HTTPException) as exc:
            require_admin(make_user())
        assert exc.value.status_code == 403
