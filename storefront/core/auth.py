# storefront/core/auth.py
import logging
import uuid
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session

from storefront.core.config import get_settings
from storefront.core.context import RequestContext
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)

settings = get_settings()

# Missing Authorization header is not an error: anonymous shoppers
# are identified by the cart cookie instead.
bearer_scheme = HTTPBearer(auto_error=False)

users = UserRepository()


@dataclass(frozen=True)
class TokenClaims:
    """The two claims of a Supabase access token this service relies on."""

    user_id: uuid.UUID
    email: str


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def read_claims(token: str) -> TokenClaims:
    """
    Verify a Supabase JWT (signature and exp; `aud` is not checked)
    and extract the subject and email.

    Raises:
        HTTPException(401): bad signature, expired, or missing/invalid claims.
    """
    try:
        payload = jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise _unauthorized("Invalid or expired token")

    sub, email = payload.get("sub"), payload.get("email")
    if not sub or not email:
        raise _unauthorized("Token missing sub/email")

    try:
        user_id = uuid.UUID(str(sub))
    except ValueError:
        raise _unauthorized("Invalid sub in token")

    return TokenClaims(user_id=user_id, email=email)


def provision_user(session: Session, claims: TokenClaims) -> User:
    """
    Return the profile for a verified identity, creating it on first sight.

    New profiles get role "user" and the email's local part as name;
    admins are promoted through the admin users endpoint.
    """
    user = users.get_by_id(session, claims.user_id)
    if user is not None:
        return user

    user = users.create(
        session,
        User(
            id=claims.user_id,
            email=claims.email,
            name=claims.email.partition("@")[0] or claims.email,
            role="user",
        ),
    )
    logger.info("Provisioned user %s on first request", user.id)
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User | None:
    """Signed-in user for this request, or None for anonymous shoppers."""
    if credentials is None:
        return None
    return provision_user(session, read_claims(credentials.credentials))


def get_request_context(
    request: Request,
    user: User | None = Depends(get_current_user),
) -> RequestContext:
    """
    Resolve who is calling: the bearer token's user (if any) plus the
    cart cookie. Passed explicitly into cart, order and review services.
    """
    return RequestContext(
        user=user,
        session_cart_id=request.cookies.get(settings.SESSION_CART_COOKIE),
    )


def require_auth(ctx: RequestContext = Depends(get_request_context)) -> User:
    """401 unless the request carries a valid token."""
    if ctx.user is None:
        raise _unauthorized("Authentication required")
    return ctx.user


def require_admin(user: User = Depends(require_auth)) -> User:
    """403 unless the signed-in user has role 'admin'."""
    if user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user
