# storefront/core/context.py
import uuid
from dataclasses import dataclass

from fastapi import Request

from storefront.core.config import get_settings
from storefront.models.user import User

settings = get_settings()


@dataclass(frozen=True)
class RequestContext:
    """
    Per-request identity passed explicitly into cart and order services.

      - user: the signed-in user, or None for anonymous shoppers
      - session_cart_id: value of the cart cookie, or None if the browser
        has not received one yet

    Built by `storefront.core.auth.get_request_context`.
    """

    user: User | None = None
    session_cart_id: str | None = None

    @property
    def user_id(self) -> uuid.UUID | None:
        return self.user.id if self.user is not None else None


async def ensure_session_cart_cookie(request: Request, call_next):
    """
    HTTP middleware: hand every browser a random cart session id once.

    The cookie is only set on the response, so the request that
    receives it is still treated as cookie-less.
    """
    response = await call_next(request)
    if settings.SESSION_CART_COOKIE not in request.cookies:
        response.set_cookie(
            key=settings.SESSION_CART_COOKIE,
            value=str(uuid.uuid4()),
            httponly=True,
            samesite="lax",
        )
    return response
