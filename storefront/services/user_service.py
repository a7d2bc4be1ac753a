# storefront/services/user_service.py
import logging
import uuid

from sqlmodel import Session

from storefront.core.config import get_settings
from storefront.core.context import RequestContext
from storefront.core.errors import AuthorizationError, NotFoundError, RedirectSignal
from storefront.core.pagination import page_offset, total_pages
from storefront.core.results import ActionResult, action
from storefront.models.user import User
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.common import Page
from storefront.schemas.user import (
    PaymentMethodUpdate,
    ShippingAddress,
    SignInComplete,
    UserAdminUpdate,
    UserRead,
    UserUpdate,
)
from storefront.services.cart_service import CartService

logger = logging.getLogger(__name__)

settings = get_settings()


class UserService:
    """
    Business logic for User.

    Responsibilities:
      - profile and checkout preferences (address, payment method)
      - attaching the anonymous cart on sign-in
      - admin listing / editing / deletion
    """

    def __init__(self, repo: UserRepository, cart_service: CartService):
        self.repo = repo
        self.cart_service = cart_service

    def _current(self, session: Session, ctx: RequestContext) -> User:
        if ctx.user is None:
            raise AuthorizationError("User is not authenticated")
        user = self.repo.get_by_id(session, ctx.user.id)
        if not user:
            raise NotFoundError("User not found")
        return user

    # ----- Self profile -----

    @action
    def complete_sign_in(
        self,
        session: Session,
        ctx: RequestContext,
        payload: SignInComplete,
    ) -> ActionResult:
        """
        Called once the auth provider has signed the user in.

        Moves the browser's session cart onto the account, then sends
        the client on to `callback_url` when one is given.
        """
        user = self._current(session, ctx)
        cart = self.cart_service.claim_session_cart(session, ctx)

        if payload.callback_url:
            raise RedirectSignal(payload.callback_url)

        message = "Signed in successfully."
        if cart is not None:
            message = f"Signed in successfully. Cart restored for {user.name}."
        return ActionResult.ok(message)

    @action
    def update_profile(
        self,
        session: Session,
        ctx: RequestContext,
        payload: UserUpdate,
    ) -> ActionResult:
        """
        Partial update for profile edits.
        Currently, only `name` is editable; email belongs to the auth provider.
        """
        user = self._current(session, ctx)
        if payload.name is not None:
            user.name = payload.name
        self.repo.update(session, user)
        return ActionResult.ok("User updated successfully")

    @action
    def update_address(
        self,
        session: Session,
        ctx: RequestContext,
        payload: ShippingAddress,
    ) -> ActionResult:
        user = self._current(session, ctx)
        user.address = payload.model_dump()
        self.repo.update(session, user)
        return ActionResult.ok("User updated successfully")

    @action
    def update_payment_method(
        self,
        session: Session,
        ctx: RequestContext,
        payload: PaymentMethodUpdate,
    ) -> ActionResult:
        user = self._current(session, ctx)
        user.payment_method = payload.type
        self.repo.update(session, user)
        return ActionResult.ok("User updated successfully")

    # ----- Admin operations -----

    def list_users(
        self,
        session: Session,
        page: int = 1,
        query: str | None = None,
    ) -> Page[UserRead]:
        """List users with pagination and optional name filter (admin only)."""
        size = settings.PAGE_SIZE
        users = self.repo.list(
            session, query=query, skip=page_offset(page, size), limit=size
        )
        total = self.repo.count(session, query=query)
        return Page[UserRead](
            data=[UserRead.model_validate(u) for u in users],
            total_pages=total_pages(total, size),
        )

    def get_user(self, session: Session, user_id: uuid.UUID) -> User:
        """
        Get a user by id (admin only).

        Raises:
            NotFoundError: if not found.
        """
        user = self.repo.get_by_id(session, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    @action
    def update_user(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: UserAdminUpdate,
    ) -> ActionResult:
        """
        Change user's name and/or role (admin only).
        """
        user = self.get_user(session, user_id)
        if payload.name is not None:
            user.name = payload.name
        if payload.role is not None:
            user.role = payload.role
        self.repo.update(session, user)
        return ActionResult.ok("User updated successfully")

    @action
    def delete_user(self, session: Session, user_id: uuid.UUID) -> ActionResult:
        """Delete a user and everything they own (admin only)."""
        user = self.get_user(session, user_id)
        self.repo.delete(session, user)
        logger.info("User %s deleted", user_id)
        return ActionResult.ok("User deleted successfully")
