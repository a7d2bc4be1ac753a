# storefront/core/results.py
import functools
import logging
from typing import Any, Callable

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from storefront.core.errors import RedirectSignal, StorefrontError

logger = logging.getLogger(__name__)


class ActionResult(BaseModel):
    """
    Uniform response shape for every mutating operation.

      - success: whether the operation committed
      - message: human-readable outcome
      - redirect_to: optional next page for the client (checkout flow)
      - data: optional payload (e.g. created id)
    """

    success: bool
    message: str
    redirect_to: str | None = None
    data: Any = None

    # HTTP status hint for the router; never serialized
    status_code: int = Field(default=status.HTTP_200_OK, exclude=True)

    @classmethod
    def ok(
        cls,
        message: str,
        redirect_to: str | None = None,
        data: Any = None,
    ) -> "ActionResult":
        return cls(success=True, message=message, redirect_to=redirect_to, data=data)

    @classmethod
    def fail(
        cls,
        message: str,
        redirect_to: str | None = None,
        status_code: int = status.HTTP_400_BAD_REQUEST,
    ) -> "ActionResult":
        return cls(
            success=False,
            message=message,
            redirect_to=redirect_to,
            status_code=status_code,
        )


def to_response(result: ActionResult) -> JSONResponse:
    """Render an ActionResult with its status hint as the HTTP status."""
    return JSONResponse(
        status_code=result.status_code,
        content=result.model_dump(mode="json"),
    )


def format_error(error: Exception) -> str:
    """
    Turn any caught exception into a short, user-facing message.

      - pydantic ValidationError -> joined field messages
      - IntegrityError           -> duplicate record message
      - StorefrontError          -> its message
      - anything else            -> str(error)
    """
    if isinstance(error, ValidationError):
        messages = []
        for err in error.errors():
            loc = ".".join(str(part) for part in err.get("loc", ()))
            msg = err.get("msg", "Invalid value")
            messages.append(f"{loc}: {msg}" if loc else msg)
        return ". ".join(messages)

    if isinstance(error, IntegrityError):
        return "Record already exists or violates a constraint"

    if isinstance(error, StorefrontError):
        return error.message

    return str(error) or error.__class__.__name__


def _find_session(args: tuple, kwargs: dict) -> Session | None:
    session = kwargs.get("session")
    if isinstance(session, Session):
        return session
    for arg in args:
        if isinstance(arg, Session):
            return arg
    return None


def action(func: Callable[..., ActionResult]) -> Callable[..., ActionResult]:
    """
    Operation boundary for mutating service methods.

    Business and persistence failures are converted into a failure
    ActionResult. RedirectSignal is re-raised untouched.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> ActionResult:
        try:
            return func(*args, **kwargs)
        except RedirectSignal:
            raise
        except StorefrontError as e:
            logger.info("%s failed: %s", func.__name__, e.message)
            session = _find_session(args, kwargs)
            if session is not None:
                session.rollback()
            return ActionResult.fail(format_error(e), status_code=e.status_code)
        except ValidationError as e:
            return ActionResult.fail(
                format_error(e),
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            )
        except SQLAlchemyError as e:
            logger.exception("%s failed with a database error", func.__name__)
            session = _find_session(args, kwargs)
            if session is not None:
                session.rollback()
            code = (
                status.HTTP_409_CONFLICT
                if isinstance(e, IntegrityError)
                else status.HTTP_500_INTERNAL_SERVER_ERROR
            )
            return ActionResult.fail(format_error(e), status_code=code)

    return wrapper
