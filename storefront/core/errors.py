# storefront/core/errors.py
from fastapi import status


class StorefrontError(Exception):
    """
    Base class for business-rule failures raised by services.

    Each subclass carries the HTTP status the API layer should use
    when the error reaches a response.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(StorefrontError):
    status_code = status.HTTP_404_NOT_FOUND


class ValidationFailedError(StorefrontError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class CartSessionError(StorefrontError):
    """Raised when no anonymous cart cookie is attached to the request."""

    status_code = status.HTTP_400_BAD_REQUEST


class InsufficientStockError(StorefrontError):
    status_code = status.HTTP_409_CONFLICT


class AlreadyPaidError(StorefrontError):
    status_code = status.HTTP_409_CONFLICT


class NotPaidError(StorefrontError):
    status_code = status.HTTP_409_CONFLICT


class PaymentGatewayError(StorefrontError):
    status_code = status.HTTP_502_BAD_GATEWAY


class AuthorizationError(StorefrontError):
    status_code = status.HTTP_403_FORBIDDEN


class RedirectSignal(Exception):
    """
    Navigation signal. Never converted into a failure result;
    operation boundaries re-raise it unchanged.
    """

    def __init__(self, location: str):
        super().__init__(location)
        self.location = location
