"""
Booking error taxonomy.

Every failure the booking core can report is one of these classes. They
extend FastAPI's HTTPException so routers can let them propagate untouched,
while direct callers (the checkout saga, tests) can still catch them by type.

Deterministic errors (not found, validation, capacity, state, permission)
must not be retried. ServiceUnavailableError is the only retryable one.
"""
from fastapi import HTTPException, status
from sqlalchemy.exc import InterfaceError, OperationalError


class APIException(HTTPException):
    """Base class; subclasses set status_code, detail and headers as defaults."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = None
    headers = None

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("status_code", self.status_code)
        kwargs.setdefault("detail", self.detail)
        kwargs.setdefault("headers", self.headers)
        super().__init__(*args, **kwargs)


class NotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Resource not found"
    headers = {"X-Error": "NotFound"}


class ValidationError(APIException):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    detail = "Invalid input"
    headers = {"X-Error": "ValidationError"}


class CapacityExceededError(APIException):
    status_code = status.HTTP_409_CONFLICT
    headers = {"X-Error": "CapacityExceeded"}

    def __init__(self, available: int, requested: int | None = None):
        self.available = available
        self.requested = requested
        super().__init__(
            detail=f"Not enough capacity available. Only {available} spots left."
        )


class InvalidStateError(APIException):
    status_code = status.HTTP_409_CONFLICT
    detail = "Order is not in the expected status"
    headers = {"X-Error": "InvalidState"}


class PermissionDeniedError(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "This user has no permission to perform this action"
    headers = {"X-Error": "PermissionDenied"}


class PaymentDeclinedError(APIException):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    detail = "Payment was declined"
    headers = {"X-Error": "PaymentDeclined"}


class ServiceUnavailableError(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "Service temporarily unavailable, please retry"
    headers = {"X-Error": "ServiceUnavailable"}


TRANSIENT_DB_ERRORS = (OperationalError, InterfaceError)
