"""
Custom domain exceptions for consistent error handling.

These exceptions are mapped to HTTP status codes by the global exception handler
in main.py. Messages are customer-facing (localized); internal detail belongs
in the server log, never in the message.
"""
from fastapi import HTTPException, status

from domain import constants


class DomainError(HTTPException):
    """Base class for all domain-specific errors."""
    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST, details: dict | None = None):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.details = details or {}


class NotFoundError(DomainError):
    """Resource not found (404)."""
    def __init__(self, message: str = constants.MSG_ORDER_NOT_FOUND, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND, details=details)


class ValidationError(DomainError):
    """Validation error (400). The failing field is reported in details."""
    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class BotVerificationError(DomainError):
    """Bot challenge rejected (400). Client must solve a fresh challenge."""
    def __init__(self, message: str = constants.MSG_BOT_VERIFICATION_FAILED, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class DuplicateOrderError(DomainError):
    """Same phone + same cart within the lookback window (400)."""
    def __init__(self, message: str = constants.MSG_DUPLICATE_ORDER, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class ProductUnavailableError(DomainError):
    """A referenced product is missing or inactive (400)."""
    def __init__(self, message: str = constants.MSG_PRODUCTS_UNAVAILABLE, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class ShippingUnavailableError(DomainError):
    """No enabled shipping rate for (region, delivery type) (400)."""
    def __init__(self, message: str = constants.MSG_SHIPPING_UNAVAILABLE, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class ConflictError(DomainError):
    """Resource conflict (409)."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_409_CONFLICT, details=details)


class RateLimitError(DomainError):
    """Rate limit exceeded (429)."""
    def __init__(self, message: str = constants.MSG_IP_RATE_LIMITED, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_429_TOO_MANY_REQUESTS, details=details)


class ServiceError(DomainError):
    """Store or lookup failure (500). Always carries a generic message."""
    def __init__(self, message: str = constants.MSG_UNEXPECTED_ERROR, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, details=details)
