# backend/farewelly/core/exceptions.py
"""
Domain exceptions for the Farewelly platform.

Services raise these; ``farewelly.errors`` turns them into the
``{"success": false, "error", "code", "details"}`` envelope using the
class-level ``status_code`` and any per-instance ``headers``.
"""

from typing import Any, Dict, Optional

from fastapi import status

from .constants import FALLBACK_MESSAGE_UNAVAILABLE


class DomainException(Exception):
    """Base exception for all domain errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        self.headers: Optional[Dict[str, str]] = None


class ValidationException(DomainException):
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedException(DomainException):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundException(DomainException):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    status_code = status.HTTP_409_CONFLICT


class RateLimitException(DomainException):
    """The caller spent its budget for the current window."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, message: str = "Rate limit exceeded", retry_after: int = 60) -> None:
        super().__init__(message, code="RATE_LIMITED", details={"retry_after": retry_after})
        self.retry_after = retry_after
        self.headers = {"Retry-After": str(retry_after)}


class ServiceException(DomainException):
    """An operation failed for reasons the caller cannot fix."""

    def __init__(
        self,
        message: str = "An error occurred processing your request",
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code, details=details)


class ServiceUnavailableException(DomainException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str = FALLBACK_MESSAGE_UNAVAILABLE) -> None:
        super().__init__(message, code="SERVICE_UNAVAILABLE")


class InvalidTransitionException(ValidationException):
    """A booking action that the current status does not permit."""

    def __init__(self, action: str, current_status: str):
        super().__init__(
            f"Cannot {action} booking with status {current_status}",
            code="INVALID_TRANSITION",
            details={"action": action, "status": current_status},
        )


class PaymentDeclinedException(ValidationException):
    def __init__(self, message: str):
        super().__init__(message, code="PAYMENT_DECLINED")


class RefundNotAllowedException(ValidationException):
    def __init__(self, reason: str):
        super().__init__(reason, code="REFUND_NOT_ALLOWED")


class ConcurrentModificationException(ConflictException):
    """A versioned row changed underneath the current request."""

    def __init__(self, resource: str):
        super().__init__(
            f"{resource} was modified by another request. Please retry.",
            code="CONCURRENT_MODIFICATION",
            details={"resource": resource},
        )


class RepositoryException(Exception):
    """A data access call failed (driver error, constraint violation)."""


def is_db_pool_exhaustion(exc: Exception) -> bool:
    """True when the error text points at a saturated connection pool."""
    text = str(exc).lower()
    if "queuepool" in text:
        return True
    return "timeout" in text and ("connection" in text or "pool" in text)
