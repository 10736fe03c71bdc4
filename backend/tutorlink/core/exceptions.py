# backend/tutorlink/core/exceptions.py
"""
Domain-specific exceptions for the Tutorlink platform.

Services raise these; routes convert them with ``to_http_exception()`` and
the handlers in ``tutorlink.errors`` render them as ``{"success": false, ...}``.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised for invalid input, an illegal state transition, or a gateway rejection."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class UnauthorizedException(DomainException):
    """Raised when user is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def to_http_exception(self) -> HTTPException:
        exc = super().to_http_exception()
        exc.headers = {"WWW-Authenticate": "Bearer"}
        return exc


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails unexpectedly."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class PaymentActionRequiredException(ValidationException):
    """Raised when the payment gateway needs the client to act before the charge completes."""

    def __init__(self, client_secret: Optional[str], next_action: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Payment requires additional action",
            code="PAYMENT_REQUIRES_ACTION",
            details={
                "requires_action": True,
                "client_secret": client_secret,
                "next_action": next_action or {},
            },
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    Used when data access fails: connection problems, query failures
    or constraint violations.
    """


class IntegrityViolation(RepositoryException):
    """Raised by repositories when a write breaks a unique or foreign-key constraint."""
