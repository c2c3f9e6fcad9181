"""
Exception hierarchy for the order service.

Every error carries the HTTP status it maps to, so routes translate them
uniformly and the two denial kinds (403 vs 404) are never conflated.
"""

from __future__ import annotations

from typing import Any

from libs.common.exceptions import StorefrontError


class OrderServiceError(StorefrontError):
    """Base exception for order service errors."""

    status_code: int = 500

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_detail(self) -> dict[str, Any]:
        """Body placed under ``detail`` in the HTTP error response."""
        return {"message": self.message, **self.details}


class OrderValidationError(OrderServiceError):
    """
    Raised when a submitted order fails validation.

    ``line_index`` is the 1-based index of the offending line, or None for
    order-level problems (total, empty line collection, date).

    Example:
        >>> raise OrderValidationError("Line 2: invalid quantity", line_index=2)
    """

    status_code = 400

    def __init__(self, message: str, line_index: int | None = None) -> None:
        if line_index is None:
            super().__init__(message)
        else:
            super().__init__(message, line=line_index)
        self.line_index = line_index


class InvalidIdentifierError(OrderServiceError):
    """Raised when a path identifier is not a positive integer."""

    status_code = 400


class AuthenticationRequiredError(OrderServiceError):
    """Raised when no acting identity accompanies a request."""

    status_code = 401


class OrderAccessDeniedError(OrderServiceError):
    """Raised when the guard denies access to an existing resource."""

    status_code = 403


class OrderNotFoundError(OrderServiceError):
    status_code = 404


class OwnerNotFoundError(OrderServiceError):
    status_code = 404


class OrderIntegrityError(OrderServiceError):
    """
    Raised when a commit violates a referential or check constraint.

    Typically a product deleted between validation and commit.
    """

    status_code = 400


class OrderPersistenceError(OrderServiceError):
    """Raised for unclassified storage failures. Carries no storage detail."""

    status_code = 500


class MissingRecipientError(OrderServiceError):
    """Raised before dispatch when the order owner has no email address."""

    status_code = 400


class NotificationDeliveryError(OrderServiceError):
    """Raised by the resend path when the mail transport reports a failure."""

    status_code = 502


class DocumentBuildError(OrderServiceError):
    """Raised when a composed order cannot be rendered (malformed input)."""

    status_code = 500


__all__ = [
    "OrderServiceError",
    "OrderValidationError",
    "InvalidIdentifierError",
    "AuthenticationRequiredError",
    "OrderAccessDeniedError",
    "OrderNotFoundError",
    "OwnerNotFoundError",
    "OrderIntegrityError",
    "OrderPersistenceError",
    "MissingRecipientError",
    "NotificationDeliveryError",
    "DocumentBuildError",
]
