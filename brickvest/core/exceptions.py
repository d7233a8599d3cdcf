"""Brickvest - Custom exceptions.

Every error carries the HTTP status it maps to; the app-level handlers
render them as ``{"error": message}``.
"""

from decimal import Decimal
from typing import Any


class AppError(Exception):
    """Base exception for all Brickvest errors."""

    status_code: int = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class AuthenticationError(AppError):
    """Authentication failed."""

    status_code = 401


class AuthorizationError(AppError):
    """User lacks permission for this action."""

    status_code = 403


class NotFoundError(AppError):
    """Requested resource does not exist."""

    status_code = 404


class ValidationError(AppError):
    """Input validation failed."""

    pass


class ConflictError(AppError):
    """Resource already exists."""

    pass


class InsufficientBalanceError(AppError):
    """Wallet balance does not cover the requested debit."""

    def __init__(
        self,
        message: str = "Insufficient balance",
        required: Decimal | None = None,
        available: Decimal | None = None,
    ) -> None:
        details = {}
        if required is not None:
            details["required"] = str(required)
        if available is not None:
            details["available"] = str(available)
        super().__init__(message, details)


class ProjectNotFundableError(AppError):
    """Project is not in a state that accepts money."""

    pass


class TargetExceededError(AppError):
    """Investment would push the project past its target."""

    def __init__(self, message: str = "Investment would exceed project target amount") -> None:
        super().__init__(message)


class GatewayError(AppError):
    """Payment processor call failed.

    ``retryable`` is True when the outcome is unknown (timeout, network
    failure, 5xx/429) and the same idempotent request may be repeated.
    """

    def __init__(
        self,
        message: str,
        retryable: bool = False,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.retryable = retryable
        self.code = code
        super().__init__(message, details)


class SignatureVerificationError(AppError):
    """Webhook signature missing or invalid."""

    pass
