"""Core module - configuration, exceptions and security primitives."""

from brickvest.core.config import Settings, get_settings
from brickvest.core.exceptions import (
    AppError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    GatewayError,
    InsufficientBalanceError,
    NotFoundError,
    ProjectNotFundableError,
    SignatureVerificationError,
    TargetExceededError,
    ValidationError,
)

__all__ = [
    "Settings",
    "get_settings",
    "AppError",
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "GatewayError",
    "InsufficientBalanceError",
    "NotFoundError",
    "ProjectNotFundableError",
    "SignatureVerificationError",
    "TargetExceededError",
    "ValidationError",
]
