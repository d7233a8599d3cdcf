"""Schemas module - Pydantic request/response models."""

from brickvest.schemas.common import DecimalStr, MessageResponse
from brickvest.schemas.pagination import CustomPage, TransactionPage

__all__ = [
    "CustomPage",
    "TransactionPage",
    "DecimalStr",
    "MessageResponse",
]
