"""Paginated responses.

Clients page with ``?page=&page_size=`` and receive
``{"items", "total", "page", "page_size", "pages"}``.
"""

from typing import TypeVar

from fastapi import Query
from fastapi_pagination import Page
from fastapi_pagination.customization import CustomizedPage, UseFieldsAliases, UseParamsFields

from brickvest.schemas.wallet import TransactionResponse

__all__ = ["CustomPage", "TransactionPage"]

T = TypeVar("T")

CustomPage = CustomizedPage[
    Page[T],
    UseParamsFields(
        size=Query(20, ge=1, le=100, alias="page_size", description="Entries per page"),
    ),
    UseFieldsAliases(size="page_size"),
]

# Wallet ledger history
TransactionPage = CustomPage[TransactionResponse]
