"""Brickvest - Wallet model."""

from datetime import datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from brickvest.utils.helpers import utc_now


class Wallet(SQLModel, table=True):
    """Per-user spendable balance.

    ``balance`` is a cache of the ledger: the sum of completed transactions
    plus reserved (pending) withdrawals. It is only written through the
    conditional UPDATE helpers in LedgerService, each of which bumps
    ``version``.

    Attributes:
        id: Auto-increment primary key
        user_id: Owner (one wallet per user)
        balance: Current spendable balance
        version: Incremented on every balance write
        last_updated: Time of last balance write
    """

    __tablename__ = "wallets"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)
    balance: Decimal = Field(
        default=Decimal("0"),
        sa_column=sa.Column(sa.DECIMAL(18, 2), nullable=False, default=Decimal("0")),
    )
    version: int = Field(default=0)
    last_updated: datetime = Field(default_factory=utc_now)
    created_at: datetime = Field(default_factory=utc_now)
