"""Wallet and ledger schemas."""

from pydantic import BaseModel

from brickvest.models.transaction import (
    SettlementState,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from brickvest.schemas.common import DecimalStr
from brickvest.utils.helpers import format_utc_datetime


class TransactionResponse(BaseModel):
    """Ledger entry as returned to clients."""

    id: int
    type: TransactionType
    amount: DecimalStr
    status: TransactionStatus
    settlement_state: SettlementState | None = None
    fee: DecimalStr
    description: str | None = None
    project_id: int | None = None
    date: str | None

    @classmethod
    def from_transaction(cls, tx: Transaction) -> "TransactionResponse":
        return cls(
            id=tx.id,  # type: ignore[arg-type]
            type=tx.type,
            amount=tx.amount,
            status=tx.status,
            settlement_state=tx.settlement_state,
            fee=tx.fee,
            description=tx.description,
            project_id=tx.project_id,
            date=format_utc_datetime(tx.date),
        )


class WalletSummaryResponse(BaseModel):
    balance: DecimalStr
    total_invested: DecimalStr
    total_returns: DecimalStr
    active_projects: int
    last_updated: str | None


class ReconcileResponse(BaseModel):
    """Cached balance versus ledger replay."""

    user_id: int
    wallet_balance: DecimalStr
    ledger_balance: DecimalStr
    drift: DecimalStr
    repaired: bool
    skipped: bool = False
