"""Brickvest - Transaction ledger model.

Every money event (deposit, withdrawal, investment, dividend) is one row.
Amounts are signed: positive for inflow to the wallet, negative for outflow.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from brickvest.utils.helpers import utc_now


class TransactionType(str, Enum):
    """Money event type."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    INVESTMENT = "investment"
    DIVIDEND = "dividend"


class TransactionStatus(str, Enum):
    """Ledger entry status."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class SettlementState(str, Enum):
    """Withdrawal settlement state machine.

    reserved -> submitted -> settled | reversed
    """

    RESERVED = "reserved"  # Funds debited locally, processor not called yet
    SUBMITTED = "submitted"  # Processor transfer requested, outcome not recorded
    SETTLED = "settled"  # Transfer confirmed
    REVERSED = "reversed"  # Transfer rejected, funds credited back


class Transaction(SQLModel, table=True):
    """Ledger entry.

    Attributes:
        id: Auto-increment primary key
        user_id: Wallet owner
        project_id: Related project (investments, dividends)

        type: deposit / withdrawal / investment / dividend
        amount: Signed amount (positive=inflow, negative=outflow)
        status: pending / completed / failed
        settlement_state: Withdrawal state machine position (withdrawals only)
        fee: Fee charged on top of / out of the amount (payouts)
        reference: Unique external key used to deduplicate settlements
        gateway_ref: Processor object id (transfer id, payment intent id)
        description: Human-readable summary

        date: Event time
        updated_at: Last state change
    """

    __tablename__ = "transactions"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    project_id: int | None = Field(default=None, foreign_key="projects.id", index=True)

    type: TransactionType = Field(index=True)
    amount: Decimal = Field(
        sa_column=sa.Column(sa.DECIMAL(18, 2), nullable=False),
        description="Signed amount (positive=inflow, negative=outflow)",
    )
    status: TransactionStatus = Field(default=TransactionStatus.PENDING, index=True)
    settlement_state: SettlementState | None = Field(default=None, index=True)
    fee: Decimal = Field(
        default=Decimal("0"),
        sa_column=sa.Column(sa.DECIMAL(18, 2), nullable=False, default=Decimal("0")),
    )
    reference: str | None = Field(default=None, max_length=255, unique=True)
    gateway_ref: str | None = Field(default=None, max_length=255, index=True)
    description: str | None = Field(default=None, max_length=500)

    date: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)
