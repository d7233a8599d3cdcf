"""Brickvest - Card-funded project payment model."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from brickvest.utils.helpers import utc_now


class ProjectPaymentStatus(str, Enum):
    """Card payment state."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class ProjectPayment(SQLModel, table=True):
    """Investment paid by card and routed to the creator's connected account.

    Attributes:
        id: Auto-increment primary key
        project_id: Funded project
        investor_id: Paying user
        amount: Gross charge amount
        status: pending / completed / failed / refunded
        payment_intent_id: Processor payment intent (unique)
        transfer_id: Processor transfer to the creator (when known)
        fee: Processor fee estimate
        platform_fee: Platform application fee
        details: Processor metadata snapshot
    """

    __tablename__ = "project_payments"

    id: int | None = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", index=True)
    investor_id: int = Field(foreign_key="users.id", index=True)
    amount: Decimal = Field(
        sa_column=sa.Column(sa.DECIMAL(18, 2), nullable=False),
    )
    status: ProjectPaymentStatus = Field(default=ProjectPaymentStatus.PENDING, index=True)
    payment_intent_id: str = Field(max_length=255, unique=True, index=True)
    transfer_id: str | None = Field(default=None, max_length=255)
    fee: Decimal = Field(
        default=Decimal("0"),
        sa_column=sa.Column(sa.DECIMAL(18, 2), nullable=False, default=Decimal("0")),
    )
    platform_fee: Decimal = Field(
        default=Decimal("0"),
        sa_column=sa.Column(sa.DECIMAL(18, 2), nullable=False, default=Decimal("0")),
    )
    refund_amount: Decimal | None = Field(
        default=None,
        sa_column=sa.Column(sa.DECIMAL(18, 2), nullable=True),
    )
    refund_reason: str | None = Field(default=None, max_length=255)
    details: dict[str, Any] = Field(
        default={},
        sa_column=sa.Column(sa.JSON, nullable=False, default={}),
    )

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
