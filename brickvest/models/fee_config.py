"""Brickvest - Fee configuration model."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlmodel import Field, Relationship, SQLModel

from brickvest.utils.helpers import quantize_money, utc_now

if TYPE_CHECKING:
    from brickvest.models.user import User


class FeeConfig(SQLModel, table=True):
    """Fee tier applied to project funding and payouts.

    Fee calculation:
    - Platform fee: amount * platform_fee_percent / 100
    - Processor fee: amount * processor_fee_percent / 100 + processor_fee_fixed
    - Payout fee: amount * payout_fee_percent / 100

    Attributes:
        id: Primary key
        name: Tier name (e.g., "Standard", "Partner")
        platform_fee_percent: Platform cut of card-funded investments (0-100)
        processor_fee_percent: Processor percentage estimate (0-100)
        processor_fee_fixed: Processor fixed fee per charge
        payout_fee_percent: Fee on withdrawals to a connected account (0-100)
        is_default: Whether this tier applies when a creator has none assigned
    """

    __tablename__ = "fee_configs"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, unique=True)
    platform_fee_percent: Decimal = Field(
        default=Decimal("5"),
        sa_column=sa.Column(sa.DECIMAL(10, 4), nullable=False, default=Decimal("5")),
    )
    processor_fee_percent: Decimal = Field(
        default=Decimal("2.9"),
        sa_column=sa.Column(sa.DECIMAL(10, 4), nullable=False, default=Decimal("2.9")),
    )
    processor_fee_fixed: Decimal = Field(
        default=Decimal("0.30"),
        sa_column=sa.Column(sa.DECIMAL(18, 2), nullable=False, default=Decimal("0.30")),
    )
    payout_fee_percent: Decimal = Field(
        default=Decimal("0.25"),
        sa_column=sa.Column(sa.DECIMAL(10, 4), nullable=False, default=Decimal("0.25")),
    )
    is_default: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    # Relationships
    users: list["User"] = Relationship(back_populates="fee_config")

    def calculate_platform_fee(self, amount: Decimal) -> Decimal:
        """Calculate platform fee for given amount."""
        return quantize_money(amount * self.platform_fee_percent / Decimal("100"))

    def calculate_processor_fee(self, amount: Decimal) -> Decimal:
        """Estimate processor fee for a card charge."""
        return quantize_money(
            amount * self.processor_fee_percent / Decimal("100") + self.processor_fee_fixed
        )

    def calculate_payout_fee(self, amount: Decimal) -> Decimal:
        """Calculate payout fee for a withdrawal."""
        return quantize_money(amount * self.payout_fee_percent / Decimal("100"))
