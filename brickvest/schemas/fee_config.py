"""Fee configuration schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from brickvest.schemas.common import DecimalStr

# Percent columns are DECIMAL(10, 4), fixed fees DECIMAL(18, 2)
Percent = Annotated[Decimal, Field(ge=0, le=100, max_digits=10, decimal_places=4)]
FixedFee = Annotated[Decimal, Field(ge=0, max_digits=18, decimal_places=2)]


class FeeConfigBase(BaseModel):
    name: str = Field(..., max_length=100)
    platform_fee_percent: Percent = Decimal("5")
    processor_fee_percent: Percent = Decimal("2.9")
    processor_fee_fixed: FixedFee = Decimal("0.30")
    payout_fee_percent: Percent = Decimal("0.25")
    is_default: bool = False


class FeeConfigCreate(FeeConfigBase):
    pass


class FeeConfigUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    platform_fee_percent: Percent | None = None
    processor_fee_percent: Percent | None = None
    processor_fee_fixed: FixedFee | None = None
    payout_fee_percent: Percent | None = None
    is_default: bool | None = None


class FeeConfigResponse(FeeConfigBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    updated_at: datetime


class FeeCalculationRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2)
    creator_id: int | None = Field(default=None, description="Creator whose tier applies")


class FeeCalculationResponse(BaseModel):
    """Fee breakdown for a card-funded investment and a payout of the same amount."""

    amount: DecimalStr
    platform_fee: DecimalStr
    processor_fee: DecimalStr
    payout_fee: DecimalStr
    creator_receives: DecimalStr
    fee_config_name: str


class FeeConfigAssign(BaseModel):
    """Assign a tier to a user; ``fee_config_id=None`` resets to the default tier."""

    user_id: int
    fee_config_id: int | None = None
