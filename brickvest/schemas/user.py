"""User and onboarding schemas."""

from decimal import Decimal

from pydantic import BaseModel, Field

from brickvest.models.user import (
    ConnectAccountStatus,
    KycStatus,
    User,
    UserRole,
    VerificationStatus,
)
from brickvest.schemas.common import DecimalStr
from brickvest.utils.helpers import format_utc_datetime


class UserResponse(BaseModel):
    """User response schema. ``balance`` is read from the wallet."""

    id: int
    name: str
    email: str
    role: UserRole
    phone: str | None = None
    address: str | None = None
    employment_details: str | None = None
    office_address: str | None = None
    country: str | None = None

    is_verified: bool
    kyc_status: KycStatus
    onboarding_step: int
    onboarding_completed: bool
    identity_verification_status: VerificationStatus
    address_verification_status: VerificationStatus

    connect_account_status: ConnectAccountStatus | None = None
    connect_payouts_enabled: bool = False

    balance: DecimalStr | None = None
    member_since: str | None
    created_at: str | None

    @classmethod
    def from_user(cls, user: User, balance: Decimal | None = None) -> "UserResponse":
        return cls(
            id=user.id,  # type: ignore[arg-type]
            name=user.name,
            email=user.email,
            role=user.role,
            phone=user.phone,
            address=user.address,
            employment_details=user.employment_details,
            office_address=user.office_address,
            country=user.country,
            is_verified=user.is_verified,
            kyc_status=user.kyc_status,
            onboarding_step=user.onboarding_step,
            onboarding_completed=user.onboarding_completed,
            identity_verification_status=user.identity_verification_status,
            address_verification_status=user.address_verification_status,
            connect_account_status=user.connect_account_status,
            connect_payouts_enabled=user.connect_payouts_enabled,
            balance=balance,
            member_since=format_utc_datetime(user.member_since),
            created_at=format_utc_datetime(user.created_at),
        )


class ProfileUpdate(BaseModel):
    """Editable profile fields. Omitted fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=500)
    employment_details: str | None = Field(default=None, max_length=500)
    office_address: str | None = Field(default=None, max_length=500)
    country: str | None = Field(default=None, max_length=100)


class OnboardingStep1Request(BaseModel):
    """Personal details step. full_name, phone and home_address are required."""

    full_name: str | None = None
    phone: str | None = None
    home_address: str | None = None
    employment_details: str | None = None
    office_address: str | None = None
    country: str | None = None
    citizenship_number: str | None = None
    passport_number: str | None = None


class OnboardingResponse(BaseModel):
    message: str
    user: UserResponse


class UploadResponse(BaseModel):
    message: str
    file_path: str


class MonthlyStat(BaseModel):
    month: str
    invested: DecimalStr
    returns: DecimalStr


class DistributionItem(BaseModel):
    type: str
    amount: DecimalStr
    percentage: float


class AnalyticsResponse(BaseModel):
    """Portfolio analytics for the last six months."""

    monthly_stats: list[MonthlyStat]
    investment_distribution: list[DistributionItem]
    total_invested: DecimalStr
    total_returns: DecimalStr
    balance: DecimalStr
