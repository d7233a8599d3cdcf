"""Brickvest - User model."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

from brickvest.utils.helpers import utc_now

if TYPE_CHECKING:
    from brickvest.models.fee_config import FeeConfig


class UserRole(str, Enum):
    """User roles for access control."""

    USER = "user"
    ADMIN = "admin"
    CREATOR = "creator"


class KycStatus(str, Enum):
    """KYC review state."""

    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class VerificationStatus(str, Enum):
    """State of a single document check (identity or address)."""

    NOT_SUBMITTED = "not_submitted"
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class ConnectAccountStatus(str, Enum):
    """Payment-processor connected account state."""

    PENDING = "pending"
    VERIFIED = "verified"
    RESTRICTED = "restricted"
    REJECTED = "rejected"


class User(SQLModel, table=True):
    """User model.

    The spendable balance lives on Wallet; the user row carries identity,
    KYC and payment-processor linkage only.

    Attributes:
        id: Auto-increment primary key
        name: Display name
        email: Unique login email
        password_hash: bcrypt hash
        role: user / admin / creator

        # KYC
        citizenship_number: AES-encrypted national ID number
        passport_number: AES-encrypted passport number
        onboarding_step: Last completed onboarding step
        kyc_status: Overall KYC review state

        # Email verification
        is_verified: Email ownership confirmed
        verification_secret: AES-encrypted TOTP secret for the emailed code
        verification_expires_at: Code expiry

        # Sessions
        token_version: Bumped on logout to revoke outstanding tokens

        # Payment processor
        stripe_customer_id: Customer used for card funding
        stripe_connect_account_id: Connected account for payouts / creator proceeds
    """

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=255)
    email: str = Field(max_length=255, unique=True, index=True)
    password_hash: str = Field(max_length=255)
    role: UserRole = Field(default=UserRole.USER, index=True)

    # Profile
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=500)
    employment_details: str | None = Field(default=None, max_length=500)
    office_address: str | None = Field(default=None, max_length=500)
    country: str | None = Field(default=None, max_length=100)

    # KYC
    citizenship_number: str | None = Field(default=None, max_length=512)
    passport_number: str | None = Field(default=None, max_length=512)
    onboarding_step: int = Field(default=0)
    onboarding_completed: bool = Field(default=False)
    kyc_status: KycStatus = Field(default=KycStatus.PENDING)
    identity_verification_status: VerificationStatus = Field(
        default=VerificationStatus.NOT_SUBMITTED
    )
    address_verification_status: VerificationStatus = Field(
        default=VerificationStatus.NOT_SUBMITTED
    )
    residential_status: str | None = Field(default=None, max_length=50)
    id_document: str | None = Field(default=None, max_length=500)
    proof_of_address: str | None = Field(default=None, max_length=500)
    passport_document: str | None = Field(default=None, max_length=500)
    selfie_document: str | None = Field(default=None, max_length=500)

    # Email verification
    is_verified: bool = Field(default=False)
    verification_secret: str | None = Field(default=None, max_length=512)
    verification_expires_at: datetime | None = Field(default=None)

    # Sessions
    token_version: int = Field(default=0)

    # Payment processor
    stripe_customer_id: str | None = Field(default=None, max_length=255)
    stripe_connect_account_id: str | None = Field(default=None, max_length=255, index=True)
    connect_account_status: ConnectAccountStatus | None = Field(default=None)
    connect_onboarding_complete: bool = Field(default=False)
    connect_payouts_enabled: bool = Field(default=False)
    fee_config_id: int | None = Field(default=None, foreign_key="fee_configs.id")

    member_since: datetime = Field(default_factory=utc_now)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    # Relationships - selectin to avoid async lazy-load issues
    fee_config: Optional["FeeConfig"] = Relationship(
        back_populates="users",
        sa_relationship_kwargs={"lazy": "selectin"},
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def can_create_projects(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.CREATOR)
