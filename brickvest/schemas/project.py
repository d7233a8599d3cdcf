"""Project, investment and dividend schemas."""

from decimal import Decimal

from pydantic import BaseModel, Field

from brickvest.models.project import Project, ProjectStatus, ProjectType
from brickvest.schemas.common import DecimalStr, MoneyAmount
from brickvest.schemas.wallet import TransactionResponse
from brickvest.utils.helpers import format_utc_datetime


class ProjectCreate(BaseModel):
    """New project listing. All fields are required; numbers must be positive."""

    name: str = Field(..., min_length=1, max_length=255)
    type: ProjectType
    location: str = Field(..., min_length=1, max_length=255)
    target_amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2)
    return_rate: Decimal = Field(..., gt=0, max_digits=10, decimal_places=4)
    duration: int = Field(..., gt=0, description="Duration in months")
    description: str = Field(..., min_length=1)


class ProjectResponse(BaseModel):
    id: int
    name: str
    type: ProjectType
    location: str
    target_amount: DecimalStr
    current_amount: DecimalStr
    return_rate: Decimal
    duration: int
    description: str
    status: ProjectStatus
    creator_id: int | None = None
    created_at: str | None

    @classmethod
    def from_project(cls, project: Project) -> "ProjectResponse":
        return cls(
            id=project.id,  # type: ignore[arg-type]
            name=project.name,
            type=project.type,
            location=project.location,
            target_amount=project.target_amount,
            current_amount=project.current_amount,
            return_rate=project.return_rate,
            duration=project.duration,
            description=project.description,
            status=project.status,
            creator_id=project.creator_id,
            created_at=format_utc_datetime(project.created_at),
        )


# ============ Investment ============


class InvestRequest(BaseModel):
    project_id: int
    amount: MoneyAmount


class InvestResponse(BaseModel):
    message: str
    transaction: TransactionResponse
    project: ProjectResponse
    balance: DecimalStr


class FundRequest(BaseModel):
    """Card funding of a project."""

    amount: MoneyAmount


class FundResponse(BaseModel):
    payment_id: int
    payment_intent_id: str
    client_secret: str | None
    amount: DecimalStr
    platform_fee: DecimalStr
    processor_fee: DecimalStr


# ============ Dividends ============


class DividendRequest(BaseModel):
    """Payout batch: user id -> amount."""

    dividends: dict[int, MoneyAmount] = Field(..., min_length=1)


class DividendResponse(BaseModel):
    message: str
    total: DecimalStr
    recipients: int
    transactions: list[TransactionResponse]


class DividendShare(BaseModel):
    user_id: int
    invested: DecimalStr
    amount: DecimalStr


class DividendPreviewResponse(BaseModel):
    """Pro-rata split of a total over completed investments."""

    project_id: int
    total: DecimalStr
    total_invested: DecimalStr
    shares: list[DividendShare]
