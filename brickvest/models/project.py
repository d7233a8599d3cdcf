"""Brickvest - Project model."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from brickvest.utils.helpers import utc_now


class ProjectType(str, Enum):
    """Property category."""

    RESIDENTIAL = "Residential"
    COMMERCIAL = "Commercial"
    INDUSTRIAL = "Industrial"


class ProjectStatus(str, Enum):
    """Fundraising state. Only active projects accept money."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Project(SQLModel, table=True):
    """Fundraising target.

    Invariant: current_amount <= target_amount. Reaching the target moves
    the project to completed in the same write.

    Attributes:
        id: Auto-increment primary key
        creator_id: User who listed the project
        name: Project name
        type: Residential / Commercial / Industrial
        location: Free-form location
        target_amount: Fundraising goal
        current_amount: Amount raised so far
        return_rate: Expected annual return (percent)
        duration: Investment duration (months)
        status: active / completed / cancelled
    """

    __tablename__ = "projects"

    id: int | None = Field(default=None, primary_key=True)
    creator_id: int | None = Field(default=None, foreign_key="users.id", index=True)
    name: str = Field(max_length=255)
    type: ProjectType = Field(index=True)
    location: str = Field(max_length=255)
    target_amount: Decimal = Field(
        sa_column=sa.Column(sa.DECIMAL(18, 2), nullable=False),
    )
    current_amount: Decimal = Field(
        default=Decimal("0"),
        sa_column=sa.Column(sa.DECIMAL(18, 2), nullable=False, default=Decimal("0")),
    )
    return_rate: Decimal = Field(
        sa_column=sa.Column(sa.DECIMAL(10, 4), nullable=False),
    )
    duration: int = Field(description="Duration in months")
    description: str = Field(sa_column=sa.Column(sa.Text, nullable=False))
    status: ProjectStatus = Field(default=ProjectStatus.ACTIVE, index=True)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def remaining_amount(self) -> Decimal:
        return self.target_amount - self.current_amount
