"""Portfolio Service - wallet summary and investment analytics."""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from brickvest.models.project import Project, ProjectStatus
from brickvest.models.project_payment import ProjectPayment, ProjectPaymentStatus
from brickvest.models.transaction import Transaction, TransactionStatus, TransactionType
from brickvest.models.user import User
from brickvest.services.ledger_service import LedgerService
from brickvest.utils.helpers import quantize_money, utc_now

ANALYTICS_MONTHS = 6


def _month_starts(now: datetime, count: int) -> list[datetime]:
    """First day of each of the last ``count`` months, oldest first."""
    year, month = now.year, now.month
    starts = []
    for _ in range(count):
        starts.append(datetime(year, month, 1))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(starts))


class PortfolioService:
    """Read-only views over a user's ledger."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = LedgerService(db)

    async def _sum(self, user_id: int, tx_type: TransactionType) -> Decimal:
        result = await self.db.execute(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                Transaction.user_id == user_id,
                Transaction.type == tx_type,
                Transaction.status == TransactionStatus.COMPLETED,
            )
        )
        return quantize_money(Decimal(str(result.scalar() or 0)))

    async def _card_invested(self, user_id: int) -> Decimal:
        result = await self.db.execute(
            select(func.coalesce(func.sum(ProjectPayment.amount), 0)).where(
                ProjectPayment.investor_id == user_id,
                ProjectPayment.status == ProjectPaymentStatus.COMPLETED,
            )
        )
        return quantize_money(Decimal(str(result.scalar() or 0)))

    async def wallet_summary(self, user: User) -> dict[str, Any]:
        wallet = await self.ledger.get_or_create_wallet(user.id)  # type: ignore[arg-type]

        total_invested = -(await self._sum(user.id, TransactionType.INVESTMENT))  # type: ignore[arg-type]
        total_invested += await self._card_invested(user.id)  # type: ignore[arg-type]
        total_returns = await self._sum(user.id, TransactionType.DIVIDEND)  # type: ignore[arg-type]

        result = await self.db.execute(
            select(func.count(func.distinct(Transaction.project_id)))
            .join(Project, Project.id == Transaction.project_id)
            .where(
                Transaction.user_id == user.id,
                Transaction.type == TransactionType.INVESTMENT,
                Transaction.status == TransactionStatus.COMPLETED,
                Project.status == ProjectStatus.ACTIVE,
            )
        )

        return {
            "balance": wallet.balance,
            "total_invested": total_invested,
            "total_returns": total_returns,
            "active_projects": result.scalar() or 0,
            "last_updated": wallet.last_updated,
        }

    async def analytics(self, user: User) -> dict[str, Any]:
        """Monthly invested/returns for the last six months and type distribution."""
        months = _month_starts(utc_now(), ANALYTICS_MONTHS)
        invested_by_month: dict[str, Decimal] = defaultdict(Decimal)
        returns_by_month: dict[str, Decimal] = defaultdict(Decimal)

        result = await self.db.execute(
            select(Transaction).where(
                Transaction.user_id == user.id,
                Transaction.status == TransactionStatus.COMPLETED,
                Transaction.type.in_([TransactionType.INVESTMENT, TransactionType.DIVIDEND]),  # type: ignore[attr-defined]
                Transaction.date >= months[0],
            )
        )
        for tx in result.scalars().all():
            key = tx.date.strftime("%Y-%m")
            if tx.type == TransactionType.INVESTMENT:
                invested_by_month[key] += -tx.amount
            else:
                returns_by_month[key] += tx.amount

        monthly_stats = [
            {
                "month": start.strftime("%Y-%m"),
                "invested": invested_by_month[start.strftime("%Y-%m")],
                "returns": returns_by_month[start.strftime("%Y-%m")],
            }
            for start in months
        ]

        result = await self.db.execute(
            select(Project.type, func.sum(Transaction.amount))
            .join(Project, Project.id == Transaction.project_id)
            .where(
                Transaction.user_id == user.id,
                Transaction.type == TransactionType.INVESTMENT,
                Transaction.status == TransactionStatus.COMPLETED,
            )
            .group_by(Project.type)
        )
        by_type = {ptype: -quantize_money(Decimal(str(total))) for ptype, total in result.all()}
        distributed = sum(by_type.values(), Decimal("0"))
        distribution = [
            {
                "type": ptype.value,
                "amount": amount,
                "percentage": round(float(amount / distributed * 100), 2) if distributed else 0.0,
            }
            for ptype, amount in sorted(by_type.items(), key=lambda item: item[0].value)
        ]

        summary = await self.wallet_summary(user)
        return {
            "monthly_stats": monthly_stats,
            "investment_distribution": distribution,
            "total_invested": summary["total_invested"],
            "total_returns": summary["total_returns"],
            "balance": summary["balance"],
        }
