"""Project Service - listings, wallet investments and dividend payouts."""

import logging
from decimal import ROUND_DOWN, Decimal
from typing import Any

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from brickvest.core.exceptions import (
    AuthorizationError,
    InsufficientBalanceError,
    NotFoundError,
    ProjectNotFundableError,
    TargetExceededError,
    ValidationError,
)
from brickvest.models.project import Project, ProjectStatus
from brickvest.models.transaction import Transaction, TransactionStatus, TransactionType
from brickvest.models.user import User
from brickvest.schemas.project import ProjectCreate
from brickvest.services.ledger_service import LedgerService
from brickvest.utils.helpers import CENT, quantize_money

logger = logging.getLogger(__name__)


class ProjectService:
    """Service for project listings and project money flows."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = LedgerService(db)

    # =========================================================================
    # Listings
    # =========================================================================

    async def list_active_projects(self) -> list[Project]:
        """Active projects, newest first."""
        result = await self.db.execute(
            select(Project)
            .where(Project.status == ProjectStatus.ACTIVE)
            .order_by(Project.created_at.desc(), Project.id.desc())
        )
        return list(result.scalars().all())

    async def get_project(self, project_id: int) -> Project:
        project = await self.db.get(Project, project_id, populate_existing=True)
        if not project:
            raise NotFoundError("Project not found")
        return project

    async def create_project(self, creator: User, data: ProjectCreate) -> Project:
        if not creator.can_create_projects:
            raise AuthorizationError("Only creators can list projects")

        project = Project(
            creator_id=creator.id,
            name=data.name.strip(),
            type=data.type,
            location=data.location.strip(),
            target_amount=quantize_money(data.target_amount),
            current_amount=Decimal("0"),
            return_rate=data.return_rate,
            duration=data.duration,
            description=data.description,
        )
        self.db.add(project)
        await self.db.commit()
        await self.db.refresh(project)
        logger.info(f"Project {project.id} '{project.name}' created by user {creator.id}")
        return project

    # =========================================================================
    # Investment (wallet funded)
    # =========================================================================

    async def invest(
        self, user: User, project_id: int, amount: Decimal | None
    ) -> tuple[Transaction, Project, Decimal]:
        """Invest wallet funds into a project.

        Project increment, wallet debit, ledger row and the completion
        transition commit together or not at all.

        Returns:
            (transaction, refreshed project, new wallet balance)
        """
        if amount is None or amount <= 0:
            raise ValidationError("Invalid amount")
        amount = quantize_money(amount)

        project = await self.get_project(project_id)
        if project.status != ProjectStatus.ACTIVE:
            raise ProjectNotFundableError("Project is not accepting investments")
        if project.current_amount + amount > project.target_amount:
            raise TargetExceededError()

        wallet = await self.ledger.get_wallet(user.id)  # type: ignore[arg-type]
        if wallet is None:
            raise NotFoundError("Wallet not found")
        if wallet.balance < amount:
            raise InsufficientBalanceError(
                "Insufficient wallet balance", required=amount, available=wallet.balance
            )

        entry = self.ledger.record(
            user_id=user.id,  # type: ignore[arg-type]
            tx_type=TransactionType.INVESTMENT,
            amount=-amount,
            status=TransactionStatus.COMPLETED,
            description=f"Investment in {project.name}",
            project_id=project.id,
        )
        try:
            # Guards re-check against committed state; stale reads above lose here
            if not await self.ledger.increment_project_amount(project.id, amount):  # type: ignore[arg-type]
                await self.db.refresh(project)
                if project.status != ProjectStatus.ACTIVE:
                    raise ProjectNotFundableError("Project is not accepting investments")
                raise TargetExceededError()
            if not await self.ledger.debit(user.id, amount):  # type: ignore[arg-type]
                raise InsufficientBalanceError("Insufficient wallet balance")
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(entry)
        await self.db.refresh(project)
        await self.db.refresh(wallet)
        logger.info(
            f"User {user.id} invested {amount} in project {project.id} "
            f"({project.current_amount}/{project.target_amount}, {project.status.value})"
        )
        return entry, project, wallet.balance

    # =========================================================================
    # Dividends
    # =========================================================================

    async def distribute_dividends(
        self, admin: User, project_id: int, dividends: dict[int, Decimal]
    ) -> list[Transaction]:
        """Credit a batch of dividend payouts, all or nothing.

        Any unknown user or non-positive amount aborts the whole batch
        before anything is written.
        """
        if not admin.is_admin:
            raise AuthorizationError("Only admins can distribute dividends")
        project = await self.get_project(project_id)
        if not dividends:
            raise ValidationError("No dividends provided")

        payouts: dict[int, Decimal] = {}
        for user_id, amount in dividends.items():
            if amount is None or quantize_money(amount) <= 0:
                raise ValidationError(f"Invalid dividend amount for user {user_id}")
            payouts[int(user_id)] = quantize_money(amount)

        result = await self.db.execute(select(User.id).where(User.id.in_(list(payouts))))  # type: ignore[union-attr]
        known = set(result.scalars().all())
        missing = sorted(set(payouts) - known)
        if missing:
            raise NotFoundError(f"User {missing[0]} not found")

        # Wallet creation carries no money; done before the payout transaction
        for user_id in payouts:
            await self.ledger.get_or_create_wallet(user_id)

        entries: list[Transaction] = []
        try:
            for user_id, amount in payouts.items():
                entries.append(
                    self.ledger.record(
                        user_id=user_id,
                        tx_type=TransactionType.DIVIDEND,
                        amount=amount,
                        status=TransactionStatus.COMPLETED,
                        description=f"Dividend payout from project {project.name}",
                        project_id=project.id,
                    )
                )
                await self.ledger.credit(user_id, amount)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        for entry in entries:
            await self.db.refresh(entry)
        logger.info(
            f"Dividend batch for project {project.id}: {len(entries)} recipients, "
            f"total {sum(payouts.values())}"
        )
        return entries

    async def preview_dividends(self, project_id: int, total: Decimal) -> dict[str, Any]:
        """Split ``total`` pro rata over completed investments in the project.

        Shares are rounded down to cents; the remainder goes to the largest
        investor so the shares add up to the total.
        """
        if total is None or total <= 0:
            raise ValidationError("Invalid amount")
        total = quantize_money(total)
        project = await self.get_project(project_id)

        result = await self.db.execute(
            select(Transaction.user_id, func.sum(Transaction.amount))
            .where(
                Transaction.project_id == project.id,
                Transaction.type == TransactionType.INVESTMENT,
                Transaction.status == TransactionStatus.COMPLETED,
            )
            .group_by(Transaction.user_id)
            .order_by(Transaction.user_id)
        )
        invested = {
            user_id: quantize_money(-Decimal(str(amount))) for user_id, amount in result.all()
        }
        total_invested = sum(invested.values(), Decimal("0"))

        shares: list[dict[str, Any]] = []
        if total_invested > 0:
            for user_id, amount in invested.items():
                share = (total * amount / total_invested).quantize(CENT, rounding=ROUND_DOWN)
                shares.append({"user_id": user_id, "invested": amount, "amount": share})
            remainder = total - sum((s["amount"] for s in shares), Decimal("0"))
            if remainder and shares:
                largest = max(shares, key=lambda s: s["invested"])
                largest["amount"] += remainder

        return {
            "project_id": project.id,
            "total": total,
            "total_invested": total_invested,
            "shares": shares,
        }
