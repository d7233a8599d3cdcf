"""Ledger Service - wallet balance writes and the transaction ledger.

The ledger is authoritative. Wallet.balance is a cache that is only ever
changed through the conditional UPDATE helpers below, so a concurrent
request can never drive it negative or double-apply a write:

    debit:   UPDATE wallets SET balance = balance - x WHERE user_id = ? AND balance >= x
    credit:  UPDATE wallets SET balance = balance + x WHERE user_id = ?

A zero rowcount means the guard failed and the caller must abort its
database transaction.
"""

import logging
from decimal import Decimal
from typing import Any

from fastapi_pagination.ext.sqlmodel import apaginate
from sqlalchemy import and_, func, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from brickvest.core.exceptions import NotFoundError
from brickvest.models.project import Project, ProjectStatus
from brickvest.models.transaction import (
    SettlementState,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from brickvest.models.wallet import Wallet
from brickvest.schemas.pagination import TransactionPage
from brickvest.schemas.wallet import TransactionResponse
from brickvest.utils.helpers import quantize_money, utc_now

logger = logging.getLogger(__name__)

# Rows reflected in Wallet.balance: completed entries plus withdrawals whose
# funds are reserved but not yet settled.
BALANCE_AFFECTING = or_(
    Transaction.status == TransactionStatus.COMPLETED,
    and_(
        Transaction.type == TransactionType.WITHDRAWAL,
        Transaction.status == TransactionStatus.PENDING,
    ),
)


class LedgerService:
    """Service for wallet balances and ledger entries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # Wallets
    # =========================================================================

    async def get_wallet(self, user_id: int) -> Wallet | None:
        result = await self.db.execute(
            select(Wallet)
            .where(Wallet.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_or_create_wallet(self, user_id: int) -> Wallet:
        """Find the user's wallet, creating it from a ledger replay if missing.

        This is the only place wallets are created. Creation is committed on
        its own (it carries no new money) so callers must invoke it before
        staging any other changes. A concurrent creator loses on the unique
        user_id constraint and re-reads the winner's row.
        """
        wallet = await self.get_wallet(user_id)
        if wallet:
            return wallet

        opening_balance = await self.ledger_balance(user_id)
        wallet = Wallet(user_id=user_id, balance=opening_balance)
        self.db.add(wallet)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            wallet = await self.get_wallet(user_id)
            if wallet is None:
                raise
            return wallet

        await self.db.refresh(wallet)
        logger.info(f"Created wallet for user {user_id} with opening balance {opening_balance}")
        return wallet

    async def ledger_balance(self, user_id: int) -> Decimal:
        """Replay the ledger: sum of balance-affecting transaction amounts."""
        result = await self.db.execute(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                Transaction.user_id == user_id,
                BALANCE_AFFECTING,
            )
        )
        return quantize_money(Decimal(str(result.scalar() or 0)))

    async def credit(self, user_id: int, amount: Decimal) -> None:
        """Add to a wallet balance. The wallet must exist.

        Raises:
            NotFoundError: If the user has no wallet
        """
        await self.db.flush()
        result = await self.db.execute(
            update(Wallet)
            .where(Wallet.user_id == user_id)
            .values(
                balance=Wallet.balance + amount,
                version=Wallet.version + 1,
                last_updated=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise NotFoundError("Wallet not found")

    async def debit(self, user_id: int, amount: Decimal) -> bool:
        """Subtract from a wallet balance only if it covers the amount.

        Returns:
            False if the balance guard failed (nothing was changed)
        """
        await self.db.flush()
        result = await self.db.execute(
            update(Wallet)
            .where(Wallet.user_id == user_id, Wallet.balance >= amount)
            .values(
                balance=Wallet.balance - amount,
                version=Wallet.version + 1,
                last_updated=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    # =========================================================================
    # Projects
    # =========================================================================

    async def increment_project_amount(self, project_id: int, amount: Decimal) -> bool:
        """Raise a project's current_amount if it stays within target.

        Also moves the project to completed when the target is reached.
        Both statements run in the caller's transaction.

        Returns:
            False if the project is not active or the amount would overshoot
        """
        await self.db.flush()
        now = utc_now()
        result = await self.db.execute(
            update(Project)
            .where(
                Project.id == project_id,
                Project.status == ProjectStatus.ACTIVE,
                Project.current_amount + amount <= Project.target_amount,
            )
            .values(current_amount=Project.current_amount + amount, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False

        await self.db.execute(
            update(Project)
            .where(
                Project.id == project_id,
                Project.status == ProjectStatus.ACTIVE,
                Project.current_amount >= Project.target_amount,
            )
            .values(status=ProjectStatus.COMPLETED, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return True

    # =========================================================================
    # Ledger entries
    # =========================================================================

    def record(
        self,
        user_id: int,
        tx_type: TransactionType,
        amount: Decimal,
        status: TransactionStatus,
        description: str | None = None,
        project_id: int | None = None,
        reference: str | None = None,
        gateway_ref: str | None = None,
        fee: Decimal = Decimal("0"),
        settlement_state: SettlementState | None = None,
    ) -> Transaction:
        """Stage a ledger entry in the current transaction."""
        entry = Transaction(
            user_id=user_id,
            project_id=project_id,
            type=tx_type,
            amount=amount,
            status=status,
            description=description,
            reference=reference,
            gateway_ref=gateway_ref,
            fee=fee,
            settlement_state=settlement_state,
        )
        self.db.add(entry)
        return entry

    async def get_by_reference(self, reference: str) -> Transaction | None:
        result = await self.db.execute(
            select(Transaction).where(Transaction.reference == reference)
        )
        return result.scalar_one_or_none()

    async def list_transactions(
        self,
        user_id: int,
        tx_type: TransactionType | None = None,
        status: TransactionStatus | None = None,
    ) -> TransactionPage:
        """List a user's ledger entries, newest first, paginated."""
        query = select(Transaction).where(Transaction.user_id == user_id)
        if tx_type is not None:
            query = query.where(Transaction.type == tx_type)
        if status is not None:
            query = query.where(Transaction.status == status)
        query = query.order_by(Transaction.date.desc(), Transaction.id.desc())

        return await apaginate(
            self.db,
            query,
            transformer=lambda items: [TransactionResponse.from_transaction(t) for t in items],
        )

    # =========================================================================
    # Reconciliation
    # =========================================================================

    async def reconcile_wallet(self, user_id: int, repair: bool = False) -> dict[str, Any]:
        """Compare the cached balance with a ledger replay.

        The repair is conditional on the wallet version read before the
        replay. Every balance write bumps the version, so a settlement that
        commits in between makes the repair a no-op and the wallet is
        reported as skipped for the next run to re-check.

        Args:
            user_id: Wallet owner
            repair: Overwrite the cached balance with the ledger value on drift

        Returns:
            Dict with wallet_balance, ledger_balance, drift, repaired and skipped flags
        """
        wallet = await self.get_wallet(user_id)
        if wallet is None:
            raise NotFoundError("Wallet not found")
        version = wallet.version
        cached = quantize_money(wallet.balance)

        ledger = await self.ledger_balance(user_id)
        drift = cached - ledger
        repaired = False
        skipped = False

        if drift != 0:
            logger.warning(
                f"Wallet drift for user {user_id}: cached={cached} ledger={ledger} drift={drift}"
            )
            if repair:
                result = await self.db.execute(
                    update(Wallet)
                    .where(Wallet.id == wallet.id, Wallet.version == version)
                    .values(balance=ledger, version=Wallet.version + 1, last_updated=utc_now())
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 1:
                    await self.db.commit()
                    repaired = True
                    logger.info(f"Repaired wallet for user {user_id} to {ledger}")
                else:
                    await self.db.rollback()
                    skipped = True
                    logger.warning(
                        f"Skipped repair for user {user_id}: wallet changed during reconcile"
                    )

        return {
            "user_id": user_id,
            "wallet_balance": cached,
            "ledger_balance": ledger,
            "drift": drift,
            "repaired": repaired,
            "skipped": skipped,
        }
