"""Withdrawal Service - wallet payouts to the user's connected account.

A withdrawal is a persisted state machine on its ledger row:

    reserved   funds debited locally (one DB transaction with the ledger row)
    submitted  processor transfer requested with key ``withdrawal-<id>``
    settled    transfer confirmed; row completed
    reversed   transfer rejected; funds credited back, row failed

An indeterminate processor failure leaves the row submitted. It is driven
to settled/reversed later by ``complete_withdrawal`` or the reconciliation
task, which repeat the transfer with the same idempotency key so funds
never leave twice.
"""

import logging
from datetime import timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from brickvest.core.config import get_settings
from brickvest.core.exceptions import (
    GatewayError,
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)
from brickvest.models.transaction import (
    SettlementState,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from brickvest.models.user import ConnectAccountStatus, User
from brickvest.services.fee_config_service import FeeConfigService
from brickvest.services.ledger_service import LedgerService
from brickvest.services.payment_gateway import PaymentGateway
from brickvest.utils.helpers import quantize_money, utc_now

logger = logging.getLogger(__name__)

IN_FLIGHT_STATES = (SettlementState.RESERVED, SettlementState.SUBMITTED)


def transfer_idempotency_key(transaction_id: int) -> str:
    return f"withdrawal-{transaction_id}"


class WithdrawalService:
    """Service for withdrawal reservation, submission and settlement."""

    def __init__(self, db: AsyncSession, gateway: PaymentGateway):
        self.db = db
        self.gateway = gateway
        self.ledger = LedgerService(db)

    # =========================================================================
    # Entry points
    # =========================================================================

    async def request_withdrawal(self, user: User, amount: Decimal | None) -> dict[str, Any]:
        """Withdraw ``amount`` from the wallet to the user's connected account.

        Returns:
            Outcome dict (status, message, transaction, url, fee, balance)

        Raises:
            ValidationError: Amount below minimum
            InsufficientBalanceError: Balance does not cover the amount
            GatewayError: Processor rejected the transfer (funds restored)
        """
        settings = get_settings()
        if amount is None or amount < settings.min_withdrawal_amount:
            raise ValidationError("Invalid amount")
        amount = quantize_money(amount)

        wallet = await self.ledger.get_or_create_wallet(user.id)  # type: ignore[arg-type]
        if wallet.balance < amount:
            raise InsufficientBalanceError(required=amount, available=wallet.balance)

        onboarding = await self._ensure_payout_account(user)
        if onboarding is not None:
            return onboarding

        fee_config = await FeeConfigService(self.db).resolve_for_user(user)
        fee = fee_config.calculate_payout_fee(amount)

        entry = await self._reserve(user, amount, fee)
        return await self._submit(entry, user.stripe_connect_account_id)  # type: ignore[arg-type]

    async def get_withdrawal(self, user: User, transaction_id: int) -> Transaction:
        result = await self.db.execute(
            select(Transaction).where(
                Transaction.id == transaction_id,
                Transaction.user_id == user.id,
                Transaction.type == TransactionType.WITHDRAWAL,
            )
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            raise NotFoundError("Withdrawal not found")
        return entry

    async def withdrawal_status(self, user: User, transaction_id: int) -> dict[str, Any]:
        return await self._outcome(await self.get_withdrawal(user, transaction_id))

    async def complete_withdrawal(self, user: User, transaction_id: int) -> dict[str, Any]:
        """Drive an in-flight withdrawal to a terminal state."""
        entry = await self.get_withdrawal(user, transaction_id)
        if entry.settlement_state not in IN_FLIGHT_STATES:
            return await self._outcome(entry)
        return await self._drive(entry)

    async def reconcile_stuck_withdrawals(self, older_than_seconds: int) -> dict[str, int]:
        """Re-drive withdrawals left in flight for longer than the cutoff."""
        cutoff = utc_now() - timedelta(seconds=older_than_seconds)
        result = await self.db.execute(
            select(Transaction)
            .where(
                Transaction.type == TransactionType.WITHDRAWAL,
                Transaction.status == TransactionStatus.PENDING,
                Transaction.settlement_state.in_(IN_FLIGHT_STATES),  # type: ignore[union-attr]
                Transaction.updated_at < cutoff,
            )
            .order_by(Transaction.id)
        )
        stats = {"checked": 0, "settled": 0, "reversed": 0, "pending": 0}
        for entry in list(result.scalars().all()):
            stats["checked"] += 1
            try:
                outcome = await self._drive(entry)
            except GatewayError:
                stats["reversed"] += 1
                continue
            if outcome["status"] == "completed":
                stats["settled"] += 1
            else:
                stats["pending"] += 1

        if stats["checked"]:
            logger.info(f"Withdrawal reconciliation: {stats}")
        return stats

    # =========================================================================
    # Connected account checks
    # =========================================================================

    async def _ensure_payout_account(self, user: User) -> dict[str, Any] | None:
        """Return an onboarding outcome if the user cannot receive payouts yet."""
        settings = get_settings()
        refresh_url = f"{settings.frontend_url}/wallet?error=true"
        return_url = f"{settings.frontend_url}/wallet?success=true"

        if not user.stripe_connect_account_id:
            account = await self.gateway.create_connect_account(user.email, user.id)  # type: ignore[arg-type]
            user.stripe_connect_account_id = account["id"]
            user.connect_account_status = ConnectAccountStatus.PENDING
            user.updated_at = utc_now()
            self.db.add(user)
            await self.db.commit()

            link = await self.gateway.create_account_link(account["id"], refresh_url, return_url)
            logger.info(f"Created payout account {account['id']} for user {user.id}")
            return {
                "status": "onboarding_required",
                "message": "Complete payout account onboarding to withdraw",
                "url": link["url"],
            }

        if user.connect_payouts_enabled:
            return None

        account = await self.gateway.retrieve_account(user.stripe_connect_account_id)
        if account.get("payouts_enabled"):
            user.connect_payouts_enabled = True
            user.connect_onboarding_complete = bool(account.get("details_submitted"))
            user.connect_account_status = ConnectAccountStatus.VERIFIED
            user.updated_at = utc_now()
            self.db.add(user)
            await self.db.commit()
            return None

        link = await self.gateway.create_account_link(
            user.stripe_connect_account_id, refresh_url, return_url
        )
        return {
            "status": "verification_required",
            "message": "Payout account verification is incomplete",
            "url": link["url"],
        }

    # =========================================================================
    # State machine
    # =========================================================================

    async def _reserve(self, user: User, amount: Decimal, fee: Decimal) -> Transaction:
        """Debit the wallet and write the pending ledger row atomically."""
        entry = self.ledger.record(
            user_id=user.id,  # type: ignore[arg-type]
            tx_type=TransactionType.WITHDRAWAL,
            amount=-amount,
            status=TransactionStatus.PENDING,
            description="Wallet withdrawal via bank transfer",
            fee=fee,
            settlement_state=SettlementState.RESERVED,
        )
        try:
            if not await self.ledger.debit(user.id, amount):  # type: ignore[arg-type]
                raise InsufficientBalanceError()
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(entry)
        logger.info(f"Withdrawal {entry.id} reserved {amount} (fee {fee}) for user {user.id}")
        return entry

    async def _drive(self, entry: Transaction) -> dict[str, Any]:
        user = await self.db.get(User, entry.user_id)
        if user is None or not user.stripe_connect_account_id:
            await self._reverse(entry, "No payout account")
            raise GatewayError("No payout account")
        return await self._submit(entry, user.stripe_connect_account_id)

    async def _submit(self, entry: Transaction, destination: str) -> dict[str, Any]:
        """Request the transfer; settle, reverse or leave submitted."""
        if entry.settlement_state == SettlementState.RESERVED:
            entry.settlement_state = SettlementState.SUBMITTED
            entry.updated_at = utc_now()
            self.db.add(entry)
            await self.db.commit()

        payout_amount = -entry.amount - entry.fee
        try:
            transfer = await self.gateway.create_transfer(
                amount=payout_amount,
                destination=destination,
                idempotency_key=transfer_idempotency_key(entry.id),  # type: ignore[arg-type]
                metadata={
                    "user_id": entry.user_id,
                    "transaction_id": entry.id,
                    "type": "wallet_withdrawal",
                },
            )
        except GatewayError as e:
            if e.retryable:
                logger.warning(
                    f"Withdrawal {entry.id} outcome unknown, left submitted: {e.message}"
                )
                entry.updated_at = utc_now()
                self.db.add(entry)
                await self.db.commit()
                return await self._outcome(entry)
            await self._reverse(entry, e.message)
            raise

        await self._settle(entry, transfer["id"])
        return await self._outcome(entry)

    async def _settle(self, entry: Transaction, transfer_id: str) -> None:
        result = await self.db.execute(
            update(Transaction)
            .where(
                Transaction.id == entry.id,
                Transaction.settlement_state.in_(IN_FLIGHT_STATES),  # type: ignore[union-attr]
            )
            .values(
                status=TransactionStatus.COMPLETED,
                settlement_state=SettlementState.SETTLED,
                gateway_ref=transfer_id,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        await self.db.refresh(entry)
        if result.rowcount == 1:
            logger.info(f"Withdrawal {entry.id} settled via transfer {transfer_id}")

    async def _reverse(self, entry: Transaction, reason: str) -> None:
        """Mark the row failed and credit the reserved funds back, atomically."""
        try:
            result = await self.db.execute(
                update(Transaction)
                .where(
                    Transaction.id == entry.id,
                    Transaction.settlement_state.in_(IN_FLIGHT_STATES),  # type: ignore[union-attr]
                )
                .values(
                    status=TransactionStatus.FAILED,
                    settlement_state=SettlementState.REVERSED,
                    description=f"Withdrawal failed: {reason}"[:500],
                    updated_at=utc_now(),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                await self.ledger.credit(entry.user_id, -entry.amount)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(entry)
        logger.warning(f"Withdrawal {entry.id} reversed: {reason}")

    async def _outcome(self, entry: Transaction) -> dict[str, Any]:
        wallet = await self.ledger.get_wallet(entry.user_id)
        if wallet is not None:
            await self.db.refresh(wallet)

        if entry.settlement_state == SettlementState.SETTLED:
            status, message = "completed", "Withdrawal completed"
        elif entry.settlement_state == SettlementState.REVERSED:
            status, message = "failed", entry.description or "Withdrawal failed"
        else:
            status, message = "processing", "Withdrawal is being processed"

        return {
            "status": status,
            "message": message,
            "transaction": entry,
            "fee": entry.fee,
            "balance": wallet.balance if wallet else None,
        }
