"""Deposit Service - card deposits into the wallet via processor checkout.

A checkout session is settled by two independent triggers (the webhook and
the success redirect). Both go through ``settle_deposit`` which is keyed by
the checkout session id, so the wallet is credited exactly once.
"""

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from brickvest.core.config import get_settings
from brickvest.core.exceptions import NotFoundError, ValidationError
from brickvest.models.transaction import Transaction, TransactionStatus, TransactionType
from brickvest.models.user import User
from brickvest.services.ledger_service import LedgerService
from brickvest.services.payment_gateway import PaymentGateway
from brickvest.utils.helpers import from_cents, quantize_money

logger = logging.getLogger(__name__)


class DepositService:
    """Service for deposit checkout and settlement."""

    def __init__(self, db: AsyncSession, gateway: PaymentGateway):
        self.db = db
        self.gateway = gateway
        self.ledger = LedgerService(db)

    async def create_checkout(self, user: User, amount: Decimal) -> dict[str, Any]:
        """Start a deposit: create a processor checkout session.

        Returns:
            Dict with session_id and redirect url
        """
        settings = get_settings()
        if amount is None or amount < settings.min_deposit_amount:
            raise ValidationError("Invalid amount")
        amount = quantize_money(amount)

        session = await self.gateway.create_checkout_session(
            amount=amount,
            metadata={"user_id": user.id, "user_email": user.email, "type": "deposit"},
            success_url=(
                f"{settings.api_base_url}/api/payments/success?session_id={{CHECKOUT_SESSION_ID}}"
            ),
            cancel_url=f"{settings.frontend_url}/wallet?canceled=true",
            customer_email=user.email,
        )
        logger.info(f"Checkout session {session.get('id')} created for user {user.id}: {amount}")
        return {"session_id": session["id"], "url": session.get("url")}

    async def settle_deposit(
        self,
        user_id: int,
        amount: Decimal,
        reference: str,
        gateway_ref: str | None = None,
    ) -> tuple[Transaction, bool]:
        """Credit a deposit exactly once.

        Args:
            user_id: Wallet owner
            amount: Amount paid
            reference: Checkout session id (deduplication key)
            gateway_ref: Payment intent id

        Returns:
            (transaction, created) where created is False for a repeat delivery
        """
        existing = await self.ledger.get_by_reference(reference)
        if existing:
            logger.info(f"Deposit {reference} already settled as transaction {existing.id}")
            return existing, False

        amount = quantize_money(amount)
        if amount <= 0:
            raise ValidationError("Invalid amount")

        await self.ledger.get_or_create_wallet(user_id)
        entry = self.ledger.record(
            user_id=user_id,
            tx_type=TransactionType.DEPOSIT,
            amount=amount,
            status=TransactionStatus.COMPLETED,
            description="Deposit via card",
            reference=reference,
            gateway_ref=gateway_ref,
        )
        try:
            await self.ledger.credit(user_id, amount)
            await self.db.commit()
        except IntegrityError:
            # Concurrent delivery of the same session won the unique reference
            await self.db.rollback()
            existing = await self.ledger.get_by_reference(reference)
            if existing is None:
                raise
            return existing, False
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(entry)
        logger.info(f"Deposit {reference} credited {amount} to user {user_id}")
        return entry, True

    async def settle_checkout_session(self, session: dict[str, Any]) -> Transaction | None:
        """Settle a paid checkout session (webhook or redirect payload)."""
        if session.get("payment_status") != "paid":
            logger.info(f"Checkout session {session.get('id')} not paid, skipping")
            return None

        user = await self._resolve_user(session.get("metadata") or {})
        amount = from_cents(int(session.get("amount_total") or 0))
        entry, _ = await self.settle_deposit(
            user_id=user.id,  # type: ignore[arg-type]
            amount=amount,
            reference=session["id"],
            gateway_ref=session.get("payment_intent"),
        )
        return entry

    async def handle_success_redirect(self, session_id: str) -> bool:
        """Settle from the success redirect. Returns True if the session is paid."""
        session = await self.gateway.retrieve_checkout_session(session_id)
        return await self.settle_checkout_session(session) is not None

    async def record_failed_deposit(self, payment_intent: dict[str, Any]) -> Transaction | None:
        """Record a failed deposit attempt (no balance change)."""
        metadata = payment_intent.get("metadata") or {}
        if metadata.get("type") != "deposit":
            return None

        reference = f"failed-{payment_intent['id']}"
        existing = await self.ledger.get_by_reference(reference)
        if existing:
            return existing

        user = await self._resolve_user(metadata)
        error = payment_intent.get("last_payment_error") or {}
        entry = self.ledger.record(
            user_id=user.id,  # type: ignore[arg-type]
            tx_type=TransactionType.DEPOSIT,
            amount=from_cents(int(payment_intent.get("amount") or 0)),
            status=TransactionStatus.FAILED,
            description=f"Deposit failed: {error.get('message', 'payment failed')}"[:500],
            reference=reference,
            gateway_ref=payment_intent["id"],
        )
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            return await self.ledger.get_by_reference(reference)

        await self.db.refresh(entry)
        logger.warning(f"Deposit payment {payment_intent['id']} failed for user {user.id}")
        return entry

    async def _resolve_user(self, metadata: dict[str, Any]) -> User:
        """Find the depositing user from checkout metadata (id, then email)."""
        user: User | None = None
        if metadata.get("user_id"):
            user = await self.db.get(User, int(metadata["user_id"]))
        if user is None and metadata.get("user_email"):
            result = await self.db.execute(
                select(User).where(User.email == str(metadata["user_email"]).lower())
            )
            user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("User not found")
        return user
