"""Funding Service - card-funded investments paid to the creator's connected account.

Funds never touch the investor's wallet: the processor charges the card,
keeps the platform fee and transfers the rest to the creator. The project
amount is only raised once the processor reports the payment succeeded; if
the project can no longer take the amount by then, the payment is refunded.
"""

import logging
import uuid
from decimal import Decimal
from typing import Any

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from brickvest.core.config import get_settings
from brickvest.core.exceptions import (
    GatewayError,
    ProjectNotFundableError,
    TargetExceededError,
    ValidationError,
)
from brickvest.models.project import ProjectStatus
from brickvest.models.project_payment import ProjectPayment, ProjectPaymentStatus
from brickvest.models.user import User
from brickvest.services.fee_config_service import FeeConfigService
from brickvest.services.ledger_service import LedgerService
from brickvest.services.payment_gateway import PaymentGateway
from brickvest.services.project_service import ProjectService
from brickvest.utils.helpers import from_cents, quantize_money, utc_now

logger = logging.getLogger(__name__)


class FundingService:
    """Service for card funding of projects."""

    def __init__(self, db: AsyncSession, gateway: PaymentGateway):
        self.db = db
        self.gateway = gateway
        self.ledger = LedgerService(db)

    async def fund_project(
        self, investor: User, project_id: int, amount: Decimal | None
    ) -> tuple[ProjectPayment, str | None]:
        """Create a payment intent for a card investment.

        Returns:
            (pending ProjectPayment, client secret for the card form)
        """
        if amount is None or amount < get_settings().min_deposit_amount:
            raise ValidationError("Invalid amount")
        amount = quantize_money(amount)

        project = await ProjectService(self.db).get_project(project_id)
        if project.status != ProjectStatus.ACTIVE:
            raise ProjectNotFundableError("Project is not accepting investments")
        if project.current_amount + amount > project.target_amount:
            raise TargetExceededError()

        creator = await self.db.get(User, project.creator_id) if project.creator_id else None
        if creator is None or not creator.stripe_connect_account_id:
            raise ValidationError("Project creator not found or not setup for payments")

        if not investor.stripe_customer_id:
            customer = await self.gateway.create_customer(investor.email, investor.name)
            investor.stripe_customer_id = customer["id"]
            investor.updated_at = utc_now()
            self.db.add(investor)
            await self.db.commit()

        fee_config = await FeeConfigService(self.db).resolve_for_user(creator)
        platform_fee = fee_config.calculate_platform_fee(amount)
        processor_fee = fee_config.calculate_processor_fee(amount)

        intent = await self.gateway.create_payment_intent(
            amount=amount,
            customer=investor.stripe_customer_id,  # type: ignore[arg-type]
            destination=creator.stripe_connect_account_id,
            application_fee=platform_fee,
            idempotency_key=f"project-funding-{uuid.uuid4().hex}",
            metadata={
                "type": "project_funding",
                "project_id": project.id,
                "investor_id": investor.id,
                "creator_id": creator.id,
            },
        )

        payment = ProjectPayment(
            project_id=project.id,  # type: ignore[arg-type]
            investor_id=investor.id,  # type: ignore[arg-type]
            amount=amount,
            status=ProjectPaymentStatus.PENDING,
            payment_intent_id=intent["id"],
            fee=processor_fee,
            platform_fee=platform_fee,
            details={
                "project_name": project.name,
                "investor_email": investor.email,
                "creator_email": creator.email,
            },
        )
        self.db.add(payment)
        await self.db.commit()
        await self.db.refresh(payment)
        logger.info(
            f"Project payment {payment.id} created: {amount} to project {project.id} "
            f"(intent {intent['id']}, platform fee {platform_fee})"
        )
        return payment, intent.get("client_secret")

    async def get_by_intent(self, payment_intent_id: str) -> ProjectPayment | None:
        result = await self.db.execute(
            select(ProjectPayment)
            .where(ProjectPayment.payment_intent_id == payment_intent_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def handle_payment_succeeded(self, intent: dict[str, Any]) -> ProjectPayment | None:
        """Apply a succeeded card payment to its project, or refund it."""
        payment = await self.get_by_intent(intent["id"])
        if payment is None or payment.status != ProjectPaymentStatus.PENDING:
            return payment

        amount = payment.amount
        if intent.get("amount_received"):
            amount = from_cents(int(intent["amount_received"]))

        try:
            claimed = await self._transition(
                payment, ProjectPaymentStatus.COMPLETED, transfer_id=intent.get("transfer")
            )
            if not claimed:
                # Another delivery already handled it
                await self.db.rollback()
                return await self.get_by_intent(intent["id"])
            if await self.ledger.increment_project_amount(payment.project_id, amount):
                await self.db.commit()
                await self.db.refresh(payment)
                logger.info(f"Project payment {payment.id} applied to project {payment.project_id}")
                return payment
            await self.db.rollback()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(payment)
        return await self._refund(payment, "Project closed or target reached before payment settled")

    async def handle_payment_failed(self, intent: dict[str, Any]) -> ProjectPayment | None:
        payment = await self.get_by_intent(intent["id"])
        if payment is None or payment.status != ProjectPaymentStatus.PENDING:
            return payment

        error = intent.get("last_payment_error") or {}
        details = dict(payment.details or {})
        details["failure_message"] = error.get("message", "payment failed")
        await self._transition(payment, ProjectPaymentStatus.FAILED, details=details)
        await self.db.commit()
        await self.db.refresh(payment)
        logger.warning(f"Project payment {payment.id} failed: {details['failure_message']}")
        return payment

    async def _refund(self, payment: ProjectPayment, reason: str) -> ProjectPayment:
        try:
            await self.gateway.create_refund(
                payment.payment_intent_id,
                idempotency_key=f"refund-{payment.payment_intent_id}",
            )
        except GatewayError as e:
            # Left pending so the next webhook delivery retries the refund
            logger.error(f"Refund for project payment {payment.id} failed: {e.message}")
            raise

        await self._transition(
            payment,
            ProjectPaymentStatus.REFUNDED,
            refund_amount=payment.amount,
            refund_reason=reason,
        )
        await self.db.commit()
        await self.db.refresh(payment)
        logger.warning(f"Project payment {payment.id} refunded: {reason}")
        return payment

    async def _transition(
        self, payment: ProjectPayment, status: ProjectPaymentStatus, **values: Any
    ) -> bool:
        """Move a pending payment to ``status``. False if it is no longer pending."""
        values = {k: v for k, v in values.items() if v is not None}
        result = await self.db.execute(
            update(ProjectPayment)
            .where(
                ProjectPayment.id == payment.id,
                ProjectPayment.status == ProjectPaymentStatus.PENDING,
            )
            .values(status=status, updated_at=utc_now(), **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
