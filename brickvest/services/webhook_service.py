"""Webhook Service - dispatch verified processor events to their handlers."""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from brickvest.core.exceptions import NotFoundError
from brickvest.services.connect_service import ConnectService
from brickvest.services.deposit_service import DepositService
from brickvest.services.funding_service import FundingService
from brickvest.services.payment_gateway import PaymentGateway

logger = logging.getLogger(__name__)


class WebhookService:
    """Routes processor events. Unknown event types are acknowledged and ignored."""

    def __init__(self, db: AsyncSession, gateway: PaymentGateway):
        self.db = db
        self.gateway = gateway

    async def handle_event(self, event: dict[str, Any]) -> bool:
        """Handle one event.

        An event naming a user, project or account that does not exist is
        logged and acknowledged, since redelivery cannot make it succeed.

        Returns:
            True if the event type is handled, False if ignored
        """
        event_type = event.get("type", "")
        obj = (event.get("data") or {}).get("object") or {}
        logger.info(f"Webhook event {event.get('id')} ({event_type})")

        try:
            return await self._dispatch(event_type, obj)
        except NotFoundError as e:
            await self.db.rollback()
            logger.warning(f"Webhook event {event.get('id')} ({event_type}) dropped: {e.message}")
            return False

    async def _dispatch(self, event_type: str, obj: dict[str, Any]) -> bool:
        if event_type == "checkout.session.completed":
            await DepositService(self.db, self.gateway).settle_checkout_session(obj)
        elif event_type == "payment_intent.succeeded":
            if (obj.get("metadata") or {}).get("type") == "project_funding":
                await FundingService(self.db, self.gateway).handle_payment_succeeded(obj)
        elif event_type == "payment_intent.payment_failed":
            metadata = obj.get("metadata") or {}
            if metadata.get("type") == "project_funding":
                await FundingService(self.db, self.gateway).handle_payment_failed(obj)
            else:
                await DepositService(self.db, self.gateway).record_failed_deposit(obj)
        elif event_type == "account.updated":
            await ConnectService(self.db, self.gateway).handle_account_updated(obj)
        else:
            logger.debug(f"Ignoring webhook event type {event_type}")
            return False
        return True
