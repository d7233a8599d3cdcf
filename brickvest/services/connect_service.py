"""Connect Service - processor connected accounts for creators and payouts."""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from brickvest.core.config import get_settings
from brickvest.core.exceptions import NotFoundError
from brickvest.models.user import ConnectAccountStatus, User, UserRole
from brickvest.services.payment_gateway import PaymentGateway
from brickvest.utils.helpers import utc_now

logger = logging.getLogger(__name__)


def account_status(account: dict[str, Any]) -> ConnectAccountStatus:
    """Map a processor account object to the local status."""
    disabled_reason = (account.get("requirements") or {}).get("disabled_reason") or ""
    if disabled_reason.startswith("rejected"):
        return ConnectAccountStatus.REJECTED
    if account.get("charges_enabled"):
        return ConnectAccountStatus.VERIFIED
    if disabled_reason and account.get("details_submitted"):
        return ConnectAccountStatus.RESTRICTED
    return ConnectAccountStatus.PENDING


class ConnectService:
    """Service for connected-account onboarding and status sync."""

    def __init__(self, db: AsyncSession, gateway: PaymentGateway):
        self.db = db
        self.gateway = gateway

    async def start_onboarding(self, user: User) -> dict[str, str]:
        """Create the user's connected account if needed and return an onboarding link.

        Onboarding makes a regular user a creator.
        """
        settings = get_settings()
        if not user.stripe_connect_account_id:
            account = await self.gateway.create_connect_account(user.email, user.id)  # type: ignore[arg-type]
            user.stripe_connect_account_id = account["id"]
            user.connect_account_status = ConnectAccountStatus.PENDING
            if user.role == UserRole.USER:
                user.role = UserRole.CREATOR
            user.updated_at = utc_now()
            self.db.add(user)
            await self.db.commit()
            logger.info(f"Created connected account {account['id']} for user {user.id}")

        link = await self.gateway.create_account_link(
            user.stripe_connect_account_id,  # type: ignore[arg-type]
            refresh_url=f"{settings.frontend_url}/creator/onboarding?error=true",
            return_url=f"{settings.frontend_url}/creator/onboarding?success=true",
        )
        return {"account_id": user.stripe_connect_account_id, "url": link["url"]}  # type: ignore[dict-item]

    async def sync_status(self, user: User) -> User:
        if not user.stripe_connect_account_id:
            raise NotFoundError("No Connect account found")
        account = await self.gateway.retrieve_account(user.stripe_connect_account_id)
        return await self._apply(user, account)

    async def handle_account_updated(self, account: dict[str, Any]) -> User | None:
        """Webhook: account.updated."""
        result = await self.db.execute(
            select(User).where(User.stripe_connect_account_id == account["id"])
        )
        user = result.scalar_one_or_none()
        if user is None:
            logger.warning(f"account.updated for unknown account {account['id']}")
            return None
        return await self._apply(user, account)

    async def _apply(self, user: User, account: dict[str, Any]) -> User:
        user.connect_account_status = account_status(account)
        user.connect_onboarding_complete = bool(account.get("details_submitted"))
        user.connect_payouts_enabled = bool(account.get("payouts_enabled"))
        user.updated_at = utc_now()
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user
