"""Connected-account onboarding endpoints for creators and payouts."""

from fastapi import APIRouter

from brickvest.api.deps import CurrentUser, DbSession, Gateway
from brickvest.schemas.payment import ConnectOnboardResponse, ConnectStatusResponse
from brickvest.services.connect_service import ConnectService

router = APIRouter(prefix="/connect", tags=["Connect"])


@router.post("/onboard", response_model=ConnectOnboardResponse)
async def start_onboarding(
    user: CurrentUser, db: DbSession, gateway: Gateway
) -> ConnectOnboardResponse:
    """Create a connected account if needed and return the hosted onboarding link."""
    return ConnectOnboardResponse(**await ConnectService(db, gateway).start_onboarding(user))


@router.get("/onboard", response_model=ConnectStatusResponse)
async def onboarding_status(
    user: CurrentUser, db: DbSession, gateway: Gateway
) -> ConnectStatusResponse:
    """Refresh and return the connected account's verification state."""
    user = await ConnectService(db, gateway).sync_status(user)
    return ConnectStatusResponse(
        account_id=user.stripe_connect_account_id,
        status=user.connect_account_status,
        details_submitted=user.connect_onboarding_complete,
        payouts_enabled=user.connect_payouts_enabled,
    )
