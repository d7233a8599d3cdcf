"""Wallet and ledger API endpoints."""

from fastapi import APIRouter, Query

from brickvest.api.deps import AdminUser, CurrentUser, DbSession
from brickvest.models.transaction import TransactionStatus, TransactionType
from brickvest.schemas.pagination import TransactionPage
from brickvest.schemas.wallet import ReconcileResponse, WalletSummaryResponse
from brickvest.services.ledger_service import LedgerService
from brickvest.services.portfolio_service import PortfolioService
from brickvest.utils.helpers import format_utc_datetime

router = APIRouter(prefix="/wallet", tags=["Wallet"])


@router.get("/summary", response_model=WalletSummaryResponse)
async def wallet_summary(user: CurrentUser, db: DbSession) -> WalletSummaryResponse:
    summary = await PortfolioService(db).wallet_summary(user)
    summary["last_updated"] = format_utc_datetime(summary["last_updated"])
    return WalletSummaryResponse(**summary)


@router.get("/transactions", response_model=TransactionPage)
async def list_transactions(
    user: CurrentUser,
    db: DbSession,
    type: TransactionType | None = Query(default=None, description="Filter by type"),
    status: TransactionStatus | None = Query(default=None, description="Filter by status"),
) -> TransactionPage:
    """The user's ledger, newest first."""
    return await LedgerService(db).list_transactions(user.id, type, status)  # type: ignore[arg-type]


@router.post("/reconcile/{user_id}", response_model=ReconcileResponse)
async def reconcile_wallet(
    user_id: int,
    admin: AdminUser,
    db: DbSession,
    repair: bool = Query(default=False, description="Reset the cached balance to the ledger"),
) -> ReconcileResponse:
    """Compare a wallet's cached balance against its ledger. Admin only."""
    return ReconcileResponse(**await LedgerService(db).reconcile_wallet(user_id, repair=repair))
