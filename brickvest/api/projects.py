"""Project listing, investment and dividend API endpoints."""

import logging
from decimal import Decimal

from fastapi import APIRouter, Query, status

from brickvest.api.deps import AdminUser, CurrentUser, DbSession, Gateway
from brickvest.schemas.project import (
    DividendPreviewResponse,
    DividendRequest,
    DividendResponse,
    FundRequest,
    FundResponse,
    InvestRequest,
    InvestResponse,
    ProjectCreate,
    ProjectResponse,
)
from brickvest.schemas.wallet import TransactionResponse
from brickvest.services.funding_service import FundingService
from brickvest.services.project_service import ProjectService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["Projects"])


@router.get("", response_model=list[ProjectResponse])
async def list_projects(db: DbSession) -> list[ProjectResponse]:
    """Active projects, newest first."""
    projects = await ProjectService(db).list_active_projects()
    return [ProjectResponse.from_project(p) for p in projects]


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(data: ProjectCreate, user: CurrentUser, db: DbSession) -> ProjectResponse:
    """Create a project listing. Creators and admins only."""
    project = await ProjectService(db).create_project(user, data)
    return ProjectResponse.from_project(project)


# ============ Investment ============


@router.post("/invest", response_model=InvestResponse)
async def invest(data: InvestRequest, user: CurrentUser, db: DbSession) -> InvestResponse:
    """Invest wallet funds into a project."""
    entry, project, balance = await ProjectService(db).invest(user, data.project_id, data.amount)
    return InvestResponse(
        message="Investment successful",
        transaction=TransactionResponse.from_transaction(entry),
        project=ProjectResponse.from_project(project),
        balance=balance,
    )


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: int, db: DbSession) -> ProjectResponse:
    return ProjectResponse.from_project(await ProjectService(db).get_project(project_id))


@router.post("/{project_id}/fund", response_model=FundResponse)
async def fund_project(
    project_id: int, data: FundRequest, user: CurrentUser, db: DbSession, gateway: Gateway
) -> FundResponse:
    """Start a card investment routed to the project creator's connected account.

    The project amount is only incremented once the payment succeeds.
    """
    payment, client_secret = await FundingService(db, gateway).fund_project(
        user, project_id, data.amount
    )
    return FundResponse(
        payment_id=payment.id,  # type: ignore[arg-type]
        payment_intent_id=payment.payment_intent_id,
        client_secret=client_secret,
        amount=payment.amount,
        platform_fee=payment.platform_fee,
        processor_fee=payment.fee,
    )


# ============ Dividends ============


@router.post("/{project_id}/dividend", response_model=DividendResponse)
async def distribute_dividends(
    project_id: int, data: DividendRequest, admin: AdminUser, db: DbSession
) -> DividendResponse:
    """Credit dividend payouts to investors' wallets, all or nothing."""
    entries = await ProjectService(db).distribute_dividends(admin, project_id, data.dividends)
    return DividendResponse(
        message="Dividends distributed successfully",
        total=sum((e.amount for e in entries), Decimal("0")),
        recipients=len(entries),
        transactions=[TransactionResponse.from_transaction(e) for e in entries],
    )


@router.get("/{project_id}/dividend/preview", response_model=DividendPreviewResponse)
async def preview_dividends(
    project_id: int,
    admin: AdminUser,
    db: DbSession,
    total: Decimal = Query(..., gt=0, description="Total amount to distribute"),
) -> DividendPreviewResponse:
    """Pro-rata split of ``total`` over the project's wallet investments."""
    return DividendPreviewResponse(**await ProjectService(db).preview_dividends(project_id, total))
