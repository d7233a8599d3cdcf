"""User profile, onboarding and analytics API endpoints."""

from typing import Annotated

from fastapi import APIRouter, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from brickvest.api.deps import CurrentUser, DbSession
from brickvest.models.user import User
from brickvest.schemas.user import (
    AnalyticsResponse,
    OnboardingResponse,
    OnboardingStep1Request,
    ProfileUpdate,
    UploadResponse,
    UserResponse,
)
from brickvest.services.ledger_service import LedgerService
from brickvest.services.portfolio_service import PortfolioService
from brickvest.services.user_service import UserService

router = APIRouter(tags=["Users"])


async def _user_response(db: AsyncSession, user: User) -> UserResponse:
    wallet = await LedgerService(db).get_wallet(user.id)
    return UserResponse.from_user(user, wallet.balance if wallet else None)


@router.get("/user/profile", response_model=UserResponse)
async def get_profile(user: CurrentUser, db: DbSession) -> UserResponse:
    return await _user_response(db, user)


@router.put("/user/profile", response_model=UserResponse)
async def update_profile(data: ProfileUpdate, user: CurrentUser, db: DbSession) -> UserResponse:
    user = await UserService(db).update_profile(user, data)
    return await _user_response(db, user)


# ============ Onboarding ============


@router.post("/onboarding/step1", response_model=OnboardingResponse)
async def onboarding_step1(
    data: OnboardingStep1Request, user: CurrentUser, db: DbSession
) -> OnboardingResponse:
    """Personal details step of KYC onboarding."""
    user = await UserService(db).complete_step1(user, data)
    return OnboardingResponse(
        message="Step 1 completed successfully", user=await _user_response(db, user)
    )


@router.post("/user/verify-identity", response_model=OnboardingResponse)
async def verify_identity(
    user: CurrentUser,
    db: DbSession,
    passport: Annotated[UploadFile | None, File()] = None,
    selfie: Annotated[UploadFile | None, File()] = None,
) -> OnboardingResponse:
    """Upload passport scan and selfie; identity goes to pending review."""
    user = await UserService(db).submit_identity(user, passport, selfie)
    return OnboardingResponse(
        message="Identity documents submitted for verification",
        user=await _user_response(db, user),
    )


@router.post("/user/verify-address", response_model=OnboardingResponse)
async def verify_address(
    user: CurrentUser,
    db: DbSession,
    residential_status: Annotated[str | None, Form()] = None,
    proof_of_address: Annotated[UploadFile | None, File()] = None,
) -> OnboardingResponse:
    """Residential status plus proof of address; completes onboarding."""
    user = await UserService(db).submit_address(user, residential_status, proof_of_address)
    return OnboardingResponse(
        message="Address verification submitted", user=await _user_response(db, user)
    )


@router.post("/user/upload-document", response_model=UploadResponse)
async def upload_document(
    user: CurrentUser,
    db: DbSession,
    file: Annotated[UploadFile, File()],
    document_type: Annotated[str, Form()],
) -> UploadResponse:
    path = await UserService(db).upload_document(user, file, document_type)
    return UploadResponse(message="File uploaded successfully", file_path=path)


# ============ Analytics ============


@router.get("/user/analytics", response_model=AnalyticsResponse)
async def analytics(user: CurrentUser, db: DbSession) -> AnalyticsResponse:
    """Six-month invested/returns history and investment distribution by type."""
    return AnalyticsResponse(**await PortfolioService(db).analytics(user))
