"""Authentication API endpoints."""

import logging

from fastapi import APIRouter, Response, status

from brickvest.api.deps import CurrentUser, DbSession
from brickvest.core.config import get_settings
from brickvest.schemas.auth import (
    CheckUserRequest,
    CheckUserResponse,
    LoginRequest,
    ResendVerificationRequest,
    SignupRequest,
    TokenResponse,
    VerifyEmailRequest,
)
from brickvest.schemas.common import MessageResponse
from brickvest.schemas.user import UserResponse
from brickvest.services.auth_service import AuthService
from brickvest.services.ledger_service import LedgerService
from brickvest.tasks.notifications import send_verification_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/check-user", response_model=CheckUserResponse)
async def check_user(data: CheckUserRequest, db: DbSession) -> CheckUserResponse:
    """Whether an account exists for the email."""
    return CheckUserResponse(exists=await AuthService(db).user_exists(data.email))


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def signup(data: SignupRequest, db: DbSession) -> UserResponse:
    """Create an account and email a verification code."""
    user, code = await AuthService(db).signup(data.name, data.email, data.password)
    send_verification_email.delay(user.email, user.name, code)
    return UserResponse.from_user(user)


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, db: DbSession, response: Response) -> TokenResponse:
    """Exchange credentials for a session token (also set as an HTTP-only cookie)."""
    settings = get_settings()
    service = AuthService(db)
    user = await service.authenticate(data.email, data.password)
    token = service.issue_token(user)
    max_age = settings.jwt_expire_days * 24 * 3600

    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=max_age,
        httponly=True,
        samesite="lax",
        secure=not settings.debug,
    )
    wallet = await LedgerService(db).get_wallet(user.id)  # type: ignore[arg-type]
    return TokenResponse(
        access_token=token,
        expires_in=max_age,
        user=UserResponse.from_user(user, wallet.balance if wallet else None),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(user: CurrentUser, db: DbSession, response: Response) -> MessageResponse:
    """Revoke all of the user's sessions."""
    await AuthService(db).logout(user)
    response.delete_cookie(get_settings().session_cookie_name)
    return MessageResponse(message="Logged out successfully")


@router.post("/verify-email", response_model=UserResponse)
async def verify_email(data: VerifyEmailRequest, db: DbSession) -> UserResponse:
    user = await AuthService(db).verify_email(data.email, data.code)
    return UserResponse.from_user(user)


@router.post("/resend-verification", response_model=MessageResponse)
async def resend_verification(data: ResendVerificationRequest, db: DbSession) -> MessageResponse:
    user, code = await AuthService(db).resend_verification(data.email)
    send_verification_email.delay(user.email, user.name, code)
    return MessageResponse(message="Verification code sent")


@router.get("/me", response_model=UserResponse)
async def me(user: CurrentUser, db: DbSession) -> UserResponse:
    wallet = await LedgerService(db).get_wallet(user.id)  # type: ignore[arg-type]
    return UserResponse.from_user(user, wallet.balance if wallet else None)
