"""Authentication schemas."""

from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field

from brickvest.schemas.user import UserResponse


def _normalize_email(value: str) -> str:
    value = value.strip().lower()
    local, _, domain = value.partition("@")
    if not local or not domain:
        raise ValueError("Invalid email address")
    return value


Email = Annotated[str, Field(max_length=255), AfterValidator(_normalize_email)]


class CheckUserRequest(BaseModel):
    email: Email


class CheckUserResponse(BaseModel):
    exists: bool


class SignupRequest(BaseModel):
    """Password signup payload."""

    name: str = Field(..., min_length=1, max_length=255)
    email: Email
    password: str = Field(..., min_length=6, max_length=128)


class LoginRequest(BaseModel):
    email: Email
    password: str


class TokenResponse(BaseModel):
    """Issued session token with the user it belongs to."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: UserResponse


class VerifyEmailRequest(BaseModel):
    email: Email
    code: str = Field(..., min_length=6, max_length=6)


class ResendVerificationRequest(BaseModel):
    email: Email
