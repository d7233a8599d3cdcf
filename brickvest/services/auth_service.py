"""Auth Service - signup, login, session tokens and email verification.

Email verification codes are six-digit TOTP values. Each user gets a fresh
random secret (stored AES-encrypted) with an interval equal to the code
lifetime, plus an explicit expiry timestamp.
"""

import logging
from datetime import timedelta

import pyotp
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from brickvest.core.config import get_settings
from brickvest.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from brickvest.core.security import (
    PURPOSE_EMAIL_CODE,
    create_access_token,
    decrypt_sensitive_data,
    encrypt_sensitive_data,
    hash_password,
    verify_password,
)
from brickvest.models.user import User
from brickvest.utils.helpers import format_utc_datetime, utc_now

logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication business logic."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def user_exists(self, email: str) -> bool:
        return await self.get_user_by_email(email) is not None

    async def signup(self, name: str, email: str, password: str) -> tuple[User, str]:
        """Create a user with a password.

        Returns:
            (user, verification code to email)

        Raises:
            ConflictError: If the email is taken
        """
        if await self.user_exists(email):
            raise ConflictError("User already exists")

        user = User(
            name=name.strip(),
            email=email.lower(),
            password_hash=hash_password(password),
        )
        code = self._issue_code(user)
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        logger.info(f"User {user.id} signed up")
        return user, code

    async def authenticate(self, email: str, password: str) -> User:
        user = await self.get_user_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid credentials")
        return user

    def issue_token(self, user: User) -> str:
        """Session token carrying the user's id, role and profile fields."""
        return create_access_token(
            user.id,  # type: ignore[arg-type]
            {
                "name": user.name,
                "email": user.email,
                "role": user.role.value,
                "phone": user.phone,
                "address": user.address,
                "kyc_status": user.kyc_status.value,
                "member_since": format_utc_datetime(user.member_since),
                "created_at": format_utc_datetime(user.created_at),
                "ver": user.token_version,
            },
        )

    async def logout(self, user: User) -> None:
        """Revoke every outstanding token for the user."""
        user.token_version += 1
        user.updated_at = utc_now()
        self.db.add(user)
        await self.db.commit()

    # ============ Email verification ============

    async def resend_verification(self, email: str) -> tuple[User, str]:
        user = await self.get_user_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        if user.is_verified:
            raise ValidationError("Email already verified")

        code = self._issue_code(user)
        self.db.add(user)
        await self.db.commit()
        return user, code

    async def verify_email(self, email: str, code: str) -> User:
        user = await self.get_user_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        if user.is_verified:
            raise ValidationError("Email already verified")
        if not user.verification_secret or not user.verification_expires_at:
            raise ValidationError("No verification code found")
        if user.verification_expires_at < utc_now():
            raise ValidationError("Verification code expired")

        totp = pyotp.TOTP(
            decrypt_sensitive_data(user.verification_secret, PURPOSE_EMAIL_CODE),
            interval=get_settings().email_code_ttl_seconds,
        )
        if not totp.verify(code, valid_window=1):
            raise ValidationError("Invalid verification code")

        user.is_verified = True
        user.verification_secret = None
        user.verification_expires_at = None
        user.updated_at = utc_now()
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        logger.info(f"User {user.id} verified email")
        return user

    def _issue_code(self, user: User) -> str:
        ttl = get_settings().email_code_ttl_seconds
        secret = pyotp.random_base32()
        user.verification_secret = encrypt_sensitive_data(secret, PURPOSE_EMAIL_CODE)
        user.verification_expires_at = utc_now() + timedelta(seconds=ttl)
        return pyotp.TOTP(secret, interval=ttl).now()
