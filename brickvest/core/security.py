"""Brickvest - Security utilities.

- AES-256-GCM encryption for KYC numbers and verification secrets at rest
- bcrypt password hashing (passlib)
- Session tokens (PyJWT)
"""

import base64
import os
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

import jwt
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from passlib.context import CryptContext

from brickvest.core.config import get_settings
from brickvest.core.exceptions import AuthenticationError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# ============ Field encryption ============

NONCE_BYTES = 12

# Ciphertext is bound to what it protects; a KYC value cannot be
# decrypted as an email-code secret and vice versa.
PURPOSE_KYC = "kyc"
PURPOSE_EMAIL_CODE = "email-code"


class FieldCipher:
    """AES-256-GCM for single database columns.

    Stored form is ``base64(nonce || ciphertext || tag)``. The purpose label
    is passed as associated data.
    """

    def __init__(self, key_b64: str) -> None:
        key = base64.b64decode(key_b64)
        if len(key) != 32:
            raise ValueError("AES_ENCRYPTION_KEY must decode to 32 bytes")
        self._aead = AESGCM(key)

    def seal(self, value: str, purpose: str) -> str:
        nonce = os.urandom(NONCE_BYTES)
        sealed = self._aead.encrypt(nonce, value.encode("utf-8"), purpose.encode())
        return base64.b64encode(nonce + sealed).decode("ascii")

    def open(self, stored: str, purpose: str) -> str:
        """Raises cryptography.exceptions.InvalidTag on a wrong key, purpose or tampering."""
        raw = base64.b64decode(stored)
        return self._aead.decrypt(raw[:NONCE_BYTES], raw[NONCE_BYTES:], purpose.encode()).decode(
            "utf-8"
        )


@lru_cache
def get_field_cipher() -> FieldCipher:
    return FieldCipher(get_settings().aes_encryption_key)


def encrypt_sensitive_data(value: str, purpose: str = PURPOSE_KYC) -> str:
    """Encrypt a value for database storage."""
    return get_field_cipher().seal(value, purpose)


def decrypt_sensitive_data(stored: str, purpose: str = PURPOSE_KYC) -> str:
    return get_field_cipher().open(stored, purpose)


# ============ Passwords ============


def hash_password(password: str) -> str:
    """Hash a plaintext password with bcrypt."""
    # bcrypt only looks at the first 72 bytes
    password_bytes = password.encode("utf-8")[:72]
    return pwd_context.hash(password_bytes.decode("utf-8", errors="ignore"))


def verify_password(password: str, password_hash: str) -> bool:
    password_bytes = password.encode("utf-8")[:72]
    return pwd_context.verify(password_bytes.decode("utf-8", errors="ignore"), password_hash)


# ============ Session tokens ============


def create_access_token(subject: int, claims: dict[str, Any] | None = None) -> str:
    """Create a signed session token.

    Args:
        subject: User ID
        claims: Extra claims carried in the token (role, profile fields, version)

    Returns:
        Encoded JWT
    """
    settings = get_settings()
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        **(claims or {}),
        "sub": str(subject),
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_expire_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate a session token.

    Raises:
        AuthenticationError: If the token is invalid or expired
    """
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("Session expired") from e
    except jwt.PyJWTError as e:
        raise AuthenticationError("Invalid session token") from e
