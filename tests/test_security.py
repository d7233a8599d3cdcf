"""Field encryption, password hashing and session tokens."""

import base64

import jwt
import pytest
from cryptography.exceptions import InvalidTag

from brickvest.core.config import get_settings
from brickvest.core.exceptions import AuthenticationError
from brickvest.core.security import (
    PURPOSE_EMAIL_CODE,
    FieldCipher,
    create_access_token,
    decode_access_token,
    decrypt_sensitive_data,
    encrypt_sensitive_data,
    hash_password,
    verify_password,
)


class TestFieldCipher:
    def test_values_roundtrip_with_fresh_nonces(self):
        first = encrypt_sensitive_data("P1234567")
        second = encrypt_sensitive_data("P1234567")

        assert first != second
        assert decrypt_sensitive_data(first) == "P1234567"

    def test_ciphertext_is_bound_to_purpose(self):
        sealed = encrypt_sensitive_data("JBSWY3DPEHPK3PXP", PURPOSE_EMAIL_CODE)

        assert decrypt_sensitive_data(sealed, PURPOSE_EMAIL_CODE) == "JBSWY3DPEHPK3PXP"
        with pytest.raises(InvalidTag):
            decrypt_sensitive_data(sealed)

    def test_rejects_short_key(self):
        with pytest.raises(ValueError):
            FieldCipher(base64.b64encode(b"too-short").decode())


def test_password_hashing():
    hashed = hash_password("correct horse")

    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


class TestSessionTokens:
    def test_claims_survive_roundtrip(self):
        token = create_access_token(42, {"role": "admin", "ver": 3})

        claims = decode_access_token(token)

        assert claims["sub"] == "42"
        assert claims["role"] == "admin"
        assert claims["ver"] == 3

    def test_expired_token(self):
        settings = get_settings()
        token = jwt.encode(
            {"sub": "1", "exp": 1_000_000_000}, settings.jwt_secret, algorithm=settings.jwt_algorithm
        )

        with pytest.raises(AuthenticationError, match="Session expired"):
            decode_access_token(token)

    def test_token_signed_with_other_secret(self):
        token = jwt.encode({"sub": "1"}, "another-secret-of-sufficient-length!!", algorithm="HS256")

        with pytest.raises(AuthenticationError, match="Invalid session token"):
            decode_access_token(token)
