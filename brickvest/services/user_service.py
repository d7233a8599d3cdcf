"""User Service - profile, onboarding and KYC document intake."""

import logging
import uuid
from pathlib import Path

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from brickvest.core.config import get_settings
from brickvest.core.exceptions import ValidationError
from brickvest.core.security import encrypt_sensitive_data
from brickvest.models.user import User, VerificationStatus
from brickvest.schemas.user import OnboardingStep1Request, ProfileUpdate
from brickvest.utils.helpers import utc_now

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "application/pdf": ".pdf",
}

# Accepted document type names -> User attribute
DOCUMENT_FIELDS = {
    "idDocument": "id_document",
    "id_document": "id_document",
    "proofOfAddress": "proof_of_address",
    "proof_of_address": "proof_of_address",
}


class UserService:
    """Service for user-related business logic."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def update_profile(self, user: User, data: ProfileUpdate) -> User:
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(user, field, value)
        user.updated_at = utc_now()
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    # ============ Onboarding ============

    async def complete_step1(self, user: User, data: OnboardingStep1Request) -> User:
        """Personal details. KYC numbers are stored encrypted."""
        if not (data.full_name and data.phone and data.home_address):
            raise ValidationError("Missing required fields")

        user.name = data.full_name.strip()
        user.phone = data.phone.strip()
        user.address = data.home_address.strip()
        user.employment_details = data.employment_details
        user.office_address = data.office_address
        user.country = data.country
        if data.citizenship_number:
            user.citizenship_number = encrypt_sensitive_data(data.citizenship_number)
        if data.passport_number:
            user.passport_number = encrypt_sensitive_data(data.passport_number)
        user.onboarding_step = max(user.onboarding_step, 1)
        user.updated_at = utc_now()

        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def upload_document(self, user: User, file: UploadFile, document_type: str) -> str:
        field = DOCUMENT_FIELDS.get(document_type)
        if field is None:
            raise ValidationError("Invalid document type")

        path = await self._store(user, file, field)
        setattr(user, field, path)
        user.updated_at = utc_now()
        self.db.add(user)
        await self.db.commit()
        logger.info(f"User {user.id} uploaded {field}")
        return path

    async def submit_identity(
        self, user: User, passport: UploadFile | None, selfie: UploadFile | None
    ) -> User:
        """Passport scan and selfie for identity review."""
        if passport is None or selfie is None:
            raise ValidationError("Passport and selfie are required")

        user.passport_document = await self._store(user, passport, "passport")
        user.selfie_document = await self._store(user, selfie, "selfie")
        user.identity_verification_status = VerificationStatus.PENDING
        user.onboarding_step = max(user.onboarding_step, 2)
        user.updated_at = utc_now()
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def submit_address(
        self, user: User, residential_status: str | None, proof: UploadFile | None
    ) -> User:
        """Residential status and proof of address. Completes onboarding."""
        if not residential_status or proof is None:
            raise ValidationError("Residential status and proof document are required")

        user.proof_of_address = await self._store(user, proof, "proof_of_address")
        user.residential_status = residential_status
        user.address_verification_status = VerificationStatus.PENDING
        user.onboarding_step = max(user.onboarding_step, 3)
        user.onboarding_completed = True
        user.updated_at = utc_now()
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def _store(self, user: User, file: UploadFile, label: str) -> str:
        """Validate and write an upload under the user's directory."""
        settings = get_settings()
        extension = ALLOWED_CONTENT_TYPES.get(file.content_type or "")
        if extension is None:
            raise ValidationError("Invalid file type. Only JPEG, PNG and PDF are allowed")

        content = await file.read()
        if len(content) > settings.max_upload_bytes:
            raise ValidationError(
                f"File size exceeds {settings.max_upload_bytes // (1024 * 1024)}MB limit"
            )
        if not content:
            raise ValidationError("Empty file")

        directory = Path(settings.upload_dir) / f"user_{user.id}"
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{label}_{uuid.uuid4().hex}{extension}"
        path.write_bytes(content)
        return str(path)
