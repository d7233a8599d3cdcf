"""Email Service - transactional mail through the Mailgun HTTP API."""

import logging
from typing import Any

import httpx

from brickvest.core.config import get_settings

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending transactional email."""

    def __init__(self, api_key: str | None = None, domain: str | None = None):
        settings = get_settings()
        self.api_key = api_key or settings.mailgun_api_key
        self.domain = domain or settings.mailgun_domain
        self.api_base = settings.mailgun_api_base.rstrip("/")
        self.sender = settings.mail_from

    async def send(self, to: str, subject: str, text: str, html: str | None = None) -> bool:
        """Send one message.

        Returns:
            True if Mailgun accepted the message
        """
        if not self.api_key or not self.domain:
            logger.warning(f"Mailgun not configured, skipping email to {to}")
            return False

        data: dict[str, Any] = {"from": self.sender, "to": to, "subject": subject, "text": text}
        if html:
            data["html"] = html

        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(
                    f"{self.api_base}/{self.domain}/messages",
                    auth=("api", self.api_key),
                    data=data,
                )
        except httpx.RequestError as e:
            logger.error(f"Mailgun request failed: {e}")
            return False

        if response.status_code >= 400:
            logger.error(f"Mailgun API error {response.status_code}: {response.text}")
            return False
        return True

    # ============ Templates ============

    def format_verification_message(self, name: str, code: str) -> tuple[str, str]:
        minutes = get_settings().email_code_ttl_seconds // 60
        text = (
            f"Hi {name},\n\n"
            f"Your Brickvest verification code is {code}.\n"
            f"It expires in {minutes} minutes.\n"
        )
        html = (
            f"<p>Hi {name},</p>"
            f"<p>Your Brickvest verification code is <b>{code}</b>.</p>"
            f"<p>It expires in {minutes} minutes.</p>"
        )
        return text, html

    async def send_verification_code(self, email: str, name: str, code: str) -> bool:
        text, html = self.format_verification_message(name, code)
        return await self.send(email, "Verify your email", text, html)
