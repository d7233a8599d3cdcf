"""Notification tasks: transactional email."""

import asyncio
import logging

from brickvest.services.email_service import EmailService
from brickvest.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def run_async(coro):
    """Run async coroutine in sync context for Celery."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@celery_app.task(name="notifications.send_verification_email", bind=True, max_retries=3)
def send_verification_email(self, email: str, name: str, code: str) -> dict:
    """Email a signup verification code.

    Retried with backoff while Mailgun is configured but the send fails.
    """
    service = EmailService()
    sent = run_async(service.send_verification_code(email, name, code))
    if not sent and service.api_key and service.domain:
        logger.warning(f"[send_verification_email] send failed for {email}, retrying")
        raise self.retry(countdown=30 * (2**self.request.retries))
    return {"email": email, "sent": sent}
