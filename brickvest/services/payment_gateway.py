"""Payment Gateway - Stripe REST adapter.

Talks to the Stripe API over httpx (form-encoded bodies, bearer auth).
Every state-changing call accepts an idempotency key so a retried request
cannot move money twice.

Failures are normalized to GatewayError:
- retryable=True: timeout, network error, 429 or 5xx (outcome unknown)
- retryable=False: 4xx rejection (definitive)
"""

import hashlib
import hmac
import json
import logging
import time
from decimal import Decimal
from typing import Any

import httpx

from brickvest.core.config import get_settings
from brickvest.core.exceptions import GatewayError, SignatureVerificationError
from brickvest.utils.helpers import to_cents

logger = logging.getLogger(__name__)


def _flatten_params(params: dict[str, Any], prefix: str = "") -> list[tuple[str, str]]:
    """Encode nested dicts/lists in Stripe's bracket notation.

    {"metadata": {"user_id": 1}} -> [("metadata[user_id]", "1")]
    """
    items: list[tuple[str, str]] = []
    for key, value in params.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, dict):
            items.extend(_flatten_params(value, name))
        elif isinstance(value, list | tuple):
            for index, element in enumerate(value):
                if isinstance(element, dict):
                    items.extend(_flatten_params(element, f"{name}[{index}]"))
                else:
                    items.append((f"{name}[{index}]", str(element)))
        elif isinstance(value, bool):
            items.append((name, "true" if value else "false"))
        else:
            items.append((name, str(value)))
    return items


def compute_signature(payload: bytes, timestamp: int, secret: str) -> str:
    """HMAC-SHA256 over "{timestamp}.{payload}" (Stripe v1 scheme)."""
    signed = f"{timestamp}.".encode() + payload
    return hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()


def verify_webhook_signature(
    payload: bytes,
    sig_header: str | None,
    secret: str,
    tolerance: int = 300,
    now: int | None = None,
) -> dict[str, Any]:
    """Verify a Stripe-Signature header and return the parsed event.

    Header format: ``t=<unix ts>,v1=<hex sig>[,v1=...]``

    Raises:
        SignatureVerificationError: Missing secret/header, bad signature or stale timestamp
    """
    if not secret:
        raise SignatureVerificationError("Webhook secret not configured")
    if not sig_header:
        raise SignatureVerificationError("Missing stripe-signature header")

    timestamp: int | None = None
    signatures: list[str] = []
    for part in sig_header.split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                timestamp = None
        elif key == "v1":
            signatures.append(value)

    if timestamp is None or not signatures:
        raise SignatureVerificationError("Invalid signature")

    expected = compute_signature(payload, timestamp, secret)
    if not any(hmac.compare_digest(expected, sig) for sig in signatures):
        raise SignatureVerificationError("Invalid signature")

    current = int(time.time()) if now is None else now
    if tolerance and abs(current - timestamp) > tolerance:
        raise SignatureVerificationError("Invalid signature")

    try:
        return json.loads(payload)
    except ValueError as e:
        raise SignatureVerificationError("Invalid payload") from e


class PaymentGateway:
    """Stripe API client.

    Usage:
        gateway = PaymentGateway()
        session = await gateway.create_checkout_session(...)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.stripe_secret_key
        self.base_url = (base_url or settings.stripe_api_base).rstrip("/")
        self.timeout = timeout or settings.stripe_timeout_seconds
        self.currency = settings.currency
        self._transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        """Send one API request and normalize failures to GatewayError."""
        if not self.api_key:
            raise GatewayError("Payment processor is not configured")

        headers = {"Authorization": f"Bearer {self.api_key}"}
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key

        data = _flatten_params(params or {})
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                if method == "GET":
                    response = await client.get(path, params=data, headers=headers)
                else:
                    response = await client.request(method, path, data=data, headers=headers)
        except httpx.TimeoutException as e:
            logger.error(f"Stripe request timed out: {method} {path}: {e}")
            raise GatewayError("Payment processor timed out", retryable=True) from e
        except httpx.RequestError as e:
            logger.error(f"Stripe request failed: {method} {path}: {e}")
            raise GatewayError("Payment processor unavailable", retryable=True) from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400:
            error = body.get("error", {}) if isinstance(body, dict) else {}
            message = error.get("message") or f"Payment processor error ({response.status_code})"
            retryable = response.status_code == 429 or response.status_code >= 500
            logger.error(f"Stripe API error {response.status_code} on {method} {path}: {message}")
            raise GatewayError(message, retryable=retryable, code=error.get("code"))

        return body

    # ============ Checkout (deposits) ============

    async def create_checkout_session(
        self,
        amount: Decimal,
        metadata: dict[str, Any],
        success_url: str,
        cancel_url: str,
        customer_email: str | None = None,
        description: str = "Wallet deposit",
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/checkout/sessions",
            {
                "mode": "payment",
                "payment_method_types": ["card"],
                "customer_email": customer_email,
                "line_items": [
                    {
                        "price_data": {
                            "currency": self.currency,
                            "product_data": {"name": description},
                            "unit_amount": to_cents(amount),
                        },
                        "quantity": 1,
                    }
                ],
                "metadata": metadata,
                "payment_intent_data": {"metadata": metadata},
                "success_url": success_url,
                "cancel_url": cancel_url,
            },
        )

    async def retrieve_checkout_session(self, session_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/checkout/sessions/{session_id}")

    # ============ Transfers (withdrawals) ============

    async def create_transfer(
        self,
        amount: Decimal,
        destination: str,
        idempotency_key: str,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/transfers",
            {
                "amount": to_cents(amount),
                "currency": self.currency,
                "destination": destination,
                "metadata": metadata or {},
            },
            idempotency_key=idempotency_key,
        )

    # ============ Customers & payment intents (card funding) ============

    async def create_customer(self, email: str, name: str | None = None) -> dict[str, Any]:
        return await self._request("POST", "/customers", {"email": email, "name": name})

    async def create_payment_intent(
        self,
        amount: Decimal,
        customer: str,
        destination: str,
        application_fee: Decimal,
        idempotency_key: str,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/payment_intents",
            {
                "amount": to_cents(amount),
                "currency": self.currency,
                "customer": customer,
                "automatic_payment_methods": {"enabled": True},
                "application_fee_amount": to_cents(application_fee),
                "transfer_data": {"destination": destination},
                "metadata": metadata or {},
            },
            idempotency_key=idempotency_key,
        )

    async def create_refund(
        self,
        payment_intent_id: str,
        idempotency_key: str,
        reason: str = "requested_by_customer",
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/refunds",
            {
                "payment_intent": payment_intent_id,
                "reason": reason,
                "reverse_transfer": True,
                "refund_application_fee": True,
            },
            idempotency_key=idempotency_key,
        )

    # ============ Connected accounts ============

    async def create_connect_account(self, email: str, user_id: int) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/accounts",
            {
                "type": "express",
                "email": email,
                "capabilities": {"transfers": {"requested": True}},
                "business_profile": {"mcc": "5734"},
                "metadata": {"user_id": user_id},
            },
            idempotency_key=f"connect-account-{user_id}",
        )

    async def retrieve_account(self, account_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/accounts/{account_id}")

    async def create_account_link(
        self,
        account_id: str,
        refresh_url: str,
        return_url: str,
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/account_links",
            {
                "account": account_id,
                "refresh_url": refresh_url,
                "return_url": return_url,
                "type": "account_onboarding",
            },
        )

    # ============ Webhooks ============

    def construct_event(self, payload: bytes, sig_header: str | None) -> dict[str, Any]:
        """Verify and parse a webhook delivery."""
        settings = get_settings()
        return verify_webhook_signature(
            payload,
            sig_header,
            settings.stripe_webhook_secret,
            tolerance=settings.stripe_webhook_tolerance_seconds,
        )


_gateway: PaymentGateway | None = None


def get_payment_gateway() -> PaymentGateway:
    """Get the payment gateway singleton (FastAPI dependency)."""
    global _gateway
    if _gateway is None:
        _gateway = PaymentGateway()
    return _gateway
