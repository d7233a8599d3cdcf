"""Deposit, withdrawal and processor webhook API endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import RedirectResponse

from brickvest.api.deps import CurrentUser, DbSession, Gateway
from brickvest.core.config import get_settings
from brickvest.core.exceptions import AppError
from brickvest.schemas.payment import (
    CheckoutRequest,
    CheckoutResponse,
    WebhookAck,
    WithdrawRequest,
    WithdrawResponse,
)
from brickvest.schemas.wallet import TransactionResponse
from brickvest.services.deposit_service import DepositService
from brickvest.services.webhook_service import WebhookService
from brickvest.services.withdrawal_service import WithdrawalService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def _withdraw_response(outcome: dict[str, Any], response: Response) -> WithdrawResponse:
    """Build the response; an unsettled withdrawal is 202 Accepted."""
    if outcome["status"] == "processing":
        response.status_code = status.HTTP_202_ACCEPTED
    entry = outcome.get("transaction")
    return WithdrawResponse(
        status=outcome["status"],
        message=outcome["message"],
        transaction=TransactionResponse.from_transaction(entry) if entry is not None else None,
        url=outcome.get("url"),
        fee=outcome.get("fee"),
        balance=outcome.get("balance"),
    )


# ============ Deposits ============


@router.post("/create-checkout", response_model=CheckoutResponse)
async def create_checkout(
    data: CheckoutRequest, user: CurrentUser, db: DbSession, gateway: Gateway
) -> CheckoutResponse:
    """Start a wallet deposit through a hosted checkout page."""
    return CheckoutResponse(**await DepositService(db, gateway).create_checkout(user, data.amount))


@router.get("/success")
async def checkout_success(
    db: DbSession, gateway: Gateway, session_id: str | None = None
) -> RedirectResponse:
    """Checkout success redirect. Settles the deposit if the webhook has not yet."""
    wallet_url = f"{get_settings().frontend_url}/wallet"
    if not session_id:
        return RedirectResponse(f"{wallet_url}?error=true", status_code=status.HTTP_303_SEE_OTHER)

    try:
        paid = await DepositService(db, gateway).handle_success_redirect(session_id)
    except AppError as e:
        logger.error(f"Checkout success handling failed for {session_id}: {e.message}")
        paid = False

    result = "success=true" if paid else "error=true"
    return RedirectResponse(f"{wallet_url}?{result}", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/webhook", response_model=WebhookAck)
async def processor_webhook(request: Request, db: DbSession, gateway: Gateway) -> WebhookAck:
    """Receive processor events. The raw body is needed for signature verification."""
    payload = await request.body()
    event = gateway.construct_event(payload, request.headers.get("stripe-signature"))
    await WebhookService(db, gateway).handle_event(event)
    return WebhookAck()


# ============ Withdrawals ============


@router.post("/withdraw", response_model=WithdrawResponse)
async def withdraw(
    data: WithdrawRequest,
    user: CurrentUser,
    db: DbSession,
    gateway: Gateway,
    response: Response,
) -> WithdrawResponse:
    """Withdraw wallet funds to the user's connected account.

    Returns an onboarding link instead when the account cannot receive payouts.
    """
    outcome = await WithdrawalService(db, gateway).request_withdrawal(user, data.amount)
    return _withdraw_response(outcome, response)


@router.get("/withdraw/{transaction_id}", response_model=WithdrawResponse)
async def get_withdrawal(
    transaction_id: int, user: CurrentUser, db: DbSession, gateway: Gateway, response: Response
) -> WithdrawResponse:
    outcome = await WithdrawalService(db, gateway).withdrawal_status(user, transaction_id)
    return _withdraw_response(outcome, response)


@router.post("/withdraw/{transaction_id}/complete", response_model=WithdrawResponse)
async def complete_withdrawal(
    transaction_id: int, user: CurrentUser, db: DbSession, gateway: Gateway, response: Response
) -> WithdrawResponse:
    """Retry an in-flight withdrawal until it settles or is reversed."""
    outcome = await WithdrawalService(db, gateway).complete_withdrawal(user, transaction_id)
    return _withdraw_response(outcome, response)
