"""Deposit, withdrawal and connected-account schemas."""

from typing import Literal

from pydantic import BaseModel

from brickvest.models.user import ConnectAccountStatus
from brickvest.schemas.common import DecimalStr, MoneyAmount
from brickvest.schemas.wallet import TransactionResponse


class CheckoutRequest(BaseModel):
    amount: MoneyAmount


class CheckoutResponse(BaseModel):
    session_id: str
    url: str | None


class WithdrawRequest(BaseModel):
    amount: MoneyAmount


WithdrawalOutcome = Literal[
    "completed",
    "processing",
    "failed",
    "onboarding_required",
    "verification_required",
]


class WithdrawResponse(BaseModel):
    """Withdrawal outcome.

    ``onboarding_required`` / ``verification_required`` carry a processor
    onboarding ``url`` and no transaction.
    """

    status: WithdrawalOutcome
    message: str
    transaction: TransactionResponse | None = None
    url: str | None = None
    fee: DecimalStr | None = None
    balance: DecimalStr | None = None


class WebhookAck(BaseModel):
    received: bool = True


class ConnectOnboardResponse(BaseModel):
    account_id: str
    url: str


class ConnectStatusResponse(BaseModel):
    account_id: str | None
    status: ConnectAccountStatus | None
    details_submitted: bool
    payouts_enabled: bool
