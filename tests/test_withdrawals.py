"""Withdrawal state machine tests: reserve, submit, settle or reverse."""

from datetime import timedelta
from decimal import Decimal

from brickvest.core.exceptions import GatewayError
from brickvest.models.transaction import SettlementState, Transaction, TransactionStatus
from brickvest.services.ledger_service import LedgerService
from brickvest.services.withdrawal_service import WithdrawalService, transfer_idempotency_key
from brickvest.utils.helpers import utc_now
from tests.conftest import auth_headers, create_user, fund_wallet


async def _payout_user(db, email="payee@example.com"):
    return await create_user(
        db,
        email=email,
        name="Pat Payee",
        stripe_connect_account_id="acct_payee",
        connect_payouts_enabled=True,
    )


async def test_withdrawal_settles_and_debits_wallet(client, db, gateway):
    user = await _payout_user(db)
    await fund_wallet(db, user, "200.00")

    response = await client.post(
        "/api/payments/withdraw", json={"amount": "100.00"}, headers=auth_headers(user)
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "completed"
    assert body["balance"] == "100.00"
    assert body["fee"] == "0.25"
    assert body["transaction"]["amount"] == "-100.00"
    assert body["transaction"]["status"] == "completed"
    assert body["transaction"]["settlement_state"] == "settled"

    transfers = gateway.calls_to("create_transfer")
    assert len(transfers) == 1
    assert transfers[0]["destination"] == "acct_payee"
    assert transfers[0]["amount"] == Decimal("99.75")
    assert transfers[0]["idempotency_key"] == transfer_idempotency_key(body["transaction"]["id"])

    ledger = LedgerService(db)
    wallet = await ledger.get_wallet(user.id)
    assert wallet.balance == Decimal("100.00")
    assert await ledger.ledger_balance(user.id) == wallet.balance


async def test_withdrawal_over_balance_is_rejected_without_side_effects(client, db, gateway):
    user = await _payout_user(db)
    await fund_wallet(db, user, "40.00")

    response = await client.post(
        "/api/payments/withdraw", json={"amount": "40.01"}, headers=auth_headers(user)
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Insufficient balance"
    assert gateway.calls_to("create_transfer") == []
    wallet = await LedgerService(db).get_wallet(user.id)
    assert wallet.balance == Decimal("40.00")


async def test_withdrawal_below_minimum_is_invalid(client, db):
    user = await _payout_user(db)
    await fund_wallet(db, user, "40.00")

    response = await client.post(
        "/api/payments/withdraw", json={"amount": "0.50"}, headers=auth_headers(user)
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid amount"


async def test_withdrawal_without_payout_account_returns_onboarding_link(client, db, gateway):
    user = await create_user(db, email="new@example.com")
    await fund_wallet(db, user, "80.00")

    response = await client.post(
        "/api/payments/withdraw", json={"amount": "50.00"}, headers=auth_headers(user)
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "onboarding_required"
    assert body["url"].startswith("https://connect.stripe.test/")
    assert body["transaction"] is None
    assert gateway.calls_to("create_connect_account") == [
        {"email": "new@example.com", "user_id": user.id}
    ]
    assert gateway.calls_to("create_transfer") == []
    wallet = await LedgerService(db).get_wallet(user.id)
    assert wallet.balance == Decimal("80.00")


async def test_withdrawal_with_unverified_account_requires_verification(client, db, gateway):
    user = await create_user(db, email="pending@example.com", stripe_connect_account_id="acct_p")
    await fund_wallet(db, user, "80.00")
    gateway.account["payouts_enabled"] = False

    response = await client.post(
        "/api/payments/withdraw", json={"amount": "50.00"}, headers=auth_headers(user)
    )

    assert response.status_code == 200
    assert response.json()["status"] == "verification_required"
    assert gateway.calls_to("create_transfer") == []


async def test_rejected_transfer_reverses_the_reservation(client, db, gateway):
    user = await _payout_user(db)
    await fund_wallet(db, user, "120.00")
    gateway.transfer_error = GatewayError("Insufficient funds in platform account")

    response = await client.post(
        "/api/payments/withdraw", json={"amount": "100.00"}, headers=auth_headers(user)
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Insufficient funds in platform account"

    ledger = LedgerService(db)
    wallet = await ledger.get_wallet(user.id)
    assert wallet.balance == Decimal("120.00")
    assert await ledger.ledger_balance(user.id) == wallet.balance

    page = await client.get("/api/wallet/transactions", headers=auth_headers(user))
    withdrawals = [t for t in page.json()["items"] if t["type"] == "withdrawal"]
    assert len(withdrawals) == 1
    assert withdrawals[0]["status"] == "failed"
    assert withdrawals[0]["settlement_state"] == "reversed"


async def test_unknown_transfer_outcome_stays_reserved_until_completed(client, db, gateway):
    user = await _payout_user(db)
    await fund_wallet(db, user, "150.00")
    gateway.transfer_error = GatewayError("Payment processor timed out", retryable=True)
    headers = auth_headers(user)

    response = await client.post("/api/payments/withdraw", json={"amount": "50.00"}, headers=headers)

    assert response.status_code == 202
    body = response.json()
    assert body["status"] == "processing"
    assert body["transaction"]["settlement_state"] == "submitted"
    # Funds stay reserved while the outcome is unknown
    ledger = LedgerService(db)
    wallet = await ledger.get_wallet(user.id)
    assert wallet.balance == Decimal("100.00")
    assert await ledger.ledger_balance(user.id) == wallet.balance

    # Retrying reuses the same idempotency key
    gateway.transfer_error = None
    withdrawal_id = body["transaction"]["id"]
    response = await client.post(f"/api/payments/withdraw/{withdrawal_id}/complete", headers=headers)

    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    keys = {call["idempotency_key"] for call in gateway.calls_to("create_transfer")}
    assert keys == {transfer_idempotency_key(withdrawal_id)}
    wallet = await ledger.get_wallet(user.id)
    assert wallet.balance == Decimal("100.00")


async def test_get_withdrawal_status_is_scoped_to_owner(client, db, gateway):
    user = await _payout_user(db)
    other = await _payout_user(db, email="other@example.com")
    await fund_wallet(db, user, "60.00")

    response = await client.post(
        "/api/payments/withdraw", json={"amount": "10.00"}, headers=auth_headers(user)
    )
    withdrawal_id = response.json()["transaction"]["id"]

    response = await client.get(f"/api/payments/withdraw/{withdrawal_id}", headers=auth_headers(user))
    assert response.status_code == 200
    assert response.json()["status"] == "completed"

    response = await client.get(
        f"/api/payments/withdraw/{withdrawal_id}", headers=auth_headers(other)
    )
    assert response.status_code == 404
    assert response.json()["error"] == "Withdrawal not found"


async def test_reconcile_stuck_withdrawals_redrives_old_entries(db, gateway):
    user = await _payout_user(db)
    await fund_wallet(db, user, "90.00")
    gateway.transfer_error = GatewayError("connection reset", retryable=True)

    service = WithdrawalService(db, gateway)
    outcome = await service.request_withdrawal(user, Decimal("30.00"))
    assert outcome["status"] == "processing"
    entry: Transaction = outcome["transaction"]

    # Too recent to be picked up
    stats = await service.reconcile_stuck_withdrawals(older_than_seconds=300)
    assert stats["checked"] == 0

    entry.updated_at = utc_now() - timedelta(minutes=10)
    db.add(entry)
    await db.commit()
    gateway.transfer_error = None

    stats = await service.reconcile_stuck_withdrawals(older_than_seconds=300)

    assert stats == {"checked": 1, "settled": 1, "reversed": 0, "pending": 0}
    await db.refresh(entry)
    assert entry.status == TransactionStatus.COMPLETED
    assert entry.settlement_state == SettlementState.SETTLED
    assert entry.gateway_ref == f"tr_{transfer_idempotency_key(entry.id)}"
