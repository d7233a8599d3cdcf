"""Deposit tests: checkout, webhook settlement and the success redirect."""

import json
from decimal import Decimal
from types import SimpleNamespace

from brickvest.services.ledger_service import LedgerService
from tests.conftest import auth_headers, signed


def checkout_completed(user, session_id="cs_live_1", cents=5000, status="paid") -> dict:
    return {
        "id": f"evt_{session_id}",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "object": "checkout.session",
                "payment_status": status,
                "amount_total": cents,
                "payment_intent": f"pi_{session_id}",
                "metadata": {"user_id": str(user.id), "user_email": user.email, "type": "deposit"},
            }
        },
    }


async def test_create_checkout_returns_hosted_page(client, investor, gateway):
    response = await client.post(
        "/api/payments/create-checkout", json={"amount": "25.00"}, headers=auth_headers(investor)
    )

    assert response.status_code == 200
    body = response.json()
    assert body["session_id"].startswith("cs_test_")
    assert body["url"].endswith(body["session_id"])

    call = gateway.calls_to("create_checkout_session")[0]
    assert call["amount"] == Decimal("25.00")
    assert call["metadata"] == {"user_id": investor.id, "user_email": investor.email, "type": "deposit"}
    assert call["success_url"].endswith("/api/payments/success?session_id={CHECKOUT_SESSION_ID}")


async def test_create_checkout_rejects_invalid_amount(client, investor, gateway):
    response = await client.post(
        "/api/payments/create-checkout", json={"amount": "0"}, headers=auth_headers(investor)
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid amount"
    assert gateway.calls == []


async def test_create_checkout_rejects_amount_beyond_ledger_precision(client, investor, gateway):
    for amount in ("1e30", "25.001"):
        response = await client.post(
            "/api/payments/create-checkout", json={"amount": amount}, headers=auth_headers(investor)
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"
    assert gateway.calls == []


async def test_webhook_credits_deposit_exactly_once(client, db, investor):
    payload, headers = signed(checkout_completed(investor))

    first = await client.post("/api/payments/webhook", content=payload, headers=headers)
    second = await client.post("/api/payments/webhook", content=payload, headers=headers)

    assert first.status_code == 200
    assert first.json() == {"received": True}
    assert second.status_code == 200

    ledger = LedgerService(db)
    wallet = await ledger.get_wallet(investor.id)
    assert wallet.balance == Decimal("50.00")
    assert await ledger.ledger_balance(investor.id) == Decimal("50.00")
    entry = await ledger.get_by_reference("cs_live_1")
    assert entry.gateway_ref == "pi_cs_live_1"


async def test_webhook_with_bad_signature_is_rejected(client, db, investor):
    payload, headers = signed(checkout_completed(investor), secret="whsec_attacker")

    response = await client.post("/api/payments/webhook", content=payload, headers=headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid signature"
    assert await LedgerService(db).get_wallet(investor.id) is None


async def test_webhook_without_signature_header_is_rejected(client, investor):
    payload = json.dumps(checkout_completed(investor)).encode()

    response = await client.post("/api/payments/webhook", content=payload)

    assert response.status_code == 400
    assert response.json()["error"] == "Missing stripe-signature header"


async def test_unpaid_session_is_not_credited(client, db, investor):
    payload, headers = signed(checkout_completed(investor, status="unpaid"))

    response = await client.post("/api/payments/webhook", content=payload, headers=headers)

    assert response.status_code == 200
    assert await LedgerService(db).get_wallet(investor.id) is None


async def test_success_redirect_settles_and_later_webhook_is_a_no_op(client, db, investor, gateway):
    event = checkout_completed(investor, session_id="cs_redirect", cents=12550)
    gateway.sessions["cs_redirect"] = event["data"]["object"]

    response = await client.get("/api/payments/success", params={"session_id": "cs_redirect"})

    assert response.status_code == 303
    assert response.headers["location"].endswith("/wallet?success=true")

    payload, headers = signed(event)
    await client.post("/api/payments/webhook", content=payload, headers=headers)

    wallet = await LedgerService(db).get_wallet(investor.id)
    assert wallet.balance == Decimal("125.50")


async def test_success_redirect_for_unknown_session_reports_error(client):
    response = await client.get("/api/payments/success", params={"session_id": "cs_missing"})

    assert response.status_code == 303
    assert response.headers["location"].endswith("/wallet?error=true")


async def test_failed_deposit_payment_is_recorded_without_balance_change(client, db, investor):
    event = {
        "id": "evt_failed",
        "type": "payment_intent.payment_failed",
        "data": {
            "object": {
                "id": "pi_declined",
                "amount": 3000,
                "metadata": {"user_id": str(investor.id), "type": "deposit"},
                "last_payment_error": {"message": "Your card was declined."},
            }
        },
    }
    payload, headers = signed(event)

    response = await client.post("/api/payments/webhook", content=payload, headers=headers)

    assert response.status_code == 200
    ledger = LedgerService(db)
    entry = await ledger.get_by_reference("failed-pi_declined")
    assert entry.status.value == "failed"
    assert entry.amount == Decimal("30.00")
    assert await ledger.ledger_balance(investor.id) == Decimal("0.00")


async def test_unhandled_event_types_are_acknowledged(client):
    payload, headers = signed({"id": "evt_x", "type": "customer.created", "data": {"object": {}}})

    response = await client.post("/api/payments/webhook", content=payload, headers=headers)

    assert response.status_code == 200
    assert response.json() == {"received": True}


async def test_deposit_for_unknown_user_is_acknowledged_without_credit(client, db):
    ghost = SimpleNamespace(id=9999, email="ghost@example.com")
    payload, headers = signed(checkout_completed(ghost, session_id="cs_ghost"))

    response = await client.post("/api/payments/webhook", content=payload, headers=headers)

    assert response.status_code == 200
    assert response.json() == {"received": True}
    assert await LedgerService(db).get_by_reference("cs_ghost") is None
