"""Dividend distribution and pro-rata preview."""

from decimal import Decimal

from sqlmodel import func, select

from brickvest.models.transaction import Transaction, TransactionType
from brickvest.services.ledger_service import LedgerService
from brickvest.services.project_service import ProjectService
from tests.conftest import auth_headers, create_project, create_user, fund_wallet


async def test_admin_distributes_dividends_to_wallets(client, db, admin, investor):
    second = await create_user(db, email="second@example.com", name="Sam Second")
    await fund_wallet(db, investor, "10.00")
    project = await create_project(db)

    response = await client.post(
        f"/api/projects/{project.id}/dividend",
        json={"dividends": {str(investor.id): "25.50", str(second.id): "4.50"}},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == "30.00"
    assert body["recipients"] == 2
    assert {t["type"] for t in body["transactions"]} == {"dividend"}

    ledger = LedgerService(db)
    assert (await ledger.get_wallet(investor.id)).balance == Decimal("35.50")
    # Recipient without a wallet gets one
    assert (await ledger.get_wallet(second.id)).balance == Decimal("4.50")
    for user in (investor, second):
        assert await ledger.ledger_balance(user.id) == (await ledger.get_wallet(user.id)).balance


async def test_non_admin_cannot_distribute(client, db, investor):
    project = await create_project(db)

    response = await client.post(
        f"/api/projects/{project.id}/dividend",
        json={"dividends": {str(investor.id): "5.00"}},
        headers=auth_headers(investor),
    )

    assert response.status_code == 403


async def test_unknown_recipient_aborts_whole_batch(client, db, admin, investor):
    await fund_wallet(db, investor, "10.00")
    project = await create_project(db)

    response = await client.post(
        f"/api/projects/{project.id}/dividend",
        json={"dividends": {str(investor.id): "5.00", "424242": "5.00"}},
        headers=auth_headers(admin),
    )

    assert response.status_code == 404
    assert response.json()["error"] == "User 424242 not found"
    assert (await LedgerService(db).get_wallet(investor.id)).balance == Decimal("10.00")
    count = await db.execute(
        select(func.count()).select_from(Transaction).where(
            Transaction.type == TransactionType.DIVIDEND
        )
    )
    assert count.scalar() == 0


async def test_non_positive_amount_aborts_whole_batch(client, db, admin, investor):
    project = await create_project(db)

    response = await client.post(
        f"/api/projects/{project.id}/dividend",
        json={"dividends": {str(investor.id): "-1.00"}},
        headers=auth_headers(admin),
    )

    assert response.status_code == 400
    assert await LedgerService(db).get_wallet(investor.id) is None


async def test_preview_splits_pro_rata_and_assigns_remainder(db, admin):
    project = await create_project(db, target="10000.00")
    big = await create_user(db, email="big@example.com")
    small = await create_user(db, email="small@example.com")
    await fund_wallet(db, big, "1000.00")
    await fund_wallet(db, small, "1000.00")

    service = ProjectService(db)
    await service.invest(big, project.id, Decimal("200.00"))
    await service.invest(small, project.id, Decimal("100.00"))

    preview = await service.preview_dividends(project.id, Decimal("100.00"))

    assert preview["total_invested"] == Decimal("300.00")
    shares = {s["user_id"]: s["amount"] for s in preview["shares"]}
    # 66.666.. and 33.333.. round down; the extra cent goes to the largest investor
    assert shares == {big.id: Decimal("66.67"), small.id: Decimal("33.33")}
    assert sum(shares.values()) == Decimal("100.00")


async def test_preview_endpoint_is_admin_only(client, db, admin, investor):
    project = await create_project(db)

    response = await client.get(
        f"/api/projects/{project.id}/dividend/preview",
        params={"total": "50"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 200
    assert response.json()["shares"] == []

    response = await client.get(
        f"/api/projects/{project.id}/dividend/preview",
        params={"total": "50"},
        headers=auth_headers(investor),
    )
    assert response.status_code == 403
