"""Fee tiers: calculations, admin management and resolution order."""

from decimal import Decimal

import pytest

from brickvest.models.fee_config import FeeConfig
from brickvest.services.fee_config_service import FeeConfigService
from tests.conftest import auth_headers, create_user


class TestFeeConfigCalculations:
    """Test fee calculation methods on the FeeConfig model."""

    @pytest.fixture
    def fee_config(self):
        return FeeConfig(
            name="Standard",
            platform_fee_percent=Decimal("5"),
            processor_fee_percent=Decimal("2.9"),
            processor_fee_fixed=Decimal("0.30"),
            payout_fee_percent=Decimal("0.25"),
        )

    def test_platform_fee(self, fee_config):
        assert fee_config.calculate_platform_fee(Decimal("200")) == Decimal("10.00")

    def test_processor_fee_includes_fixed_part(self, fee_config):
        assert fee_config.calculate_processor_fee(Decimal("200")) == Decimal("6.10")

    def test_payout_fee_rounds_half_up(self, fee_config):
        # 0.25% of 10.00 is 0.025
        assert fee_config.calculate_payout_fee(Decimal("10.00")) == Decimal("0.03")

    def test_zero_percent_tier(self):
        free = FeeConfig(
            name="Free",
            platform_fee_percent=Decimal("0"),
            processor_fee_percent=Decimal("0"),
            processor_fee_fixed=Decimal("0"),
            payout_fee_percent=Decimal("0"),
        )
        assert free.calculate_platform_fee(Decimal("999.99")) == Decimal("0.00")
        assert free.calculate_payout_fee(Decimal("999.99")) == Decimal("0.00")


async def test_resolution_prefers_assigned_then_default_then_settings(db):
    service = FeeConfigService(db)
    creator = await create_user(db, email="tiered@example.com")

    fallback = await service.resolve_for_user(creator)
    assert fallback.id is None
    assert fallback.platform_fee_percent == Decimal("5")

    default = await service.create_fee_config({"name": "Default", "is_default": True})
    partner = await service.create_fee_config(
        {"name": "Partner", "platform_fee_percent": Decimal("2")}
    )
    assert (await service.resolve_for_user(creator)).id == default.id

    await service.assign_to_user(creator.id, partner.id)
    assert (await service.resolve_for_user(creator)).id == partner.id


async def test_new_default_replaces_old_default(db):
    service = FeeConfigService(db)
    first = await service.create_fee_config({"name": "First", "is_default": True})
    second = await service.create_fee_config({"name": "Second", "is_default": True})

    await db.refresh(first)
    assert first.is_default is False
    assert (await service.get_default_fee_config()).id == second.id


# ============ Admin API ============


async def test_admin_creates_lists_and_updates_tiers(client, admin):
    headers = auth_headers(admin)

    response = await client.post(
        "/api/fee-configs",
        json={"name": "Partner", "platform_fee_percent": "2.5", "is_default": True},
        headers=headers,
    )
    assert response.status_code == 201
    tier_id = response.json()["id"]
    assert Decimal(response.json()["platform_fee_percent"]) == Decimal("2.5")

    response = await client.post("/api/fee-configs", json={"name": "Partner"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Fee configuration with name 'Partner' already exists"

    response = await client.patch(
        f"/api/fee-configs/{tier_id}", json={"payout_fee_percent": "1"}, headers=headers
    )
    assert response.status_code == 200
    assert Decimal(response.json()["payout_fee_percent"]) == Decimal("1")
    assert Decimal(response.json()["platform_fee_percent"]) == Decimal("2.5")

    listing = (await client.get("/api/fee-configs", headers=headers)).json()
    assert [t["name"] for t in listing] == ["Partner"]

    missing = await client.get("/api/fee-configs/999", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["error"] == "Fee configuration 999 not found"


async def test_fee_endpoints_are_admin_only(client, investor):
    response = await client.get("/api/fee-configs", headers=auth_headers(investor))

    assert response.status_code == 403
    assert response.json()["error"] == "Admin access required"


async def test_rejects_out_of_range_percent(client, admin):
    response = await client.post(
        "/api/fee-configs",
        json={"name": "Greedy", "platform_fee_percent": "150"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 400


async def test_calculate_uses_creator_tier(client, db, admin, creator):
    service = FeeConfigService(db)
    partner = await service.create_fee_config(
        {"name": "Partner", "platform_fee_percent": Decimal("2")}
    )
    headers = auth_headers(admin)

    response = await client.post(
        "/api/fee-configs/assign",
        json={"user_id": creator.id, "fee_config_id": partner.id},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["id"] == creator.id

    response = await client.post(
        "/api/fee-configs/calculate",
        json={"amount": "100", "creator_id": creator.id},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json() == {
        "amount": "100.00",
        "platform_fee": "2.00",
        "processor_fee": "3.20",
        "payout_fee": "0.25",
        "creator_receives": "98.00",
        "fee_config_name": "Partner",
    }

    response = await client.post(
        "/api/fee-configs/calculate",
        json={"amount": "100", "creator_id": 4242},
        headers=headers,
    )
    assert response.status_code == 404


async def test_assign_unknown_tier(client, admin, creator):
    response = await client.post(
        "/api/fee-configs/assign",
        json={"user_id": creator.id, "fee_config_id": 77},
        headers=auth_headers(admin),
    )

    assert response.status_code == 404
