"""Fee Configuration Service - fee tiers and fee resolution."""

from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from brickvest.core.config import get_settings
from brickvest.core.exceptions import ConflictError, NotFoundError, ValidationError
from brickvest.models.fee_config import FeeConfig
from brickvest.models.user import User
from brickvest.utils.helpers import utc_now


def settings_fee_config() -> FeeConfig:
    """Transient tier built from settings, used when no tier is stored."""
    settings = get_settings()
    return FeeConfig(
        name="Settings default",
        platform_fee_percent=settings.platform_fee_percent,
        processor_fee_percent=settings.processor_fee_percent,
        processor_fee_fixed=settings.processor_fee_fixed,
        payout_fee_percent=settings.payout_fee_percent,
        is_default=True,
    )


class FeeConfigService:
    """Service for fee configuration business logic."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_fee_configs(self) -> list[FeeConfig]:
        result = await self.db.execute(select(FeeConfig).order_by(FeeConfig.id))
        return list(result.scalars().all())

    async def get_fee_config(self, fee_config_id: int) -> FeeConfig:
        fee_config = await self.db.get(FeeConfig, fee_config_id)
        if not fee_config:
            raise NotFoundError(f"Fee configuration {fee_config_id} not found")
        return fee_config

    async def get_default_fee_config(self) -> FeeConfig | None:
        result = await self.db.execute(
            select(FeeConfig).where(FeeConfig.is_default == True)  # noqa: E712
        )
        return result.scalars().first()

    async def resolve_for_user(self, user: User | None) -> FeeConfig:
        """Fee tier that applies to a user.

        Order: the user's assigned tier, the default tier, then settings.
        """
        if user is not None and user.fee_config_id:
            fee_config = await self.db.get(FeeConfig, user.fee_config_id)
            if fee_config:
                return fee_config
        return await self.get_default_fee_config() or settings_fee_config()

    async def create_fee_config(self, data: dict[str, Any]) -> FeeConfig:
        """Create new fee configuration.

        Raises:
            ConflictError: If name already exists
        """
        result = await self.db.execute(select(FeeConfig).where(FeeConfig.name == data.get("name")))
        if result.scalar_one_or_none():
            raise ConflictError(f"Fee configuration with name '{data.get('name')}' already exists")

        if data.get("is_default"):
            await self._clear_default()

        fee_config = FeeConfig(**data)
        self.db.add(fee_config)
        await self.db.commit()
        await self.db.refresh(fee_config)
        return fee_config

    async def update_fee_config(self, fee_config_id: int, data: dict[str, Any]) -> FeeConfig:
        fee_config = await self.get_fee_config(fee_config_id)

        if data.get("name") and data.get("name") != fee_config.name:
            result = await self.db.execute(
                select(FeeConfig).where(FeeConfig.name == data.get("name"))
            )
            if result.scalar_one_or_none():
                raise ConflictError(
                    f"Fee configuration with name '{data.get('name')}' already exists"
                )

        if data.get("is_default"):
            await self._clear_default(exclude_id=fee_config_id)

        for field, value in data.items():
            setattr(fee_config, field, value)
        fee_config.updated_at = utc_now()

        self.db.add(fee_config)
        await self.db.commit()
        await self.db.refresh(fee_config)
        return fee_config

    async def assign_to_user(self, user_id: int, fee_config_id: int | None) -> User:
        """Assign a tier to a creator (None resets to the default tier)."""
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        if fee_config_id is not None:
            await self.get_fee_config(fee_config_id)

        user.fee_config_id = fee_config_id
        user.updated_at = utc_now()
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def calculate(self, amount: Decimal, creator: User | None) -> dict[str, Any]:
        """Fee breakdown for a card-funded investment of ``amount``."""
        if amount <= 0:
            raise ValidationError("Invalid amount")
        fee_config = await self.resolve_for_user(creator)
        platform_fee = fee_config.calculate_platform_fee(amount)
        return {
            "amount": amount,
            "platform_fee": platform_fee,
            "processor_fee": fee_config.calculate_processor_fee(amount),
            "payout_fee": fee_config.calculate_payout_fee(amount),
            "creator_receives": amount - platform_fee,
            "fee_config_name": fee_config.name,
        }

    async def _clear_default(self, exclude_id: int | None = None) -> None:
        query = select(FeeConfig).where(FeeConfig.is_default == True)  # noqa: E712
        if exclude_id is not None:
            query = query.where(FeeConfig.id != exclude_id)
        result = await self.db.execute(query)
        for existing in result.scalars().all():
            existing.is_default = False
            self.db.add(existing)
