"""Fee configuration API endpoints. Admin only."""

from fastapi import APIRouter, status

from brickvest.api.deps import AdminUser, DbSession
from brickvest.core.exceptions import NotFoundError
from brickvest.models.fee_config import FeeConfig
from brickvest.models.user import User
from brickvest.schemas.fee_config import (
    FeeCalculationRequest,
    FeeCalculationResponse,
    FeeConfigAssign,
    FeeConfigCreate,
    FeeConfigResponse,
    FeeConfigUpdate,
)
from brickvest.schemas.user import UserResponse
from brickvest.services.fee_config_service import FeeConfigService

router = APIRouter(prefix="/fee-configs", tags=["Fee Configurations"])


@router.get("", response_model=list[FeeConfigResponse])
async def list_fee_configs(admin: AdminUser, db: DbSession) -> list[FeeConfig]:
    return await FeeConfigService(db).list_fee_configs()


@router.post("", response_model=FeeConfigResponse, status_code=status.HTTP_201_CREATED)
async def create_fee_config(data: FeeConfigCreate, admin: AdminUser, db: DbSession) -> FeeConfig:
    """Create a fee tier.

    If is_default is True, every other tier stops being the default.
    """
    return await FeeConfigService(db).create_fee_config(data.model_dump())


@router.post("/calculate", response_model=FeeCalculationResponse)
async def calculate_fees(
    data: FeeCalculationRequest, admin: AdminUser, db: DbSession
) -> FeeCalculationResponse:
    """Fee breakdown for an amount under a creator's tier (or the default tier)."""
    creator = None
    if data.creator_id is not None:
        creator = await db.get(User, data.creator_id)
        if creator is None:
            raise NotFoundError("User not found")
    return FeeCalculationResponse(**await FeeConfigService(db).calculate(data.amount, creator))


@router.post("/assign", response_model=UserResponse)
async def assign_fee_config(data: FeeConfigAssign, admin: AdminUser, db: DbSession) -> UserResponse:
    user = await FeeConfigService(db).assign_to_user(data.user_id, data.fee_config_id)
    return UserResponse.from_user(user)


@router.get("/{fee_config_id}", response_model=FeeConfigResponse)
async def get_fee_config(fee_config_id: int, admin: AdminUser, db: DbSession) -> FeeConfig:
    return await FeeConfigService(db).get_fee_config(fee_config_id)


@router.patch("/{fee_config_id}", response_model=FeeConfigResponse)
async def update_fee_config(
    fee_config_id: int, data: FeeConfigUpdate, admin: AdminUser, db: DbSession
) -> FeeConfig:
    return await FeeConfigService(db).update_fee_config(
        fee_config_id, data.model_dump(exclude_unset=True)
    )
