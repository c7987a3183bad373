"""Locked conversion schemas for request/response validation."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.constants import LockedConversionConstants
from app.models.locked_conversion import LockedConversionStatus
from app.schemas.common import UTCDatetime
from app.schemas.wallet import WalletResponse


class LockedConversionCreate(BaseModel):
    """Schema for creating a locked conversion."""

    source_wallet_id: UUID
    target_wallet_id: UUID
    source_amount: Decimal = Field(..., gt=0, decimal_places=2)
    lock_period_months: int = Field(
        ...,
        gt=0,
        le=LockedConversionConstants.MAX_LOCK_PERIOD_MONTHS,
        description="Whole calendar months to lock for",
    )


class LockedConversionResponse(BaseModel):
    """Schema for locked conversion response."""

    id: UUID
    account_id: UUID
    source_wallet_id: UUID
    target_wallet_id: UUID
    source_currency: str
    target_currency: str
    source_amount: Decimal
    target_amount: Decimal
    exchange_rate: Decimal
    fee: Decimal
    fee_percentage: Decimal
    status: LockedConversionStatus
    lock_date: UTCDatetime
    unlock_date: UTCDatetime
    actual_unlock_date: UTCDatetime | None = None
    created_at: UTCDatetime

    model_config = {"from_attributes": True}


class LockedConversionWithWallets(LockedConversionResponse):
    """Locked conversion with both wallets attached for display."""

    source_wallet: WalletResponse
    target_wallet: WalletResponse


class LockedConversionDetail(BaseModel):
    """Locked conversion with the current market rate, if it could be fetched."""

    locked_conversion: LockedConversionWithWallets
    current_rate: Decimal | None = None
    rate_difference: Decimal | None = Field(
        None, description="Percent change of the current rate relative to the locked rate"
    )
    can_unlock: bool

    model_config = {"from_attributes": True}


class UnlockResponse(BaseModel):
    """Schema for a successful unlock."""

    success: bool = True
    locked_conversion: LockedConversionWithWallets
    target_wallet: WalletResponse

    model_config = {"from_attributes": True}
