"""Wallet schemas."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel

from app.schemas.common import UTCDatetime


class WalletResponse(BaseModel):
    """Schema for wallet response."""

    id: UUID
    account_id: UUID
    name: str
    currency: str
    balance: Decimal
    created_at: UTCDatetime
    updated_at: UTCDatetime

    model_config = {"from_attributes": True}
