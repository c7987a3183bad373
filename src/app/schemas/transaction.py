"""Transaction (ledger entry) schemas."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel

from app.models.transaction import TransactionType
from app.schemas.common import UTCDatetime
from app.schemas.locked_conversion import LockedConversionResponse


class TransactionResponse(BaseModel):
    """Schema for transaction response."""

    id: UUID
    type: TransactionType
    amount: Decimal
    currency: str
    wallet_id: UUID
    source_wallet_id: UUID | None = None
    exchange_rate: Decimal | None = None
    locked_conversion_id: UUID | None = None
    created_at: UTCDatetime

    model_config = {"from_attributes": True}


class TransactionWithLockedConversion(TransactionResponse):
    """Transaction with its locked conversion attached, when it references one."""

    locked_conversion: LockedConversionResponse | None = None
