"""Schemas package."""

from app.schemas.locked_conversion import (
    LockedConversionCreate,
    LockedConversionDetail,
    LockedConversionResponse,
    LockedConversionWithWallets,
    UnlockResponse,
)
from app.schemas.transaction import TransactionResponse, TransactionWithLockedConversion
from app.schemas.wallet import WalletResponse

__all__ = [
    # Wallet schemas
    "WalletResponse",
    # Locked conversion schemas
    "LockedConversionCreate",
    "LockedConversionDetail",
    "LockedConversionResponse",
    "LockedConversionWithWallets",
    "UnlockResponse",
    # Transaction schemas
    "TransactionResponse",
    "TransactionWithLockedConversion",
]
