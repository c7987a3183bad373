"""ORM models. Importing this package registers every table on ``Base.metadata``."""

from app.models.account import Account
from app.models.locked_conversion import LockedConversion, LockedConversionStatus
from app.models.transaction import Transaction, TransactionType
from app.models.wallet import Wallet

__all__ = [
    "Account",
    "LockedConversion",
    "LockedConversionStatus",
    "Transaction",
    "TransactionType",
    "Wallet",
]
