"""Repository layer for database operations.

This package provides the repository pattern implementation, centralizing
all database access logic and providing a clean separation of concerns
between data access and business logic.

Repositories:
    - BaseRepository: Generic CRUD operations for any model
    - AccountRepository: Account lookups by email
    - WalletRepository: Wallet queries and atomic balance updates
    - LockedConversionRepository: Locked conversion queries and status transition
    - TransactionRepository: Ledger inserts and per-wallet queries

Usage:
    >>> from app.repositories import WalletRepository
    >>> from app.models.wallet import Wallet
    >>>
    >>> wallet_repo = WalletRepository(Wallet, db)
    >>> wallets = await wallet_repo.get_by_account_id(account.id)
"""

from app.repositories.account import AccountRepository
from app.repositories.base import BaseRepository
from app.repositories.locked_conversion import LockedConversionRepository
from app.repositories.transaction import TransactionRepository
from app.repositories.wallet import WalletRepository

__all__ = [
    "BaseRepository",
    "AccountRepository",
    "WalletRepository",
    "LockedConversionRepository",
    "TransactionRepository",
]
