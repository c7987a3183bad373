"""Read-only queries over the transaction ledger.

Aggregates transactions per wallet or across all wallets of an account. No
business rules live here beyond ownership checks.
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthorizationError, NotFoundError
from app.db.session import read_only_transaction
from app.models.transaction import Transaction
from app.models.wallet import Wallet
from app.repositories.transaction import TransactionRepository
from app.repositories.wallet import WalletRepository

logger = logging.getLogger(__name__)


class LedgerQueryService:
    """Transaction history for the calling account."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.wallets = WalletRepository(Wallet, db)
        self.transactions = TransactionRepository(Transaction, db)

    async def list_wallet_transactions(
        self,
        caller_account_id: uuid.UUID,
        wallet_id: uuid.UUID,
        *,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Transaction]:
        """Transactions of one wallet, newest first.

        Raises:
            NotFoundError: The wallet does not exist
            AuthorizationError: The wallet belongs to another account
        """
        async with read_only_transaction(self.db):
            wallet = await self.wallets.get(wallet_id)
            if wallet is None:
                raise NotFoundError("Wallet not found")
            if wallet.account_id != caller_account_id:
                raise AuthorizationError("Wallet belongs to another account")

            return await self.transactions.get_by_wallet_ids([wallet.id], skip=skip, limit=limit)

    async def list_account_transactions(
        self,
        caller_account_id: uuid.UUID,
        *,
        wallet_id: uuid.UUID | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Transaction]:
        """Transactions across the caller's wallets, newest first.

        When ``wallet_id`` is given the result is narrowed to that wallet,
        with the same ownership checks as ``list_wallet_transactions``.
        """
        if wallet_id is not None:
            return await self.list_wallet_transactions(
                caller_account_id, wallet_id, skip=skip, limit=limit
            )

        async with read_only_transaction(self.db):
            wallets = await self.wallets.get_by_account_id(caller_account_id)
            logger.debug(f"Listing transactions for {len(wallets)} wallets of {caller_account_id}")
            return await self.transactions.get_by_wallet_ids(
                [wallet.id for wallet in wallets], skip=skip, limit=limit
            )
