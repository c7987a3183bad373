"""Wallet repository with atomic balance updates."""

import uuid
from decimal import Decimal

from sqlalchemy import select, update

from app.models.wallet import Wallet
from app.repositories.base import BaseRepository


class WalletRepository(BaseRepository[Wallet]):
    """Repository for Wallet model.

    Balance changes are issued as single UPDATE statements computed by the
    database (``balance = balance +/- :amount``) so concurrent writers never
    overwrite each other with a stale read.

    Example:
        >>> repo = WalletRepository(Wallet, db)
        >>> debited = await repo.debit(wallet_id, Decimal("100.00"))
    """

    async def get_by_account_id(self, account_id: uuid.UUID) -> list[Wallet]:
        """Get all wallets owned by an account, ordered by currency."""
        result = await self.db.execute(
            select(Wallet).where(Wallet.account_id == account_id).order_by(Wallet.currency)
        )
        return list(result.scalars().all())

    async def debit(self, wallet_id: uuid.UUID, amount: Decimal) -> bool:
        """Subtract ``amount`` if, and only if, the balance covers it.

        Args:
            wallet_id: Wallet to debit
            amount: Positive amount to subtract

        Returns:
            True if the row was updated, False if the balance was too low
            (or the wallet vanished) at the time of the write

        Note:
            Caller must commit the transaction.
        """
        result = await self.db.execute(
            update(Wallet)
            .where(Wallet.id == wallet_id, Wallet.balance >= amount)
            .values(balance=Wallet.balance - amount)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def credit(self, wallet_id: uuid.UUID, amount: Decimal) -> bool:
        """Add ``amount`` to the balance.

        Returns:
            True if the row was updated

        Note:
            Caller must commit the transaction.
        """
        result = await self.db.execute(
            update(Wallet)
            .where(Wallet.id == wallet_id)
            .values(balance=Wallet.balance + amount)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
