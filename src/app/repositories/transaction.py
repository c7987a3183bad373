"""Transaction repository for the append-only ledger."""

import uuid
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.models.transaction import Transaction
from app.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Repository for Transaction model.

    Only inserts and reads are exposed; ledger rows are never updated or deleted.
    """

    def append(self, transaction: Transaction) -> Transaction:
        """Stage a ledger entry in the current unit of work.

        Note:
            Caller must commit the transaction.
        """
        self.db.add(transaction)
        return transaction

    async def get_by_wallet_ids(
        self,
        wallet_ids: Sequence[uuid.UUID],
        *,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Transaction]:
        """Get transactions for the given wallets, newest first.

        Each transaction comes with its locked conversion (if any) loaded for
        display.
        """
        if not wallet_ids:
            return []
        result = await self.db.execute(
            select(Transaction)
            .where(Transaction.wallet_id.in_(wallet_ids))
            .options(selectinload(Transaction.locked_conversion))
            .order_by(Transaction.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())
