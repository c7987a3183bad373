"""Locked conversion repository, including the status compare-and-swap."""

import uuid
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import selectinload

from app.models.locked_conversion import LockedConversion, LockedConversionStatus
from app.repositories.base import BaseRepository


class LockedConversionRepository(BaseRepository[LockedConversion]):
    """Repository for LockedConversion model.

    Example:
        >>> repo = LockedConversionRepository(LockedConversion, db)
        >>> conversion = await repo.get_with_wallets(conversion_id)
    """

    async def get_with_wallets(
        self,
        id: uuid.UUID,
        *,
        refresh: bool = False,
    ) -> LockedConversion | None:
        """Get a locked conversion with both wallets eagerly loaded.

        Args:
            id: Locked conversion ID
            refresh: Overwrite any instance already held by the session
                with the row as currently stored

        Returns:
            LockedConversion if found, None otherwise
        """
        stmt = (
            select(LockedConversion)
            .where(LockedConversion.id == id)
            .options(
                selectinload(LockedConversion.source_wallet),
                selectinload(LockedConversion.target_wallet),
            )
        )
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_account_id(
        self,
        account_id: uuid.UUID,
        *,
        status: LockedConversionStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[LockedConversion]:
        """Get an account's locked conversions, newest first.

        Args:
            account_id: Owning account
            status: Optional status filter
            skip: Number of records to skip (offset)
            limit: Maximum number of records to return

        Returns:
            Locked conversions with both wallets loaded
        """
        stmt = (
            select(LockedConversion)
            .where(LockedConversion.account_id == account_id)
            .options(
                selectinload(LockedConversion.source_wallet),
                selectinload(LockedConversion.target_wallet),
            )
            .order_by(LockedConversion.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        if status is not None:
            stmt = stmt.where(LockedConversion.status == status)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def mark_unlocked(self, id: uuid.UUID, unlocked_at: datetime) -> bool:
        """Move an ACTIVE conversion to UNLOCKED.

        The UPDATE only matches while the row is still ACTIVE, so of two
        concurrent callers exactly one sees an updated row.

        Returns:
            True if this call performed the transition

        Note:
            Caller must commit the transaction.
        """
        result = await self.db.execute(
            update(LockedConversion)
            .where(
                LockedConversion.id == id,
                LockedConversion.status == LockedConversionStatus.ACTIVE,
            )
            .values(status=LockedConversionStatus.UNLOCKED, actual_unlock_date=unlocked_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
