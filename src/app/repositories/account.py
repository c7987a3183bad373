"""Account repository for identity lookups."""

from sqlalchemy import select

from app.models.account import Account
from app.repositories.base import BaseRepository


class AccountRepository(BaseRepository[Account]):
    """Repository for Account model.

    Example:
        >>> repo = AccountRepository(Account, db)
        >>> account = await repo.get_by_email("alice@example.com")
    """

    async def get_by_email(self, email: str) -> Account | None:
        """Get an account by its (case-insensitive) email address.

        Args:
            email: Email address carried in the caller's token

        Returns:
            Account if found, None otherwise
        """
        result = await self.db.execute(select(Account).where(Account.email.ilike(email)))
        return result.scalar_one_or_none()
