"""Base repository with common CRUD operations.

Provides generic database operations that can be inherited by model-specific
repositories. Uses SQLAlchemy 2.0's async API with proper type hints.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import Base

# Generic type for SQLAlchemy models
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with common CRUD operations.

    Repositories do NOT manage transactions - the caller is responsible for
    commit/rollback (see ``app.db.session.transactional``).

    Type Parameters:
        ModelType: The SQLAlchemy model class

    Example:
        >>> class WalletRepository(BaseRepository[Wallet]):
        ...     pass
        >>>
        >>> repo = WalletRepository(Wallet, db)
        >>> wallet = await repo.get(wallet_id)
    """

    def __init__(self, model: type[ModelType], db: AsyncSession):
        """Initialize repository.

        Args:
            model: The SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    async def get(self, id: Any) -> ModelType | None:
        """Get a single record by primary key.

        Args:
            id: Primary key value

        Returns:
            Model instance if found, None otherwise
        """
        result = await self.db.execute(
            select(self.model).where(self.model.id == id)  # type: ignore[attr-defined]
        )
        return result.scalar_one_or_none()

    async def refresh(self, db_obj: ModelType) -> ModelType:
        """Reload a record's column values from the database."""
        await self.db.refresh(db_obj)
        return db_obj
