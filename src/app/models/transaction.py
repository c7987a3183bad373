"""Transaction model: append-only ledger entries for balance-affecting events."""

import enum
import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, UUIDPrimaryKeyMixin


class TransactionType(str, enum.Enum):
    """Kinds of balance-affecting events."""

    IMPORT = "IMPORT"
    CONVERT_FROM = "CONVERT_FROM"
    CONVERT_TO = "CONVERT_TO"
    LOCK_FROM = "LOCK_FROM"
    LOCK_TO = "LOCK_TO"
    UNLOCK_FROM = "UNLOCK_FROM"
    UNLOCK_TO = "UNLOCK_TO"


class Transaction(Base, UUIDPrimaryKeyMixin):
    """Immutable ledger entry.

    A negative ``amount`` is a debit of ``wallet_id``; a positive one is a
    credit. ``locked_conversion_id`` is a display back-reference only and is
    never used to rebuild conversion state.
    """

    __tablename__ = "transactions"

    type: Mapped[TransactionType] = mapped_column(Enum(TransactionType))
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    currency: Mapped[str] = mapped_column(String(3))
    wallet_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("wallets.id", ondelete="CASCADE"), index=True
    )
    source_wallet_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("wallets.id", ondelete="SET NULL"), nullable=True
    )
    exchange_rate: Mapped[Decimal | None] = mapped_column(Numeric(18, 8), nullable=True)
    locked_conversion_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("locked_conversions.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )

    # Relationships
    wallet: Mapped["Wallet"] = relationship(
        "Wallet", back_populates="transactions", foreign_keys=[wallet_id]
    )
    locked_conversion: Mapped["LockedConversion | None"] = relationship("LockedConversion")

    __table_args__ = (Index("ix_transactions_wallet_created", "wallet_id", "created_at"),)
