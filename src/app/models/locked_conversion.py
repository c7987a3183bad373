"""Locked conversion model: a fixed-rate, fixed-term currency conversion."""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class LockedConversionStatus(str, enum.Enum):
    """Lifecycle states. ACTIVE -> UNLOCKED is the only transition."""

    ACTIVE = "ACTIVE"
    UNLOCKED = "UNLOCKED"


class LockedConversion(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Time deposit converting ``source_amount`` into ``target_amount``.

    The fee is taken in the source currency, the remainder is converted at
    ``exchange_rate`` (fixed at ``lock_date``) and released into the target
    wallet once ``unlock_date`` has passed.

    Attributes:
        account_id: Owning account
        source_wallet_id: Wallet debited at creation
        target_wallet_id: Wallet credited at unlock
        source_amount: Amount debited, in source currency
        target_amount: Amount credited at unlock, in target currency
        exchange_rate: Spot rate at creation (source -> target)
        fee: Absolute fee in source currency
        fee_percentage: Fee rate applied at creation
        status: ACTIVE until unlocked
        lock_date: Creation instant
        unlock_date: Earliest instant the proceeds may be released
        actual_unlock_date: Instant of the unlock, if any
    """

    __tablename__ = "locked_conversions"

    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), index=True
    )
    source_wallet_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("wallets.id"))
    target_wallet_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("wallets.id"))
    source_currency: Mapped[str] = mapped_column(String(3))
    target_currency: Mapped[str] = mapped_column(String(3))
    source_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    target_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    exchange_rate: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    fee: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    fee_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2))
    status: Mapped[LockedConversionStatus] = mapped_column(
        Enum(LockedConversionStatus), default=LockedConversionStatus.ACTIVE, index=True
    )
    lock_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    unlock_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    actual_unlock_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    account: Mapped["Account"] = relationship("Account", back_populates="locked_conversions")
    source_wallet: Mapped["Wallet"] = relationship("Wallet", foreign_keys=[source_wallet_id])
    target_wallet: Mapped["Wallet"] = relationship("Wallet", foreign_keys=[target_wallet_id])

    __table_args__ = (
        Index("ix_locked_conversions_account_created", "account_id", "created_at"),
    )

    @property
    def net_amount(self) -> Decimal:
        """Source amount left after the fee, i.e. what was converted."""
        return self.source_amount - self.fee

    @property
    def is_active(self) -> bool:
        return self.status == LockedConversionStatus.ACTIVE
