"""Wallet model: a single-currency balance owned by one account."""

import uuid
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from app.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Wallet(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Single-currency wallet.

    Attributes:
        id: Unique identifier for the wallet
        account_id: Owning account
        name: Display name
        currency: ISO 4217 code, fixed at creation
        balance: Current balance, never negative
    """

    __tablename__ = "wallets"

    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(255))
    currency: Mapped[str] = mapped_column(String(3))
    balance: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0.00"))

    # Relationships
    account: Mapped["Account"] = relationship("Account", back_populates="wallets")
    transactions: Mapped[list["Transaction"]] = relationship(
        "Transaction",
        back_populates="wallet",
        foreign_keys="Transaction.wallet_id",
        order_by="Transaction.created_at.desc()",
    )

    __table_args__ = (CheckConstraint("balance >= 0", name="ck_wallets_balance_non_negative"),)

    @validates("currency")
    def validate_currency(self, key: str, value: str) -> str:
        """Normalize the code and refuse to change it once set."""
        value = value.upper()
        current = self.__dict__.get("currency")
        if current is not None and current != value:
            raise ValueError(f"Wallet currency is immutable ({current} -> {value})")
        return value
