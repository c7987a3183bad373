"""Account model: the identity that owns wallets and locked conversions."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Account(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """User account. Created at registration and never mutated by the wallet core."""

    __tablename__ = "accounts"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255))
    hashed_password: Mapped[str] = mapped_column(String(255))

    # Relationships
    wallets: Mapped[list["Wallet"]] = relationship(
        "Wallet", back_populates="account", cascade="all, delete-orphan"
    )
    locked_conversions: Mapped[list["LockedConversion"]] = relationship(
        "LockedConversion", back_populates="account"
    )
