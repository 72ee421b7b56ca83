"""
Wallet model.

A custodial Ethereum account owned by one user. Only the encrypted
private key is stored; the mnemonic is never persisted.
"""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wallet_api.models.base import Base, TimestampMixin
from wallet_api.models.enums import Network

if TYPE_CHECKING:
    from wallet_api.models.transaction import Transaction
    from wallet_api.models.user import User


class Wallet(TimestampMixin, Base):
    """Wallet model."""

    __tablename__ = "wallets"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    address: Mapped[str] = mapped_column(
        String(42), unique=True, index=True, nullable=False
    )
    encrypted_private_key: Mapped[str] = mapped_column(Text, nullable=False)
    network: Mapped[str] = mapped_column(
        String(50), nullable=False, default=Network.SEPOLIA.value
    )

    user: Mapped["User"] = relationship("User", back_populates="wallets")
    transactions: Mapped[list["Transaction"]] = relationship(
        "Transaction",
        back_populates="wallet",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="noload",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Wallet(id={self.id}, user_id={self.user_id}, "
            f"address={self.address}, network={self.network})>"
        )
