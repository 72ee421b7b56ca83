"""
Transaction model.

On-chain ETH transfer touching a custodial wallet. Amounts are decimal
strings so no precision is lost.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wallet_api.models.base import Base, utcnow
from wallet_api.models.enums import TransactionStatus

if TYPE_CHECKING:
    from wallet_api.models.wallet import Wallet


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'failed')",
            name="check_transaction_status",
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    wallet_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("wallets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    transaction_hash: Mapped[str] = mapped_column(
        String(66), unique=True, index=True, nullable=False
    )
    from_address: Mapped[str] = mapped_column(
        String(42), nullable=False, index=True
    )
    # Empty string for contract creation
    to_address: Mapped[str] = mapped_column(
        String(42), nullable=False, index=True
    )
    amount: Mapped[str] = mapped_column(String(78), nullable=False)
    gas_price: Mapped[str | None] = mapped_column(String(78), nullable=True)
    gas_used: Mapped[str | None] = mapped_column(String(78), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TransactionStatus.PENDING.value,
        index=True,
    )
    block_number: Mapped[int | None] = mapped_column(
        BigInteger, nullable=True
    )
    timestamp: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    wallet: Mapped["Wallet"] = relationship(
        "Wallet", back_populates="transactions"
    )

    @property
    def is_pending(self) -> bool:
        """Check if transaction still awaits reconciliation."""
        return self.status == TransactionStatus.PENDING.value

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Transaction(id={self.id}, hash={self.transaction_hash}, "
            f"status={self.status})>"
        )
