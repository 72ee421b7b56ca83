"""
User model.

Represents a registered API user.
"""

from typing import TYPE_CHECKING

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wallet_api.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from wallet_api.models.wallet import Wallet


class User(TimestampMixin, Base):
    """User model - owner of custodial wallets."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    username: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    # bcrypt hash, never the plaintext
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    wallets: Mapped[list["Wallet"]] = relationship(
        "Wallet",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="noload",
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<User(id={self.id}, username={self.username!r})>"
