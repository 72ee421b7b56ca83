"""
Database models.

All SQLAlchemy models for the application.
"""

from wallet_api.models.base import Base
from wallet_api.models.enums import Network, TransactionStatus
from wallet_api.models.transaction import Transaction
from wallet_api.models.user import User
from wallet_api.models.wallet import Wallet

__all__ = [
    "Base",
    "Network",
    "Transaction",
    "TransactionStatus",
    "User",
    "Wallet",
]
