"""
Repositories.

Data access layer for all models.
"""

from wallet_api.repositories.base import BaseRepository
from wallet_api.repositories.transaction_repository import (
    TransactionRepository,
)
from wallet_api.repositories.user_repository import UserRepository
from wallet_api.repositories.wallet_repository import WalletRepository

__all__ = [
    "BaseRepository",
    "TransactionRepository",
    "UserRepository",
    "WalletRepository",
]
