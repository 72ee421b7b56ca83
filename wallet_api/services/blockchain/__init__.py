"""Blockchain services module."""

from .blockchain_service import (
    Balance,
    BlockchainService,
    GeneratedWallet,
    SentTransaction,
    TransactionDetail,
    TransactionSummary,
)
from .explorer_client import ExplorerClient
from .provider_manager import ProviderManager

__all__ = [
    "Balance",
    "BlockchainService",
    "ExplorerClient",
    "GeneratedWallet",
    "ProviderManager",
    "SentTransaction",
    "TransactionDetail",
    "TransactionSummary",
]
