"""
Services.

Business logic layer.
"""

from wallet_api.services.auth_service import (
    AuthService,
    TokenPayload,
    TokenService,
)
from wallet_api.services.blockchain import BlockchainService
from wallet_api.services.reconciliation_service import ReconciliationService
from wallet_api.services.task_registry import TaskRegistry
from wallet_api.services.wallet_service import WalletService

__all__ = [
    "AuthService",
    "BlockchainService",
    "ReconciliationService",
    "TaskRegistry",
    "TokenPayload",
    "TokenService",
    "WalletService",
]
