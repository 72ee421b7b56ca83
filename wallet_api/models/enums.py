"""
Database enums.

Centralized enums used across database models.
"""

from enum import StrEnum


class TransactionStatus(StrEnum):
    """Transaction status values."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class Network(StrEnum):
    """Supported Ethereum networks."""

    MAINNET = "mainnet"
    SEPOLIA = "sepolia"
    GOERLI = "goerli"
    HOLESKY = "holesky"
