"""
GraphQL types.

Output types mirror the stored models with ISO-8601 UTC date strings.
Private keys never appear in any output type.
"""

from datetime import UTC, datetime

import strawberry

from wallet_api.models.transaction import Transaction
from wallet_api.models.user import User
from wallet_api.models.wallet import Wallet
from wallet_api.services.blockchain import Balance, SentTransaction


def format_datetime(value: datetime | None) -> str | None:
    """Format as ISO-8601 UTC with milliseconds, e.g. 2025-11-04T10:45:23.000Z."""
    if value is None:
        return None
    if value.tzinfo is None:
        # SQLite drops tzinfo, stored values are UTC
        value = value.replace(tzinfo=UTC)
    return (
        value.astimezone(UTC)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


@strawberry.type(name="User")
class UserType:
    id: int
    username: str
    created_at: str | None

    @classmethod
    def from_model(cls, user: User) -> "UserType":
        return cls(
            id=user.id,
            username=user.username,
            created_at=format_datetime(user.created_at),
        )


@strawberry.type
class AuthPayload:
    user: UserType
    token: str


@strawberry.type(name="Wallet")
class WalletType:
    id: int
    user_id: int
    address: str
    network: str
    created_at: str | None
    updated_at: str | None

    @classmethod
    def from_model(cls, wallet: Wallet) -> "WalletType":
        return cls(
            id=wallet.id,
            user_id=wallet.user_id,
            address=wallet.address,
            network=wallet.network,
            created_at=format_datetime(wallet.created_at),
            updated_at=format_datetime(wallet.updated_at),
        )


@strawberry.type
class WalletCreated:
    """Newly created wallet. The mnemonic is shown once and never stored."""

    id: int
    user_id: int
    address: str
    network: str
    created_at: str | None
    mnemonic: str

    @classmethod
    def from_model(cls, wallet: Wallet, mnemonic: str) -> "WalletCreated":
        return cls(
            id=wallet.id,
            user_id=wallet.user_id,
            address=wallet.address,
            network=wallet.network,
            created_at=format_datetime(wallet.created_at),
            mnemonic=mnemonic,
        )


@strawberry.type(name="Balance")
class BalanceType:
    wallet_id: int
    address: str
    network: str
    wei: str
    ether: str

    @classmethod
    def from_result(cls, wallet: Wallet, balance: Balance) -> "BalanceType":
        return cls(
            wallet_id=wallet.id,
            address=wallet.address,
            network=wallet.network,
            wei=str(balance.wei),
            ether=balance.ether,
        )


@strawberry.type(name="Transaction")
class TransactionType:
    id: int
    wallet_id: int
    transaction_hash: str
    from_address: str
    to_address: str
    amount: str
    gas_price: str | None
    gas_used: str | None
    status: str
    block_number: str | None
    timestamp: str | None
    created_at: str | None

    @classmethod
    def from_model(cls, transaction: Transaction) -> "TransactionType":
        return cls(
            id=transaction.id,
            wallet_id=transaction.wallet_id,
            transaction_hash=transaction.transaction_hash,
            from_address=transaction.from_address,
            to_address=transaction.to_address,
            amount=transaction.amount,
            gas_price=transaction.gas_price,
            gas_used=transaction.gas_used,
            status=transaction.status,
            block_number=(
                str(transaction.block_number)
                if transaction.block_number is not None
                else None
            ),
            timestamp=format_datetime(transaction.timestamp),
            created_at=format_datetime(transaction.created_at),
        )


@strawberry.type
class TransactionResult:
    transaction: TransactionType
    hash: str
    from_: str = strawberry.field(name="from")
    to: str
    amount: str

    @classmethod
    def from_result(
        cls, transaction: Transaction, sent: SentTransaction
    ) -> "TransactionResult":
        return cls(
            transaction=TransactionType.from_model(transaction),
            hash=sent.hash,
            from_=sent.from_address,
            to=sent.to_address,
            amount=sent.amount,
        )


@strawberry.input
class RegisterInput:
    username: str
    password: str


@strawberry.input
class LoginInput:
    username: str
    password: str


@strawberry.input
class CreateWalletInput:
    network: str | None = None


@strawberry.input
class SendFundsInput:
    wallet_id: int
    to_address: str
    amount: str


@strawberry.input
class ChangePasswordInput:
    old_password: str
    new_password: str
