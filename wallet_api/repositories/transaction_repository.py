"""
Transaction repository.

Data access layer for Transaction model.
"""

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from wallet_api.models.enums import TransactionStatus
from wallet_api.models.transaction import Transaction
from wallet_api.models.wallet import Wallet
from wallet_api.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Transaction repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize transaction repository."""
        super().__init__(Transaction, session)

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        if dialect == "sqlite":
            return sqlite_insert(Transaction)
        return pg_insert(Transaction)

    async def create_transaction(
        self,
        wallet_id: int,
        transaction_hash: str,
        from_address: str,
        to_address: str,
        amount: str,
        gas_price: str | None = None,
        gas_used: str | None = None,
        status: str = TransactionStatus.PENDING.value,
        block_number: int | None = None,
        timestamp: datetime | None = None,
    ) -> tuple[Transaction, bool]:
        """
        Insert transaction, or return the existing row for its hash.

        Uses INSERT ... ON CONFLICT (transaction_hash) DO NOTHING, so a
        duplicate never aborts the surrounding transaction.

        Args:
            wallet_id: Owning wallet ID
            transaction_hash: Chain transaction hash
            from_address: Sender
            to_address: Recipient ("" for contract creation)
            amount: Ether amount as decimal string
            gas_price: Wei as decimal string
            gas_used: Wei as decimal string
            status: Initial status
            block_number: Block number if mined
            timestamp: Block timestamp if mined

        Returns:
            Tuple of (transaction, created)
        """
        stmt = (
            self._insert()
            .values(
                wallet_id=wallet_id,
                transaction_hash=transaction_hash,
                from_address=from_address,
                to_address=to_address,
                amount=amount,
                gas_price=gas_price,
                gas_used=gas_used,
                status=status,
                block_number=block_number,
                timestamp=timestamp,
            )
            .on_conflict_do_nothing(index_elements=["transaction_hash"])
            .returning(Transaction)
        )
        result = await self.session.scalars(stmt)
        created = result.one_or_none()
        if created is not None:
            return created, True

        existing = await self.find_by_hash(transaction_hash)
        if existing is None:
            # Conflict row vanished between statements (cascade delete)
            raise LookupError(
                f"Transaction {transaction_hash} conflicted but was not found"
            )
        return existing, False

    async def find_by_hash(self, transaction_hash: str) -> Transaction | None:
        """
        Get transaction by hash.

        Args:
            transaction_hash: Transaction hash

        Returns:
            Transaction or None
        """
        return await self.get_by(transaction_hash=transaction_hash)

    async def find_by_hash_and_user_id(
        self, transaction_hash: str, user_id: int
    ) -> Transaction | None:
        """
        Get transaction by hash if it belongs to one of the user's wallets.

        Args:
            transaction_hash: Transaction hash
            user_id: Owner ID

        Returns:
            Transaction or None
        """
        stmt = (
            select(Transaction)
            .join(Wallet, Transaction.wallet_id == Wallet.id)
            .where(
                Transaction.transaction_hash == transaction_hash,
                Wallet.user_id == user_id,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_wallet_id(
        self, wallet_id: int, limit: int = 10, offset: int = 0
    ) -> list[Transaction]:
        """
        Get a page of wallet transactions, newest first.

        Args:
            wallet_id: Wallet ID
            limit: Page size
            offset: Rows to skip

        Returns:
            List of transactions
        """
        stmt = (
            select(Transaction)
            .where(Transaction.wallet_id == wallet_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_by_user_id(
        self, user_id: int, limit: int = 50
    ) -> list[Transaction]:
        """
        Get recent transactions across all of a user's wallets.

        Args:
            user_id: Owner ID
            limit: Max rows

        Returns:
            List of transactions
        """
        stmt = (
            select(Transaction)
            .join(Wallet, Transaction.wallet_id == Wallet.id)
            .where(Wallet.user_id == user_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_by_status(
        self, status: str, limit: int = 100
    ) -> list[Transaction]:
        """Get transactions with a given status, oldest first."""
        stmt = (
            select(Transaction)
            .where(Transaction.status == status)
            .order_by(Transaction.created_at.asc(), Transaction.id.asc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_pending(self, limit: int = 100) -> list[Transaction]:
        """Get transactions still awaiting reconciliation."""
        return await self.find_by_status(
            TransactionStatus.PENDING.value, limit=limit
        )

    async def update_status_by_hash(
        self,
        transaction_hash: str,
        status: str,
        gas_used: str | None = None,
        block_number: int | None = None,
        timestamp: datetime | None = None,
    ) -> bool:
        """
        Record the final status of a pending transaction.

        Only rows still pending are touched, so a terminal status is
        written at most once and never reverts.

        Args:
            transaction_hash: Transaction hash
            status: confirmed or failed
            gas_used: Wei as decimal string
            block_number: Inclusion block
            timestamp: Block timestamp

        Returns:
            True if a row was updated
        """
        stmt = (
            update(Transaction)
            .where(
                Transaction.transaction_hash == transaction_hash,
                Transaction.status == TransactionStatus.PENDING.value,
            )
            .values(
                status=status,
                gas_used=gas_used,
                block_number=block_number,
                timestamp=timestamp,
            )
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def count_by_wallet_id(self, wallet_id: int) -> int:
        """Count transactions of a wallet."""
        stmt = (
            select(func.count())
            .select_from(Transaction)
            .where(Transaction.wallet_id == wallet_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0
