"""
Reconciliation Service.

Drives pending transactions to their final status. Each hash is checked
in a detached task that waits for one confirmation, fetches the final
receipt data, and records it in its own database session. Failures are
logged only; the row then stays pending until the next startup sweep.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wallet_api.config.database import session_scope
from wallet_api.models.enums import TransactionStatus
from wallet_api.repositories.transaction_repository import (
    TransactionRepository,
)
from wallet_api.services.blockchain import BlockchainService
from wallet_api.services.blockchain.constants import DEFAULT_CONFIRMATIONS
from wallet_api.services.task_registry import TaskRegistry
from wallet_api.utils.errors import AppError


class ReconciliationService:
    """Service for asynchronous transaction status reconciliation."""

    def __init__(
        self,
        blockchain: BlockchainService,
        session_factory: async_sessionmaker[AsyncSession],
        tasks: TaskRegistry,
    ) -> None:
        """
        Initialize reconciliation service.

        Args:
            blockchain: Chain gateway
            session_factory: Factory for per-task sessions
            tasks: Registry holding the detached tasks
        """
        self.blockchain = blockchain
        self.session_factory = session_factory
        self.tasks = tasks
        self._in_flight: set[str] = set()

    def schedule(self, tx_hash: str) -> bool:
        """
        Start reconciliation for a hash without waiting for it.

        Args:
            tx_hash: Transaction hash

        Returns:
            False if this hash is already being reconciled
        """
        if tx_hash in self._in_flight:
            return False

        self._in_flight.add(tx_hash)
        self.tasks.spawn(self._run(tx_hash), name=f"reconcile:{tx_hash}")
        return True

    async def _run(self, tx_hash: str) -> None:
        try:
            await self.reconcile(tx_hash)
        finally:
            self._in_flight.discard(tx_hash)

    async def reconcile(self, tx_hash: str) -> bool:
        """
        Wait for confirmation and record the final status.

        Never raises for chain or database failures.

        Args:
            tx_hash: Transaction hash

        Returns:
            True if the stored row reached a terminal status
        """
        try:
            await self.blockchain.wait_for_transaction(
                tx_hash, DEFAULT_CONFIRMATIONS
            )
            detail = await self.blockchain.get_transaction(tx_hash)
            if detail is None or detail.status == TransactionStatus.PENDING:
                logger.warning(
                    f"Transaction {tx_hash} has no final status yet, "
                    f"leaving pending"
                )
                return False

            async with session_scope(self.session_factory) as session:
                updated = await TransactionRepository(
                    session
                ).update_status_by_hash(
                    tx_hash,
                    status=detail.status,
                    gas_used=detail.gas_used,
                    block_number=detail.block_number,
                    timestamp=detail.timestamp,
                )

            if updated:
                logger.success(
                    f"Transaction {tx_hash} reconciled: {detail.status} "
                    f"(block {detail.block_number})"
                )
            else:
                logger.info(f"Transaction {tx_hash} already reconciled")
            return updated

        except AppError as e:
            logger.warning(f"Reconciliation of {tx_hash} failed: {e.message}")
        except Exception as e:
            logger.error(f"Reconciliation of {tx_hash} crashed: {e}")
        return False

    async def resume_pending(self, limit: int = 500) -> int:
        """
        Schedule reconciliation for every stored pending transaction.

        Run at startup to pick up work lost by a restart.

        Args:
            limit: Max transactions to schedule

        Returns:
            Number of transactions scheduled
        """
        async with session_scope(self.session_factory) as session:
            pending = await TransactionRepository(session).find_pending(limit)

        scheduled = sum(self.schedule(tx.transaction_hash) for tx in pending)
        if scheduled:
            logger.info(f"Resumed reconciliation for {scheduled} pending transactions")
        return scheduled
