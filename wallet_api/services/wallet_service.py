"""
Wallet service.

Wallet creation, balances, fund transfers and transaction history.
Every read made for a caller is scoped to that caller's user id.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from wallet_api.models.enums import TransactionStatus
from wallet_api.models.transaction import Transaction
from wallet_api.models.wallet import Wallet
from wallet_api.repositories.transaction_repository import (
    TransactionRepository,
)
from wallet_api.repositories.wallet_repository import WalletRepository
from wallet_api.services.blockchain import (
    Balance,
    BlockchainService,
    SentTransaction,
)
from wallet_api.services.reconciliation_service import ReconciliationService
from wallet_api.utils.encryption import EncryptionService
from wallet_api.utils.errors import NotFoundError, ValidationError
from wallet_api.utils.validation import (
    MAX_PAGE_SIZE,
    validate_network,
    validate_pagination,
    validate_send_funds,
    validate_transaction_hash,
    validate_wallet_id,
)


class WalletService:
    """Wallet and transfer orchestration."""

    def __init__(
        self,
        session: AsyncSession,
        blockchain: BlockchainService,
        encryption: EncryptionService,
        reconciler: ReconciliationService | None = None,
    ) -> None:
        """
        Initialize wallet service.

        Args:
            session: Database session for this operation
            blockchain: Chain gateway
            encryption: Key encryption service
            reconciler: Schedules status reconciliation (optional, no
                reconciliation without it)
        """
        self.session = session
        self.blockchain = blockchain
        self.encryption = encryption
        self.reconciler = reconciler
        self.wallet_repository = WalletRepository(session)
        self.transaction_repository = TransactionRepository(session)

    async def create_wallet(
        self, user_id: int, network: str | None = None
    ) -> tuple[Wallet, str]:
        """
        Generate and store a wallet.

        Only the encrypted key is persisted. The mnemonic is returned
        here and nowhere else.

        Args:
            user_id: Owner ID
            network: Network name (default sepolia)

        Returns:
            Tuple of (wallet, mnemonic)
        """
        network = validate_network(network)
        if network != self.blockchain.network:
            logger.warning(
                f"Wallet requested on {network}, gateway serves "
                f"{self.blockchain.network}"
            )

        generated = self.blockchain.create_wallet()
        wallet = await self.wallet_repository.create_wallet(
            user_id=user_id,
            address=generated.address,
            encrypted_private_key=self.encryption.encrypt(generated.private_key),
            network=network,
        )

        logger.info(
            f"Wallet created: id={wallet.id} user_id={user_id} "
            f"address={wallet.address} network={network}"
        )
        return wallet, generated.mnemonic

    async def get_wallets(self, user_id: int) -> list[Wallet]:
        """Get all wallets owned by user."""
        return await self.wallet_repository.find_by_user_id(user_id)

    async def get_wallet(self, wallet_id: int, user_id: int) -> Wallet:
        """
        Get wallet owned by user.

        Raises:
            NotFoundError: Wallet absent or owned by someone else
        """
        wallet_id = validate_wallet_id(wallet_id)
        wallet = await self.wallet_repository.find_by_id_and_user_id(
            wallet_id, user_id
        )
        if not wallet:
            raise NotFoundError("Wallet")
        return wallet

    async def get_balance(
        self, wallet_id: int, user_id: int
    ) -> tuple[Wallet, Balance]:
        """
        Get wallet balance from the chain.

        Returns:
            Tuple of (wallet, balance)
        """
        wallet = await self.get_wallet(wallet_id, user_id)
        balance = await self.blockchain.get_balance(wallet.address)
        return wallet, balance

    async def send_funds(
        self,
        wallet_id: int,
        user_id: int,
        to_address: str,
        amount: str,
    ) -> tuple[Transaction, SentTransaction]:
        """
        Send ETH from a user's wallet.

        Flow: load wallet by owner, decrypt key, broadcast, store a
        pending row, commit, then reconcile in the background.

        Args:
            wallet_id: Sending wallet ID
            user_id: Authenticated user ID
            to_address: Recipient address
            amount: Ether amount as decimal string

        Returns:
            Tuple of (stored transaction, broadcast result)

        Raises:
            ValidationError: Bad input
            InvalidAddressError: Malformed recipient
            NotFoundError: Wallet not owned by user
            DecryptionError: Stored key is corrupted
            InsufficientFundsError: Balance below amount
            ChainQueryError: Provider failure
        """
        wallet_id, to_address, amount = validate_send_funds(
            wallet_id, to_address, amount
        )
        wallet = await self.get_wallet(wallet_id, user_id)
        private_key = self.encryption.decrypt(wallet.encrypted_private_key)

        sent = await self.blockchain.send_transaction(
            private_key, to_address, amount
        )

        try:
            transaction, _ = await self.transaction_repository.create_transaction(
                wallet_id=wallet.id,
                transaction_hash=sent.hash,
                from_address=sent.from_address,
                to_address=sent.to_address,
                amount=sent.amount,
                gas_price=sent.max_fee_per_gas,
                status=TransactionStatus.PENDING.value,
            )
            # Reconciliation runs in another session and must see the row
            await self.session.commit()
        except Exception as e:
            logger.error(
                f"Transaction {sent.hash} was broadcast but not stored: {e}"
            )
            raise

        logger.info(
            f"Funds sent: wallet_id={wallet.id} hash={sent.hash} "
            f"amount={amount} to={sent.to_address}"
        )

        if self.reconciler:
            self.reconciler.schedule(sent.hash)

        return transaction, sent

    async def get_transaction_history(
        self,
        wallet_id: int,
        user_id: int,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Transaction]:
        """
        Sync recent chain history, then serve a page from storage.

        Newly ingested rows that are still pending get reconciled in the
        background. The page always comes from the database, so it may
        lag the chain when the history pull failed.

        Args:
            wallet_id: Wallet ID
            user_id: Authenticated user ID
            limit: Page size (1-100, default 10)
            offset: Rows to skip (default 0)

        Returns:
            Transactions, newest first
        """
        limit, offset = validate_pagination(limit, offset)
        wallet = await self.get_wallet(wallet_id, user_id)

        history = await self.blockchain.get_transaction_history(
            wallet.address, min(limit + offset, MAX_PAGE_SIZE)
        )

        to_reconcile = []
        # Oldest first, so newer chain entries get newer local rows
        for summary in reversed(history):
            transaction, created = (
                await self.transaction_repository.create_transaction(
                    wallet_id=wallet.id,
                    transaction_hash=summary.hash,
                    from_address=summary.from_address,
                    to_address=summary.to_address,
                    amount=summary.amount,
                    gas_price=summary.gas_price,
                    gas_used=summary.gas_used,
                    status=summary.status,
                    block_number=summary.block_number,
                    timestamp=summary.timestamp,
                )
            )
            if created and transaction.is_pending:
                to_reconcile.append(transaction.transaction_hash)

        if history:
            await self.session.commit()
            logger.debug(
                f"History sync for wallet {wallet.id}: {len(history)} "
                f"entries, {len(to_reconcile)} pending"
            )

        if self.reconciler:
            for tx_hash in to_reconcile:
                self.reconciler.schedule(tx_hash)

        return await self.transaction_repository.find_by_wallet_id(
            wallet.id, limit=limit, offset=offset
        )

    async def get_transaction(self, tx_hash: str, user_id: int) -> Transaction:
        """
        Get stored transaction owned by user.

        Raises:
            ValidationError: Malformed hash
            NotFoundError: Unknown hash or owned by someone else
        """
        if not validate_transaction_hash(tx_hash):
            raise ValidationError(
                errors=[{"field": "hash", "message": "Invalid transaction hash"}]
            )

        transaction = await self.transaction_repository.find_by_hash_and_user_id(
            tx_hash, user_id
        )
        if not transaction:
            raise NotFoundError("Transaction")
        return transaction
