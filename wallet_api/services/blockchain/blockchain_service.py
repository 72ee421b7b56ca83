"""
Blockchain Service - Main Interface.

Chain gateway for wallet generation, balances, ETH transfers,
transaction lookup and history. Persists nothing. Provider failures are
converted to tagged errors here, amounts leave as decimal strings.
"""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import aiohttp
from eth_account import Account
from loguru import logger
from web3 import Web3
from web3.exceptions import TimeExhausted, TransactionNotFound, Web3Exception

from wallet_api.config.settings import Settings
from wallet_api.models.enums import TransactionStatus
from wallet_api.utils.errors import (
    ChainQueryError,
    ConfirmationTimeoutError,
    InsufficientFundsError,
    InvalidAddressError,
    ValidationError,
)
from wallet_api.utils.units import ether_to_wei, format_ether
from wallet_api.utils.validation import validate_eth_address

from .constants import (
    CHAIN_IDS,
    DEFAULT_CONFIRMATIONS,
    DEFAULT_DERIVATION_PATH,
    MNEMONIC_WORDS,
    RECEIPT_POLL_INTERVAL,
)
from .explorer_client import ExplorerClient
from .provider_manager import ProviderManager

# Errors a JSON-RPC call can raise on transport or node failure
PROVIDER_ERRORS = (
    Web3Exception,
    aiohttp.ClientError,
    TimeoutError,
    OSError,
    ValueError,
)

Account.enable_unaudited_hdwallet_features()


@dataclass(frozen=True)
class GeneratedWallet:
    """Freshly generated key pair. Never persisted as-is."""

    address: str
    private_key: str
    mnemonic: str

    def __repr__(self) -> str:
        return f"GeneratedWallet(address={self.address})"


@dataclass(frozen=True)
class Balance:
    """Account balance."""

    wei: str
    ether: str


@dataclass(frozen=True)
class SentTransaction:
    """Broadcast result."""

    hash: str
    from_address: str
    to_address: str
    amount: str
    gas_limit: str
    max_fee_per_gas: str


@dataclass(frozen=True)
class TransactionDetail:
    """Transaction with receipt data when mined."""

    hash: str
    from_address: str
    to_address: str
    amount: str
    gas_price: str | None
    gas_used: str | None
    status: str
    block_number: int | None
    timestamp: datetime | None


# History entries carry the same fields
TransactionSummary = TransactionDetail


class BlockchainService:
    """
    Main blockchain service interface.

    Wraps:
    - Provider management (JSON-RPC over HTTP)
    - Explorer queries (transaction history)
    - Local key generation and signing
    """

    def __init__(
        self,
        network: str,
        rpc_url: str,
        explorer_api_url: str | None = None,
        explorer_api_key: str | None = None,
        history_scan_blocks: int = 1000,
        confirmation_timeout: int = 120,
    ) -> None:
        """
        Initialize blockchain service.

        Args:
            network: Network name (mainnet, sepolia, ...)
            rpc_url: JSON-RPC endpoint
            explorer_api_url: Etherscan-compatible API URL
            explorer_api_key: Explorer API key (history falls back to a
                block scan without it)
            history_scan_blocks: Blocks scanned by the fallback
            confirmation_timeout: Seconds to wait for a receipt
        """
        if network not in CHAIN_IDS:
            raise ValueError(f"Unsupported network: {network}")

        self.network = network
        self.chain_id = CHAIN_IDS[network]
        self.history_scan_blocks = history_scan_blocks
        self.confirmation_timeout = confirmation_timeout

        self.provider_manager = ProviderManager(
            https_url=rpc_url, chain_id=self.chain_id
        )
        self.explorer = ExplorerClient(
            api_url=explorer_api_url or "",
            api_key=explorer_api_key,
            chain_id=self.chain_id,
        )

        logger.info(
            "BlockchainService initialized (not yet connected)\n"
            f"  Network: {network}\n"
            f"  Chain ID: {self.chain_id}\n"
            f"  Explorer: {'enabled' if self.explorer.is_configured else 'disabled'}"
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "BlockchainService":
        """Build service from application settings."""
        return cls(
            network=settings.ethereum_network,
            rpc_url=settings.provider_url,
            explorer_api_url=settings.explorer_api_url,
            explorer_api_key=settings.etherscan_api_key,
            history_scan_blocks=settings.history_scan_blocks,
            confirmation_timeout=settings.confirmation_timeout,
        )

    async def connect(self) -> None:
        """Connect to the node provider."""
        await self.provider_manager.connect()

    async def disconnect(self) -> None:
        """Release provider and explorer sessions."""
        await self.explorer.close()
        await self.provider_manager.disconnect()
        logger.info("BlockchainService disconnected")

    def _web3(self):
        try:
            return self.provider_manager.get_http_web3()
        except RuntimeError as e:
            raise ChainQueryError("Blockchain provider not connected") from e

    # === Wallets ===

    def create_wallet(self) -> GeneratedWallet:
        """
        Generate a wallet from a fresh 12-word mnemonic.

        Purely local, no network round trip.

        Returns:
            GeneratedWallet with address, private key and mnemonic
        """
        account, mnemonic = Account.create_with_mnemonic(
            num_words=MNEMONIC_WORDS,
            account_path=DEFAULT_DERIVATION_PATH,
        )
        logger.info(f"Generated wallet {account.address}")
        return GeneratedWallet(
            address=account.address,
            private_key=Web3.to_hex(account.key),
            mnemonic=mnemonic,
        )

    async def get_balance(self, address: str) -> Balance:
        """
        Get ETH balance.

        Args:
            address: Account address

        Returns:
            Balance in wei and ether

        Raises:
            ChainQueryError: Provider failure
        """
        web3 = self._web3()
        try:
            wei = await web3.eth.get_balance(Web3.to_checksum_address(address))
        except PROVIDER_ERRORS as e:
            logger.error(f"Balance query failed for {address}: {e}")
            raise ChainQueryError(f"Failed to get balance: {e}") from e

        return Balance(wei=str(wei), ether=format_ether(wei))

    # === Transfers ===

    async def send_transaction(
        self, private_key: str, to_address: str, amount: str
    ) -> SentTransaction:
        """
        Sign and broadcast an ETH transfer.

        Returns right after broadcast, without waiting for inclusion.

        Args:
            private_key: Sender key (hex)
            to_address: Recipient address
            amount: Ether amount as decimal string

        Returns:
            SentTransaction

        Raises:
            InvalidAddressError: Malformed recipient, raised before any
                network call
            InsufficientFundsError: Balance below amount
            ChainQueryError: Provider failure
        """
        if not validate_eth_address(to_address):
            raise InvalidAddressError(to_address)
        recipient = Web3.to_checksum_address(to_address)

        try:
            value = ether_to_wei(amount)
        except (ValueError, ArithmeticError) as e:
            raise ValidationError(
                errors=[{"field": "amount", "message": "Invalid amount"}]
            ) from e

        account = Account.from_key(private_key)
        web3 = self._web3()

        try:
            balance = await web3.eth.get_balance(account.address)
        except PROVIDER_ERRORS as e:
            raise ChainQueryError(f"Failed to get balance: {e}") from e

        if balance < value:
            raise InsufficientFundsError(
                required=amount, available=format_ether(balance)
            )

        logger.info(
            f"Sending {amount} ETH to {recipient}\n"
            f"  From: {account.address}\n"
            f"  Amount (wei): {value}"
        )

        try:
            gas_limit = await web3.eth.estimate_gas(
                {"from": account.address, "to": recipient, "value": value}
            )
            priority_fee = await web3.eth.max_priority_fee
            latest = await web3.eth.get_block("latest")
            base_fee = latest.get("baseFeePerGas", 0)
            max_fee = 2 * base_fee + priority_fee

            nonce = await web3.eth.get_transaction_count(
                account.address, "pending"
            )
            chain_id = await web3.eth.chain_id

            tx = {
                "type": 2,
                "chainId": chain_id,
                "nonce": nonce,
                "to": recipient,
                "value": value,
                "gas": gas_limit,
                "maxFeePerGas": max_fee,
                "maxPriorityFeePerGas": priority_fee,
            }
            signed = account.sign_transaction(tx)
            tx_hash = await web3.eth.send_raw_transaction(signed.raw_transaction)
        except PROVIDER_ERRORS as e:
            logger.error(f"Transfer from {account.address} failed: {e}")
            raise ChainQueryError(f"Failed to send transaction: {e}") from e

        hash_hex = Web3.to_hex(tx_hash)
        logger.success(f"Transaction broadcast: {hash_hex}")

        return SentTransaction(
            hash=hash_hex,
            from_address=account.address,
            to_address=recipient,
            amount=amount,
            gas_limit=str(gas_limit),
            max_fee_per_gas=str(max_fee),
        )

    # === Lookup ===

    async def get_transaction(self, tx_hash: str) -> TransactionDetail | None:
        """
        Look up a transaction and its receipt.

        Args:
            tx_hash: Transaction hash

        Returns:
            TransactionDetail, or None if the node never saw the hash

        Raises:
            ChainQueryError: Provider failure
        """
        web3 = self._web3()
        try:
            tx = await web3.eth.get_transaction(tx_hash)
        except TransactionNotFound:
            return None
        except PROVIDER_ERRORS as e:
            raise ChainQueryError(f"Failed to get transaction: {e}") from e

        try:
            receipt = await web3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            receipt = None
        except PROVIDER_ERRORS as e:
            raise ChainQueryError(f"Failed to get receipt: {e}") from e

        if receipt is None:
            return TransactionDetail(
                hash=tx_hash,
                from_address=tx["from"],
                to_address=tx.get("to") or "",
                amount=format_ether(tx["value"]),
                gas_price=_optional_str(tx.get("gasPrice")),
                gas_used=None,
                status=TransactionStatus.PENDING.value,
                block_number=None,
                timestamp=None,
            )

        try:
            block = await web3.eth.get_block(receipt["blockNumber"])
        except PROVIDER_ERRORS as e:
            raise ChainQueryError(f"Failed to get block: {e}") from e

        status = (
            TransactionStatus.CONFIRMED.value
            if receipt["status"] == 1
            else TransactionStatus.FAILED.value
        )
        return TransactionDetail(
            hash=tx_hash,
            from_address=tx["from"],
            to_address=tx.get("to") or "",
            amount=format_ether(tx["value"]),
            gas_price=_optional_str(
                receipt.get("effectiveGasPrice") or tx.get("gasPrice")
            ),
            gas_used=str(receipt["gasUsed"]),
            status=status,
            block_number=receipt["blockNumber"],
            timestamp=datetime.fromtimestamp(block["timestamp"], UTC),
        )

    async def wait_for_transaction(
        self, tx_hash: str, confirmations: int = DEFAULT_CONFIRMATIONS
    ) -> Any:
        """
        Wait until a transaction has the requested confirmations.

        Args:
            tx_hash: Transaction hash
            confirmations: Blocks including the inclusion block

        Returns:
            Transaction receipt

        Raises:
            ConfirmationTimeoutError: Not confirmed within the timeout
            ChainQueryError: Provider failure
        """
        web3 = self._web3()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.confirmation_timeout

        try:
            receipt = await web3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=self.confirmation_timeout,
                poll_latency=RECEIPT_POLL_INTERVAL,
            )
            while confirmations > 1:
                current = await web3.eth.block_number
                if current - receipt["blockNumber"] + 1 >= confirmations:
                    break
                if loop.time() >= deadline:
                    raise ConfirmationTimeoutError(
                        tx_hash, self.confirmation_timeout
                    )
                await asyncio.sleep(RECEIPT_POLL_INTERVAL)
        except TimeExhausted as e:
            raise ConfirmationTimeoutError(
                tx_hash, self.confirmation_timeout
            ) from e
        except PROVIDER_ERRORS as e:
            raise ChainQueryError(
                f"Failed waiting for transaction: {e}"
            ) from e

        return receipt

    # === History ===

    async def get_transaction_history(
        self, address: str, limit: int = 10
    ) -> list[TransactionSummary]:
        """
        Get recent transactions touching an address.

        Uses the explorer when configured, otherwise (or when it fails)
        scans the most recent blocks. Best effort: never raises.

        Args:
            address: Account address
            limit: Max number of transactions

        Returns:
            Transactions, newest first (possibly empty or partial)
        """
        if self.explorer.is_configured:
            try:
                records = await self.explorer.get_transactions(address, limit)
                return [_summary_from_explorer(r) for r in records]
            except ChainQueryError as e:
                logger.warning(
                    f"Explorer history failed for {address}, "
                    f"falling back to block scan: {e}"
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Unexpected explorer payload for {address}: {e}")

        try:
            return await self._scan_recent_blocks(address, limit)
        except Exception as e:
            logger.error(f"Block scan history failed for {address}: {e}")
            return []

    async def _scan_recent_blocks(
        self, address: str, limit: int
    ) -> list[TransactionSummary]:
        """Scan recent blocks for transactions from or to address."""
        web3 = self._web3()
        target = address.lower()

        latest = await web3.eth.block_number
        first = max(0, latest - self.history_scan_blocks + 1)
        found: list[TransactionSummary] = []

        for number in range(latest, first - 1, -1):
            if len(found) >= limit:
                break
            try:
                block = await web3.eth.get_block(number, full_transactions=True)
            except PROVIDER_ERRORS as e:
                logger.debug(f"Skipping block {number}: {e}")
                continue

            timestamp = datetime.fromtimestamp(block["timestamp"], UTC)
            for tx in block["transactions"]:
                to = tx.get("to") or ""
                if tx["from"].lower() != target and to.lower() != target:
                    continue
                # Receipt not fetched, final status comes from reconciliation
                found.append(
                    TransactionSummary(
                        hash=Web3.to_hex(tx["hash"]),
                        from_address=tx["from"],
                        to_address=to,
                        amount=format_ether(tx["value"]),
                        gas_price=_optional_str(tx.get("gasPrice")),
                        gas_used=None,
                        status=TransactionStatus.PENDING.value,
                        block_number=number,
                        timestamp=timestamp,
                    )
                )
                if len(found) >= limit:
                    break

        logger.info(
            f"Block scan found {len(found)} transactions for {address} "
            f"in blocks {first}-{latest}"
        )
        return found

    # === Health ===

    async def health_check(self) -> dict[str, Any]:
        """
        Check provider health.

        Returns:
            Dict with health status
        """
        status = await self.provider_manager.health_check()
        status["network"] = self.network
        status["explorer_configured"] = self.explorer.is_configured
        return status


def _optional_str(value: int | None) -> str | None:
    return None if value is None else str(value)


def _summary_from_explorer(record: dict[str, Any]) -> TransactionSummary:
    """Convert an explorer txlist record."""
    to = record.get("to") or ""
    if record.get("txreceipt_status") == "1" or (
        record.get("txreceipt_status") == "" and record.get("isError") == "0"
    ):
        status = TransactionStatus.CONFIRMED.value
    else:
        status = TransactionStatus.FAILED.value

    return TransactionSummary(
        hash=record["hash"],
        from_address=Web3.to_checksum_address(record["from"]),
        to_address=Web3.to_checksum_address(to) if to else "",
        amount=format_ether(int(record["value"])),
        gas_price=record.get("gasPrice") or None,
        gas_used=record.get("gasUsed") or None,
        status=status,
        block_number=int(record["blockNumber"]),
        timestamp=datetime.fromtimestamp(int(record["timeStamp"]), UTC),
    )
