"""
Provider Manager for Web3.

Owns the JSON-RPC HTTP provider and reports its health.
"""

from typing import Any

from loguru import logger
from web3 import AsyncHTTPProvider, AsyncWeb3


class ProviderManager:
    """
    Manages the Web3 HTTP provider.

    The Web3 instance exists from connect() on even if the first check
    fails; later calls surface provider errors to the caller.
    """

    def __init__(self, https_url: str, chain_id: int) -> None:
        """
        Initialize provider manager.

        Args:
            https_url: JSON-RPC HTTPS endpoint URL
            chain_id: Expected chain ID
        """
        self.https_url = https_url
        self.chain_id = chain_id

        self._http_provider: AsyncHTTPProvider | None = None
        self._http_web3: AsyncWeb3 | None = None
        self._http_connected = False

        # Endpoint may embed an API key, log only the host part
        logger.info(
            f"ProviderManager initialized for chain {chain_id}\n"
            f"  HTTP: {https_url.split('/v2/')[0][:50]}..."
        )

    async def connect(self) -> None:
        """Create the HTTP provider and check it."""
        self._http_provider = AsyncHTTPProvider(self.https_url)
        self._http_web3 = AsyncWeb3(self._http_provider)

        try:
            block = await self._http_web3.eth.block_number
            self._http_connected = True
            logger.success(
                f"HTTP provider connected successfully "
                f"(current block: {block})"
            )
        except Exception as e:
            self._http_connected = False
            logger.error(f"Failed to connect HTTP provider: {e}")

    async def disconnect(self) -> None:
        """Close the provider's HTTP session."""
        if self._http_provider:
            try:
                await self._http_provider.disconnect()
            except Exception as e:
                logger.error(f"Error disconnecting provider: {e}")

        self._http_provider = None
        self._http_web3 = None
        self._http_connected = False
        logger.info("Provider disconnected")

    def get_http_web3(self) -> AsyncWeb3:
        """
        Get HTTP Web3 instance.

        Returns:
            AsyncWeb3 instance

        Raises:
            RuntimeError: If connect() was never called
        """
        if not self._http_web3:
            raise RuntimeError(
                "HTTP provider not initialized. Call connect() first."
            )

        return self._http_web3

    @property
    def is_http_connected(self) -> bool:
        """Check if the last check succeeded."""
        return self._http_connected

    async def health_check(self) -> dict[str, Any]:
        """
        Perform health check on the provider.

        Returns:
            Dict with health status
        """
        if not self._http_web3:
            return {"healthy": False, "error": "not initialized"}

        try:
            current_block = await self._http_web3.eth.block_number
            chain_id = await self._http_web3.eth.chain_id
            self._http_connected = True
        except Exception as e:
            self._http_connected = False
            logger.warning(f"Provider health check failed: {e}")
            return {"healthy": False, "error": str(e)}

        return {
            "healthy": chain_id == self.chain_id,
            "current_block": current_block,
            "chain_id": chain_id,
        }
