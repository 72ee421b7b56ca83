"""
Block explorer client.

Etherscan-compatible account/txlist queries over aiohttp.
"""

from typing import Any

import aiohttp
from loguru import logger

from wallet_api.utils.errors import ChainQueryError

from .constants import EXPLORER_END_BLOCK, EXPLORER_TIMEOUT


class ExplorerClient:
    """Etherscan v2 API client for one chain."""

    def __init__(
        self,
        api_url: str,
        api_key: str | None,
        chain_id: int,
        timeout: int = EXPLORER_TIMEOUT,
    ) -> None:
        self.api_url = api_url
        self.api_key = api_key
        self.chain_id = chain_id
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    @property
    def is_configured(self) -> bool:
        """Explorer is usable only with an API key."""
        return bool(self.api_key)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def get_transactions(
        self, address: str, limit: int
    ) -> list[dict[str, Any]]:
        """
        Get the most recent normal transactions touching an address.

        Args:
            address: Account address
            limit: Max number of transactions

        Returns:
            Raw explorer records, newest first

        Raises:
            ChainQueryError: On transport failure or an API error reply
        """
        if not self.is_configured:
            raise ChainQueryError("Explorer API key not configured")

        params = {
            "chainid": str(self.chain_id),
            "module": "account",
            "action": "txlist",
            "address": address,
            "startblock": "0",
            "endblock": str(EXPLORER_END_BLOCK),
            "page": "1",
            "offset": str(limit),
            "sort": "desc",
            "apikey": self.api_key,
        }

        session = await self._get_session()
        try:
            async with session.get(self.api_url, params=params) as resp:
                if resp.status != 200:
                    raise ChainQueryError(
                        f"Explorer returned HTTP {resp.status}"
                    )
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, TimeoutError) as e:
            raise ChainQueryError(f"Explorer request failed: {e}") from e

        if not isinstance(data, dict):
            raise ChainQueryError("Unexpected explorer payload")

        result = data.get("result")
        if data.get("status") == "1" and isinstance(result, list):
            return result[:limit]

        # "No transactions found" comes back as status 0 with an empty list
        if isinstance(result, list) and not result:
            return []

        logger.warning(f"Explorer error for {address}: {data.get('message')}")
        raise ChainQueryError(
            f"Explorer error: {data.get('message') or 'unknown'}",
            {"result": result if isinstance(result, str) else None},
        )
