"""
Alchemy JSON-RPC fetcher for the asset transfer index.
"""

import asyncio
import itertools
from typing import Any, Dict, List, Optional

import aiohttp

from .base import BaseFetcher, FetchConfig
from .errors import NetworkError, RateLimitError, UpstreamError

# Alchemy caps a single page at 1000 records
MAX_PAGE_SIZE = 1000


class AlchemyFetcher(BaseFetcher):
    """
    Fetcher for Alchemy's enhanced APIs.

    Wraps ``alchemy_getAssetTransfers`` with pageKey pagination. Every failure, including an ``error``
    member in an otherwise successful response, raises UpstreamError.
    """

    def __init__(
        self,
        rpc_url: str,
        config: Optional[FetchConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        super().__init__(rpc_url, config)
        self._session = session
        self._owns_session = session is None
        self._ids = itertools.count(1)

    def validate_config(self) -> bool:
        return self.rpc_url.startswith("http")

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"Accept": "application/json", "Content-Type": "application/json"},
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def _post_json(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST a JSON-RPC payload and return the decoded body."""
        session = await self._get_session()
        try:
            async with session.post(self.rpc_url, json=payload) as response:
                if response.status == 429:
                    retry_after = response.headers.get("Retry-After")
                    raise RateLimitError(
                        "Alchemy rate limit exceeded (HTTP 429)",
                        retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None,
                    )
                if response.status != 200:
                    text = await response.text()
                    raise UpstreamError(
                        f"Alchemy HTTP {response.status}: {text[:200]}", code=response.status
                    )
                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise UpstreamError(f"Malformed response from Alchemy: {e}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f"Alchemy request failed: {e}") from e

    async def _rpc(self, method: str, params: List[Any]) -> Any:
        """Call a JSON-RPC method and return its ``result``."""
        payload = {"id": next(self._ids), "jsonrpc": "2.0", "method": method, "params": params}

        data = await self._retry_operation(self._post_json, payload)

        if not isinstance(data, dict):
            raise UpstreamError(f"Malformed response from {method}: expected an object")

        error = data.get("error")
        if error:
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            code = error.get("code") if isinstance(error, dict) else None
            if code == 429 or "exceeded" in message.lower() or "rate limit" in message.lower():
                raise RateLimitError(f"Alchemy API error ({method}): {message}")
            raise UpstreamError(f"Alchemy API error ({method}): {message}", code=code)

        if "result" not in data:
            raise UpstreamError(f"Malformed response from {method}: missing result")

        return data["result"]

    async def get_asset_transfers(
        self,
        from_address: Optional[str] = None,
        to_address: Optional[str] = None,
        contract_addresses: Optional[List[str]] = None,
        category: Optional[List[str]] = None,
        max_count: int = MAX_PAGE_SIZE,
        from_block: str = "0x0",
        to_block: str = "latest",
    ) -> List[Dict[str, Any]]:
        """
        Query transfer events touching an address.

        Args:
            from_address: Restrict to transfers sent by this address
            to_address: Restrict to transfers received by this address
            contract_addresses: Token contracts to include
            category: Transfer categories (defaults to erc20)
            max_count: Upper bound on records returned across all pages
            from_block: First block of the range (hex)
            to_block: Last block of the range

        Returns:
            Transfer records as returned by the provider

        Raises:
            UpstreamError: On any provider or transport failure
        """
        params: Dict[str, Any] = {
            "fromBlock": from_block,
            "toBlock": to_block,
            "withMetadata": True,
            "excludeZeroValue": True,
            "category": category or ["erc20"],
        }
        if from_address:
            params["fromAddress"] = from_address
        if to_address:
            params["toAddress"] = to_address
        if contract_addresses:
            params["contractAddresses"] = contract_addresses

        transfers: List[Dict[str, Any]] = []
        page_key = None

        while len(transfers) < max_count:
            page_params = dict(params, maxCount=hex(min(MAX_PAGE_SIZE, max_count - len(transfers))))
            if page_key:
                page_params["pageKey"] = page_key

            result = await self._rpc("alchemy_getAssetTransfers", [page_params])
            if not isinstance(result, dict):
                raise UpstreamError("Malformed alchemy_getAssetTransfers result")

            transfers.extend(result.get("transfers") or [])
            page_key = result.get("pageKey")
            if not page_key:
                break

        direction = f"to {to_address}" if to_address else f"from {from_address}"
        self.logger.debug(f"Fetched {len(transfers)} asset transfers {direction}")
        return transfers[:max_count]
