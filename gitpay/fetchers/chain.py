"""
Node RPC fetcher built on web3.

Name resolution, transaction call-data lookups, token reads and Transfer
logs. web3's HTTP provider is blocking, so every call runs in a worker
thread.
"""

import asyncio
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from ens.exceptions import InvalidName
from eth_utils import is_address, to_checksum_address
from hexbytes import HexBytes
from web3 import Web3

from .base import BaseFetcher, FetchConfig
from .errors import BadRequestError, NotFoundError, UpstreamError

ERC20_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "type": "function",
    },
]

TRANSFER_TOPIC = Web3.to_hex(Web3.keccak(text="Transfer(address,address,uint256)"))


def _topic_to_address(topic: Any) -> str:
    return to_checksum_address(bytes(HexBytes(topic))[-20:])


class ChainFetcher(BaseFetcher):
    """
    Fetcher for standard node RPC calls.

    Args:
        rpc_url: Node endpoint (ignored when ``web3`` is supplied)
        config: Retry and timeout settings
        web3: Pre-built Web3 instance, mainly for tests
    """

    def __init__(self, rpc_url: str, config: Optional[FetchConfig] = None, web3: Optional[Web3] = None):
        super().__init__(rpc_url, config)
        self.web3 = web3 or Web3(
            Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": self.config.timeout})
        )

    def validate_config(self) -> bool:
        return bool(self.rpc_url) or self.web3 is not None

    async def _call(self, func, *args, **kwargs) -> Any:
        """Run a blocking web3 call in a thread, mapping failures to UpstreamError."""
        async def _run():
            try:
                return await asyncio.to_thread(func, *args, **kwargs)
            except (UpstreamError, BadRequestError, NotFoundError, InvalidName):
                raise
            except Exception as e:
                raise UpstreamError(f"{getattr(func, '__name__', 'rpc call')} failed: {e}") from e

        return await self._retry_operation(_run)

    # ── Names ────────────────────────────────────────────────────────────
    async def resolve_name(self, name: str) -> Optional[str]:
        """Forward-resolve an ENS name; None when it has no address."""
        try:
            return await self._call(self.web3.ens.address, name)
        except InvalidName as e:
            raise BadRequestError(f"Invalid ENS name '{name}': {e}") from e

    async def lookup_name(self, address: str) -> Optional[str]:
        """Reverse-resolve an address. Failures are logged and yield None."""
        try:
            return await self._call(self.web3.ens.name, to_checksum_address(address))
        except Exception as e:
            self.logger.warning(f"⚠️ Could not resolve ENS for {address}: {e}")
            return None

    async def lookup_names(self, addresses: Iterable[str], batch_size: int = 5) -> Dict[str, Optional[str]]:
        """
        Reverse-resolve many addresses, ``batch_size`` at a time.

        Returns:
            Mapping of lowercased address to name (or None)
        """
        unique = list(dict.fromkeys(a.lower() for a in addresses if a))
        names: Dict[str, Optional[str]] = {}

        for i in range(0, len(unique), batch_size):
            batch = unique[i:i + batch_size]
            results = await asyncio.gather(*(self.lookup_name(a) for a in batch))
            names.update(zip(batch, results))

        return names

    async def resolve_target(self, name_or_address: str) -> str:
        """
        Turn a query value into an address.

        Raises:
            NotFoundError: If the name does not resolve
        """
        if is_address(name_or_address):
            return to_checksum_address(name_or_address)

        self.logger.info(f"🔍 Resolving ENS: {name_or_address}")
        address = await self.resolve_name(name_or_address)
        if not address:
            raise NotFoundError("ENS name not found")

        self.logger.info(f"📍 Resolved address: {address}")
        return address

    # ── Transactions ─────────────────────────────────────────────────────
    async def get_transaction_input(self, tx_hash: str) -> bytes:
        """Call-data of a transaction."""
        tx = await self._call(self.web3.eth.get_transaction, tx_hash)
        data = tx.get("input") if hasattr(tx, "get") else tx["input"]
        return bytes(HexBytes(data or b""))

    async def get_latest_block(self) -> int:
        return await self._call(lambda: self.web3.eth.block_number)

    async def get_block_timestamp(self, block_number: int) -> int:
        block = await self._call(self.web3.eth.get_block, block_number)
        return int(block["timestamp"])

    async def get_transfer_logs(self, token: str, from_block: int, to_block: int) -> List[Dict[str, Any]]:
        """
        Transfer events emitted by ``token`` in a block range.

        Returns:
            Dicts with hash, from, to, value (base units) and block_number
        """
        logs = await self._call(
            self.web3.eth.get_logs,
            {
                "address": to_checksum_address(token),
                "fromBlock": from_block,
                "toBlock": to_block,
                "topics": [TRANSFER_TOPIC],
            },
        )

        transfers = []
        for log in logs:
            topics = log["topics"]
            if len(topics) < 3:
                continue
            data = bytes(HexBytes(log["data"]))
            transfers.append({
                "hash": Web3.to_hex(HexBytes(log["transactionHash"])),
                "from": _topic_to_address(topics[1]),
                "to": _topic_to_address(topics[2]),
                "value": int.from_bytes(data[:32], "big") if data else 0,
                "block_number": int(log["blockNumber"]),
            })
        return transfers

    # ── Token reads ──────────────────────────────────────────────────────
    async def get_token_balance(self, address: str, token: str) -> Decimal:
        """Token balance of ``address`` in display units (balanceOf / 10**decimals)."""
        contract = self.web3.eth.contract(address=to_checksum_address(token), abi=ERC20_ABI)
        balance, decimals = await asyncio.gather(
            self._call(contract.functions.balanceOf(to_checksum_address(address)).call),
            self._call(contract.functions.decimals().call),
        )
        return Decimal(balance) / (Decimal(10) ** int(decimals))
