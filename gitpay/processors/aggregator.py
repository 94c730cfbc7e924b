"""
GitPay transfer aggregator.

Pulls token transfer events touching an address from the indexing API,
looks up each transaction's call-data on the node, classifies it, and
returns a deduplicated, newest-first list.

Failure semantics:
- an indexer query failure fails the whole aggregation (UpstreamError
  propagates) so no partial statistics are ever produced;
- a failed per-transaction lookup is logged and that transfer skipped.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from eth_utils import is_address, to_checksum_address

from ..fetchers.errors import UpstreamError
from .classifier import TransferClassifier
from .models import TaggedTransfer


class RetentionPolicy(str, Enum):
    """Which classified transfers the aggregator keeps."""

    TAGGED_ONLY = "tagged_only"
    ALL = "all"


def _parse_int(value: Any) -> int:
    """Int from a hex string, decimal string or int."""
    if isinstance(value, int):
        return value
    text = str(value).strip()
    return int(text, 16) if text.lower().startswith("0x") else int(text)


def _parse_timestamp(value: str) -> datetime:
    """ISO-8601 block timestamp (trailing Z allowed) as aware UTC datetime."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _normalize_address(value: Optional[str]) -> str:
    return to_checksum_address(value) if value and is_address(value) else (value or "")


class TransferAggregator:
    """
    Builds the list of GitPay transfers for an address.

    Args:
        indexer: Asset transfer index (``get_asset_transfers``)
        node: Node RPC (``get_transaction_input``; the network feed also
            uses ``get_latest_block``, ``get_transfer_logs`` and
            ``get_block_timestamp``)
        classifier: Call-data classifier
        token_address: Token contract of interest
        decimals: Token decimals, used when a record does not carry them
        lookup_concurrency: Max in-flight transaction lookups
        display_limit: Default number of transfers returned
        max_transfers: Upper bound on records requested per direction
        retention: Default retention policy
    """

    def __init__(
        self,
        indexer,
        node,
        classifier: TransferClassifier,
        token_address: str,
        decimals: int = 6,
        lookup_concurrency: int = 5,
        display_limit: int = 10,
        max_transfers: int = 1000,
        retention: Union[RetentionPolicy, str] = RetentionPolicy.TAGGED_ONLY,
    ):
        self.indexer = indexer
        self.node = node
        self.classifier = classifier
        self.token_address = token_address
        self.decimals = decimals
        self.lookup_concurrency = max(lookup_concurrency, 1)
        self.display_limit = display_limit
        self.max_transfers = max_transfers
        self.retention = RetentionPolicy(retention)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    # ── Per-address history ──────────────────────────────────────────────
    async def fetch_tagged_transfers(
        self,
        address: str,
        limit: int = 50,
        display_limit: Optional[int] = None,
        retention: Optional[Union[RetentionPolicy, str]] = None,
    ) -> List[TaggedTransfer]:
        """
        Classified token transfers touching ``address``, newest first.

        Args:
            address: Subject address
            limit: Max unique transfers whose transactions are looked up
            display_limit: Max transfers returned (defaults to the instance setting)
            retention: Override the retention policy for this call

        Returns:
            Transfers sorted by timestamp descending

        Raises:
            UpstreamError: If either indexer query fails
        """
        retention = RetentionPolicy(retention) if retention is not None else self.retention
        display_limit = self.display_limit if display_limit is None else display_limit

        self.logger.info(f"🔍 Fetching asset transfers for address: {address}")

        queries = [
            asyncio.create_task(self.indexer.get_asset_transfers(
                to_address=address,
                contract_addresses=[self.token_address],
                category=["erc20"],
                max_count=self.max_transfers,
            )),
            asyncio.create_task(self.indexer.get_asset_transfers(
                from_address=address,
                contract_addresses=[self.token_address],
                category=["erc20"],
                max_count=self.max_transfers,
            )),
        ]
        try:
            received, sent = await asyncio.gather(*queries)
        except BaseException:
            # One direction failed: stop the other and collect its outcome
            for query in queries:
                query.cancel()
            await asyncio.gather(*queries, return_exceptions=True)
            raise

        candidates = self._merge_records([*received, *sent])
        self.logger.info(
            f"📋 Found {len(received) + len(sent)} total asset transfers, "
            f"{len(candidates)} unique token transfers for address {address}"
        )

        candidates.sort(key=lambda t: t.block_number, reverse=True)
        classified = await self._classify_all(candidates[:limit])

        retained = self._apply_retention(classified, retention)
        retained.sort(key=lambda t: (t.timestamp, t.block_number), reverse=True)

        self.logger.info(
            f"✅ Found {len(retained)} {retention.value} transfers for address {address}, "
            f"returning {min(len(retained), display_limit)}"
        )
        return retained[:display_limit]

    def _merge_records(self, records: Iterable[Dict[str, Any]]) -> List[TaggedTransfer]:
        """Parse indexer records, keep the token of interest, dedupe by hash."""
        token = self.token_address.lower()
        unique: Dict[str, TaggedTransfer] = {}

        for record in records:
            contract = ((record.get("rawContract") or {}).get("address") or "").lower()
            if contract != token:
                continue

            transfer = self._parse_record(record)
            unique.setdefault(transfer.transaction_hash.lower(), transfer)

        return list(unique.values())

    def _parse_record(self, record: Dict[str, Any]) -> TaggedTransfer:
        """Build an unclassified TaggedTransfer from an indexer record."""
        try:
            raw_contract = record.get("rawContract") or {}
            decimals_field = raw_contract.get("decimal", raw_contract.get("decimals"))
            decimals = _parse_int(decimals_field) if decimals_field is not None else self.decimals

            if raw_contract.get("value"):
                raw_value = _parse_int(raw_contract["value"])
            elif record.get("value") is not None:
                raw_value = int(Decimal(str(record["value"])) * (Decimal(10) ** decimals))
            else:
                raw_value = 0

            return TaggedTransfer(
                transaction_hash=record["hash"],
                from_address=_normalize_address(record.get("from")),
                to_address=_normalize_address(record.get("to")),
                raw_value=raw_value,
                block_number=_parse_int(record["blockNum"]),
                timestamp=_parse_timestamp(record["metadata"]["blockTimestamp"]),
                token_address=raw_contract.get("address"),
                decimals=decimals,
            )
        except (KeyError, TypeError, ValueError, InvalidOperation) as e:
            raise UpstreamError(f"Malformed transfer record from indexer: {e}") from e

    async def _classify_all(self, candidates: List[TaggedTransfer]) -> List[TaggedTransfer]:
        semaphore = asyncio.Semaphore(self.lookup_concurrency)
        results = await asyncio.gather(
            *(self._classify_one(candidate, semaphore) for candidate in candidates)
        )
        return [r for r in results if r is not None]

    async def _classify_one(
        self, candidate: TaggedTransfer, semaphore: asyncio.Semaphore
    ) -> Optional[TaggedTransfer]:
        """Look up and classify one transfer; None when the lookup fails or finds no call-data."""
        tx_hash = candidate.transaction_hash
        async with semaphore:
            try:
                call_data = await self.node.get_transaction_input(tx_hash)
            except Exception as e:
                self.logger.warning(f"⚠️ Skipping transfer {tx_hash}: transaction lookup failed: {e}")
                return None

        if not call_data:
            self.logger.warning(f"⚠️ Skipping transfer {tx_hash}: transaction has no input data")
            return None

        return replace(candidate, classification=self.classifier.classify(call_data))

    @staticmethod
    def _apply_retention(
        transfers: List[TaggedTransfer], retention: RetentionPolicy
    ) -> List[TaggedTransfer]:
        if retention is RetentionPolicy.ALL:
            return list(transfers)
        return [t for t in transfers if t.is_tagged]

    # ── Network-wide feed ────────────────────────────────────────────────
    async def fetch_recent_network_transfers(
        self, block_window: int = 10, limit: int = 100
    ) -> List[TaggedTransfer]:
        """
        Tagged transfers of the token across the last ``block_window`` blocks.

        Raises:
            UpstreamError: If the block number or log query fails
        """
        latest_block = await self.node.get_latest_block()
        from_block = max(latest_block - max(block_window, 1) + 1, 0)

        self.logger.info(f"🔍 Fetching transfer logs from block {from_block} to {latest_block}")
        logs = await self.node.get_transfer_logs(self.token_address, from_block, latest_block)

        unique: Dict[str, Dict[str, Any]] = {}
        for log in logs:
            unique.setdefault(log["hash"].lower(), log)
        self.logger.info(f"📋 Found {len(logs)} transfer logs ({len(unique)} transactions)")

        newest = sorted(unique.values(), key=lambda log: int(log["block_number"]), reverse=True)

        # Timestamps are attached after classification, only for tagged transfers
        placeholder = datetime.fromtimestamp(0, tz=timezone.utc)
        candidates = [
            TaggedTransfer(
                transaction_hash=log["hash"],
                from_address=log["from"],
                to_address=log["to"],
                raw_value=int(log["value"]),
                block_number=int(log["block_number"]),
                timestamp=placeholder,
                token_address=self.token_address,
                decimals=self.decimals,
            )
            for log in newest[:limit]
        ]

        tagged = [t for t in await self._classify_all(candidates) if t.is_tagged]
        timestamps = await self._block_timestamps({t.block_number for t in tagged})

        transfers = [
            replace(t, timestamp=timestamps[t.block_number])
            for t in tagged
            if t.block_number in timestamps
        ]
        transfers.sort(key=lambda t: (t.timestamp, t.block_number), reverse=True)

        self.logger.info(f"✅ Found {len(transfers)} GitPay transactions")
        return transfers

    async def _block_timestamps(self, block_numbers: Iterable[int]) -> Dict[int, datetime]:
        semaphore = asyncio.Semaphore(self.lookup_concurrency)

        async def _lookup(number: int):
            async with semaphore:
                try:
                    ts = await self.node.get_block_timestamp(number)
                except Exception as e:
                    self.logger.warning(f"⚠️ Could not read block {number}: {e}")
                    return number, None
            return number, datetime.fromtimestamp(ts, tz=timezone.utc)

        results = await asyncio.gather(*(_lookup(n) for n in block_numbers))
        return {number: ts for number, ts in results if ts is not None}
