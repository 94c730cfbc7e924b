"""Test fixtures for classification and aggregation."""
from unittest.mock import AsyncMock, Mock

import pytest
from eth_abi import encode

from ...fetchers.errors import UpstreamError
from ..aggregator import TransferAggregator
from ..classifier import TRANSFER_SELECTOR, TransferClassifier

TOKEN = "0xCaC524BcA292aaade2DF8A05cC58F0a65B1B3bB9"
OTHER_TOKEN = "0x6c3ea9036406852006290770BEdFcAbA0e23A0e8"

# Digit-only addresses are their own checksum form
ALICE = "0x" + "1" * 40
BOB = "0x" + "2" * 40
CAROL = "0x" + "3" * 40


def tx_hash(n: int) -> str:
    return "0x" + f"{n:064x}"


def plain_transfer_data(recipient: str, amount: int) -> str:
    """Call-data of an ordinary, untagged ERC-20 transfer."""
    return "0x" + (TRANSFER_SELECTOR + encode(["address", "uint256"], [recipient, amount])).hex()


def make_record(
    n: int,
    sender: str,
    recipient: str,
    raw_value: int,
    block: int,
    timestamp: str,
    token: str = TOKEN,
) -> dict:
    """An alchemy_getAssetTransfers record as the provider returns it."""
    return {
        "hash": tx_hash(n),
        "from": sender.lower(),
        "to": recipient.lower(),
        "value": raw_value / 10 ** 6,
        "blockNum": hex(block),
        "category": "erc20",
        "metadata": {"blockTimestamp": timestamp},
        "rawContract": {"address": token.lower(), "value": hex(raw_value), "decimal": "0x6"},
    }


def make_indexer(received=(), sent=(), error=None):
    """Indexer double answering the to/from queries separately."""

    async def get_asset_transfers(from_address=None, to_address=None, **kwargs):
        if error is not None:
            raise error
        return list(received) if to_address else list(sent)

    indexer = Mock()
    indexer.get_asset_transfers = AsyncMock(side_effect=get_asset_transfers)
    return indexer


def make_node(inputs):
    """Node double serving call-data by transaction hash."""

    async def get_transaction_input(hash_):
        value = inputs.get(hash_)
        if isinstance(value, Exception):
            raise value
        if value is None:
            raise UpstreamError(f"transaction {hash_} not found")
        return value

    node = Mock()
    node.get_transaction_input = AsyncMock(side_effect=get_transaction_input)
    return node


@pytest.fixture
def classifier():
    """Default fixed-offset classifier."""
    return TransferClassifier()


@pytest.fixture
def build_aggregator(classifier):
    """Factory wiring an aggregator around indexer/node doubles."""

    def _build(indexer, node, **kwargs):
        kwargs.setdefault("display_limit", 10)
        return TransferAggregator(
            indexer=indexer,
            node=node,
            classifier=classifier,
            token_address=TOKEN,
            decimals=6,
            **kwargs,
        )

    return _build
