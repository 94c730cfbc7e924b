"""
Tests for the HTTP surface.

The service graph is built from real configuration objects with the
fetchers and the aggregator replaced by mocks, so every route runs
without network access.
"""
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from ...config import ChainConfig, ConfigManager, ServerConfig, TransferConfig
from ...fetchers import NotFoundError, UpstreamError
from ...processors import (
    Classification,
    RetentionPolicy,
    TaggedTransfer,
    TransferClassifier,
    build_transfer_data,
)
from .. import GitPayServices, create_app

ADDRESS = "0xCaC524BcA292aaade2DF8A05cC58F0a65B1B3bB9"
ALICE = "0x" + "1" * 40
BOB = "0x" + "2" * 40
CAROL = "0x" + "3" * 40


def tagged(n, sender, recipient, amount, is_tagged=True):
    return TaggedTransfer(
        transaction_hash="0x" + f"{n:064x}",
        from_address=sender,
        to_address=recipient,
        raw_value=amount,
        block_number=100 + n,
        timestamp=datetime(2025, 10, 1, 12, n, tzinfo=timezone.utc),
        classification=Classification(is_tagged=is_tagged),
    )


@pytest.fixture
def config():
    """Configuration pinned to sepolia, independent of the environment."""
    manager = ConfigManager(environment="local")
    manager._chain_config = ChainConfig(
        ENVIRONMENT="local", NETWORK="sepolia", ALCHEMY_API_KEY="test-key", RPC_URL=None,
        TOKEN_ADDRESS=None, TOKEN_SYMBOL="PYUSD", TOKEN_DECIMALS=6,
    )
    manager._transfer_config = TransferConfig(
        ENVIRONMENT="local", TAG_MATCH_MODE="fixed_offset", RETENTION_POLICY="tagged_only",
        LOOKUP_LIMIT=50, DASHBOARD_LIMIT=4, NAME_BATCH_SIZE=5, MAX_TRANSFERS=1000, RECENT_BLOCK_WINDOW=10,
    )
    manager._server_config = ServerConfig(
        ENVIRONMENT="local", STATS_CACHE_SECONDS=300, DASHBOARD_CACHE_SECONDS=60, DEFAULT_DONATION_AMOUNT="10",
    )
    return manager


@pytest.fixture
def node():
    node = Mock()
    node.resolve_target = AsyncMock(return_value=ALICE)
    node.lookup_name = AsyncMock(return_value=None)
    node.lookup_names = AsyncMock(return_value={})
    node.get_token_balance = AsyncMock(return_value=Decimal("12.5"))
    node.close = AsyncMock()
    return node


@pytest.fixture
def aggregator():
    aggregator = Mock()
    aggregator.classifier = TransferClassifier("fixed_offset")
    aggregator.fetch_tagged_transfers = AsyncMock(return_value=[])
    aggregator.fetch_recent_network_transfers = AsyncMock(return_value=[])
    return aggregator


@pytest.fixture
def services(config, node, aggregator):
    indexer = Mock()
    indexer.close = AsyncMock()
    return GitPayServices(config=config, indexer=indexer, node=node, aggregator=aggregator)


@pytest.fixture
def client(services):
    with TestClient(create_app(services), raise_server_exceptions=False) as client:
        yield client


def test_health(client):
    response = client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "GitPay API is running!"
    assert body["network"] == "sepolia"
    assert any("/api/dashboard" in e for e in body["endpoints"])


def test_cors_preflight(client):
    response = client.options(
        "/api/transactions",
        headers={"Origin": "https://github.com", "Access-Control-Request-Method": "GET"},
    )
    assert response.status_code == 200
    assert "access-control-allow-origin" in response.headers


def test_close_leaves_injected_services_open(services):
    with TestClient(create_app(services)):
        pass
    services.indexer.close.assert_not_awaited()


class TestStatsBadge:
    """Test cases for /api/ens-stats."""

    def test_badge(self, client, node):
        response = client.get("/api/ens-stats", params={"ens": "alice.eth", "style": "dark"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("image/svg+xml")
        assert response.headers["cache-control"] == "public, max-age=300"
        assert "PYUSD Balance: 12.50" in response.text
        node.get_token_balance.assert_awaited_once_with(ALICE, ADDRESS)

    def test_missing_ens(self, client):
        response = client.get("/api/ens-stats")

        assert response.status_code == 400
        assert response.json() == {"error": "ENS name is required"}

    def test_invalid_style(self, client):
        response = client.get("/api/ens-stats", params={"ens": "alice.eth", "style": "sepia"})

        assert response.status_code == 400
        assert "Invalid style" in response.json()["error"]

    def test_unknown_name(self, client, node):
        node.resolve_target.side_effect = NotFoundError("ENS name not found")

        response = client.get("/api/ens-stats", params={"ens": "nobody.eth"})

        assert response.status_code == 404
        assert response.json() == {"error": "ENS name not found"}

    def test_upstream_failure(self, client, node):
        node.get_token_balance.side_effect = UpstreamError("balanceOf failed: timeout")

        response = client.get("/api/ens-stats", params={"ens": "alice.eth"})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "details": "balanceOf failed: timeout"}

    def test_unexpected_failure(self, client, node):
        node.get_token_balance.side_effect = RuntimeError("boom")

        response = client.get("/api/ens-stats", params={"ens": "alice.eth"})

        assert response.status_code == 500
        assert response.json()["error"] == "Internal server error"


class TestDonate:
    """Test cases for /api/donate and /donate."""

    def test_badge_default_amount(self, client):
        response = client.get("/api/donate", params={"ens": "alice.eth"})

        assert response.status_code == 200
        assert "10 PYUSD" in response.text
        assert "to alice.eth" in response.text

    def test_invalid_method(self, client):
        response = client.get("/api/donate", params={"ens": "alice.eth", "method": "eth"})

        assert response.status_code == 400
        assert response.json() == {"error": 'Invalid method. Use "pyusd"'}

    def test_invalid_amount(self, client):
        response = client.get("/api/donate", params={"ens": "alice.eth", "amount": "lots"})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid amount: lots"}

    def test_page(self, client):
        response = client.get("/donate", params={"ens": "alice.eth", "amount": "2.5", "memo": "thanks"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert build_transfer_data(ALICE, 2_500_000, "thanks") in response.text
        assert "Donate to alice.eth" in response.text

    def test_page_requires_ens(self, client):
        assert client.get("/donate").status_code == 400


class TestDashboard:
    """Test cases for /api/dashboard."""

    def test_by_name(self, client, node, aggregator):
        aggregator.fetch_tagged_transfers.return_value = [
            tagged(3, BOB, ALICE, 10_000_000),
            tagged(2, ALICE, CAROL, 1_000_000),
        ]
        node.lookup_names.return_value = {BOB: "bob.eth"}

        response = client.get("/api/dashboard", params={"ens": "alice.eth"})

        assert response.status_code == 200
        assert response.headers["cache-control"] == "public, max-age=60"
        assert "10.00 PYUSD" in response.text
        assert "from bob.eth" in response.text
        aggregator.fetch_tagged_transfers.assert_awaited_once_with(ALICE, limit=50, display_limit=50)

    def test_recent_names_cover_first_four(self, client, node, aggregator):
        aggregator.fetch_tagged_transfers.return_value = [tagged(n, BOB, ALICE, 1) for n in range(6)]

        client.get("/api/dashboard", params={"ens": "alice.eth"})

        counterparts = node.lookup_names.await_args.args[0]
        assert len(counterparts) == 8

    def test_by_address_uses_reverse_name(self, client, node):
        node.resolve_target.return_value = ADDRESS
        node.lookup_name.return_value = "alice.eth"

        response = client.get("/api/dashboard", params={"address": ADDRESS.lower()})

        assert response.status_code == 200
        assert "alice.eth" in response.text
        node.lookup_name.assert_awaited_once_with(ADDRESS)

    def test_requires_subject(self, client):
        response = client.get("/api/dashboard")

        assert response.status_code == 400
        assert response.json() == {"error": "Either ENS name or address is required"}

    @pytest.mark.parametrize("address", ["0x123", ADDRESS[:3] + ADDRESS[3].upper() + ADDRESS[4:]])
    def test_invalid_address(self, client, address):
        """Test short and bad-checksum addresses are rejected."""
        response = client.get("/api/dashboard", params={"address": address})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid ENS name or address format"}


class TestTransactions:
    """Test cases for the transaction APIs."""

    @pytest.fixture
    def feed(self, aggregator):
        feed = [tagged(3, BOB, ALICE, 3_000_000), tagged(2, CAROL, ALICE, 2_000_000), tagged(1, ALICE, BOB, 1_000_000)]
        aggregator.fetch_recent_network_transfers.return_value = feed
        return feed

    def test_pagination(self, client, aggregator, feed):
        response = client.get("/api/transactions", params={"limit": 1, "offset": 1})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [tx["hash"] for tx in body["data"]["transactions"]] == [feed[1].transaction_hash]
        assert body["data"]["pagination"] == {"total": 3, "limit": 1, "offset": 1, "hasMore": True}
        aggregator.fetch_recent_network_transfers.assert_awaited_once_with(block_window=10, limit=1000)

    @pytest.mark.parametrize("params", [{"limit": 0}, {"offset": -1}])
    def test_invalid_bounds(self, client, feed, params):
        assert client.get("/api/transactions", params=params).status_code == 400

    def test_stats(self, client, feed):
        response = client.get("/api/transactions/stats")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalTransactions"] == 3
        assert data["totalVolume"] == "6"
        assert data["uniqueRecipients"] == 2

    def test_recent_is_capped(self, client, feed):
        response = client.get("/api/transactions/recent", params={"limit": 500})

        assert response.status_code == 200
        assert response.json()["data"]["count"] == 3

    def test_by_address(self, client, aggregator):
        aggregator.fetch_tagged_transfers.return_value = [
            tagged(2, BOB, ALICE, 2_000_000),
            tagged(1, ALICE, BOB, 500_000),
        ]

        response = client.get(f"/api/transactions/{ALICE}", params={"limit": 1})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["address"] == ALICE
        assert len(data["transactions"]) == 1
        assert data["stats"]["totalReceived"] == "2"
        assert data["stats"]["donatedCount"] == 1
        assert data["pagination"]["hasMore"] is True

    def test_by_address_invalid(self, client):
        assert client.get("/api/transactions/alice.eth").status_code == 400


class TestDebug:
    """Test cases for /api/debug."""

    def test_reports_every_transfer(self, client, aggregator):
        aggregator.fetch_tagged_transfers.return_value = [
            tagged(2, BOB, ALICE, 1, is_tagged=True),
            tagged(1, BOB, ALICE, 1, is_tagged=False),
        ]

        response = client.get("/api/debug", params={"ens": "alice.eth"})

        assert response.status_code == 200
        body = response.json()
        assert body["address"] == ALICE
        assert body["ensName"] == "alice.eth"
        assert body["tagMatchMode"] == "fixed_offset"
        assert body["tokenTransfers"] == 2
        assert body["taggedTransfers"] == 1
        assert aggregator.fetch_tagged_transfers.await_args.kwargs["retention"] == RetentionPolicy.ALL
