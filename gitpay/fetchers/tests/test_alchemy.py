"""Tests for the Alchemy JSON-RPC fetcher."""
import json
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from ..alchemy import AlchemyFetcher
from ..base import FetchConfig
from ..errors import NetworkError, RateLimitError, UpstreamError

URL = "https://eth-sepolia.g.alchemy.com/v2/test-key"
TOKEN = "0xCaC524BcA292aaade2DF8A05cC58F0a65B1B3bB9"
ALICE = "0x" + "1" * 40


def rpc_result(result):
    return {"jsonrpc": "2.0", "id": 1, "result": result}


def mock_session(status=200, body=None, text="", headers=None):
    """aiohttp session double whose post() yields one canned response."""
    response = MagicMock()
    response.status = status
    response.headers = headers or {}
    response.json = AsyncMock(return_value=body)
    response.text = AsyncMock(return_value=text)

    session = MagicMock()
    session.closed = False
    session.post.return_value.__aenter__ = AsyncMock(return_value=response)
    session.post.return_value.__aexit__ = AsyncMock(return_value=False)
    return session


class TestAlchemyFetcher:
    """Test cases for AlchemyFetcher."""

    @pytest.fixture
    def fetcher(self):
        """Fetcher with retries disabled."""
        return AlchemyFetcher(URL, FetchConfig(max_retries=1, retry_delay=0))

    def test_validate_config(self, fetcher):
        assert fetcher.validate_config() is True
        assert AlchemyFetcher("").validate_config() is False

    @pytest.mark.asyncio
    async def test_asset_transfer_params(self, fetcher):
        """Test the query payload for a to-address lookup."""
        with patch.object(
            fetcher, "_post_json", AsyncMock(return_value=rpc_result({"transfers": []}))
        ) as post:
            await fetcher.get_asset_transfers(
                to_address=ALICE, contract_addresses=[TOKEN], max_count=1000
            )

        payload = post.await_args.args[0]
        assert payload["method"] == "alchemy_getAssetTransfers"
        params = payload["params"][0]
        assert params["toAddress"] == ALICE
        assert "fromAddress" not in params
        assert params["contractAddresses"] == [TOKEN]
        assert params["category"] == ["erc20"]
        assert params["fromBlock"] == "0x0"
        assert params["toBlock"] == "latest"
        assert params["withMetadata"] is True
        assert params["maxCount"] == "0x3e8"

    @pytest.mark.asyncio
    async def test_follows_page_key(self, fetcher):
        """Test pagination continues until no pageKey is returned."""
        pages = [
            rpc_result({"transfers": [{"hash": "0x01"}], "pageKey": "page-2"}),
            rpc_result({"transfers": [{"hash": "0x02"}]}),
        ]
        with patch.object(fetcher, "_post_json", AsyncMock(side_effect=pages)) as post:
            transfers = await fetcher.get_asset_transfers(from_address=ALICE)

        assert [t["hash"] for t in transfers] == ["0x01", "0x02"]
        assert post.await_count == 2
        assert "pageKey" not in post.await_args_list[0].args[0]["params"][0]
        assert post.await_args_list[1].args[0]["params"][0]["pageKey"] == "page-2"

    @pytest.mark.asyncio
    async def test_stops_at_max_count(self, fetcher):
        """Test max_count bounds the records fetched across pages."""
        page = rpc_result({"transfers": [{"hash": "0x01"}, {"hash": "0x02"}], "pageKey": "more"})
        with patch.object(fetcher, "_post_json", AsyncMock(return_value=page)) as post:
            transfers = await fetcher.get_asset_transfers(from_address=ALICE, max_count=2)

        assert len(transfers) == 2
        assert post.await_count == 1
        assert post.await_args.args[0]["params"][0]["maxCount"] == "0x2"

    @pytest.mark.asyncio
    async def test_error_member_raises(self, fetcher):
        """Test an error payload in a 200 response is an upstream failure."""
        body = {"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "invalid address"}}
        with patch.object(fetcher, "_post_json", AsyncMock(return_value=body)):
            with pytest.raises(UpstreamError, match="invalid address") as exc_info:
                await fetcher.get_asset_transfers(to_address=ALICE)

        assert exc_info.value.code == -32602

    @pytest.mark.asyncio
    async def test_quota_error_is_rate_limit(self, fetcher):
        """Test quota exhaustion maps to RateLimitError."""
        body = {"error": {"code": 429, "message": "Monthly capacity limit exceeded"}}
        with patch.object(fetcher, "_post_json", AsyncMock(return_value=body)):
            with pytest.raises(RateLimitError):
                await fetcher.get_asset_transfers(to_address=ALICE)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"jsonrpc": "2.0", "id": 1}, ["not", "an", "object"]])
    async def test_malformed_response(self, fetcher, body):
        """Test responses without a result are upstream failures."""
        with patch.object(fetcher, "_post_json", AsyncMock(return_value=body)):
            with pytest.raises(UpstreamError, match="Malformed"):
                await fetcher.get_asset_transfers(to_address=ALICE)

    @pytest.mark.asyncio
    async def test_transport_failure_is_retried(self):
        """Test network failures are retried before giving up."""
        fetcher = AlchemyFetcher(URL, FetchConfig(max_retries=3, retry_delay=0))
        post = AsyncMock(side_effect=[NetworkError("connection reset"), rpc_result({"transfers": []})])

        with patch.object(fetcher, "_post_json", post):
            assert await fetcher.get_asset_transfers(to_address=ALICE) == []

        assert post.await_count == 2

    @pytest.mark.asyncio
    async def test_non_json_body_is_upstream_error(self):
        """Test a 200 response with an unparseable body stays in the error taxonomy."""
        session = mock_session()
        response = session.post.return_value.__aenter__.return_value
        response.json.side_effect = json.JSONDecodeError("Expecting value", "<html>", 0)
        fetcher = AlchemyFetcher(URL, FetchConfig(max_retries=1, retry_delay=0), session=session)

        with pytest.raises(UpstreamError, match="Malformed response"):
            await fetcher.get_asset_transfers(to_address=ALICE)


class TestPostJson:
    """Test cases for the HTTP transport mapping."""

    @pytest.mark.asyncio
    async def test_success(self):
        session = mock_session(body=rpc_result({"transfers": []}))
        fetcher = AlchemyFetcher(URL, FetchConfig(max_retries=1), session=session)

        assert await fetcher._post_json({"id": 1}) == rpc_result({"transfers": []})
        session.post.assert_called_once_with(URL, json={"id": 1})

    @pytest.mark.asyncio
    async def test_http_429(self):
        session = mock_session(status=429, headers={"Retry-After": "3"})
        fetcher = AlchemyFetcher(URL, FetchConfig(max_retries=1), session=session)

        with pytest.raises(RateLimitError) as exc_info:
            await fetcher._post_json({"id": 1})
        assert exc_info.value.retry_after == 3.0

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        session = mock_session(status=503, text="upstream unavailable")
        fetcher = AlchemyFetcher(URL, FetchConfig(max_retries=1), session=session)

        with pytest.raises(UpstreamError, match="503") as exc_info:
            await fetcher._post_json({"id": 1})
        assert exc_info.value.code == 503

    @pytest.mark.asyncio
    async def test_client_error_is_network_error(self):
        session = mock_session()
        session.post.side_effect = aiohttp.ClientConnectionError("refused")
        fetcher = AlchemyFetcher(URL, FetchConfig(max_retries=1), session=session)

        with pytest.raises(NetworkError):
            await fetcher._post_json({"id": 1})

    @pytest.mark.asyncio
    async def test_close_leaves_injected_session_open(self):
        session = mock_session()
        session.close = AsyncMock()
        fetcher = AlchemyFetcher(URL, session=session)

        await fetcher.close()

        session.close.assert_not_awaited()
