"""
Tests for the HTTP clients.

============================================================
PURPOSE
============================================================
1. Error mapping of the single GET primitive
2. Explorer / DEX endpoint paths and query parameters
3. Session ownership

============================================================
"""

import asyncio
import json
from typing import Any, Optional

import aiohttp
import pytest

from conftest import CREATOR, TOKEN
from onchain_stats.exceptions import (
    HttpError,
    MalformedResponseError,
    RateLimitError,
    RequestTimeoutError,
)
from onchain_stats.providers.dexscreener import DexScreenerClient
from onchain_stats.providers.explorer import ExplorerClient


# ============================================================
# FAKE SESSION
# ============================================================

class FakeResponse:
    def __init__(self, status: int = 200, body: Any = None, headers: Optional[dict] = None) -> None:
        self.status = status
        self.headers = headers or {}
        self._body = body if isinstance(body, str) else json.dumps(body)

    async def text(self) -> str:
        return self._body

    async def json(self, content_type: Optional[str] = None) -> Any:
        return json.loads(self._body)

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        return None


class RaisingRequest:
    def __init__(self, error: BaseException) -> None:
        self.error = error

    async def __aenter__(self):
        raise self.error

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        return None


class FakeSession:
    """Stands in for aiohttp.ClientSession.get()."""

    def __init__(self, response: Any) -> None:
        self.response = response
        self.requests: list[tuple[str, Optional[dict]]] = []
        self.closed = False

    def get(self, url: str, params: Optional[dict] = None, **kwargs: Any):
        self.requests.append((url, params))
        return self.response

    async def close(self) -> None:
        self.closed = True


def explorer_with(response: Any, config) -> tuple[ExplorerClient, FakeSession]:
    session = FakeSession(response)
    return ExplorerClient(config, session=session), session


# ============================================================
# ERROR MAPPING
# ============================================================

class TestFetchJson:
    """Tests for BaseHttpClient.fetch_json."""

    @pytest.mark.asyncio
    async def test_success_decodes_json(self, config):
        client, session = explorer_with(FakeResponse(body={"decimals": "18"}), config)

        data = await client.get_token_info(TOKEN)

        assert data == {"decimals": "18"}
        assert session.requests == [(f"https://explorer.test/api/v2/tokens/{TOKEN}", None)]
        assert client.requests_made == 1
        assert client.requests_failed == 0

    @pytest.mark.asyncio
    async def test_rate_limit(self, config):
        client, _ = explorer_with(
            FakeResponse(status=429, body="slow down", headers={"Retry-After": "7"}), config
        )

        with pytest.raises(RateLimitError) as exc_info:
            await client.get_token_info(TOKEN)

        assert exc_info.value.retry_after_seconds == 7
        assert client.requests_failed == 1

    @pytest.mark.asyncio
    async def test_server_error(self, config):
        client, _ = explorer_with(FakeResponse(status=500, body="x" * 2_000), config)

        with pytest.raises(HttpError) as exc_info:
            await client.get_token_info(TOKEN)

        assert exc_info.value.status_code == 500
        assert len(exc_info.value.response_body) == 500

    @pytest.mark.asyncio
    async def test_non_json_body(self, config):
        client, _ = explorer_with(FakeResponse(body="<html>"), config)

        with pytest.raises(MalformedResponseError):
            await client.get_token_info(TOKEN)

    @pytest.mark.asyncio
    async def test_timeout(self, config):
        client, _ = explorer_with(RaisingRequest(asyncio.TimeoutError()), config)

        with pytest.raises(RequestTimeoutError) as exc_info:
            await client.get_token_info(TOKEN)

        assert exc_info.value.timeout_seconds == config.request_timeout_seconds

    @pytest.mark.asyncio
    async def test_connection_error(self, config):
        client, _ = explorer_with(RaisingRequest(aiohttp.ClientConnectionError("refused")), config)

        with pytest.raises(HttpError) as exc_info:
            await client.get_token_info(TOKEN)

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_params_stringified(self, config):
        client, session = explorer_with(FakeResponse(body=[]), config)

        await client.get_token_balances(CREATOR, TOKEN)

        url, params = session.requests[0]
        assert url.endswith(f"/addresses/{CREATOR}/token-balances")
        assert params == {"token": TOKEN}

    @pytest.mark.asyncio
    async def test_injected_session_not_closed(self, config):
        client, session = explorer_with(FakeResponse(body={}), config)

        await client.close()

        assert not session.closed


# ============================================================
# DEX CLIENT
# ============================================================

class TestDexScreenerClient:
    """Tests for the aggregator client."""

    @pytest.mark.asyncio
    async def test_pairs_parsed(self, config):
        body = {"pairs": [
            {
                "dexId": "pulsex",
                "pairAddress": "0xPAIR",
                "baseToken": {"address": TOKEN.upper().replace("0X", "0x"), "symbol": "TEST"},
                "quoteToken": {"address": "0xQUOTE", "symbol": "WPLS"},
                "priceUsd": "0.5",
                "liquidity": {"usd": 1200.5, "base": 100, "quote": 200},
                "txns": {"h24": {"buys": 3, "sells": 1}},
            },
            "garbage",
        ]}
        session = FakeSession(FakeResponse(body=body))
        client = DexScreenerClient(config, session=session)

        pairs = await client.get_token_pairs(TOKEN)

        assert len(pairs) == 1
        assert pairs[0].base_token_address == TOKEN
        assert pairs[0].price_usd == 0.5
        assert pairs[0].liquidity_usd == 1200.5
        assert pairs[0].buy_count_24h == 3
        assert pairs[0].label == "TEST/WPLS"
        assert session.requests[0][0] == f"https://dex.test/latest/dex/tokens/{TOKEN}"

    @pytest.mark.asyncio
    async def test_malformed_nested_fields_keep_pair(self, config):
        body = {"pairs": [
            {"dexId": "pulsex", "baseToken": {"address": TOKEN}, "liquidity": {"usd": 10}},
            {"dexId": "9mm", "baseToken": "TEST", "liquidity": "n/a", "txns": "none"},
        ]}
        client = DexScreenerClient(config, session=FakeSession(FakeResponse(body=body)))

        pairs = await client.get_token_pairs(TOKEN)

        assert [p.dex_id for p in pairs] == ["pulsex", "9mm"]
        assert pairs[1].liquidity_usd == 0.0

    @pytest.mark.asyncio
    async def test_missing_pairs_is_empty(self, config):
        client = DexScreenerClient(config, session=FakeSession(FakeResponse(body={"pairs": None})))

        assert await client.get_token_pairs(TOKEN) == []
