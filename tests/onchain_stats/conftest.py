"""
Shared fixtures for the on-chain stats tests.

The explorer and DEX clients are replaced by in-memory fakes that route
requests by resource path, so no test touches the network.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest

from onchain_stats.cache import TokenStatsCache
from onchain_stats.config import StatsConfig
from onchain_stats.exceptions import HttpError
from onchain_stats.providers.dexscreener import DexScreenerClient
from onchain_stats.providers.explorer import ExplorerClient


TOKEN = "0x" + "a" * 40
CREATOR = "0x" + "c" * 40
DEAD = "0x000000000000000000000000000000000000dead"
ZERO = "0x" + "0" * 40
WPLS = "0xa1077a294dde1b09bb078844df40758a5d0f9a27"

NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def addr(n: int) -> str:
    """Deterministic test address."""
    return "0x" + f"{n:040x}"


def iso(ts: datetime) -> str:
    return ts.isoformat().replace("+00:00", "Z")


# ============================================================
# PAYLOAD BUILDERS
# ============================================================

def holder_item(address: str, value: int) -> dict[str, Any]:
    return {"address": {"hash": address}, "value": str(value)}


def transfer_item(
    timestamp: datetime,
    from_address: str,
    to_address: str,
    value: int,
    token: str = TOKEN,
    tx_hash: Optional[str] = None,
) -> dict[str, Any]:
    return {
        "timestamp": iso(timestamp),
        "from": {"hash": from_address},
        "to": {"hash": to_address},
        "total": {"value": str(value), "decimals": "18"},
        "token": {"address": token},
        "tx_hash": tx_hash or "0x" + "f" * 64,
    }


def token_info(
    total_supply: int = 10_000,
    decimals: Optional[int] = 0,
    symbol: str = "TEST",
    name: str = "Test Token",
    holders: Optional[int] = None,
) -> dict[str, Any]:
    info: dict[str, Any] = {
        "address": TOKEN,
        "total_supply": str(total_supply),
        "symbol": symbol,
        "name": name,
        "icon_url": "https://explorer.test/icon.png",
    }
    if decimals is not None:
        info["decimals"] = str(decimals)
    if holders is not None:
        info["holders"] = str(holders)
    return info


def pair_item(
    dex_id: str = "pulsex",
    liquidity_usd: float = 1_000.0,
    base_reserve: float = 1_000.0,
    quote_reserve: float = 1_000.0,
    price_usd: float = 1.0,
    base: str = TOKEN,
    quote: str = WPLS,
    volume_24h: float = 0.0,
    buys: int = 0,
    sells: int = 0,
    image_url: Optional[str] = None,
    pair_address: Optional[str] = None,
) -> dict[str, Any]:
    pair: dict[str, Any] = {
        "dexId": dex_id,
        "pairAddress": pair_address or addr(0xBEEF),
        "baseToken": {"address": base, "symbol": "TEST"},
        "quoteToken": {"address": quote, "symbol": "WPLS"},
        "priceUsd": str(price_usd),
        "liquidity": {"usd": liquidity_usd, "base": base_reserve, "quote": quote_reserve},
        "volume": {"h24": volume_24h},
        "txns": {"h24": {"buys": buys, "sells": sells}},
    }
    if image_url:
        pair["info"] = {"imageUrl": image_url}
    return pair


def pages(*item_lists: list[Any]) -> "PagedResource":
    return PagedResource(list(item_lists))


# ============================================================
# FAKE CLIENTS
# ============================================================

class PagedResource:
    """Cursor-paginated resource; page i links to page i + 1 via `page`."""

    def __init__(self, item_pages: list[list[Any]]) -> None:
        self.item_pages = item_pages

    def page(self, params: Optional[dict[str, Any]]) -> dict[str, Any]:
        index = int((params or {}).get("page", 0))
        if index >= len(self.item_pages):
            return {"items": [], "next_page_params": None}
        has_next = index + 1 < len(self.item_pages)
        return {
            "items": self.item_pages[index],
            "next_page_params": {"page": index + 1} if has_next else None,
        }


class RoutedClientMixin:
    """Serves fetch_json from a path -> response table and records calls."""

    def _init_routes(self) -> None:
        self.routes: dict[str, Any] = {}
        self.errors: dict[str, Exception] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def calls_to(self, path: str) -> int:
        return sum(1 for called, _ in self.calls if called == path)

    async def fetch_json(self, url: str, params: Optional[dict[str, Any]] = None) -> Any:
        path = url[len(self.base_url.rstrip("/")) + 1:]
        self.calls.append((path, dict(params or {})))
        self.requests_made += 1

        if path in self.errors:
            raise self.errors[path]
        if path not in self.routes:
            raise HttpError(
                message="HTTP 404",
                source=self.name,
                status_code=404,
                request_url=url,
            )
        response = self.routes[path]
        if isinstance(response, PagedResource):
            return response.page(params)
        return response


class FakeExplorer(RoutedClientMixin, ExplorerClient):
    def __init__(self, config: StatsConfig) -> None:
        super().__init__(config, base_url="https://explorer.test/api/v2")
        self._init_routes()


class FakeDex(RoutedClientMixin, DexScreenerClient):
    def __init__(self, config: StatsConfig) -> None:
        super().__init__(config, base_url="https://dex.test/latest/dex")
        self._init_routes()

    def set_pairs(self, token: str, pairs: Optional[list[dict[str, Any]]]) -> None:
        self.routes[f"tokens/{token}"] = {"pairs": pairs}


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def config():
    """Deterministic configuration with small page budgets."""
    return StatsConfig(
        explorer_base_url="https://explorer.test/api/v2",
        dex_base_url="https://dex.test/latest/dex",
        holders_page_size=2,
        transfers_page_size=2,
        max_holder_pages=10,
        max_transfer_24h_pages=10,
        max_transfer_window_pages=10,
        max_wallet_pages=10,
        slippage_trade_sizes_usd=(50.0, 1_000.0),
    )


@pytest.fixture
def explorer(config):
    return FakeExplorer(config)


@pytest.fixture
def dex(config):
    fake = FakeDex(config)
    fake.set_pairs(TOKEN, [])
    return fake


@pytest.fixture
def cache(explorer, dex, config):
    """Fresh cache per test, pinned to NOW."""
    return TokenStatsCache(explorer, dex, config=config, clock=lambda: NOW)


@pytest.fixture
def token_core(explorer):
    """
    Install core metadata for TOKEN.

    Returns a function taking token_info overrides plus optional
    `counters` and `address_info` dicts.
    """
    def install(
        counters: Optional[dict[str, Any]] = None,
        address_info: Optional[dict[str, Any]] = None,
        **info: Any,
    ) -> None:
        explorer.routes[f"tokens/{TOKEN}"] = token_info(**info)
        explorer.routes[f"tokens/{TOKEN}/counters"] = counters or {
            "token_holders_count": "3",
            "transfers_count": "42",
        }
        explorer.routes[f"addresses/{TOKEN}"] = address_info or {
            "hash": TOKEN,
            "creator_address_hash": CREATOR,
            "creation_tx_hash": "0x" + "1" * 64,
        }
        explorer.routes[f"addresses/{TOKEN}/counters"] = {"transactions_count": "10"}

    return install


@pytest.fixture
def hours_ago():
    def at(hours: float) -> datetime:
        return NOW - timedelta(hours=hours)
    return at
