"""
On-chain Stats Package - Token statistics from a chain explorer and a DEX aggregator.

Computes supply, holder-distribution, activity, liquidity and creator
provenance stats for a single ERC-20 style token.

Features:
- One uniform stat interface, looked up by id
- Per-token memoization cache with single-flight fetches
- Bounded cursor pagination with deadline and cancellation
- Integer arithmetic on raw balances, explicit failure on missing decimals
- Never raises past a stat: failures come back as error results

Quick Start:
    from onchain_stats import (
        DexScreenerClient,
        ExplorerClient,
        TokenStatsCache,
        build_default_registry,
    )

    async def show_stats(token: str):
        async with ExplorerClient() as explorer, DexScreenerClient() as dex:
            cache = TokenStatsCache(explorer, dex)
            registry = build_default_registry(cache)

            result = await registry.compute("top10_pct", token)
            print(f"{result.stat_id}: {result.display}")

            # Stats share the cache: holders are walked once for all three
            results = await registry.compute_many(
                ["gini_coefficient", "whale_count_1pct", "burned_total"],
                token,
            )
            for stat_id, result in results.items():
                print(f"{stat_id}: {result.display or result.error}")

Adding New Stats:
    class MyStat(BaseStat):
        id = "my_stat"
        name = "My Stat"
        description = "What it measures and any heuristic limits."
        format = StatFormat.NUMBER

        async def compute(self, token):
            holders = await self.cache.ensure_holders(token)
            return self.success(len(holders))

    registry.register(MyStat(cache))
"""

from onchain_stats.cache import TokenStatsCache
from onchain_stats.config import StatsConfig, get_config, set_config
from onchain_stats.exceptions import (
    ConfigurationError,
    HttpError,
    InvalidAddressError,
    MalformedResponseError,
    MetadataUnavailableError,
    OnchainStatsError,
    RateLimitError,
    RequestTimeoutError,
    UnknownStatError,
)
from onchain_stats.models import (
    BURN_ADDRESSES,
    CoreMetadata,
    Holder,
    LiquidityPair,
    PageWalk,
    StatConfig,
    StatFormat,
    StatResult,
    StopReason,
    TokenMetadata,
    TransferEvent,
)
from onchain_stats.pager import (
    fetch_holders,
    fetch_transfers_window,
    fetch_wallet_transfers,
    paginate,
)
from onchain_stats.providers import DexScreenerClient, ExplorerClient
from onchain_stats.registry import (
    StatRegistry,
    build_default_registry,
    get_default_registry,
    setup_default_registry,
)
from onchain_stats.stats import BaseStat


__version__ = "1.0.0"

__all__ = [
    # Base
    "BaseStat",

    # Models
    "StatConfig",
    "StatFormat",
    "StatResult",
    "TokenMetadata",
    "CoreMetadata",
    "Holder",
    "TransferEvent",
    "LiquidityPair",
    "PageWalk",
    "StopReason",
    "BURN_ADDRESSES",

    # Exceptions
    "OnchainStatsError",
    "HttpError",
    "RateLimitError",
    "RequestTimeoutError",
    "MalformedResponseError",
    "MetadataUnavailableError",
    "InvalidAddressError",
    "UnknownStatError",
    "ConfigurationError",

    # Config
    "StatsConfig",
    "get_config",
    "set_config",

    # Providers
    "ExplorerClient",
    "DexScreenerClient",

    # Data layer
    "TokenStatsCache",
    "paginate",
    "fetch_holders",
    "fetch_transfers_window",
    "fetch_wallet_transfers",

    # Registry
    "StatRegistry",
    "build_default_registry",
    "get_default_registry",
    "setup_default_registry",
]
