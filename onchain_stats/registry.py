"""
Stat Registry - Central lookup and execution of registered stats.

Features:
- Stat registration and discovery by id
- Unknown ids fail fast with UnknownStatError
- Concurrent batch computation with per-stat error isolation
- Every stat shares one TokenStatsCache, so a batch fetches each
  upstream resource once
"""

import asyncio
import logging
from typing import Any, Iterable, Optional

from onchain_stats.cache import TokenStatsCache
from onchain_stats.exceptions import UnknownStatError
from onchain_stats.models import StatConfig, StatResult
from onchain_stats.stats import (
    AbiComplexityStat,
    AddressStat,
    AvgBuySellSize24hStat,
    AvgHolderBalanceStat,
    AvgTransferValue24hStat,
    BaseStat,
    BlueChipPairRatioStat,
    Burned24hStat,
    BurnedTotalStat,
    ContractAgeStat,
    CreatorCurrentBalanceStat,
    CreatorFirstOutboundStat,
    CreatorInitialSupplyStat,
    CreatorTokenHistoryStat,
    DexDiversityStat,
    DiamondHandsStat,
    GiniCoefficientStat,
    HoldersStat,
    HolderToLiquidityRatioStat,
    IconUrlStat,
    LiquidityConcentrationStat,
    LiquidityDepthStat,
    LiquidityUsdStat,
    MedianTransferValue24hStat,
    Minted24hStat,
    NameStat,
    NewVsLostHoldersStat,
    OwnershipStatusStat,
    PriceUsdStat,
    SymbolStat,
    TopHolderChangeStat,
    TopHoldersListStat,
    TopHoldersShareStat,
    TotalLiquidityUsdStat,
    TotalSupplyStat,
    TotalTokensInLiquidityStat,
    TransactionVelocity24hStat,
    Transfers24hStat,
    TransfersTotalStat,
    UniqueReceivers24hStat,
    UniqueSenders24hStat,
    WhaleCountStat,
)


logger = logging.getLogger(__name__)


TOP_HOLDER_SHARE_SIZES = (1, 10, 20, 50)
NEW_VS_LOST_WINDOWS_DAYS = (7, 30, 90)


class StatRegistry:
    """
    Central registry for token stats.

    Usage:
        cache = TokenStatsCache()
        registry = build_default_registry(cache)

        result = await registry.compute("top10_pct", token)
        print(result.display)

        # Independent stats run concurrently against the shared cache
        results = await registry.compute_many(["holders", "price_usd"], token)
    """

    def __init__(self, cache: Optional[TokenStatsCache] = None) -> None:
        self.cache = cache
        self._stats: dict[str, BaseStat] = {}

    def register(self, stat: BaseStat) -> None:
        """
        Register a stat under its id.

        Args:
            stat: Stat instance
        """
        if stat.id in self._stats:
            logger.warning(f"Stat '{stat.id}' already registered, replacing")

        self._stats[stat.id] = stat
        logger.info(f"Registered stat '{stat.id}' ({stat.source})")

    def unregister(self, stat_id: str) -> Optional[BaseStat]:
        """Unregister a stat."""
        stat = self._stats.pop(stat_id, None)
        if stat is not None:
            logger.info(f"Unregistered stat '{stat_id}'")
        return stat

    def get(self, stat_id: str) -> Optional[BaseStat]:
        """Get a specific stat by id."""
        return self._stats.get(stat_id)

    def ids(self) -> list[str]:
        return list(self._stats)

    def __contains__(self, stat_id: str) -> bool:
        return stat_id in self._stats

    def __len__(self) -> int:
        return len(self._stats)

    # ─────────────────────────────────────────────────────────────
    # Computation
    # ─────────────────────────────────────────────────────────────

    async def compute(self, stat_id: str, token: str) -> StatResult:
        """
        Compute one stat for a token.

        Args:
            stat_id: Registered stat id
            token: Token contract address

        Returns:
            StatResult (error results for data problems)

        Raises:
            UnknownStatError: stat_id is not registered
        """
        stat = self._stats.get(stat_id)
        if stat is None:
            raise UnknownStatError(stat_id, available=self.ids())
        return await stat.fetch(token)

    async def compute_many(
        self,
        stat_ids: Iterable[str],
        token: str,
    ) -> dict[str, StatResult]:
        """
        Compute several stats concurrently.

        Unlike compute(), unknown ids do not raise: each is reported as an
        error result under its own id so the rest of the batch still lands.
        """
        stat_ids = list(dict.fromkeys(stat_ids))
        results: dict[str, StatResult] = {}

        known = []
        for stat_id in stat_ids:
            if stat_id in self._stats:
                known.append(stat_id)
            else:
                error = UnknownStatError(stat_id)
                logger.warning(f"[registry] {error}")
                results[stat_id] = StatResult(
                    stat_id=stat_id,
                    value=None,
                    display="Error",
                    source="registry",
                    error=error.message,
                )

        computed = await asyncio.gather(
            *(self._stats[stat_id].fetch(token) for stat_id in known)
        )
        results.update(zip(known, computed))

        # Preserve the caller's ordering
        return {stat_id: results[stat_id] for stat_id in stat_ids}

    async def compute_all(self, token: str) -> dict[str, StatResult]:
        """Compute every enabled stat."""
        enabled = [stat_id for stat_id, stat in self._stats.items() if stat.enabled]
        return await self.compute_many(enabled, token)

    def get_stats(self) -> dict[str, Any]:
        """Get registry statistics."""
        by_source: dict[str, int] = {}
        for stat in self._stats.values():
            by_source[stat.source] = by_source.get(stat.source, 0) + 1

        return {
            "total_stats": len(self._stats),
            "enabled_stats": sum(1 for s in self._stats.values() if s.enabled),
            "by_source": by_source,
            "cache": self.cache.stats() if self.cache else None,
            "clients": {
                client.name: client.get_request_stats()
                for client in (self.cache.explorer, self.cache.dex)
            } if self.cache else None,
        }

    async def close(self) -> None:
        """Close the HTTP clients behind the shared cache."""
        if self.cache is not None:
            await self.cache.explorer.close()
            await self.cache.dex.close()
        logger.info("Stat registry closed")

    async def __aenter__(self) -> "StatRegistry":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    # Defined last: the method name shadows the builtin inside the class body
    def list(self) -> list[StatConfig]:
        """Descriptors of every registered stat, in registration order."""
        return [stat.get_config() for stat in self._stats.values()]


def build_default_registry(cache: TokenStatsCache) -> StatRegistry:
    """
    Registry with every standard stat wired to `cache`.

    Args:
        cache: Shared cache all stats read through

    Returns:
        Populated StatRegistry
    """
    config = cache.config
    registry = StatRegistry(cache)

    # Supply & flow
    for stat_cls in (TotalSupplyStat, HoldersStat, BurnedTotalStat, Burned24hStat, Minted24hStat):
        registry.register(stat_cls(cache))

    # Holder distribution
    for n in TOP_HOLDER_SHARE_SIZES:
        registry.register(TopHoldersShareStat(cache, n))
    registry.register(WhaleCountStat(cache, 1))
    if config.whale_threshold_pct != 1:
        registry.register(WhaleCountStat(cache, config.whale_threshold_pct))
    registry.register(GiniCoefficientStat(cache))
    registry.register(TopHoldersListStat(cache, config.top_holders_list_size))
    registry.register(AvgHolderBalanceStat(cache))
    for days in NEW_VS_LOST_WINDOWS_DAYS:
        registry.register(NewVsLostHoldersStat(cache, days))
    registry.register(DiamondHandsStat(cache))
    registry.register(TopHolderChangeStat(cache))

    # On-chain activity
    for stat_cls in (
        TransfersTotalStat,
        Transfers24hStat,
        UniqueSenders24hStat,
        UniqueReceivers24hStat,
        AvgTransferValue24hStat,
        MedianTransferValue24hStat,
        TransactionVelocity24hStat,
    ):
        registry.register(stat_cls(cache))

    # Market & liquidity
    for stat_cls in (
        PriceUsdStat,
        LiquidityUsdStat,
        TotalLiquidityUsdStat,
        TotalTokensInLiquidityStat,
        BlueChipPairRatioStat,
        LiquidityConcentrationStat,
        DexDiversityStat,
        HolderToLiquidityRatioStat,
        AvgBuySellSize24hStat,
        LiquidityDepthStat,
    ):
        registry.register(stat_cls(cache))

    # Creator & contract
    for stat_cls in (
        CreatorInitialSupplyStat,
        OwnershipStatusStat,
        CreatorCurrentBalanceStat,
        CreatorFirstOutboundStat,
        CreatorTokenHistoryStat,
        ContractAgeStat,
        AddressStat,
        SymbolStat,
        NameStat,
        IconUrlStat,
        AbiComplexityStat,
    ):
        registry.register(stat_cls(cache))

    return registry


# Singleton instance
_default_registry: Optional[StatRegistry] = None


def get_default_registry() -> StatRegistry:
    """Get or create the default (empty) registry."""
    global _default_registry
    if _default_registry is None:
        _default_registry = StatRegistry()
    return _default_registry


def setup_default_registry(cache: Optional[TokenStatsCache] = None) -> StatRegistry:
    """
    Set up the default registry with every standard stat.

    Returns the registry get_default_registry() hands out from now on.
    """
    global _default_registry
    _default_registry = build_default_registry(cache or TokenStatsCache())
    return _default_registry
