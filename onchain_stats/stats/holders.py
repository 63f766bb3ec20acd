"""
Holder distribution stats - concentration, inequality, whales and churn.
"""

import logging
from decimal import Decimal, localcontext
from typing import Sequence

from onchain_stats.cache import TokenStatsCache
from onchain_stats.formatting import (
    format_number,
    format_pct,
    format_token_amount,
    shorten_address,
    to_units,
)
from onchain_stats.metrics import (
    circulating_supply,
    diamond_hands_scores,
    gini_coefficient,
    new_vs_lost_holders,
    share_pct,
    sort_holders,
    top_holder_balance_changes,
    top_n_share_pct,
    whale_count,
)
from onchain_stats.models import StatFormat, StatResult
from onchain_stats.stats.base import BaseStat
from onchain_stats.stats.supply import reported_holder_count


logger = logging.getLogger(__name__)


class TopHoldersShareStat(BaseStat):
    """Share of supply held by the N largest holders."""

    format = StatFormat.PERCENTAGE

    def __init__(self, cache: TokenStatsCache, n: int, enabled: bool = True) -> None:
        super().__init__(cache, enabled)
        self.n = n
        self.id = f"top{n}_pct"
        self.name = f"Top {n} Holders Share"
        self.description = (
            f"Percentage of total supply held by the {n} largest holder addresses."
        )

    async def compute(self, token: str) -> StatResult:
        meta = await self.cache.ensure_token_metadata(token)
        holders = await self.cache.ensure_holders(token)
        return self.success(top_n_share_pct(holders, meta.total_supply_raw, self.n))


class WhaleCountStat(BaseStat):
    format = StatFormat.NUMBER
    decimals = 0

    def __init__(
        self,
        cache: TokenStatsCache,
        threshold_pct: int = 1,
        enabled: bool = True,
    ) -> None:
        super().__init__(cache, enabled)
        self.threshold_pct = threshold_pct
        self.id = f"whale_count_{threshold_pct}pct"
        self.name = f"Whale Count ({threshold_pct}%)"
        self.description = (
            f"Number of holders owning at least {threshold_pct}% of total supply."
        )

    async def compute(self, token: str) -> StatResult:
        meta = await self.cache.ensure_token_metadata(token)
        holders = await self.cache.ensure_holders(token)
        return self.success(whale_count(holders, meta.total_supply_raw, self.threshold_pct))


class GiniCoefficientStat(BaseStat):
    id = "gini_coefficient"
    name = "Gini Coefficient"
    description = "Holder inequality from 0 (all equal) to 1 (one holder owns everything)."
    format = StatFormat.NUMBER
    decimals = 4

    async def compute(self, token: str) -> StatResult:
        holders = await self.cache.ensure_holders(token)
        gini = gini_coefficient(h.raw_balance for h in holders)
        return self.success(gini, f"{gini:.4f}")


class TopHoldersListStat(BaseStat):
    id = "top50_holders"
    name = "Top 50 Holders"
    description = "The 50 largest holders with balance and share of supply."
    format = StatFormat.TEXT

    def __init__(self, cache: TokenStatsCache, n: int = 50, enabled: bool = True) -> None:
        super().__init__(cache, enabled)
        self.n = n

    async def compute(self, token: str) -> StatResult:
        meta = await self.cache.ensure_token_metadata(token)
        holders = await self.cache.ensure_holders(token)
        value = [
            {
                "rank": rank,
                "address": holder.address,
                "raw_balance": holder.raw_balance,
                "balance": to_units(holder.raw_balance, meta.decimals),
                "percent": share_pct(holder.raw_balance, meta.total_supply_raw),
            }
            for rank, holder in enumerate(sort_holders(holders)[:self.n], start=1)
        ]
        if value:
            top = value[0]
            display = (
                f"{len(value)} holders, largest {shorten_address(top['address'])} "
                f"{format_pct(top['percent'], 4)}"
            )
        else:
            display = "No holders"
        return self.success(value, display)


class AvgHolderBalanceStat(BaseStat):
    id = "avg_holder_balance"
    name = "Average Holder Balance"
    description = (
        "Circulating supply (total minus burn-address balances) divided by "
        "the reported holder count."
    )
    format = StatFormat.NUMBER

    async def compute(self, token: str) -> StatResult:
        meta = await self.cache.ensure_token_metadata(token, require=("token_counters",))
        count = reported_holder_count(meta)
        holders = await self.cache.ensure_holders(token)
        if count == 0:
            return self.success(Decimal(0), "0")

        circulating = circulating_supply(
            meta.total_supply_raw, holders, self.config.burn_addresses
        )
        with localcontext() as ctx:
            ctx.prec = 100
            avg_raw = Decimal(circulating) / count
            value = avg_raw.scaleb(-meta.decimals)
        return self.success(value, format_number(value))


class NewVsLostHoldersStat(BaseStat):
    format = StatFormat.TEXT

    def __init__(self, cache: TokenStatsCache, days: int, enabled: bool = True) -> None:
        super().__init__(cache, enabled)
        self.days = days
        self.id = f"new_vs_lost_holders_{days}d"
        self.name = f"New vs Lost Holders ({days}d)"
        self.description = (
            f"Addresses that only received (new) versus only sent (lost) in the "
            f"last {days} days. Heuristic: ignores partial sells and balances "
            f"held before the window."
        )

    async def compute(self, token: str) -> StatResult:
        transfers = await self.cache.ensure_transfers_window(token, self.days)
        value = new_vs_lost_holders(transfers)
        display = f"{value['new_holders']}/{value['lost_holders']} ({value['net_change']:+d})"
        return self.success(value, display)


class DiamondHandsStat(BaseStat):
    id = "diamond_hands_score"
    name = "Diamond Hands Score (90/180d)"
    description = (
        "Share of supply held by current holders that sent no tokens in the "
        "last 90 and 180 days. Over-approximation: wallets that only received "
        "during the window count as dormant."
    )
    format = StatFormat.TEXT

    def __init__(
        self,
        cache: TokenStatsCache,
        windows: Sequence[int] = (90, 180),
        enabled: bool = True,
    ) -> None:
        super().__init__(cache, enabled)
        self.windows = tuple(sorted(windows))

    async def compute(self, token: str) -> StatResult:
        meta = await self.cache.ensure_token_metadata(token)
        holders = await self.cache.ensure_holders(token)
        # One walk over the longest window serves the shorter ones
        transfers = await self.cache.ensure_transfers_window(token, self.windows[-1])

        scores = diamond_hands_scores(
            holders, transfers, meta.total_supply_raw, self.windows, self.cache.now()
        )
        value = {f"score_{days}d": score for days, score in scores.items()}
        display = ", ".join(f"{days}d: {format_pct(score)}" for days, score in scores.items())
        return self.success(value, display)


class TopHolderChangeStat(BaseStat):
    format = StatFormat.TEXT

    def __init__(
        self,
        cache: TokenStatsCache,
        days: int = 7,
        n: int = 10,
        enabled: bool = True,
    ) -> None:
        super().__init__(cache, enabled)
        self.days = days
        self.n = n
        self.id = f"top_holder_change_{days}d"
        self.name = f"Top {n} Holder Change ({days}d)"
        self.description = (
            f"Net token flow of the {n} largest holders over the last {days} days."
        )

    async def compute(self, token: str) -> StatResult:
        meta = await self.cache.ensure_token_metadata(token)
        holders = await self.cache.ensure_holders(token)
        transfers = await self.cache.ensure_transfers_window(token, self.days)

        value = top_holder_balance_changes(holders, transfers, self.n)
        for row in value:
            row["net_change"] = to_units(row["net_change_raw"], meta.decimals)

        movers = sum(1 for row in value if row["net_change_raw"] != 0)
        net = sum(row["net_change_raw"] for row in value)
        display = (
            f"{movers}/{len(value)} moved, net {format_token_amount(net, meta.decimals)}"
        )
        return self.success(value, display)
