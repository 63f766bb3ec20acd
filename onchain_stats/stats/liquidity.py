"""
Market & liquidity stats - price, pools, slippage and trade sizes.

All pair data comes from the DEX aggregator snapshot cached per token.
Reserves reported by the aggregator are already in token units.
"""

import logging

from onchain_stats.formatting import format_currency, format_number, format_pct
from onchain_stats.metrics import (
    avg_buy_sell_size,
    blue_chip_ratio,
    dex_diversity,
    holder_to_liquidity_ratio,
    liquidity_concentration,
    liquidity_depth,
    total_liquidity_usd,
)
from onchain_stats.models import StatFormat, StatResult
from onchain_stats.stats.base import BaseStat
from onchain_stats.stats.supply import reported_holder_count


logger = logging.getLogger(__name__)


class DexStat(BaseStat):
    """Base for stats computed from the aggregator's pair list."""

    source = "dexscreener"


class PriceUsdStat(DexStat):
    id = "price_usd"
    name = "Price (USD)"
    description = "USD price of the token from its primary DEX pair."
    format = StatFormat.CURRENCY
    decimals = 8

    async def compute(self, token: str) -> StatResult:
        pairs = await self.cache.ensure_dex_pairs(token)
        if not pairs:
            return self.success(None, "N/A")
        return self.success(pairs[0].price_usd)


class LiquidityUsdStat(DexStat):
    id = "liquidity_usd"
    name = "Liquidity (USD)"
    description = "USD liquidity of the token's primary DEX pair."
    format = StatFormat.CURRENCY

    async def compute(self, token: str) -> StatResult:
        pairs = await self.cache.ensure_dex_pairs(token)
        return self.success(pairs[0].liquidity_usd if pairs else 0.0)


class TotalLiquidityUsdStat(DexStat):
    id = "total_liquidity_usd"
    name = "Total Liquidity (USD)"
    description = "USD liquidity summed over every DEX pair of the token."
    format = StatFormat.CURRENCY

    async def compute(self, token: str) -> StatResult:
        pairs = await self.cache.ensure_dex_pairs(token)
        return self.success(total_liquidity_usd(pairs))


class TotalTokensInLiquidityStat(DexStat):
    id = "total_tokens_in_liquidity"
    name = "Total Tokens in Liquidity"
    description = (
        "Token units held in the reserves of every pair with liquidity, "
        "taking the reserve on whichever side of the pair is this token."
    )
    format = StatFormat.NUMBER

    async def compute(self, token: str) -> StatResult:
        pairs = await self.cache.ensure_dex_pairs(token)
        total = 0.0
        for pair in pairs:
            if pair.liquidity_usd <= 0:
                continue
            if pair.base_token_address == token:
                total += pair.base_reserve
            elif pair.quote_token_address == token:
                total += pair.quote_reserve
        return self.success(total)


class BlueChipPairRatioStat(DexStat):
    id = "blue_chip_pair_ratio"
    name = "Blue Chip Pair Ratio"
    description = (
        "Share of USD liquidity in pairs quoted in a blue-chip token "
        "(wrapped native coin or major stablecoins)."
    )
    format = StatFormat.PERCENTAGE

    async def compute(self, token: str) -> StatResult:
        pairs = await self.cache.ensure_dex_pairs(token)
        value = blue_chip_ratio(pairs, self.config.blue_chip_addresses)
        return self.success(value, format_pct(value["ratio_pct"]))


class LiquidityConcentrationStat(DexStat):
    id = "liquidity_concentration"
    name = "Liquidity Concentration"
    description = "Share of USD liquidity in the single largest pool."
    format = StatFormat.PERCENTAGE

    async def compute(self, token: str) -> StatResult:
        pairs = await self.cache.ensure_dex_pairs(token)
        value = liquidity_concentration(pairs)
        display = (
            f"{format_pct(value['concentration_pct'])} "
            f"in top pool of {value['pool_count']}"
        )
        return self.success(value, display)


class DexDiversityStat(DexStat):
    id = "dex_diversity"
    name = "DEX Diversity"
    description = "Number of distinct DEXes listing the token."
    format = StatFormat.NUMBER

    async def compute(self, token: str) -> StatResult:
        pairs = await self.cache.ensure_dex_pairs(token)
        value = dex_diversity(pairs)
        display = f"{value['score']} ({', '.join(value['dexes'])})" if value["dexes"] else "0"
        return self.success(value, display)


class HolderToLiquidityRatioStat(DexStat):
    id = "holder_to_liquidity_ratio"
    name = "Holder to Liquidity Ratio"
    description = (
        "Reported holder count per USD of total liquidity. "
        "Infinite when the token has no liquidity."
    )
    format = StatFormat.NUMBER
    decimals = 6
    source = "explorer+dexscreener"

    async def compute(self, token: str) -> StatResult:
        meta = await self.cache.ensure_token_metadata(token, require=("token_counters",))
        count = reported_holder_count(meta)
        pairs = await self.cache.ensure_dex_pairs(token)
        ratio = holder_to_liquidity_ratio(count, total_liquidity_usd(pairs))
        return self.success(ratio)


class AvgBuySellSize24hStat(DexStat):
    id = "avg_buy_sell_size_24h"
    name = "Average Buy/Sell Size (24h)"
    description = (
        "Average buy and sell size in USD over 24h. Approximation: volume is "
        "split between sides by trade count, since per-side volume is not reported."
    )
    format = StatFormat.CURRENCY

    async def compute(self, token: str) -> StatResult:
        pairs = await self.cache.ensure_dex_pairs(token)
        value = avg_buy_sell_size(pairs)
        display = (
            f"Buy {format_currency(value['avg_buy_usd'])} / "
            f"Sell {format_currency(value['avg_sell_usd'])}"
        )
        return self.success(value, display)


class LiquidityDepthStat(DexStat):
    id = "liquidity_depth"
    name = "Liquidity Depth"
    description = (
        "Per-DEX constant-product slippage for buys of increasing USD size. "
        "Pairs on the same DEX are merged into one virtual pool."
    )
    format = StatFormat.TEXT

    async def compute(self, token: str) -> StatResult:
        pairs = await self.cache.ensure_dex_pairs(token)
        trade_sizes = self.config.slippage_trade_sizes_usd
        value = liquidity_depth(pairs, trade_sizes)
        if not value:
            return self.success(value, "No pools")

        best = value[0]
        largest = max(trade_sizes)
        display = (
            f"{best['dex']}: {format_pct(best['slippage_pct'][largest])} "
            f"slippage at {format_currency(largest, 0)} "
            f"({format_number(best['pair_count'], 0)} pairs)"
        )
        return self.success(value, display)
