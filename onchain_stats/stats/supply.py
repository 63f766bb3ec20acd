"""
Supply & flow stats - total supply, holder count, burns and mints.
"""

import logging
from typing import Any

from onchain_stats.exceptions import MalformedResponseError
from onchain_stats.formatting import format_pct, format_token_amount, to_units
from onchain_stats.metrics import balance_of, share_pct, sum_burned, sum_minted
from onchain_stats.models import StatFormat, StatResult, TokenMetadata
from onchain_stats.stats.base import BaseStat


logger = logging.getLogger(__name__)


def amount_with_share(raw: int, meta: TokenMetadata) -> tuple[dict[str, Any], str]:
    """Value/display pair for a raw amount and its share of total supply."""
    pct = share_pct(raw, meta.total_supply_raw)
    value = {
        "raw": raw,
        "amount": to_units(raw, meta.decimals),
        "percent": pct,
    }
    display = f"{format_token_amount(raw, meta.decimals)} ({format_pct(pct)})"
    return value, display


def reported_holder_count(meta: TokenMetadata) -> int:
    """
    Holder count reported by the explorer.

    Raises:
        MalformedResponseError: neither the counters nor token info carry it
    """
    if meta.holders_count_reported is None:
        raise MalformedResponseError(
            "Holder count not reported",
            source="explorer",
            field_name="token_holders_count",
        )
    return meta.holders_count_reported


class TotalSupplyStat(BaseStat):
    id = "total_supply"
    name = "Total Supply"
    description = "The total amount of tokens in existence."
    format = StatFormat.NUMBER

    async def compute(self, token: str) -> StatResult:
        meta = await self.cache.ensure_token_metadata(token)
        return self.success(
            meta.total_supply_raw,
            format_token_amount(meta.total_supply_raw, meta.decimals),
        )


class HoldersStat(BaseStat):
    id = "holders"
    name = "Total Holders"
    description = "The number of addresses holding the token, as reported by the explorer."
    format = StatFormat.NUMBER

    async def compute(self, token: str) -> StatResult:
        meta = await self.cache.ensure_token_metadata(token, require=("token_counters",))
        return self.success(reported_holder_count(meta))


class BurnedTotalStat(BaseStat):
    id = "burned_total"
    name = "Total Burned"
    description = (
        "Tokens currently held by the burn addresses (zero, 0x…dead, 0x…0369) "
        "and their share of total supply."
    )
    format = StatFormat.NUMBER

    async def compute(self, token: str) -> StatResult:
        meta = await self.cache.ensure_token_metadata(token)
        holders = await self.cache.ensure_holders(token)
        raw = balance_of(holders, self.config.burn_addresses)
        value, display = amount_with_share(raw, meta)
        return self.success(value, display)


class Burned24hStat(BaseStat):
    id = "burned_24h"
    name = "Burned (24h)"
    description = (
        "Tokens transferred to a burn address in the last 24 hours. "
        "Heuristic: based on transfer direction, not Burn events."
    )
    format = StatFormat.NUMBER

    async def compute(self, token: str) -> StatResult:
        meta = await self.cache.ensure_token_metadata(token)
        transfers = await self.cache.ensure_transfers_24h(token)
        raw = sum_burned(transfers, self.config.burn_addresses)
        value, display = amount_with_share(raw, meta)
        return self.success(value, display)


class Minted24hStat(BaseStat):
    id = "minted_24h"
    name = "Minted (24h)"
    description = (
        "Tokens sent out by the token contract itself in the last 24 hours. "
        "Heuristic: Mint events are not consulted and zero-address mints are not counted."
    )
    format = StatFormat.NUMBER

    async def compute(self, token: str) -> StatResult:
        meta = await self.cache.ensure_token_metadata(token)
        transfers = await self.cache.ensure_transfers_24h(token)
        raw = sum_minted(transfers, token)
        value, display = amount_with_share(raw, meta)
        return self.success(value, display)
