"""
On-chain activity stats - transfer counts, participants and value over 24h.
"""

import logging

from onchain_stats.exceptions import MalformedResponseError
from onchain_stats.formatting import format_number, format_pct, to_units
from onchain_stats.metrics import (
    average_raw,
    circulating_supply,
    median_raw,
    transfer_velocity,
    unique_receivers,
    unique_senders,
)
from onchain_stats.models import StatFormat, StatResult
from onchain_stats.stats.base import BaseStat


logger = logging.getLogger(__name__)


class TransfersTotalStat(BaseStat):
    id = "transfers_total"
    name = "Total Transfers"
    description = "All-time transfer count reported by the explorer."
    format = StatFormat.NUMBER
    decimals = 0

    async def compute(self, token: str) -> StatResult:
        meta = await self.cache.ensure_token_metadata(token, require=("token_counters",))
        if meta.transfers_count_reported is None:
            raise MalformedResponseError(
                "Transfer count not reported",
                source="explorer",
                field_name="transfers_count",
            )
        return self.success(meta.transfers_count_reported)


class Transfers24hStat(BaseStat):
    id = "transfers_24h"
    name = "Transfers (24h)"
    description = "Number of transfers in the last 24 hours."
    format = StatFormat.NUMBER
    decimals = 0

    async def compute(self, token: str) -> StatResult:
        transfers = await self.cache.ensure_transfers_24h(token)
        return self.success(len(transfers))


class UniqueSenders24hStat(BaseStat):
    id = "unique_senders_24h"
    name = "Unique Senders (24h)"
    description = "Distinct sending addresses in the last 24 hours."
    format = StatFormat.NUMBER
    decimals = 0

    async def compute(self, token: str) -> StatResult:
        transfers = await self.cache.ensure_transfers_24h(token)
        return self.success(unique_senders(transfers))


class UniqueReceivers24hStat(BaseStat):
    id = "unique_receivers_24h"
    name = "Unique Receivers (24h)"
    description = "Distinct receiving addresses in the last 24 hours."
    format = StatFormat.NUMBER
    decimals = 0

    async def compute(self, token: str) -> StatResult:
        transfers = await self.cache.ensure_transfers_24h(token)
        return self.success(unique_receivers(transfers))


class AvgTransferValue24hStat(BaseStat):
    id = "avg_transfer_value_24h"
    name = "Average Transfer Value (24h)"
    description = "Mean transfer amount in token units over the last 24 hours."
    format = StatFormat.NUMBER

    async def compute(self, token: str) -> StatResult:
        meta = await self.cache.ensure_token_metadata(token)
        transfers = await self.cache.ensure_transfers_24h(token)
        value = average_raw(t.raw_value for t in transfers).scaleb(-meta.decimals)
        return self.success(value, format_number(value))


class MedianTransferValue24hStat(BaseStat):
    id = "median_transfer_value_24h"
    name = "Median Transfer Value (24h)"
    description = (
        "Median transfer amount in token units over the last 24 hours "
        "(upper middle element for an even count)."
    )
    format = StatFormat.NUMBER

    async def compute(self, token: str) -> StatResult:
        meta = await self.cache.ensure_token_metadata(token)
        transfers = await self.cache.ensure_transfers_24h(token)
        value = to_units(median_raw(t.raw_value for t in transfers), meta.decimals)
        return self.success(value, format_number(value))


class TransactionVelocity24hStat(BaseStat):
    id = "transaction_velocity_24h"
    name = "Transaction Velocity (24h)"
    description = (
        "24h transfer volume as a percentage of circulating supply "
        "(total minus burn-address balances). Transfers between the same "
        "wallets count every time."
    )
    format = StatFormat.PERCENTAGE

    async def compute(self, token: str) -> StatResult:
        meta = await self.cache.ensure_token_metadata(token)
        holders = await self.cache.ensure_holders(token)
        transfers = await self.cache.ensure_transfers_24h(token)
        circulating = circulating_supply(
            meta.total_supply_raw, holders, self.config.burn_addresses
        )
        velocity_pct = transfer_velocity(transfers, circulating) * 100
        return self.success(velocity_pct, format_pct(velocity_pct))
