"""
Creator provenance stats - what the deployer minted, kept and did next.

Creator lookups are shared between stats through cache.ensure_lookup, so
a registry run makes each creator request once per token.
"""

import logging
from typing import Any, Optional

from onchain_stats.cache import TokenStatsCache
from onchain_stats.formatting import format_number, format_token_amount, to_units
from onchain_stats.metrics import (
    find_creator_mint,
    find_renounce_transaction,
    outbound_transactions,
    wallet_token_history,
)
from onchain_stats.models import (
    StatFormat,
    StatResult,
    TokenMetadata,
    lower_or_empty,
    parse_int,
)
from onchain_stats.stats.base import BaseStat
from onchain_stats.stats.supply import amount_with_share


logger = logging.getLogger(__name__)


NATIVE_DECIMALS = 18


# ─────────────────────────────────────────────────────────────
# Shared lookups
# ─────────────────────────────────────────────────────────────


async def creation_transaction(cache: TokenStatsCache, meta: TokenMetadata) -> dict[str, Any]:
    """The contract-creation transaction, or {} when none is known."""
    if not meta.creation_tx_hash:
        return {}

    async def load() -> dict[str, Any]:
        data = await cache.explorer.get_transaction(meta.creation_tx_hash)
        return data if isinstance(data, dict) else {}

    return await cache.ensure_lookup(meta.address, "creation_tx", load)


async def creator_transactions(cache: TokenStatsCache, meta: TokenMetadata) -> list[Any]:
    """First page of the creator's transactions, newest first."""

    async def load() -> list[Any]:
        page = await cache.explorer.get_address_transactions(meta.creator_address)
        items = page.get("items") if isinstance(page, dict) else None
        return items if isinstance(items, list) else []

    return await cache.ensure_lookup(meta.address, "creator_transactions", load)


async def creator_balance(cache: TokenStatsCache, meta: TokenMetadata) -> int:
    """Creator's current raw balance of the token; 0 when not listed."""

    async def load() -> list[Any]:
        data = await cache.explorer.get_token_balances(meta.creator_address, meta.address)
        return data if isinstance(data, list) else []

    balances = await cache.ensure_lookup(meta.address, "creator_balance", load)
    for item in balances:
        if not isinstance(item, dict):
            continue
        token_info = item.get("token")
        address = lower_or_empty(token_info.get("address")) if isinstance(token_info, dict) else ""
        if address == meta.address:
            return parse_int(item.get("value")) or 0
    return 0


class CreatorStat(BaseStat):
    """Base for stats that need a known creator address."""

    async def creator_metadata(self, token: str) -> TokenMetadata:
        """Token metadata whose creator fields come from a fetched address-info slot."""
        return await self.cache.ensure_token_metadata(token, require=("address_info",))

    def no_creator(self) -> StatResult:
        return self.success(None, "N/A")


class CreatorInitialSupplyStat(CreatorStat):
    id = "creator_initial_supply"
    name = "Creator Initial Supply"
    description = (
        "Tokens minted from the zero address to the creator in the "
        "contract-creation transaction, with share of total supply."
    )
    format = StatFormat.NUMBER

    async def compute(self, token: str) -> StatResult:
        meta = await self.creator_metadata(token)
        if not meta.creator_address or not meta.creation_tx_hash:
            return self.no_creator()

        transaction = await creation_transaction(self.cache, meta)
        raw = find_creator_mint(transaction, meta.creator_address, meta.address)
        if raw is None:
            return self.success(None, "No mint to creator")

        value, display = amount_with_share(raw, meta)
        return self.success(value, display)


class OwnershipStatusStat(CreatorStat):
    id = "ownership_status"
    name = "Ownership Status"
    description = (
        "Whether the creator called renounceOwnership. Heuristic: only the "
        "creator's most recent page of transactions is inspected."
    )
    format = StatFormat.TEXT

    async def compute(self, token: str) -> StatResult:
        meta = await self.creator_metadata(token)
        if not meta.creator_address:
            return self.no_creator()

        transactions = await creator_transactions(self.cache, meta)
        renounce = find_renounce_transaction(transactions)
        value = {
            "renounced": renounce is not None,
            "tx_hash": renounce.get("hash") if renounce else None,
        }
        return self.success(value, "Renounced" if renounce else "Not renounced")


class CreatorCurrentBalanceStat(CreatorStat):
    id = "creator_current_balance"
    name = "Creator Current Balance"
    description = "Tokens the creator holds now, with share of total supply."
    format = StatFormat.NUMBER

    async def compute(self, token: str) -> StatResult:
        meta = await self.creator_metadata(token)
        if not meta.creator_address:
            return self.no_creator()

        raw = await creator_balance(self.cache, meta)
        value, display = amount_with_share(raw, meta)
        return self.success(value, display)


class CreatorFirstOutboundStat(CreatorStat):
    id = "creator_first_outbound"
    name = "Creator Outbound Transactions"
    description = (
        "The first transactions sent by the creator on its latest page of "
        "activity, with native value."
    )
    format = StatFormat.TEXT

    def __init__(self, cache: TokenStatsCache, limit: Optional[int] = None, enabled: bool = True) -> None:
        super().__init__(cache, enabled)
        self.limit = limit

    async def compute(self, token: str) -> StatResult:
        meta = await self.creator_metadata(token)
        if not meta.creator_address:
            return self.no_creator()

        limit = self.limit or self.config.creator_outbound_count
        transactions = await creator_transactions(self.cache, meta)
        value = outbound_transactions(transactions, meta.creator_address, limit)
        for row in value:
            row["value"] = to_units(parse_int(row["value_raw"]) or 0, NATIVE_DECIMALS)

        if not value:
            return self.success(value, "No outbound transactions")
        total = sum(row["value"] for row in value)
        return self.success(value, f"{len(value)} sent, {format_number(total)} native")


class CreatorTokenHistoryStat(CreatorStat):
    id = "creator_token_history"
    name = "Creator Token History"
    description = "Every transfer of this token into or out of the creator wallet."
    format = StatFormat.TEXT

    async def compute(self, token: str) -> StatResult:
        meta = await self.creator_metadata(token)
        if not meta.creator_address:
            return self.no_creator()

        transfers = await self.cache.ensure_wallet_transfers(token, meta.creator_address)
        value = wallet_token_history(transfers, meta.creator_address, meta.address)
        for row in value:
            row["amount"] = to_units(row["raw_value"], meta.decimals)

        received = sum(row["raw_value"] for row in value if row["direction"] == "IN")
        sent = sum(row["raw_value"] for row in value if row["direction"] == "OUT")
        display = (
            f"{len(value)} transfers, in {format_token_amount(received, meta.decimals)}, "
            f"out {format_token_amount(sent, meta.decimals)}"
        )
        return self.success(value, display)
