"""
Contract & identity stats - address, name, icon, age and ABI size.
"""

import logging
from typing import Any

from onchain_stats.exceptions import MetadataUnavailableError
from onchain_stats.metrics import abi_function_count, contract_age_days
from onchain_stats.models import StatFormat, StatResult, parse_timestamp
from onchain_stats.stats.base import BaseStat
from onchain_stats.stats.creator import creation_transaction


logger = logging.getLogger(__name__)


class AddressStat(BaseStat):
    id = "address"
    name = "Contract Address"
    description = "The token contract address."
    format = StatFormat.ADDRESS
    source = "static"

    async def compute(self, token: str) -> StatResult:
        return self.success(token)


class TokenInfoFieldStat(BaseStat):
    """Reads one string field straight from the token-info slot."""

    field_name = ""

    async def compute(self, token: str) -> StatResult:
        core = await self.cache.ensure_core_metadata(token)
        if "token_info" in core.errors:
            raise MetadataUnavailableError(
                f"Token info unavailable: {core.errors['token_info']}",
                token_address=token,
                missing_fields=[self.field_name],
            )
        value = (core.token_info or {}).get(self.field_name)
        return self.success(value or None)


class SymbolStat(TokenInfoFieldStat):
    id = "symbol"
    name = "Symbol"
    description = "Token ticker symbol."
    field_name = "symbol"


class NameStat(TokenInfoFieldStat):
    id = "name"
    name = "Name"
    description = "Token name."
    field_name = "name"


class IconUrlStat(BaseStat):
    id = "icon_url"
    name = "Icon URL"
    description = "Token logo URL from the DEX aggregator, falling back to the explorer."
    source = "dexscreener+explorer"

    async def compute(self, token: str) -> StatResult:
        pairs = await self.cache.ensure_dex_pairs(token)
        if pairs and pairs[0].image_url:
            return self.success(pairs[0].image_url)

        core = await self.cache.ensure_core_metadata(token)
        return self.success((core.token_info or {}).get("icon_url") or None)


class ContractAgeStat(BaseStat):
    id = "contract_age_days"
    name = "Contract Age"
    description = "Days since the contract-creation transaction, rounded up."
    format = StatFormat.NUMBER
    decimals = 0

    async def compute(self, token: str) -> StatResult:
        meta = await self.cache.ensure_token_metadata(token, require=("address_info",))
        transaction = await creation_transaction(self.cache, meta)
        created_at = parse_timestamp(transaction.get("timestamp"))
        if created_at is None:
            return self.success(None, "N/A")

        days = contract_age_days(created_at, self.cache.now())
        return self.success(days, f"{days} days")


class AbiComplexityStat(BaseStat):
    id = "abi_complexity"
    name = "ABI Complexity"
    description = (
        "Number of functions in the verified contract ABI; 0 when the "
        "contract is not verified."
    )
    format = StatFormat.NUMBER
    decimals = 0

    async def compute(self, token: str) -> StatResult:
        async def load() -> Any:
            data = await self.cache.explorer.get_smart_contract(token)
            return data if isinstance(data, dict) else {}

        contract = await self.cache.ensure_lookup(token, "smart_contract", load)
        return self.success(abi_function_count(contract))
