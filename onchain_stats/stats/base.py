"""
Base Stat - Uniform interface every registered stat implements.

Each stat MUST:
- Read upstream data only through the shared TokenStatsCache
- Return a StatResult from fetch(), never raise past it
- State any heuristic limitation in its description
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from onchain_stats.cache import TokenStatsCache
from onchain_stats.exceptions import InvalidAddressError, OnchainStatsError
from onchain_stats.formatting import (
    format_currency,
    format_number,
    format_pct,
    shorten_address,
    to_json_safe,
)
from onchain_stats.models import (
    StatConfig,
    StatFormat,
    StatResult,
    normalize_address,
)


logger = logging.getLogger(__name__)


class BaseStat(ABC):
    """
    Abstract base class for all stats.

    Subclasses set the descriptive attributes and implement compute():

        class HoldersStat(BaseStat):
            id = "holders"
            name = "Total Holders"
            description = "Number of addresses holding the token."
            format = StatFormat.NUMBER

            async def compute(self, token):
                meta = await self.cache.ensure_token_metadata(token, require=("token_counters",))
                return self.success(meta.holders_count_reported)
    """

    id: str = ""
    name: str = ""
    description: str = ""
    format: StatFormat = StatFormat.TEXT
    source: str = "explorer"
    decimals: int = 2

    def __init__(self, cache: TokenStatsCache, enabled: bool = True) -> None:
        self.cache = cache
        self.enabled = enabled

    @property
    def config(self):
        """Shortcut to the cache's StatsConfig."""
        return self.cache.config

    def get_config(self) -> StatConfig:
        return StatConfig(
            id=self.id,
            name=self.name,
            description=self.description,
            format=self.format,
            source=self.source,
            enabled=self.enabled,
        )

    @abstractmethod
    async def compute(self, token: str) -> StatResult:
        """
        Compute the stat for a normalized token address.

        May raise OnchainStatsError; fetch() converts it into an error result.
        """
        pass

    async def fetch(self, token: str) -> StatResult:
        """
        Compute the stat (main entry point).

        Never raises for data problems: upstream failures, missing metadata
        and unexpected exceptions all come back as a StatResult with
        `error` set and `value` None.
        """
        try:
            address = normalize_address(token)
        except InvalidAddressError as e:
            return self.failure(e.message)

        try:
            return await self.compute(address)
        except OnchainStatsError as e:
            logger.warning(f"[{self.id}] Failed for {address}: {e}")
            return self.failure(e.message)
        except Exception as e:
            logger.error(f"[{self.id}] Unexpected error for {address}: {e}", exc_info=True)
            return self.failure(f"Unexpected error: {e}")

    # ─────────────────────────────────────────────────────────────
    # Result helpers
    # ─────────────────────────────────────────────────────────────

    def format_value(
        self,
        value: Any,
        fmt: Optional[StatFormat] = None,
        decimals: Optional[int] = None,
    ) -> str:
        """Display string for a value according to the stat's format tag."""
        fmt = fmt or self.format
        decimals = self.decimals if decimals is None else decimals

        if value is None:
            return "N/A"
        if fmt == StatFormat.CURRENCY:
            return format_currency(value, decimals)
        if fmt == StatFormat.NUMBER:
            return format_number(value, decimals)
        if fmt == StatFormat.PERCENTAGE:
            return format_pct(float(value), decimals)
        if fmt == StatFormat.ADDRESS:
            return shorten_address(value) if isinstance(value, str) else "N/A"
        if isinstance(value, (dict, list)):
            return json.dumps(to_json_safe(value))
        return str(value)

    def success(self, value: Any, display: Optional[str] = None) -> StatResult:
        return StatResult(
            stat_id=self.id,
            value=value,
            display=display if display is not None else self.format_value(value),
            source=self.source,
        )

    def failure(self, message: str) -> StatResult:
        return StatResult(
            stat_id=self.id,
            value=None,
            display="Error",
            source=self.source,
            error=message,
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"
