"""
DexScreener Client - DEX aggregator token → pairs lookup.

Free public API, no key required.
"""

import logging
from typing import Optional

import aiohttp

from onchain_stats.base import BaseHttpClient
from onchain_stats.config import StatsConfig
from onchain_stats.models import LiquidityPair, normalize_address


logger = logging.getLogger(__name__)


class DexScreenerClient(BaseHttpClient):
    """Client for api.dexscreener.com."""

    def __init__(
        self,
        config: Optional[StatsConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        base_url: Optional[str] = None,
    ) -> None:
        super().__init__(config, session)
        self._base_url = base_url or self._config.dex_base_url

    @property
    def name(self) -> str:
        return "dexscreener"

    @property
    def base_url(self) -> str:
        return self._base_url

    async def get_token_pairs(self, token: str) -> list[LiquidityPair]:
        """
        Fetch every pair the aggregator knows for a token.

        A missing or non-list `pairs` field yields an empty list. Non-object
        pairs are skipped; malformed nested fields of a pair read as empty.
        """
        address = normalize_address(token)
        data = await self.fetch_json(self.url(f"tokens/{address}"))

        raw_pairs = data.get("pairs") if isinstance(data, dict) else None
        if not isinstance(raw_pairs, list):
            logger.debug(f"[{self.name}] No pairs listed for {address}")
            return []

        pairs = []
        for raw in raw_pairs:
            pair = LiquidityPair.from_api(raw)
            if pair is not None:
                pairs.append(pair)

        logger.debug(f"[{self.name}] {len(pairs)} pairs for {address}")
        return pairs
