"""
Explorer Client - Blockscout-style REST API (/api/v2).

Single-resource lookups return the decoded JSON untouched; shape checks
happen where the data is consumed. Cursor-paginated resources are walked
by onchain_stats.pager using the *_path helpers below.
"""

import logging
from typing import Any, Optional

import aiohttp

from onchain_stats.base import BaseHttpClient
from onchain_stats.config import StatsConfig
from onchain_stats.models import normalize_address


logger = logging.getLogger(__name__)


class ExplorerClient(BaseHttpClient):
    """Client for the chain explorer's v2 REST API."""

    def __init__(
        self,
        config: Optional[StatsConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        base_url: Optional[str] = None,
    ) -> None:
        super().__init__(config, session)
        self._base_url = base_url or self._config.explorer_base_url

    @property
    def name(self) -> str:
        return "explorer"

    @property
    def base_url(self) -> str:
        return self._base_url

    # ─────────────────────────────────────────────────────────────
    # Paginated resource paths
    # ─────────────────────────────────────────────────────────────

    def token_holders_path(self, token: str) -> str:
        return f"tokens/{normalize_address(token)}/holders"

    def token_transfers_path(self, token: str) -> str:
        return f"tokens/{normalize_address(token)}/transfers"

    def address_token_transfers_path(self, address: str) -> str:
        return f"addresses/{normalize_address(address)}/token-transfers"

    def address_transactions_path(self, address: str) -> str:
        return f"addresses/{normalize_address(address)}/transactions"

    # ─────────────────────────────────────────────────────────────
    # Core metadata
    # ─────────────────────────────────────────────────────────────

    async def get_token_info(self, token: str) -> Any:
        """GET /tokens/{token} (decimals, total_supply, symbol, ...)."""
        return await self.fetch_json(self.url(f"tokens/{normalize_address(token)}"))

    async def get_token_counters(self, token: str) -> Any:
        """GET /tokens/{token}/counters (token_holders_count, transfers_count)."""
        return await self.fetch_json(self.url(f"tokens/{normalize_address(token)}/counters"))

    async def get_address_info(self, address: str) -> Any:
        """GET /addresses/{address} (creator_address_hash, creation_tx_hash, ...)."""
        return await self.fetch_json(self.url(f"addresses/{normalize_address(address)}"))

    async def get_address_counters(self, address: str) -> Any:
        return await self.fetch_json(self.url(f"addresses/{normalize_address(address)}/counters"))

    # ─────────────────────────────────────────────────────────────
    # Creator / contract lookups
    # ─────────────────────────────────────────────────────────────

    async def get_transaction(self, tx_hash: str) -> Any:
        """GET /transactions/{hash}, including its token_transfers log."""
        return await self.fetch_json(self.url(f"transactions/{tx_hash}"))

    async def get_address_transactions(self, address: str) -> Any:
        """Most recent page of /addresses/{address}/transactions."""
        return await self.fetch_json(self.url(self.address_transactions_path(address)))

    async def get_token_balances(self, address: str, token: Optional[str] = None) -> Any:
        """GET /addresses/{address}/token-balances, optionally filtered by token."""
        params = {"token": normalize_address(token)} if token else None
        return await self.fetch_json(
            self.url(f"addresses/{normalize_address(address)}/token-balances"),
            params=params,
        )

    async def get_smart_contract(self, address: str) -> Any:
        """GET /smart-contracts/{address} (abi, verification data)."""
        return await self.fetch_json(self.url(f"smart-contracts/{normalize_address(address)}"))
