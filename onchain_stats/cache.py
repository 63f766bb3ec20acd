"""
Per-token Memoization Cache - One network fetch per slot per token.

The cache is an explicit object handed to every stat, so tests and
request scopes get a fresh one by constructing it. Slots have no TTL;
long-running processes call clear().

Concurrency:
- Single event loop, no locks
- An in-flight asyncio.Task is memoized per (token, slot) before its
  result lands, so concurrent callers share one fetch
- Callers await the shared task through asyncio.shield; a cancelled caller
  does not cancel the fetch other callers are waiting on
- A failed fetch is not cached; the next call retries it
"""

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Iterable, Optional

from onchain_stats.config import StatsConfig, get_config
from onchain_stats.exceptions import MetadataUnavailableError
from onchain_stats.models import (
    CoreMetadata,
    Holder,
    LiquidityPair,
    TokenCacheEntry,
    TokenMetadata,
    TransferEvent,
    normalize_address,
)
from onchain_stats.pager import (
    deadline_after,
    fetch_holders,
    fetch_transfers_window,
    fetch_wallet_transfers,
)
from onchain_stats.providers.dexscreener import DexScreenerClient
from onchain_stats.providers.explorer import ExplorerClient


logger = logging.getLogger(__name__)


CORE_SLOTS = ("token_info", "token_counters", "address_info", "address_counters")

# Label and TokenMetadata-feeding fields of each core slot
CORE_SLOT_FIELDS = {
    "token_info": ("Token info", ["decimals", "total_supply"]),
    "token_counters": ("Token counters", ["token_holders_count", "transfers_count"]),
    "address_info": ("Address info", ["creator_address_hash", "creation_tx_hash"]),
    "address_counters": ("Address counters", []),
}

Loader = Callable[[], Awaitable[Any]]


class TokenStatsCache:
    """
    Read-through cache over the explorer and DEX clients.

    Usage:
        async with ExplorerClient() as explorer, DexScreenerClient() as dex:
            cache = TokenStatsCache(explorer, dex)
            holders = await cache.ensure_holders(token)
            # Second call is served from memory
            holders = await cache.ensure_holders(token)
    """

    def __init__(
        self,
        explorer: Optional[ExplorerClient] = None,
        dex: Optional[DexScreenerClient] = None,
        config: Optional[StatsConfig] = None,
        cancel_event: Optional[asyncio.Event] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._config = config or get_config()
        self.explorer = explorer or ExplorerClient(self._config)
        self.dex = dex or DexScreenerClient(self._config)
        self.cancel_event = cancel_event
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._entries: dict[str, TokenCacheEntry] = {}
        self._inflight: dict[tuple[str, str], asyncio.Task] = {}

        self._hits = 0
        self._misses = 0
        self._joins = 0
        self._failures = 0

    @property
    def config(self) -> StatsConfig:
        return self._config

    def now(self) -> datetime:
        return self._clock()

    def _entry(self, token: str) -> TokenCacheEntry:
        entry = self._entries.get(token)
        if entry is None:
            entry = TokenCacheEntry()
            self._entries[token] = entry
        return entry

    # ─────────────────────────────────────────────────────────────
    # Single-flight
    # ─────────────────────────────────────────────────────────────

    async def _single_flight(self, token: str, slot: str, loader: Loader) -> Any:
        """Run `loader` once per (token, slot) no matter how many callers wait."""
        key = (token, slot)
        task = self._inflight.get(key)
        if task is None:
            self._misses += 1
            task = asyncio.ensure_future(loader())
            self._inflight[key] = task
            task.add_done_callback(lambda t: self._on_task_done(key, t))
        else:
            self._joins += 1
            logger.debug(f"[cache] Joining in-flight fetch {slot} for {token}")
        return await asyncio.shield(task)

    def _on_task_done(self, key: tuple[str, str], task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._failures += 1
            logger.warning(f"[cache] Fetch {key[1]} for {key[0]} failed: {error}")

    def _walk_interrupted(self, deadline: Optional[float]) -> bool:
        """True when a pager run may have been cut short by deadline or cancel."""
        if self.cancel_event is not None and self.cancel_event.is_set():
            return True
        return deadline is not None and time.monotonic() >= deadline

    async def _ensure(
        self,
        token: str,
        slot: str,
        read: Callable[[TokenCacheEntry], Any],
        store: Callable[[TokenCacheEntry, Any], None],
        loader: Loader,
        cacheable: Optional[Callable[[], bool]] = None,
    ) -> Any:
        entry = self._entry(token)
        cached = read(entry)
        if cached is not None:
            self._hits += 1
            logger.debug(f"[cache] Hit {slot} for {token}")
            return cached

        async def load_and_store() -> Any:
            value = await loader()
            if cacheable is None or cacheable():
                store(entry, value)
            else:
                logger.info(f"[cache] Not caching interrupted walk {slot} for {token}")
            return value

        return await self._single_flight(token, slot, load_and_store)

    async def _ensure_attr(self, token: str, slot: str, loader: Loader, **kwargs: Any) -> Any:
        return await self._ensure(
            token,
            slot,
            read=lambda entry: getattr(entry, slot),
            store=lambda entry, value: setattr(entry, slot, value),
            loader=loader,
            **kwargs,
        )

    # ─────────────────────────────────────────────────────────────
    # Core metadata
    # ─────────────────────────────────────────────────────────────

    def _core_loader(self, slot: str, token: str) -> Loader:
        fetchers = {
            "token_info": self.explorer.get_token_info,
            "token_counters": self.explorer.get_token_counters,
            "address_info": self.explorer.get_address_info,
            "address_counters": self.explorer.get_address_counters,
        }
        fetch = fetchers[slot]

        async def load() -> dict[str, Any]:
            data = await fetch(token)
            # Non-object bodies count as "no data" rather than an error
            return data if isinstance(data, dict) else {}

        return load

    async def ensure_core_metadata(self, token: str) -> CoreMetadata:
        """
        Token info, token counters, address info and address counters.

        Uncached slots are fetched concurrently. A slot that fails is left
        uncached and reported in CoreMetadata.errors; the other slots still
        land, and a later call retries only the failed ones.
        """
        token = normalize_address(token)
        entry = self._entry(token)

        missing = [slot for slot in CORE_SLOTS if getattr(entry, slot) is None]
        self._hits += len(CORE_SLOTS) - len(missing)

        results = await asyncio.gather(
            *(
                self._ensure_attr(token, slot, self._core_loader(slot, token))
                for slot in missing
            ),
            return_exceptions=True,
        )

        errors: dict[str, str] = {}
        for slot, result in zip(missing, results):
            if isinstance(result, Exception):
                errors[slot] = str(result)
            elif isinstance(result, BaseException):
                raise result

        return CoreMetadata(
            token_info=entry.token_info,
            token_counters=entry.token_counters,
            address_info=entry.address_info,
            address_counters=entry.address_counters,
            errors=errors,
        )

    async def ensure_token_metadata(
        self,
        token: str,
        require: Iterable[str] = (),
    ) -> TokenMetadata:
        """
        Typed metadata built from the core slots.

        Token info is always required. A caller that reads fields fed by
        another slot names it in `require`, so a failed fetch of that slot
        is reported instead of looking like an absent field.

        Args:
            token: Token contract address
            require: Further core slots that must have been fetched

        Raises:
            MetadataUnavailableError: token info or a required slot failed,
                or token info lacks decimals / total supply
        """
        token = normalize_address(token)
        core = await self.ensure_core_metadata(token)
        for slot in ("token_info", *require):
            if slot not in CORE_SLOT_FIELDS:
                raise ValueError(f"Unknown core slot: {slot}")
            if slot in core.errors:
                label, fields = CORE_SLOT_FIELDS[slot]
                raise MetadataUnavailableError(
                    f"{label} unavailable: {core.errors[slot]}",
                    token_address=token,
                    missing_fields=list(fields),
                )
        return TokenMetadata.from_core(
            token,
            core.token_info,
            core.token_counters,
            core.address_info,
        )

    # ─────────────────────────────────────────────────────────────
    # Paged slots
    # ─────────────────────────────────────────────────────────────

    async def ensure_holders(self, token: str) -> list[Holder]:
        """Full holder snapshot, walked once per token."""
        token = normalize_address(token)
        deadline = deadline_after(self._config.walk_deadline_seconds)

        async def load() -> list[Holder]:
            return await fetch_holders(
                self.explorer,
                token,
                max_pages=self._config.max_holder_pages,
                page_size=self._config.holders_page_size,
                deadline=deadline,
                cancel_event=self.cancel_event,
            )

        return await self._ensure_attr(
            token,
            "holders",
            load,
            cacheable=lambda: not self._walk_interrupted(deadline),
        )

    async def ensure_transfers_24h(self, token: str) -> list[TransferEvent]:
        """Transfers in [now - 24h, now], walked once per token."""
        token = normalize_address(token)
        deadline = deadline_after(self._config.walk_deadline_seconds)

        async def load() -> list[TransferEvent]:
            return await fetch_transfers_window(
                self.explorer,
                token,
                timedelta(hours=24),
                now=self.now(),
                max_pages=self._config.max_transfer_24h_pages,
                page_size=self._config.transfers_page_size,
                deadline=deadline,
                cancel_event=self.cancel_event,
            )

        return await self._ensure_attr(
            token,
            "transfers_24h",
            load,
            cacheable=lambda: not self._walk_interrupted(deadline),
        )

    async def ensure_transfers_window(self, token: str, days: int) -> list[TransferEvent]:
        """Transfers in [now - days, now], walked once per (token, days)."""
        token = normalize_address(token)
        deadline = deadline_after(self._config.walk_deadline_seconds)

        async def load() -> list[TransferEvent]:
            return await fetch_transfers_window(
                self.explorer,
                token,
                timedelta(days=days),
                now=self.now(),
                max_pages=self._config.max_transfer_window_pages,
                page_size=self._config.transfers_page_size,
                deadline=deadline,
                cancel_event=self.cancel_event,
            )

        def store(entry: TokenCacheEntry, value: list[TransferEvent]) -> None:
            entry.transfer_windows[days] = value

        return await self._ensure(
            token,
            f"transfers_{days}d",
            read=lambda entry: entry.transfer_windows.get(days),
            store=store,
            loader=load,
            cacheable=lambda: not self._walk_interrupted(deadline),
        )

    async def ensure_dex_pairs(self, token: str) -> list[LiquidityPair]:
        """Aggregator pair snapshot, fetched once per token."""
        token = normalize_address(token)

        async def load() -> list[LiquidityPair]:
            return await self.dex.get_token_pairs(token)

        return await self._ensure_attr(token, "dex_pairs", load)

    async def ensure_wallet_transfers(self, token: str, wallet: str) -> list[TransferEvent]:
        """Every token transfer touching `wallet`, walked once per (token, wallet)."""
        token = normalize_address(token)
        wallet = normalize_address(wallet)
        name = f"wallet_transfers:{wallet}"
        deadline = deadline_after(self._config.walk_deadline_seconds)

        async def load() -> list[TransferEvent]:
            return await fetch_wallet_transfers(
                self.explorer,
                wallet,
                max_pages=self._config.max_wallet_pages,
                page_size=self._config.transfers_page_size,
                deadline=deadline,
                cancel_event=self.cancel_event,
            )

        def store(entry: TokenCacheEntry, value: list[TransferEvent]) -> None:
            entry.lookups[name] = value

        return await self._ensure(
            token,
            f"lookup:{name}",
            read=lambda entry: entry.lookups.get(name),
            store=store,
            loader=load,
            cacheable=lambda: not self._walk_interrupted(deadline),
        )

    async def ensure_lookup(self, token: str, name: str, loader: Loader) -> Any:
        """
        Memoize a single-resource lookup made on behalf of a token.

        Used for creator / contract lookups that several stats share
        (creation transaction, creator transactions, ABI, ...).
        """
        token = normalize_address(token)

        def store(entry: TokenCacheEntry, value: Any) -> None:
            entry.lookups[name] = value

        return await self._ensure(
            token,
            f"lookup:{name}",
            read=lambda entry: entry.lookups.get(name),
            store=store,
            loader=loader,
        )

    # ─────────────────────────────────────────────────────────────
    # Management
    # ─────────────────────────────────────────────────────────────

    def clear(self, token: Optional[str] = None) -> None:
        """Drop cached slots for one token, or for every token."""
        if token is None:
            self._entries.clear()
            logger.info("[cache] Cleared all tokens")
            return
        self._entries.pop(normalize_address(token), None)
        logger.info(f"[cache] Cleared {token}")

    def stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        lookups = self._hits + self._misses
        hit_rate = (self._hits / lookups * 100) if lookups > 0 else 0
        return {
            "tokens": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "inflight_joins": self._joins,
            "inflight": len(self._inflight),
            "failures": self._failures,
            "hit_rate_percent": round(hit_rate, 2),
        }

    def __repr__(self) -> str:
        return f"<TokenStatsCache(tokens={len(self._entries)})>"
