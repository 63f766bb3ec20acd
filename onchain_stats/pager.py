"""
Cursor Pager - Walks `next_page_params`-paginated explorer resources.

One generic loop, three instantiations (holders, time-windowed token
transfers, wallet token transfers). Every run is bounded by `max_pages`
and may additionally be bounded by a monotonic deadline and an
asyncio.Event cancellation signal; both end the walk normally.

HTTP errors (including per-request timeouts) propagate and abort the run.
"""

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from onchain_stats.base import BaseHttpClient
from onchain_stats.models import (
    Holder,
    PageWalk,
    StopReason,
    TransferEvent,
    parse_timestamp,
)
from onchain_stats.providers.explorer import ExplorerClient


logger = logging.getLogger(__name__)


Cursor = Optional[dict[str, Any]]
BuildRequest = Callable[[Cursor], tuple[str, Optional[dict[str, Any]]]]
ItemFilter = Callable[[Any], bool]
StopPredicate = Callable[[list[Any]], bool]

DEFAULT_HOLDER_PAGES = 200
DEFAULT_HOLDER_PAGE_SIZE = 50
DEFAULT_TRANSFER_PAGES = 200
DEFAULT_TRANSFER_PAGE_SIZE = 200
DEFAULT_WALLET_PAGES = 200


def deadline_after(seconds: Optional[float]) -> Optional[float]:
    """Monotonic deadline `seconds` from now, None when unbounded."""
    if seconds is None:
        return None
    return time.monotonic() + seconds


def _page_items(page: Any) -> list[Any]:
    """A missing or non-list `items` field is an empty page."""
    if not isinstance(page, dict):
        return []
    items = page.get("items")
    return items if isinstance(items, list) else []


def _next_cursor(page: Any) -> Cursor:
    if not isinstance(page, dict):
        return None
    cursor = page.get("next_page_params")
    if isinstance(cursor, dict) and cursor:
        return cursor
    return None


async def paginate(
    client: BaseHttpClient,
    build_request: BuildRequest,
    max_pages: int,
    item_filter: Optional[ItemFilter] = None,
    stop_predicate: Optional[StopPredicate] = None,
    deadline: Optional[float] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> PageWalk:
    """
    Walk a cursor-paginated resource.

    Args:
        client: HTTP client used for every page
        build_request: cursor -> (url, params); cursor is None for page one
        max_pages: Hard upper bound on requests
        item_filter: Keep only items for which this returns True
        stop_predicate: Called with each page's raw items; True ends the walk
            after that page's items have been accumulated
        deadline: time.monotonic() value after which no new page is requested
        cancel_event: When set, no new page is requested

    Returns:
        PageWalk with accumulated items, page count and stop reason
    """
    walk = PageWalk()
    cursor: Cursor = None

    for _ in range(max_pages):
        if cancel_event is not None and cancel_event.is_set():
            walk.stop_reason = StopReason.CANCELLED
            return walk
        if deadline is not None and time.monotonic() >= deadline:
            walk.stop_reason = StopReason.DEADLINE
            return walk

        url, params = build_request(cursor)
        page = await client.fetch_json(url, params=params)
        walk.pages_fetched += 1

        items = _page_items(page)
        if not items:
            walk.stop_reason = StopReason.EMPTY_PAGE
            return walk

        if item_filter is None:
            walk.items.extend(items)
        else:
            walk.items.extend(item for item in items if item_filter(item))

        if stop_predicate is not None and stop_predicate(items):
            walk.stop_reason = StopReason.EARLY_STOP
            return walk

        cursor = _next_cursor(page)
        if cursor is None:
            walk.stop_reason = StopReason.EXHAUSTED
            return walk

    walk.stop_reason = StopReason.MAX_PAGES
    return walk


def resource_request(
    client: BaseHttpClient,
    path: str,
    page_size: Optional[int] = None,
) -> BuildRequest:
    """Request builder that merges the cursor into `limit`-sized queries."""
    url = client.url(path)

    def build(cursor: Cursor) -> tuple[str, Optional[dict[str, Any]]]:
        params: dict[str, Any] = {}
        if page_size is not None:
            params["limit"] = page_size
        if cursor:
            params.update(cursor)
        return url, params or None

    return build


def _log_walk(label: str, walk: PageWalk) -> None:
    if walk.truncated:
        logger.warning(
            f"[pager] {label}: stopped early ({walk.stop_reason.value}) "
            f"after {walk.pages_fetched} pages, {len(walk.items)} items"
        )
    else:
        logger.debug(
            f"[pager] {label}: {walk.pages_fetched} pages, "
            f"{len(walk.items)} items ({walk.stop_reason.value})"
        )


# ─────────────────────────────────────────────────────────────
# Instantiations
# ─────────────────────────────────────────────────────────────


async def fetch_holders(
    explorer: ExplorerClient,
    token: str,
    max_pages: int = DEFAULT_HOLDER_PAGES,
    page_size: int = DEFAULT_HOLDER_PAGE_SIZE,
    deadline: Optional[float] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> list[Holder]:
    """Current holder snapshot; unusable rows are dropped."""
    walk = await paginate(
        explorer,
        resource_request(explorer, explorer.token_holders_path(token), page_size),
        max_pages,
        deadline=deadline,
        cancel_event=cancel_event,
    )
    _log_walk(f"holders {token}", walk)

    holders = []
    for item in walk.items:
        holder = Holder.from_api(item)
        if holder is not None:
            holders.append(holder)
    return holders


async def fetch_transfers_window(
    explorer: ExplorerClient,
    token: str,
    window: timedelta,
    now: Optional[datetime] = None,
    max_pages: int = DEFAULT_TRANSFER_PAGES,
    page_size: int = DEFAULT_TRANSFER_PAGE_SIZE,
    deadline: Optional[float] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> list[TransferEvent]:
    """
    Token transfers with `now - window <= timestamp <= now`.

    Both ends are inclusive: a transfer stamped exactly at the cutoff is kept.

    The walk stops after the first page whose last item is strictly older
    than the cutoff. This assumes the explorer returns transfers newest
    first; if it does not, later in-window pages are never requested and
    the result is silently incomplete.

    Items without a parseable timestamp are dropped.
    """
    end = now or datetime.now(timezone.utc)
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    cutoff = end - window

    def in_window(item: Any) -> bool:
        ts = parse_timestamp(item.get("timestamp")) if isinstance(item, dict) else None
        return ts is not None and cutoff <= ts <= end

    def past_cutoff(items: list[Any]) -> bool:
        last = items[-1]
        ts = parse_timestamp(last.get("timestamp")) if isinstance(last, dict) else None
        return ts is not None and ts < cutoff

    walk = await paginate(
        explorer,
        resource_request(explorer, explorer.token_transfers_path(token), page_size),
        max_pages,
        item_filter=in_window,
        stop_predicate=past_cutoff,
        deadline=deadline,
        cancel_event=cancel_event,
    )
    _log_walk(f"transfers {token} ({window})", walk)

    transfers = []
    for item in walk.items:
        event = TransferEvent.from_api(item)
        if event is not None:
            transfers.append(event)
    return transfers


async def fetch_wallet_transfers(
    explorer: ExplorerClient,
    wallet: str,
    max_pages: int = DEFAULT_WALLET_PAGES,
    page_size: Optional[int] = DEFAULT_TRANSFER_PAGE_SIZE,
    deadline: Optional[float] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> list[TransferEvent]:
    """Every token transfer touching a wallet, unfiltered."""
    walk = await paginate(
        explorer,
        resource_request(explorer, explorer.address_token_transfers_path(wallet), page_size),
        max_pages,
        deadline=deadline,
        cancel_event=cancel_event,
    )
    _log_walk(f"wallet transfers {wallet}", walk)

    transfers = []
    for item in walk.items:
        event = TransferEvent.from_api(item)
        if event is not None:
            transfers.append(event)
    return transfers
