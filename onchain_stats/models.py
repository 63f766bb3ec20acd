"""
On-chain Stats Data Models - Typed views over explorer and DEX payloads.

Raw balances and transfer values are Python ints (arbitrary precision);
they are only converted to Decimal/float for percentages and display.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from onchain_stats.exceptions import InvalidAddressError, MetadataUnavailableError
from onchain_stats.formatting import to_json_safe


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
DEAD_ADDRESS = "0x000000000000000000000000000000000000dead"
PULSE_BURN_ADDRESS = "0x0000000000000000000000000000000000000369"

BURN_ADDRESSES = frozenset({ZERO_ADDRESS, DEAD_ADDRESS, PULSE_BURN_ADDRESS})

_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")


def normalize_address(address: Any) -> str:
    """Lowercase and validate a 20-byte hex address."""
    if not isinstance(address, str):
        raise InvalidAddressError(address)
    normalized = address.strip().lower()
    if not _ADDRESS_RE.match(normalized):
        raise InvalidAddressError(address)
    return normalized


def lower_or_empty(value: Any) -> str:
    """Lowercase an address-ish value, '' when missing."""
    return value.lower() if isinstance(value, str) else ""


def parse_int(value: Any) -> Optional[int]:
    """Parse a decimal-string/int raw amount; None when absent or invalid."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit() or (text.startswith("-") and text[1:].isdigit()):
            return int(text)
    return None


def parse_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """Parse a finite float; `default` when absent, invalid or non-finite."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp into an aware UTC datetime."""
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def address_hash(obj: Any) -> str:
    """Explorer nests addresses as {"hash": ...}."""
    if isinstance(obj, dict):
        return lower_or_empty(obj.get("hash"))
    return lower_or_empty(obj)


def as_dict(value: Any) -> dict[str, Any]:
    """A nested object, or {} when the payload has something else there."""
    return value if isinstance(value, dict) else {}


class StatFormat(str, Enum):
    """Output-format tag of a stat."""
    NUMBER = "number"
    CURRENCY = "currency"
    PERCENTAGE = "percentage"
    ADDRESS = "address"
    TEXT = "text"


class StopReason(str, Enum):
    """Why a pager run ended."""
    EXHAUSTED = "exhausted"
    EMPTY_PAGE = "empty_page"
    EARLY_STOP = "early_stop"
    MAX_PAGES = "max_pages"
    DEADLINE = "deadline"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Holder:
    """A current token holder."""
    address: str
    raw_balance: int

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> Optional["Holder"]:
        """Build from a holders page item; None when unusable or negative."""
        if not isinstance(item, dict):
            return None
        address = address_hash(item.get("address"))
        raw = parse_int(item.get("value"))
        if not address or raw is None or raw < 0:
            return None
        return cls(address=address, raw_balance=raw)


@dataclass(frozen=True)
class TransferEvent:
    """A single token transfer."""
    timestamp: datetime
    from_address: str
    to_address: str
    raw_value: int
    token_address: Optional[str] = None
    tx_hash: Optional[str] = None
    method: Optional[str] = None

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> Optional["TransferEvent"]:
        """Build from a transfers page item; None without a timestamp or with a negative value."""
        if not isinstance(item, dict):
            return None
        timestamp = parse_timestamp(item.get("timestamp"))
        if timestamp is None:
            return None
        total = item.get("total")
        raw = parse_int(total.get("value")) if isinstance(total, dict) else None
        if raw is not None and raw < 0:
            return None
        token = item.get("token")
        token_address = lower_or_empty(token.get("address")) if isinstance(token, dict) else ""
        return cls(
            timestamp=timestamp,
            from_address=address_hash(item.get("from")),
            to_address=address_hash(item.get("to")),
            raw_value=raw or 0,
            token_address=token_address or None,
            tx_hash=item.get("tx_hash") or item.get("transaction_hash"),
            method=item.get("method"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "from": self.from_address,
            "to": self.to_address,
            "raw_value": str(self.raw_value),
            "token_address": self.token_address,
            "tx_hash": self.tx_hash,
            "method": self.method,
        }


@dataclass(frozen=True)
class TokenMetadata:
    """Typed token metadata; decimals and total supply always present."""
    address: str
    decimals: int
    total_supply_raw: int
    holders_count_reported: Optional[int] = None
    transfers_count_reported: Optional[int] = None
    symbol: Optional[str] = None
    name: Optional[str] = None
    creator_address: Optional[str] = None
    creation_tx_hash: Optional[str] = None
    icon_url: Optional[str] = None

    @classmethod
    def from_core(
        cls,
        address: str,
        token_info: Optional[dict[str, Any]],
        token_counters: Optional[dict[str, Any]] = None,
        address_info: Optional[dict[str, Any]] = None,
    ) -> "TokenMetadata":
        """
        Build from the raw core slots.

        Raises:
            MetadataUnavailableError: decimals or total supply missing
        """
        if not isinstance(token_info, dict):
            raise MetadataUnavailableError(
                "Token info unavailable",
                token_address=address,
                missing_fields=["decimals", "total_supply"],
            )

        decimals = parse_int(token_info.get("decimals"))
        total_supply = parse_int(token_info.get("total_supply"))
        missing = []
        if decimals is None or decimals < 0:
            missing.append("decimals")
        if total_supply is None or total_supply < 0:
            missing.append("total_supply")
        if missing:
            raise MetadataUnavailableError(
                f"Token metadata incomplete: missing {', '.join(missing)}",
                token_address=address,
                missing_fields=missing,
            )

        counters = token_counters if isinstance(token_counters, dict) else {}
        info = address_info if isinstance(address_info, dict) else {}

        holders_count = parse_int(counters.get("token_holders_count"))
        if holders_count is None:
            holders_count = parse_int(token_info.get("holders"))

        return cls(
            address=address,
            decimals=decimals,
            total_supply_raw=total_supply,
            holders_count_reported=holders_count,
            transfers_count_reported=parse_int(counters.get("transfers_count")),
            symbol=token_info.get("symbol"),
            name=token_info.get("name"),
            creator_address=lower_or_empty(info.get("creator_address_hash")) or None,
            creation_tx_hash=info.get("creation_tx_hash") or None,
            icon_url=token_info.get("icon_url"),
        )


@dataclass(frozen=True)
class LiquidityPair:
    """A DEX pair as reported by the aggregator."""
    dex_id: str
    pair_address: str
    base_token_address: str = ""
    base_symbol: str = ""
    quote_token_address: str = ""
    quote_symbol: str = ""
    base_reserve: float = 0.0
    quote_reserve: float = 0.0
    liquidity_usd: float = 0.0
    price_usd: float = 0.0
    volume_24h_usd: float = 0.0
    buy_count_24h: int = 0
    sell_count_24h: int = 0
    price_change_h6: Optional[float] = None
    price_change_h24: Optional[float] = None
    market_cap: Optional[float] = None
    fdv: Optional[float] = None
    image_url: Optional[str] = None

    @classmethod
    def from_api(cls, pair: dict[str, Any]) -> Optional["LiquidityPair"]:
        """Build from an aggregator pair; malformed nested objects count as empty."""
        if not isinstance(pair, dict):
            return None
        base = as_dict(pair.get("baseToken"))
        quote = as_dict(pair.get("quoteToken"))
        liquidity = as_dict(pair.get("liquidity"))
        volume = as_dict(pair.get("volume"))
        txns = as_dict(as_dict(pair.get("txns")).get("h24"))
        price_change = as_dict(pair.get("priceChange"))
        image_url = as_dict(pair.get("info")).get("imageUrl")
        return cls(
            dex_id=str(pair.get("dexId") or "unknown"),
            pair_address=lower_or_empty(pair.get("pairAddress")),
            base_token_address=lower_or_empty(base.get("address")),
            base_symbol=str(base.get("symbol") or ""),
            quote_token_address=lower_or_empty(quote.get("address")),
            quote_symbol=str(quote.get("symbol") or ""),
            base_reserve=parse_float(liquidity.get("base")),
            quote_reserve=parse_float(liquidity.get("quote")),
            liquidity_usd=parse_float(liquidity.get("usd")),
            price_usd=parse_float(pair.get("priceUsd")),
            volume_24h_usd=parse_float(volume.get("h24")),
            buy_count_24h=int(parse_float(txns.get("buys"))),
            sell_count_24h=int(parse_float(txns.get("sells"))),
            price_change_h6=parse_float(price_change.get("h6"), None),
            price_change_h24=parse_float(price_change.get("h24"), None),
            market_cap=parse_float(pair.get("marketCap"), None),
            fdv=parse_float(pair.get("fdv"), None),
            image_url=image_url if isinstance(image_url, str) else None,
        )

    @property
    def label(self) -> str:
        return f"{self.base_symbol}/{self.quote_symbol}"


@dataclass
class CoreMetadata:
    """The four raw core slots plus per-slot failures."""
    token_info: Optional[dict[str, Any]] = None
    token_counters: Optional[dict[str, Any]] = None
    address_info: Optional[dict[str, Any]] = None
    address_counters: Optional[dict[str, Any]] = None
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.errors


@dataclass
class TokenCacheEntry:
    """Per-token cache slots. A None slot has not been fetched yet."""
    token_info: Optional[dict[str, Any]] = None
    token_counters: Optional[dict[str, Any]] = None
    address_info: Optional[dict[str, Any]] = None
    address_counters: Optional[dict[str, Any]] = None
    holders: Optional[list[Holder]] = None
    transfers_24h: Optional[list[TransferEvent]] = None
    dex_pairs: Optional[list[LiquidityPair]] = None
    transfer_windows: dict[int, list[TransferEvent]] = field(default_factory=dict)
    # Single-resource lookups keyed by name (creation tx, creator history, ...)
    lookups: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StatConfig:
    """Public description of a registered stat."""
    id: str
    name: str
    description: str
    format: StatFormat
    source: str = "explorer"
    enabled: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "format": self.format.value,
            "source": self.source,
            "enabled": self.enabled,
        }


@dataclass
class StatResult:
    """Uniform output of every stat."""
    stat_id: str
    value: Any
    display: str
    source: str
    computed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe dictionary; non-finite floats become string sentinels."""
        return {
            "stat_id": self.stat_id,
            "value": to_json_safe(self.value),
            "display": self.display,
            "source": self.source,
            "computed_at": self.computed_at.isoformat(),
            "error": self.error,
        }


@dataclass
class PageWalk:
    """Outcome of a pager run."""
    items: list[Any] = field(default_factory=list)
    pages_fetched: int = 0
    stop_reason: StopReason = StopReason.EXHAUSTED

    @property
    def truncated(self) -> bool:
        """True when the walk ended before the resource was exhausted."""
        return self.stop_reason in (
            StopReason.MAX_PAGES,
            StopReason.DEADLINE,
            StopReason.CANCELLED,
        )
