"""
On-chain Stats Configuration - Endpoints, page budgets and thresholds.

All values have safe defaults and can be overridden from environment
variables (ONCHAIN_STATS_*), loaded through a .env file when present.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Optional

from dotenv import load_dotenv

from onchain_stats.exceptions import ConfigurationError
from onchain_stats.models import BURN_ADDRESSES


ENV_PREFIX = "ONCHAIN_STATS_"

DEFAULT_EXPLORER_URL = "https://api.scan.pulsechain.com/api/v2"
DEFAULT_DEX_URL = "https://api.dexscreener.com/latest/dex"

# WPLS, HEX, USDC (bridged), DAI (bridged)
DEFAULT_BLUE_CHIP_ADDRESSES = (
    "0xa1077a294dde1b09bb078844df40758a5d0f9a27",
    "0x2b591e99afe9f32eaa6214f7b7629768c40eeb39",
    "0x15d38573d2feeb82e7ad5187ab8c1d52810b1f07",
    "0xefd766ccb38eaf1dfd701853bfce31359239f305",
)

DEFAULT_SLIPPAGE_TRADE_SIZES_USD = (50.0, 500.0, 1_000.0, 10_000.0, 50_000.0)


@dataclass
class StatsConfig:
    """Main configuration for the stats engine."""

    # Upstream APIs
    explorer_base_url: str = DEFAULT_EXPLORER_URL
    dex_base_url: str = DEFAULT_DEX_URL
    user_agent: str = "OnchainStats/1.0"

    # Per-request timeout; a hung request fails the stat instead of hanging
    request_timeout_seconds: float = 30.0

    # Page sizes
    holders_page_size: int = 50
    transfers_page_size: int = 200

    # Page budgets (termination guarantees)
    max_holder_pages: int = 200
    max_transfer_24h_pages: int = 100
    max_transfer_window_pages: int = 200
    max_wallet_pages: int = 200

    # Wall-clock budget for a single pager run, None = unbounded
    walk_deadline_seconds: Optional[float] = None

    # Thresholds
    whale_threshold_pct: int = 1
    top_holders_list_size: int = 50
    creator_outbound_count: int = 5

    burn_addresses: frozenset[str] = field(default_factory=lambda: BURN_ADDRESSES)
    blue_chip_addresses: frozenset[str] = field(
        default_factory=lambda: frozenset(DEFAULT_BLUE_CHIP_ADDRESSES)
    )
    slippage_trade_sizes_usd: tuple[float, ...] = DEFAULT_SLIPPAGE_TRADE_SIZES_USD

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigurationError: on the first invalid value
        """
        for key in ("explorer_base_url", "dex_base_url"):
            url = getattr(self, key)
            if not url.startswith(("http://", "https://")):
                raise ConfigurationError(f"{key} must be an http(s) URL", config_key=key)

        if self.request_timeout_seconds <= 0:
            raise ConfigurationError(
                "request_timeout_seconds must be positive",
                config_key="request_timeout_seconds",
            )

        for key in (
            "holders_page_size",
            "transfers_page_size",
            "max_holder_pages",
            "max_transfer_24h_pages",
            "max_transfer_window_pages",
            "max_wallet_pages",
        ):
            if getattr(self, key) < 1:
                raise ConfigurationError(f"{key} must be >= 1", config_key=key)

        if self.walk_deadline_seconds is not None and self.walk_deadline_seconds <= 0:
            raise ConfigurationError(
                "walk_deadline_seconds must be positive or unset",
                config_key="walk_deadline_seconds",
            )

        if not 0 < self.whale_threshold_pct <= 100:
            raise ConfigurationError(
                "whale_threshold_pct must be in (0, 100]",
                config_key="whale_threshold_pct",
            )

        if not self.slippage_trade_sizes_usd or min(self.slippage_trade_sizes_usd) <= 0:
            raise ConfigurationError(
                "slippage_trade_sizes_usd must be a non-empty list of positive sizes",
                config_key="slippage_trade_sizes_usd",
            )

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "StatsConfig":
        """Build configuration from ONCHAIN_STATS_* environment variables."""
        load_dotenv(dotenv_path)
        defaults = cls()

        def env(name: str) -> Optional[str]:
            value = os.environ.get(f"{ENV_PREFIX}{name}")
            return value if value not in (None, "") else None

        def env_int(name: str, default: int) -> int:
            value = env(name)
            if value is None:
                return default
            try:
                return int(value)
            except ValueError:
                raise ConfigurationError(
                    f"{ENV_PREFIX}{name} must be an integer, got {value!r}",
                    config_key=name.lower(),
                )

        def env_float(name: str, default: Optional[float]) -> Optional[float]:
            value = env(name)
            if value is None:
                return default
            try:
                return float(value)
            except ValueError:
                raise ConfigurationError(
                    f"{ENV_PREFIX}{name} must be a number, got {value!r}",
                    config_key=name.lower(),
                )

        trade_sizes = defaults.slippage_trade_sizes_usd
        raw_sizes = env("SLIPPAGE_TRADE_SIZES_USD")
        if raw_sizes:
            try:
                trade_sizes = tuple(float(s) for s in raw_sizes.split(",") if s.strip())
            except ValueError:
                raise ConfigurationError(
                    f"{ENV_PREFIX}SLIPPAGE_TRADE_SIZES_USD must be comma-separated numbers",
                    config_key="slippage_trade_sizes_usd",
                )

        config = cls(
            explorer_base_url=(env("EXPLORER_URL") or defaults.explorer_base_url).rstrip("/"),
            dex_base_url=(env("DEX_URL") or defaults.dex_base_url).rstrip("/"),
            user_agent=env("USER_AGENT") or defaults.user_agent,
            request_timeout_seconds=env_float(
                "REQUEST_TIMEOUT_SECONDS", defaults.request_timeout_seconds
            ),
            holders_page_size=env_int("HOLDERS_PAGE_SIZE", defaults.holders_page_size),
            transfers_page_size=env_int("TRANSFERS_PAGE_SIZE", defaults.transfers_page_size),
            max_holder_pages=env_int("MAX_HOLDER_PAGES", defaults.max_holder_pages),
            max_transfer_24h_pages=env_int(
                "MAX_TRANSFER_24H_PAGES", defaults.max_transfer_24h_pages
            ),
            max_transfer_window_pages=env_int(
                "MAX_TRANSFER_WINDOW_PAGES", defaults.max_transfer_window_pages
            ),
            max_wallet_pages=env_int("MAX_WALLET_PAGES", defaults.max_wallet_pages),
            walk_deadline_seconds=env_float("WALK_DEADLINE_SECONDS", None),
            whale_threshold_pct=env_int("WHALE_THRESHOLD_PCT", defaults.whale_threshold_pct),
            slippage_trade_sizes_usd=trade_sizes,
        )
        config.validate()
        return config

    def to_dict(self) -> dict[str, Any]:
        return {
            "explorer_base_url": self.explorer_base_url,
            "dex_base_url": self.dex_base_url,
            "request_timeout_seconds": self.request_timeout_seconds,
            "holders_page_size": self.holders_page_size,
            "transfers_page_size": self.transfers_page_size,
            "max_holder_pages": self.max_holder_pages,
            "max_transfer_24h_pages": self.max_transfer_24h_pages,
            "max_transfer_window_pages": self.max_transfer_window_pages,
            "max_wallet_pages": self.max_wallet_pages,
            "walk_deadline_seconds": self.walk_deadline_seconds,
            "whale_threshold_pct": self.whale_threshold_pct,
            "slippage_trade_sizes_usd": list(self.slippage_trade_sizes_usd),
        }


# Default configuration instance
_default_config: Optional[StatsConfig] = None


def get_config() -> StatsConfig:
    """Get the default configuration (environment-derived on first use)."""
    global _default_config
    if _default_config is None:
        _default_config = StatsConfig.from_env()
    return _default_config


def set_config(config: StatsConfig) -> None:
    """Set the default configuration."""
    global _default_config
    config.validate()
    _default_config = config
