"""
Providers package - Upstream API clients.
"""

from onchain_stats.providers.dexscreener import DexScreenerClient
from onchain_stats.providers.explorer import ExplorerClient


__all__ = [
    "DexScreenerClient",
    "ExplorerClient",
]
