"""
Stat implementations, grouped by concern.
"""

from onchain_stats.stats.activity import (
    AvgTransferValue24hStat,
    MedianTransferValue24hStat,
    TransactionVelocity24hStat,
    Transfers24hStat,
    TransfersTotalStat,
    UniqueReceivers24hStat,
    UniqueSenders24hStat,
)
from onchain_stats.stats.base import BaseStat
from onchain_stats.stats.contract import (
    AbiComplexityStat,
    AddressStat,
    ContractAgeStat,
    IconUrlStat,
    NameStat,
    SymbolStat,
)
from onchain_stats.stats.creator import (
    CreatorCurrentBalanceStat,
    CreatorFirstOutboundStat,
    CreatorInitialSupplyStat,
    CreatorTokenHistoryStat,
    OwnershipStatusStat,
)
from onchain_stats.stats.holders import (
    AvgHolderBalanceStat,
    DiamondHandsStat,
    GiniCoefficientStat,
    NewVsLostHoldersStat,
    TopHolderChangeStat,
    TopHoldersListStat,
    TopHoldersShareStat,
    WhaleCountStat,
)
from onchain_stats.stats.liquidity import (
    AvgBuySellSize24hStat,
    BlueChipPairRatioStat,
    DexDiversityStat,
    HolderToLiquidityRatioStat,
    LiquidityConcentrationStat,
    LiquidityDepthStat,
    LiquidityUsdStat,
    PriceUsdStat,
    TotalLiquidityUsdStat,
    TotalTokensInLiquidityStat,
)
from onchain_stats.stats.supply import (
    Burned24hStat,
    BurnedTotalStat,
    HoldersStat,
    Minted24hStat,
    TotalSupplyStat,
)


__all__ = [
    "BaseStat",

    # Supply & flow
    "TotalSupplyStat",
    "HoldersStat",
    "BurnedTotalStat",
    "Burned24hStat",
    "Minted24hStat",

    # Holder distribution
    "TopHoldersShareStat",
    "WhaleCountStat",
    "GiniCoefficientStat",
    "TopHoldersListStat",
    "AvgHolderBalanceStat",
    "NewVsLostHoldersStat",
    "DiamondHandsStat",
    "TopHolderChangeStat",

    # Activity
    "TransfersTotalStat",
    "Transfers24hStat",
    "UniqueSenders24hStat",
    "UniqueReceivers24hStat",
    "AvgTransferValue24hStat",
    "MedianTransferValue24hStat",
    "TransactionVelocity24hStat",

    # Market & liquidity
    "PriceUsdStat",
    "LiquidityUsdStat",
    "TotalLiquidityUsdStat",
    "TotalTokensInLiquidityStat",
    "BlueChipPairRatioStat",
    "LiquidityConcentrationStat",
    "DexDiversityStat",
    "HolderToLiquidityRatioStat",
    "AvgBuySellSize24hStat",
    "LiquidityDepthStat",

    # Creator & contract
    "CreatorInitialSupplyStat",
    "OwnershipStatusStat",
    "CreatorCurrentBalanceStat",
    "CreatorFirstOutboundStat",
    "CreatorTokenHistoryStat",
    "ContractAgeStat",
    "AddressStat",
    "SymbolStat",
    "NameStat",
    "IconUrlStat",
    "AbiComplexityStat",
]
