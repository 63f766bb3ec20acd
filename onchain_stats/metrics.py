"""
Derived Metrics - Pure functions over holders, transfers and DEX pairs.

No I/O happens here. Every ranking and threshold comparison on raw
balances uses Python ints; floats only appear in the returned
percentages and USD figures.

Degenerate inputs (zero supply, zero liquidity, empty sets) map to 0 or
math.inf, never NaN.
"""

import math
from collections import defaultdict
from datetime import datetime, timedelta
from decimal import Decimal, localcontext
from fractions import Fraction
from typing import Any, Iterable, Optional, Sequence

from onchain_stats.models import (
    ZERO_ADDRESS,
    Holder,
    LiquidityPair,
    TransferEvent,
    address_hash,
    lower_or_empty,
    parse_int,
)


# ─────────────────────────────────────────────────────────────
# Holder distribution
# ─────────────────────────────────────────────────────────────


def sort_holders(holders: Iterable[Holder]) -> list[Holder]:
    """Descending raw balance; equal balances ordered by ascending address."""
    return sorted(holders, key=lambda h: (-h.raw_balance, h.address))


def share_pct(raw: int, total: int) -> float:
    """raw / total as a percentage, 0 when total is 0."""
    if total <= 0:
        return 0.0
    return float(Fraction(raw * 100, total))


def top_n_share_pct(holders: Iterable[Holder], total_supply: int, n: int) -> float:
    """Percentage of supply held by the `n` largest holders."""
    if total_supply <= 0:
        return 0.0
    top = sort_holders(holders)[:n]
    return share_pct(sum(h.raw_balance for h in top), total_supply)


def whale_count(
    holders: Iterable[Holder],
    total_supply: int,
    threshold_pct: float = 1,
) -> int:
    """Holders whose balance is at least `threshold_pct` percent of supply."""
    if total_supply <= 0:
        return 0
    threshold = Fraction(threshold_pct) * total_supply
    return sum(1 for h in holders if h.raw_balance * 100 >= threshold)


def gini_coefficient(values: Iterable[int]) -> float:
    """
    Gini coefficient of a non-negative distribution.

    With v sorted ascending: G = Σ((2(i+1) - n - 1) · v[i]) / (n · Σv).
    0 for fewer than two values or a zero sum. Computed exactly and
    converted to float at the end.
    """
    ordered = sorted(values)
    n = len(ordered)
    if n < 2:
        return 0.0
    total = sum(ordered)
    if total == 0:
        return 0.0
    weighted = sum((2 * (i + 1) - n - 1) * v for i, v in enumerate(ordered))
    return float(Fraction(weighted, n * total))


def balance_of(holders: Iterable[Holder], addresses: Iterable[str]) -> int:
    """Summed raw balance of the given addresses."""
    wanted = {a.lower() for a in addresses}
    return sum(h.raw_balance for h in holders if h.address in wanted)


def circulating_supply(
    total_supply: int,
    holders: Iterable[Holder],
    burn_addresses: Iterable[str],
) -> int:
    """Total supply minus what the burn addresses currently hold."""
    return max(total_supply - balance_of(holders, burn_addresses), 0)


def new_vs_lost_holders(transfers: Iterable[TransferEvent]) -> dict[str, int]:
    """
    Heuristic holder churn over a transfer window.

    Addresses that only received are counted as new, addresses that only
    sent as lost. Partial sells and balances from before the window are
    invisible to this approximation.
    """
    senders: set[str] = set()
    receivers: set[str] = set()
    for t in transfers:
        if t.from_address:
            senders.add(t.from_address)
        if t.to_address:
            receivers.add(t.to_address)

    new_holders = len(receivers - senders)
    lost_holders = len(senders - receivers)
    return {
        "new_holders": new_holders,
        "lost_holders": lost_holders,
        "net_change": new_holders - lost_holders,
    }


def diamond_hands_scores(
    holders: Iterable[Holder],
    transfers: Iterable[TransferEvent],
    total_supply: int,
    windows: Sequence[int],
    now: datetime,
) -> dict[int, float]:
    """
    Percentage of supply held by current holders that sent nothing within
    each window (in days).

    Over-approximates "has not sold": a wallet that only received during
    the window counts as dormant.
    """
    holders = list(holders)
    transfers = list(transfers)
    scores: dict[int, float] = {}
    for days in windows:
        cutoff = now - timedelta(days=days)
        active = {t.from_address for t in transfers if t.timestamp >= cutoff and t.from_address}
        dormant = sum(h.raw_balance for h in holders if h.address not in active)
        scores[days] = share_pct(dormant, total_supply)
    return scores


def top_holder_balance_changes(
    holders: Iterable[Holder],
    transfers: Iterable[TransferEvent],
    n: int = 10,
) -> list[dict[str, Any]]:
    """Net raw flow per top-`n` holder over the given transfers, in rank order."""
    top = [h.address for h in sort_holders(holders)[:n]]
    changes = dict.fromkeys(top, 0)
    for t in transfers:
        if t.from_address in changes:
            changes[t.from_address] -= t.raw_value
        if t.to_address in changes:
            changes[t.to_address] += t.raw_value
    return [
        {"rank": rank, "address": address, "net_change_raw": changes[address]}
        for rank, address in enumerate(top, start=1)
    ]


# ─────────────────────────────────────────────────────────────
# Transfer flow
# ─────────────────────────────────────────────────────────────


def sum_burned(transfers: Iterable[TransferEvent], burn_addresses: Iterable[str]) -> int:
    """Raw value sent to any burn address."""
    burn = {a.lower() for a in burn_addresses}
    return sum(t.raw_value for t in transfers if t.to_address in burn)


def sum_minted(transfers: Iterable[TransferEvent], token: str) -> int:
    """
    Raw value sent from the token contract itself.

    A heuristic: real Mint events are not consulted, and mints issued from
    the zero address are not counted.
    """
    contract = token.lower()
    return sum(t.raw_value for t in transfers if t.from_address == contract)


def unique_senders(transfers: Iterable[TransferEvent]) -> int:
    return len({t.from_address for t in transfers})


def unique_receivers(transfers: Iterable[TransferEvent]) -> int:
    return len({t.to_address for t in transfers})


def median_raw(values: Iterable[int]) -> int:
    """Element at index n // 2 of the sorted values (upper median), 0 when empty."""
    ordered = sorted(values)
    if not ordered:
        return 0
    return ordered[len(ordered) // 2]


def average_raw(values: Iterable[int]) -> Decimal:
    """Arithmetic mean of raw values, 0 when empty."""
    values = list(values)
    if not values:
        return Decimal(0)
    with localcontext() as ctx:
        ctx.prec = 100
        return Decimal(sum(values)) / Decimal(len(values))


def transfer_velocity(transfers: Iterable[TransferEvent], circulating: int) -> float:
    """Transferred raw volume divided by circulating supply, 0 without supply."""
    if circulating <= 0:
        return 0.0
    volume = sum(t.raw_value for t in transfers)
    return float(Fraction(volume, circulating))


# ─────────────────────────────────────────────────────────────
# Liquidity
# ─────────────────────────────────────────────────────────────


def constant_product_slippage(
    reserve_a: float,
    reserve_b: float,
    trade_size_usd: float,
    price_a: float,
) -> float:
    """
    Price impact (percent) of buying into an x·y=k pool with `trade_size_usd`.

    The trade adds trade_size_usd / price_a units to reserve A; the implied
    A/B price ratio is compared before and after. Returns math.inf when the
    price or either reserve is zero.
    """
    if price_a <= 0 or reserve_a <= 0 or reserve_b <= 0:
        return math.inf
    k = reserve_a * reserve_b
    if k == 0:
        return math.inf
    new_a = reserve_a + trade_size_usd / price_a
    new_b = k / new_a
    return ((new_a / new_b) / (reserve_a / reserve_b) - 1) * 100


def liquidity_depth(
    pairs: Iterable[LiquidityPair],
    trade_sizes: Sequence[float],
) -> list[dict[str, Any]]:
    """
    Per-DEX virtual reserves and slippage at each trade size.

    Reserves of every pair on one DEX are summed into a single virtual
    pool priced at the first pair's USD price. Sorted by USD liquidity,
    largest first.
    """
    groups: dict[str, list[LiquidityPair]] = defaultdict(list)
    for pair in pairs:
        groups[pair.dex_id].append(pair)

    depth = []
    for dex_id, dex_pairs in groups.items():
        base = sum(p.base_reserve for p in dex_pairs)
        quote = sum(p.quote_reserve for p in dex_pairs)
        price = dex_pairs[0].price_usd
        depth.append({
            "dex": dex_id,
            "total_liquidity_usd": sum(p.liquidity_usd for p in dex_pairs),
            "pair_count": len(dex_pairs),
            "base_reserve": base,
            "quote_reserve": quote,
            "price_usd": price,
            "slippage_pct": {
                size: constant_product_slippage(base, quote, size, price)
                for size in trade_sizes
            },
        })

    depth.sort(key=lambda d: (-d["total_liquidity_usd"], d["dex"]))
    return depth


def total_liquidity_usd(pairs: Iterable[LiquidityPair]) -> float:
    return sum(p.liquidity_usd for p in pairs)


def liquidity_concentration(pairs: Sequence[LiquidityPair]) -> dict[str, Any]:
    """Share of USD liquidity in the largest pool; 100% with fewer than two pools."""
    total = total_liquidity_usd(pairs)
    top = max((p.liquidity_usd for p in pairs), default=0.0)
    if len(pairs) < 2:
        concentration = 100.0
    else:
        concentration = (top / total) * 100 if total > 0 else 0.0
    return {
        "concentration_pct": concentration,
        "top_pool_liquidity_usd": top,
        "total_liquidity_usd": total,
        "pool_count": len(pairs),
    }


def blue_chip_ratio(
    pairs: Iterable[LiquidityPair],
    blue_chip_addresses: Iterable[str],
) -> dict[str, float]:
    """Percentage of USD liquidity sitting in pairs quoted in a blue-chip token."""
    blue_chips = {a.lower() for a in blue_chip_addresses}
    total = 0.0
    blue = 0.0
    for pair in pairs:
        total += pair.liquidity_usd
        if pair.quote_token_address in blue_chips:
            blue += pair.liquidity_usd
    return {
        "ratio_pct": (blue / total) * 100 if total > 0 else 0.0,
        "total_liquidity_usd": total,
        "blue_chip_liquidity_usd": blue,
    }


def dex_diversity(pairs: Iterable[LiquidityPair]) -> dict[str, Any]:
    dexes = sorted({p.dex_id for p in pairs})
    return {"score": len(dexes), "dexes": dexes}


def avg_buy_sell_size(pairs: Iterable[LiquidityPair]) -> dict[str, float]:
    """
    Approximate average buy and sell size in USD over 24h.

    The aggregator reports total volume but not volume per side, so volume
    is split by the buy/sell trade-count ratio.
    """
    pairs = list(pairs)
    volume = sum(p.volume_24h_usd for p in pairs)
    buys = sum(p.buy_count_24h for p in pairs)
    sells = sum(p.sell_count_24h for p in pairs)
    trades = buys + sells
    if trades == 0:
        return {"avg_buy_usd": 0.0, "avg_sell_usd": 0.0, "buys": buys, "sells": sells}

    avg_buy = (volume * buys / trades) / buys if buys else 0.0
    avg_sell = (volume * sells / trades) / sells if sells else 0.0
    return {"avg_buy_usd": avg_buy, "avg_sell_usd": avg_sell, "buys": buys, "sells": sells}


def holder_to_liquidity_ratio(holder_count: int, liquidity_usd: float) -> float:
    """Holders per USD of liquidity; math.inf when there is no liquidity."""
    if liquidity_usd <= 0:
        return math.inf
    return holder_count / liquidity_usd


# ─────────────────────────────────────────────────────────────
# Creator / contract provenance
# ─────────────────────────────────────────────────────────────


def find_creator_mint(
    transaction: Any,
    creator: str,
    token: str,
) -> Optional[int]:
    """
    Raw amount minted to `creator` in a creation transaction.

    Looks for a token transfer from the zero address to the creator for
    this token; None when the transaction carries no such transfer.
    """
    if not isinstance(transaction, dict):
        return None
    transfers = transaction.get("token_transfers")
    if not isinstance(transfers, list):
        return None

    creator = creator.lower()
    token = token.lower()
    for item in transfers:
        if not isinstance(item, dict):
            continue
        token_info = item.get("token")
        item_token = lower_or_empty(token_info.get("address")) if isinstance(token_info, dict) else ""
        if (
            address_hash(item.get("from")) == ZERO_ADDRESS
            and address_hash(item.get("to")) == creator
            and item_token == token
        ):
            total = item.get("total")
            raw = parse_int(total.get("value")) if isinstance(total, dict) else None
            return raw or 0
    return None


def find_renounce_transaction(transactions: Iterable[Any]) -> Optional[dict[str, Any]]:
    """First transaction whose method is renounceOwnership (case-insensitive)."""
    for tx in transactions:
        if isinstance(tx, dict) and lower_or_empty(tx.get("method")) == "renounceownership":
            return tx
    return None


def outbound_transactions(
    transactions: Iterable[Any],
    sender: str,
    limit: int,
) -> list[dict[str, Any]]:
    """First `limit` transactions sent by `sender`, in the order given."""
    sender = sender.lower()
    outbound = []
    for tx in transactions:
        if not isinstance(tx, dict):
            continue
        if address_hash(tx.get("from")) != sender:
            continue
        outbound.append({
            "hash": tx.get("hash"),
            "to": address_hash(tx.get("to")) or None,
            "value_raw": tx.get("value"),
            "method": tx.get("method"),
        })
        if len(outbound) >= limit:
            break
    return outbound


def wallet_token_history(
    transfers: Iterable[TransferEvent],
    wallet: str,
    token: str,
) -> list[dict[str, Any]]:
    """A wallet's transfers of one token, tagged IN / OUT with the counterparty."""
    wallet = wallet.lower()
    token = token.lower()
    history = []
    for t in transfers:
        if t.token_address != token:
            continue
        outgoing = t.from_address == wallet
        history.append({
            "timestamp": t.timestamp,
            "direction": "OUT" if outgoing else "IN",
            "counterparty": t.to_address if outgoing else t.from_address,
            "raw_value": t.raw_value,
            "tx_hash": t.tx_hash,
        })
    return history


def contract_age_days(created_at: datetime, now: datetime) -> int:
    """Whole days since creation, rounded up."""
    elapsed = abs((now - created_at).total_seconds())
    return math.ceil(elapsed / 86400)


def abi_function_count(contract: Any) -> int:
    """Number of `function` entries in a verified contract's ABI."""
    abi = contract.get("abi") if isinstance(contract, dict) else None
    if not isinstance(abi, list):
        return 0
    return sum(1 for item in abi if isinstance(item, dict) and item.get("type") == "function")
