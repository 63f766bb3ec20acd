"""
Display formatting and JSON-safe serialization for stat values.

Raw on-chain integers are only turned into Decimal/float here, after all
comparisons have been made on the integers themselves.
"""

import math
from dataclasses import asdict, is_dataclass
from datetime import datetime
from decimal import Decimal, localcontext
from enum import Enum
from typing import Any, Optional


INFINITY_SENTINEL = "Infinity"
NEGATIVE_INFINITY_SENTINEL = "-Infinity"
NAN_SENTINEL = "NaN"

# Largest integer a JSON consumer using IEEE doubles represents exactly
MAX_SAFE_INTEGER = 2 ** 53 - 1


def to_units(raw: int, decimals: int) -> Decimal:
    """Convert a raw on-chain integer to token units."""
    if decimals <= 0:
        return Decimal(raw)
    with localcontext() as ctx:
        ctx.prec = 100
        return Decimal(raw).scaleb(-decimals)


def format_number(value: Any, max_decimals: int = 2) -> str:
    """Thousands separators, at most `max_decimals` fraction digits."""
    if value is None:
        return "N/A"
    try:
        number = Decimal(str(value))
    except ArithmeticError:
        return "N/A"
    if number.is_nan():
        return "N/A"
    if number.is_infinite():
        return "∞" if number > 0 else "-∞"
    with localcontext() as ctx:
        ctx.prec = 100
        rounded = number.quantize(Decimal(1).scaleb(-max_decimals))
    text = f"{rounded:,.{max_decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_pct(value: Optional[float], decimals: int = 2) -> str:
    """Percentage with fixed decimals; infinite values keep their sign."""
    if value is None:
        return "N/A"
    if math.isinf(value):
        return "∞%" if value > 0 else "-∞%"
    if math.isnan(value):
        return "N/A"
    return f"{value:.{decimals}f}%"


def format_token_amount(raw: int, decimals: int) -> str:
    """Raw integer → human token amount string."""
    return format_number(to_units(raw, decimals))


def format_currency(value: Optional[float], decimals: int = 2) -> str:
    if value is None:
        return "N/A"
    return f"${format_number(value, decimals)}"


def shorten_address(address: Optional[str]) -> str:
    if not address:
        return "N/A"
    return f"{address[:6]}...{address[-4:]}"


def to_json_safe(value: Any) -> Any:
    """
    Recursively convert a stat value into JSON-safe primitives.

    - inf / -inf / nan → string sentinels
    - Decimal → str
    - int beyond 2^53 → str (raw balances stay exact)
    - datetime → ISO 8601
    - dataclasses → dicts
    """
    if isinstance(value, bool) or value is None or isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value) if abs(value) > MAX_SAFE_INTEGER else value
    if isinstance(value, float):
        if math.isnan(value):
            return NAN_SENTINEL
        if math.isinf(value):
            return INFINITY_SENTINEL if value > 0 else NEGATIVE_INFINITY_SENTINEL
        return value
    if isinstance(value, Decimal):
        if value.is_nan():
            return NAN_SENTINEL
        if value.is_infinite():
            return INFINITY_SENTINEL if value > 0 else NEGATIVE_INFINITY_SENTINEL
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return to_json_safe(asdict(value))
    if isinstance(value, dict):
        return {str(k): to_json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json_safe(v) for v in value]
    return str(value)
