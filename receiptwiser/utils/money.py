"""Money arithmetic helpers.

Every helper returns a defined value for edge cases (zero quantity, empty
input, garbage from the extraction service) instead of raising.
"""
import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Iterable

CENT = Decimal("0.01")
# Enough digits to quantize any finite float (up to ~1.8e308) to cents.
QUANTIZE_PRECISION = 400


def apply_percent(base: float, percent: float) -> float:
    """Return ``percent`` percent of ``base``."""
    return base * percent / 100


def round2(value: float) -> float:
    """Round to 2 decimal places, half away from zero.

    Goes through the shortest decimal repr of the float, so ``round2(2.675)``
    is 2.68 rather than the 2.67 the builtin ``round`` gives.
    """
    if value is None or not math.isfinite(value):
        return 0.0
    with localcontext() as ctx:
        ctx.prec = QUANTIZE_PRECISION
        return float(Decimal(repr(float(value))).quantize(CENT, rounding=ROUND_HALF_UP))


def safe_divide(numerator: float, denominator: float, fallback: float = 0.0) -> float:
    """Divide when the denominator is positive, otherwise return ``fallback``."""
    if denominator > 0:
        return numerator / denominator
    return fallback


def sum_amounts(values: Iterable[float]) -> float:
    """Exact decimal sum of currency amounts."""
    total = sum((Decimal(repr(float(v))) for v in values), Decimal("0"))
    return float(total)


def to_decimal(value: float) -> Decimal:
    """Decimal form of a currency amount, rounded to cents."""
    with localcontext() as ctx:
        ctx.prec = QUANTIZE_PRECISION
        return Decimal(repr(round2(value))).quantize(CENT)


def coerce_number(value: Any, default: float) -> float:
    """Best-effort numeric coercion for untrusted input.

    Falsy results (None, "", 0, NaN, unparsable strings) become ``default``.
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = value.strip().replace(",", "").lstrip("$").strip()
        if not cleaned:
            return default
        try:
            number = float(Decimal(cleaned))
        except (InvalidOperation, ValueError):
            return default
    else:
        return default

    if not math.isfinite(number) or number == 0:
        return default
    return number
