"""Number predicates, half-up rounding, and canonical number-to-text rendering.

The fingerprint payload is recomputed independently by the capture,
certification and verification sides, so rounding and text rendering must
agree bit-for-bit across implementations.  Arithmetic follows IEEE doubles:

* Rounding is *half-up* (``2.5 -> 3``, ``-2.5 -> -2``), never Python's
  built-in banker's rounding.  Non-finite values pass through unchanged.
* Numbers render as the shortest round-trip decimal of their double value;
  integral values carry no fractional part, fixed notation is used for
  ``1e-6 <= |x| < 1e21`` and a compact exponent (``1e-7``, ``1e+21``)
  outside that range.  Non-finite values render as ``NaN``, ``Infinity``
  and ``-Infinity``.
"""

from __future__ import annotations

import math
from decimal import Decimal

_FIXED_MIN = 1e-6
_FIXED_MAX = 1e21
_MAX_SAFE_INT = 2 ** 53


def is_number(value: object) -> bool:
    """Return ``True`` for finite ``int`` / ``float`` values (``bool`` excluded)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    return False


def to_double(value: int | float) -> float:
    """``float(value)``, saturating to ``±inf`` for ints beyond double range."""
    try:
        return float(value)
    except OverflowError:
        return math.inf if value > 0 else -math.inf


def exact_or_double(value: int | float) -> int | float:
    """Keep ints inside ``±2**53`` exact; larger ints become their nearest double."""
    if isinstance(value, int) and abs(value) >= _MAX_SAFE_INT:
        return to_double(value)
    return value


def round_half_up(value: int | float) -> int | float:
    """Round *value* to the nearest integer, ties toward positive infinity.

    Uses ``value - floor(value)`` (exact for doubles) instead of
    ``floor(value + 0.5)`` so values just below ``.5`` never round up.
    ``nan`` and ``±inf`` are returned as-is.
    """
    if isinstance(value, float) and not math.isfinite(value):
        return value
    floor = math.floor(value)
    return floor + 1 if value - floor >= 0.5 else floor


def round_to(value: int | float, decimals: int) -> float:
    """Round *value* half-up to *decimals* places.

    Computed as ``round_half_up(value * 10**decimals) / 10**decimals`` on
    doubles so the result matches other implementations of the formula.
    """
    scale = 10 ** decimals
    return round_half_up(to_double(value) * scale) / scale


def format_number(value: int | float) -> str:
    """Render *value* in canonical decimal text.

    Args:
        value: An int or float.  Ints outside ``±2**53`` are rendered via
            their nearest double.

    Returns:
        ``"3"`` for ``3`` and ``3.0``, ``"0.667"`` for ``0.667``,
        ``"0.00001"`` for ``1e-05``, ``"1e-7"`` for ``1e-07``,
        ``"1152921504606847000"`` for ``2**60``, ``"Infinity"`` for ``inf``.

    Raises:
        ValueError: If *value* is not an int or float.
    """
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValueError(f"Cannot render non-numeric value {value!r}")

    value = exact_or_double(value)
    if isinstance(value, int):
        return str(value)

    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    if _FIXED_MIN <= abs(value) < _FIXED_MAX:
        return format(Decimal(repr(value)).normalize(), "f")

    # repr() always uses an exponent outside [1e-4, 1e16).
    mantissa, _, exponent = repr(value).partition("e")
    if mantissa.endswith(".0"):
        mantissa = mantissa[:-2]
    sign = "-" if exponent.startswith("-") else "+"
    digits = exponent.lstrip("+-").lstrip("0") or "0"
    return f"{mantissa}e{sign}{digits}"
