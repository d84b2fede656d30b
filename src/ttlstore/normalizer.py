"""TTL coercion: turn whatever a caller passed as ``ttl`` into a NormalizedTTL."""

from __future__ import annotations

import math
import numbers
from decimal import Decimal
from typing import Any

from ttlstore.models import NormalizedTTL

# Integer literal prefixes accepted in numeric strings ("0x1f", "0o17", "0b101").
_RADIX_PREFIXES = {"0x": 16, "0o": 8, "0b": 2}

# Only these exact spellings are infinite; "inf", "nan" and other casings are not numbers.
_INFINITY_STRINGS = {"Infinity": math.inf, "+Infinity": math.inf, "-Infinity": -math.inf}


def normalize_ttl(raw: Any) -> NormalizedTTL:
    """Coerce a raw TTL (milliseconds) into a tagged NormalizedTTL.

    - ``None`` means no expiration.
    - Real numbers (bool included) are used as-is.
    - Strings are parsed as numbers; anything unparseable is NaN.
    - Every other object is NaN.
    - NaN means no expiration; negative values mean "do not store".

    Never raises.
    """
    if raw is None:
        return NormalizedTTL.no_expiry()

    number = coerce_number(raw)
    if math.isnan(number):
        return NormalizedTTL.no_expiry()
    if number < 0:
        return NormalizedTTL.negative()
    # -0.0 compares equal to 0 and lands here; store it as a plain zero.
    return NormalizedTTL.duration(abs(number))


def coerce_number(raw: Any) -> float:
    """Numeric coercion with NaN for anything that is not a number."""
    if isinstance(raw, (numbers.Real, Decimal)):
        try:
            return float(raw)
        except OverflowError:
            return math.inf if raw > 0 else -math.inf
        except ValueError:  # signalling Decimal NaN
            return math.nan
    if isinstance(raw, str):
        return _parse_numeric_string(raw)
    return math.nan


def _parse_numeric_string(text: str) -> float:
    s = text.strip()
    if not s:
        return 0.0
    # Python-only literal syntax that is not a number anywhere else.
    if "_" in s:
        return math.nan

    if s in _INFINITY_STRINGS:
        return _INFINITY_STRINGS[s]

    lowered = s.lower()
    # float() would accept these in any case and sign.
    if "inf" in lowered or "nan" in lowered:
        return math.nan

    base = _RADIX_PREFIXES.get(lowered[:2])
    if base is not None:
        try:
            return float(int(s[2:], base))
        except (ValueError, OverflowError):
            return math.nan

    try:
        return float(s)
    except ValueError:
        return math.nan
