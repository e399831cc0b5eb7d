"""Best-effort numeric normalization for SRC-20 wire values.

SRC-20 records carry amounts as decimal strings on input and as IEEE-754
doubles on the wire.  :func:`normalize_number` performs that conversion the
way a JavaScript ``parseFloat`` would: values above 2**53 silently lose
precision.  The loss is part of the wire format and is reported through the
diagnostics channel rather than corrected.

:func:`format_js_number` renders numbers exactly like ECMAScript
``Number.prototype.toString`` so that serialized JSON matches other
implementations byte for byte.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any

from .diagnostics import PRECISION_LOSS, Diagnostics, emit

UINT64_MAX = 2**64 - 1
MAX_SAFE_INTEGER = 2**53 - 1
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

_DECIMAL_RE = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")
_INTEGER_RE = re.compile(r"^\s*[+-]?\d+\s*$")


def parse_decimal(value: Any) -> Decimal | None:
    """Parse *value* as an exact decimal, or return ``None``."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return Decimal(repr(value))
    if isinstance(value, str) and _DECIMAL_RE.match(value):
        try:
            return Decimal(value.strip())
        except InvalidOperation:  # pragma: no cover - regex guards the input
            return None
    return None


def parse_integer(value: Any) -> int | None:
    """Parse an integer string, an integral number, or an ``int``."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _INTEGER_RE.match(value):
        return int(value.strip())
    return None


def is_integral(value: Decimal) -> bool:
    return value == value.to_integral_value()


def canonical_number(value: int | float, diagnostics: Diagnostics | None = None) -> int | float:
    """Return the canonical Python form of a wire number.

    Integral doubles below 1e21 become ``int`` using the shortest round-trip
    digits (``2**64 - 1`` becomes ``18446744073709552000``); everything else
    stays a ``float``.
    """

    if isinstance(value, bool):
        raise TypeError("booleans are not numbers on the wire")
    if isinstance(value, int):
        if abs(value) <= MAX_SAFE_INTEGER:
            return value
        value = float(value)
    if not math.isfinite(value) or not value.is_integer() or abs(value) >= 1e21:
        return value
    result = int(Decimal(repr(value)))
    if abs(result) > MAX_SAFE_INTEGER:
        emit(
            diagnostics,
            PRECISION_LOSS,
            "value exceeds 2**53 and is stored with double precision",
            value=result,
        )
    return result


def normalize_number(value: Any, diagnostics: Diagnostics | None = None) -> int | float:
    """Convert a decimal string or number to its wire number, clamped to >= 0.

    Precision above 2**53 is lost, matching the double used on the wire.
    """

    parsed = parse_decimal(value)
    if parsed is None:
        raise ValueError(f"not a decimal number: {value!r}")
    if isinstance(value, int) and 0 <= value <= MAX_SAFE_INTEGER:
        return value
    return canonical_number(max(0.0, float(parsed)), diagnostics)


def format_js_number(value: int | float) -> str:
    """Render *value* the way ECMAScript ``Number#toString`` does."""

    if isinstance(value, bool):
        raise TypeError("booleans are not numbers")
    if isinstance(value, int):
        if abs(value) < 10**21:
            return str(value)
        value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    parts = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(str(d) for d in parts.digits)
    k = len(digits)
    n = parts.exponent + k

    if k <= n <= 21:
        body = digits + "0" * (n - k)
    elif 0 < n <= 21:
        body = f"{digits[:n]}.{digits[n:]}"
    elif -6 < n <= 0:
        body = "0." + "0" * (-n) + digits
    else:
        exponent = n - 1
        suffix = f"e{'+' if exponent >= 0 else '-'}{abs(exponent)}"
        body = digits + suffix if k == 1 else f"{digits[0]}.{digits[1:]}{suffix}"
    return sign + body


def to_wire_number(value: int | float) -> int | float:
    """Map a canonical number to the type msgpack-lite would emit.

    Integers inside the int32 range are packed as integers; every other
    value is packed as a float64.
    """

    if isinstance(value, int) and INT32_MIN <= value <= INT32_MAX:
        return value
    return float(value)
