"""Significant-digit aware number formatting and input parsing."""

from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Optional

from .conversion import BadInputError

MIN_PRECISION = 1
MAX_PRECISION = 30
DEFAULT_PRECISION = 11

DISPLAY_EMPTY = "—"
EDIT_EMPTY = ""

# Rounded magnitudes with a decimal exponent inside [FIXED_MIN_EXPONENT, FIXED_MAX_EXPONENT)
# render in positional notation, i.e. the band [1e-6, 1e8).
FIXED_MIN_EXPONENT = -6
FIXED_MAX_EXPONENT = 8

_NUMBER_PATTERN = re.compile(r"^[+-]?(?:(\d+)(?:\.(\d*))?|\.(\d+))(?:[eE][+-]?\d+)?$")


def _check_precision(precision: int) -> int:
    if isinstance(precision, bool) or not isinstance(precision, int):
        raise BadInputError("Precision must be an integer.")
    if precision < MIN_PRECISION:
        raise BadInputError("Precision must be at least one significant digit.")
    return precision


def _strip_zeros(text: str) -> str:
    if "." not in text:
        return text
    return text.rstrip("0").rstrip(".")


def _round_significant(value: float, precision: int) -> Decimal:
    """Round half-up on the shortest decimal form of ``value``."""

    decimal_value = Decimal(repr(value))
    digits = precision - 1 - decimal_value.adjusted()
    with localcontext() as ctx:
        ctx.rounding = ROUND_HALF_UP
        ctx.prec = precision + 20
        return decimal_value.quantize(Decimal(1).scaleb(-digits))


def _format_fixed(rounded: Decimal) -> str:
    return _strip_zeros(format(rounded, "f"))


def _format_exponential(rounded: Decimal, precision: int) -> str:
    sign, digits, _ = rounded.as_tuple()
    # A carry (9.99 -> 10.0) leaves one extra trailing zero in the coefficient.
    mantissa = "".join(str(digit) for digit in digits[:precision]).ljust(precision, "0")
    if precision > 1:
        mantissa = f"{mantissa[0]}.{mantissa[1:]}"
    return f"{'-' if sign else ''}{mantissa}e{rounded.adjusted():+03d}"


def format_number(value: float, precision: int, *, empty: str = DISPLAY_EMPTY) -> str:
    """Render ``value`` with ``precision`` significant digits.

    Non-finite values render as ``empty``. The notation is chosen from the
    rounded value: magnitudes outside the fixed band switch to exponential
    notation, which keeps its trailing zeros.
    """

    precision = _check_precision(precision)
    if value is None or not math.isfinite(value):
        return empty
    if value == 0:
        return "0"
    rounded = _round_significant(value, precision)
    if not FIXED_MIN_EXPONENT <= rounded.adjusted() < FIXED_MAX_EXPONENT:
        return _format_exponential(rounded, precision)
    return _format_fixed(rounded)


def format_display(value: Optional[float], precision: int) -> str:
    return format_number(value, precision, empty=DISPLAY_EMPTY)


def format_edit(value: Optional[float], precision: int) -> str:
    """Locale independent text suitable for an editable field."""

    return format_number(value, precision, empty=EDIT_EMPTY)


def parse_number(text: str | None) -> Optional[float]:
    """Parse a user typed decimal number, returning ``None`` when it is not one."""

    if text is None:
        return None
    candidate = str(text).strip()
    if not candidate:
        return None
    if not _NUMBER_PATTERN.match(candidate):
        return None
    value = float(candidate)
    if not math.isfinite(value):
        return None
    return value


def count_significant_digits(text: str | None) -> int:
    """Count the significant digits carried by a typed numeral.

    Leading zeros never count, every other mantissa digit does, and a value
    made only of zeros counts as one digit. Empty or malformed text yields 0.
    """

    if text is None:
        return 0
    match = _NUMBER_PATTERN.match(str(text).strip())
    if not match:
        return 0
    integer, fraction, bare_fraction = match.groups()
    digits = (integer or "") + (fraction or "") + (bare_fraction or "")
    significant = digits.lstrip("0")
    if not significant:
        return 1
    return len(significant)


def clamp_precision(value: float | int) -> int:
    if isinstance(value, float) and not math.isfinite(value):
        raise BadInputError("Precision must be a finite number.")
    rounded = int(Decimal(str(value)).to_integral_value(rounding=ROUND_HALF_UP))
    return max(MIN_PRECISION, min(MAX_PRECISION, rounded))


__all__ = [
    "MIN_PRECISION",
    "MAX_PRECISION",
    "DEFAULT_PRECISION",
    "DISPLAY_EMPTY",
    "EDIT_EMPTY",
    "format_number",
    "format_display",
    "format_edit",
    "parse_number",
    "count_significant_digits",
    "clamp_precision",
]
