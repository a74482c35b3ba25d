"""Facade for the energy converter core utilities."""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Dict, List, Optional

from .controller import ControllerState, EnergyController, FieldUpdate, SIDES
from .conversion import (
    BadInputError,
    ConversionError,
    DisabledFieldError,
    EnergyConverter,
    InvalidUnitError,
)
from .formatting import (
    DEFAULT_PRECISION,
    MAX_PRECISION,
    MIN_PRECISION,
    clamp_precision,
    count_significant_digits,
    format_display,
    format_edit,
    parse_number,
)
from .units import CANONICAL_UNIT, UNIT_PRIORITY


@lru_cache(maxsize=1)
def _converter() -> EnergyConverter:
    return EnergyConverter()


def list_units() -> List[Dict[str, object]]:
    """Return metadata for every supported unit in priority order."""

    return _converter().list_units()


def to_canonical(value: float, unit: str) -> float:
    return _converter().to_canonical(value, unit)


def from_canonical(hartree: float) -> Dict[str, float]:
    return _converter().from_canonical(hartree)


def convert_all(
    value: float | str,
    unit: str,
    *,
    precision: Optional[int] = None,
) -> Dict[str, object]:
    """Convert ``value`` in ``unit`` to every unit and format the results.

    When ``value`` is text its significant digits raise ``precision`` the same
    way a typed edit does.
    """

    if precision is None:
        precision = DEFAULT_PRECISION
    precision = clamp_precision(precision)
    if isinstance(value, str):
        numeric = parse_number(value)
        if numeric is None:
            raise BadInputError("Value is not a valid number.")
        precision = max(precision, min(count_significant_digits(value), MAX_PRECISION))
    else:
        numeric = float(value)
    hartree = to_canonical(numeric, unit)
    values = from_canonical(hartree)
    return {
        "hartree": hartree if math.isfinite(hartree) else None,
        "precision": precision,
        "values": {key: (item if math.isfinite(item) else None) for key, item in values.items()},
        "formatted": {key: format_edit(item, precision) for key, item in values.items()},
        "display": {key: format_display(item, precision) for key, item in values.items()},
    }


__all__ = [
    "BadInputError",
    "CANONICAL_UNIT",
    "ConversionError",
    "ControllerState",
    "DEFAULT_PRECISION",
    "DisabledFieldError",
    "EnergyController",
    "EnergyConverter",
    "FieldUpdate",
    "InvalidUnitError",
    "MAX_PRECISION",
    "MIN_PRECISION",
    "SIDES",
    "UNIT_PRIORITY",
    "clamp_precision",
    "convert_all",
    "count_significant_digits",
    "format_display",
    "format_edit",
    "from_canonical",
    "list_units",
    "parse_number",
    "to_canonical",
]
