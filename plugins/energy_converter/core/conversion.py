"""Conversion engine anchored on the Hartree as canonical energy unit."""

from __future__ import annotations

import math
from typing import Dict, List

from .units import (
    NM_CM1_PRODUCT,
    UNIT_DEFINITIONS,
    UNIT_PRIORITY,
    UNITS,
    WAVENUMBER_PER_HARTREE,
    normalize_unit,
)


class ConversionError(Exception):
    """Base exception for conversion failures."""


class InvalidUnitError(ConversionError):
    """Raised when a unit identifier is not part of the supported set."""


class BadInputError(ConversionError):
    """Raised when user supplied values cannot be normalised."""


class DisabledFieldError(ConversionError):
    """Raised when an edit targets a field that is not editable in the active mode."""


def _wavelength_to_hartree(nm: float) -> float:
    if math.isnan(nm) or nm < 0:
        return math.nan
    if nm == 0:
        return math.inf
    return (NM_CM1_PRODUCT / nm) / WAVENUMBER_PER_HARTREE


def _hartree_to_wavelength(hartree: float) -> float:
    if not math.isfinite(hartree) or hartree < 0:
        return math.nan
    if hartree == 0:
        return math.inf
    return NM_CM1_PRODUCT / (hartree * WAVENUMBER_PER_HARTREE)


class EnergyConverter:
    """Pure conversion API shared by the controller, the blueprint and the CLI.

    Instances carry no mutable state so a single cached instance can be
    shared between threads.
    """

    # ---- Listing helpers -------------------------------------------------
    def list_units(self) -> List[Dict[str, object]]:
        return [
            {
                "unit": definition.unit,
                "label": definition.label,
                "symbol": definition.symbol,
                "linear": definition.linear,
                "per_hartree": definition.per_hartree,
            }
            for definition in UNIT_DEFINITIONS
        ]

    def per_hartree(self, unit: str) -> float:
        definition = UNITS[self._resolve(unit)]
        if definition.per_hartree is None:
            raise ConversionError(f"Unit '{definition.unit}' has no linear relation to the Hartree.")
        return definition.per_hartree

    # ---- Conversion helpers ----------------------------------------------
    def to_canonical(self, value: float, unit: str) -> float:
        """Return ``value`` expressed in ``unit`` as Hartree.

        Non-finite results (wavelength of zero or below) are returned as is;
        callers treat them as "no value".
        """

        definition = UNITS[self._resolve(unit)]
        value = float(value)
        if definition.per_hartree is None:
            return _wavelength_to_hartree(value)
        return value / definition.per_hartree

    def from_canonical(self, hartree: float) -> Dict[str, float]:
        """Express ``hartree`` in every supported unit, in priority order."""

        hartree = float(hartree)
        result: Dict[str, float] = {}
        for unit in UNIT_PRIORITY:
            factor = UNITS[unit].per_hartree
            if factor is None:
                result[unit] = _hartree_to_wavelength(hartree)
            else:
                result[unit] = hartree * factor
        return result

    def convert(self, value: float, from_unit: str, to_unit: str) -> float:
        target = self._resolve(to_unit)
        return self.from_canonical(self.to_canonical(value, from_unit))[target]

    # ---- Internal utilities ----------------------------------------------
    def _resolve(self, unit: str) -> str:
        resolved = normalize_unit(unit)
        if resolved is None:
            raise InvalidUnitError(f"Unknown energy unit '{unit}'.")
        return resolved


__all__ = [
    "EnergyConverter",
    "ConversionError",
    "InvalidUnitError",
    "BadInputError",
    "DisabledFieldError",
]
