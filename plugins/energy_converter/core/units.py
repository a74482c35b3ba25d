"""Unit definitions and physical constants for the energy converter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

# CODATA 2022 literals. The Hartree is the canonical unit of account.
HARTREE_J = 4.359744722206e-18
ELECTRONVOLT_J = 1.602176634e-19
AVOGADRO = 6.022_140_76e23
J_PER_KCAL = 4184.0
EV_PER_HARTREE = 27.211386245981
WAVENUMBER_PER_HARTREE = 219474.63136314  # cm^-1
KELVIN_PER_HARTREE = 315775.02480398
HZ_PER_HARTREE = 6.5796839204999e15

NM_CM1_PRODUCT = 1e7  # wavelength_nm * wavenumber_cm-1


@dataclass(frozen=True, slots=True)
class UnitDefinition:
    """Metadata describing a unit exposed to the rendering layer."""

    unit: str
    label: str
    symbol: str
    per_hartree: Optional[float]

    @property
    def linear(self) -> bool:
        return self.per_hartree is not None


# Order is load-bearing: it is the priority used whenever a "first unit
# holding a value" must be chosen.
UNIT_DEFINITIONS: Tuple[UnitDefinition, ...] = (
    UnitDefinition("hartree", "Hartree", "Eh", 1.0),
    UnitDefinition("ev", "Electronvolt", "eV", EV_PER_HARTREE),
    UnitDefinition("kcal_per_mol", "Kilocalorie per mole", "kcal/mol", HARTREE_J * AVOGADRO / J_PER_KCAL),
    UnitDefinition("kj_per_mol", "Kilojoule per mole", "kJ/mol", HARTREE_J * AVOGADRO / 1000.0),
    UnitDefinition("cm-1", "Wavenumber", "cm⁻¹", WAVENUMBER_PER_HARTREE),
    UnitDefinition("kelvin", "Temperature equivalent", "K", KELVIN_PER_HARTREE),
    UnitDefinition("mhz", "Frequency", "MHz", HZ_PER_HARTREE / 1e6),
    UnitDefinition("nm", "Wavelength", "nm", None),
)

UNITS: Dict[str, UnitDefinition] = {definition.unit: definition for definition in UNIT_DEFINITIONS}
UNIT_PRIORITY: Tuple[str, ...] = tuple(definition.unit for definition in UNIT_DEFINITIONS)
CANONICAL_UNIT = "hartree"

_ALIASES: Dict[str, str] = {
    "eh": "hartree",
    "ha": "hartree",
    "electronvolt": "ev",
    "kcal/mol": "kcal_per_mol",
    "kj/mol": "kj_per_mol",
    "cm^-1": "cm-1",
    "cm⁻¹": "cm-1",
    "wavenumber": "cm-1",
    "k": "kelvin",
    "megahertz": "mhz",
    "wavelength": "nm",
    "nanometer": "nm",
}


def is_linear(unit: str) -> bool:
    return UNITS[unit].linear


def normalize_unit(unit: str) -> Optional[str]:
    """Return the canonical identifier for ``unit`` or ``None`` when unknown."""

    if not isinstance(unit, str):
        return None
    text = unit.strip()
    if text in UNITS:
        return text
    lowered = text.lower()
    if lowered in UNITS:
        return lowered
    return _ALIASES.get(lowered)


__all__ = [
    "UnitDefinition",
    "UNIT_DEFINITIONS",
    "UNITS",
    "UNIT_PRIORITY",
    "CANONICAL_UNIT",
    "HARTREE_J",
    "ELECTRONVOLT_J",
    "AVOGADRO",
    "J_PER_KCAL",
    "EV_PER_HARTREE",
    "WAVENUMBER_PER_HARTREE",
    "KELVIN_PER_HARTREE",
    "HZ_PER_HARTREE",
    "NM_CM1_PRODUCT",
    "is_linear",
    "normalize_unit",
]
