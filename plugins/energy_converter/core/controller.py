"""Field synchronization for the single and pair (difference) views.

The controller owns the canonical Hartree value(s), the precision setting and
a table holding the text of every editable field. Each operation stages a
complete new table, commits it, and only then notifies listeners about the
fields whose text changed, so listeners never observe a half-updated table.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Literal, Optional, Tuple

from common.logging import get_logger

from .conversion import BadInputError, DisabledFieldError, EnergyConverter, InvalidUnitError
from .formatting import (
    DEFAULT_PRECISION,
    DISPLAY_EMPTY,
    EDIT_EMPTY,
    MAX_PRECISION,
    MIN_PRECISION,
    clamp_precision,
    count_significant_digits,
    format_display,
    format_edit,
    parse_number,
)
from .units import CANONICAL_UNIT, UNIT_PRIORITY, is_linear, normalize_unit

Mode = Literal["single", "pair"]
Side = Literal["single", "A", "B", "D"]
UpdatePhase = Literal["idle", "emitting"]

SIDES: Tuple[str, ...] = ("single", "A", "B", "D")
_EDITABLE_SIDES: Dict[str, Tuple[str, ...]] = {"single": ("single",), "pair": ("A", "B")}

FieldTable = Dict[str, Dict[str, str]]

logger = get_logger("energy_converter.controller")


@dataclass(frozen=True, slots=True)
class FieldUpdate:
    """Change notification for one field of the rendering layer."""

    side: str
    unit: str
    text: str


Listener = Callable[[FieldUpdate], None]


def _empty_table() -> FieldTable:
    return {side: {unit: EDIT_EMPTY for unit in UNIT_PRIORITY} for side in SIDES}


@dataclass
class ControllerState:
    """Everything the controller knows; owned by exactly one controller."""

    mode: Mode = "single"
    precision: int = DEFAULT_PRECISION
    single: Optional[float] = None
    a: Optional[float] = None
    b: Optional[float] = None
    fields: FieldTable = field(default_factory=_empty_table)
    # Field left untouched by the last refresh because the user is typing in it.
    active: Optional[Tuple[str, str]] = None
    phase: UpdatePhase = "idle"

    @property
    def difference(self) -> Optional[float]:
        if self.a is None or self.b is None:
            return None
        return self.a - self.b


class EnergyController:
    """Propagates edits of any one field to every other field."""

    def __init__(
        self,
        *,
        precision: int = DEFAULT_PRECISION,
        seed: Optional[float] = 1.0,
        converter: EnergyConverter | None = None,
    ) -> None:
        self.converter = converter or EnergyConverter()
        self.state = ControllerState(precision=clamp_precision(precision), single=seed)
        self._listeners: List[Listener] = []
        self.state.fields = self._render(self.state, skip=None)

    # ---- Observers -------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for field updates; returns an unsubscribe hook."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ---- Read access -----------------------------------------------------
    @property
    def mode(self) -> Mode:
        return self.state.mode

    @property
    def precision(self) -> int:
        return self.state.precision

    def canonical_value(self, side: str = "single") -> Optional[float]:
        side = self._check_side(side)
        if side == "single":
            return self.state.single
        if side == "A":
            return self.state.a
        if side == "B":
            return self.state.b
        return self.state.difference

    def get_field_text(self, unit: str, side: str = "single") -> str:
        """Return the editable text currently held by a field."""

        return self.state.fields[self._check_side(side)][self._check_unit(unit)]

    def get_display_value(self, unit: str, side: str = "single") -> str:
        """Return the human readable rendering of a field."""

        unit = self._check_unit(unit)
        side = self._check_side(side)
        text = self.state.fields[side][unit]
        if not text.strip():
            return DISPLAY_EMPTY
        if (side, unit) == self.state.active:
            return text
        value = self.canonical_value(side)
        if value is None:
            return DISPLAY_EMPTY
        return format_display(self.converter.from_canonical(value)[unit], self.state.precision)

    def get_copy_text(self, unit: str) -> str:
        """Return the text eligible for the clipboard: the single value or D."""

        side = "single" if self.state.mode == "single" else "D"
        return self.get_field_text(unit, side)

    def is_editable(self, unit: str, side: str) -> bool:
        unit = self._check_unit(unit)
        side = self._check_side(side)
        if side not in _EDITABLE_SIDES[self.state.mode]:
            return False
        return self.state.mode == "single" or is_linear(unit)

    def snapshot(self) -> Dict[str, object]:
        state = self.state
        return {
            "mode": state.mode,
            "precision": state.precision,
            "precision_range": [MIN_PRECISION, MAX_PRECISION],
            "canonical": {side: _jsonable(self.canonical_value(side)) for side in SIDES},
            "fields": {side: dict(state.fields[side]) for side in SIDES},
            "display": {
                side: {unit: self.get_display_value(unit, side) for unit in UNIT_PRIORITY}
                for side in SIDES
            },
            "editable": {
                side: {unit: self.is_editable(unit, side) for unit in UNIT_PRIORITY}
                for side in SIDES
            },
        }

    # ---- Input events ----------------------------------------------------
    def on_field_edit(self, unit: str, raw_text: str | None, side: str = "single") -> List[FieldUpdate]:
        """Handle the user typing ``raw_text`` into the field ``(side, unit)``."""

        if self.state.phase == "emitting":
            logger.debug("dropping re-entrant edit of %s/%s", side, unit)
            return []
        unit = self._check_unit(unit)
        side = self._check_side(side)
        if not self.is_editable(unit, side):
            raise DisabledFieldError(f"Field {side}/{unit} is not editable in {self.state.mode} mode.")

        text = "" if raw_text is None else str(raw_text)
        staged = self._stage()
        staged.active = (side, unit)

        if not text.strip():
            self._assign(staged, side, None)
            staged.fields = self._render(staged, skip=staged.active)
            staged.fields[side][unit] = text
            return self._commit(staged)

        value = parse_number(text)
        if value is None:
            logger.debug("ignoring unparseable input %r for %s/%s", text, side, unit)
            return []

        digits = count_significant_digits(text)
        if digits > staged.precision:
            staged.precision = min(digits, MAX_PRECISION)

        self._assign(staged, side, self.converter.to_canonical(value, unit))
        held: List[Tuple[str, str]] = [(side, unit)]
        if side in ("A", "B"):
            other = "B" if side == "A" else "A"
            other_value = parse_number(staged.fields[other][unit])
            if other_value is not None:
                # The sibling text at the same unit is ground truth for the other side.
                self._assign(staged, other, self.converter.to_canonical(other_value, unit))
                held.append((other, unit))

        kept = {key: staged.fields[key[0]][key[1]] for key in held}
        staged.fields = self._render(staged, skip=None)
        for (held_side, held_unit), held_text in kept.items():
            staged.fields[held_side][held_unit] = held_text
        staged.fields[side][unit] = text
        return self._commit(staged)

    def on_precision_edit(self, raw_text: str | None) -> List[FieldUpdate]:
        """Apply a precision typed by the user; unparseable text is ignored."""

        value = parse_number(raw_text)
        if value is None:
            logger.debug("ignoring unparseable precision %r", raw_text)
            return []
        return self._apply_precision(clamp_precision(value))

    def on_precision_step(self, step: int) -> List[FieldUpdate]:
        if step not in (-1, 1):
            raise ValueError("Precision step must be +1 or -1.")
        return self._apply_precision(clamp_precision(self.state.precision + step))

    def on_mode_toggle(self) -> List[FieldUpdate]:
        if self.state.phase == "emitting":
            logger.debug("dropping re-entrant mode toggle")
            return []
        staged = self._stage()
        staged.active = None
        if staged.mode == "single":
            restored = (
                staged.single is not None
                and staged.difference is not None
                and staged.difference == staged.single
            )
            if not restored:
                staged.a = staged.single if staged.single is not None else 0.0
                staged.b = 0.0
            staged.mode = "pair"
        else:
            staged.single = staged.difference
            staged.mode = "single"
        staged.fields = self._render(staged, skip=None)
        return self._commit(staged)

    # ---- Internal utilities ----------------------------------------------
    def _apply_precision(self, precision: int) -> List[FieldUpdate]:
        if self.state.phase == "emitting":
            return []
        staged = self._stage()
        staged.precision = precision
        staged.active = None
        for side in _EDITABLE_SIDES[staged.mode]:
            if self._side_value(staged, side) is None:
                self._assign(staged, side, self._resource(staged, side))
        staged.fields = self._render(staged, skip=None)
        return self._commit(staged)

    def _resource(self, state: ControllerState, side: str) -> float:
        """Recover a canonical value from the first field holding a number."""

        for unit in UNIT_PRIORITY:
            value = parse_number(state.fields[side][unit])
            if value is not None:
                return self.converter.to_canonical(value, unit)
        return self.converter.to_canonical(1.0, CANONICAL_UNIT)

    def _stage(self) -> ControllerState:
        current = self.state
        return ControllerState(
            mode=current.mode,
            precision=current.precision,
            single=current.single,
            a=current.a,
            b=current.b,
            fields={side: dict(values) for side, values in current.fields.items()},
            active=current.active,
        )

    def _render(self, state: ControllerState, *, skip: Optional[Tuple[str, str]]) -> FieldTable:
        table = _empty_table()
        sides = ("single",) if state.mode == "single" else ("A", "B", "D")
        for side in sides:
            value = self._side_value(state, side)
            if value is None:
                continue
            converted = self.converter.from_canonical(value)
            for unit in UNIT_PRIORITY:
                if side in ("A", "B") and not is_linear(unit):
                    continue
                table[side][unit] = format_edit(converted[unit], state.precision)
        if skip is not None:
            table[skip[0]][skip[1]] = state.fields[skip[0]][skip[1]]
        return table

    def _commit(self, staged: ControllerState) -> List[FieldUpdate]:
        previous = self.state.fields
        updates = [
            FieldUpdate(side, unit, text)
            for side in SIDES
            for unit, text in staged.fields[side].items()
            if previous[side][unit] != text
        ]
        staged.phase = "emitting"
        self.state = staged
        try:
            for update in updates:
                for listener in list(self._listeners):
                    listener(update)
        finally:
            self.state.phase = "idle"
        return updates

    @staticmethod
    def _side_value(state: ControllerState, side: str) -> Optional[float]:
        if side == "single":
            return state.single
        if side == "A":
            return state.a
        if side == "B":
            return state.b
        return state.difference

    @staticmethod
    def _assign(state: ControllerState, side: str, value: Optional[float]) -> None:
        if side == "single":
            state.single = value
        elif side == "A":
            state.a = value
        elif side == "B":
            state.b = value
        else:  # pragma: no cover - guarded by is_editable
            raise DisabledFieldError("The difference is derived and cannot be assigned.")

    @staticmethod
    def _check_unit(unit: str) -> str:
        resolved = normalize_unit(unit)
        if resolved is None:
            raise InvalidUnitError(f"Unknown energy unit '{unit}'.")
        return resolved

    @staticmethod
    def _check_side(side: str) -> str:
        if side not in SIDES:
            raise BadInputError(f"Unknown side '{side}'; expected one of {', '.join(SIDES)}.")
        return side


def _jsonable(value: Optional[float]) -> Optional[float]:
    if value is None or not math.isfinite(value):
        return None
    return value


__all__ = [
    "ControllerState",
    "EnergyController",
    "FieldUpdate",
    "Mode",
    "Side",
    "SIDES",
]
