import math

import pytest

from plugins.energy_converter.core import DisabledFieldError, EnergyController, FieldUpdate
from plugins.energy_converter.core.units import UNIT_PRIORITY


def _fields(controller, side="single"):
    return {unit: controller.get_field_text(unit, side) for unit in UNIT_PRIORITY}


def test_initial_state_is_seeded_with_one_hartree():
    controller = EnergyController()
    assert controller.mode == "single"
    assert controller.precision == 11
    assert controller.canonical_value() == 1.0
    assert controller.get_field_text("hartree") == "1"
    assert controller.get_field_text("ev") == "27.211386246"


def test_editing_hartree_updates_every_other_unit():
    controller = EnergyController()
    controller.on_field_edit("hartree", "2")
    assert controller.get_display_value("ev") == "54.422772492"
    assert float(controller.get_field_text("kcal_per_mol")) == pytest.approx(2 * 627.5094740631, rel=1e-10)
    assert float(controller.get_field_text("nm")) == pytest.approx(1e7 / (2 * 219474.63136314), rel=1e-10)


def test_precision_ten_renders_wavenumber():
    controller = EnergyController(precision=10)
    controller.on_field_edit("hartree", "1")
    assert controller.get_field_text("cm-1") == "219474.6314"
    assert controller.get_field_text("ev") == "27.21138625"


def test_edited_field_keeps_the_typed_text():
    controller = EnergyController()
    controller.on_field_edit("ev", "2.50")
    assert controller.get_field_text("ev") == "2.50"
    assert controller.get_display_value("ev") == "2.50"
    assert controller.canonical_value() == pytest.approx(2.5 / 27.211386245981)


def test_more_significant_digits_raise_precision():
    controller = EnergyController(precision=6)
    controller.on_field_edit("ev", "3.14159265")
    assert controller.precision == 9
    controller.on_field_edit("ev", "3.1")
    assert controller.precision == 9


def test_precision_upgrade_is_capped():
    controller = EnergyController(precision=6)
    controller.on_field_edit("hartree", "1." + "1" * 40)
    assert controller.precision == 30


def test_unparseable_input_leaves_state_untouched():
    controller = EnergyController()
    controller.on_field_edit("ev", "5")
    before = controller.snapshot()
    assert controller.on_field_edit("kelvin", "12abc") == []
    assert controller.snapshot() == before


def test_clearing_a_field_clears_siblings_and_the_value():
    controller = EnergyController()
    controller.on_field_edit("ev", "")
    assert controller.canonical_value() is None
    assert all(text == "" for text in _fields(controller).values())
    assert controller.get_display_value("hartree") == "—"


def test_zero_wavelength_yields_no_value_elsewhere():
    controller = EnergyController()
    controller.on_field_edit("nm", "0")
    assert controller.canonical_value() == math.inf
    assert controller.get_field_text("nm") == "0"
    for unit in UNIT_PRIORITY:
        if unit == "nm":
            continue
        assert controller.get_field_text(unit) == ""
        assert controller.get_display_value(unit) == "—"


def test_pair_mode_difference():
    controller = EnergyController()
    controller.on_mode_toggle()
    controller.on_field_edit("hartree", "1", "A")
    controller.on_field_edit("hartree", "0", "B")
    assert controller.get_field_text("hartree", "D") == "1"
    assert controller.get_display_value("ev", "D") == "27.211386246"
    assert controller.get_copy_text("ev") == "27.211386246"


def test_pair_edit_reads_other_side_at_same_unit():
    controller = EnergyController()
    controller.on_mode_toggle()
    controller.on_field_edit("hartree", "0.5", "B")
    b_ev = controller.get_field_text("ev", "B")
    assert b_ev == "13.605693123"

    controller.on_field_edit("ev", "30", "A")
    assert controller.get_field_text("ev", "B") == b_ev
    assert controller.canonical_value("B") == pytest.approx(13.605693123 / 27.211386245981, rel=1e-12)
    assert float(controller.get_field_text("ev", "D")) == pytest.approx(30 - 13.605693123, rel=1e-9)


def test_pair_edit_keeps_other_side_when_its_field_is_empty():
    controller = EnergyController()
    controller.on_mode_toggle()
    controller.on_field_edit("kelvin", "", "B")
    assert controller.canonical_value("B") is None
    controller.on_field_edit("kelvin", "100", "A")
    assert controller.canonical_value("B") is None
    assert controller.canonical_value("D") is None
    assert controller.get_display_value("hartree", "D") == "—"


def test_wavelength_only_shows_difference_in_pair_mode():
    controller = EnergyController()
    controller.on_mode_toggle()
    assert controller.get_field_text("nm", "A") == ""
    assert controller.get_display_value("nm", "B") == "—"
    assert float(controller.get_field_text("nm", "D")) == pytest.approx(1e7 / 219474.63136314, rel=1e-10)
    assert controller.is_editable("nm", "A") is False
    assert controller.is_editable("ev", "A") is True


@pytest.mark.parametrize(
    ("unit", "side"),
    [("nm", "A"), ("nm", "B"), ("ev", "D"), ("ev", "single")],
)
def test_disabled_fields_reject_edits_in_pair_mode(unit, side):
    controller = EnergyController()
    controller.on_mode_toggle()
    before = controller.snapshot()
    with pytest.raises(DisabledFieldError):
        controller.on_field_edit(unit, "1", side)
    assert controller.snapshot() == before


def test_pair_sides_are_disabled_in_single_mode():
    controller = EnergyController()
    with pytest.raises(DisabledFieldError):
        controller.on_field_edit("ev", "1", "A")


def test_mode_round_trip_recovers_difference():
    controller = EnergyController()
    controller.on_field_edit("hartree", "2")
    controller.on_mode_toggle()
    assert controller.mode == "pair"
    assert controller.canonical_value("A") == 2.0
    assert controller.canonical_value("B") == 0.0
    assert controller.canonical_value("D") == 2.0
    assert controller.get_field_text("hartree", "D") == "2"

    controller.on_mode_toggle()
    assert controller.mode == "single"
    assert controller.canonical_value() == 2.0
    assert controller.get_field_text("hartree") == "2"


def test_reentering_pair_mode_restores_previous_pair():
    controller = EnergyController()
    controller.on_mode_toggle()
    controller.on_field_edit("hartree", "0.25", "B")
    controller.on_mode_toggle()
    assert controller.canonical_value() == 0.75
    controller.on_mode_toggle()
    assert controller.canonical_value("A") == 1.0
    assert controller.canonical_value("B") == 0.25


def test_reentering_pair_mode_after_single_edit_reseeds():
    controller = EnergyController()
    controller.on_mode_toggle()
    controller.on_field_edit("hartree", "0.25", "B")
    controller.on_mode_toggle()
    controller.on_field_edit("hartree", "3")
    controller.on_mode_toggle()
    assert controller.canonical_value("A") == 3.0
    assert controller.canonical_value("B") == 0.0


def test_precision_edit_rerenders_every_field():
    controller = EnergyController()
    controller.on_field_edit("ev", "27.211386245981")
    controller.on_precision_edit("4")
    assert controller.precision == 4
    assert controller.get_field_text("ev") == "27.21"
    assert controller.get_field_text("hartree") == "1"
    # The canonical value keeps full precision.
    controller.on_precision_edit("14")
    assert controller.get_field_text("ev") == "27.211386245981"


def test_precision_edit_clamps_and_ignores_garbage():
    controller = EnergyController()
    assert controller.on_precision_edit("many") == []
    assert controller.precision == 11
    controller.on_precision_edit("99")
    assert controller.precision == 30
    controller.on_precision_edit("0")
    assert controller.precision == 1


def test_precision_steps():
    controller = EnergyController(precision=2)
    controller.on_precision_step(1)
    assert controller.precision == 3
    controller.on_precision_step(-1)
    controller.on_precision_step(-1)
    controller.on_precision_step(-1)
    assert controller.precision == 1
    with pytest.raises(ValueError):
        controller.on_precision_step(2)


def test_precision_change_without_value_seeds_one_hartree():
    controller = EnergyController()
    controller.on_field_edit("ev", "")
    controller.on_precision_edit("5")
    assert controller.canonical_value() == 1.0
    assert controller.get_field_text("hartree") == "1"
    assert controller.get_field_text("ev") == "27.211"


def test_precision_change_in_pair_mode_rerenders_both_sides_and_difference():
    controller = EnergyController()
    controller.on_mode_toggle()
    controller.on_field_edit("ev", "10", "A")
    controller.on_field_edit("ev", "4", "B")
    updates = controller.on_precision_edit("3")
    assert controller.precision == 3
    assert controller.get_field_text("hartree", "A") == "0.367"
    assert controller.get_field_text("hartree", "B") == "0.147"
    assert controller.get_field_text("hartree", "D") == "0.22"
    assert controller.get_field_text("ev", "D") == "6"
    assert controller.get_field_text("nm", "D") == "207"
    assert controller.canonical_value("A") == pytest.approx(10 / 27.211386245981)
    assert {update.side for update in updates} == {"A", "B", "D"}


def test_precision_change_reseeds_cleared_pair_side_with_one_hartree():
    controller = EnergyController()
    controller.on_mode_toggle()
    controller.on_field_edit("hartree", "", "A")
    assert controller.canonical_value("A") is None
    assert controller.get_field_text("ev", "D") == ""
    controller.on_precision_step(-1)
    assert controller.precision == 10
    assert controller.canonical_value("A") == 1.0
    assert controller.canonical_value("B") == 0.0
    assert controller.get_field_text("hartree", "A") == "1"
    assert controller.get_field_text("ev", "D") == "27.21138625"


def test_precision_change_reseeds_pair_side_from_first_filled_field():
    controller = EnergyController()
    controller.on_mode_toggle()
    controller.on_field_edit("ev", "5", "A")
    controller.state.a = None
    controller.on_precision_edit("4")
    assert controller.canonical_value("A") == pytest.approx(5 / 27.211386245981, rel=1e-9)
    assert controller.get_field_text("ev", "A") == "5"
    assert controller.get_field_text("ev", "D") == "5"


def test_exponential_fields_round_half_up():
    controller = EnergyController()
    controller.on_field_edit("hartree", "2.5e8")
    controller.on_precision_edit("1")
    assert controller.get_field_text("hartree") == "3e+08"


def test_long_numerals_are_accepted():
    controller = EnergyController()
    updates = controller.on_field_edit("hartree", "0." + "0" * 70 + "1")
    assert updates
    assert controller.canonical_value() == 1e-71
    assert controller.precision == 11


def test_listeners_receive_only_committed_changes():
    controller = EnergyController()
    received: list[FieldUpdate] = []
    unsubscribe = controller.subscribe(received.append)

    updates = controller.on_field_edit("hartree", "2")
    assert received == updates
    assert FieldUpdate("single", "ev", "54.422772492") in updates
    assert all(update.side == "single" for update in updates)
    for update in updates:
        assert controller.get_field_text(update.unit, update.side) == update.text

    unsubscribe()
    controller.on_field_edit("hartree", "3")
    assert received == updates


def test_reentrant_edits_from_listeners_are_dropped():
    controller = EnergyController()
    seen: list[tuple[str, list]] = []

    def listener(update):
        seen.append((controller.get_field_text("ev"), controller.on_field_edit("ev", "5")))

    controller.subscribe(listener)
    controller.on_field_edit("hartree", "2")
    assert seen
    assert all(text == "54.422772492" and result == [] for text, result in seen)
    assert controller.canonical_value() == 2.0


def test_copy_text_follows_mode():
    controller = EnergyController()
    controller.on_field_edit("hartree", "2")
    assert controller.get_copy_text("kelvin") == controller.get_field_text("kelvin")
    controller.on_mode_toggle()
    assert controller.get_copy_text("kelvin") == controller.get_field_text("kelvin", "D")


def test_snapshot_is_json_ready():
    controller = EnergyController()
    controller.on_field_edit("nm", "0")
    snapshot = controller.snapshot()
    assert snapshot["canonical"]["single"] is None
    assert snapshot["precision_range"] == [1, 30]
    assert snapshot["editable"]["D"]["ev"] is False
    assert snapshot["display"]["single"]["ev"] == "—"
