"""Tests for formula resolution against roll data."""

import pytest

from heroforge.formula import (
    FormulaError,
    replace_formula_data,
    resolve,
    resolve_strict,
    simplify_bonus,
)

ROLL_DATA = {
    "abilities": {"str": {"mod": 3}, "dex": {"mod": 1}},
    "prof": 2,
    "level": 5,
    "scale": {
        "sneak": {"number": 2, "denomination": 6, "formula": "2d6"},
        "rank": {"value": 4},
    },
    "nested": "@level + 1",
}


class TestResolve:
    """Tests for numeric and expression resolution."""

    def test_plain_numbers(self):
        assert resolve(4) == 4
        assert resolve("1 + 2") == 3

    def test_blank_formulas_are_zero(self):
        assert resolve(None) == 0
        assert resolve("") == 0
        assert resolve("   ") == 0

    def test_variables_are_substituted(self):
        assert resolve("@abilities.str.mod + @prof", ROLL_DATA) == 5

    def test_missing_variable_is_zero(self):
        assert resolve("@abilities.con.mod + 1", ROLL_DATA) == 1

    def test_functions(self):
        assert resolve("floor(@level / 2) + 1", ROLL_DATA) == 3
        assert resolve("ceil(@level / 2)", ROLL_DATA) == 3
        assert resolve("max(@abilities.str.mod, @abilities.dex.mod)", ROLL_DATA) == 3
        assert resolve("round(2.5)") == 3
        assert resolve("abs(-4)") == 4

    def test_fractional_results_are_kept(self):
        assert resolve("5 / 2") == 2.5

    def test_integral_results_are_ints(self):
        result = resolve("2.5 * 2")
        assert result == 5
        assert isinstance(result, int)

    def test_dice_survive_in_expression_mode(self):
        assert resolve("1d6 + @abilities.str.mod", ROLL_DATA) == "1d6 + 3"

    def test_constant_parts_are_folded(self):
        assert resolve("@prof * 2 + 1d8", ROLL_DATA) == "4 + 1d8"

    def test_deterministic_mode_drops_dice(self):
        assert resolve("1d6 + @abilities.str.mod", ROLL_DATA, deterministic_only=True) == 3

    def test_mapping_variable_uses_formula(self):
        assert resolve("@scale.sneak", ROLL_DATA) == "2d6"

    def test_mapping_variable_uses_value(self):
        assert resolve("@scale.rank * 2", ROLL_DATA) == 8

    def test_string_variables_are_nested_formulas(self):
        assert resolve("@nested * 2", ROLL_DATA) == 12

    def test_malformed_formula_is_zero(self):
        assert resolve("1 +") == 0
        assert resolve("unknown(2)") == 0

    def test_division_by_zero_is_zero(self):
        assert resolve("1 / 0") == 0

    def test_self_referencing_variable_is_zero(self):
        assert resolve("@loop", {"loop": "@loop + 1"}) == 0


class TestResolveStrict:
    """Tests for the error-propagating resolver."""

    def test_malformed_formula_raises(self):
        with pytest.raises(FormulaError):
            resolve_strict("(1 + 2")

    def test_well_formed_formula_resolves(self):
        assert resolve_strict("@prof * 2", ROLL_DATA) == 4


class TestSimplifyBonus:
    """Tests for deterministic bonus evaluation."""

    def test_dice_are_ignored(self):
        assert simplify_bonus("2d4 + 3") == 3

    def test_references(self):
        assert simplify_bonus("@prof", ROLL_DATA) == 2

    def test_failure_is_zero(self):
        assert simplify_bonus("2 +", ROLL_DATA) == 0

    def test_empty_is_zero(self):
        assert simplify_bonus("") == 0
        assert simplify_bonus(None) == 0


class TestReplaceFormulaData:
    """Tests for textual substitution used by roll construction."""

    def test_values_replace_references(self):
        assert replace_formula_data("1d20 + @prof", ROLL_DATA) == "1d20 + 2"

    def test_terms_are_not_folded(self):
        assert replace_formula_data("@prof + 1", ROLL_DATA) == "2 + 1"

    def test_malformed_formula_becomes_zero(self):
        assert replace_formula_data("1 +", ROLL_DATA) == "0"


class TestRunawayInput:
    """Tests that deeply nested or oversized formulas degrade like any malformed one."""

    @pytest.mark.parametrize(
        "formula",
        [
            "(" * 1200 + "1" + ")" * 1200,
            "-" * 3000 + "1",
            "floor(" + "9" * 400 + ")",
            "9" * 400,
            "9" * 400 + " - " + "9" * 400,
        ],
    )
    def test_resolves_to_zero(self, formula):
        assert simplify_bonus(formula) == 0
        assert resolve(formula) == 0
        with pytest.raises(FormulaError):
            resolve_strict(formula)

    def test_replacement_becomes_zero(self):
        assert replace_formula_data("(" * 1200 + "@prof" + ")" * 1200, ROLL_DATA) == "0"
