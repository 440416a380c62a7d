"""Tests for damage dice values."""

import pytest

from heroforge.dice import DamageSpec, step_denomination

STEPS = (4, 6, 8, 10, 12)


class TestStepDenomination:
    """Tests for moving along the dice progression."""

    @pytest.mark.parametrize(
        "denomination,step,expected",
        [(6, 1, 8), (6, -1, 4), (4, -1, 4), (12, 1, 12), (8, 5, 12), (10, -9, 4), (8, 0, 8)],
    )
    def test_steps_and_clamps(self, denomination, step, expected):
        assert step_denomination(denomination, step, STEPS) == expected

    def test_unknown_denomination_starts_below_the_first_step(self):
        assert step_denomination(20, 1, STEPS) == 4


class TestDamageSpec:
    """Tests for immutable damage values."""

    def test_modify_returns_new_value(self):
        damage = DamageSpec(1, 6, "slashing")
        modified = damage.modify(STEPS, number=1, denomination=1)
        assert modified == DamageSpec(2, 8, "slashing")
        assert damage == DamageSpec(1, 6, "slashing")

    def test_modify_without_dice(self):
        assert DamageSpec().modify(STEPS, denomination=1) == DamageSpec()
        assert DamageSpec().modify(STEPS, number=1) == DamageSpec(1, None)

    def test_formula(self):
        assert DamageSpec(2, 6).formula == "2d6"
        assert DamageSpec(None, 6).formula == ""
