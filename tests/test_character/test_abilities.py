"""Tests for derived ability values."""

import pytest

from heroforge.character.abilities import get_modifier


class TestAbilityModifiers:
    """Tests for ability modifier calculation."""

    def test_modifier_examples(self):
        assert get_modifier(10) == 0
        assert get_modifier(15) == 2
        assert get_modifier(8) == -1

    def test_modifier_low_values(self):
        assert get_modifier(0) == -5
        assert get_modifier(1) == -5

    @pytest.mark.parametrize("value", range(0, 31))
    def test_modifier_formula(self, value):
        """Verify modifier follows (value - 10) // 2."""
        assert get_modifier(value) == (value - 10) // 2


class TestDerivedAbilities:
    """Tests for checks, saves and DCs produced by a derivation pass."""

    def test_proficient_save_and_dc(self, derive):
        creature = derive({"abilities": {"con": {"value": 14, "save_multiplier": 1}}})
        con = creature.abilities["con"]
        assert creature.prof == 2
        assert con.mod == 2
        assert con.save == 4
        assert con.dc == 12

    def test_save_without_proficiency(self, derive):
        creature = derive({"abilities": {"dex": {"value": 14}}})
        assert creature.abilities["dex"].save == 2

    def test_check_includes_proficiency(self, derive):
        creature = derive({"abilities": {"str": {"value": 16}}})
        assert creature.abilities["str"].check == 5

    def test_global_and_own_bonuses(self, derive):
        creature = derive(
            {
                "abilities": {"wis": {"value": 12, "bonuses": {"check": "1", "save": "2", "dc": "@prof"}}},
                "bonuses": {"ability": {"check": "1", "save": "1d4 + 1", "dc": "1"}},
            }
        )
        wis = creature.abilities["wis"]
        assert wis.check == 1 + 2 + 2
        assert wis.save == 1 + 3
        assert wis.dc == 8 + 1 + 2 + 3

    def test_bonus_may_reference_other_modifiers(self, derive):
        creature = derive(
            {"abilities": {"str": {"value": 18}, "cha": {"bonuses": {"save": "@abilities.str.mod"}}}}
        )
        assert creature.abilities["cha"].save == 4

    def test_failing_bonus_counts_as_zero(self, derive):
        creature = derive({"abilities": {"int": {"value": 14, "bonuses": {"check": "2 +"}}}})
        assert creature.abilities["int"].check == 4

    def test_runaway_bonus_does_not_abort_the_pass(self, derive):
        creature = derive(
            {
                "abilities": {
                    "str": {"value": 16, "bonuses": {"check": "(" * 1200 + "1" + ")" * 1200}},
                    "dex": {"value": 14, "bonuses": {"save": "floor(" + "9" * 400 + ")"}},
                }
            }
        )
        assert creature.abilities["str"].check == 3 + 2
        assert creature.abilities["dex"].save == 2
        assert creature.abilities["dex"].check == 2 + 2

    def test_fractional_bonuses_round_down(self, derive):
        creature = derive(
            {"abilities": {"wis": {"value": 10, "bonuses": {"check": "5 / 2", "save": "-1 / 2"}}}}
        )
        wis = creature.abilities["wis"]
        assert wis.check_bonus == 2
        assert wis.save_bonus == -1
        assert wis.save == -1

    def test_source_is_not_mutated(self, make_source, pipeline):
        source = make_source({"abilities": {"str": {"value": 14}}})
        before = source.model_dump()
        pipeline.prepare(source)
        assert source.model_dump() == before

    def test_proficiency_follows_level(self, derive):
        creature = derive({"level": 5, "abilities": {"con": {"value": 10, "save_multiplier": 1}}})
        assert creature.prof == 3
        assert creature.abilities["con"].save == 3
