"""Tests for weapon derivation and weapon actions."""

import pytest

from heroforge.dice.damage import DamageSpec
from heroforge.items.weapon import can_attack, reload, spend_rounds


class TestDamage:
    """Tests for damage composed from mode and ammunition."""

    def test_base_damage(self, armed, sword):
        weapon = armed({"sword": sword}).items["sword"]
        assert weapon.damage == DamageSpec(1, 8, "slashing")
        assert weapon.damage.formula == "1d8"

    def test_versatile_two_handed_steps_up(self, armed, sword):
        weapon = armed({"sword": {**sword, "mode": "twoHanded"}}).items["sword"]
        assert weapon.damage.formula == "1d10"

    def test_burst_adds_a_die(self, armed, rifle):
        burst = {**rifle, "properties": ["burst"], "mode": "burst", "damage": {"number": 1, "denomination": 6}}
        weapon = armed({"smg": burst}).items["smg"]
        assert weapon.mode == "burst"
        assert weapon.damage.formula == "2d6"

    def test_regular_ammunition_replaces_damage(self, armed, rifle, ammunition):
        shells = {**ammunition, "damage": {"number": 1, "denomination": 12, "type": "fire", "mode": "regular"}}
        weapon = armed({"rifle": {**rifle, "ammunition": "shells"}, "shells": shells}).items["rifle"]
        assert weapon.damage == DamageSpec(1, 12, "fire")

    def test_regular_ammunition_keeps_unset_fields(self, armed, rifle, ammunition):
        shells = {**ammunition, "damage": {"type": "fire", "mode": "regular"}}
        weapon = armed({"rifle": {**rifle, "ammunition": "shells"}, "shells": shells}).items["rifle"]
        assert weapon.damage == DamageSpec(2, 8, "fire")

    def test_modifying_ammunition(self, armed, rifle, ammunition):
        rounds = {**ammunition, "damage": {"number": 1, "denomination": 1}}
        weapon = armed({"rifle": {**rifle, "ammunition": "ap"}, "ap": rounds}).items["rifle"]
        assert weapon.damage == DamageSpec(3, 10, "ballistic")

    def test_denomination_clamps_at_largest_die(self, armed, sword):
        greatsword = {**sword, "damage": {"number": 2, "denomination": 12}, "mode": "twoHanded"}
        weapon = armed({"greatsword": greatsword}).items["greatsword"]
        assert weapon.damage.formula == "2d12"


class TestCriticalThreshold:
    """Tests for the lowest roll that scores a critical hit."""

    def test_no_overrides(self, armed, sword):
        assert armed({"sword": sword}).items["sword"].critical_threshold == 20

    def test_lowest_override_wins(self, armed, sword):
        creature = armed(
            {"sword": {**sword, "overrides": {"critical_threshold": 18}}},
            overrides={"critical_threshold": {"all": 19}},
        )
        assert creature.items["sword"].critical_threshold == 18

    def test_actor_per_type_override(self, armed, sword, rifle):
        creature = armed(
            {"sword": sword, "rifle": rifle},
            overrides={"critical_threshold": {"ranged": 17}},
        )
        assert creature.items["sword"].critical_threshold == 20
        assert creature.items["rifle"].critical_threshold == 17

    def test_ammunition_override(self, armed, rifle, ammunition):
        hollow = {**ammunition, "overrides": {"critical_threshold": 19}}
        creature = armed({"rifle": {**rifle, "ammunition": "hp"}, "hp": hollow})
        assert creature.items["rifle"].critical_threshold == 19


class TestAbilitySelection:
    """Tests for the ability used to attack and deal damage."""

    def test_melee_uses_strength(self, armed, sword):
        weapon = armed({"sword": sword}).items["sword"]
        assert weapon.attack_ability == "str"
        assert weapon.damage_ability == "str"

    def test_ranged_uses_dexterity(self, armed, rifle):
        assert armed({"rifle": rifle}).items["rifle"].attack_ability == "dex"

    def test_finesse_needs_strictly_higher_dexterity(self, armed, dagger):
        assert armed({"dagger": dagger}).items["dagger"].attack_ability == "str"

        creature = armed({"dagger": dagger}, abilities={"str": {"value": 14}, "dex": {"value": 14}})
        assert creature.items["dagger"].attack_ability == "str"

        creature = armed({"dagger": dagger}, abilities={"str": {"value": 10}, "dex": {"value": 18}})
        assert creature.items["dagger"].attack_ability == "dex"

    def test_offhand_adds_no_damage_ability(self, armed, dagger):
        weapon = armed({"dagger": {**dagger, "mode": "offhand"}}).items["dagger"]
        assert weapon.attack_ability == "str"
        assert weapon.damage_ability is None
        assert weapon.damage_mod == 0

    def test_weapon_override(self, armed, sword):
        weapon = armed({"sword": {**sword, "overrides": {"ability": "cha"}}}).items["sword"]
        assert weapon.attack_ability == "cha"

    def test_actor_default_override(self, armed, sword):
        creature = armed({"sword": sword}, overrides={"abilities": {"melee": "dex"}})
        assert creature.items["sword"].attack_ability == "dex"


class TestModifiers:
    """Tests for attack and damage modifier aggregation."""

    def test_proficient_attack(self, armed, sword):
        weapon = armed({"sword": sword}).items["sword"]
        assert weapon.proficient
        assert weapon.attack_mod == 3 + 2
        assert weapon.damage_mod == 3

    def test_not_proficient(self, armed, rifle):
        weapon = armed({"rifle": rifle}).items["rifle"]
        assert not weapon.proficient
        assert weapon.attack_mod == 2

    def test_independent_bonus_terms(self, armed, rifle, ammunition):
        creature = armed(
            {
                "rifle": {**rifle, "ammunition": "ap", "bonuses": {"attack": "1d4 + 1", "damage": "2"}},
                "ap": {**ammunition, "bonuses": {"attack": "1", "damage": "@prof"}},
            },
            bonuses={"attack": {"all": "1", "ranged": "@prof"}, "damage": {"melee": "5"}},
        )
        weapon = creature.items["rifle"]
        assert weapon.attack_mod == 2 + 1 + 2 + 1 + 1
        assert weapon.damage_mod == 2 + 2 + 2

    def test_failing_term_does_not_abort_others(self, armed, sword):
        creature = armed(
            {"sword": {**sword, "bonuses": {"attack": "3 +"}}},
            bonuses={"attack": {"all": "1"}},
        )
        assert creature.items["sword"].attack_mod == 3 + 2 + 1

    def test_penetration_value_adds_ammunition(self, armed, rifle, ammunition):
        creature = armed({"rifle": {**rifle, "ammunition": "ap"}, "ap": ammunition})
        assert creature.items["rifle"].penetration_value == 3
        assert creature.items["rifle"].ammunition.id == "ap"


class TestPredicates:
    """Tests for range and rounds relevance."""

    def test_uses_range(self, armed, sword, dagger, rifle):
        creature = armed({"sword": sword, "dagger": dagger, "rifle": rifle})
        assert not creature.items["sword"].uses_range
        assert creature.items["dagger"].uses_range
        assert creature.items["rifle"].uses_range

    def test_uses_rounds(self, armed, dagger, rifle):
        creature = armed({"dagger": dagger, "rifle": rifle})
        assert not creature.items["dagger"].uses_rounds
        assert creature.items["rifle"].uses_rounds


class TestRoundActions:
    """Tests for spending rounds and reloading."""

    def test_spend_rounds(self, armed, rifle):
        creature = armed({"rifle": rifle})
        assert spend_rounds(creature.items["rifle"], creature) == {"items.rifle.rounds.spent": 6}

    def test_spend_burst(self, armed, rifle):
        creature = armed({"rifle": {**rifle, "mode": "burst"}})
        assert spend_rounds(creature.items["rifle"], creature) == {"items.rifle.rounds.spent": 8}

    def test_cannot_spend_more_than_available(self, armed, rifle):
        creature = armed({"rifle": {**rifle, "mode": "suppressiveFire", "rounds": {"spent": 25, "capacity": 30}}})
        weapon = creature.items["rifle"]
        assert not can_attack(weapon, creature)
        assert spend_rounds(weapon, creature) == {}

    def test_spent_is_clamped_to_capacity(self, armed, rifle):
        creature = armed({"rifle": {**rifle, "rounds": {"spent": 40, "capacity": 30}}})
        weapon = creature.items["rifle"]
        assert weapon.rounds.spent == 30
        assert weapon.rounds.available == 0

    def test_jammed_weapon_cannot_attack(self, armed, rifle):
        creature = armed({"rifle": {**rifle, "jammed": True}})
        assert not can_attack(creature.items["rifle"], creature)

    def test_melee_spends_nothing(self, armed, sword):
        creature = armed({"sword": sword})
        assert can_attack(creature.items["sword"], creature)
        assert spend_rounds(creature.items["sword"], creature) == {}

    def test_reload(self, armed, rifle):
        creature = armed({"rifle": {**rifle, "jammed": True}})
        assert reload(creature.items["rifle"]) == {
            "items.rifle.rounds.spent": 0,
            "items.rifle.jammed": False,
        }

    def test_reload_full_magazine(self, armed, rifle):
        creature = armed({"rifle": {**rifle, "rounds": {"capacity": 30}}})
        assert reload(creature.items["rifle"]) == {}


@pytest.mark.parametrize(
    "number,denomination,expected",
    [(1, 6, 3), (2, 6, 7), (1, 8, 4), (None, 6, 0)],
)
def test_average_damage(number, denomination, expected):
    assert DamageSpec(number, denomination).average == expected
