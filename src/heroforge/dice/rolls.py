"""Roll construction for attacks, damage, checks and saves.

Rolls are built from named parts. Each non-empty part becomes an ``@key``
placeholder in the roll and its value is stored under that key in the roll
data, so the final formula keeps a readable breakdown of where every term came
from.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from heroforge.formula import replace_formula_data, resolve
from heroforge.models.changes import set_property

if TYPE_CHECKING:
    from heroforge.pipeline.entities import Creature, WeaponState


def build_roll(parts: Mapping[str, Any], data: dict[str, Any]) -> tuple[list[str], dict[str, Any]]:
    """
    Construct roll parts and populate their data.

    Empty parts are skipped, but an explicit 0 is kept.

    Args:
        parts: Part values keyed by placeholder name
        data: Roll data to populate (modified in place)

    Returns:
        The ``@key`` placeholders and the populated data
    """
    final_parts = []
    for key, value in parts.items():
        if value is None or value == "":
            continue
        final_parts.append(f"@{key}")
        set_property(data, key, replace_formula_data(value, data) if isinstance(value, str) else value)
    return final_parts, data


@dataclass
class RollSpec:
    """A constructed roll: placeholders, their data and the resolved formula."""

    parts: list[str]
    data: dict[str, Any] = field(default_factory=dict)
    formula: str = ""

    @classmethod
    def build(cls, parts: Mapping[str, Any], data: dict[str, Any]) -> "RollSpec":
        placeholders, data = build_roll(parts, data)
        formula = resolve(" + ".join(placeholders), data) if placeholders else 0
        return cls(parts=placeholders, data=data, formula=str(formula))


def challenge_die(creature: "Creature", minimum: int | None = None) -> str:
    """The challenge die term, optionally floored (e.g. ``1d20min10``)."""
    die = f"1d{creature.catalog.challenge_die}"
    return f"{die}min{minimum}" if minimum else die


def attack_roll(weapon: "WeaponState", creature: "Creature") -> RollSpec:
    """
    Build an attack roll for a weapon.

    The attack modifier is already aggregated by the derivation pass, so the
    roll is the challenge die plus that modifier.
    """
    data = creature.item_roll_data(weapon)
    return RollSpec.build({"die": challenge_die(creature), "attack": weapon.attack_mod}, data)


def damage_roll(weapon: "WeaponState", creature: "Creature", critical: bool = False) -> RollSpec:
    """
    Build a damage roll for a weapon.

    A critical hit rolls one extra die per damage die, plus the weapon's
    extra critical dice and critical damage bonus.
    """
    data = creature.item_roll_data(weapon)
    damage = weapon.damage
    number = damage.number or 0
    if critical and damage.denomination:
        number = number * 2 + weapon.source.bonuses.critical.dice
    dice = f"{number}d{damage.denomination}" if number and damage.denomination else ""
    parts: dict[str, Any] = {"dice": dice, "bonus": weapon.damage_mod or None}
    if critical:
        parts["critical"] = weapon.source.bonuses.critical.damage
    return RollSpec.build(parts, data)


def ability_check_roll(creature: "Creature", ability: str) -> RollSpec:
    state = creature.abilities[ability]
    parts = {
        "die": challenge_die(creature),
        "mod": state.mod,
        "prof": state.check_proficiency.term,
        "bonus": state.check_bonus or None,
    }
    return RollSpec.build(parts, creature.roll_data())


def ability_save_roll(creature: "Creature", ability: str) -> RollSpec:
    state = creature.abilities[ability]
    parts = {
        "die": challenge_die(creature),
        "mod": state.mod,
        "prof": state.save_proficiency.term,
        "bonus": state.save_bonus or None,
    }
    return RollSpec.build(parts, creature.roll_data())


def skill_check_roll(creature: "Creature", skill: str) -> RollSpec:
    """
    Build a skill check.

    A skill minimum floors the challenge die, so a minimum of 10 rolls
    ``1d20min10``.
    """
    state = creature.skills[skill]
    ability = creature.abilities[state.ability]
    parts = {
        "die": challenge_die(creature, state.minimum),
        "mod": ability.mod,
        "prof": state.proficiency.term,
        "bonus": state.bonus or None,
    }
    return RollSpec.build(parts, creature.roll_data())
