"""Resolved (derived) state produced by a derivation pass.

Every field here is recomputed on each pass and is never persisted. Source data
is kept by reference on each entity so capability steps can read it, but steps
never mutate it.
"""

from dataclasses import dataclass, field
from typing import Any

from heroforge.catalog import Catalog
from heroforge.character.proficiency import Proficiency
from heroforge.dice.damage import DamageSpec
from heroforge.models.sources import (
    AbilitySource,
    AmmunitionSource,
    CreatureSource,
    ItemBase,
    SkillSource,
    WeaponSource,
)


@dataclass
class AbilityState:
    """Resolved ability score."""

    key: str
    source: AbilitySource
    value: int = 10
    max: int = 20
    mod: int = 0
    check_proficiency: Proficiency = field(default_factory=lambda: Proficiency(0, 0))
    save_proficiency: Proficiency = field(default_factory=lambda: Proficiency(0, 0))
    check_bonus: int = 0
    save_bonus: int = 0
    dc_bonus: int = 0
    check: int = 0
    save: int = 0
    dc: int = 0

    def to_roll_data(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "max": self.max,
            "mod": self.mod,
            "check": self.check,
            "save": self.save,
            "dc": self.dc,
        }


@dataclass
class SkillState:
    """Resolved skill."""

    key: str
    ability: str
    source: SkillSource
    proficiency: Proficiency = field(default_factory=lambda: Proficiency(0, 0))
    bonus: int = 0
    mod: int = 0
    passive: int = 10
    minimum: int | None = None

    def to_roll_data(self) -> dict[str, Any]:
        return {
            "ability": self.ability,
            "proficiency": self.proficiency.flat,
            "bonus": self.bonus,
            "mod": self.mod,
            "passive": self.passive,
            "minimum": self.minimum or 0,
        }


@dataclass
class UsesState:
    """Resolved limited uses."""

    spent: int = 0
    max: int | None = None
    available: int | None = None
    period: str = ""
    recovery: str | None = None


@dataclass
class RoundsState:
    """Resolved magazine state."""

    spent: int = 0
    capacity: int = 0
    burst: int = 0
    available: int = 0
    type: str = ""


@dataclass
class ItemState:
    """Resolved state shared by every item kind."""

    id: str
    kind: str
    source: ItemBase
    uses: UsesState = field(default_factory=UsesState)

    def to_roll_data(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "kind": self.kind,
            "uses": {
                "spent": self.uses.spent,
                "max": self.uses.max or 0,
                "available": self.uses.available or 0,
            },
        }
        return data


@dataclass
class AmmunitionState(ItemState):
    """Resolved ammunition."""

    source: AmmunitionSource
    penetration_value: int = 0
    critical_threshold: int | None = None

    def to_roll_data(self) -> dict[str, Any]:
        data = super().to_roll_data()
        data["penetration_value"] = self.penetration_value
        data["quantity"] = self.source.quantity
        return data


@dataclass
class WeaponState(ItemState):
    """Resolved weapon, including its active mode and ammunition."""

    source: WeaponSource
    modes: list[str] = field(default_factory=list)
    mode: str | None = None
    ammunition: AmmunitionState | None = None
    penetration_value: int = 0
    rounds: RoundsState = field(default_factory=RoundsState)
    damage: DamageSpec = field(default_factory=DamageSpec)
    critical_threshold: int = 20
    attack_ability: str | None = None
    damage_ability: str | None = None
    proficient: bool = False
    attack_mod: int = 0
    damage_mod: int = 0

    @property
    def weapon_type(self) -> str:
        return self.source.type.value

    @property
    def properties(self) -> set[str]:
        return self.source.properties

    @property
    def uses_range(self) -> bool:
        """Is range a relevant concept for this weapon?"""
        return self.weapon_type == "ranged" or "thrown" in self.properties

    @property
    def uses_rounds(self) -> bool:
        """Are rounds a relevant concept for this weapon?"""
        return self.weapon_type == "ranged"

    def to_roll_data(self) -> dict[str, Any]:
        data = super().to_roll_data()
        data.update(
            {
                "mode": self.mode or "",
                "penetration_value": self.penetration_value,
                "rounds": {
                    "spent": self.rounds.spent,
                    "capacity": self.rounds.capacity,
                    "available": self.rounds.available,
                },
                "damage": {
                    "number": self.damage.number or 0,
                    "denomination": self.damage.denomination or 0,
                    "formula": self.damage.formula,
                },
                "critical_threshold": self.critical_threshold,
            }
        )
        return data


@dataclass
class Creature:
    """
    Resolved draft of a creature produced by one derivation pass.

    Items live in the ``items`` arena keyed by id; weapons reach their
    ammunition through ``WeaponState.ammunition``, which is resolved from the
    source's weak id reference.
    """

    source: CreatureSource
    catalog: Catalog
    level: int = 1
    prof: int = 0
    abilities: dict[str, AbilityState] = field(default_factory=dict)
    skills: dict[str, SkillState] = field(default_factory=dict)
    hp_max: int = 0
    scale: dict[str, dict[str, Any]] = field(default_factory=dict)
    items: dict[str, ItemState] = field(default_factory=dict)

    @property
    def equipment(self) -> set[str]:
        """Equipment categories this creature is proficient with."""
        return self.source.traits.equipment

    def best_ability(self, choices: set[str] | None = None) -> str | None:
        """
        Choose the ability with the highest modifier.

        Args:
            choices: Abilities to consider (defaults to all abilities)

        Returns:
            The ability key, or None if no choice exists on this creature.
            Ties keep the first ability in catalog order.
        """
        best_key, best_mod = None, None
        for key in self.abilities:
            if choices is not None and key not in choices:
                continue
            mod = self.abilities[key].mod
            if best_mod is None or mod > best_mod:
                best_key, best_mod = key, mod
        return best_key

    def roll_data(self) -> dict[str, Any]:
        """
        Build the roll-data context for formulas evaluated against this creature.

        Returns:
            A fresh nested mapping: ``abilities``, ``skills``, ``prof``,
            ``level``, ``attributes.hp`` and ``scale``
        """
        return {
            "abilities": {key: ability.to_roll_data() for key, ability in self.abilities.items()},
            "skills": {key: skill.to_roll_data() for key, skill in self.skills.items()},
            "prof": self.prof,
            "level": self.level,
            "attributes": {"hp": {"max": self.hp_max}, "prof": self.prof},
            "scale": {identifier: dict(values) for identifier, values in self.scale.items()},
        }

    def item_roll_data(self, item: ItemState) -> dict[str, Any]:
        """
        Build the roll-data context for formulas evaluated on an item.

        Adds ``item`` (the item's own resolved data) and ``mod`` (the attack
        ability modifier for weapons, otherwise 0) to the creature's context.
        """
        data = self.roll_data()
        data["item"] = item.to_roll_data()
        mod = 0
        if isinstance(item, WeaponState) and item.attack_ability in self.abilities:
            mod = self.abilities[item.attack_ability].mod
        data["mod"] = mod
        return data

    def weapons(self) -> list[WeaponState]:
        return [item for item in self.items.values() if isinstance(item, WeaponState)]
