"""Weapon derivation: modes, rounds, damage, critical threshold and attack modifiers."""

import math

import structlog

from heroforge.dice.damage import DamageSpec
from heroforge.formula import simplify_bonus
from heroforge.models.changes import ChangeSet
from heroforge.pipeline.entities import Creature, ItemState, RoundsState, WeaponState
from heroforge.pipeline.steps import ItemStep

from .modes import available_modes, rounds_to_spend, select_mode

logger = structlog.get_logger(__name__)


def attack_ability(weapon: WeaponState, creature: Creature) -> str | None:
    """
    Ability used for attacks with a weapon.

    An explicit weapon override wins. Otherwise the catalog's melee/ranged
    defaults apply (each overridable creature-wide). A ``finesse`` weapon uses
    the ranged ability only when its modifier is strictly higher.
    """
    if weapon.source.overrides.ability:
        return weapon.source.overrides.ability

    melee = creature.catalog.default_abilities.get("melee")
    ranged = creature.catalog.default_abilities.get("ranged")
    overrides = creature.source.overrides.abilities
    melee = overrides.get("melee") or melee
    ranged = overrides.get("ranged") or ranged

    if "finesse" in weapon.properties:
        melee_ability = creature.abilities.get(melee) if melee else None
        ranged_ability = creature.abilities.get(ranged) if ranged else None
        if ranged_ability and (melee_ability is None or ranged_ability.mod > melee_ability.mod):
            return ranged
        return melee

    return ranged if weapon.weapon_type == "ranged" else melee


def damage_ability(weapon: WeaponState, creature: Creature) -> str | None:
    """Ability added to damage; offhand attacks add none."""
    if weapon.mode == "offhand":
        return None
    return attack_ability(weapon, creature)


def critical_threshold(weapon: WeaponState, creature: Creature) -> int:
    """
    Lowest natural roll that scores a critical hit.

    The minimum of the creature-wide ``all`` and per-type overrides, the
    ammunition override and the weapon override; the challenge die's highest
    face when none is set.
    """
    actor = creature.source.overrides.critical_threshold
    candidates = [
        actor.get("all"),
        actor.get(weapon.weapon_type),
        weapon.ammunition.critical_threshold if weapon.ammunition else None,
        weapon.source.overrides.critical_threshold,
    ]
    thresholds = [value for value in candidates if value is not None]
    return min(thresholds) if thresholds else creature.catalog.challenge_die


def compose_damage(weapon: WeaponState, creature: Creature) -> DamageSpec:
    """
    Damage for the weapon's current mode and ammunition.

    - ``regular`` ammunition replaces every damage field it sets
    - ``modify`` ammunition adds dice and denomination steps
    - ``burst`` adds one die
    - ``versatile`` weapons used ``twoHanded`` step the denomination up once
    """
    steps = creature.catalog.dice_steps
    source = weapon.source.damage
    damage = DamageSpec(source.number, source.denomination, source.type)

    if weapon.ammunition:
        ammo = weapon.ammunition.source.damage
        if ammo.mode == "regular":
            damage = DamageSpec(
                ammo.number if ammo.number is not None else damage.number,
                ammo.denomination if ammo.denomination is not None else damage.denomination,
                ammo.type or damage.type,
            )
        else:
            damage = damage.modify(steps, number=ammo.number, denomination=ammo.denomination)
            if ammo.type:
                damage = DamageSpec(damage.number, damage.denomination, ammo.type)

    if weapon.mode == "burst":
        damage = damage.modify(steps, number=1)
    if "versatile" in weapon.properties and weapon.mode == "twoHanded":
        damage = damage.modify(steps, denomination=1)
    return damage


def can_attack(weapon: WeaponState, creature: Creature) -> bool:
    """Whether the weapon has the rounds its current mode needs and is not jammed."""
    if weapon.source.jammed:
        return False
    return rounds_to_spend(weapon, creature.catalog) <= weapon.rounds.available


def spend_rounds(weapon: WeaponState, creature: Creature) -> ChangeSet:
    """
    Change set spending the rounds for one attack in the current mode.

    Returns an empty change set when the weapon cannot attack.
    """
    count = rounds_to_spend(weapon, creature.catalog)
    if not count:
        return ChangeSet()
    if not can_attack(weapon, creature):
        logger.warning(
            "weapon_cannot_attack",
            weapon=weapon.id,
            mode=weapon.mode,
            needed=count,
            available=weapon.rounds.available,
            jammed=weapon.source.jammed,
        )
        return ChangeSet()
    return ChangeSet().set(f"items.{weapon.id}.rounds.spent", weapon.rounds.spent + count)


def reload(weapon: WeaponState) -> ChangeSet:
    """Change set refilling the magazine and clearing a jam."""
    changes = ChangeSet()
    if weapon.rounds.spent:
        changes.set(f"items.{weapon.id}.rounds.spent", 0)
    if weapon.source.jammed:
        changes.set(f"items.{weapon.id}.jammed", False)
    return changes


class WeaponCapability(ItemStep):
    """Derives a weapon's mode, rounds, damage, critical threshold and attack modifiers."""

    name = "weapon"

    def applies_to(self, item: ItemState) -> bool:
        return isinstance(item, WeaponState)

    def prepare_base(self, item: WeaponState, creature: Creature) -> None:  # type: ignore[override]
        item.modes = available_modes(item.weapon_type, item.properties, creature.catalog)
        item.mode = select_mode(item.modes, item.source.mode)
        if item.source.mode and item.mode != item.source.mode:
            logger.debug(
                "weapon_mode_fallback", weapon=item.id, requested=item.source.mode, mode=item.mode
            )

    def prepare_derived(self, item: WeaponState, creature: Creature) -> None:  # type: ignore[override]
        ammunition = item.ammunition
        item.penetration_value = item.source.penetration_value + (
            ammunition.penetration_value if ammunition else 0
        )

        rounds = item.source.rounds
        spent = min(rounds.spent, rounds.capacity)
        item.rounds = RoundsState(
            spent=spent,
            capacity=rounds.capacity,
            burst=rounds.burst,
            available=rounds.capacity - spent,
            type=rounds.type,
        )

        item.damage = compose_damage(item, creature)
        item.critical_threshold = critical_threshold(item, creature)
        item.attack_ability = attack_ability(item, creature)
        item.damage_ability = damage_ability(item, creature)
        item.proficient = bool(item.source.type.category) and item.source.type.category in creature.equipment

    def prepare_final(self, item: WeaponState, creature: Creature) -> None:  # type: ignore[override]
        roll_data = creature.item_roll_data(item)
        weapon_type = item.weapon_type
        ammunition = item.ammunition

        actor_attack = creature.source.bonuses.attack
        attack_terms = [
            actor_attack.get("all"),
            actor_attack.get(weapon_type),
            item.source.bonuses.attack,
            ammunition.source.bonuses.attack if ammunition else None,
        ]
        actor_damage = creature.source.bonuses.damage
        damage_terms = [
            actor_damage.get("all"),
            actor_damage.get(weapon_type),
            item.source.bonuses.damage,
            ammunition.source.bonuses.damage if ammunition else None,
        ]

        ability = creature.abilities.get(item.attack_ability or "")
        prof = creature.prof if item.proficient else 0
        item.attack_mod = math.floor(
            (ability.mod if ability else 0)
            + prof
            + sum(simplify_bonus(term, roll_data) for term in attack_terms)
        )

        ability = creature.abilities.get(item.damage_ability or "")
        item.damage_mod = math.floor(
            (ability.mod if ability else 0) + sum(simplify_bonus(term, roll_data) for term in damage_terms)
        )
