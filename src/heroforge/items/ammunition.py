"""Ammunition derivation and the weapon to ammunition reference."""

import structlog

from heroforge.models.changes import ChangeSet
from heroforge.pipeline.entities import AmmunitionState, Creature, ItemState, WeaponState
from heroforge.pipeline.steps import ItemStep

logger = structlog.get_logger(__name__)


def resolve_ammunition(weapon: WeaponState, creature: Creature) -> AmmunitionState | None:
    """
    Look up the ammunition a weapon references by id.

    A missing item, or one that is not ammunition, counts as no ammunition so
    the weapon falls back to its own statistics.
    """
    ammunition_id = weapon.source.ammunition
    if not ammunition_id:
        return None
    target = creature.items.get(ammunition_id)
    if isinstance(target, AmmunitionState):
        return target
    logger.warning(
        "ammunition_reference_unresolved",
        weapon=weapon.id,
        ammunition=ammunition_id,
        reason="missing" if target is None else f"not ammunition ({target.kind})",
    )
    return None


def load_ammunition(weapon: WeaponState, ammunition_id: str | None) -> ChangeSet:
    """Change set pointing a weapon at different ammunition (or none)."""
    changes = ChangeSet()
    if ammunition_id:
        changes.set(f"items.{weapon.id}.ammunition", ammunition_id)
    else:
        changes.delete(f"items.{weapon.id}.ammunition")
    return changes


class AmmunitionCapability(ItemStep):
    """
    Resolves weapon ammunition references and derives ammunition statistics.

    Base phase (weapons): resolve the weak ammunition reference.
    Derived phase (ammunition): penetration value and critical threshold.
    """

    name = "ammunition"

    def applies_to(self, item: ItemState) -> bool:
        return isinstance(item, (AmmunitionState, WeaponState))

    def prepare_base(self, item: ItemState, creature: Creature) -> None:
        if isinstance(item, WeaponState):
            item.ammunition = resolve_ammunition(item, creature)

    def prepare_derived(self, item: ItemState, creature: Creature) -> None:
        if isinstance(item, AmmunitionState):
            item.penetration_value = item.source.penetration_value
            item.critical_threshold = item.source.overrides.critical_threshold
