"""The derivation pipeline: source document in, resolved creature out."""

from collections.abc import Mapping, Sequence
from graphlib import CycleError, TopologicalSorter

import structlog

from heroforge.catalog import Catalog, get_catalog
from heroforge.character.abilities import AbilitiesCapability
from heroforge.character.hit_points import HitPointsCapability
from heroforge.character.scale_values import ScaleValuesCapability
from heroforge.character.skills import SkillsCapability
from heroforge.items.activatable import ActivatableCapability
from heroforge.items.ammunition import AmmunitionCapability
from heroforge.items.weapon import WeaponCapability
from heroforge.models.sources import AmmunitionSource, CreatureSource, ItemSource, WeaponSource

from .entities import AmmunitionState, Creature, ItemState, WeaponState
from .steps import CreatureStep, ItemStep, Phase

logger = structlog.get_logger(__name__)


class DerivationError(Exception):
    """Raised when a source document cannot be derived (e.g. an ammunition cycle)."""

    pass


def default_creature_steps() -> list[CreatureStep]:
    return [AbilitiesCapability(), SkillsCapability(), HitPointsCapability(), ScaleValuesCapability()]


def default_item_steps() -> list[ItemStep]:
    return [ActivatableCapability(), AmmunitionCapability(), WeaponCapability()]


def item_order(items: Mapping[str, ItemSource]) -> list[str]:
    """
    Order item ids so referenced items come before the items referencing them.

    Only references whose target exists are edges; a dangling reference is
    handled later as missing ammunition.

    Raises:
        DerivationError: If the references form a cycle
    """
    sorter: TopologicalSorter[str] = TopologicalSorter()
    for item_id, item in items.items():
        reference = getattr(item, "ammunition", None)
        if reference and reference in items:
            sorter.add(item_id, reference)
        else:
            sorter.add(item_id)

    try:
        return list(sorter.static_order())
    except CycleError as e:
        cycle = e.args[1] if len(e.args) > 1 else []
        raise DerivationError(f"Ammunition references form a cycle: {' -> '.join(cycle)}") from e


def create_item_state(item_id: str, source: ItemSource) -> ItemState:
    if isinstance(source, WeaponSource):
        return WeaponState(id=item_id, kind=source.kind, source=source)
    if isinstance(source, AmmunitionSource):
        return AmmunitionState(id=item_id, kind=source.kind, source=source)
    return ItemState(id=item_id, kind=source.kind, source=source)


class DerivationPipeline:
    """
    Runs every capability step over a creature in three phases.

    Within a phase the creature steps run first, in order, then the item steps
    run over each item in dependency order. Each pass builds a fresh
    ``Creature`` and never modifies the source document.

    Args:
        catalog: Rules catalog (defaults to the configured catalog)
        creature_steps: Creature capability steps, in order
        item_steps: Item capability steps, in order
    """

    def __init__(
        self,
        catalog: Catalog | None = None,
        creature_steps: Sequence[CreatureStep] | None = None,
        item_steps: Sequence[ItemStep] | None = None,
    ) -> None:
        self.catalog = catalog or get_catalog()
        self.creature_steps = list(creature_steps) if creature_steps is not None else default_creature_steps()
        self.item_steps = list(item_steps) if item_steps is not None else default_item_steps()

    def prepare(self, source: CreatureSource) -> Creature:
        """
        Derive a creature from its source document.

        Args:
            source: Validated source document

        Returns:
            The resolved creature

        Raises:
            DerivationError: If item references form a cycle
        """
        order = item_order(source.items)
        creature = Creature(
            source=source,
            catalog=self.catalog,
            level=source.level,
            prof=self.catalog.proficiency_bonus(source.level),
            items={item_id: create_item_state(item_id, source.items[item_id]) for item_id in order},
        )

        for phase in Phase:
            for step in self.creature_steps:
                step.run(phase, creature)
            for item_id in order:
                item = creature.items[item_id]
                for item_step in self.item_steps:
                    item_step.run(phase, item, creature)

        logger.debug(
            "creature_derived",
            name=source.name,
            level=creature.level,
            items=len(creature.items),
            hp_max=creature.hp_max,
        )
        return creature
