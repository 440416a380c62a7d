"""Limited uses and activation for items."""

import math

import structlog

from heroforge.dice.roller import DiceRoller
from heroforge.formula import resolve, simplify_bonus
from heroforge.models.changes import ChangeSet
from heroforge.pipeline.entities import Creature, ItemState, UsesState
from heroforge.pipeline.steps import ItemStep

logger = structlog.get_logger(__name__)


def consume_use(item: ItemState, amount: int = 1) -> ChangeSet:
    """
    Change set spending uses of an item.

    Raises:
        ValueError: If the item tracks uses and not enough remain
    """
    if item.uses.max is None:
        return ChangeSet()
    if (item.uses.available or 0) < amount:
        raise ValueError(f"Item '{item.id}' has no uses remaining")
    return ChangeSet().set(f"items.{item.id}.uses.spent", item.uses.spent + amount)


def recover_uses(item: ItemState, creature: Creature, roller: DiceRoller | None = None) -> ChangeSet:
    """
    Change set recovering an item's uses.

    A blank recovery formula restores every use; otherwise the formula is
    rolled and that many uses are recovered.
    """
    if not item.uses.spent:
        return ChangeSet()
    formula = item.source.uses.formula
    if not formula:
        recovered = item.uses.spent
    else:
        expression = resolve(formula, creature.item_roll_data(item))
        recovered = int((roller or DiceRoller()).roll(expression).total)
    spent = max(item.uses.spent - max(recovered, 0), 0)
    logger.debug("item_uses_recovered", item=item.id, recovered=item.uses.spent - spent)
    return ChangeSet().set(f"items.{item.id}.uses.spent", spent)


class ActivatableCapability(ItemStep):
    """
    Derives an item's limited uses.

    ``uses.max`` is a formula resolved against the full roll data in the final
    phase, so it can reference any derived creature or item value.
    """

    name = "activatable"

    def prepare_base(self, item: ItemState, creature: Creature) -> None:
        uses = item.source.uses
        period = uses.period if uses.period in creature.catalog.recovery_periods else None
        item.uses = UsesState(spent=uses.spent, period=uses.period, recovery=period)

    def prepare_final(self, item: ItemState, creature: Creature) -> None:
        formula = item.source.uses.max
        if not formula:
            return
        maximum = math.floor(simplify_bonus(formula, creature.item_roll_data(item)))
        item.uses.max = maximum
        item.uses.available = maximum - item.uses.spent
