"""Scale values exposed to roll data."""

from heroforge.advancement.base import create_advancement
from heroforge.advancement.scale_value import ScaleValueAdvancement, scale_roll_data
from heroforge.pipeline.entities import Creature
from heroforge.pipeline.steps import CreatureStep


class ScaleValuesCapability(CreatureStep):
    """Resolves every scale value at the creature's level into ``scale.<identifier>``."""

    name = "scale_values"

    def prepare_base(self, creature: Creature) -> None:
        creature.scale = {}
        for source in creature.source.advancements.values():
            advancement = create_advancement(source)
            if not isinstance(advancement, ScaleValueAdvancement):
                continue
            value = advancement.value_for_level(creature.level)
            if value is not None:
                creature.scale[advancement.identifier] = scale_roll_data(
                    value, advancement.configuration.type
                )
