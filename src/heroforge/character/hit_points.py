"""Maximum hit points from hit points advancements."""

from heroforge.advancement.base import create_advancement
from heroforge.advancement.hit_points import HitPointsAdvancement
from heroforge.pipeline.entities import Creature
from heroforge.pipeline.steps import CreatureStep


class HitPointsCapability(CreatureStep):
    """
    Derives maximum hit points.

    max = hit points recorded by every hit points advancement up to the
    creature's level + hit point ability modifier * level
    """

    name = "hit_points"

    def prepare_derived(self, creature: Creature) -> None:
        rolled = 0
        for source in creature.source.advancements.values():
            advancement = create_advancement(source)
            if isinstance(advancement, HitPointsAdvancement):
                rolled += advancement.total(creature.level)

        ability = creature.abilities.get(creature.catalog.hit_point_ability)
        mod = ability.mod if ability else 0
        creature.hp_max = max(rolled + mod * creature.level, 0)
