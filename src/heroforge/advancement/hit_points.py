"""Hit points advancement."""

from collections.abc import Mapping
from typing import Any

import structlog
from pydantic import BaseModel, Field

from heroforge.models.changes import ChangeSet
from heroforge.models.sources import AdvancementSource, CreatureSource

from .base import Advancement, AdvancementState, register_advancement

logger = structlog.get_logger(__name__)

AVERAGE = "avg"
MAXIMUM = "max"


class HitPointsConfiguration(BaseModel):
    """Configuration for hit points: the number of faces on the hit die."""

    hit_die: int = Field(default=8, gt=0)


def hit_points_for_value(value: Any, hit_die: int) -> int:
    """Convert a recorded per-level value into hit points.

    Args:
        value: An explicit roll, ``"avg"`` or ``"max"``
        hit_die: Faces on the hit die

    Returns:
        Hit points gained (0 for anything unrecognized)

    Examples:
        >>> hit_points_for_value("avg", 10)
        6
        >>> hit_points_for_value("max", 10)
        10
    """
    if value == MAXIMUM:
        return hit_die
    if value == AVERAGE:
        return hit_die // 2 + 1
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return 0


@register_advancement
class HitPointsAdvancement(Advancement):
    """
    Records the hit points gained at every level.

    ``value`` maps each level (as a string key) to an explicit roll between 1
    and the hit die, ``"avg"`` or ``"max"``. The first level always takes the
    maximum when nothing else is provided.
    """

    type = "hit-points"

    def __init__(self, source: AdvancementSource) -> None:
        super().__init__(source)
        self.configuration = HitPointsConfiguration.model_validate(source.configuration)

    @property
    def hit_die(self) -> int:
        return self.configuration.hit_die

    def applies_at(self, level: int) -> bool:
        return level >= self.level

    def state_for_level(self, level: int) -> AdvancementState:
        if str(level) in self.value:
            return AdvancementState.APPLIED
        return AdvancementState.UNAPPLIED

    def is_valid_value(self, value: Any) -> bool:
        if value in (AVERAGE, MAXIMUM):
            return True
        if isinstance(value, int) and not isinstance(value, bool):
            return 1 <= value <= self.hit_die
        return False

    def total(self, level: int) -> int:
        """Hit points recorded for every level up to and including ``level``."""
        return sum(
            hit_points_for_value(value, self.hit_die)
            for key, value in self.value.items()
            if key.isdigit() and int(key) <= level
        )

    def apply(
        self, creature: CreatureSource, level: int, data: Mapping[str, Any] | None = None
    ) -> ChangeSet:
        values = {str(key): value for key, value in (data or {}).items()}
        value = values.get(str(level))
        if value is None and level == 1:
            value = MAXIMUM

        changes = ChangeSet()
        if not self.is_valid_value(value):
            logger.warning(
                "hit_points_value_invalid",
                advancement=self.id,
                level=level,
                value=value,
                hit_die=self.hit_die,
            )
            return changes

        changes.set(self.value_path(level), value)
        logger.info("advancement_applied", advancement=self.id, type=self.type, level=level, value=value)
        return changes

    def reverse(self, creature: CreatureSource, level: int) -> tuple[ChangeSet, dict[str, Any]]:
        retained: dict[str, Any] = {}
        changes = ChangeSet()
        if str(level) in self.value:
            retained[str(level)] = self.value[str(level)]
            changes.delete(self.value_path(level))
        logger.info("advancement_reversed", advancement=self.id, type=self.type, level=level)
        return changes, retained
