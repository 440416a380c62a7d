"""Scale value advancement: values that change at specific levels."""

from collections.abc import Mapping
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field

from heroforge.models.changes import ChangeSet
from heroforge.models.sources import AdvancementSource, CreatureSource

from .base import Advancement, AdvancementState, register_advancement

logger = structlog.get_logger(__name__)

ScaleType = Literal["number", "dice", "string", "distance"]


class ScaleNumber(BaseModel):
    value: int | float | None = None


class ScaleDice(BaseModel):
    number: int | None = Field(default=None, ge=1)
    denomination: int | None = Field(default=None, ge=2)


class ScaleString(BaseModel):
    value: str | None = None


class ScaleDistance(BaseModel):
    value: int | float | None = Field(default=None, ge=0)
    units: str | None = None


SCALE_TYPES: dict[str, type[BaseModel]] = {
    "number": ScaleNumber,
    "dice": ScaleDice,
    "string": ScaleString,
    "distance": ScaleDistance,
}


class ScaleValueConfiguration(BaseModel):
    """
    Configuration for a scale value.

    Attributes:
        identifier: Key under ``scale`` in roll data
        type: Shape of each entry
        scale: Authored table of level (string key) to entry
    """

    identifier: str = Field(pattern=r"^[A-Za-z_]\w*$")
    type: ScaleType = "string"
    scale: dict[str, dict[str, Any]] = Field(default_factory=dict)


def clean_entry(entry: Mapping[str, Any] | None, scale_type: str) -> dict[str, Any]:
    """Validate an entry against its scale type and drop fields that are not set."""
    if not entry:
        return {}
    model = SCALE_TYPES[scale_type].model_validate(dict(entry))
    return {key: value for key, value in model.model_dump().items() if value not in (None, "")}


def _levels(table: Mapping[str, Any]) -> list[str]:
    return sorted((key for key in table if str(key).isdigit()), key=int)


def value_for_level(table: Mapping[str, Mapping[str, Any]], level: int) -> dict[str, Any] | None:
    """
    Effective value at a level.

    Every entry at or below ``level`` is merged in level order, field by
    field: a field present at a higher level overrides the inherited one, and
    a field absent at a higher level never clears it.

    Args:
        table: Level (string key) to entry
        level: Level to read

    Returns:
        The merged entry, or None when no level at or below has an entry

    Examples:
        >>> value_for_level({"1": {"number": 1, "denomination": 6}, "3": {"denomination": 8}}, 3)
        {'number': 1, 'denomination': 8}
    """
    merged: dict[str, Any] = {}
    for key in _levels(table):
        if int(key) > level:
            break
        for field, value in (table[key] or {}).items():
            if value is not None:
                merged[field] = value
    return merged or None


def normalize_scale(table: Mapping[str, Mapping[str, Any]]) -> dict[str, dict[str, Any]]:
    """
    Clean a whole scale table.

    Empty entries are dropped, and so is any entry that leaves the effective
    value inherited from the preceding levels unchanged.

    Args:
        table: Level (string key) to entry

    Returns:
        The normalized table
    """
    normalized: dict[str, dict[str, Any]] = {}
    last: dict[str, Any] | None = None
    for key in _levels(table):
        entry = {field: value for field, value in (table[key] or {}).items() if value not in (None, "")}
        if not entry:
            continue
        merged = {**(last or {}), **entry}
        if merged == last:
            continue
        normalized[key] = entry
        last = merged
    return normalized


def scale_roll_data(value: Mapping[str, Any], scale_type: str) -> dict[str, Any]:
    """
    Shape an effective scale value for roll data.

    Dice values expose ``number``, ``denomination``, ``die`` and ``formula``,
    so ``@scale.<identifier>`` resolves to the dice expression. Other types
    expose their fields, and ``@scale.<identifier>`` resolves to ``value``.
    """
    data = dict(value)
    if scale_type == "dice":
        number = value.get("number")
        denomination = value.get("denomination")
        data["die"] = f"d{denomination}" if denomination else ""
        data["formula"] = f"{number or ''}d{denomination}" if denomination else ""
    return data


@register_advancement
class ScaleValueAdvancement(Advancement):
    """
    Records the scale entry reached at each level.

    ``configuration.scale`` is the authored table; ``value`` holds the entries
    actually applied, keyed by level. An entry that would leave the inherited
    value unchanged is not recorded, so the level simply inherits.
    """

    type = "scale-value"

    def __init__(self, source: AdvancementSource) -> None:
        super().__init__(source)
        self.configuration = ScaleValueConfiguration.model_validate(source.configuration)

    @property
    def identifier(self) -> str:
        return self.configuration.identifier

    def applies_at(self, level: int) -> bool:
        return level >= self.level

    def state_for_level(self, level: int) -> AdvancementState:
        if str(level) in self.value:
            return AdvancementState.APPLIED
        return AdvancementState.UNAPPLIED

    def value_for_level(self, level: int) -> dict[str, Any] | None:
        """Effective applied value at a level."""
        return value_for_level(self.value, level)

    def apply(
        self, creature: CreatureSource, level: int, data: Mapping[str, Any] | None = None
    ) -> ChangeSet:
        if data is not None and "value" in data:
            entry = data["value"]
        else:
            entry = self.configuration.scale.get(str(level))
        entry = clean_entry(entry, self.configuration.type)

        changes = ChangeSet()
        if not entry:
            return changes

        inherited = value_for_level(self.value, level - 1)
        if inherited is not None and {**inherited, **entry} == inherited:
            logger.debug("scale_value_collapsed", advancement=self.id, level=level)
            if str(level) in self.value:
                changes.delete(self.value_path(level))
            return changes

        changes.set(self.value_path(level), entry)
        logger.info("advancement_applied", advancement=self.id, type=self.type, level=level, value=entry)
        return changes

    def reverse(self, creature: CreatureSource, level: int) -> tuple[ChangeSet, dict[str, Any]]:
        retained: dict[str, Any] = {}
        changes = ChangeSet()
        if str(level) in self.value:
            retained["value"] = dict(self.value[str(level)])
            changes.delete(self.value_path(level))
        logger.info("advancement_reversed", advancement=self.id, type=self.type, level=level)
        return changes, retained
