"""Base advancement type and registry."""

from collections.abc import Mapping
from enum import StrEnum
from typing import Any, ClassVar

from heroforge.models.changes import ChangeSet
from heroforge.models.sources import AdvancementSource, CreatureSource


class AdvancementState(StrEnum):
    """Whether an advancement's grant is currently reflected in the source."""

    UNAPPLIED = "unapplied"
    APPLIED = "applied"


class InvalidTraitType(Exception):
    """Raised when an advancement is configured with an unrecognized type."""

    pass


class Advancement:
    """
    A level-based grant that can be applied, reversed and restored.

    Advancements never write to storage. Each operation reads the creature's
    current source and returns a ``ChangeSet`` covering both the creature
    fields it touches and the advancement's own recorded ``value``; the caller
    commits it across the persistence boundary.
    """

    type: ClassVar[str] = ""

    def __init__(self, source: AdvancementSource) -> None:
        self.source = source

    @property
    def id(self) -> str:
        return self.source.id

    @property
    def level(self) -> int:
        return self.source.level

    @property
    def value(self) -> dict[str, Any]:
        return self.source.value

    def value_path(self, *keys: str | int) -> str:
        """Dotted source path into this advancement's recorded value."""
        return ".".join(["advancements", self.id, "value", *(str(key) for key in keys)])

    def applies_at(self, level: int) -> bool:
        """Whether this advancement takes effect at a level."""
        return level == self.level

    def state_for_level(self, level: int) -> AdvancementState:
        raise NotImplementedError

    def apply(
        self, creature: CreatureSource, level: int, data: Mapping[str, Any] | None = None
    ) -> ChangeSet:
        """
        Apply this advancement's grant for a level.

        Args:
            creature: Current creature source
            level: Level being applied
            data: Proposed input (shape depends on the advancement type)

        Returns:
            Changes to commit
        """
        raise NotImplementedError

    def reverse(self, creature: CreatureSource, level: int) -> tuple[ChangeSet, dict[str, Any]]:
        """
        Undo this advancement's grant for a level.

        Returns:
            Changes to commit, and the retained data accepted by ``restore``
        """
        raise NotImplementedError

    def restore(self, creature: CreatureSource, level: int, data: Mapping[str, Any]) -> ChangeSet:
        """Re-apply previously retained data without re-reading fresh input."""
        return self.apply(creature, level, data)


ADVANCEMENT_TYPES: dict[str, type[Advancement]] = {}


def register_advancement(cls: type[Advancement]) -> type[Advancement]:
    """Class decorator registering an advancement type under ``cls.type``."""
    ADVANCEMENT_TYPES[cls.type] = cls
    return cls


def create_advancement(source: AdvancementSource) -> Advancement:
    """
    Instantiate the advancement implementation for a source record.

    Args:
        source: Advancement source data

    Returns:
        The advancement

    Raises:
        InvalidTraitType: If the type is not registered
    """
    cls = ADVANCEMENT_TYPES.get(source.type)
    if cls is None:
        raise InvalidTraitType(f"Invalid advancement type '{source.type}' for advancement '{source.id}'")
    return cls(source)
