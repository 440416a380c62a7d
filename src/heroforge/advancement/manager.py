"""Serialized application of advancements to creatures."""

import asyncio
from collections.abc import Mapping
from typing import Any

import structlog

from heroforge.database.store import UpdateStore
from heroforge.models.changes import ChangeSet, apply_changes
from heroforge.models.sources import CreatureSource

from .base import Advancement, create_advancement

logger = structlog.get_logger(__name__)


class AdvancementManager:
    """
    Applies, reverses and restores advancements for tracked creatures.

    Every operation on a creature holds that creature's lock from reading its
    source until the change set has been committed to the store and mirrored
    onto the in-memory copy, so an apply followed by a reverse never
    interleaves. Operations on different creatures run independently.

    Data returned by ``reverse`` (and retained by ``level_down``) can be passed
    back to ``restore`` (or is reused by ``level_up``) to re-grant exactly what
    was removed.
    """

    def __init__(self, store: UpdateStore, max_level: int = 20) -> None:
        self.store = store
        self.max_level = max_level
        self._sources: dict[str, CreatureSource] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._retained: dict[str, dict[tuple[str, int], dict[str, Any]]] = {}

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    def track(self, creature_id: str, source: CreatureSource) -> None:
        """Start managing a creature whose source is already held by the store."""
        self._sources[creature_id] = source
        self._locks.setdefault(creature_id, asyncio.Lock())
        self._retained.setdefault(creature_id, {})

    def source(self, creature_id: str) -> CreatureSource:
        """Current in-memory source of a tracked creature."""
        try:
            return self._sources[creature_id]
        except KeyError:
            raise KeyError(f"Creature '{creature_id}' is not tracked") from None

    def retained(self, creature_id: str) -> dict[tuple[str, int], dict[str, Any]]:
        """Data retained from reversals, keyed by (advancement id, level)."""
        return dict(self._retained.get(creature_id, {}))

    def _lock(self, creature_id: str) -> asyncio.Lock:
        self.source(creature_id)
        return self._locks[creature_id]

    def _advancement(self, creature_id: str, advancement_id: str) -> Advancement:
        source = self.source(creature_id)
        if advancement_id not in source.advancements:
            raise KeyError(f"Advancement '{advancement_id}' not found on creature '{creature_id}'")
        return create_advancement(source.advancements[advancement_id])

    async def _commit(self, creature_id: str, changes: ChangeSet) -> CreatureSource:
        """Commit changes to the store, then mirror them onto the in-memory source."""
        if changes:
            await self.store.commit(creature_id, changes)
            document = apply_changes(self._sources[creature_id].model_dump(mode="json"), changes.to_json())
            self._sources[creature_id] = CreatureSource.model_validate(document)
        return self._sources[creature_id]

    # ------------------------------------------------------------------
    # Single advancement operations
    # ------------------------------------------------------------------

    async def apply(
        self,
        creature_id: str,
        advancement_id: str,
        level: int,
        data: Mapping[str, Any] | None = None,
    ) -> CreatureSource:
        """Apply one advancement at a level and commit the result."""
        async with self._lock(creature_id):
            advancement = self._advancement(creature_id, advancement_id)
            changes = advancement.apply(self.source(creature_id), level, data)
            return await self._commit(creature_id, changes)

    async def reverse(self, creature_id: str, advancement_id: str, level: int) -> dict[str, Any]:
        """Reverse one advancement at a level, returning the data needed to restore it."""
        async with self._lock(creature_id):
            advancement = self._advancement(creature_id, advancement_id)
            changes, retained = advancement.reverse(self.source(creature_id), level)
            await self._commit(creature_id, changes)
            return retained

    async def restore(
        self,
        creature_id: str,
        advancement_id: str,
        level: int,
        data: Mapping[str, Any],
    ) -> CreatureSource:
        """Re-apply data previously returned by ``reverse``."""
        async with self._lock(creature_id):
            advancement = self._advancement(creature_id, advancement_id)
            changes = advancement.restore(self.source(creature_id), level, data)
            return await self._commit(creature_id, changes)

    # ------------------------------------------------------------------
    # Level changes
    # ------------------------------------------------------------------

    async def level_up(
        self,
        creature_id: str,
        choices: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> CreatureSource:
        """
        Raise a creature one level and apply every advancement for the new level.

        Advancements reversed by an earlier ``level_down`` are restored from
        their retained data instead of reading ``choices``.

        Args:
            creature_id: Tracked creature
            choices: Input per advancement id for the new level

        Returns:
            The updated source

        Raises:
            ValueError: If the creature is already at the maximum level
        """
        choices = choices or {}
        async with self._lock(creature_id):
            level = self.source(creature_id).level + 1
            if level > self.max_level:
                raise ValueError(f"Creature '{creature_id}' is already at the maximum level")

            await self._commit(creature_id, ChangeSet().set("level", level))
            retained = self._retained[creature_id]

            for advancement_id in list(self.source(creature_id).advancements):
                advancement = self._advancement(creature_id, advancement_id)
                if not advancement.applies_at(level):
                    continue
                current = self.source(creature_id)
                if (advancement_id, level) in retained:
                    changes = advancement.restore(current, level, retained.pop((advancement_id, level)))
                else:
                    changes = advancement.apply(current, level, choices.get(advancement_id))
                await self._commit(creature_id, changes)

            logger.info("creature_leveled_up", creature_id=creature_id, level=level)
            return self.source(creature_id)

    async def level_down(self, creature_id: str) -> CreatureSource:
        """
        Reverse every advancement for the current level and drop one level.

        Advancements are reversed in the opposite order to the one they were
        applied in; their data is retained for a later ``level_up``.

        Raises:
            ValueError: If the creature is at level 1
        """
        async with self._lock(creature_id):
            level = self.source(creature_id).level
            if level <= 1:
                raise ValueError(f"Creature '{creature_id}' cannot drop below level 1")

            retained = self._retained[creature_id]
            for advancement_id in reversed(list(self.source(creature_id).advancements)):
                advancement = self._advancement(creature_id, advancement_id)
                if not advancement.applies_at(level):
                    continue
                changes, data = advancement.reverse(self.source(creature_id), level)
                if data:
                    retained[(advancement_id, level)] = data
                await self._commit(creature_id, changes)

            await self._commit(creature_id, ChangeSet().set("level", level - 1))
            logger.info("creature_leveled_down", creature_id=creature_id, level=level - 1)
            return self.source(creature_id)
