"""Update stores: where advancement and action change sets are committed.

The derivation core never writes storage itself. It produces ``ChangeSet``
objects and hands them to an ``UpdateStore``. Two adapters are provided: an
in-memory store for tests and embedding, and a SQLAlchemy store that keeps each
creature's source document as JSON.
"""

from typing import Any, Protocol

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from heroforge.models.changes import ChangeSet, apply_changes
from heroforge.models.sources import CreatureSource

from .engine import get_session_factory, session_scope
from .models.creature import CreatureRecord

logger = structlog.get_logger(__name__)


class CreatureNotFoundError(Exception):
    """Raised when a change set targets a creature the store does not hold."""

    pass


class UpdateStore(Protocol):
    """Persistence boundary for source change sets."""

    async def commit(self, creature_id: str, changes: ChangeSet) -> None:
        """Apply a change set to the stored source document of a creature."""
        ...


class MemoryStore:
    """Update store that keeps source documents in a dict."""

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}
        self.history: list[tuple[str, dict[str, Any]]] = []

    async def save(self, creature_id: str, source: CreatureSource) -> None:
        self.documents[creature_id] = source.model_dump(mode="json")

    async def load(self, creature_id: str) -> CreatureSource | None:
        document = self.documents.get(creature_id)
        return CreatureSource.model_validate(document) if document is not None else None

    async def commit(self, creature_id: str, changes: ChangeSet) -> None:
        if creature_id not in self.documents:
            raise CreatureNotFoundError(f"Creature '{creature_id}' not found")
        payload = changes.to_json()
        self.documents[creature_id] = apply_changes(self.documents[creature_id], payload)
        self.history.append((creature_id, payload))


class DatabaseStore:
    """Update store backed by the ``creatures`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        self._session_factory = session_factory

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory or get_session_factory()

    async def save(self, creature_id: str, source: CreatureSource) -> None:
        """Insert or replace a creature's source document."""
        document = source.model_dump(mode="json")
        async with session_scope(self.session_factory) as session:
            record = await session.get(CreatureRecord, creature_id)
            if record is None:
                session.add(CreatureRecord(id=creature_id, name=source.name, source=document))
            else:
                record.name = source.name
                record.source = document
                record.revision += 1

        logger.info("creature_saved", creature_id=creature_id, name=source.name)

    async def load(self, creature_id: str) -> CreatureSource | None:
        """Load a creature's source document."""
        async with session_scope(self.session_factory) as session:
            record = await session.get(CreatureRecord, creature_id)
            if record is None:
                return None
            return CreatureSource.model_validate(record.source)

    async def commit(self, creature_id: str, changes: ChangeSet) -> None:
        payload = changes.to_json()
        async with session_scope(self.session_factory) as session:
            record = await session.get(CreatureRecord, creature_id)
            if record is None:
                raise CreatureNotFoundError(f"Creature '{creature_id}' not found")

            document = apply_changes(record.source, payload)
            # Reject change sets that would leave an invalid document behind
            CreatureSource.model_validate(document)
            record.source = document
            record.name = document.get("name", record.name)
            record.revision += 1

        logger.info("changes_committed", creature_id=creature_id, paths=sorted(payload))

