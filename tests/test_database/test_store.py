"""Tests for the SQLAlchemy creature store."""

import pytest
from pydantic import ValidationError
from sqlalchemy import JSON

from heroforge.advancement import AdvancementManager
from heroforge.database import CreatureNotFoundError, session_scope
from heroforge.database.models import CreatureRecord
from heroforge.models.changes import ChangeSet


@pytest.fixture
def hero(make_source):
    return make_source(
        {
            "name": "Ada",
            "abilities": {"dex": {"value": 14}},
            "traits": {"equipment": ["basic"]},
            "items": {"pistol": {"kind": "weapon", "type": {"value": "ranged"}, "rounds": {"capacity": 12}}},
            "advancements": {"saves": {"type": "save", "configuration": {"fixed": ["dex"]}}},
        }
    )


class TestCreatureRecord:
    """Tests for the creature table."""

    async def test_record_defaults(self, session_factory):
        async with session_scope(session_factory) as session:
            session.add(CreatureRecord(id="ada", name="Ada", source={"name": "Ada"}))

        async with session_scope(session_factory) as session:
            record = await session.get(CreatureRecord, "ada")
            assert record.revision == 0
            assert record.source == {"name": "Ada"}
            assert record.created_at is not None
            assert "ada" in repr(record)

    def test_source_column_is_json(self):
        assert isinstance(CreatureRecord.__table__.c.source.type, JSON)
        assert CreatureRecord.__table__.c.updated_at.onupdate is not None


class TestDatabaseStore:
    """Tests for saving, loading and committing change sets."""

    async def test_save_and_load_round_trip(self, database_store, hero):
        await database_store.save("ada", hero)
        loaded = await database_store.load("ada")
        assert loaded.model_dump() == hero.model_dump()

    async def test_load_missing(self, database_store):
        assert await database_store.load("nobody") is None

    async def test_save_replaces_document(self, database_store, session_factory, hero):
        await database_store.save("ada", hero)
        await database_store.save("ada", hero.model_copy(update={"name": "Ada Prime"}))

        async with session_scope(session_factory) as session:
            record = await session.get(CreatureRecord, "ada")
            assert record.name == "Ada Prime"
            assert record.revision == 1

    async def test_commit_applies_changes(self, database_store, session_factory, hero):
        await database_store.save("ada", hero)
        changes = ChangeSet().set("items.pistol.rounds.spent", 3).set("name", "Ada Lovelace")
        await database_store.commit("ada", changes)

        loaded = await database_store.load("ada")
        assert loaded.items["pistol"].rounds.spent == 3
        assert loaded.name == "Ada Lovelace"

        async with session_scope(session_factory) as session:
            record = await session.get(CreatureRecord, "ada")
            assert record.revision == 1
            assert record.name == "Ada Lovelace"

    async def test_commit_deletions(self, database_store, hero):
        await database_store.save("ada", hero)
        await database_store.commit("ada", ChangeSet().set("advancements.saves.value.assignments", ["dex"]))
        await database_store.commit("ada", ChangeSet().delete("advancements.saves.value.assignments"))

        loaded = await database_store.load("ada")
        assert loaded.advancements["saves"].value == {}

    async def test_commit_to_missing_creature(self, database_store):
        with pytest.raises(CreatureNotFoundError):
            await database_store.commit("nobody", ChangeSet().set("level", 2))

    async def test_invalid_document_is_rolled_back(self, database_store, hero):
        await database_store.save("ada", hero)
        with pytest.raises(ValidationError):
            await database_store.commit("ada", ChangeSet().set("level", 0))

        loaded = await database_store.load("ada")
        assert loaded.level == 1


class TestManagerWithDatabase:
    """Tests for the advancement manager committing to the database."""

    async def test_apply_and_reverse_persist(self, database_store, hero):
        await database_store.save("ada", hero)
        manager = AdvancementManager(database_store)
        manager.track("ada", hero)

        await manager.apply("ada", "saves", 1)
        stored = await database_store.load("ada")
        assert stored.abilities["dex"].save_multiplier == 1
        assert stored.model_dump() == manager.source("ada").model_dump()

        await manager.reverse("ada", "saves", 1)
        stored = await database_store.load("ada")
        assert stored.model_dump() == hero.model_dump()
