"""Shared fixtures for all tests."""

import os

import pytest
import structlog
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from heroforge.catalog import load_catalog
from heroforge.config import get_settings
from heroforge.database import DatabaseStore, MemoryStore, create_session_factory, init_db
from heroforge.models.sources import build_creature_source
from heroforge.pipeline import DerivationPipeline


# Point settings at a temporary database before anything caches an engine
@pytest.fixture(scope="session", autouse=True)
def use_test_database(tmp_path_factory):
    """Force all tests to use a temporary database instead of the default file.

    Runs once per session: sets the database URL, then clears any cached
    settings and engine so they are rebuilt from the test environment.
    """
    test_db_dir = tmp_path_factory.mktemp("heroforge_test")
    os.environ["HEROFORGE_DATABASE_URL"] = f"sqlite+aiosqlite:///{test_db_dir / 'test_heroforge.db'}"

    import heroforge.database.engine as engine_module

    engine_module._engine = None
    engine_module._async_session_factory = None
    get_settings.cache_clear()

    yield

    engine_module._engine = None
    engine_module._async_session_factory = None


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop any structlog configuration a test installed (e.g. via the CLI).

    A configured logger holds the stream it was given, and pytest closes its
    capture streams after each test.
    """
    yield
    structlog.reset_defaults()


@pytest.fixture(scope="session")
def catalog():
    """The bundled rules catalog."""
    return load_catalog(get_settings().bundled_catalog_path)


@pytest.fixture
def make_source(catalog):
    """Build a validated creature source from plain data."""

    def _make(data=None):
        return build_creature_source(data or {"name": "Test Hero"}, catalog)

    return _make


@pytest.fixture
def pipeline(catalog):
    return DerivationPipeline(catalog)


@pytest.fixture
def derive(make_source, pipeline):
    """Derive a creature straight from plain data."""

    def _derive(data=None):
        return pipeline.prepare(make_source(data))

    return _derive


@pytest.fixture
async def session_factory():
    """Session factory bound to a fresh in-memory SQLite database."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    await init_db(engine)

    yield create_session_factory(engine)

    await engine.dispose()


@pytest.fixture
def database_store(session_factory):
    return DatabaseStore(session_factory)


@pytest.fixture
def memory_store():
    return MemoryStore()
