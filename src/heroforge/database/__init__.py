"""Persistence adapters for creature source documents."""

from heroforge.database.engine import (
    close_db,
    create_engine,
    create_session_factory,
    get_engine,
    get_session_factory,
    init_db,
    session_scope,
)
from heroforge.database.store import (
    CreatureNotFoundError,
    DatabaseStore,
    MemoryStore,
    UpdateStore,
)

__all__ = [
    "CreatureNotFoundError",
    "DatabaseStore",
    "MemoryStore",
    "UpdateStore",
    "close_db",
    "create_engine",
    "create_session_factory",
    "get_engine",
    "get_session_factory",
    "init_db",
    "session_scope",
]
