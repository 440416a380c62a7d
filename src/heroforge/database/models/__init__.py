"""SQLAlchemy models for heroforge."""

from heroforge.database.models.base import Base, StoredAtMixin
from heroforge.database.models.creature import CreatureRecord

__all__ = [
    "Base",
    "CreatureRecord",
    "StoredAtMixin",
]
