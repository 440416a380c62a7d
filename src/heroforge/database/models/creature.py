"""Creature record holding a creature's persisted source document."""

from typing import Any

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, StoredAtMixin


class CreatureRecord(Base, StoredAtMixin):
    """Stored creature source document, addressed by creature id."""

    __tablename__ = "creatures"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Stable creature identifier",
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="",
        server_default="",
        comment="Creature name (denormalized from the source document)",
    )

    # Full source document; derived state is never stored
    source: Mapped[dict[str, Any]] = mapped_column(
        nullable=False,
        default=dict,
        comment="Creature source document as JSON",
    )

    revision: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
        comment="Number of change sets committed to this record",
    )

    def __repr__(self) -> str:
        return f"<CreatureRecord(id={self.id}, name='{self.name}', revision={self.revision})>"
