"""Declarative base for stored creature documents."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base; source documents map to JSON columns."""

    type_annotation_map = {dict[str, Any]: JSON}


class StoredAtMixin:
    """When a record was first saved and when a change set last touched it."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="First save",
    )

    # Bumped together with revision on every commit
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
        comment="Last save or committed change set",
    )
