"""
Declarative base and shared column mixins.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from core.domain.lifecycle import utcnow


class Base(DeclarativeBase):
    """Base class for models. The schema itself is owned by the migration steps."""


class TimestampMixin:
    """Creation and last-update timestamps (naive UTC)."""

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class SoftDeleteMixin:
    """Soft delete columns. ``deleted_at`` is never cleared once set."""

    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    deleted_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    @property
    def is_live(self) -> bool:
        """Check if the row is live (not soft-deleted)."""
        return self.deleted_at is None
