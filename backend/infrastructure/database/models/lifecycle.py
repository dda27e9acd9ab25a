"""
Lifecycle bookkeeping models: audit trail, deletion queue, schema version.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from core.domain.lifecycle import utcnow

from .base import Base


class AuditAction(str, Enum):
    """Update history action types."""

    DELETE = "delete"
    CLEANUP = "cleanup"
    SWITCH_ROLE = "switch_role"
    RELEASE_ROLE = "release_role"


class UpdateHistory(Base):
    """Append-only audit entry for a lifecycle transition."""

    __tablename__ = "update_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    changes: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    """
    Structure (delete):
    {
        "project_name": "demo",
        "contexts_deleted": 3,
        "handoffs_deleted": 1,
        "roles_deactivated": 2,
        "deleted_by": 1
    }
    """
    role_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<UpdateHistory(id={self.id}, {self.entity_type}:{self.entity_id}, action={self.action})>"


class DeletionQueueEntry(Base):
    """Hard-delete eligibility record for a soft-deleted project or context."""

    __tablename__ = "deletion_queue"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    deleted_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    deleted_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("systems.id"), nullable=True
    )
    scheduled_hard_delete: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    hard_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        UniqueConstraint("entity_type", "entity_id", name="uq_deletion_queue_entity"),
        CheckConstraint(
            "entity_type IN ('project', 'context')", name="ck_deletion_queue_entity_type"
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<DeletionQueueEntry({self.entity_type}:{self.entity_id}, "
            f"scheduled_hard_delete={self.scheduled_hard_delete})>"
        )


class SchemaVersion(Base):
    """One row per applied migration step; the highest version is current."""

    __tablename__ = "schema_version"

    version: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    applied_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
