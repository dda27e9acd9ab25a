"""
Project and context entry database models.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.domain.lifecycle import ProjectStatus, utcnow

from .base import Base, SoftDeleteMixin, TimestampMixin


class ContextType(str, Enum):
    """Context entry type enumeration."""

    DECISION = "decision"
    CODE = "code"
    STANDARD = "standard"
    STATUS = "status"
    TODO = "todo"
    NOTE = "note"
    CONFIG = "config"
    ISSUE = "issue"
    REFERENCE = "reference"


class Project(Base, TimestampMixin, SoftDeleteMixin):
    """Project whose context the assistant remembers."""

    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=ProjectStatus.ACTIVE.value, nullable=False
    )
    repository_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    local_directory: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    primary_system_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("systems.id"), nullable=True
    )
    tags: Mapped[Optional[list]] = mapped_column(JSON, default=list, nullable=True)
    metadata_: Mapped[Optional[dict]] = mapped_column("metadata", JSON, default=dict, nullable=True)
    last_accessed: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name={self.name}, status={self.status})>"


class ContextEntry(Base, TimestampMixin, SoftDeleteMixin):
    """A stored piece of context: a decision, note, config value, ..."""

    __tablename__ = "context_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # NULL for shared (standalone) context
    project_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("projects.id"), nullable=True
    )
    system_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("systems.id"), nullable=True
    )
    role_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    key: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    is_system_specific: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    tags: Mapped[Optional[list]] = mapped_column(JSON, default=list, nullable=True)
    metadata_: Mapped[Optional[dict]] = mapped_column("metadata", JSON, default=dict, nullable=True)

    def __repr__(self) -> str:
        return f"<ContextEntry(id={self.id}, key={self.key}, project_id={self.project_id})>"
