"""
Role database models: role catalogue, per-project enablement, active
assignments and handoffs.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from core.domain.lifecycle import utcnow

from .base import Base, SoftDeleteMixin


class Role(Base):
    """Role catalogue entry (architect, developer, ...)."""

    __tablename__ = "roles"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_custom: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    focus_areas: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    default_tags: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    template_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class RoleTemplate(Base):
    """Template a custom role can be derived from."""

    __tablename__ = "role_templates"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    base_role_id: Mapped[Optional[str]] = mapped_column(
        String(50), ForeignKey("roles.id"), nullable=True
    )
    focus_areas: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    default_tags: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class ProjectRole(Base):
    """Role enablement for a project. Deactivated, never soft-deleted."""

    __tablename__ = "project_roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(Integer, ForeignKey("projects.id"), nullable=False)
    role_id: Mapped[str] = mapped_column(String(50), ForeignKey("roles.id"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    custom_instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_project_roles_project_role", "project_id", "role_id", unique=True),
    )


class ActiveRole(Base):
    """Role currently active for a project on a given system."""

    __tablename__ = "active_roles"

    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects.id"), primary_key=True
    )
    system_id: Mapped[int] = mapped_column(Integer, ForeignKey("systems.id"), primary_key=True)
    role_id: Mapped[str] = mapped_column(String(50), ForeignKey("roles.id"), nullable=False)
    activated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class RoleHandoff(Base, SoftDeleteMixin):
    """Context handed over from one role to another within a project."""

    __tablename__ = "role_handoffs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(Integer, ForeignKey("projects.id"), nullable=False)
    from_role_id: Mapped[str] = mapped_column(String(50), ForeignKey("roles.id"), nullable=False)
    to_role_id: Mapped[str] = mapped_column(String(50), ForeignKey("roles.id"), nullable=False)
    handoff_data: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by_system_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("systems.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
