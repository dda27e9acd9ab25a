"""
SQLAlchemy database models.
"""

from .base import Base, SoftDeleteMixin, TimestampMixin
from .lifecycle import AuditAction, DeletionQueueEntry, SchemaVersion, UpdateHistory
from .project import ContextEntry, ContextType, Project
from .role import ActiveRole, ProjectRole, Role, RoleHandoff, RoleTemplate
from .system import System

__all__ = [
    "Base",
    "TimestampMixin",
    "SoftDeleteMixin",
    "System",
    "Project",
    "ContextEntry",
    "ContextType",
    "Role",
    "RoleTemplate",
    "ProjectRole",
    "ActiveRole",
    "RoleHandoff",
    "UpdateHistory",
    "AuditAction",
    "DeletionQueueEntry",
    "SchemaVersion",
]
