"""
Role switching. An active role assignment blocks deletion of its project;
releasing it is how a caller resolves that.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.lifecycle import EntityType, utcnow
from core.errors import AlreadyDeletedError, NotFoundError, ValidationError
from core.interfaces import ActorResolver, Clock
from infrastructure.database.connection import Database
from infrastructure.database.models import ActiveRole, AuditAction, Project, ProjectRole, Role

from .audit_log import AuditLog

logger = logging.getLogger(__name__)


@dataclass
class RoleAssignment:
    """Outcome of a role switch or release."""

    project_name: str
    system_id: int
    role_id: Optional[str]
    previous_role_id: Optional[str]

    @property
    def message(self) -> str:
        if self.role_id is None:
            return f"Released role '{self.previous_role_id}' on project '{self.project_name}'"
        if self.previous_role_id and self.previous_role_id != self.role_id:
            return (
                f"Switched from '{self.previous_role_id}' to '{self.role_id}' "
                f"on project '{self.project_name}'"
            )
        return f"Active role for project '{self.project_name}' is now '{self.role_id}'"


class RoleService:
    """Sets and clears the active role of a project on the current system."""

    def __init__(
        self,
        db: Database,
        actor_resolver: ActorResolver,
        audit: Optional[AuditLog] = None,
        clock: Clock = utcnow,
    ):
        self.db = db
        self.actor_resolver = actor_resolver
        self.audit = audit or AuditLog()
        self.clock = clock

    async def switch_role(
        self, project_name: str, role_id: str, actor: Optional[int] = None
    ) -> RoleAssignment:
        now = self.clock()
        async with self.db.transaction() as session:
            project = await self._live_project(session, project_name)
            role = await session.get(Role, role_id)
            if role is None:
                raise NotFoundError(f"Role '{role_id}' not found", role_id=role_id)

            if actor is None:
                actor = await self.actor_resolver.current_actor(session)

            result = await session.execute(
                select(ProjectRole).where(
                    ProjectRole.project_id == project.id, ProjectRole.role_id == role_id
                )
            )
            enabled = result.scalar_one_or_none()
            if enabled is None:
                session.add(
                    ProjectRole(project_id=project.id, role_id=role_id, is_active=True, created_at=now)
                )
            elif not enabled.is_active:
                raise ValidationError(
                    f"Role '{role_id}' is disabled for project '{project_name}'",
                    role_id=role_id,
                )

            assignment = await session.get(ActiveRole, (project.id, actor))
            previous = assignment.role_id if assignment is not None else None
            if assignment is None:
                session.add(
                    ActiveRole(project_id=project.id, system_id=actor, role_id=role_id, activated_at=now)
                )
            else:
                assignment.role_id = role_id
                assignment.activated_at = now
            await session.flush()

            await self.audit.record(
                session,
                EntityType.PROJECT,
                project.id,
                AuditAction.SWITCH_ROLE,
                {"from_role": previous, "to_role": role_id, "system_id": actor},
                timestamp=now,
                role_id=role_id,
            )

        logger.info(
            "Project '%s' role %s -> %s", project_name, previous, role_id,
            extra={"entity_type": EntityType.PROJECT.value, "action": AuditAction.SWITCH_ROLE.value, "actor": actor},
        )
        return RoleAssignment(project_name, actor, role_id, previous)

    async def release_role(self, project_name: str, actor: Optional[int] = None) -> RoleAssignment:
        now = self.clock()
        async with self.db.transaction() as session:
            result = await session.execute(select(Project).where(Project.name == project_name))
            project = result.scalar_one_or_none()
            if project is None:
                raise NotFoundError(f"Project '{project_name}' not found", project_name=project_name)

            if actor is None:
                actor = await self.actor_resolver.current_actor(session)

            assignment = await session.get(ActiveRole, (project.id, actor))
            if assignment is None:
                raise NotFoundError(
                    f"No active role for project '{project_name}' on this system",
                    project_name=project_name,
                )
            previous = assignment.role_id
            await session.delete(assignment)
            await session.flush()

            await self.audit.record(
                session,
                EntityType.PROJECT,
                project.id,
                AuditAction.RELEASE_ROLE,
                {"from_role": previous, "to_role": None, "system_id": actor},
                timestamp=now,
                role_id=previous,
            )

        logger.info(
            "Project '%s' released role %s", project_name, previous,
            extra={"entity_type": EntityType.PROJECT.value, "action": AuditAction.RELEASE_ROLE.value, "actor": actor},
        )
        return RoleAssignment(project_name, actor, None, previous)

    async def _live_project(self, session: AsyncSession, name: str) -> Project:
        result = await session.execute(select(Project).where(Project.name == name))
        project = result.scalar_one_or_none()
        if project is None:
            raise NotFoundError(f"Project '{name}' not found", project_name=name)
        if project.deleted_at is not None:
            raise AlreadyDeletedError(f"Project '{name}' is already deleted", project_name=name)
        return project
