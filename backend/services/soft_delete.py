"""
Soft-delete lifecycle manager.

A soft delete stamps ``deleted_at``/``deleted_by`` on the target, walks
``CASCADE_GRAPH`` to soft-delete or deactivate dependents, records the
deletion queue entry and writes one audit entry. All of it happens in a
single transaction; any failure leaves the store untouched.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.lifecycle import (
    CASCADE_GRAPH,
    QUEUED_ENTITY_TYPES,
    CascadeAction,
    CascadeRule,
    DeletionResult,
    EntityType,
    utcnow,
)
from core.errors import (
    AlreadyDeletedError,
    NotFoundError,
    PreconditionFailedError,
    ValidationError,
)
from core.interfaces import ActorResolver, Clock
from infrastructure.database.connection import Database
from infrastructure.database.models import (
    ActiveRole,
    AuditAction,
    ContextEntry,
    Project,
    ProjectRole,
    RoleHandoff,
)

from .audit_log import AuditLog
from .deletion_queue import DeletionQueue

logger = logging.getLogger(__name__)

ENTITY_MODELS = {
    EntityType.PROJECT: Project,
    EntityType.CONTEXT: ContextEntry,
    EntityType.ROLE_HANDOFF: RoleHandoff,
    EntityType.ROLE_ASSIGNMENT: ProjectRole,
}

DELETABLE_ENTITY_TYPES = frozenset(
    {EntityType.PROJECT, EntityType.CONTEXT, EntityType.ROLE_HANDOFF}
)

_LABELS = {
    EntityType.PROJECT: "Project",
    EntityType.CONTEXT: "Context entry",
    EntityType.ROLE_HANDOFF: "Role handoff",
}


class SoftDeleteManager:
    """Marks entities and their cascade dependents deleted, atomically."""

    def __init__(
        self,
        db: Database,
        actor_resolver: ActorResolver,
        queue: Optional[DeletionQueue] = None,
        audit: Optional[AuditLog] = None,
        clock: Clock = utcnow,
        cascade_graph: Optional[dict[EntityType, tuple[CascadeRule, ...]]] = None,
    ):
        self.db = db
        self.actor_resolver = actor_resolver
        self.queue = queue or DeletionQueue()
        self.audit = audit or AuditLog()
        self.clock = clock
        self.cascade_graph = CASCADE_GRAPH if cascade_graph is None else cascade_graph

    async def soft_delete(
        self,
        entity_type: EntityType,
        entity_id: int,
        actor: Optional[int] = None,
    ) -> DeletionResult:
        """Soft delete one entity by id."""
        entity_type = EntityType(entity_type)
        if entity_type not in DELETABLE_ENTITY_TYPES:
            raise ValidationError(f"Entity type '{entity_type.value}' cannot be soft-deleted")

        async with self.db.transaction() as session:
            actor = await self._resolve_actor(session, actor)
            result = await self.apply(session, entity_type, entity_id, actor, self.clock())

        self._log_deletion(result)
        return result

    async def soft_delete_project(
        self,
        name: str,
        actor: Optional[int] = None,
        confirm: bool = False,
    ) -> DeletionResult:
        """
        Soft delete a project and everything that hangs off it.

        ``confirm`` must be the boolean ``True``; anything else is refused
        before the store is touched.
        """
        if not isinstance(confirm, bool):
            raise ValidationError("Confirmation flag must be a boolean", confirm=repr(confirm))
        if not confirm:
            raise ValidationError("Deletion confirmation required. Set confirm: true to proceed.")

        async with self.db.transaction() as session:
            result = await session.execute(select(Project.id).where(Project.name == name))
            project_id = result.scalar_one_or_none()
            if project_id is None:
                raise NotFoundError(f"Project '{name}' not found", project_name=name)

            actor = await self._resolve_actor(session, actor)
            deletion = await self.apply(session, EntityType.PROJECT, project_id, actor, self.clock())

        self._log_deletion(deletion)
        return deletion

    async def soft_delete_context(
        self,
        key: str,
        actor: Optional[int] = None,
        project_name: Optional[str] = None,
    ) -> DeletionResult:
        """
        Soft delete a context entry by key, optionally scoped to a project.

        A live match wins over deleted ones. Several live matches are
        refused as ambiguous.
        """
        scope = f" in project '{project_name}'" if project_name else ""

        async with self.db.transaction() as session:
            query = (
                select(ContextEntry.id, ContextEntry.deleted_at)
                .outerjoin(Project, ContextEntry.project_id == Project.id)
                .where(ContextEntry.key == key)
                .order_by(ContextEntry.id)
            )
            if project_name is not None:
                query = query.where(Project.name == project_name)
            rows = (await session.execute(query)).all()

            if not rows:
                raise NotFoundError(f"Context entry '{key}' not found{scope}", context_key=key)

            live = [row.id for row in rows if row.deleted_at is None]
            if not live:
                raise AlreadyDeletedError(
                    f"Context entry '{key}' is already deleted", context_key=key
                )
            if len(live) > 1:
                hint = "" if project_name else "; specify project_name"
                raise ValidationError(
                    f"Context key '{key}' matches {len(live)} entries{scope}{hint}",
                    context_key=key,
                )

            actor = await self._resolve_actor(session, actor)
            deletion = await self.apply(session, EntityType.CONTEXT, live[0], actor, self.clock())

        self._log_deletion(deletion)
        return deletion

    async def apply(
        self,
        session: AsyncSession,
        entity_type: EntityType,
        entity_id: int,
        actor: Optional[int],
        now: datetime,
        audit: bool = True,
    ) -> DeletionResult:
        """
        Soft delete inside the caller's transaction.

        Guards run first (existence, liveness, active role assignment), so a
        refused delete writes nothing. The sweep calls this with
        ``audit=False`` and records one summary entry itself.
        """
        model = ENTITY_MODELS[entity_type]
        label = _LABELS[entity_type]

        result = await session.execute(
            select(model)
            .where(model.id == entity_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError(
                f"{label} {entity_id} not found",
                entity_type=entity_type.value,
                entity_id=entity_id,
            )

        name = self._display_name(entity_type, row)
        if row.deleted_at is not None:
            raise AlreadyDeletedError(
                f"{label} '{name}' is already deleted",
                entity_type=entity_type.value,
                entity_id=entity_id,
            )

        if entity_type == EntityType.PROJECT:
            await self._check_no_active_roles(session, row)

        project_name = None
        if entity_type != EntityType.PROJECT and row.project_id is not None:
            project_name = await session.scalar(
                select(Project.name).where(Project.id == row.project_id)
            )

        stamped = await session.execute(
            update(model)
            .where(model.id == entity_id, model.deleted_at.is_(None))
            .values(deleted_at=now, deleted_by=actor)
        )
        if stamped.rowcount != 1:
            raise AlreadyDeletedError(
                f"{label} '{name}' is already deleted",
                entity_type=entity_type.value,
                entity_id=entity_id,
            )

        counts: dict[str, int] = {}
        await self._cascade(session, entity_type, entity_id, actor, now, counts)

        scheduled = None
        if entity_type in QUEUED_ENTITY_TYPES:
            scheduled = await self.queue.enqueue(session, entity_type, entity_id, now, actor)

        if audit:
            await self.audit.record(
                session,
                entity_type,
                entity_id,
                AuditAction.DELETE,
                self._audit_changes(entity_type, name, project_name, counts, actor),
                timestamp=now,
            )

        return DeletionResult(
            entity_type=entity_type,
            entity_id=entity_id,
            name=name,
            deleted_at=now,
            deleted_by=actor,
            scheduled_hard_delete=scheduled,
            cascade_counts=counts,
            project_name=project_name,
        )

    async def _cascade(
        self,
        session: AsyncSession,
        parent_type: EntityType,
        parent_id: int,
        actor: Optional[int],
        now: datetime,
        counts: dict[str, int],
    ) -> None:
        for rule in self.cascade_graph.get(parent_type, ()):
            child = ENTITY_MODELS[rule.child]
            parent_column = getattr(child, rule.parent_key)

            if rule.action == CascadeAction.SOFT_DELETE:
                # Already-deleted children keep their original timestamps
                result = await session.execute(
                    select(child.id)
                    .where(parent_column == parent_id, child.deleted_at.is_(None))
                    .order_by(child.id)
                )
                ids = list(result.scalars().all())
                if ids:
                    await session.execute(
                        update(child)
                        .where(child.id.in_(ids))
                        .values(deleted_at=now, deleted_by=actor)
                    )
                    for child_id in ids:
                        if rule.child in QUEUED_ENTITY_TYPES:
                            await self.queue.enqueue(session, rule.child, child_id, now, actor)
                        await self._cascade(session, rule.child, child_id, actor, now, counts)
            elif rule.action == CascadeAction.DEACTIVATE:
                result = await session.execute(
                    select(child.id)
                    .where(parent_column == parent_id, child.is_active.is_(True))
                    .order_by(child.id)
                )
                ids = list(result.scalars().all())
                if ids:
                    await session.execute(
                        update(child).where(child.id.in_(ids)).values(is_active=False)
                    )
            else:
                raise ValueError(f"Unknown cascade action: {rule.action}")

            counts[rule.child.value] = counts.get(rule.child.value, 0) + len(ids)

    async def _check_no_active_roles(self, session: AsyncSession, project: Project) -> None:
        # Any system's assignment blocks the delete, not only the caller's
        result = await session.execute(
            select(ActiveRole.role_id, ActiveRole.system_id)
            .where(ActiveRole.project_id == project.id)
            .order_by(ActiveRole.system_id)
        )
        assignments = result.all()
        if assignments:
            raise PreconditionFailedError(
                "Cannot delete project with active roles. Please switch roles first.",
                project_name=project.name,
                active_roles=[row.role_id for row in assignments],
            )

    async def _resolve_actor(self, session: AsyncSession, actor: Optional[int]) -> int:
        if actor is not None:
            return actor
        return await self.actor_resolver.current_actor(session)

    @staticmethod
    def _display_name(entity_type: EntityType, row) -> str:
        if entity_type == EntityType.PROJECT:
            return row.name
        if entity_type == EntityType.CONTEXT:
            return row.key
        return f"{row.from_role_id} -> {row.to_role_id}"

    @staticmethod
    def _audit_changes(
        entity_type: EntityType,
        name: str,
        project_name: Optional[str],
        counts: dict[str, int],
        actor: Optional[int],
    ) -> dict:
        if entity_type == EntityType.PROJECT:
            return {
                "project_name": name,
                "contexts_deleted": counts.get(EntityType.CONTEXT.value, 0),
                "handoffs_deleted": counts.get(EntityType.ROLE_HANDOFF.value, 0),
                "roles_deactivated": counts.get(EntityType.ROLE_ASSIGNMENT.value, 0),
                "deleted_by": actor,
            }
        if entity_type == EntityType.CONTEXT:
            return {"context_key": name, "project_name": project_name, "deleted_by": actor}
        return {"handoff": name, "project_name": project_name, "deleted_by": actor}

    @staticmethod
    def _log_deletion(result: DeletionResult) -> None:
        logger.info(
            "Soft-deleted %s '%s' (cascade: %s)",
            result.entity_type.value, result.name, result.cascade_counts or "none",
            extra={
                "entity_type": result.entity_type.value,
                "entity_id": result.entity_id,
                "action": AuditAction.DELETE.value,
                "actor": result.deleted_by,
            },
        )
