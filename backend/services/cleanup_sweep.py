"""
Cleanup sweep: age-threshold bulk soft delete with a dry-run preview.

Candidates are live, non-active projects and live standalone contexts
(no project) last updated before ``now - threshold``, oldest first. Active
projects are never swept regardless of age.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.lifecycle import (
    AgeThreshold,
    EntityType,
    ProjectStatus,
    SweepCandidate,
    SweepReport,
    utcnow,
)
from core.errors import ValidationError
from core.interfaces import ActorResolver, Clock
from infrastructure.database.connection import Database
from infrastructure.database.models import ActiveRole, AuditAction, ContextEntry, Project

from .audit_log import AuditLog
from .soft_delete import SoftDeleteManager

logger = logging.getLogger(__name__)


class CleanupSweep:
    """Batch driver over :class:`SoftDeleteManager`."""

    def __init__(
        self,
        db: Database,
        manager: SoftDeleteManager,
        actor_resolver: Optional[ActorResolver] = None,
        audit: Optional[AuditLog] = None,
        clock: Optional[Clock] = None,
    ):
        self.db = db
        self.manager = manager
        self.actor_resolver = actor_resolver or manager.actor_resolver
        self.audit = audit or manager.audit
        self.clock = clock or manager.clock or utcnow

    async def sweep(
        self,
        older_than: "str | AgeThreshold",
        dry_run: bool = True,
        actor: Optional[int] = None,
    ) -> SweepReport:
        """
        Preview (``dry_run=True``, the default) or execute a sweep.

        The preview never writes. The destructive run re-selects candidates
        inside its own transaction, so a preview taken earlier is advisory.
        """
        if not isinstance(dry_run, bool):
            raise ValidationError("dry_run must be a boolean", dry_run=repr(dry_run))
        threshold = AgeThreshold.parse(older_than)
        now = self.clock()
        cutoff = threshold.cutoff(now)

        if dry_run:
            async with self.db.session() as session:
                projects, contexts = await self._select_candidates(session, cutoff)
            report = SweepReport(
                threshold=threshold,
                cutoff=cutoff,
                dry_run=True,
                projects=projects,
                contexts=contexts,
            )
            logger.info(
                "Sweep preview older than %s: %d project(s), %d context(s)",
                threshold, len(projects), len(contexts),
                extra={"action": AuditAction.CLEANUP.value, "dry_run": True},
            )
            return report

        async with self.db.transaction() as session:
            if actor is None:
                actor = await self.actor_resolver.current_actor(session)
            projects, contexts = await self._select_candidates(session, cutoff)
            counts = await self._delete_candidates(session, projects, contexts, actor, now)

            await self.audit.record(
                session,
                EntityType.SYSTEM,
                actor,
                AuditAction.CLEANUP,
                {
                    "older_than": str(threshold),
                    "cutoff": cutoff.isoformat(),
                    **counts,
                    "skipped_projects": [p.name for p in projects if p.blocked],
                    "deleted_by": actor,
                },
                timestamp=now,
            )

        report = SweepReport(
            threshold=threshold,
            cutoff=cutoff,
            dry_run=False,
            projects=projects,
            contexts=contexts,
            counts=counts,
        )
        logger.info(
            "Sweep older than %s deleted %d project(s), %d standalone context(s)",
            threshold, counts["projects_deleted"], counts["contexts_deleted"],
            extra={"action": AuditAction.CLEANUP.value, "actor": actor, "dry_run": False},
        )
        return report

    async def _delete_candidates(
        self,
        session: AsyncSession,
        projects: list[SweepCandidate],
        contexts: list[SweepCandidate],
        actor: int,
        now: datetime,
    ) -> dict[str, int]:
        counts = {
            "projects_deleted": 0,
            "contexts_deleted": 0,
            "contexts_cascaded": 0,
            "handoffs_cascaded": 0,
            "roles_deactivated": 0,
        }
        for candidate in projects:
            if candidate.blocked:
                logger.warning(
                    "Sweep skipped project '%s': active role assignment", candidate.name,
                    extra={"entity_type": EntityType.PROJECT.value, "entity_id": candidate.entity_id},
                )
                continue
            result = await self.manager.apply(
                session, EntityType.PROJECT, candidate.entity_id, actor, now, audit=False
            )
            counts["projects_deleted"] += 1
            counts["contexts_cascaded"] += result.cascade_counts.get(EntityType.CONTEXT.value, 0)
            counts["handoffs_cascaded"] += result.cascade_counts.get(EntityType.ROLE_HANDOFF.value, 0)
            counts["roles_deactivated"] += result.cascade_counts.get(
                EntityType.ROLE_ASSIGNMENT.value, 0
            )

        for candidate in contexts:
            await self.manager.apply(
                session, EntityType.CONTEXT, candidate.entity_id, actor, now, audit=False
            )
            counts["contexts_deleted"] += 1
        return counts

    async def _select_candidates(
        self, session: AsyncSession, cutoff: datetime
    ) -> tuple[list[SweepCandidate], list[SweepCandidate]]:
        live_contexts = (
            select(func.count(ContextEntry.id))
            .where(ContextEntry.project_id == Project.id, ContextEntry.deleted_at.is_(None))
            .correlate(Project)
            .scalar_subquery()
        )
        has_active_role = exists().where(ActiveRole.project_id == Project.id)

        project_rows = await session.execute(
            select(
                Project.id,
                Project.name,
                Project.updated_at,
                Project.status,
                live_contexts.label("context_count"),
                has_active_role.label("blocked"),
            )
            .where(
                Project.deleted_at.is_(None),
                func.datetime(Project.updated_at) < func.datetime(cutoff),
                Project.status != ProjectStatus.ACTIVE.value,
            )
            .order_by(Project.updated_at, Project.id)
        )
        projects = [
            SweepCandidate(
                entity_type=EntityType.PROJECT,
                entity_id=row.id,
                name=row.name,
                updated_at=row.updated_at,
                status=row.status,
                context_count=row.context_count,
                blocked=bool(row.blocked),
            )
            for row in project_rows.all()
        ]

        context_rows = await session.execute(
            select(ContextEntry.id, ContextEntry.key, ContextEntry.type, ContextEntry.updated_at)
            .where(
                ContextEntry.deleted_at.is_(None),
                ContextEntry.project_id.is_(None),
                func.datetime(ContextEntry.updated_at) < func.datetime(cutoff),
            )
            .order_by(ContextEntry.updated_at, ContextEntry.id)
        )
        contexts = [
            SweepCandidate(
                entity_type=EntityType.CONTEXT,
                entity_id=row.id,
                name=row.key,
                updated_at=row.updated_at,
                context_type=row.type,
            )
            for row in context_rows.all()
        ]
        return projects, contexts
