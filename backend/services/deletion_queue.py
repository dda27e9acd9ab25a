"""
Deletion queue and retention scheduler.

Every soft delete of a project or context records here when the row becomes
eligible for permanent removal. Nothing in this module hard-deletes; purging
is an external operation that reads :meth:`DeletionQueue.due_for_hard_delete`.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.lifecycle import QUEUED_ENTITY_TYPES, RETENTION_PERIOD, EntityType
from core.errors import ValidationError
from infrastructure.database.models.lifecycle import DeletionQueueEntry

logger = logging.getLogger(__name__)


class DeletionQueue:
    """Maintains one eligibility record per soft-deleted entity."""

    def __init__(self, retention: timedelta = RETENTION_PERIOD):
        self.retention = retention

    def scheduled_for(self, deleted_at: datetime) -> datetime:
        return deleted_at + self.retention

    async def enqueue(
        self,
        session: AsyncSession,
        entity_type: EntityType,
        entity_id: int,
        deleted_at: datetime,
        deleted_by: Optional[int],
    ) -> datetime:
        """
        Create or replace the entry for (entity_type, entity_id).

        Must run inside the soft delete's transaction. Returns the scheduled
        hard-delete instant.
        """
        if entity_type not in QUEUED_ENTITY_TYPES:
            raise ValidationError(f"Entity type '{entity_type.value}' is not queued for hard delete")

        scheduled = self.scheduled_for(deleted_at)
        stmt = sqlite_insert(DeletionQueueEntry).values(
            entity_type=entity_type.value,
            entity_id=entity_id,
            deleted_at=deleted_at,
            deleted_by=deleted_by,
            scheduled_hard_delete=scheduled,
            hard_deleted=False,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["entity_type", "entity_id"],
            set_={
                "deleted_at": stmt.excluded.deleted_at,
                "deleted_by": stmt.excluded.deleted_by,
                "scheduled_hard_delete": stmt.excluded.scheduled_hard_delete,
                "hard_deleted": False,
            },
        )
        await session.execute(stmt)
        return scheduled

    async def get(
        self, session: AsyncSession, entity_type: EntityType, entity_id: int
    ) -> Optional[DeletionQueueEntry]:
        result = await session.execute(
            select(DeletionQueueEntry).where(
                DeletionQueueEntry.entity_type == entity_type.value,
                DeletionQueueEntry.entity_id == entity_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_entries(
        self, session: AsyncSession, include_hard_deleted: bool = False
    ) -> list[DeletionQueueEntry]:
        """All entries, soonest scheduled first."""
        query = select(DeletionQueueEntry).order_by(
            DeletionQueueEntry.scheduled_hard_delete, DeletionQueueEntry.id
        )
        if not include_hard_deleted:
            query = query.where(DeletionQueueEntry.hard_deleted.is_(False))
        result = await session.execute(query)
        return list(result.scalars().all())

    async def due_for_hard_delete(
        self, session: AsyncSession, now: datetime
    ) -> list[DeletionQueueEntry]:
        """Entries whose retention window has elapsed at ``now``."""
        result = await session.execute(
            select(DeletionQueueEntry)
            .where(
                DeletionQueueEntry.hard_deleted.is_(False),
                DeletionQueueEntry.scheduled_hard_delete <= now,
            )
            .order_by(DeletionQueueEntry.scheduled_hard_delete, DeletionQueueEntry.id)
        )
        return list(result.scalars().all())
