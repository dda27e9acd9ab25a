"""
Audit log: append-only record of lifecycle transitions.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.lifecycle import EntityType
from infrastructure.database.models.lifecycle import AuditAction, UpdateHistory

logger = logging.getLogger(__name__)


class AuditLog:
    """Writes and reads ``update_history`` rows. Entries are never updated."""

    async def record(
        self,
        session: AsyncSession,
        entity_type: EntityType,
        entity_id: int,
        action: AuditAction,
        changes: dict,
        timestamp: datetime,
        role_id: Optional[str] = None,
    ) -> UpdateHistory:
        """Append an entry to the caller's transaction."""
        entry = UpdateHistory(
            entity_type=entity_type.value,
            entity_id=entity_id,
            action=action.value,
            changes=changes,
            role_id=role_id,
            timestamp=timestamp,
        )
        session.add(entry)
        await session.flush()
        logger.debug(
            "Audit %s %s:%d",
            action.value, entity_type.value, entity_id,
            extra={"entity_type": entity_type.value, "entity_id": entity_id, "action": action.value},
        )
        return entry

    async def recent(
        self,
        session: AsyncSession,
        limit: int = 50,
        entity_type: Optional[EntityType] = None,
    ) -> list[UpdateHistory]:
        """Most recent entries first."""
        query = select(UpdateHistory).order_by(
            UpdateHistory.timestamp.desc(), UpdateHistory.id.desc()
        )
        if entity_type is not None:
            query = query.where(UpdateHistory.entity_type == entity_type.value)
        result = await session.execute(query.limit(limit))
        return list(result.scalars().all())
