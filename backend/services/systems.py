"""
System registry: resolves the actor attributed to mutations.
"""

import logging
import platform
import socket
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.lifecycle import utcnow
from core.interfaces import ActorResolver, Clock
from infrastructure.database.models.system import System

logger = logging.getLogger(__name__)


class SystemRegistry(ActorResolver):
    """
    Gets or creates the ``systems`` row for the host this process runs on.

    The row id is the opaque actor reference stored in ``deleted_by``.
    """

    def __init__(
        self,
        hostname: Optional[str] = None,
        platform_name: Optional[str] = None,
        clock: Clock = utcnow,
    ):
        self.hostname = hostname or socket.gethostname()
        self.platform_name = platform_name or platform.system().lower()
        self.clock = clock

    async def current_actor(self, session: AsyncSession) -> int:
        return await self.current_system_id(session)

    async def current_system_id(self, session: AsyncSession) -> int:
        """Id of the current system, registering it on first use."""
        now = self.clock()
        result = await session.execute(select(System).where(System.hostname == self.hostname))
        system = result.scalar_one_or_none()

        if system is None:
            await session.execute(
                update(System).where(System.is_current.is_(True)).values(is_current=False)
            )
            system = System(
                name=self.hostname,
                hostname=self.hostname,
                platform=self.platform_name,
                is_current=True,
                created_at=now,
                last_seen=now,
            )
            session.add(system)
            await session.flush()
            logger.info("Registered system %s (id=%d)", self.hostname, system.id)
        elif not system.is_current:
            await session.execute(
                update(System).where(System.id != system.id).values(is_current=False)
            )
            system.is_current = True

        system.last_seen = now
        await session.flush()
        return system.id
