"""Service interfaces for collaborators supplied by the host environment."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

# Wall-clock source. Returns naive UTC; tests inject a fixed instant.
Clock = Callable[[], datetime]


class ActorResolver(ABC):
    """Resolves the opaque actor reference attributed to mutations."""

    @abstractmethod
    async def current_actor(self, session: AsyncSession) -> int:
        """Return a stable reference for the current system/host."""
        ...
