"""
Migration runner: brings the store forward to the registered head.

Each step's ``upgrade()`` and the insert of its ``schema_version`` row share
one transaction, so the store is always at a fully applied version.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from alembic.operations import Operations
from alembic.runtime.migration import MigrationContext
from sqlalchemy import Connection, delete, func, insert, select

from core.domain.lifecycle import utcnow
from core.errors import MigrationError
from core.interfaces import Clock

from ..connection import Database
from ..models.lifecycle import SchemaVersion
from .registry import MigrationRegistry, MigrationStep, default_registry

logger = logging.getLogger(__name__)


@dataclass
class AppliedMigration:
    """A row of the schema_version table."""

    version: int
    name: str
    applied_at: datetime


@dataclass
class MigrationStatus:
    """Current schema position relative to the registry."""

    current_version: int
    latest_version: int
    applied: list[AppliedMigration] = field(default_factory=list)
    pending: list[MigrationStep] = field(default_factory=list)

    @property
    def is_up_to_date(self) -> bool:
        return not self.pending

    def to_dict(self) -> dict:
        return {
            "current_version": self.current_version,
            "latest_version": self.latest_version,
            "up_to_date": self.is_up_to_date,
            "applied": [
                {"version": a.version, "name": a.name, "applied_at": a.applied_at.isoformat()}
                for a in self.applied
            ],
            "pending": [{"version": s.version, "name": s.name} for s in self.pending],
        }


def _run_step(connection: Connection, fn) -> None:
    """Run a step function with alembic's ``op`` proxy bound to ``connection``."""
    context = MigrationContext.configure(connection=connection)
    with Operations.context(context):
        fn()


class MigrationRunner:
    """Applies pending migration steps to a Database."""

    def __init__(
        self,
        db: Database,
        registry: Optional[MigrationRegistry] = None,
        clock: Clock = utcnow,
    ):
        self.db = db
        self.registry = registry if registry is not None else default_registry()
        self.clock = clock

    async def _ensure_version_table(self) -> None:
        async with self.db.engine.begin() as conn:
            await conn.run_sync(
                lambda sync_conn: SchemaVersion.__table__.create(sync_conn, checkfirst=True)
            )

    async def current_version(self) -> int:
        """Highest applied version, 0 for a fresh store."""
        await self._ensure_version_table()
        async with self.db.read_engine.connect() as conn:
            result = await conn.execute(select(func.max(SchemaVersion.version)))
            return result.scalar() or 0

    async def applied_migrations(self) -> list[AppliedMigration]:
        await self._ensure_version_table()
        async with self.db.read_engine.connect() as conn:
            result = await conn.execute(
                select(SchemaVersion.version, SchemaVersion.name, SchemaVersion.applied_at)
                .order_by(SchemaVersion.version)
            )
            return [AppliedMigration(*row) for row in result.all()]

    async def migration_status(self) -> MigrationStatus:
        """Report the applied history and the steps still pending."""
        self.registry.validate()
        applied = await self.applied_migrations()
        current = max((a.version for a in applied), default=0)
        return MigrationStatus(
            current_version=current,
            latest_version=self.registry.latest_version,
            applied=applied,
            pending=self.registry.pending(current),
        )

    async def run_pending_migrations(self) -> list[MigrationStep]:
        """Apply every pending step in ascending order.

        Returns the steps applied; empty when the store is already at head.
        Raises MigrationError on the first failing step, leaving the store at
        the last fully applied version.
        """
        self.registry.validate()
        try:
            current = await self.current_version()
        except Exception as e:
            raise MigrationError(f"Cannot read schema version: {e}") from e

        if current > self.registry.latest_version:
            raise MigrationError(
                f"Store is at version {current}, newer than the latest registered "
                f"version {self.registry.latest_version}"
            )

        pending = self.registry.pending(current)
        if not pending:
            logger.info("Schema is up to date at version %d", current, extra={"version": current})
            return []

        logger.info(
            "Applying %d migration(s): version %d -> %d",
            len(pending), current, pending[-1].version,
        )
        applied = []
        for step in pending:
            try:
                await self._apply(step)
            except Exception as e:
                logger.critical(
                    "Migration %s failed, store left at version %d: %s",
                    step, applied[-1].version if applied else current, e,
                    extra={"version": step.version},
                )
                raise MigrationError(f"Migration {step} failed: {e}", version=step.version) from e
            applied.append(step)
            logger.info("Applied migration %s", step, extra={"version": step.version})
        return applied

    async def _apply(self, step: MigrationStep) -> None:
        applied_at = self.clock()

        def _upgrade(connection: Connection) -> None:
            _run_step(connection, step.up)
            connection.execute(
                insert(SchemaVersion).values(
                    version=step.version, name=step.name, applied_at=applied_at
                )
            )

        async with self.db.engine.begin() as conn:
            await conn.run_sync(_upgrade)

    async def rollback_to(self, target_version: int) -> list[MigrationStep]:
        """Administrative rollback: run ``downgrade()`` down to ``target_version``.

        Never called automatically. Each step is undone in its own
        transaction together with the removal of its version row.
        """
        self.registry.validate()
        if target_version < 0:
            raise MigrationError(f"Invalid rollback target: {target_version}")

        current = await self.current_version()
        steps = [s for s in self.registry.applied(current) if s.version > target_version]
        rolled_back = []
        for step in steps:

            def _downgrade(connection: Connection, step: MigrationStep = step) -> None:
                _run_step(connection, step.down)
                connection.execute(delete(SchemaVersion).where(SchemaVersion.version == step.version))

            try:
                async with self.db.engine.begin() as conn:
                    await conn.run_sync(_downgrade)
            except Exception as e:
                raise MigrationError(f"Rollback of {step} failed: {e}", version=step.version) from e
            rolled_back.append(step)
            logger.warning("Rolled back migration %s", step, extra={"version": step.version})
        return rolled_back
