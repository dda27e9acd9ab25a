"""
Pytest configuration and shared fixtures for backend tests.
"""

import hashlib
import json
import sys
from pathlib import Path

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from datetime import datetime, timedelta
from typing import AsyncGenerator, Optional

from httpx import AsyncClient, ASGITransport
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

# Import after path is set
from core.interfaces import ActorResolver
from infrastructure.database import Database
from infrastructure.database.migrations import MigrationRunner
from infrastructure.database.models import (
    ActiveRole,
    ContextEntry,
    Project,
    ProjectRole,
    RoleHandoff,
    System,
)
from services import LifecycleServices, build_services

# Database URL for testing (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Every test runs against this instant
FIXED_NOW = datetime(2025, 9, 15, 12, 0, 0)

TEST_SYSTEM_ID = 1
OTHER_SYSTEM_ID = 2


class StaticActor(ActorResolver):
    """Actor resolver pinned to one system id."""

    def __init__(self, system_id: int = TEST_SYSTEM_ID):
        self.system_id = system_id

    async def current_actor(self, session: AsyncSession) -> int:
        return self.system_id


def days_ago(days: int) -> datetime:
    return FIXED_NOW - timedelta(days=days)


def sql_ts(value: datetime) -> str:
    """A datetime as SQLAlchemy stores it in a SQLite DATETIME column."""
    return value.strftime("%Y-%m-%d %H:%M:%S.%f")


@pytest.fixture
def clock():
    """Injected wall clock frozen at FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
async def db() -> AsyncGenerator[Database, None]:
    """Empty in-memory store at schema version 0."""
    database = Database(TEST_DATABASE_URL)
    yield database
    await database.close()


async def prepare_store(db: Database, clock) -> Database:
    """Migrate ``db`` to head with the real runner and register two systems."""
    await MigrationRunner(db, clock=clock).run_pending_migrations()
    async with db.transaction() as session:
        for system_id, hostname in ((TEST_SYSTEM_ID, "test-host"), (OTHER_SYSTEM_ID, "other-host")):
            session.add(
                System(
                    id=system_id,
                    name=hostname,
                    hostname=hostname,
                    platform="linux",
                    is_current=system_id == TEST_SYSTEM_ID,
                    created_at=FIXED_NOW,
                    last_seen=FIXED_NOW,
                )
            )
    return db


@pytest.fixture
async def store(db: Database, clock) -> Database:
    """Store migrated to head by the real runner, with two registered systems."""
    return await prepare_store(db, clock)


@pytest.fixture
async def file_store(tmp_path, clock) -> AsyncGenerator[Database, None]:
    """Migrated file-backed store, for tests that need concurrent transactions."""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'context.db'}")
    yield await prepare_store(database, clock)
    await database.close()


@pytest.fixture
def services(store: Database, clock) -> LifecycleServices:
    """Lifecycle components acting as TEST_SYSTEM_ID at FIXED_NOW."""
    return build_services(store, clock=clock, actor_resolver=StaticActor())


class Seeder:
    """Inserts domain rows directly, bypassing the services under test."""

    def __init__(self, db: Database):
        self.db = db

    async def project(
        self,
        name: str,
        status: str = "active",
        updated_at: Optional[datetime] = None,
        deleted_at: Optional[datetime] = None,
    ) -> int:
        updated_at = updated_at or FIXED_NOW
        async with self.db.transaction() as session:
            project = Project(
                name=name,
                status=status,
                created_at=updated_at,
                updated_at=updated_at,
                last_accessed=updated_at,
                deleted_at=deleted_at,
                deleted_by=TEST_SYSTEM_ID if deleted_at else None,
            )
            session.add(project)
            await session.flush()
            return project.id

    async def context(
        self,
        key: str,
        project_id: Optional[int] = None,
        type: str = "note",
        value: str = "remember this",
        updated_at: Optional[datetime] = None,
        deleted_at: Optional[datetime] = None,
    ) -> int:
        updated_at = updated_at or FIXED_NOW
        async with self.db.transaction() as session:
            entry = ContextEntry(
                project_id=project_id,
                system_id=TEST_SYSTEM_ID,
                type=type,
                key=key,
                value=value,
                created_at=updated_at,
                updated_at=updated_at,
                deleted_at=deleted_at,
                deleted_by=TEST_SYSTEM_ID if deleted_at else None,
            )
            session.add(entry)
            await session.flush()
            return entry.id

    async def handoff(
        self,
        project_id: int,
        from_role_id: str = "architect",
        to_role_id: str = "developer",
        deleted_at: Optional[datetime] = None,
    ) -> int:
        async with self.db.transaction() as session:
            handoff = RoleHandoff(
                project_id=project_id,
                from_role_id=from_role_id,
                to_role_id=to_role_id,
                handoff_data={"summary": "API design settled"},
                created_by_system_id=TEST_SYSTEM_ID,
                created_at=FIXED_NOW,
                deleted_at=deleted_at,
            )
            session.add(handoff)
            await session.flush()
            return handoff.id

    async def project_role(self, project_id: int, role_id: str, is_active: bool = True) -> int:
        async with self.db.transaction() as session:
            row = ProjectRole(
                project_id=project_id, role_id=role_id, is_active=is_active, created_at=FIXED_NOW
            )
            session.add(row)
            await session.flush()
            return row.id

    async def active_role(
        self, project_id: int, role_id: str = "developer", system_id: int = TEST_SYSTEM_ID
    ) -> None:
        async with self.db.transaction() as session:
            session.add(
                ActiveRole(
                    project_id=project_id,
                    system_id=system_id,
                    role_id=role_id,
                    activated_at=FIXED_NOW,
                )
            )


@pytest.fixture
def seed(store: Database) -> Seeder:
    return Seeder(store)


async def table_names(db: Database) -> list[str]:
    async with db.session() as session:
        result = await session.execute(
            text(
                "SELECT name FROM sqlite_master "
                "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
            )
        )
        return [row[0] for row in result.all()]


async def column_names(db: Database, table: str) -> list[str]:
    async with db.session() as session:
        result = await session.execute(text(f"PRAGMA table_info({table})"))
        return [row[1] for row in result.all()]


async def fetch_rows(db: Database, sql: str, **params) -> list[dict]:
    async with db.session() as session:
        result = await session.execute(text(sql), params)
        return [dict(row._mapping) for row in result.all()]


async def state_hash(db: Database) -> str:
    """Digest of every row of every table, for before/after comparisons."""
    digest = hashlib.sha256()
    tables = await table_names(db)
    async with db.session() as session:
        for table in tables:
            result = await session.execute(text(f'SELECT * FROM "{table}" ORDER BY rowid'))
            rows = [list(row) for row in result.all()]
            digest.update(table.encode())
            digest.update(json.dumps(rows, default=str, sort_keys=True).encode())
    return digest.hexdigest()


@pytest.fixture
async def async_client(services: LifecycleServices, store: Database, clock) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    # Import app here to avoid circular imports
    from api.dependencies import get_migration_runner, get_services
    from main import app

    runner = MigrationRunner(store, clock=clock)
    app.dependency_overrides[get_services] = lambda: services
    app.dependency_overrides[get_migration_runner] = lambda: runner

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
