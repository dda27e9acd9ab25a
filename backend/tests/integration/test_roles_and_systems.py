"""
Integration tests for role switching and system (actor) registration.
"""

import pytest
from sqlalchemy import select

from conftest import FIXED_NOW, TEST_SYSTEM_ID, fetch_rows
from core.errors import AlreadyDeletedError, NotFoundError, ValidationError
from infrastructure.database.models import System
from services import SystemRegistry


class TestSwitchRole:
    @pytest.mark.asyncio
    async def test_enables_and_activates(self, services, seed, store):
        project_id = await seed.project("demo")

        assignment = await services.roles.switch_role("demo", "architect")

        assert assignment.role_id == "architect"
        assert assignment.previous_role_id is None
        assert assignment.system_id == TEST_SYSTEM_ID
        active = await fetch_rows(store, "SELECT project_id, system_id, role_id FROM active_roles")
        assert active == [{"project_id": project_id, "system_id": TEST_SYSTEM_ID, "role_id": "architect"}]
        enabled = await fetch_rows(store, "SELECT role_id, is_active FROM project_roles")
        assert enabled == [{"role_id": "architect", "is_active": 1}]

    @pytest.mark.asyncio
    async def test_switch_replaces_assignment_and_audits(self, services, seed, store):
        await seed.project("demo")
        await services.roles.switch_role("demo", "architect")

        assignment = await services.roles.switch_role("demo", "qa")

        assert assignment.previous_role_id == "architect"
        assert "Switched from 'architect' to 'qa'" in assignment.message
        active = await fetch_rows(store, "SELECT role_id FROM active_roles")
        assert active == [{"role_id": "qa"}]
        async with store.session() as session:
            entries = await services.audit.recent(session)
        assert [e.action for e in entries] == ["switch_role", "switch_role"]
        assert entries[0].role_id == "qa"
        assert entries[0].changes == {"from_role": "architect", "to_role": "qa", "system_id": TEST_SYSTEM_ID}

    @pytest.mark.asyncio
    async def test_disabled_role_refused(self, services, seed):
        project_id = await seed.project("demo")
        await seed.project_role(project_id, "devops", is_active=False)
        with pytest.raises(ValidationError):
            await services.roles.switch_role("demo", "devops")

    @pytest.mark.asyncio
    async def test_unknown_role(self, services, seed):
        await seed.project("demo")
        with pytest.raises(NotFoundError):
            await services.roles.switch_role("demo", "astronaut")

    @pytest.mark.asyncio
    async def test_deleted_project(self, services, seed):
        await seed.project("demo", deleted_at=FIXED_NOW)
        with pytest.raises(AlreadyDeletedError):
            await services.roles.switch_role("demo", "qa")


class TestReleaseRole:
    @pytest.mark.asyncio
    async def test_release(self, services, seed, store):
        await seed.project("demo")
        await services.roles.switch_role("demo", "developer")

        assignment = await services.roles.release_role("demo")

        assert assignment.role_id is None
        assert assignment.previous_role_id == "developer"
        assert await fetch_rows(store, "SELECT * FROM active_roles") == []

    @pytest.mark.asyncio
    async def test_nothing_to_release(self, services, seed):
        await seed.project("demo")
        with pytest.raises(NotFoundError):
            await services.roles.release_role("demo")


class TestSystemRegistry:
    @pytest.mark.asyncio
    async def test_registers_new_host_as_current(self, store, clock):
        registry = SystemRegistry(hostname="laptop", platform_name="darwin", clock=clock)

        async with store.transaction() as session:
            system_id = await registry.current_actor(session)

        async with store.session() as session:
            systems = (await session.execute(select(System).order_by(System.id))).scalars().all()
        current = [s for s in systems if s.is_current]
        assert [s.id for s in current] == [system_id]
        assert current[0].hostname == "laptop"
        assert current[0].platform == "darwin"

    @pytest.mark.asyncio
    async def test_existing_host_reused(self, store, clock):
        registry = SystemRegistry(hostname="test-host", clock=clock)
        async with store.transaction() as session:
            first = await registry.current_system_id(session)
        async with store.transaction() as session:
            second = await registry.current_system_id(session)
        assert first == second == TEST_SYSTEM_ID
