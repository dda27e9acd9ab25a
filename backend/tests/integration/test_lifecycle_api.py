"""
Integration tests for the lifecycle HTTP routes.

All tests use async fixtures and httpx AsyncClient.
"""

import pytest
from httpx import AsyncClient

from conftest import OTHER_SYSTEM_ID, days_ago, state_hash


class TestDeleteProjectRoute:
    @pytest.mark.asyncio
    async def test_delete_success(self, async_client: AsyncClient, seed):
        project_id = await seed.project("demo")
        await seed.context("notes", project_id=project_id)

        response = await async_client.post("/api/v1/projects/demo/delete", json={"confirm": True})

        assert response.status_code == 200
        data = response.json()
        assert data["entity_type"] == "project"
        assert data["name"] == "demo"
        assert data["cascade_counts"]["context"] == 1
        assert "successfully deleted" in data["message"]

    @pytest.mark.asyncio
    async def test_confirm_false(self, async_client: AsyncClient, seed):
        await seed.project("demo")
        response = await async_client.post("/api/v1/projects/demo/delete", json={"confirm": False})
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_confirm_must_be_boolean(self, async_client: AsyncClient, seed, store):
        await seed.project("demo")
        before = await state_hash(store)

        response = await async_client.post("/api/v1/projects/demo/delete", json={"confirm": "true"})

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["error"].startswith("confirm")
        assert await state_hash(store) == before

    @pytest.mark.asyncio
    async def test_not_found(self, async_client: AsyncClient, store):
        response = await async_client.post("/api/v1/projects/ghost/delete", json={"confirm": True})
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_already_deleted(self, async_client: AsyncClient, seed):
        await seed.project("demo")
        await async_client.post("/api/v1/projects/demo/delete", json={"confirm": True})

        response = await async_client.post("/api/v1/projects/demo/delete", json={"confirm": True})

        assert response.status_code == 409
        assert response.json()["code"] == "ALREADY_DELETED"

    @pytest.mark.asyncio
    async def test_active_role_blocks(self, async_client: AsyncClient, seed):
        project_id = await seed.project("demo")
        await seed.active_role(project_id, system_id=OTHER_SYSTEM_ID)

        response = await async_client.post("/api/v1/projects/demo/delete", json={"confirm": True})

        assert response.status_code == 412
        assert response.json()["code"] == "PRECONDITION_FAILED"


class TestDeleteContextRoute:
    @pytest.mark.asyncio
    async def test_delete_twice(self, async_client: AsyncClient, seed):
        project_id = await seed.project("demo")
        await seed.context("notes", project_id=project_id)
        payload = {"context_key": "notes", "project_name": "demo"}

        first = await async_client.post("/api/v1/contexts/delete", json=payload)
        second = await async_client.post("/api/v1/contexts/delete", json=payload)

        assert first.status_code == 200
        assert first.json()["project_name"] == "demo"
        assert second.status_code == 409

    @pytest.mark.asyncio
    async def test_empty_key_rejected(self, async_client: AsyncClient, store):
        response = await async_client.post("/api/v1/contexts/delete", json={"context_key": ""})
        assert response.status_code == 400


class TestCleanupRoute:
    @pytest.mark.asyncio
    async def test_defaults_to_dry_run(self, async_client: AsyncClient, seed, store):
        await seed.project("demo", status="paused", updated_at=days_ago(60))
        await seed.project("core", status="active", updated_at=days_ago(400))
        before = await state_hash(store)

        response = await async_client.post("/api/v1/cleanup", json={"older_than": "30 days"})

        assert response.status_code == 200
        data = response.json()
        assert data["dry_run"] is True
        assert [p["name"] for p in data["projects"]] == ["demo"]
        assert await state_hash(store) == before

    @pytest.mark.asyncio
    async def test_destructive_run(self, async_client: AsyncClient, seed):
        await seed.project("demo", status="paused", updated_at=days_ago(60))

        response = await async_client.post(
            "/api/v1/cleanup", json={"older_than": "30 days", "dry_run": False}
        )

        assert response.status_code == 200
        assert response.json()["counts"]["projects_deleted"] == 1

    @pytest.mark.asyncio
    async def test_bad_threshold(self, async_client: AsyncClient, store):
        response = await async_client.post("/api/v1/cleanup", json={"older_than": "soon"})
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"


class TestQueueAndAuditRoutes:
    @pytest.mark.asyncio
    async def test_queue_listing(self, async_client: AsyncClient, seed):
        await seed.context("scratch")
        await async_client.post("/api/v1/contexts/delete", json={"context_key": "scratch"})

        listing = await async_client.get("/api/v1/deletion-queue")
        due = await async_client.get("/api/v1/deletion-queue/due")

        assert listing.status_code == 200
        assert listing.json()["total"] == 1
        assert listing.json()["items"][0]["entity_type"] == "context"
        # Retention window has not elapsed at the frozen clock
        assert due.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_audit_listing(self, async_client: AsyncClient, seed):
        await seed.project("demo")
        await async_client.post("/api/v1/projects/demo/role", json={"role_id": "qa"})
        await async_client.delete("/api/v1/projects/demo/role")

        response = await async_client.get("/api/v1/audit", params={"entity_type": "project"})

        assert response.status_code == 200
        assert [item["action"] for item in response.json()["items"]] == ["release_role", "switch_role"]


class TestMigrationAndHealthRoutes:
    @pytest.mark.asyncio
    async def test_status(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/migrations/status")
        assert response.status_code == 200
        data = response.json()
        assert data["current_version"] == data["latest_version"] == 5
        assert data["up_to_date"] is True
        assert data["pending"] == []

    @pytest.mark.asyncio
    async def test_run_is_noop_at_head(self, async_client: AsyncClient):
        response = await async_client.post("/api/v1/migrations/run")
        assert response.status_code == 200
        assert response.json() == {"applied": [], "current_version": 5}

    @pytest.mark.asyncio
    async def test_health_db(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/health/db")
        assert response.status_code == 200
        assert response.json()["database"] == "connected"
