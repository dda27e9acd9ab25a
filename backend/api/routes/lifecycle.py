"""
Lifecycle API routes: soft deletes, cleanup sweep, deletion queue, audit
trail and role switching.

Services raise ``ContextStoreError`` subclasses; the application-level
handler turns them into ``{"error", "code"}`` responses.
"""

from typing import Optional

from fastapi import APIRouter, Query

from api.dependencies import ServicesDep
from api.schemas.lifecycle import (
    AuditEntryResponse,
    AuditLogResponse,
    CleanupRequest,
    ContextDeleteRequest,
    DeletionQueueEntryResponse,
    DeletionQueueResponse,
    DeletionResponse,
    ProjectDeleteRequest,
    RoleAssignmentResponse,
    RoleSwitchRequest,
    SweepResponse,
)
from core.domain.lifecycle import EntityType
from services import RoleAssignment

router = APIRouter(tags=["Lifecycle"])


def _assignment_response(assignment: RoleAssignment) -> RoleAssignmentResponse:
    return RoleAssignmentResponse(
        project_name=assignment.project_name,
        system_id=assignment.system_id,
        role_id=assignment.role_id,
        previous_role_id=assignment.previous_role_id,
        message=assignment.message,
    )


# =============================================================================
# Deletes
# =============================================================================


@router.post("/projects/{project_name}/delete", response_model=DeletionResponse)
async def delete_project(project_name: str, body: ProjectDeleteRequest, services: ServicesDep):
    """
    Soft delete a project. Cascades to its contexts and handoffs and
    deactivates its role enablements. Refused while any system has an
    active role on the project.
    """
    result = await services.deletions.soft_delete_project(project_name, confirm=body.confirm)
    return DeletionResponse.from_result(result)


@router.post("/contexts/delete", response_model=DeletionResponse)
async def delete_context(body: ContextDeleteRequest, services: ServicesDep):
    """Soft delete a context entry by key, optionally scoped to a project."""
    result = await services.deletions.soft_delete_context(
        body.context_key, project_name=body.project_name
    )
    return DeletionResponse.from_result(result)


@router.post("/cleanup", response_model=SweepResponse)
async def cleanup_old_data(body: CleanupRequest, services: ServicesDep):
    """Preview (default) or run the age-threshold cleanup sweep."""
    report = await services.sweeper.sweep(body.older_than, dry_run=body.dry_run)
    return SweepResponse.from_report(report)


# =============================================================================
# Deletion queue
# =============================================================================


@router.get("/deletion-queue", response_model=DeletionQueueResponse)
async def list_deletion_queue(
    services: ServicesDep,
    include_hard_deleted: bool = Query(False),
):
    async with services.db.session() as session:
        entries = await services.queue.list_entries(session, include_hard_deleted=include_hard_deleted)
    items = [DeletionQueueEntryResponse.model_validate(e) for e in entries]
    return DeletionQueueResponse(items=items, total=len(items))


@router.get("/deletion-queue/due", response_model=DeletionQueueResponse)
async def list_due_for_hard_delete(services: ServicesDep):
    """Entries whose retention window has elapsed. Purging them is external."""
    async with services.db.session() as session:
        entries = await services.queue.due_for_hard_delete(session, services.clock())
    items = [DeletionQueueEntryResponse.model_validate(e) for e in entries]
    return DeletionQueueResponse(items=items, total=len(items))


# =============================================================================
# Audit trail
# =============================================================================


@router.get("/audit", response_model=AuditLogResponse)
async def list_audit_entries(
    services: ServicesDep,
    entity_type: Optional[EntityType] = Query(None),
    limit: int = Query(50, ge=1, le=500),
):
    async with services.db.session() as session:
        entries = await services.audit.recent(session, limit=limit, entity_type=entity_type)
    items = [AuditEntryResponse.model_validate(e) for e in entries]
    return AuditLogResponse(items=items, total=len(items))


# =============================================================================
# Roles
# =============================================================================


@router.post("/projects/{project_name}/role", response_model=RoleAssignmentResponse)
async def switch_role(project_name: str, body: RoleSwitchRequest, services: ServicesDep):
    assignment = await services.roles.switch_role(project_name, body.role_id)
    return _assignment_response(assignment)


@router.delete("/projects/{project_name}/role", response_model=RoleAssignmentResponse)
async def release_role(project_name: str, services: ServicesDep):
    """Clear this system's active role so the project can be deleted."""
    assignment = await services.roles.release_role(project_name)
    return _assignment_response(assignment)
