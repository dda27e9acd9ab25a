"""
Lifecycle API schemas: deletes, cleanup sweep, queue, audit, roles.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool

from core.domain.lifecycle import DeletionResult, SweepCandidate, SweepReport

# =============================================================================
# Requests
# =============================================================================


class ProjectDeleteRequest(BaseModel):
    """Body of a project delete. ``confirm`` must be the JSON literal ``true``."""

    confirm: StrictBool = Field(..., description="Must be true to confirm deletion")


class ContextDeleteRequest(BaseModel):
    """Schema for deleting a context entry by key."""

    context_key: str = Field(..., min_length=1, max_length=255)
    project_name: Optional[str] = Field(
        None, min_length=1, max_length=255, description="Optional project name to scope the deletion"
    )


class CleanupRequest(BaseModel):
    """Schema for a cleanup sweep."""

    older_than: str = Field(..., description='Age threshold, e.g. "30 days", "6 months", "1 year"')
    dry_run: StrictBool = Field(True, description="Preview only; false performs the deletion")


class RoleSwitchRequest(BaseModel):
    """Schema for switching the active role of a project."""

    role_id: str = Field(..., min_length=1, max_length=50)


# =============================================================================
# Responses
# =============================================================================


class DeletionResponse(BaseModel):
    """Soft delete confirmation."""

    entity_type: str
    entity_id: int
    name: str
    project_name: Optional[str] = None
    deleted_at: datetime
    deleted_by: Optional[int] = None
    scheduled_hard_delete: Optional[datetime] = None
    cascade_counts: dict[str, int] = Field(default_factory=dict)
    message: str

    @classmethod
    def from_result(cls, result: DeletionResult) -> "DeletionResponse":
        return cls(
            entity_type=result.entity_type.value,
            entity_id=result.entity_id,
            name=result.name,
            project_name=result.project_name,
            deleted_at=result.deleted_at,
            deleted_by=result.deleted_by,
            scheduled_hard_delete=result.scheduled_hard_delete,
            cascade_counts=result.cascade_counts,
            message=result.message,
        )


class SweepCandidateResponse(BaseModel):
    entity_type: str
    entity_id: int
    name: str
    updated_at: datetime
    status: Optional[str] = None
    context_type: Optional[str] = None
    context_count: int = 0
    blocked: bool = False

    @classmethod
    def from_candidate(cls, candidate: SweepCandidate) -> "SweepCandidateResponse":
        return cls(
            entity_type=candidate.entity_type.value,
            entity_id=candidate.entity_id,
            name=candidate.name,
            updated_at=candidate.updated_at,
            status=candidate.status,
            context_type=candidate.context_type,
            context_count=candidate.context_count,
            blocked=candidate.blocked,
        )


class SweepResponse(BaseModel):
    """Cleanup report, previewed or executed."""

    dry_run: bool
    older_than: str
    cutoff: datetime
    projects: list[SweepCandidateResponse]
    contexts: list[SweepCandidateResponse]
    counts: dict[str, int] = Field(default_factory=dict)
    message: str

    @classmethod
    def from_report(cls, report: SweepReport) -> "SweepResponse":
        return cls(
            dry_run=report.dry_run,
            older_than=str(report.threshold),
            cutoff=report.cutoff,
            projects=[SweepCandidateResponse.from_candidate(p) for p in report.projects],
            contexts=[SweepCandidateResponse.from_candidate(c) for c in report.contexts],
            counts=report.counts,
            message=report.message,
        )


class DeletionQueueEntryResponse(BaseModel):
    """Hard-delete eligibility record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    entity_type: str
    entity_id: int
    deleted_at: datetime
    deleted_by: Optional[int] = None
    scheduled_hard_delete: datetime
    hard_deleted: bool


class DeletionQueueResponse(BaseModel):
    items: list[DeletionQueueEntryResponse]
    total: int


class AuditEntryResponse(BaseModel):
    """Audit trail entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    entity_type: str
    entity_id: int
    action: str
    changes: Optional[dict] = None
    role_id: Optional[str] = None
    timestamp: datetime


class AuditLogResponse(BaseModel):
    items: list[AuditEntryResponse]
    total: int


class RoleAssignmentResponse(BaseModel):
    project_name: str
    system_id: int
    role_id: Optional[str] = None
    previous_role_id: Optional[str] = None
    message: str


# =============================================================================
# Migrations
# =============================================================================


class AppliedMigrationResponse(BaseModel):
    version: int
    name: str
    applied_at: datetime


class PendingMigrationResponse(BaseModel):
    version: int
    name: str


class MigrationStatusResponse(BaseModel):
    current_version: int
    latest_version: int
    up_to_date: bool
    applied: list[AppliedMigrationResponse]
    pending: list[PendingMigrationResponse]


class MigrationRunResponse(BaseModel):
    applied: list[PendingMigrationResponse]
    current_version: int
