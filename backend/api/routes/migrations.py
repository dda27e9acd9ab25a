"""Schema migration status endpoints."""

from fastapi import APIRouter

from api.dependencies import MigrationRunnerDep
from api.schemas.lifecycle import (
    AppliedMigrationResponse,
    MigrationRunResponse,
    MigrationStatusResponse,
    PendingMigrationResponse,
)

router = APIRouter(prefix="/migrations", tags=["Migrations"])


@router.get("/status", response_model=MigrationStatusResponse)
async def migration_status(runner: MigrationRunnerDep):
    status = await runner.migration_status()
    return MigrationStatusResponse(
        current_version=status.current_version,
        latest_version=status.latest_version,
        up_to_date=status.is_up_to_date,
        applied=[
            AppliedMigrationResponse(version=a.version, name=a.name, applied_at=a.applied_at)
            for a in status.applied
        ],
        pending=[PendingMigrationResponse(version=s.version, name=s.name) for s in status.pending],
    )


@router.post("/run", response_model=MigrationRunResponse)
async def run_migrations(runner: MigrationRunnerDep):
    """Apply pending steps. A no-op when the store is already at head."""
    applied = await runner.run_pending_migrations()
    return MigrationRunResponse(
        applied=[PendingMigrationResponse(version=s.version, name=s.name) for s in applied],
        current_version=await runner.current_version(),
    )
