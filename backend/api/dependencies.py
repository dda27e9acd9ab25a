"""
API dependencies: components built at startup and kept on ``app.state``.
"""

from typing import Annotated

from fastapi import Depends, Request

from infrastructure.database.migrations import MigrationRunner
from services import LifecycleServices


def get_services(request: Request) -> LifecycleServices:
    """Lifecycle services wired around the application's store handle."""
    return request.app.state.services


def get_migration_runner(request: Request) -> MigrationRunner:
    return request.app.state.migration_runner


ServicesDep = Annotated[LifecycleServices, Depends(get_services)]
MigrationRunnerDep = Annotated[MigrationRunner, Depends(get_migration_runner)]
