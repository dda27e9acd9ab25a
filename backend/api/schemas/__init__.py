"""
API request and response schemas.
"""

from .lifecycle import (
    CleanupRequest,
    ContextDeleteRequest,
    DeletionResponse,
    MigrationStatusResponse,
    ProjectDeleteRequest,
    RoleSwitchRequest,
    SweepResponse,
)

__all__ = [
    "CleanupRequest",
    "ContextDeleteRequest",
    "DeletionResponse",
    "MigrationStatusResponse",
    "ProjectDeleteRequest",
    "RoleSwitchRequest",
    "SweepResponse",
]
