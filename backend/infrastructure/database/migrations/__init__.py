"""Schema migration engine: registry of versioned steps and the runner."""

from .registry import (
    MigrationRegistry,
    MigrationStep,
    default_registry,
    load_migrations,
    step_from_module,
)
from .runner import AppliedMigration, MigrationRunner, MigrationStatus

__all__ = [
    "AppliedMigration",
    "MigrationRegistry",
    "MigrationRunner",
    "MigrationStatus",
    "MigrationStep",
    "default_registry",
    "load_migrations",
    "step_from_module",
]
