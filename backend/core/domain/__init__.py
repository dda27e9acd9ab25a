# Domain Entities
# Pure lifecycle objects with no storage dependencies
from .lifecycle import (
    CASCADE_GRAPH,
    QUEUED_ENTITY_TYPES,
    RETENTION_PERIOD,
    AgeThreshold,
    CascadeAction,
    CascadeRule,
    DeletionResult,
    EntityType,
    ProjectStatus,
    SweepCandidate,
    SweepReport,
    utcnow,
)

__all__ = [
    "CASCADE_GRAPH",
    "QUEUED_ENTITY_TYPES",
    "RETENTION_PERIOD",
    "AgeThreshold",
    "CascadeAction",
    "CascadeRule",
    "DeletionResult",
    "EntityType",
    "ProjectStatus",
    "SweepCandidate",
    "SweepReport",
    "utcnow",
]
