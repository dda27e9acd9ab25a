"""
Service layer for the lifecycle core.
"""

from dataclasses import dataclass
from typing import Optional

from core.domain.lifecycle import utcnow
from core.interfaces import ActorResolver, Clock
from infrastructure.config.settings import Settings
from infrastructure.database.connection import Database
from services.audit_log import AuditLog
from services.cleanup_sweep import CleanupSweep
from services.deletion_queue import DeletionQueue
from services.roles import RoleAssignment, RoleService
from services.soft_delete import SoftDeleteManager
from services.systems import SystemRegistry


@dataclass
class LifecycleServices:
    """Components sharing one store handle, clock and actor resolver."""

    db: Database
    clock: Clock
    systems: ActorResolver
    audit: AuditLog
    queue: DeletionQueue
    deletions: SoftDeleteManager
    sweeper: CleanupSweep
    roles: RoleService


def build_services(
    db: Database,
    settings: Optional[Settings] = None,
    clock: Clock = utcnow,
    actor_resolver: Optional[ActorResolver] = None,
) -> LifecycleServices:
    """
    Wire the lifecycle components around an explicitly constructed store.

    Args:
        db: Store handle, already migrated
        settings: Supplies the ``system_name`` hostname override
        clock: Wall-clock source (naive UTC)
        actor_resolver: Overrides the hostname-based system registry
    """
    hostname = settings.system_name if settings is not None else None
    systems = actor_resolver or SystemRegistry(hostname=hostname, clock=clock)
    audit = AuditLog()
    queue = DeletionQueue()
    deletions = SoftDeleteManager(db, systems, queue=queue, audit=audit, clock=clock)
    return LifecycleServices(
        db=db,
        clock=clock,
        systems=systems,
        audit=audit,
        queue=queue,
        deletions=deletions,
        sweeper=CleanupSweep(db, deletions),
        roles=RoleService(db, systems, audit=audit, clock=clock),
    )


__all__ = [
    "AuditLog",
    "CleanupSweep",
    "DeletionQueue",
    "LifecycleServices",
    "RoleAssignment",
    "RoleService",
    "SoftDeleteManager",
    "SystemRegistry",
    "build_services",
]
