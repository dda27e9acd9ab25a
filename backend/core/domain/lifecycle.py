"""Lifecycle domain entities: entity types, cascade graph, sweep thresholds."""
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Optional

from core.errors import ValidationError

# Soft-deleted rows become eligible for hard delete after this window.
RETENTION_PERIOD = timedelta(days=7)

# Fixed approximation, not calendar arithmetic.
DAYS_PER_UNIT = {
    "day": 1,
    "month": 30,
    "year": 365,
}

_OLDER_THAN_RE = re.compile(r"^(\d+)\s+(days?|months?|years?)$", re.ASCII)


def utcnow() -> datetime:
    """Naive UTC wall clock, the format every stored timestamp uses."""
    return datetime.now(UTC).replace(tzinfo=None, microsecond=0)


class EntityType(str, Enum):
    """Entity types known to the lifecycle core."""

    PROJECT = "project"
    CONTEXT = "context"
    ROLE_HANDOFF = "role_handoff"
    ROLE_ASSIGNMENT = "role_assignment"
    SYSTEM = "system"


# Only these get a deletion_queue row.
QUEUED_ENTITY_TYPES = frozenset({EntityType.PROJECT, EntityType.CONTEXT})


class CascadeAction(str, Enum):
    """Action applied to a dependent entity when its parent is deleted."""

    SOFT_DELETE = "soft_delete"
    DEACTIVATE = "deactivate"


class ProjectStatus(str, Enum):
    """Project status enumeration."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    ARCHIVED = "archived"


@dataclass(frozen=True)
class CascadeRule:
    """One edge of the cascade graph."""

    child: EntityType
    action: CascadeAction
    parent_key: str = "project_id"


# Adding a dependent entity type is a change to this mapping only.
CASCADE_GRAPH: dict[EntityType, tuple[CascadeRule, ...]] = {
    EntityType.PROJECT: (
        CascadeRule(EntityType.CONTEXT, CascadeAction.SOFT_DELETE),
        CascadeRule(EntityType.ROLE_HANDOFF, CascadeAction.SOFT_DELETE),
        CascadeRule(EntityType.ROLE_ASSIGNMENT, CascadeAction.DEACTIVATE),
    ),
}


@dataclass(frozen=True)
class AgeThreshold:
    """Sweep age threshold, e.g. ``AgeThreshold(6, "month")``."""

    amount: int
    unit: str

    def __post_init__(self):
        if isinstance(self.amount, bool) or not isinstance(self.amount, int) or self.amount < 0:
            raise ValidationError(
                f"Threshold amount must be a non-negative integer, got {self.amount!r}"
            )
        if self.unit not in DAYS_PER_UNIT:
            raise ValidationError(
                f"Threshold unit must be one of {', '.join(DAYS_PER_UNIT)}, got {self.unit!r}"
            )

    @classmethod
    def parse(cls, value: "str | AgeThreshold") -> "AgeThreshold":
        """Parse ``"30 days"``, ``"6 months"`` or ``"1 year"``."""
        if isinstance(value, AgeThreshold):
            return value
        if not isinstance(value, str):
            raise ValidationError("Invalid time period format. Use format like \"30 days\" or \"6 months\"")
        match = _OLDER_THAN_RE.fullmatch(value)
        if not match:
            raise ValidationError(
                "Invalid time period format. Use format like \"30 days\" or \"6 months\"",
                older_than=value,
            )
        amount, unit = match.groups()
        return cls(int(amount), unit.rstrip("s"))

    @property
    def days(self) -> int:
        return self.amount * DAYS_PER_UNIT[self.unit]

    def cutoff(self, now: datetime) -> datetime:
        """Rows last updated strictly before this instant are candidates."""
        return now - timedelta(days=self.days)

    def __str__(self) -> str:
        return f"{self.amount} {self.unit}{'' if self.amount == 1 else 's'}"


@dataclass
class DeletionResult:
    """Outcome of a successful soft delete."""

    entity_type: EntityType
    entity_id: int
    name: str
    deleted_at: datetime
    deleted_by: Optional[int]
    scheduled_hard_delete: Optional[datetime]
    cascade_counts: dict[str, int] = field(default_factory=dict)
    project_name: Optional[str] = None

    @property
    def message(self) -> str:
        if self.entity_type == EntityType.PROJECT:
            lines = [
                f"Project '{self.name}' successfully deleted",
                "",
                "Deletion Summary:",
                f"- Contexts deleted: {self.cascade_counts.get(EntityType.CONTEXT.value, 0)}",
                "- Role assignments deactivated: "
                f"{self.cascade_counts.get(EntityType.ROLE_ASSIGNMENT.value, 0)}",
                f"- Handoffs deleted: {self.cascade_counts.get(EntityType.ROLE_HANDOFF.value, 0)}",
                "",
                "This is a soft delete. Data will be permanently removed after "
                f"{RETENTION_PERIOD.days} days.",
            ]
            return "\n".join(lines)

        scope = f" from project '{self.project_name}'" if self.project_name else ""
        return (
            f"Context entry '{self.name}' deleted{scope}\n\n"
            f"This is a soft delete. Data will be permanently removed after "
            f"{RETENTION_PERIOD.days} days."
        )


@dataclass
class SweepCandidate:
    """An entity selected by the cleanup sweep."""

    entity_type: EntityType
    entity_id: int
    name: str
    updated_at: datetime
    status: Optional[str] = None
    context_type: Optional[str] = None
    context_count: int = 0
    blocked: bool = False


@dataclass
class SweepReport:
    """Result of a cleanup sweep, previewed or executed."""

    threshold: AgeThreshold
    cutoff: datetime
    dry_run: bool
    projects: list[SweepCandidate] = field(default_factory=list)
    contexts: list[SweepCandidate] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)

    @property
    def skipped(self) -> list[SweepCandidate]:
        return [c for c in self.projects if c.blocked]

    @property
    def total_candidates(self) -> int:
        return len(self.projects) + len(self.contexts)

    @property
    def message(self) -> str:
        if self.dry_run:
            return self._preview_message()

        lines = [
            "Cleanup Complete",
            "",
            "Deleted:",
            f"- Projects: {self.counts.get('projects_deleted', 0)}",
            f"- Standalone contexts: {self.counts.get('contexts_deleted', 0)}",
            f"- Project contexts (cascaded): {self.counts.get('contexts_cascaded', 0)}",
        ]
        if self.skipped:
            lines.append(f"- Skipped (active role assignment): {len(self.skipped)}")
        lines += [
            "",
            "This is a soft delete. Data will be permanently removed after "
            f"{RETENTION_PERIOD.days} days.",
        ]
        return "\n".join(lines)

    def _preview_message(self) -> str:
        lines = ["Cleanup Report (Dry Run)", "", f"Would delete data older than {self.threshold}:", ""]
        if self.projects:
            lines.append(f"Projects ({len(self.projects)}):")
            for p in self.projects:
                note = ", blocked by active role" if p.blocked else ""
                lines.append(
                    f"  - {p.name} ({p.context_count} contexts, "
                    f"last updated: {p.updated_at.date().isoformat()}{note})"
                )
            lines.append("")
        if self.contexts:
            lines.append(f"Standalone Contexts ({len(self.contexts)}):")
            for c in self.contexts:
                lines.append(
                    f"  - {c.name} ({c.context_type}, last updated: {c.updated_at.date().isoformat()})"
                )
        if not self.total_candidates:
            lines.append("No data found matching criteria.")
        else:
            lines += ["", "To perform actual deletion, run again with dry_run: false"]
        return "\n".join(lines)
