"""
Migration registry: ordered, validated sequence of schema steps.

Each step lives in ``versions/NNN_<slug>.py`` and defines::

    version = 4
    name = "add_soft_delete"

    def upgrade() -> None: ...
    def downgrade() -> None: ...

Steps use alembic's ``op`` proxy. SQLite has no usable DROP COLUMN, so a
step that removes a column must go through ``op.batch_alter_table``, which
creates a replacement table with the desired shape, copies the rows, drops
the original and renames the replacement into place.
"""

import importlib
import logging
import pkgutil
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from core.errors import MigrationError

logger = logging.getLogger(__name__)

VERSIONS_PACKAGE = "infrastructure.database.migrations.versions"


@dataclass(frozen=True)
class MigrationStep:
    """A single schema migration."""

    version: int
    name: str
    up: Callable[[], None]
    down: Callable[[], None]

    def __str__(self) -> str:
        return f"{self.version:03d}_{self.name}"


class MigrationRegistry:
    """Ordered sequence of migration steps."""

    def __init__(self, steps: Iterable[MigrationStep]):
        self.steps: list[MigrationStep] = sorted(steps, key=lambda s: s.version)

    def validate(self) -> None:
        """Fail fast on duplicate, non-positive or missing versions."""
        versions = [s.version for s in self.steps]

        bad = [v for v in versions if isinstance(v, bool) or not isinstance(v, int) or v < 1]
        if bad:
            raise MigrationError(f"Migration versions must be positive integers: {bad}")

        duplicates = sorted(v for v, n in Counter(versions).items() if n > 1)
        if duplicates:
            raise MigrationError(f"Duplicate migration versions: {duplicates}")

        expected = list(range(1, len(versions) + 1))
        if versions != expected:
            missing = sorted(set(range(1, max(versions) + 1)) - set(versions))
            raise MigrationError(f"Migration registry has gaps, missing versions: {missing}")

    @property
    def latest_version(self) -> int:
        return self.steps[-1].version if self.steps else 0

    def pending(self, current_version: int) -> list[MigrationStep]:
        """Steps above ``current_version``, ascending."""
        return [s for s in self.steps if s.version > current_version]

    def applied(self, current_version: int) -> list[MigrationStep]:
        """Steps at or below ``current_version``, descending (rollback order)."""
        return [s for s in reversed(self.steps) if s.version <= current_version]

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)


def step_from_module(module) -> MigrationStep:
    """Build a MigrationStep from a version module."""
    for attr in ("version", "name", "upgrade", "downgrade"):
        if not hasattr(module, attr):
            raise MigrationError(f"Migration module {module.__name__} does not define '{attr}'")
    return MigrationStep(
        version=module.version,
        name=module.name,
        up=module.upgrade,
        down=module.downgrade,
    )


def load_migrations(package: str = VERSIONS_PACKAGE) -> list[MigrationStep]:
    """Import every module of the versions package as a MigrationStep."""
    pkg = importlib.import_module(package)
    steps = []
    for module_info in sorted(pkgutil.iter_modules(pkg.__path__), key=lambda m: m.name):
        if module_info.ispkg or module_info.name.startswith("_"):
            continue
        module = importlib.import_module(f"{package}.{module_info.name}")
        steps.append(step_from_module(module))
    logger.debug("Loaded %d migration steps from %s", len(steps), package)
    return steps


def default_registry(steps: Sequence[MigrationStep] | None = None) -> MigrationRegistry:
    """Registry of the shipped migration steps (or the given ones)."""
    return MigrationRegistry(load_migrations() if steps is None else steps)
