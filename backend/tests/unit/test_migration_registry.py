"""
Unit tests for the migration registry.

Covers:
- Validation of versions (duplicates, gaps, non-positive, start at 1)
- Pending/applied selection
- Loading the shipped version modules
"""

from types import SimpleNamespace

import pytest

from core.errors import MigrationError
from infrastructure.database.migrations import (
    MigrationRegistry,
    MigrationStep,
    default_registry,
    load_migrations,
    step_from_module,
)


def _noop():
    return None


def _step(version: int, name: str = "step") -> MigrationStep:
    return MigrationStep(version=version, name=f"{name}_{version}", up=_noop, down=_noop)


class TestValidate:
    def test_contiguous_registry_is_valid(self):
        MigrationRegistry([_step(1), _step(2), _step(3)]).validate()

    def test_empty_registry_is_valid(self):
        registry = MigrationRegistry([])
        registry.validate()
        assert registry.latest_version == 0

    def test_steps_are_sorted(self):
        registry = MigrationRegistry([_step(3), _step(1), _step(2)])
        assert [s.version for s in registry] == [1, 2, 3]

    def test_duplicates_rejected(self):
        with pytest.raises(MigrationError, match="Duplicate"):
            MigrationRegistry([_step(1), _step(2), _step(2)]).validate()

    def test_gap_rejected(self):
        with pytest.raises(MigrationError, match="missing versions: \\[2\\]"):
            MigrationRegistry([_step(1), _step(3)]).validate()

    def test_must_start_at_one(self):
        with pytest.raises(MigrationError):
            MigrationRegistry([_step(2), _step(3)]).validate()

    @pytest.mark.parametrize("version", [0, -1])
    def test_non_positive_rejected(self, version):
        with pytest.raises(MigrationError, match="positive"):
            MigrationRegistry([_step(version), _step(1)]).validate()


class TestSelection:
    def test_pending_is_ascending_above_current(self):
        registry = MigrationRegistry([_step(1), _step(2), _step(3), _step(4)])
        assert [s.version for s in registry.pending(2)] == [3, 4]
        assert registry.pending(4) == []

    def test_applied_is_descending(self):
        registry = MigrationRegistry([_step(1), _step(2), _step(3)])
        assert [s.version for s in registry.applied(2)] == [2, 1]

    def test_step_str(self):
        assert str(_step(4, "add")) == "004_add_4"


class TestLoading:
    def test_shipped_steps(self):
        steps = load_migrations()
        assert [(s.version, s.name) for s in steps] == [
            (1, "initial_schema"),
            (2, "add_roles"),
            (3, "add_custom_roles"),
            (4, "add_soft_delete"),
            (5, "consolidate_audit_payload"),
        ]

    def test_default_registry_is_valid(self):
        registry = default_registry()
        registry.validate()
        assert registry.latest_version == 5
        assert len(registry) == 5

    def test_module_missing_downgrade_rejected(self):
        module = SimpleNamespace(__name__="broken", version=1, name="broken", upgrade=_noop)
        with pytest.raises(MigrationError, match="downgrade"):
            step_from_module(module)
