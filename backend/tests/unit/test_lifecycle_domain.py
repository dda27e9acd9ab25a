"""
Unit tests for lifecycle domain entities: cascade graph, deletion results,
sweep reports.
"""

from datetime import datetime

from core.domain.lifecycle import (
    CASCADE_GRAPH,
    QUEUED_ENTITY_TYPES,
    RETENTION_PERIOD,
    AgeThreshold,
    CascadeAction,
    DeletionResult,
    EntityType,
    SweepCandidate,
    SweepReport,
)

NOW = datetime(2025, 9, 15, 12, 0, 0)


class TestCascadeGraph:
    def test_project_dependents(self):
        rules = {rule.child: rule.action for rule in CASCADE_GRAPH[EntityType.PROJECT]}
        assert rules == {
            EntityType.CONTEXT: CascadeAction.SOFT_DELETE,
            EntityType.ROLE_HANDOFF: CascadeAction.SOFT_DELETE,
            EntityType.ROLE_ASSIGNMENT: CascadeAction.DEACTIVATE,
        }

    def test_leaves_have_no_dependents(self):
        assert EntityType.CONTEXT not in CASCADE_GRAPH
        assert EntityType.ROLE_HANDOFF not in CASCADE_GRAPH

    def test_only_projects_and_contexts_are_queued(self):
        assert QUEUED_ENTITY_TYPES == {EntityType.PROJECT, EntityType.CONTEXT}

    def test_retention_is_seven_days(self):
        assert RETENTION_PERIOD.days == 7


class TestDeletionResultMessage:
    def test_project_summary(self):
        result = DeletionResult(
            entity_type=EntityType.PROJECT,
            entity_id=1,
            name="demo",
            deleted_at=NOW,
            deleted_by=1,
            scheduled_hard_delete=NOW + RETENTION_PERIOD,
            cascade_counts={"context": 3, "role_handoff": 1, "role_assignment": 2},
        )
        message = result.message
        assert message.startswith("Project 'demo' successfully deleted")
        assert "- Contexts deleted: 3" in message
        assert "- Role assignments deactivated: 2" in message
        assert "- Handoffs deleted: 1" in message
        assert "permanently removed after 7 days" in message

    def test_context_with_project(self):
        result = DeletionResult(
            entity_type=EntityType.CONTEXT,
            entity_id=4,
            name="notes",
            deleted_at=NOW,
            deleted_by=1,
            scheduled_hard_delete=NOW + RETENTION_PERIOD,
            project_name="demo",
        )
        assert result.message.startswith("Context entry 'notes' deleted from project 'demo'")

    def test_standalone_context(self):
        result = DeletionResult(
            entity_type=EntityType.CONTEXT,
            entity_id=4,
            name="notes",
            deleted_at=NOW,
            deleted_by=1,
            scheduled_hard_delete=NOW + RETENTION_PERIOD,
        )
        assert result.message.splitlines()[0] == "Context entry 'notes' deleted"


class TestSweepReport:
    def _report(self, **kwargs) -> SweepReport:
        threshold = AgeThreshold(30, "day")
        return SweepReport(threshold=threshold, cutoff=threshold.cutoff(NOW), **kwargs)

    def test_empty_preview(self):
        report = self._report(dry_run=True)
        assert report.total_candidates == 0
        assert "No data found matching criteria." in report.message

    def test_preview_lists_candidates(self):
        report = self._report(
            dry_run=True,
            projects=[
                SweepCandidate(
                    EntityType.PROJECT, 1, "demo", datetime(2025, 7, 17), status="paused", context_count=2
                )
            ],
            contexts=[
                SweepCandidate(EntityType.CONTEXT, 9, "scratch", datetime(2025, 1, 2), context_type="note")
            ],
        )
        message = report.message
        assert "Cleanup Report (Dry Run)" in message
        assert "Would delete data older than 30 days:" in message
        assert "  - demo (2 contexts, last updated: 2025-07-17)" in message
        assert "  - scratch (note, last updated: 2025-01-02)" in message
        assert "dry_run: false" in message

    def test_blocked_projects_are_skipped(self):
        blocked = SweepCandidate(EntityType.PROJECT, 1, "demo", NOW, status="paused", blocked=True)
        report = self._report(
            dry_run=False,
            projects=[blocked],
            counts={"projects_deleted": 0, "contexts_deleted": 0, "contexts_cascaded": 0},
        )
        assert report.skipped == [blocked]
        assert "- Skipped (active role assignment): 1" in report.message

    def test_completed_message_counts(self):
        report = self._report(
            dry_run=False,
            counts={"projects_deleted": 2, "contexts_deleted": 5, "contexts_cascaded": 7},
        )
        message = report.message
        assert message.startswith("Cleanup Complete")
        assert "- Projects: 2" in message
        assert "- Standalone contexts: 5" in message
        assert "- Project contexts (cascaded): 7" in message
