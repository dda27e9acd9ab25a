"""Initial schema: systems, projects, context entries, update history.

Revision ID: 001
Create Date: 2025-06-02
"""

import sqlalchemy as sa
from alembic import op

version = 1
name = "initial_schema"


def upgrade() -> None:
    op.create_table(
        "systems",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("hostname", sa.String(length=255), nullable=False),
        sa.Column("platform", sa.String(length=50), nullable=False),
        sa.Column("is_current", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column("last_seen", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.UniqueConstraint("hostname", name="uq_systems_hostname"),
    )

    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("repository_url", sa.String(length=500), nullable=True),
        sa.Column("local_directory", sa.String(length=500), nullable=True),
        sa.Column("primary_system_id", sa.Integer(), sa.ForeignKey("systems.id"), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=True, server_default="[]"),
        sa.Column("metadata", sa.JSON(), nullable=True, server_default="{}"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column("last_accessed", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.UniqueConstraint("name", name="uq_projects_name"),
    )
    op.create_index("idx_projects_status", "projects", ["status"])
    op.create_index("idx_projects_updated", "projects", ["updated_at"])

    op.create_table(
        "context_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id"), nullable=True),
        sa.Column("system_id", sa.Integer(), sa.ForeignKey("systems.id"), nullable=True),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("key", sa.String(length=255), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("is_system_specific", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("tags", sa.JSON(), nullable=True, server_default="[]"),
        sa.Column("metadata", sa.JSON(), nullable=True, server_default="{}"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("idx_context_entries_project", "context_entries", ["project_id"])
    op.create_index("idx_context_entries_key", "context_entries", ["key"])
    op.create_index("idx_context_entries_updated", "context_entries", ["updated_at"])

    op.create_table(
        "update_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("entity_type", sa.String(length=20), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("changes", sa.JSON(), nullable=True),
        sa.Column("timestamp", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("idx_update_history_entity", "update_history", ["entity_type", "entity_id"])
    op.create_index("idx_update_history_timestamp", "update_history", ["timestamp"])


def downgrade() -> None:
    op.drop_table("update_history")
    op.drop_table("context_entries")
    op.drop_table("projects")
    op.drop_table("systems")
