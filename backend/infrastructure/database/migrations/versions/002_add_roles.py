"""Add roles: role catalogue, project enablement, active roles, handoffs.

Revision ID: 002
Revises: 001
Create Date: 2025-06-20
"""

import sqlalchemy as sa
from alembic import op

version = 2
name = "add_roles"

DEFAULT_ROLES = [
    {
        "id": "architect",
        "name": "Architect",
        "description": "System design, architecture decisions and technical standards",
        "focus_areas": ["architecture", "design", "patterns", "scalability"],
        "default_tags": ["architecture", "design"],
    },
    {
        "id": "developer",
        "name": "Developer",
        "description": "Implementation details, code structure and debugging",
        "focus_areas": ["implementation", "code", "testing", "debugging"],
        "default_tags": ["implementation", "code"],
    },
    {
        "id": "devops",
        "name": "DevOps",
        "description": "Infrastructure, deployment, CI/CD and operations",
        "focus_areas": ["deployment", "infrastructure", "monitoring", "ci-cd"],
        "default_tags": ["devops", "infrastructure"],
    },
    {
        "id": "qa",
        "name": "QA Engineer",
        "description": "Testing strategies, quality standards and bug tracking",
        "focus_areas": ["testing", "quality", "bugs", "test-plans"],
        "default_tags": ["testing", "qa"],
    },
    {
        "id": "product",
        "name": "Product Manager",
        "description": "Requirements, user stories and product decisions",
        "focus_areas": ["requirements", "features", "priorities", "roadmap"],
        "default_tags": ["product", "requirements"],
    },
]


def upgrade() -> None:
    roles = op.create_table(
        "roles",
        sa.Column("id", sa.String(length=50), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_custom", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("focus_areas", sa.JSON(), nullable=True),
        sa.Column("default_tags", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.bulk_insert(roles, DEFAULT_ROLES)

    op.create_table(
        "project_roles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("role_id", sa.String(length=50), sa.ForeignKey("roles.id"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("custom_instructions", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index(
        "idx_project_roles_project_role", "project_roles", ["project_id", "role_id"], unique=True
    )

    op.create_table(
        "active_roles",
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("system_id", sa.Integer(), sa.ForeignKey("systems.id"), nullable=False),
        sa.Column("role_id", sa.String(length=50), sa.ForeignKey("roles.id"), nullable=False),
        sa.Column("activated_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.PrimaryKeyConstraint("project_id", "system_id"),
    )

    op.create_table(
        "role_handoffs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("from_role_id", sa.String(length=50), sa.ForeignKey("roles.id"), nullable=False),
        sa.Column("to_role_id", sa.String(length=50), sa.ForeignKey("roles.id"), nullable=False),
        sa.Column("handoff_data", sa.JSON(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by_system_id", sa.Integer(), sa.ForeignKey("systems.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("idx_role_handoffs_project", "role_handoffs", ["project_id"])

    # Plain columns: SQLite cannot ALTER in a foreign key constraint
    op.add_column("context_entries", sa.Column("role_id", sa.String(length=50), nullable=True))
    op.create_index("idx_context_entries_role", "context_entries", ["role_id"])
    op.create_index("idx_context_entries_role_type", "context_entries", ["role_id", "type"])

    op.add_column("update_history", sa.Column("role_id", sa.String(length=50), nullable=True))
    op.add_column("update_history", sa.Column("details", sa.JSON(), nullable=True))


def downgrade() -> None:
    # Column removal goes through the table-rebuild strategy
    with op.batch_alter_table("update_history", recreate="always") as batch_op:
        batch_op.drop_column("details")
        batch_op.drop_column("role_id")

    op.drop_index("idx_context_entries_role_type", table_name="context_entries")
    op.drop_index("idx_context_entries_role", table_name="context_entries")
    with op.batch_alter_table("context_entries", recreate="always") as batch_op:
        batch_op.drop_column("role_id")

    op.drop_index("idx_role_handoffs_project", table_name="role_handoffs")
    op.drop_table("role_handoffs")
    op.drop_table("active_roles")
    op.drop_index("idx_project_roles_project_role", table_name="project_roles")
    op.drop_table("project_roles")
    op.drop_table("roles")
