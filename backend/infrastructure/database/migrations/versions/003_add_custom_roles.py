"""Add custom roles: role templates and template linkage on roles.

Revision ID: 003
Revises: 002
Create Date: 2025-07-08
"""

import sqlalchemy as sa
from alembic import op

version = 3
name = "add_custom_roles"

DEFAULT_TEMPLATES = [
    {
        "id": "security-engineer",
        "name": "Security Engineer",
        "description": "Threat modelling, vulnerability tracking and security reviews",
        "base_role_id": "developer",
        "focus_areas": ["security", "vulnerabilities", "compliance", "audits"],
        "default_tags": ["security"],
    },
    {
        "id": "data-engineer",
        "name": "Data Engineer",
        "description": "Data pipelines, schemas and storage decisions",
        "base_role_id": "developer",
        "focus_areas": ["pipelines", "schemas", "etl", "storage"],
        "default_tags": ["data", "pipelines"],
    },
    {
        "id": "tech-lead",
        "name": "Tech Lead",
        "description": "Technical direction, reviews and cross-team coordination",
        "base_role_id": "architect",
        "focus_areas": ["reviews", "coordination", "standards", "mentoring"],
        "default_tags": ["leadership", "standards"],
    },
    {
        "id": "technical-writer",
        "name": "Technical Writer",
        "description": "Documentation structure, guides and API references",
        "base_role_id": "product",
        "focus_areas": ["documentation", "guides", "api-docs", "tutorials"],
        "default_tags": ["docs"],
    },
]


def upgrade() -> None:
    templates = op.create_table(
        "role_templates",
        sa.Column("id", sa.String(length=50), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("base_role_id", sa.String(length=50), sa.ForeignKey("roles.id"), nullable=True),
        sa.Column("focus_areas", sa.JSON(), nullable=True),
        sa.Column("default_tags", sa.JSON(), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.bulk_insert(templates, DEFAULT_TEMPLATES)

    op.add_column("roles", sa.Column("template_id", sa.String(length=50), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("roles", recreate="always") as batch_op:
        batch_op.drop_column("template_id")
    op.drop_table("role_templates")
