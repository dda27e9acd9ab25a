"""Add soft delete columns and the deletion queue.

The queue is filled by the application inside the soft-delete transaction,
not by triggers.

Revision ID: 004
Revises: 003
Create Date: 2025-08-14
"""

import sqlalchemy as sa
from alembic import op

version = 4
name = "add_soft_delete"

SOFT_DELETE_TABLES = ("projects", "context_entries", "role_handoffs")


def upgrade() -> None:
    for table in SOFT_DELETE_TABLES:
        op.add_column(table, sa.Column("deleted_at", sa.DateTime(), nullable=True))
        op.add_column(table, sa.Column("deleted_by", sa.Integer(), nullable=True))
        op.create_index(f"idx_{table}_deleted", table, ["deleted_at"])

    op.create_table(
        "deletion_queue",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("entity_type", sa.String(length=20), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_by", sa.Integer(), sa.ForeignKey("systems.id"), nullable=True),
        sa.Column("scheduled_hard_delete", sa.DateTime(), nullable=False),
        sa.Column("hard_deleted", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.UniqueConstraint("entity_type", "entity_id", name="uq_deletion_queue_entity"),
        sa.CheckConstraint(
            "entity_type IN ('project', 'context')", name="ck_deletion_queue_entity_type"
        ),
    )
    op.create_index("idx_deletion_queue_scheduled", "deletion_queue", ["scheduled_hard_delete"])


def downgrade() -> None:
    op.drop_index("idx_deletion_queue_scheduled", table_name="deletion_queue")
    op.drop_table("deletion_queue")

    for table in reversed(SOFT_DELETE_TABLES):
        op.drop_index(f"idx_{table}_deleted", table_name=table)
        with op.batch_alter_table(table, recreate="always") as batch_op:
            batch_op.drop_column("deleted_by")
            batch_op.drop_column("deleted_at")
