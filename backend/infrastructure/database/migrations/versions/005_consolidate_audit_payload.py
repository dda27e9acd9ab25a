"""Consolidate update_history payloads into the ``changes`` column.

Role switches wrote their payload to ``details`` while deletions used
``changes``. Copy ``details`` over and remove the column. SQLite cannot drop
it in place, so the batch rebuild creates update_history anew without it,
copies the rows, drops the original and renames the new table.

Revision ID: 005
Revises: 004
Create Date: 2025-09-03
"""

import sqlalchemy as sa
from alembic import op

version = 5
name = "consolidate_audit_payload"


def upgrade() -> None:
    op.execute(
        """
        UPDATE update_history
        SET changes = details
        WHERE changes IS NULL AND details IS NOT NULL
        """
    )
    with op.batch_alter_table("update_history", recreate="always") as batch_op:
        batch_op.drop_column("details")


def downgrade() -> None:
    op.add_column("update_history", sa.Column("details", sa.JSON(), nullable=True))
    op.execute(
        """
        UPDATE update_history
        SET details = changes
        WHERE action = 'switch_role'
        """
    )
