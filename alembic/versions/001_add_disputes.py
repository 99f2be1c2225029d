"""Add disputes table.

Revision ID: 001_add_disputes
Revises: 000_initial_schema
"""

from typing import Union

from alembic import op
from sqlalchemy import inspect
import sqlalchemy as sa

revision: str = "001_add_disputes"
down_revision: Union[str, None] = "000_initial_schema"
branch_labels: Union[str, None] = None
depends_on: Union[str, None] = None


def _table_exists(table: str) -> bool:
    bind = op.get_bind()
    insp = inspect(bind)
    return table in insp.get_table_names()


def upgrade() -> None:
    if _table_exists("disputes"):
        return

    op.create_table(
        "disputes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("workspace_id", sa.Integer(), sa.ForeignKey("workspaces.id"), nullable=False),
        sa.Column("deal_id", sa.Integer(), sa.ForeignKey("deals.id"), nullable=False),
        sa.Column("raised_by", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("open", "approved", "rejected", name="disputestatus"),
            nullable=False,
        ),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_disputes_workspace_id", "disputes", ["workspace_id"])
    op.create_index("ix_disputes_deal_id", "disputes", ["deal_id"])
    op.create_index("ix_disputes_status", "disputes", ["status"])


def downgrade() -> None:
    op.drop_index("ix_disputes_status", table_name="disputes")
    op.drop_index("ix_disputes_deal_id", table_name="disputes")
    op.drop_index("ix_disputes_workspace_id", table_name="disputes")
    op.drop_table("disputes")
    op.execute("DROP TYPE IF EXISTS disputestatus")
