"""Initial database schema

Revision ID: 000_initial_schema
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all initial tables."""

    # Profiles table
    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column(
            "role",
            sa.Enum("agency_owner", "sdr", "platform_admin", name="profilerole"),
            nullable=False,
        ),
        sa.Column("sdr_level", sa.Integer(), server_default="1", nullable=False),
        sa.Column(
            "total_deals_closed_value",
            sa.Numeric(14, 2),
            server_default="0",
            nullable=False,
            comment="Sum of closed_won deal values credited to this SDR",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("sdr_level BETWEEN 1 AND 3", name="profiles_sdr_level_range"),
        sa.CheckConstraint("total_deals_closed_value >= 0", name="profiles_total_closed_non_negative"),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=True)
    op.create_index("ix_profiles_role", "profiles", ["role"])

    # Workspaces table
    op.create_table(
        "workspaces",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column(
            "rake_percentage",
            sa.Numeric(5, 2),
            nullable=True,
            comment="Agency rake as a percentage of deal value",
        ),
        sa.Column("subscription_status", sa.String(50), server_default="inactive", nullable=False),
        sa.Column(
            "is_locked",
            sa.Boolean(),
            server_default=sa.false(),
            nullable=False,
            comment="Set while commissions are overdue",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_workspaces_owner_id", "workspaces", ["owner_id"])

    # Deals table
    op.create_table(
        "deals",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("workspace_id", sa.Integer(), sa.ForeignKey("workspaces.id"), nullable=False),
        sa.Column("assigned_to", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("value", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "stage",
            sa.Enum(
                "new", "contacted", "discovery", "meeting", "proposal",
                "closed_won", "closed_lost",
                name="dealstage",
            ),
            nullable=False,
        ),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("value >= 0", name="deals_value_non_negative"),
    )
    op.create_index("ix_deals_workspace_id", "deals", ["workspace_id"])
    op.create_index("ix_deals_assigned_to", "deals", ["assigned_to"])
    op.create_index("ix_deals_stage", "deals", ["stage"])

    # Commissions table
    op.create_table(
        "commissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("workspace_id", sa.Integer(), sa.ForeignKey("workspaces.id"), nullable=False),
        sa.Column("deal_id", sa.Integer(), sa.ForeignKey("deals.id"), nullable=False),
        sa.Column("sdr_id", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("rake_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("platform_cut_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column(
            "sdr_level",
            sa.Integer(),
            nullable=False,
            comment="SDR level the platform cut was taken from",
        ),
        sa.Column("rake_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("gross_commission", sa.Numeric(12, 2), nullable=False),
        sa.Column("platform_cut_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("sdr_payout_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "overdue", "paid", name="commissionstatus"),
            nullable=False,
        ),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("deal_id", name="commissions_unique_deal"),
    )
    op.create_index("ix_commissions_workspace_id", "commissions", ["workspace_id"])
    op.create_index("ix_commissions_sdr_id", "commissions", ["sdr_id"])
    op.create_index("ix_commissions_status", "commissions", ["status"])

    # Notifications table
    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("workspace_id", sa.Integer(), sa.ForeignKey("workspaces.id"), nullable=True),
        sa.Column(
            "type",
            sa.Enum(
                "commission_created", "commission_paid", "level_up",
                "dispute_created", "dispute_resolved", "account_locked",
                name="notificationtype",
            ),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=True, comment="Structured payload for the client"),
        sa.Column("is_read", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_type", "notifications", ["type"])


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_table("notifications")
    op.drop_table("commissions")
    op.drop_table("deals")
    op.drop_table("workspaces")
    op.drop_table("profiles")

    # Drop enums
    op.execute("DROP TYPE IF EXISTS notificationtype")
    op.execute("DROP TYPE IF EXISTS commissionstatus")
    op.execute("DROP TYPE IF EXISTS dealstage")
    op.execute("DROP TYPE IF EXISTS profilerole")
