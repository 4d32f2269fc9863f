"""onboarding_core_tables

Creates the onboarding lifecycle tables:
  - onboarding_requests : intake cases with status / completion / team
  - status_history      : append-only status change ledger
  - team_assignments    : routing decisions

Tables created conditionally (IF NOT EXISTS semantics) to support idempotent
execution against databases that already received these tables via db.create_all()
in a development environment.

Revision ID: 0001_onboarding_core
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = '0001_onboarding_core'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing = set(inspector.get_table_names())

    # ── Onboarding requests ───────────────────────────────────────────────
    if "onboarding_requests" not in existing:
        op.create_table(
            "onboarding_requests",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("reference_number", sa.String(length=30), nullable=False,
                      comment="ONB-YYYYMMDD-XXXXXX, assigned once at creation"),
            sa.Column("trading_name", sa.String(length=200), nullable=False),
            sa.Column("contact_name", sa.String(length=150), nullable=False),
            sa.Column("contact_email", sa.String(length=254), nullable=False),
            sa.Column("contact_phone", sa.String(length=50), nullable=True),
            sa.Column("company_address", sa.Text(), nullable=True),
            sa.Column("industry", sa.String(length=30), nullable=True),
            sa.Column("company_size", sa.String(length=20), nullable=True),
            sa.Column("request_type", sa.String(length=30), nullable=True),
            sa.Column("region", sa.String(length=20), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("status", sa.String(length=30), nullable=False, server_default="New"),
            sa.Column("completion_percentage", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("assigned_team", sa.String(length=50), nullable=True),
            sa.Column("assigned_user_id", sa.String(length=64), nullable=True),
            sa.Column("created_by", sa.String(length=150), nullable=True),
            sa.Column("updated_by", sa.String(length=150), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("reference_number"),
        )
        op.create_index("idx_onb_status", "onboarding_requests", ["status"])
        op.create_index("idx_onb_team", "onboarding_requests", ["assigned_team"])
        op.create_index("idx_onb_created", "onboarding_requests", ["created_at"])

    # ── Status history ────────────────────────────────────────────────────
    if "status_history" not in existing:
        op.create_table(
            "status_history",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("request_id", sa.String(length=36), nullable=False),
            sa.Column("sequence", sa.Integer(), nullable=False),
            sa.Column("old_status", sa.String(length=30), nullable=True),
            sa.Column("new_status", sa.String(length=30), nullable=False),
            sa.Column("changed_by", sa.String(length=150), nullable=False,
                      server_default="system"),
            sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.ForeignKeyConstraint(["request_id"], ["onboarding_requests.id"],
                                    ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("request_id", "sequence", name="uq_status_history_seq"),
        )
        op.create_index("ix_status_history_request_id", "status_history", ["request_id"])
        op.create_index("idx_status_history_changed", "status_history",
                        ["request_id", "changed_at"])

    # ── Team assignments ──────────────────────────────────────────────────
    if "team_assignments" not in existing:
        op.create_table(
            "team_assignments",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("request_id", sa.String(length=36), nullable=False),
            sa.Column("team_name", sa.String(length=50), nullable=False),
            sa.Column("assigned_user_id", sa.String(length=64), nullable=True),
            sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False,
                      server_default="Pending"),
            sa.ForeignKeyConstraint(["request_id"], ["onboarding_requests.id"],
                                    ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_team_assignments_request_id", "team_assignments", ["request_id"])


def downgrade():
    op.drop_table("team_assignments")
    op.drop_table("status_history")
    op.drop_table("onboarding_requests")
