"""create clients, departments and recurring jobs"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_create_clients_and_jobs"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "departments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_departments_code", "departments", ["code"], unique=False)
    op.create_table(
        "recurrence_jobs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("section", sa.String(length=200), nullable=False),
        sa.Column("frequency", sa.String(length=20), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("next_run", sa.Date(), nullable=False),
        sa.Column("last_run", sa.DateTime(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_recurrence_jobs_client_id", "recurrence_jobs", ["client_id"], unique=False)
    op.create_index("ix_recurrence_jobs_section", "recurrence_jobs", ["section"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_recurrence_jobs_section", table_name="recurrence_jobs")
    op.drop_index("ix_recurrence_jobs_client_id", table_name="recurrence_jobs")
    op.drop_table("recurrence_jobs")
    op.drop_index("ix_departments_code", table_name="departments")
    op.drop_table("departments")
    op.drop_table("clients")
