"""add settings row and activity log"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0004_add_settings_and_activities"
down_revision = "0003_create_projects_and_tasks"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "app_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("company_name", sa.String(length=200), nullable=False, server_default="Default Company"),
        sa.Column("contact_email", sa.String(length=200), nullable=False, server_default="contact@example.com"),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="USD"),
        sa.Column("date_format", sa.String(length=20), nullable=False, server_default="MM/DD/YYYY"),
        sa.Column("enable_audit_log", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("type", sa.String(length=40), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("entity_type", sa.String(length=20), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_activities_timestamp", "activities", ["timestamp"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_activities_timestamp", table_name="activities")
    op.drop_table("activities")
    op.drop_table("app_settings")
