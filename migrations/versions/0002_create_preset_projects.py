"""create preset projects with levels and task blueprints"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0002_create_preset_projects"
down_revision = "0001_create_clients_and_jobs"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "preset_projects",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_preset_projects_name", "preset_projects", ["name"], unique=False)
    op.create_table(
        "preset_levels",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "preset_id",
            sa.Integer(),
            sa.ForeignKey("preset_projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("level_index", sa.Integer(), nullable=False),
        sa.Column("department", sa.String(length=200), nullable=False),
    )
    op.create_index("ix_preset_levels_preset_id", "preset_levels", ["preset_id"], unique=False)
    op.create_table(
        "preset_tasks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "preset_id",
            sa.Integer(),
            sa.ForeignKey("preset_projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("priority", sa.String(length=20), nullable=False, server_default="medium"),
        sa.Column("level_index", sa.Integer(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_preset_tasks_preset_id", "preset_tasks", ["preset_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_preset_tasks_preset_id", table_name="preset_tasks")
    op.drop_table("preset_tasks")
    op.drop_index("ix_preset_levels_preset_id", table_name="preset_levels")
    op.drop_table("preset_levels")
    op.drop_index("ix_preset_projects_name", table_name="preset_projects")
    op.drop_table("preset_projects")
