from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)

from .db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ClientModel(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    deleted_at = Column(DateTime, nullable=True)


class DepartmentModel(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    code = Column(String(20), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    deleted_at = Column(DateTime, nullable=True)


class RecurrenceModel(Base):
    __tablename__ = "recurrence_jobs"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    section = Column(String(200), nullable=False, index=True)
    frequency = Column(String(20), nullable=False)
    start_date = Column(Date, nullable=False)
    next_run = Column(Date, nullable=False)
    last_run = Column(DateTime, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime, nullable=True)


class PresetProjectModel(Base):
    __tablename__ = "preset_projects"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime, nullable=True)


class PresetLevelModel(Base):
    __tablename__ = "preset_levels"

    id = Column(Integer, primary_key=True)
    preset_id = Column(
        Integer, ForeignKey("preset_projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    level_index = Column(Integer, nullable=False)
    department = Column(String(200), nullable=False)


class PresetTaskModel(Base):
    __tablename__ = "preset_tasks"

    id = Column(Integer, primary_key=True)
    preset_id = Column(
        Integer, ForeignKey("preset_projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    priority = Column(String(20), nullable=False, default="medium")
    level_index = Column(Integer, nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)


class ProjectModel(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True)
    project_number = Column(String(30), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True, index=True)
    levels = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="planning", index=True)
    start_date = Column(Date, nullable=True)
    due_date = Column(Date, nullable=True)
    created_by = Column(Integer, nullable=True)
    recurrence_id = Column(Integer, ForeignKey("recurrence_jobs.id"), nullable=True, index=True)
    template_id = Column(Integer, ForeignKey("preset_projects.id"), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    deleted_at = Column(DateTime, nullable=True)


class TaskModel(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True)
    task_number = Column(String(30), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    priority = Column(String(20), nullable=False, default="medium")
    level_index = Column(Integer, nullable=False, default=0)
    department = Column(String(200), nullable=True)
    assignee_id = Column(Integer, nullable=True)
    due_date = Column(Date, nullable=True)
    amount = Column(Numeric(12, 2), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    is_preset_pending = Column(Boolean, nullable=False, default=False)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    deleted_at = Column(DateTime, nullable=True)


class AppSettingsModel(Base):
    __tablename__ = "app_settings"

    id = Column(Integer, primary_key=True)
    company_name = Column(String(200), nullable=False, default="Default Company")
    contact_email = Column(String(200), nullable=False, default="contact@example.com")
    currency = Column(String(3), nullable=False, default="USD")
    date_format = Column(String(20), nullable=False, default="MM/DD/YYYY")
    enable_audit_log = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class ActivityModel(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True)
    type = Column(String(40), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    entity_type = Column(String(20), nullable=False)
    entity_id = Column(Integer, nullable=False)
    project_id = Column(Integer, nullable=True)
    user_id = Column(Integer, nullable=True)
    timestamp = Column(DateTime, nullable=False, default=utcnow, index=True)
