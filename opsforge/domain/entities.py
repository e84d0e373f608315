from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from .enums import ActivityType, Frequency, ProjectStatus, TaskPriority, TaskStatus


@dataclass(frozen=True)
class ClientEntity:
    id: int | None
    name: str
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class DepartmentEntity:
    id: int | None
    name: str
    code: str
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class RecurrenceDefinition:
    id: int | None
    name: str
    description: str
    client_id: int
    section: str
    frequency: Frequency
    start_date: date
    next_run: date
    last_run: Optional[datetime]
    is_active: bool
    created_by: int | None
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class TemplateLevel:
    level_index: int
    department: str


@dataclass(frozen=True)
class TaskBlueprint:
    title: str
    level_index: int
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    order: int = 0


@dataclass(frozen=True)
class StructuralTemplate:
    id: int | None
    name: str
    description: str
    levels: tuple[TemplateLevel, ...]
    tasks: tuple[TaskBlueprint, ...]
    is_active: bool
    created_by: int | None
    created_at: datetime
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class MaterializedProject:
    id: int | None
    project_number: str
    name: str
    description: str
    client_id: int | None
    levels: tuple[TemplateLevel, ...]
    status: ProjectStatus
    start_date: Optional[date]
    due_date: Optional[date]
    created_by: int | None
    recurrence_id: int | None
    template_id: int | None
    created_at: datetime


@dataclass(frozen=True)
class MaterializedTask:
    id: int | None
    task_number: str
    title: str
    description: str
    priority: TaskPriority
    level_index: int
    department: str | None
    assignee_id: int | None
    due_date: Optional[date]
    amount: Optional[Decimal]
    tags: tuple[str, ...]
    project_id: int
    status: TaskStatus
    is_preset_pending: bool
    created_by: int | None
    created_at: datetime


@dataclass(frozen=True)
class AppSettingsEntity:
    id: int
    company_name: str
    contact_email: str
    currency: str
    date_format: str
    enable_audit_log: bool
    updated_at: datetime


@dataclass(frozen=True)
class ActivityEvent:
    type: ActivityType
    title: str
    description: str
    entity_type: str
    entity_id: int
    user_id: int | None = None
    project_id: int | None = None
    timestamp: datetime | None = None
