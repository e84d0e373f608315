from __future__ import annotations

from enum import StrEnum


class Frequency(StrEnum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ProjectStatus(StrEnum):
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"
    CANCELLED = "cancelled"


class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RejectionReason(StrEnum):
    INACTIVE_TEMPLATE = "InactiveTemplate"
    BEFORE_WINDOW = "BeforeWindow"
    DUPLICATE_INITIAL_EXECUTION = "DuplicateInitialExecution"


class ActivityType(StrEnum):
    PROJECT_CREATED = "project_created"
    RECURRENCE_CREATED = "recurrence_created"
    RECURRENCE_UPDATED = "recurrence_updated"
    RECURRENCE_DEACTIVATED = "recurrence_deactivated"
    TEMPLATE_APPLIED = "template_applied"
