"""Turns recurring jobs and preset templates into concrete projects and tasks.

Each entry point writes its whole entity graph inside one ``Storage.run_atomic``
call: either the project, its tasks and the job bookkeeping all commit, or
nothing does.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from datetime import date, datetime

from sqlalchemy.orm import Session

from opsforge.config import SETTINGS
from opsforge.domain.entities import (
    MaterializedProject,
    MaterializedTask,
    RecurrenceDefinition,
    StructuralTemplate,
    TaskBlueprint,
    TemplateLevel,
)
from opsforge.domain.enums import ProjectStatus, RejectionReason, TaskStatus
from opsforge.domain.errors import (
    InvalidTemplate,
    NotFoundError,
    OpsForgeError,
    StateConflictError,
    TransactionFailure,
    ValidationError,
)
from opsforge.domain.guard import check_execution
from opsforge.domain.recurrence import due_date_for, next_occurrence
from opsforge.domain.templates import (
    level_for,
    normalize_levels,
    parse_priority,
    resolve_department,
)
from opsforge.domain.validation import parse_amount, parse_date, parse_optional_id
from opsforge.infra.db import Storage
from opsforge.infra.locks import KeyedLocks
from opsforge.infra.models import utcnow
from opsforge.infra.repository import ProjectRepository, RecurrenceRepository, levels_to_json

from .contracts import ExecutionOutcome

logger = logging.getLogger(__name__)

PROJECT_OVERRIDE_FIELDS = frozenset(
    {"name", "description", "client_id", "status", "start_date", "due_date"}
)


@dataclass(frozen=True)
class AppliedTemplate:
    project: MaterializedProject
    tasks: tuple[MaterializedTask, ...]


class MaterializationEngine:
    def __init__(
        self,
        storage: Storage,
        locks: KeyedLocks | None = None,
        default_status: str | None = None,
    ) -> None:
        self._storage = storage
        self._locks = locks or KeyedLocks(SETTINGS.lock_timeout_seconds)
        self._default_status = ProjectStatus(default_status or SETTINGS.default_project_status)

    def materialize_from_recurrence(
        self,
        job: RecurrenceDefinition,
        now: datetime | None = None,
        created_by: int | None = None,
    ) -> ExecutionOutcome:
        now = now or utcnow()
        rejection = check_execution(job, now)
        if rejection is not None:
            logger.info("Recurring job %s rejected: %s", job.id, rejection)
            return ExecutionOutcome(job=job, rejection=rejection)

        try:
            with self._locks.hold(job.id):
                outcome = self._storage.run_atomic(
                    lambda session: self._recurrence_graph(session, job.id, now, created_by)
                )
        except StateConflictError as exc:
            logger.info("Recurring job %s rejected: %s", job.id, exc.reason)
            return ExecutionOutcome(job=job, rejection=exc.reason)
        except OpsForgeError:
            raise
        except Exception as exc:
            logger.error("Materialization of recurring job %s failed: %s", job.id, exc)
            raise TransactionFailure(f"recurring job {job.id}", exc) from exc

        logger.info(
            "Project created from recurring job: %s (%s) by job %s, next run %s",
            outcome.project.name,
            outcome.project.id,
            job.id,
            outcome.job.next_run,
        )
        return outcome

    def materialize_from_template(
        self,
        template: StructuralTemplate,
        project_overrides: Mapping[str, object],
        task_blueprints: Iterable[Mapping[str, object] | TaskBlueprint],
        created_by: int | None = None,
    ) -> AppliedTemplate:
        levels = normalize_levels(template.levels)
        project_data = self._project_data(template, levels, project_overrides, created_by)
        blueprints = list(task_blueprints)
        today = date.today()

        def _graph(session: Session) -> AppliedTemplate:
            project = ProjectRepository.add_project(session, project_data, today)
            rows = [
                self._task_row(blueprint, levels, project.id, created_by)
                for blueprint in blueprints
            ]
            tasks = ProjectRepository.add_tasks(session, rows, today)
            return AppliedTemplate(project=project, tasks=tuple(tasks))

        try:
            applied = self._storage.run_atomic(_graph)
        except Exception as exc:
            logger.error("Apply preset %s failed, all changes rolled back: %s", template.id, exc)
            raise TransactionFailure(f"preset template {template.id}", exc) from exc

        logger.info(
            "Preset %s applied: project %s with %d tasks",
            template.id,
            applied.project.id,
            len(applied.tasks),
        )
        return applied

    def _recurrence_graph(
        self,
        session: Session,
        job_id: int,
        now: datetime,
        created_by: int | None,
    ) -> ExecutionOutcome:
        current = RecurrenceRepository.load_in(session, job_id)
        if current is None:
            raise NotFoundError("Recurring job", job_id)
        rejection = check_execution(current, now)
        if rejection is not None:
            raise StateConflictError(rejection)

        occurrence_start = current.next_run
        project = ProjectRepository.add_project(
            session,
            {
                "name": current.name,
                "description": current.description
                or f"Auto-generated project from recurring job: {current.name}",
                "client_id": current.client_id,
                "levels": [],
                "status": self._default_status.value,
                "start_date": occurrence_start,
                "due_date": due_date_for(occurrence_start, current.frequency),
                "created_by": created_by,
                "recurrence_id": current.id,
            },
            now.date(),
        )
        updated = RecurrenceRepository.record_run(
            session,
            job_id,
            expected_last_run=current.last_run,
            last_run=now,
            next_run=next_occurrence(now.date(), current.frequency),
        )
        if updated is None:
            raise StateConflictError(RejectionReason.DUPLICATE_INITIAL_EXECUTION)
        return ExecutionOutcome(job=updated, project=project)

    def _project_data(
        self,
        template: StructuralTemplate,
        levels: tuple[TemplateLevel, ...],
        overrides: Mapping[str, object],
        created_by: int | None,
    ) -> dict:
        unknown = set(overrides) - PROJECT_OVERRIDE_FIELDS
        if unknown:
            raise ValidationError(f"Unsupported project fields: {', '.join(sorted(unknown))}")
        data = dict(overrides)
        data["name"] = str(data.get("name") or template.name).strip()
        data["client_id"] = parse_optional_id(data.get("client_id"), "client_id")
        data["description"] = str(data.get("description") or template.description or "")
        data["status"] = _parse_status(data.get("status"), self._default_status).value
        data["start_date"] = parse_date(data.get("start_date"), "start_date")
        data["due_date"] = parse_date(data.get("due_date"), "due_date")
        data["levels"] = levels_to_json(levels)
        data["template_id"] = template.id
        data["created_by"] = created_by
        return data

    @staticmethod
    def _task_row(
        blueprint: Mapping[str, object] | TaskBlueprint,
        levels: tuple[TemplateLevel, ...],
        project_id: int,
        created_by: int | None,
    ) -> dict:
        if isinstance(blueprint, TaskBlueprint):
            blueprint = asdict(blueprint)
        raw_index = blueprint.get("level_index", blueprint.get("levelIndex"))
        level = level_for(raw_index, levels)
        title = str(blueprint.get("title") or "").strip()
        if not title:
            raise InvalidTemplate("Task title is required", field="title")
        return {
            "title": title,
            "description": str(blueprint.get("description") or ""),
            "priority": parse_priority(blueprint.get("priority")).value,
            "level_index": level.level_index,
            "department": resolve_department(blueprint["department"])
            if blueprint.get("department")
            else level.department,
            "assignee_id": parse_optional_id(blueprint.get("assignee_id"), "assignee_id"),
            "due_date": parse_date(blueprint.get("due_date"), "due_date"),
            "amount": parse_amount(blueprint.get("amount")),
            "tags": [str(tag) for tag in (blueprint.get("tags") or [])],
            "project_id": project_id,
            "status": TaskStatus.PENDING.value,
            "is_preset_pending": True,
            "created_by": created_by,
        }


def _parse_status(value: object, default: ProjectStatus) -> ProjectStatus:
    if value is None or value == "":
        return default
    try:
        return ProjectStatus(str(value))
    except ValueError:
        raise ValidationError(f"Invalid project status {value!r}", field="status") from None
