from __future__ import annotations

import logging
from datetime import datetime

from opsforge.domain.entities import ActivityEvent, RecurrenceDefinition
from opsforge.domain.enums import ActivityType
from opsforge.domain.errors import NotFoundError, ValidationError
from opsforge.domain.filters import RecurrenceFilters
from opsforge.domain.recurrence import parse_frequency
from opsforge.domain.validation import parse_date, parse_flag, parse_optional_id, require_text
from opsforge.infra.repository import ClientRepository, RecurrenceRepository
from opsforge.infra.scheduler import LoggingScheduler

from .contracts import ActivityRecorder, ExecutionOutcome, Scheduler
from .materialization import MaterializationEngine
from .notify import notify_scheduler, track_activity

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"name", "description", "section", "client_id", "frequency", "is_active"})
ENGINE_OWNED_FIELDS = frozenset({"start_date", "next_run", "last_run"})


class RecurrenceService:
    def __init__(
        self,
        repo: RecurrenceRepository,
        clients: ClientRepository,
        engine: MaterializationEngine,
        scheduler: Scheduler | None = None,
        recorder: ActivityRecorder | None = None,
    ) -> None:
        self._repo = repo
        self._clients = clients
        self._engine = engine
        self._scheduler = scheduler or LoggingScheduler()
        self._recorder = recorder

    def list_jobs(self, filters: RecurrenceFilters | None = None) -> list[RecurrenceDefinition]:
        return self._repo.list_jobs(filters or RecurrenceFilters())

    def get_job(self, job_id: int) -> RecurrenceDefinition:
        job = self._repo.get_job(job_id)
        if job is None:
            raise NotFoundError("Recurring job", job_id)
        return job

    def list_sections(self, client_id: int) -> list[str]:
        return self._repo.list_sections(client_id)

    def define_recurrence(self, spec: dict, created_by: int | None = None) -> RecurrenceDefinition:
        name = require_text(spec, "name")
        section = require_text(spec, "section")
        client_id = parse_optional_id(spec.get("client_id"), "client_id")
        if client_id is None:
            raise ValidationError("Missing required field: client_id", field="client_id")
        start_date = parse_date(spec.get("start_date"), "start_date")
        if start_date is None:
            raise ValidationError("Missing required field: start_date", field="start_date")
        if not spec.get("frequency"):
            raise ValidationError("Missing required field: frequency", field="frequency")
        frequency = parse_frequency(spec["frequency"])
        self._require_client(client_id)

        job = self._repo.create_job({
            "name": name,
            "description": str(spec.get("description") or "").strip(),
            "client_id": client_id,
            "section": section,
            "frequency": frequency.value,
            "start_date": start_date,
            "next_run": start_date,
            "is_active": parse_flag(spec.get("is_active"), "is_active", default=True),
            "created_by": created_by,
        })
        logger.info("Recurring job created: %s (%s)", job.name, job.id)

        if job.is_active:
            notify_scheduler("schedule", lambda: self._scheduler.schedule(job), job.id)
        track_activity(self._recorder, ActivityEvent(
            type=ActivityType.RECURRENCE_CREATED,
            title="Recurring job created",
            description=f"Recurring job {job.name} ({job.frequency}) created for section {job.section}",
            entity_type="recurrence",
            entity_id=job.id,
            user_id=created_by,
        ))
        return job

    def update_recurrence(self, job_id: int, patch: dict) -> RecurrenceDefinition:
        self.get_job(job_id)
        locked = ENGINE_OWNED_FIELDS & set(patch)
        if locked:
            raise ValidationError(
                f"Field(s) cannot be changed: {', '.join(sorted(locked))}", field=sorted(locked)[0]
            )
        unknown = set(patch) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unsupported field(s): {', '.join(sorted(unknown))}")

        data = dict(patch)
        for field in ("name", "section"):
            if field in data:
                data[field] = require_text(data, field)
        if "description" in data:
            data["description"] = str(data["description"] or "").strip()
        if "frequency" in data:
            data["frequency"] = parse_frequency(data["frequency"]).value
        if "is_active" in data:
            data["is_active"] = parse_flag(data["is_active"], "is_active", default=True)
        if "client_id" in data:
            client_id = parse_optional_id(data["client_id"], "client_id")
            if client_id is None:
                raise ValidationError("client_id must not be empty", field="client_id")
            self._require_client(client_id)
            data["client_id"] = client_id

        job = self._repo.update_job(job_id, data)
        if job is None:
            raise NotFoundError("Recurring job", job_id)
        logger.info("Recurring job updated: %s (%s)", job.name, job.id)
        notify_scheduler("reschedule", lambda: self._scheduler.reschedule(job), job.id)
        track_activity(self._recorder, ActivityEvent(
            type=ActivityType.RECURRENCE_UPDATED,
            title="Recurring job updated",
            description=f"Recurring job {job.name} updated: {', '.join(sorted(data))}",
            entity_type="recurrence",
            entity_id=job.id,
        ))
        return job

    def deactivate_recurrence(self, job_id: int, user_id: int | None = None) -> None:
        job = self._repo.delete_job(job_id)
        if job is None:
            raise NotFoundError("Recurring job", job_id)
        logger.info("Recurring job deleted: %s (%s)", job.name, job.id)
        notify_scheduler("cancel", lambda: self._scheduler.cancel(job_id), job_id)
        track_activity(self._recorder, ActivityEvent(
            type=ActivityType.RECURRENCE_DEACTIVATED,
            title="Recurring job deleted",
            description=f"Recurring job {job.name} deleted",
            entity_type="recurrence",
            entity_id=job_id,
            user_id=user_id,
        ))

    def execute_recurrence(
        self,
        job_id: int,
        now: datetime | None = None,
        user_id: int | None = None,
    ) -> ExecutionOutcome:
        job = self.get_job(job_id)
        outcome = self._engine.materialize_from_recurrence(job, now, created_by=user_id)
        if outcome.ok:
            track_activity(self._recorder, ActivityEvent(
                type=ActivityType.PROJECT_CREATED,
                title="Project created",
                description=f"Project {outcome.project.name} created from recurring job {job.name}",
                entity_type="project",
                entity_id=outcome.project.id,
                project_id=outcome.project.id,
                user_id=user_id,
            ))
        return outcome

    def _require_client(self, client_id: int) -> None:
        if self._clients.get_client(client_id) is None:
            raise NotFoundError("Client", client_id)
