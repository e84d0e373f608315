"""Collaborator contracts the engine calls out to, and the execute result type."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from opsforge.domain.entities import ActivityEvent, MaterializedProject, RecurrenceDefinition
from opsforge.domain.enums import RejectionReason


class Scheduler(Protocol):
    """The external trigger that decides *when* to call ``execute_recurrence``."""

    def schedule(self, job: RecurrenceDefinition) -> None: ...

    def reschedule(self, job: RecurrenceDefinition) -> None: ...

    def cancel(self, job_id: int) -> None: ...


class ActivityRecorder(Protocol):
    """Best-effort audit sink; callers never fail because of it."""

    def log(self, event: ActivityEvent) -> None: ...


@dataclass(frozen=True)
class ExecutionOutcome:
    job: RecurrenceDefinition
    project: MaterializedProject | None = None
    rejection: RejectionReason | None = None

    @property
    def ok(self) -> bool:
        return self.rejection is None
