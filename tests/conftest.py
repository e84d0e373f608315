from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from opsforge.domain.entities import ActivityEvent, RecurrenceDefinition
from opsforge.infra.db import Storage, init_db
from opsforge.infra.locks import KeyedLocks
from opsforge.infra.models import ProjectModel, TaskModel
from opsforge.infra.repository import (
    ClientRepository,
    DepartmentRepository,
    RecurrenceRepository,
    SettingsRepository,
    TemplateRepository,
)
from opsforge.services.department_service import DepartmentService
from opsforge.services.materialization import MaterializationEngine
from opsforge.services.recurrence_service import RecurrenceService
from opsforge.services.settings_service import SettingsService
from opsforge.services.template_service import TemplateService


class FakeScheduler:
    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []

    def schedule(self, job: RecurrenceDefinition) -> None:
        self.calls.append(("schedule", job.id))

    def reschedule(self, job: RecurrenceDefinition) -> None:
        self.calls.append(("reschedule", job.id))

    def cancel(self, job_id: int) -> None:
        self.calls.append(("cancel", job_id))


class BrokenScheduler:
    def schedule(self, job: RecurrenceDefinition) -> None:
        raise ConnectionError("scheduler unreachable")

    def reschedule(self, job: RecurrenceDefinition) -> None:
        raise ConnectionError("scheduler unreachable")

    def cancel(self, job_id: int) -> None:
        raise ConnectionError("scheduler unreachable")


class RecordingRecorder:
    def __init__(self) -> None:
        self.events: list[ActivityEvent] = []

    def log(self, event: ActivityEvent) -> None:
        self.events.append(event)


class FailingRecorder:
    def log(self, event: ActivityEvent) -> None:
        raise RuntimeError("audit sink down")


@pytest.fixture
def db_engine(tmp_path):
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'opsforge.db'}",
        connect_args={"check_same_thread": False},
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def storage(db_engine) -> Storage:
    return Storage(sessionmaker(bind=db_engine, autoflush=False, autocommit=False))


@pytest.fixture
def engine(storage) -> MaterializationEngine:
    return MaterializationEngine(storage, locks=KeyedLocks(timeout=5))


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def recorder() -> RecordingRecorder:
    return RecordingRecorder()


@pytest.fixture
def clients(storage) -> ClientRepository:
    return ClientRepository(storage)


@pytest.fixture
def client_id(clients) -> int:
    return clients.create_client("Acme Ltd").id


@pytest.fixture
def recurrence_service(storage, clients, engine, scheduler, recorder) -> RecurrenceService:
    return RecurrenceService(
        RecurrenceRepository(storage), clients, engine, scheduler=scheduler, recorder=recorder
    )


@pytest.fixture
def template_service(storage, engine, recorder) -> TemplateService:
    return TemplateService(TemplateRepository(storage), engine, recorder=recorder)


@pytest.fixture
def department_service(storage) -> DepartmentService:
    return DepartmentService(DepartmentRepository(storage))


@pytest.fixture
def settings_service(storage) -> SettingsService:
    return SettingsService(SettingsRepository(storage))


@pytest.fixture
def count_rows(storage):
    def _count() -> dict[str, int]:
        with storage.session() as session:
            return {
                "projects": session.scalar(select(func.count()).select_from(ProjectModel)) or 0,
                "tasks": session.scalar(select(func.count()).select_from(TaskModel)) or 0,
            }

    return _count
