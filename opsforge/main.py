"""Command-line entry point for the external scheduler trigger.

    python -m opsforge.main init-db
    python -m opsforge.main due
    python -m opsforge.main execute 12 [--now 2024-03-01T09:00:00]
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from datetime import date, datetime

from opsforge.domain.errors import OpsForgeError
from opsforge.domain.filters import RecurrenceFilters
from opsforge.infra.activity import DatabaseActivityRecorder
from opsforge.infra.db import Storage, init_db
from opsforge.infra.logging import setup_logging
from opsforge.infra.repository import (
    ClientRepository,
    DepartmentRepository,
    RecurrenceRepository,
    SettingsRepository,
    TemplateRepository,
)
from opsforge.services.contracts import Scheduler
from opsforge.services.department_service import DepartmentService
from opsforge.services.materialization import MaterializationEngine
from opsforge.services.recurrence_service import RecurrenceService
from opsforge.services.settings_service import SettingsService
from opsforge.services.template_service import TemplateService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    storage: Storage
    engine: MaterializationEngine
    recurrences: RecurrenceService
    templates: TemplateService
    departments: DepartmentService
    settings: SettingsService


def build_container(storage: Storage | None = None, scheduler: Scheduler | None = None) -> Container:
    storage = storage or Storage()
    settings_repo = SettingsRepository(storage)
    recorder = DatabaseActivityRecorder(storage, settings_repo)
    engine = MaterializationEngine(storage)
    return Container(
        storage=storage,
        engine=engine,
        recurrences=RecurrenceService(
            RecurrenceRepository(storage),
            ClientRepository(storage),
            engine,
            scheduler=scheduler,
            recorder=recorder,
        ),
        templates=TemplateService(TemplateRepository(storage), engine, recorder=recorder),
        departments=DepartmentService(DepartmentRepository(storage)),
        settings=SettingsService(settings_repo),
    )


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="opsforge")
    parser.add_argument("--log-level", default=None, help="override LOG_LEVEL for this run")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init-db", help="create tables and verify the connection")
    sub.add_parser("due", help="print ids of active jobs whose next run has come")
    execute = sub.add_parser("execute", help="materialize a project from a recurring job")
    execute.add_argument("job_id", type=int)
    execute.add_argument("--now", type=datetime.fromisoformat, default=None)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    setup_logging(args.log_level)
    try:
        init_db()
    except Exception as exc:  # noqa: BLE001
        logger.error("DB error: %s", exc)
        return 1
    if args.command == "init-db":
        return 0

    container = build_container()
    if args.command == "due":
        today = date.today()
        for job in container.recurrences.list_jobs(RecurrenceFilters(active_only=True)):
            if job.next_run <= today:
                print(job.id)
        return 0

    try:
        outcome = container.recurrences.execute_recurrence(args.job_id, now=args.now)
    except OpsForgeError as exc:
        logger.error("Execute recurring job %s failed: %s", args.job_id, exc)
        return 1
    if not outcome.ok:
        print(outcome.rejection.value)
        return 2
    print(outcome.project.id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
