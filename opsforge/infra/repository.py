from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from opsforge.domain import codes
from opsforge.domain.entities import (
    AppSettingsEntity,
    ClientEntity,
    DepartmentEntity,
    MaterializedProject,
    MaterializedTask,
    RecurrenceDefinition,
    StructuralTemplate,
    TaskBlueprint,
    TemplateLevel,
)
from opsforge.domain.enums import Frequency, ProjectStatus, TaskPriority, TaskStatus
from opsforge.domain.filters import RecurrenceFilters

from .db import Storage
from .models import (
    AppSettingsModel,
    ClientModel,
    DepartmentModel,
    PresetLevelModel,
    PresetProjectModel,
    PresetTaskModel,
    ProjectModel,
    RecurrenceModel,
    TaskModel,
    utcnow,
)


def _to_recurrence(model: RecurrenceModel) -> RecurrenceDefinition:
    return RecurrenceDefinition(
        id=model.id,
        name=model.name,
        description=model.description,
        client_id=model.client_id,
        section=model.section,
        frequency=Frequency(model.frequency),
        start_date=model.start_date,
        next_run=model.next_run,
        last_run=model.last_run,
        is_active=model.is_active,
        created_by=model.created_by,
        created_at=model.created_at,
        updated_at=model.updated_at,
        deleted_at=model.deleted_at,
    )


def _levels_from_json(raw: Iterable[dict] | None) -> tuple[TemplateLevel, ...]:
    return tuple(
        TemplateLevel(level_index=item["level_index"], department=item["department"])
        for item in (raw or [])
    )


def levels_to_json(levels: Iterable[TemplateLevel]) -> list[dict]:
    return [{"level_index": level.level_index, "department": level.department} for level in levels]


def _to_project(model: ProjectModel) -> MaterializedProject:
    return MaterializedProject(
        id=model.id,
        project_number=model.project_number,
        name=model.name,
        description=model.description,
        client_id=model.client_id,
        levels=_levels_from_json(model.levels),
        status=ProjectStatus(model.status),
        start_date=model.start_date,
        due_date=model.due_date,
        created_by=model.created_by,
        recurrence_id=model.recurrence_id,
        template_id=model.template_id,
        created_at=model.created_at,
    )


def _to_task(model: TaskModel) -> MaterializedTask:
    return MaterializedTask(
        id=model.id,
        task_number=model.task_number,
        title=model.title,
        description=model.description,
        priority=TaskPriority(model.priority),
        level_index=model.level_index,
        department=model.department,
        assignee_id=model.assignee_id,
        due_date=model.due_date,
        amount=model.amount,
        tags=tuple(model.tags or ()),
        project_id=model.project_id,
        status=TaskStatus(model.status),
        is_preset_pending=model.is_preset_pending,
        created_by=model.created_by,
        created_at=model.created_at,
    )


def _to_settings(model: AppSettingsModel) -> AppSettingsEntity:
    return AppSettingsEntity(
        id=model.id,
        company_name=model.company_name,
        contact_email=model.contact_email,
        currency=model.currency,
        date_format=model.date_format,
        enable_audit_log=model.enable_audit_log,
        updated_at=model.updated_at,
    )


class ClientRepository:
    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    def get_client(self, client_id: int) -> Optional[ClientEntity]:
        with self._storage.session() as session:
            client = session.get(ClientModel, client_id)
            if not client or client.deleted_at is not None:
                return None
            return ClientEntity(id=client.id, name=client.name)

    def create_client(self, name: str) -> ClientEntity:
        with self._storage.session() as session:
            client = ClientModel(name=name)
            session.add(client)
            session.commit()
            session.refresh(client)
            return ClientEntity(id=client.id, name=client.name)

    def delete_client(self, client_id: int) -> None:
        with self._storage.session() as session:
            client = session.get(ClientModel, client_id)
            if not client or client.deleted_at is not None:
                return
            client.deleted_at = utcnow()
            session.commit()


class DepartmentRepository:
    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    def list_departments(self) -> list[DepartmentEntity]:
        with self._storage.session() as session:
            stmt = (
                select(DepartmentModel)
                .where(DepartmentModel.deleted_at.is_(None))
                .order_by(DepartmentModel.code.asc())
            )
            return [
                DepartmentEntity(id=dep.id, name=dep.name, code=dep.code)
                for dep in session.scalars(stmt)
            ]

    def next_code(self) -> str:
        with self._storage.session() as session:
            return self._next_code(session)

    def create_department(self, name: str) -> DepartmentEntity:
        def _create(session: Session) -> DepartmentEntity:
            department = DepartmentModel(name=name, code=self._next_code(session))
            session.add(department)
            session.flush()
            return DepartmentEntity(id=department.id, name=department.name, code=department.code)

        return self._storage.run_atomic(_create)

    def delete_department(self, department_id: int) -> bool:
        with self._storage.session() as session:
            department = session.get(DepartmentModel, department_id)
            if not department or department.deleted_at is not None:
                return False
            department.deleted_at = utcnow()
            session.commit()
            return True

    @staticmethod
    def _next_code(session: Session) -> str:
        live_codes = session.scalars(
            select(DepartmentModel.code).where(DepartmentModel.deleted_at.is_(None))
        )
        return codes.next_department_code(live_codes)


class RecurrenceRepository:
    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    def list_jobs(self, filters: RecurrenceFilters) -> list[RecurrenceDefinition]:
        with self._storage.session() as session:
            stmt = select(RecurrenceModel).where(RecurrenceModel.deleted_at.is_(None))
            if filters.client_id is not None:
                stmt = stmt.where(RecurrenceModel.client_id == filters.client_id)
            if filters.section:
                stmt = stmt.where(RecurrenceModel.section == filters.section)
            if filters.active_only:
                stmt = stmt.where(RecurrenceModel.is_active.is_(True))
            stmt = stmt.order_by(RecurrenceModel.created_at.desc(), RecurrenceModel.id.desc())
            return [_to_recurrence(job) for job in session.scalars(stmt)]

    def get_job(self, job_id: int) -> Optional[RecurrenceDefinition]:
        with self._storage.session() as session:
            job = session.get(RecurrenceModel, job_id)
            if not job or job.deleted_at is not None:
                return None
            return _to_recurrence(job)

    def create_job(self, data: dict) -> RecurrenceDefinition:
        with self._storage.session() as session:
            job = RecurrenceModel(**data)
            session.add(job)
            session.commit()
            session.refresh(job)
            return _to_recurrence(job)

    def update_job(self, job_id: int, data: dict) -> Optional[RecurrenceDefinition]:
        with self._storage.session() as session:
            job = session.get(RecurrenceModel, job_id)
            if not job or job.deleted_at is not None:
                return None
            for key, value in data.items():
                setattr(job, key, value)
            session.commit()
            session.refresh(job)
            return _to_recurrence(job)

    def delete_job(self, job_id: int) -> Optional[RecurrenceDefinition]:
        with self._storage.session() as session:
            job = session.get(RecurrenceModel, job_id)
            if not job or job.deleted_at is not None:
                return None
            job.deleted_at = utcnow()
            session.commit()
            session.refresh(job)
            return _to_recurrence(job)

    def list_sections(self, client_id: int) -> list[str]:
        with self._storage.session() as session:
            stmt = (
                select(RecurrenceModel.section)
                .where(RecurrenceModel.client_id == client_id, RecurrenceModel.deleted_at.is_(None))
                .distinct()
                .order_by(RecurrenceModel.section.asc())
            )
            return list(session.scalars(stmt))

    @staticmethod
    def load_in(session: Session, job_id: int) -> Optional[RecurrenceDefinition]:
        stmt = (
            select(RecurrenceModel)
            .where(RecurrenceModel.id == job_id, RecurrenceModel.deleted_at.is_(None))
            .with_for_update()
        )
        job = session.scalars(stmt).first()
        return _to_recurrence(job) if job else None

    @staticmethod
    def record_run(
        session: Session,
        job_id: int,
        expected_last_run: Optional[datetime],
        last_run: datetime,
        next_run: date,
    ) -> Optional[RecurrenceDefinition]:
        """Advance the job only if ``last_run`` still holds the value the caller read.

        Returns None when another writer got there first.
        """
        stmt = update(RecurrenceModel).where(
            RecurrenceModel.id == job_id,
            RecurrenceModel.deleted_at.is_(None),
        )
        if expected_last_run is None:
            stmt = stmt.where(RecurrenceModel.last_run.is_(None))
        else:
            stmt = stmt.where(RecurrenceModel.last_run == expected_last_run)
        stmt = stmt.values(last_run=last_run, next_run=next_run, updated_at=utcnow())
        result = session.execute(stmt.execution_options(synchronize_session=False))
        if result.rowcount != 1:
            return None
        job = session.get(RecurrenceModel, job_id, populate_existing=True)
        return _to_recurrence(job)


class TemplateRepository:
    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    def list_templates(self, active_only: bool = True) -> list[StructuralTemplate]:
        with self._storage.session() as session:
            stmt = select(PresetProjectModel).where(PresetProjectModel.deleted_at.is_(None))
            if active_only:
                stmt = stmt.where(PresetProjectModel.is_active.is_(True))
            stmt = stmt.order_by(PresetProjectModel.created_at.desc(), PresetProjectModel.id.desc())
            return [self._assemble(session, preset) for preset in session.scalars(stmt).all()]

    def get_template(self, template_id: int) -> Optional[StructuralTemplate]:
        with self._storage.session() as session:
            preset = session.get(PresetProjectModel, template_id)
            if not preset or preset.deleted_at is not None:
                return None
            return self._assemble(session, preset)

    def name_taken(self, name: str, exclude_id: int | None = None) -> bool:
        with self._storage.session() as session:
            stmt = select(func.count()).select_from(PresetProjectModel).where(
                func.lower(PresetProjectModel.name) == name.lower(),
                PresetProjectModel.deleted_at.is_(None),
            )
            if exclude_id is not None:
                stmt = stmt.where(PresetProjectModel.id != exclude_id)
            return (session.scalar(stmt) or 0) > 0

    def create_template(
        self,
        data: dict,
        levels: tuple[TemplateLevel, ...],
        tasks: tuple[TaskBlueprint, ...],
    ) -> StructuralTemplate:
        def _create(session: Session) -> StructuralTemplate:
            preset = PresetProjectModel(**data)
            session.add(preset)
            session.flush()
            self._write_structure(session, preset.id, levels, tasks)
            session.flush()
            return self._assemble(session, preset)

        return self._storage.run_atomic(_create)

    def update_template(
        self,
        template_id: int,
        data: dict,
        levels: tuple[TemplateLevel, ...] | None = None,
        tasks: tuple[TaskBlueprint, ...] | None = None,
    ) -> Optional[StructuralTemplate]:
        def _update(session: Session) -> Optional[StructuralTemplate]:
            preset = session.get(PresetProjectModel, template_id)
            if not preset or preset.deleted_at is not None:
                return None
            for key, value in data.items():
                setattr(preset, key, value)
            if levels is not None and tasks is not None:
                session.query(PresetLevelModel).filter(PresetLevelModel.preset_id == template_id).delete()
                session.query(PresetTaskModel).filter(PresetTaskModel.preset_id == template_id).delete()
                self._write_structure(session, template_id, levels, tasks)
            session.flush()
            return self._assemble(session, preset)

        return self._storage.run_atomic(_update)

    def delete_template(self, template_id: int) -> bool:
        with self._storage.session() as session:
            preset = session.get(PresetProjectModel, template_id)
            if not preset or preset.deleted_at is not None:
                return False
            preset.deleted_at = utcnow()
            session.commit()
            return True

    @staticmethod
    def _write_structure(
        session: Session,
        template_id: int,
        levels: tuple[TemplateLevel, ...],
        tasks: tuple[TaskBlueprint, ...],
    ) -> None:
        session.add_all(
            PresetLevelModel(preset_id=template_id, level_index=level.level_index, department=level.department)
            for level in levels
        )
        session.add_all(
            PresetTaskModel(
                preset_id=template_id,
                title=task.title,
                description=task.description,
                priority=task.priority.value,
                level_index=task.level_index,
                sort_order=task.order,
            )
            for task in tasks
        )

    @staticmethod
    def _assemble(session: Session, preset: PresetProjectModel) -> StructuralTemplate:
        levels = session.scalars(
            select(PresetLevelModel)
            .where(PresetLevelModel.preset_id == preset.id)
            .order_by(PresetLevelModel.level_index.asc())
        )
        tasks = session.scalars(
            select(PresetTaskModel)
            .where(PresetTaskModel.preset_id == preset.id)
            .order_by(PresetTaskModel.sort_order.asc(), PresetTaskModel.id.asc())
        )
        return StructuralTemplate(
            id=preset.id,
            name=preset.name,
            description=preset.description,
            levels=tuple(
                TemplateLevel(level_index=level.level_index, department=level.department)
                for level in levels
            ),
            tasks=tuple(
                TaskBlueprint(
                    title=task.title,
                    description=task.description,
                    priority=TaskPriority(task.priority),
                    level_index=task.level_index,
                    order=task.sort_order,
                )
                for task in tasks
            ),
            is_active=preset.is_active,
            created_by=preset.created_by,
            created_at=preset.created_at,
            deleted_at=preset.deleted_at,
        )


class ProjectRepository:
    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    def get_project(self, project_id: int) -> Optional[MaterializedProject]:
        with self._storage.session() as session:
            project = session.get(ProjectModel, project_id)
            if not project or project.deleted_at is not None:
                return None
            return _to_project(project)

    def list_tasks(self, project_id: int) -> list[MaterializedTask]:
        with self._storage.session() as session:
            stmt = (
                select(TaskModel)
                .where(TaskModel.project_id == project_id, TaskModel.deleted_at.is_(None))
                .order_by(TaskModel.level_index.asc(), TaskModel.id.asc())
            )
            return [_to_task(task) for task in session.scalars(stmt)]

    def count_projects(self) -> int:
        with self._storage.session() as session:
            return session.scalar(
                select(func.count()).select_from(ProjectModel).where(ProjectModel.deleted_at.is_(None))
            ) or 0

    def count_tasks(self) -> int:
        with self._storage.session() as session:
            return session.scalar(
                select(func.count()).select_from(TaskModel).where(TaskModel.deleted_at.is_(None))
            ) or 0

    @staticmethod
    def add_project(session: Session, data: dict, today: date) -> MaterializedProject:
        seq = ProjectRepository._next_number(session, ProjectModel, ProjectModel.project_number, codes.PROJECT_PREFIX)
        project = ProjectModel(project_number=codes.numbered(codes.PROJECT_PREFIX, today, seq), **data)
        session.add(project)
        session.flush()
        return _to_project(project)

    @staticmethod
    def add_tasks(session: Session, rows: list[dict], today: date) -> list[MaterializedTask]:
        seq = ProjectRepository._next_number(session, TaskModel, TaskModel.task_number, codes.TASK_PREFIX)
        tasks = [
            TaskModel(task_number=codes.numbered(codes.TASK_PREFIX, today, seq + offset), **row)
            for offset, row in enumerate(rows)
        ]
        session.add_all(tasks)
        session.flush()
        return [_to_task(task) for task in tasks]

    @staticmethod
    def _next_number(session: Session, model, column, prefix: str) -> int:
        latest = session.scalar(select(column).order_by(model.id.desc()).limit(1))
        return codes.next_sequence([latest], prefix)


class SettingsRepository:
    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    def get_or_create_default(self) -> AppSettingsEntity:
        def _load(session: Session) -> AppSettingsEntity:
            return _to_settings(self._ensure_row(session))

        return self._storage.run_atomic(_load)

    def update_settings(self, data: dict) -> AppSettingsEntity:
        def _update(session: Session) -> AppSettingsEntity:
            row = self._ensure_row(session)
            for key, value in data.items():
                setattr(row, key, value)
            session.flush()
            return _to_settings(row)

        return self._storage.run_atomic(_update)

    @staticmethod
    def _ensure_row(session: Session) -> AppSettingsModel:
        row = session.scalars(select(AppSettingsModel).order_by(AppSettingsModel.id.asc()).limit(1)).first()
        if row is None:
            row = AppSettingsModel()
            session.add(row)
            session.flush()
        return row
