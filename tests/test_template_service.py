from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from opsforge.domain.entities import TemplateLevel
from opsforge.domain.enums import ActivityType, ProjectStatus, TaskPriority, TaskStatus
from opsforge.domain.errors import InvalidTemplate, NotFoundError, TransactionFailure, ValidationError
from opsforge.infra.repository import ProjectRepository


def _preset_spec(**overrides) -> dict:
    spec = {
        "name": "Website launch",
        "description": "Standard launch checklist",
        "levels": [{"department": "Design"}, {"department": {"name": "Engineering"}}, "Marketing"],
        "tasks": [
            {"title": "Wireframes", "levelIndex": 0, "priority": "high"},
            {"title": "Build", "levelIndex": 1},
            {"title": "Announce", "levelIndex": 2, "order": 1},
        ],
    }
    spec.update(overrides)
    return spec


def _blueprints() -> list[dict]:
    return [
        {"title": "Wireframes", "levelIndex": 0, "priority": "high", "assignee_id": 7},
        {"title": "Build", "level_index": 1, "due_date": "2024-05-01", "amount": "1500.50", "tags": ["web"]},
        {"title": "Announce", "levelIndex": 2, "department": {"name": "Comms"}},
    ]


def test_define_normalizes_and_persists(template_service) -> None:
    template = template_service.define_template(_preset_spec(), created_by=1)

    assert template.levels == (
        TemplateLevel(0, "Design"),
        TemplateLevel(1, "Engineering"),
        TemplateLevel(2, "Marketing"),
    )
    assert [t.title for t in template.tasks] == ["Wireframes", "Build", "Announce"]
    assert template.tasks[0].priority is TaskPriority.HIGH
    assert template_service.get_template(template.id) == template
    assert [t.id for t in template_service.list_templates()] == [template.id]


@pytest.mark.parametrize("overrides", [{"name": ""}, {"levels": []}, {"tasks": []}])
def test_define_requires_name_levels_and_tasks(template_service, overrides) -> None:
    with pytest.raises(ValidationError):
        template_service.define_template(_preset_spec(**overrides))


def test_define_rejects_task_with_unknown_level(template_service) -> None:
    spec = _preset_spec(tasks=[{"title": "Orphan", "levelIndex": 3}])
    with pytest.raises(InvalidTemplate):
        template_service.define_template(spec)
    assert template_service.list_templates() == []


def test_define_rejects_duplicate_name(template_service) -> None:
    template_service.define_template(_preset_spec())
    with pytest.raises(ValidationError):
        template_service.define_template(_preset_spec(name="website LAUNCH"))


def test_name_is_free_again_after_delete(template_service) -> None:
    first = template_service.define_template(_preset_spec())
    template_service.delete_template(first.id)

    second = template_service.define_template(_preset_spec())

    assert second.id != first.id
    with pytest.raises(NotFoundError):
        template_service.get_template(first.id)


def test_update_renormalizes_structure(template_service) -> None:
    template = template_service.define_template(_preset_spec())

    updated = template_service.update_template(
        template.id,
        {"levels": ["Ops"], "tasks": [{"title": "Run", "levelIndex": 0}], "is_active": False},
    )

    assert updated.levels == (TemplateLevel(0, "Ops"),)
    assert [t.title for t in updated.tasks] == ["Run"]
    assert template_service.list_templates() == []


def test_apply_creates_one_project_and_all_tasks(template_service, storage, recorder, count_rows) -> None:
    template = template_service.define_template(_preset_spec())

    project_id = template_service.apply_template(
        template.id,
        {"name": "Acme site", "client_id": None, "start_date": "2024-04-01"},
        _blueprints(),
        user_id=2,
    )

    projects = ProjectRepository(storage)
    project = projects.get_project(project_id)
    tasks = projects.list_tasks(project_id)
    assert count_rows() == {"projects": 1, "tasks": 3}
    assert project.name == "Acme site"
    assert project.status is ProjectStatus.PLANNING
    assert project.start_date == date(2024, 4, 1)
    assert project.template_id == template.id
    assert project.levels == template.levels
    assert all(t.project_id == project_id for t in tasks)
    assert all(t.status is TaskStatus.PENDING and t.is_preset_pending for t in tasks)
    assert [t.department for t in tasks] == ["Design", "Engineering", "Comms"]
    assert tasks[0].assignee_id == 7
    assert tasks[1].amount == Decimal("1500.50")
    assert tasks[1].due_date == date(2024, 5, 1)
    assert tasks[1].tags == ("web",)
    assert len({t.task_number for t in tasks}) == 3
    assert recorder.events[-1].type is ActivityType.TEMPLATE_APPLIED


def test_project_keeps_levels_copied_at_creation(template_service, storage) -> None:
    template = template_service.define_template(_preset_spec())
    project_id = template_service.apply_template(template.id, {}, _blueprints()[:1])

    template_service.update_template(template.id, {"levels": ["Other"], "tasks": [{"title": "x", "levelIndex": 0}]})

    project = ProjectRepository(storage).get_project(project_id)
    assert project.name == "Website launch"
    assert project.levels[0] == TemplateLevel(0, "Design")


def test_apply_with_one_bad_blueprint_rolls_everything_back(template_service, count_rows) -> None:
    template = template_service.define_template(_preset_spec())
    blueprints = _blueprints() + [{"title": "Orphan", "levelIndex": 9}]

    with pytest.raises(TransactionFailure) as excinfo:
        template_service.apply_template(template.id, {"name": "Acme site"}, blueprints)

    assert isinstance(excinfo.value.cause, InvalidTemplate)
    assert count_rows() == {"projects": 0, "tasks": 0}


def test_apply_rolls_back_when_bulk_insert_fails(template_service, count_rows, monkeypatch) -> None:
    template = template_service.define_template(_preset_spec())

    def _boom(session, rows, today):
        raise IntegrityError("INSERT INTO tasks", {}, Exception("foreign key violation"))

    monkeypatch.setattr(ProjectRepository, "add_tasks", staticmethod(_boom))

    with pytest.raises(TransactionFailure) as excinfo:
        template_service.apply_template(template.id, {"name": "Acme site"}, _blueprints())

    assert "preset template" in str(excinfo.value)
    assert count_rows() == {"projects": 0, "tasks": 0}


def test_apply_rejects_unknown_project_fields_before_writing(template_service, count_rows) -> None:
    template = template_service.define_template(_preset_spec())
    with pytest.raises(ValidationError):
        template_service.apply_template(template.id, {"budget": 10}, _blueprints())
    assert count_rows() == {"projects": 0, "tasks": 0}


def test_apply_unknown_template(template_service) -> None:
    with pytest.raises(NotFoundError):
        template_service.apply_template(404, {}, [])


def test_apply_accepts_the_templates_own_blueprints(template_service, storage, count_rows) -> None:
    template = template_service.define_template(_preset_spec())

    applied = template_service.apply_template_detailed(template.id, {"name": "Acme site"}, template.tasks)

    assert count_rows() == {"projects": 1, "tasks": 3}
    assert [t.title for t in applied.tasks] == ["Wireframes", "Build", "Announce"]
    assert [t.department for t in applied.tasks] == ["Design", "Engineering", "Marketing"]
    assert applied.tasks[0].priority is TaskPriority.HIGH
    assert ProjectRepository(storage).list_tasks(applied.project.id) == list(applied.tasks)


def test_update_reads_textual_active_flag(template_service) -> None:
    template = template_service.define_template(_preset_spec())

    template_service.update_template(template.id, {"is_active": "false"})

    assert template_service.list_templates() == []
    with pytest.raises(ValidationError):
        template_service.update_template(template.id, {"is_active": "sometimes"})
