from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from opsforge.domain.entities import ActivityEvent, StructuralTemplate, TaskBlueprint
from opsforge.domain.enums import ActivityType
from opsforge.domain.errors import InvalidTemplate, NotFoundError, ValidationError
from opsforge.domain.templates import normalize_blueprints, normalize_levels
from opsforge.domain.validation import parse_flag, require_text
from opsforge.infra.repository import TemplateRepository

from .contracts import ActivityRecorder
from .materialization import AppliedTemplate, MaterializationEngine
from .notify import track_activity

logger = logging.getLogger(__name__)


class TemplateService:
    def __init__(
        self,
        repo: TemplateRepository,
        engine: MaterializationEngine,
        recorder: ActivityRecorder | None = None,
    ) -> None:
        self._repo = repo
        self._engine = engine
        self._recorder = recorder

    def list_templates(self) -> list[StructuralTemplate]:
        return self._repo.list_templates(active_only=True)

    def get_template(self, template_id: int) -> StructuralTemplate:
        template = self._repo.get_template(template_id)
        if template is None:
            raise NotFoundError("Preset project", template_id)
        return template

    def define_template(self, spec: dict, created_by: int | None = None) -> StructuralTemplate:
        name = require_text(spec, "name")
        raw_levels = spec.get("levels") or []
        raw_tasks = spec.get("tasks") or []
        if not raw_levels or not raw_tasks:
            raise ValidationError("Name, levels and tasks are required")
        levels = normalize_levels(raw_levels)
        tasks = normalize_blueprints(raw_tasks, levels)
        self._require_unique_name(name)

        template = self._repo.create_template(
            {
                "name": name,
                "description": str(spec.get("description") or "").strip(),
                "is_active": parse_flag(spec.get("is_active"), "is_active", default=True),
                "created_by": created_by,
            },
            levels,
            tasks,
        )
        logger.info("Preset project created: %s (%s) with %d levels", template.name, template.id, len(levels))
        return template

    def update_template(self, template_id: int, patch: dict) -> StructuralTemplate:
        current = self.get_template(template_id)
        data: dict = {}
        if "name" in patch:
            data["name"] = require_text(patch, "name")
            self._require_unique_name(data["name"], exclude_id=template_id)
        if "description" in patch:
            data["description"] = str(patch["description"] or "").strip()
        if "is_active" in patch:
            data["is_active"] = parse_flag(patch["is_active"], "is_active", default=True)

        levels = tasks = None
        if "levels" in patch or "tasks" in patch:
            levels = normalize_levels(patch.get("levels", current.levels))
            tasks = normalize_blueprints(patch.get("tasks", current.tasks), levels)
            if not levels or not tasks:
                raise InvalidTemplate("A preset needs at least one level and one task")

        template = self._repo.update_template(template_id, data, levels, tasks)
        if template is None:
            raise NotFoundError("Preset project", template_id)
        return template

    def delete_template(self, template_id: int) -> None:
        if not self._repo.delete_template(template_id):
            raise NotFoundError("Preset project", template_id)
        logger.info("Preset project deleted: %s", template_id)

    def apply_template(
        self,
        template_id: int,
        project_overrides: Mapping[str, object],
        task_blueprints: Iterable[Mapping[str, object] | TaskBlueprint],
        user_id: int | None = None,
    ) -> int:
        return self.apply_template_detailed(template_id, project_overrides, task_blueprints, user_id).project.id

    def apply_template_detailed(
        self,
        template_id: int,
        project_overrides: Mapping[str, object],
        task_blueprints: Iterable[Mapping[str, object] | TaskBlueprint],
        user_id: int | None = None,
    ) -> AppliedTemplate:
        template = self.get_template(template_id)
        applied = self._engine.materialize_from_template(
            template, project_overrides, task_blueprints, created_by=user_id
        )
        track_activity(self._recorder, ActivityEvent(
            type=ActivityType.TEMPLATE_APPLIED,
            title="Preset applied",
            description=(
                f"Preset {template.name} applied: project {applied.project.name} "
                f"with {len(applied.tasks)} tasks"
            ),
            entity_type="project",
            entity_id=applied.project.id,
            project_id=applied.project.id,
            user_id=user_id,
        ))
        return applied

    def _require_unique_name(self, name: str, exclude_id: int | None = None) -> None:
        if self._repo.name_taken(name, exclude_id=exclude_id):
            raise ValidationError(f"A preset project named {name!r} already exists", field="name")
