from __future__ import annotations

from collections.abc import Iterable, Mapping

from .entities import TaskBlueprint, TemplateLevel
from .enums import TaskPriority
from .errors import InvalidTemplate


def resolve_department(ref: object) -> str:
    """Accept a department as a bare id/name, a mapping with ``name`` or an object with ``name``."""
    if isinstance(ref, Mapping):
        name = ref.get("name")
    elif isinstance(ref, (str, int)):
        name = ref
    else:
        name = getattr(ref, "name", None)
    if name is None or isinstance(name, bool):
        raise InvalidTemplate(f"Unresolvable department reference: {ref!r}", field="levels")
    resolved = str(name).strip()
    if not resolved:
        raise InvalidTemplate("Department reference must not be empty", field="levels")
    return resolved


def normalize_levels(raw_levels: Iterable[object]) -> tuple[TemplateLevel, ...]:
    levels = []
    for index, raw in enumerate(raw_levels):
        if isinstance(raw, TemplateLevel):
            department = raw.department
        elif isinstance(raw, Mapping) and "department" in raw:
            department = raw["department"]
        else:
            department = raw
        levels.append(TemplateLevel(level_index=index, department=resolve_department(department)))
    return tuple(levels)


def level_for(level_index: object, levels: tuple[TemplateLevel, ...]) -> TemplateLevel:
    if isinstance(level_index, bool) or not isinstance(level_index, int):
        raise InvalidTemplate(f"levelIndex must be an integer, got {level_index!r}", field="levelIndex")
    if not 0 <= level_index < len(levels):
        raise InvalidTemplate(
            f"levelIndex {level_index} has no matching level (template has {len(levels)})",
            field="levelIndex",
        )
    return levels[level_index]


def normalize_blueprints(
    raw_tasks: Iterable[object], levels: tuple[TemplateLevel, ...]
) -> tuple[TaskBlueprint, ...]:
    blueprints = []
    for raw in raw_tasks:
        if isinstance(raw, TaskBlueprint):
            blueprint = raw
        else:
            if not isinstance(raw, Mapping):
                raise InvalidTemplate(f"Task blueprint must be a mapping, got {raw!r}", field="tasks")
            title = str(raw.get("title") or "").strip()
            if not title:
                raise InvalidTemplate("Task blueprint title is required", field="title")
            blueprint = TaskBlueprint(
                title=title,
                description=str(raw.get("description") or "").strip(),
                priority=parse_priority(raw.get("priority")),
                level_index=_pick_level_index(raw),
                order=int(raw.get("order") or 0),
            )
        level_for(blueprint.level_index, levels)
        blueprints.append(blueprint)
    return tuple(blueprints)


def _pick_level_index(raw: Mapping) -> object:
    if "level_index" in raw:
        return raw["level_index"]
    return raw.get("levelIndex")


def parse_priority(value: object) -> TaskPriority:
    if value is None or value == "":
        return TaskPriority.MEDIUM
    try:
        return TaskPriority(str(value).lower())
    except ValueError:
        raise InvalidTemplate(f"Invalid priority {value!r}", field="priority") from None
