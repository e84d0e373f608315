from __future__ import annotations

from .enums import RejectionReason


class OpsForgeError(Exception):
    """Base class for every error raised by the engine."""


class ValidationError(OpsForgeError):
    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class InvalidTemplate(ValidationError):
    pass


class NotFoundError(OpsForgeError):
    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(f"{entity} not found with id of {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


_REASON_MESSAGES = {
    RejectionReason.INACTIVE_TEMPLATE: "This is a section-only recurring job and cannot create a project.",
    RejectionReason.BEFORE_WINDOW: "Cannot execute before the start date.",
    RejectionReason.DUPLICATE_INITIAL_EXECUTION: "Initial project has already been created.",
}


class StateConflictError(OpsForgeError):
    def __init__(self, reason: RejectionReason) -> None:
        super().__init__(_REASON_MESSAGES[reason])
        self.reason = reason


class TransactionFailure(OpsForgeError):
    """Atomic creation of an entity graph failed and was rolled back.

    ``graph`` names the graph that failed (e.g. ``"recurrence job 4"``);
    ``cause`` is the underlying error, also chained as ``__cause__``.
    """

    def __init__(self, graph: str, cause: BaseException) -> None:
        super().__init__(f"Failed to materialize {graph}. All changes rolled back. Error: {cause}")
        self.graph = graph
        self.cause = cause


class CollaboratorFailure(OpsForgeError):
    def __init__(self, collaborator: str, cause: BaseException) -> None:
        super().__init__(f"{collaborator} failed: {cause}")
        self.collaborator = collaborator
        self.cause = cause
