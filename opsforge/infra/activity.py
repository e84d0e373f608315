from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from opsforge.domain.entities import ActivityEvent
from opsforge.domain.errors import CollaboratorFailure

from .db import Storage
from .models import ActivityModel, utcnow
from .repository import SettingsRepository

logger = logging.getLogger(__name__)


class DatabaseActivityRecorder:
    """Writes activity rows in their own transaction, apart from the materialization."""

    def __init__(self, storage: Storage, settings_repo: SettingsRepository | None = None) -> None:
        self._storage = storage
        self._settings_repo = settings_repo or SettingsRepository(storage)

    def log(self, event: ActivityEvent) -> None:
        try:
            if not self._settings_repo.get_or_create_default().enable_audit_log:
                logger.debug("Audit log disabled, skipping %s", event.type)
                return
            with self._storage.session() as session:
                session.add(
                    ActivityModel(
                        type=event.type.value,
                        title=event.title,
                        description=event.description,
                        entity_type=event.entity_type,
                        entity_id=event.entity_id,
                        project_id=event.project_id,
                        user_id=event.user_id,
                        timestamp=event.timestamp or utcnow(),
                    )
                )
                session.commit()
        except SQLAlchemyError as exc:
            raise CollaboratorFailure("activity recorder", exc) from exc
