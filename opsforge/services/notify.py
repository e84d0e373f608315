from __future__ import annotations

import logging
from collections.abc import Callable

from opsforge.domain.entities import ActivityEvent

from .contracts import ActivityRecorder

logger = logging.getLogger(__name__)


def track_activity(recorder: ActivityRecorder | None, event: ActivityEvent) -> None:
    if recorder is None:
        return
    try:
        recorder.log(event)
        logger.info("Activity tracked for %s %s", event.entity_type, event.entity_id)
    except Exception:  # noqa: BLE001
        logger.exception("Failed to track activity %s for %s %s", event.type, event.entity_type, event.entity_id)


def notify_scheduler(action: str, call: Callable[[], None], job_id: int | None) -> None:
    try:
        call()
    except Exception:  # noqa: BLE001
        logger.exception("Scheduler %s failed for recurring job %s", action, job_id)
