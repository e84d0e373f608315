from __future__ import annotations

from datetime import datetime

from .entities import RecurrenceDefinition
from .enums import RejectionReason


def check_execution(job: RecurrenceDefinition, now: datetime) -> RejectionReason | None:
    """Return why ``job`` may not materialize at ``now``, or None when permitted.

    The duplicate check compares ``last_run`` against ``start_date``, which
    never changes after creation. Once the first run succeeds every later call
    is rejected with DUPLICATE_INITIAL_EXECUTION even when ``next_run`` has
    come due. This reproduces the documented behaviour and is pending
    clarification; do not turn it into per-cycle re-execution here.
    """
    if not job.is_active:
        return RejectionReason.INACTIVE_TEMPLATE
    if now.date() < job.start_date:
        return RejectionReason.BEFORE_WINDOW
    if job.last_run is not None and job.last_run.date() >= job.start_date:
        return RejectionReason.DUPLICATE_INITIAL_EXECUTION
    return None
