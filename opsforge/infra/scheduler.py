from __future__ import annotations

import logging

from opsforge.domain.entities import RecurrenceDefinition

logger = logging.getLogger(__name__)


class LoggingScheduler:
    """Scheduler used when no external trigger is wired in; records intent only.

    An external cron daemon picks due jobs itself and calls
    ``opsforge.main execute <job_id>``.
    """

    def schedule(self, job: RecurrenceDefinition) -> None:
        logger.info("Schedule recurring job %s (%s) next run %s", job.id, job.frequency, job.next_run)

    def reschedule(self, job: RecurrenceDefinition) -> None:
        logger.info("Reschedule recurring job %s (%s) next run %s", job.id, job.frequency, job.next_run)

    def cancel(self, job_id: int) -> None:
        logger.info("Cancel recurring job %s", job_id)
