from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

from opsforge.domain.entities import RecurrenceDefinition
from opsforge.domain.enums import Frequency, RejectionReason
from opsforge.domain.guard import check_execution


def _job(**overrides) -> RecurrenceDefinition:
    job = RecurrenceDefinition(
        id=1,
        name="Monthly bookkeeping",
        description="",
        client_id=1,
        section="Accounts",
        frequency=Frequency.MONTHLY,
        start_date=date(2024, 3, 1),
        next_run=date(2024, 3, 1),
        last_run=None,
        is_active=True,
        created_by=None,
        created_at=datetime(2024, 2, 1),
        updated_at=datetime(2024, 2, 1),
    )
    return replace(job, **overrides)


def test_permits_first_run_on_start_date() -> None:
    assert check_execution(_job(), datetime(2024, 3, 1, 0, 0)) is None


def test_inactive_job_is_rejected_regardless_of_dates() -> None:
    job = _job(is_active=False, last_run=datetime(2024, 3, 5))
    assert check_execution(job, datetime(2020, 1, 1)) is RejectionReason.INACTIVE_TEMPLATE
    assert check_execution(job, datetime(2030, 1, 1)) is RejectionReason.INACTIVE_TEMPLATE


def test_rejects_before_start_date() -> None:
    assert check_execution(_job(), datetime(2024, 2, 29, 23, 59)) is RejectionReason.BEFORE_WINDOW


def test_last_run_before_start_date_does_not_block() -> None:
    job = _job(last_run=datetime(2024, 2, 15, 10, 0))
    assert check_execution(job, datetime(2024, 3, 2)) is None


def test_blocks_every_run_after_the_first_even_when_next_run_is_due() -> None:
    # Reproduces the documented execute-once behaviour, pending clarification.
    job = _job(last_run=datetime(2024, 3, 1, 9, 0), next_run=date(2024, 4, 1))
    assert check_execution(job, datetime(2024, 4, 1, 9, 0)) is RejectionReason.DUPLICATE_INITIAL_EXECUTION
    assert check_execution(job, datetime(2026, 1, 1)) is RejectionReason.DUPLICATE_INITIAL_EXECUTION
