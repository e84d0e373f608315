"""Calendar arithmetic for recurring jobs.

Pure functions; same inputs always give the same date. A month or year step
clamps to the last valid day of the target month (Jan 31 -> Feb 28/29,
Feb 29 -> Feb 28 in a non-leap year).
"""
from __future__ import annotations

from datetime import date, timedelta

from .enums import Frequency
from .errors import ValidationError


def parse_frequency(value: object) -> Frequency:
    if isinstance(value, Frequency):
        return value
    try:
        return Frequency(str(value).strip().lower())
    except ValueError:
        raise ValidationError(
            "Invalid frequency. Must be one of: weekly, monthly, yearly", field="frequency"
        ) from None


def next_occurrence(anchor: date, frequency: Frequency | str) -> date:
    rule = parse_frequency(frequency)
    if rule is Frequency.WEEKLY:
        return anchor + timedelta(days=7)
    if rule is Frequency.MONTHLY:
        return _add_months(anchor, 1)
    return _add_months(anchor, 12)


def due_date_for(occurrence_start: date, frequency: Frequency | str) -> date:
    return next_occurrence(occurrence_start, frequency)


def _add_months(base: date, months: int) -> date:
    year = base.year + (base.month - 1 + months) // 12
    month = (base.month - 1 + months) % 12 + 1
    day = min(base.day, _days_in_month(year, month))
    return date(year, month, day)


def _days_in_month(year: int, month: int) -> int:
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return (next_month - timedelta(days=1)).day
