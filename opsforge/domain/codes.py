"""Sequential human-readable codes.

  - Departments:  DEP{seq}             (DEP001, DEP002, ...)
  - Projects:     PRJ-{yymm}-{seq}     (PRJ-2401-001)
  - Tasks:        TSK-{yymm}-{seq}     (TSK-2401-014)

Sequences are zero-padded to 3 digits and continue from the highest existing
number; they restart at 001 only when no live predecessor exists.
"""
from __future__ import annotations

from collections.abc import Iterable
from datetime import date

DEPARTMENT_PREFIX = "DEP"
PROJECT_PREFIX = "PRJ"
TASK_PREFIX = "TSK"


def format_code(prefix: str, seq: int) -> str:
    return f"{prefix}{seq:03d}"


def parse_sequence(code: str | None, prefix: str) -> int | None:
    if not code or not code.startswith(prefix):
        return None
    tail = code[len(prefix):].rsplit("-", 1)[-1]
    return int(tail) if tail.isdigit() else None


def next_sequence(codes: Iterable[str | None], prefix: str) -> int:
    numbers = [n for n in (parse_sequence(code, prefix) for code in codes) if n is not None]
    return max(numbers, default=0) + 1


def next_department_code(existing: Iterable[str | None]) -> str:
    return format_code(DEPARTMENT_PREFIX, next_sequence(existing, DEPARTMENT_PREFIX))


def period_prefix(prefix: str, today: date) -> str:
    return f"{prefix}-{today:%y%m}-"


def numbered(prefix: str, today: date, seq: int) -> str:
    return format_code(period_prefix(prefix, today), seq)
