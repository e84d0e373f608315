from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RecurrenceFilters:
    client_id: int | None = None
    section: str | None = None
    active_only: bool = False
