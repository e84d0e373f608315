from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from .errors import ValidationError


def require_text(data: dict, field: str) -> str:
    value = str(data.get(field) or "").strip()
    if not value:
        raise ValidationError(f"Missing required field: {field}", field=field)
    return value


def parse_date(value: object, field: str) -> date | None:
    """Accept a date, a datetime or an ISO date/datetime string; empty means None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value).strip()).date()
    except ValueError:
        raise ValidationError(f"Invalid date for {field}: {value!r}", field=field) from None


_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "0", "no", "off"})


def parse_flag(value: object, field: str, default: bool) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise ValidationError(f"Invalid boolean for {field}: {value!r}", field=field)


def parse_amount(value: object) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value).replace(",", "."))
    except InvalidOperation:
        raise ValidationError(f"Invalid amount: {value!r}", field="amount") from None


def parse_optional_id(value: object, field: str) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"Invalid id for {field}: {value!r}", field=field)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid id for {field}: {value!r}", field=field) from None
