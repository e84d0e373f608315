from __future__ import annotations

from datetime import date, datetime

import pytest

from opsforge.domain.errors import ValidationError
from opsforge.domain.validation import parse_date, parse_flag


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-01-31", date(2024, 1, 31)),
        (" 2024-01-31 ", date(2024, 1, 31)),
        ("2024-01-31T09:30:00", date(2024, 1, 31)),
        (datetime(2024, 1, 31, 23, 59), date(2024, 1, 31)),
        (date(2024, 1, 31), date(2024, 1, 31)),
        ("", None),
        (None, None),
    ],
)
def test_parse_date_accepts_dates_and_iso_text(value, expected) -> None:
    assert parse_date(value, "start_date") == expected


@pytest.mark.parametrize("value", ["2024-01-31junk", "31/01/2024", "2024-02-30", "soon"])
def test_parse_date_rejects_unparsable_text(value) -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_date(value, "start_date")
    assert excinfo.value.field == "start_date"


@pytest.mark.parametrize(
    "value, expected",
    [(True, True), (False, False), ("false", False), ("No", False), ("0", False), (0, False),
     ("true", True), ("YES", True), (1, True), (None, True), ("", True)],
)
def test_parse_flag(value, expected) -> None:
    assert parse_flag(value, "is_active", default=True) is expected


@pytest.mark.parametrize("value", ["maybe", 2, 1.0, ["true"]])
def test_parse_flag_rejects_other_values(value) -> None:
    with pytest.raises(ValidationError):
        parse_flag(value, "is_active", default=True)
