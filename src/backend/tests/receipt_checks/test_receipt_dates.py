from datetime import date, datetime

import pytest

from common.receipt_checks.dates import parse_smart_date


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("10-21-2025", date(2025, 10, 21)),
        ("21-10-2025", date(2025, 10, 21)),
        ("21/10/2025", date(2025, 10, 21)),
        ("21.10.2025", date(2025, 10, 21)),
        ("2025-10-21", date(2025, 10, 21)),
        ("10/21/2025", date(2025, 10, 21)),
        ("21-10-25", date(2025, 10, 21)),
        ("21/10/25", date(2025, 10, 21)),
    ],
)
def test_parse_smart_date_formats(raw, expected):
    assert parse_smart_date(raw) == expected


def test_month_first_wins_when_ambiguous():
    assert parse_smart_date("01-10-2025") == date(2025, 1, 10)


def test_iso_datetime_fallback():
    assert parse_smart_date("2025-01-10T08:15:00") == date(2025, 1, 10)


@pytest.mark.parametrize(
    "raw",
    [None, "", "   ", "yesterday", "1850-01-01T00:00:00", "01-10-0025", "0025-01-10", "10/01/1899"],
)
def test_unparseable_or_implausible_dates(raw):
    assert parse_smart_date(raw) is None


def test_date_and_datetime_pass_through():
    assert parse_smart_date(date(2025, 1, 10)) == date(2025, 1, 10)
    assert parse_smart_date(datetime(2025, 1, 10, 13, 0)) == date(2025, 1, 10)


def test_year_1900_is_accepted():
    assert parse_smart_date("01-01-1900") == date(1900, 1, 1)
    assert parse_smart_date("1900-01-01T00:00:00") == date(1900, 1, 1)
