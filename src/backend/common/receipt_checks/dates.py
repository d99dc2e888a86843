from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Union

# Operator-entered formats, tried in order (US month-first wins on ambiguity).
SMART_DATE_FORMATS: tuple[str, ...] = (
    "%m-%d-%Y",
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%d.%m.%Y",
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%d-%m-%y",
    "%d/%m/%y",
)

MIN_YEAR = 1900


def parse_smart_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse a date typed by an operator; returns None when nothing fits."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None

    for fmt in SMART_DATE_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        if parsed.year >= MIN_YEAR:
            return parsed.date()

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.year < MIN_YEAR:
        return None
    return parsed.date()
