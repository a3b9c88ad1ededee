from datetime import date, datetime, timedelta
from typing import Iterable, Optional

import pytz
from dateutil import parser

from config import APP_TIMEZONE
from exceptions import InvalidDate


def now_local() -> datetime:
    return datetime.now(pytz.timezone(APP_TIMEZONE))


def today_local() -> date:
    return now_local().date()


def parse_date_only(value) -> Optional[date]:
    """
    Normalize a date, datetime or date string to a calendar day.
    Returns None when the value cannot be interpreted as a date.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return parser.parse(str(value)).date()
    except (ValueError, OverflowError):
        return None


def validate_entry_date(value, start_date: date, label: str = "date") -> date:
    """
    Parse an entry date and reject unparseable, future and pre-start values.
    """
    entry_date = parse_date_only(value)
    if entry_date is None:
        raise InvalidDate(f"{label} is missing or not a valid date: {value!r}")
    if entry_date > today_local():
        raise InvalidDate(f"{label} cannot be in the future")
    if entry_date < start_date:
        raise InvalidDate(f"{label} cannot be before batch start date {start_date.isoformat()}")
    return entry_date


def age_in_days(start_date: date, on_date: date) -> int:
    return (on_date - start_date).days


def compute_next_required_date(start_date: date, record_dates: Iterable[date]) -> date:
    """
    Replay the recorded dates in order from the start date.

    A record on the expected date moves the cursor one day forward, records
    before the cursor are already satisfied, and the first record after the
    cursor marks a gap, so the cursor is returned as-is.
    """
    expected = start_date
    for record_date in sorted(d for d in record_dates if d is not None):
        if record_date < expected:
            continue
        if record_date == expected:
            expected = expected + timedelta(days=1)
            continue
        break
    return expected
