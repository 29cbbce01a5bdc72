"""
Calendar policy: which days are open and which hourly slots exist on them.

Pure functions, no I/O. Existing reservations are not consulted here;
see ``availability`` for that.

Usage:
    generate_slots("2024-03-18")   # Monday -> ["09:00", ..., "17:00"]
    generate_slots("2024-03-17")   # Sunday -> []
"""

import re
from datetime import date as Date
from datetime import datetime
from typing import Optional, Union

# Day-of-week indices use a Sunday=0 convention.
BUSINESS_DAYS = frozenset({1, 2, 3, 4, 5, 6})
OPEN_HOUR = 9
CLOSE_HOUR = 18  # exclusive: last slot starts at 17:00
SLOT_MINUTES = 60

_DATE_FORMAT = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def is_valid_date_format(value: object) -> bool:
    """Syntactic ``DDDD-DD-DD`` check only.

    ``"2024-13-40"`` passes; whether it is a real date is decided later by
    ``parse_date``.
    """
    return isinstance(value, str) and _DATE_FORMAT.fullmatch(value) is not None


def parse_date(value: Union[str, Date]) -> Optional[Date]:
    """Return the calendar date, or None when the string is not a real date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, Date):
        return value
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        return None


def day_index(day: Date) -> int:
    """Day of week with Sunday=0 ... Saturday=6."""
    return day.isoweekday() % 7


def is_business_day(value: Union[str, Date]) -> bool:
    day = parse_date(value)
    return day is not None and day_index(day) in BUSINESS_DAYS


def generate_slots(value: Union[str, Date]) -> list[str]:
    """Every bookable ``HH:MM`` start time on the given date, ascending.

    Closed days and strings that do not name a real date yield ``[]``.
    """
    if not is_business_day(value):
        return []
    step = SLOT_MINUTES // 60
    return [f"{hour:02d}:00" for hour in range(OPEN_HOUR, CLOSE_HOUR, step)]
