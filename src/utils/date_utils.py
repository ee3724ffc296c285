"""
Date utility functions for query parameters and yearly timestamps.
All datetimes produced here are timezone-aware UTC.
"""

import re
from datetime import datetime
from typing import Optional

import pytz

DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def parse_query_date(value: str, end_of_day: bool = False) -> Optional[datetime]:
    """
    Parse a YYYY-MM-DD query value into a UTC datetime.

    Args:
        value: Raw query string value
        end_of_day: Return the last millisecond of the day instead of midnight

    Returns:
        Datetime at 00:00:00.000 UTC, or 23:59:59.999 UTC when end_of_day is set.
        None if the value is not in YYYY-MM-DD form or is not a real calendar date
        (e.g. 2021-02-30 or 2021-13-01).
    """
    if not DATE_PATTERN.fullmatch(value):
        return None

    year, month, day = (int(part) for part in value.split("-"))
    try:
        if end_of_day:
            return datetime(year, month, day, 23, 59, 59, 999000, tzinfo=pytz.UTC)
        return datetime(year, month, day, tzinfo=pytz.UTC)
    except ValueError:
        return None


def year_start(year: int) -> datetime:
    """
    Timestamp a yearly measurement is stored under (January 1st, UTC).

    Examples:
        - 1990 -> 1990-01-01T00:00:00+00:00
    """
    return datetime(year, 1, 1, tzinfo=pytz.UTC)
