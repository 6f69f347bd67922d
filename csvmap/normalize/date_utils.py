#!/usr/bin/env python3
"""
Shared year/date parsing utilities for timeline columns.

Every function here is total: bad input yields None, never an exception.

Handles various formats:
- Integer years: 1950, "1950", "1950.0"
- Years inside text: "c. 1950", "1950-01-01" (first 3-4 digit run)
- Negative years: "-500"
- Dates: anything python-dateutil understands that names a year, then
  "YYYY-MM-DD" / "YYYY/MM/DD"
- Epoch numbers: milliseconds (> 1e12) or seconds (> 1e9)

Dates are always returned as timezone-aware UTC datetimes.
"""

import math
import re
import warnings
from datetime import date, datetime, timezone
from typing import Any, Optional

from dateutil import parser as date_parser
from dateutil.parser import UnknownTimezoneWarning

from csvmap.constants import (
    DAY_MAX,
    DAY_MIN,
    EPOCH_MS_THRESHOLD,
    EPOCH_S_THRESHOLD,
    YEAR_MAX,
    YEAR_MIN,
)

# Month and day missing from a date string default to January 1st.
# Two default years reveal strings that carry no year at all.
_DATE_DEFAULT = datetime(1970, 1, 1)
_DATE_DEFAULT_ALT = datetime(1972, 1, 1)

_YEAR_RUN = re.compile(r'-?\d{3,4}')
_YMD = re.compile(r'^(-?\d{3,4})[/\-](\d{1,2})[/\-](\d{1,2})')
_INT_PREFIX = re.compile(r'^[+-]?\d+')


def is_reasonable_year(year: int, min_year: int = YEAR_MIN, max_year: int = YEAR_MAX) -> bool:
    """
    Check if year is within the accepted historical/future range.

    Examples:
        >>> is_reasonable_year(1880)
        True
        >>> is_reasonable_year(-2500)
        False
        >>> is_reasonable_year(3001)
        False
    """
    return min_year <= year <= max_year


def parse_year_value(value: Any) -> Optional[int]:
    """
    Parse a year from a cell value.

    Args:
        value: Number or string

    Returns:
        Integer year if parseable and reasonable, None otherwise

    Examples:
        >>> parse_year_value(1950)
        1950
        >>> parse_year_value(1950.7)
        1950
        >>> parse_year_value("2020-01-01")
        2020
        >>> parse_year_value("ca -500")
        -500
        >>> parse_year_value("n/a") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        year = int(value)
        return year if is_reasonable_year(year) else None

    text = str(value).strip()
    if not text:
        return None

    match = _YEAR_RUN.search(text)
    if not match:
        return None

    year = int(match.group(0))
    return year if is_reasonable_year(year) else None


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _parse_with_year(text: str) -> Optional[datetime]:
    """
    Parse with dateutil, rejecting strings without a year ("March", "5").

    Raises:
        ValueError: dateutil could not parse the text
    """
    with warnings.catch_warnings():
        # Unknown zone names such as "T" are dropped, not reported
        warnings.simplefilter('ignore', UnknownTimezoneWarning)
        parsed = date_parser.parse(text, default=_DATE_DEFAULT)
        check = date_parser.parse(text, default=_DATE_DEFAULT_ALT)

    if parsed.year != check.year:
        return None
    return _as_utc(parsed)


def parse_date_value(value: Any) -> Optional[datetime]:
    """
    Parse a date from a cell value.

    Args:
        value: datetime/date, epoch number, or string

    Returns:
        UTC datetime, or None if the value is not a usable date

    Examples:
        >>> parse_date_value("2021-03-04").day
        4
        >>> parse_date_value(1600000000).year
        2020
        >>> parse_date_value("someday") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return _as_utc(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None

        if value > EPOCH_MS_THRESHOLD:
            ms = value
        elif value > EPOCH_S_THRESHOLD:
            ms = value * 1000
        else:
            ms = None

        if ms is not None:
            try:
                return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                return None

        if isinstance(value, float) and value.is_integer():
            value = int(value)

    text = str(value).strip()
    if not text:
        return None

    try:
        return _parse_with_year(text)
    except (ValueError, OverflowError, TypeError):
        pass

    match = _YMD.match(text)
    if match:
        year, month, day = (int(g) for g in match.groups())
        try:
            return datetime(year, month, day, tzinfo=timezone.utc)
        except ValueError:
            return None

    return None


def day_of_year(dt: Optional[datetime]) -> Optional[int]:
    """
    Day of year (UTC) of a parsed date, limited to 1..365.

    Leap day 366 is reported as None rather than clamped.

    Examples:
        >>> day_of_year(datetime(2021, 2, 1, tzinfo=timezone.utc))
        32
        >>> day_of_year(datetime(2020, 12, 31, tzinfo=timezone.utc)) is None
        True
    """
    if dt is None:
        return None

    day = _as_utc(dt).timetuple().tm_yday
    if DAY_MIN <= day <= DAY_MAX:
        return day
    return None


def parse_int_prefix(value: Any) -> Optional[int]:
    """Leading integer of a cell ("12", "12abc" -> 12), or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else None

    match = _INT_PREFIX.match(str(value).strip())
    return int(match.group(0)) if match else None
