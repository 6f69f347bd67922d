"""
Timeline visibility.

A row is visible for a timeline window in one of two ways:

1. Interval rows (yearFrom/yearTo, with dateFrom/dateTo as per-side
   fallback): visible when the selected window overlaps the row's range.
   The day-of-year filter does not apply to these rows.
2. Point-in-time rows (year, else the year of the date column): visible when
   the year lies in the window and, with the day filter on, the day of year
   lies in [start_day, end_day]. start_day > end_day wraps across New Year.

The window itself comes from TimelineConfig; an unset start/end falls back
to the data domain (year_min/year_max), and an unset domain is unbounded.
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from csvmap.constants import DAY_MAX, DAY_MIN
from csvmap.models import RangeFields, Row, TimelineFields
from csvmap.normalize.date_utils import (
    day_of_year,
    parse_date_value,
    parse_int_prefix,
    parse_year_value,
)

logger = logging.getLogger(__name__)

DOMAIN_AUTO = 'auto'
DOMAIN_MANUAL = 'manual'


@dataclass(frozen=True)
class TimelineConfig:
    """Timeline filter settings, as driven by the UI controls."""
    enabled: bool = False
    year_min: Optional[int] = None
    year_max: Optional[int] = None
    start_year: Optional[int] = None
    end_year: Optional[int] = None
    day_filter_enabled: bool = False
    start_day: int = DAY_MIN
    end_day: int = DAY_MAX
    year_domain_mode: str = DOMAIN_AUTO

    @property
    def window(self) -> Tuple[Optional[int], Optional[int]]:
        """Effective (start, end) year bounds; None is unbounded."""
        start = self.start_year if self.start_year is not None else self.year_min
        end = self.end_year if self.end_year is not None else self.year_max
        return start, end


def try_get_year(row: Row, fields: Optional[TimelineFields]) -> Optional[int]:
    """
    Year of a row.

    Order:
    1) year column if detected
    2) year of the parsed date column
    """
    if not isinstance(row, dict) or fields is None:
        return None

    if fields.year_field:
        year = parse_year_value(row.get(fields.year_field))
        if year is not None:
            return year

    if fields.date_field:
        dt = parse_date_value(row.get(fields.date_field))
        if dt is not None:
            return dt.year

    return None


def try_parse_day_of_year(row: Row, fields: Optional[TimelineFields]) -> Optional[int]:
    """
    Day of year of a row (1..365).

    An explicit day-of-year column is authoritative: when it exists but holds
    an unusable value the date column is not consulted.
    """
    if not isinstance(row, dict) or fields is None:
        return None

    if fields.day_of_year_field:
        day = parse_int_prefix(row.get(fields.day_of_year_field))
        if day is not None and DAY_MIN <= day <= DAY_MAX:
            return day
        return None

    if fields.date_field:
        return day_of_year(parse_date_value(row.get(fields.date_field)))

    return None


def get_range_year(row: Row, year_field: Optional[str], date_field: Optional[str]) -> Optional[int]:
    """One side of an interval: year column first, then the date column."""
    if not isinstance(row, dict):
        return None

    if year_field:
        year = parse_year_value(row.get(year_field))
        if year is not None:
            return year

    if date_field:
        dt = parse_date_value(row.get(date_field))
        if dt is not None:
            return dt.year

    return None


def resolve_interval(row: Row, range_fields: Optional[RangeFields]) -> Optional[Tuple[int, int]]:
    """
    Resolve a row's (range_start, range_end), ordered.

    A single resolved side is used for both bounds. None when neither side
    resolves.
    """
    if range_fields is None:
        return None

    year_from = get_range_year(row, range_fields.year_from_field, range_fields.date_from_field)
    year_to = get_range_year(row, range_fields.year_to_field, range_fields.date_to_field)

    if year_from is None and year_to is None:
        return None

    start = year_from if year_from is not None else year_to
    end = year_to if year_to is not None else year_from
    return min(start, end), max(start, end)


def in_day_window(doy: int, start_day: int, end_day: int) -> bool:
    """
    Day-of-year window test with wraparound.

    Examples:
        >>> in_day_window(5, 350, 10)
        True
        >>> in_day_window(200, 350, 10)
        False
        >>> in_day_window(200, 100, 300)
        True
    """
    if start_day <= end_day:
        return start_day <= doy <= end_day
    return doy >= start_day or doy <= end_day


def is_row_visible(
    row: Row,
    fields: Optional[TimelineFields],
    range_fields: Optional[RangeFields],
    config: TimelineConfig
) -> bool:
    """
    Decide whether a row is visible for the timeline window.

    Args:
        row: CSV row
        fields: Point-in-time columns
        range_fields: Interval columns
        config: Timeline settings

    Returns:
        True if the row should be shown
    """
    start_year, end_year = config.window

    interval = resolve_interval(row, range_fields)
    if interval is not None:
        range_start, range_end = interval
        if end_year is not None and end_year < range_start:
            return False
        if start_year is not None and start_year > range_end:
            return False
        return True

    year = try_get_year(row, fields)
    if year is None:
        return False

    if start_year is not None and year < start_year:
        return False
    if end_year is not None and year > end_year:
        return False

    if config.day_filter_enabled:
        doy = try_parse_day_of_year(row, fields)
        if doy is None:
            return False
        if not in_day_window(doy, config.start_day, config.end_day):
            return False

    return True


def compute_year_domain(
    rows: Iterable[Row],
    fields: Optional[TimelineFields]
) -> Tuple[Optional[int], Optional[int]]:
    """Smallest and largest point-in-time year over the rows."""
    low = None
    high = None

    for row in rows or []:
        year = try_get_year(row, fields)
        if year is None:
            continue
        if low is None or year < low:
            low = year
        if high is None or year > high:
            high = year

    return low, high


def sync_year_domain(
    config: TimelineConfig,
    rows: Iterable[Row],
    fields: Optional[TimelineFields],
    clamp_window: bool = True
) -> TimelineConfig:
    """
    Refresh the data-derived year domain and keep the window inside it.

    Only applies when the timeline is enabled and the domain is in auto
    mode. An unset side of the window takes the domain bound.

    Args:
        config: Current timeline settings
        rows: Rows the domain is computed from
        fields: Point-in-time columns
        clamp_window: Clamp the selected window into the domain and re-order
            it (slider behavior). When False, explicitly set bounds are kept
            as given.

    Returns:
        Updated copy of config
    """
    if not config.enabled or config.year_domain_mode == DOMAIN_MANUAL:
        return config

    low, high = compute_year_domain(rows, fields)
    updated = dataclasses.replace(config, year_min=low, year_max=high)

    if low is None or high is None:
        return updated

    if not clamp_window:
        start = low if config.start_year is None else config.start_year
        end = high if config.end_year is None else config.end_year
        logger.debug(f"Year domain {low}..{high}, window {start}..{end}")
        return dataclasses.replace(updated, start_year=start, end_year=end)

    start = low if config.start_year is None else max(low, min(high, config.start_year))
    end = high if config.end_year is None else max(low, min(high, config.end_year))

    logger.debug(f"Year domain {low}..{high}, window {min(start, end)}..{max(start, end)}")
    return dataclasses.replace(updated, start_year=min(start, end), end_year=max(start, end))


def clamp_int(value, low: int, high: int) -> int:
    """Parse and clamp to [low, high]; unparseable values become low."""
    number = parse_int_prefix(value)
    if number is None:
        return low
    return max(low, min(high, number))


def with_day_range(config: TimelineConfig, start_day, end_day) -> TimelineConfig:
    """Copy of config with a clamped day-of-year window."""
    return dataclasses.replace(
        config,
        start_day=clamp_int(start_day, DAY_MIN, DAY_MAX),
        end_day=clamp_int(end_day, DAY_MIN, DAY_MAX),
    )


def with_manual_domain(config: TimelineConfig, min_draft, max_draft) -> TimelineConfig:
    """
    Switch to a user-entered year domain.

    Drafts are free text; unparseable drafts leave that bound unset. The
    selected window is reset to the new domain.
    """
    low = parse_year_value(min_draft)
    high = parse_year_value(max_draft)
    if low is not None and high is not None and low > high:
        low, high = high, low

    return dataclasses.replace(
        config,
        year_domain_mode=DOMAIN_MANUAL,
        year_min=low,
        year_max=high,
        start_year=low,
        end_year=high,
    )
