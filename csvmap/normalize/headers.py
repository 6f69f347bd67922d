"""
Header role detection.

Scores column headers against synonym lists to guess which columns hold
coordinates, point-in-time values, interval bounds, the feature type and the
region attributes. Everything here is a pure function of the header list.

Scoring: exact normalized match 100, substring containment 50, otherwise 0.
The highest positive score wins; ties keep the first header. Interval,
feature-type and region columns use exact matching only.
"""

import re
from typing import Callable, Iterable, List, Optional, Tuple

from csvmap.constants import (
    DATE_SYNONYMS,
    DOY_SYNONYMS,
    LAT_SYNONYMS,
    LON_SYNONYMS,
    SCORE_CONTAINS,
    SCORE_EXACT,
    YEAR_SYNONYMS,
)
from csvmap.models import HeaderRoles, RangeFields, RegionFields, TimelineFields


def normalize_key(header: Optional[str]) -> str:
    """
    Normalize a header for matching.

    Examples:
        >>> normalize_key(" Latitude_2 ")
        'latitude'
        >>> normalize_key("Feature-Type")
        'featuretype'
        >>> normalize_key("date_from")
        'datefrom'
    """
    key = str(header if header is not None else '').strip().lower()
    key = re.sub(r'_\d+$', '', key)
    return re.sub(r'[\s_\-]+', '', key)


def normalize_timeline_key(header: Optional[str]) -> str:
    """
    Normalize a header for timeline matching.

    Like normalize_key, but any trailing digits are dropped too, so a
    numbered column such as "year2" matches "year" exactly.

    Examples:
        >>> normalize_timeline_key("Year2")
        'year'
        >>> normalize_timeline_key("date_from_1")
        'datefrom'
    """
    key = str(header if header is not None else '').strip().lower()
    key = re.sub(r'[\s_\-]+', '', key)
    return re.sub(r'\d+$', '', key)


def score_header(normalized: str, synonyms: Iterable[str]) -> int:
    """Score one normalized header against a synonym list."""
    synonyms = list(synonyms)
    if normalized in synonyms:
        return SCORE_EXACT
    for synonym in synonyms:
        if synonym in normalized:
            return SCORE_CONTAINS
    return 0


def rank_headers(
    headers: List[str],
    synonyms: Iterable[str],
    normalize: Callable[[Optional[str]], str] = normalize_key
) -> List[Tuple[str, int]]:
    """
    Rank headers by score, best first.

    Headers scoring zero are left out; equal scores keep header order.
    """
    synonyms = list(synonyms)
    scored = [(h, score_header(normalize(h), synonyms)) for h in headers or []]
    return sorted((item for item in scored if item[1] > 0), key=lambda item: -item[1])


def pick_best(
    headers: List[str],
    synonyms: Iterable[str],
    normalize: Callable[[Optional[str]], str] = normalize_key
) -> Optional[str]:
    """Best scoring header, or None when nothing matches."""
    ranked = rank_headers(headers, synonyms, normalize)
    return ranked[0][0] if ranked else None


def find_exact_key(
    headers: List[str],
    normalized_key: str,
    normalize: Callable[[Optional[str]], str] = normalize_key
) -> Optional[str]:
    """First header whose normalized form equals normalized_key."""
    for header in headers or []:
        if normalize(header) == normalized_key:
            return header
    return None


def auto_detect_lat_lon(headers: List[str]) -> Tuple[Optional[str], Optional[str]]:
    """Detect (lat_field, lon_field)."""
    if not headers:
        return None, None
    return pick_best(headers, LAT_SYNONYMS), pick_best(headers, LON_SYNONYMS)


def auto_detect_timeline_fields(headers: List[str]) -> TimelineFields:
    """Detect the year, date and day-of-year columns."""
    if not headers:
        return TimelineFields()
    return TimelineFields(
        year_field=pick_best(headers, YEAR_SYNONYMS, normalize_timeline_key),
        date_field=pick_best(headers, DATE_SYNONYMS, normalize_timeline_key),
        day_of_year_field=pick_best(headers, DOY_SYNONYMS, normalize_timeline_key),
    )


def auto_detect_range_fields(headers: List[str]) -> RangeFields:
    """Detect interval columns (yearFrom/yearTo/dateFrom/dateTo), exact names only."""
    if not headers:
        return RangeFields()
    return RangeFields(
        year_from_field=find_exact_key(headers, 'yearfrom', normalize_timeline_key),
        year_to_field=find_exact_key(headers, 'yearto', normalize_timeline_key),
        date_from_field=find_exact_key(headers, 'datefrom', normalize_timeline_key),
        date_to_field=find_exact_key(headers, 'dateto', normalize_timeline_key),
    )


def detect_feature_type_field(headers: List[str]) -> Optional[str]:
    """The featureType column, if any."""
    return find_exact_key(headers, 'featuretype')


def detect_region_fields(headers: List[str]) -> RegionFields:
    """
    Resolve region attribute columns.

    "Feature ID", "feature_id" and "featureId" all resolve to the same role.
    When no header matches, the literal default name is kept so lookups
    simply find nothing.
    """
    defaults = RegionFields()
    resolved = {}
    for role in ('feature_id', 'part', 'order', 'color', 'weight',
                 'opacity', 'fill_color', 'fill_opacity'):
        default_name = getattr(defaults, role)
        resolved[role] = find_exact_key(headers, normalize_key(default_name)) or default_name
    return RegionFields(**resolved)


def detect_header_roles(
    headers: List[str],
    lat_field: Optional[str] = None,
    lon_field: Optional[str] = None
) -> HeaderRoles:
    """
    Detect all column roles for a header list.

    Args:
        headers: Table headers
        lat_field: Explicit latitude column (overrides detection)
        lon_field: Explicit longitude column (overrides detection)

    Returns:
        HeaderRoles with None for every role that could not be found
    """
    detected_lat, detected_lon = auto_detect_lat_lon(headers)
    timeline = auto_detect_timeline_fields(headers)
    ranges = auto_detect_range_fields(headers)

    return HeaderRoles(
        lat_field=lat_field or detected_lat,
        lon_field=lon_field or detected_lon,
        feature_type_field=detect_feature_type_field(headers),
        year_field=timeline.year_field,
        date_field=timeline.date_field,
        day_of_year_field=timeline.day_of_year_field,
        year_from_field=ranges.year_from_field,
        year_to_field=ranges.year_to_field,
        date_from_field=ranges.date_from_field,
        date_to_field=ranges.date_to_field,
    )
