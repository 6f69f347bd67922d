"""
Coordinate parsing and validation.

Handles the number formats seen in hand-made CSV files:
- Plain numbers: 59.3293
- Decimal comma: "59,3293"
- Grouped digits: "1 234,56"
- Trailing junk after the number: "59.33N" (leading number is used)
"""

import math
import re
from typing import Any, Optional

_FLOAT_PREFIX = re.compile(r'^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')


def _leading_float(text: str) -> Optional[float]:
    match = _FLOAT_PREFIX.match(text)
    if not match:
        return None
    try:
        return float(match.group(0))
    except (ValueError, OverflowError):
        return None


def parse_flexible_float(value: Any) -> float:
    """
    Parse a coordinate value.

    Args:
        value: Number or string from a CSV cell

    Returns:
        Finite float, or NaN when the value cannot be parsed

    Examples:
        >>> parse_flexible_float("59,3293")
        59.3293
        >>> parse_flexible_float(" 18.0686 ")
        18.0686
        >>> math.isnan(parse_flexible_float("north"))
        True
    """
    if value is None or isinstance(value, bool):
        return math.nan

    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else math.nan

    text = str(value).strip()
    if not text:
        return math.nan

    normalized = re.sub(r'\s+', '', text).replace(',', '.')
    number = _leading_float(normalized)
    if number is None or not math.isfinite(number):
        return math.nan
    return number


def parse_number(value: Any) -> Optional[float]:
    """Parse the leading number of a cell (no decimal-comma handling)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None

    number = _leading_float(str(value).strip())
    if number is None or not math.isfinite(number):
        return None
    return number


def is_valid_lat(lat: float) -> bool:
    """Latitude is finite and within [-90, 90]."""
    return isinstance(lat, (int, float)) and math.isfinite(lat) and -90 <= lat <= 90


def is_valid_lon(lon: float) -> bool:
    """Longitude is finite and within [-180, 180]."""
    return isinstance(lon, (int, float)) and math.isfinite(lon) and -180 <= lon <= 180
