"""
Point derivation.

One PointFeature per usable row. Rows typed as another geometry (e.g.
"region") are not points and are left out without being counted.
"""

import logging
from typing import List, Optional

from csvmap.constants import FEATURE_TYPE_POINT, MISSING_MAPPING_REASON
from csvmap.derive.feature_types import get_row_feature_type
from csvmap.models import PointDerivation, PointFeature, RangeFields, Row, TimelineFields
from csvmap.normalize.geo_columns import is_valid_lat, is_valid_lon, parse_flexible_float
from csvmap.timeline import TimelineConfig, is_row_visible

logger = logging.getLogger(__name__)


def derive_points(
    rows: List[Row],
    lat_field: Optional[str],
    lon_field: Optional[str],
    feature_type_field: Optional[str] = None,
    timeline: Optional[TimelineConfig] = None,
    fields: Optional[TimelineFields] = None,
    range_fields: Optional[RangeFields] = None
) -> PointDerivation:
    """
    Derive point features from CSV rows.

    Args:
        rows: Parsed rows
        lat_field: Latitude column
        lon_field: Longitude column
        feature_type_field: Optional featureType column
        timeline: Timeline settings (filtering only when enabled)
        fields: Point-in-time columns for the timeline filter
        range_fields: Interval columns for the timeline filter

    Returns:
        PointDerivation with points and skip counters. Point ids are row
        indices, stable for one pass over one loaded file.
    """
    result = PointDerivation()

    if not isinstance(rows, list) or not lat_field or not lon_field:
        result.reason = MISSING_MAPPING_REASON
        return result

    timeline_enabled = timeline is not None and timeline.enabled

    for i, row in enumerate(rows):
        if feature_type_field:
            feature_type = get_row_feature_type(row, feature_type_field)
            if feature_type is not None and feature_type != FEATURE_TYPE_POINT:
                continue

        lat = parse_flexible_float(row.get(lat_field))
        lon = parse_flexible_float(row.get(lon_field))

        if not is_valid_lat(lat) or not is_valid_lon(lon):
            result.skipped_invalid_coord += 1
            continue

        if timeline_enabled and not is_row_visible(row, fields, range_fields, timeline):
            result.skipped_by_timeline += 1
            continue

        result.points.append(PointFeature(id=str(i), lat=lat, lon=lon, source_row=row))

    logger.debug(
        f"Derived {len(result.points)} points "
        f"(invalid: {result.skipped_invalid_coord}, timeline: {result.skipped_by_timeline})"
    )
    return result
