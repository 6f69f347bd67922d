"""
Region (polygon) assembly.

Rows typed "region" are vertices. They are grouped by featureId, then by
part, in one pass over the file; a second pass turns every part with at
least three vertices into a closed ring with a resolved style.

Vertex order within a part: the numeric `order` column when it parses,
otherwise the row index. The sort is stable, so equal keys keep file order.

Style: for each property the first non-empty value in vertex order wins;
numeric properties skip text that does not parse. If only one of
color/fillColor is given the other inherits it.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from csvmap.constants import (
    DEFAULT_PART,
    DEFAULT_STYLE,
    FEATURE_TYPE_REGION,
    MIN_RING_VERTICES,
    MISSING_MAPPING_REASON,
)
from csvmap.derive.feature_types import get_row_feature_type
from csvmap.models import (
    RangeFields,
    RegionDerivation,
    RegionFeature,
    RegionFields,
    ResolvedStyle,
    Row,
    TimelineFields,
)
from csvmap.normalize.geo_columns import (
    is_valid_lat,
    is_valid_lon,
    parse_flexible_float,
    parse_number,
)
from csvmap.timeline import TimelineConfig, is_row_visible

logger = logging.getLogger(__name__)


@dataclass
class Vertex:
    row: Row
    lat: float
    lon: float
    order_value: Optional[float]
    index: int

    @property
    def order_key(self) -> float:
        return self.order_value if self.order_value is not None else self.index


@dataclass
class RegionGroup:
    """All parts of one featureId."""
    first_part: str
    parts: Dict[str, List[Vertex]] = field(default_factory=OrderedDict)
    popup_row: Optional[Row] = None


def _cell(row: Row, column: str) -> str:
    return str(row.get(column) or '').strip()


def is_ring_closed(coordinates: List) -> bool:
    """First and last coordinate are identical (an empty ring counts as closed)."""
    if not coordinates:
        return True
    first = coordinates[0]
    last = coordinates[-1]
    return first[0] == last[0] and first[1] == last[1]


def close_ring(coordinates: List) -> List:
    """Copy of the ring with the first vertex appended when it is open."""
    ring = list(coordinates)
    if not is_ring_closed(ring):
        ring.append(ring[0])
    return ring


def resolve_style(vertices: List[Vertex], region_fields: RegionFields) -> ResolvedStyle:
    """
    Resolve the style of one part from its (sorted) vertices.

    Args:
        vertices: Part vertices in ring order
        region_fields: Style column names

    Returns:
        ResolvedStyle with defaults for anything never supplied
    """
    columns = {
        'color': (region_fields.color, None),
        'weight': (region_fields.weight, parse_number),
        'opacity': (region_fields.opacity, parse_number),
        'fillColor': (region_fields.fill_color, None),
        'fillOpacity': (region_fields.fill_opacity, parse_number),
    }
    explicit: Dict[str, Any] = {}

    for vertex in vertices:
        for key, (column, parser) in columns.items():
            if key in explicit:
                continue
            raw = _cell(vertex.row, column)
            if not raw:
                continue
            value = parser(raw) if parser else raw
            if value is None:
                continue
            explicit[key] = value

    resolved = dict(DEFAULT_STYLE)
    resolved.update(explicit)

    # Cross-fill when only one color is given
    if 'fillColor' not in explicit and 'color' in explicit:
        resolved['fillColor'] = resolved['color']
    if 'color' not in explicit and 'fillColor' in explicit:
        resolved['color'] = resolved['fillColor']

    return ResolvedStyle(
        color=resolved['color'],
        weight=resolved['weight'],
        opacity=resolved['opacity'],
        fill_color=resolved['fillColor'],
        fill_opacity=resolved['fillOpacity'],
    )


def derive_regions(
    rows: List[Row],
    lat_field: Optional[str],
    lon_field: Optional[str],
    feature_type_field: Optional[str] = None,
    timeline: Optional[TimelineConfig] = None,
    fields: Optional[TimelineFields] = None,
    range_fields: Optional[RangeFields] = None,
    region_fields: Optional[RegionFields] = None
) -> RegionDerivation:
    """
    Derive region polygons from CSV rows.

    Args:
        rows: Parsed rows
        lat_field: Latitude column
        lon_field: Longitude column
        feature_type_field: featureType column; without it there are no regions
        timeline: Timeline settings (filtering only when enabled)
        fields: Point-in-time columns for the timeline filter
        range_fields: Interval columns for the timeline filter
        region_fields: featureId/part/order/style columns

    Returns:
        RegionDerivation with one RegionFeature per kept part
    """
    result = RegionDerivation()

    if not isinstance(rows, list) or not lat_field or not lon_field:
        result.reason = MISSING_MAPPING_REASON
        return result

    if not feature_type_field:
        return result

    region_fields = region_fields or RegionFields()
    timeline_enabled = timeline is not None and timeline.enabled
    groups: Dict[str, RegionGroup] = OrderedDict()

    for i, row in enumerate(rows):
        if get_row_feature_type(row, feature_type_field) != FEATURE_TYPE_REGION:
            continue

        if timeline_enabled and not is_row_visible(row, fields, range_fields, timeline):
            result.skipped_by_timeline += 1
            continue

        feature_id = _cell(row, region_fields.feature_id)
        if not feature_id:
            result.skipped_invalid += 1
            continue

        part = _cell(row, region_fields.part) or DEFAULT_PART

        lat = parse_flexible_float(row.get(lat_field))
        lon = parse_flexible_float(row.get(lon_field))
        if not is_valid_lat(lat) or not is_valid_lon(lon):
            result.skipped_invalid += 1
            continue

        group = groups.get(feature_id)
        if group is None:
            group = RegionGroup(first_part=part)
            groups[feature_id] = group

        if group.popup_row is None and group.first_part == part:
            group.popup_row = row

        group.parts.setdefault(part, []).append(Vertex(
            row=row,
            lat=lat,
            lon=lon,
            order_value=parse_number(_cell(row, region_fields.order)),
            index=i,
        ))

    for feature_id, group in groups.items():
        for part, vertices in group.parts.items():
            ordered = sorted(vertices, key=lambda v: v.order_key)
            if len(ordered) < MIN_RING_VERTICES:
                logger.debug(f"Dropping {feature_id}:{part} ({len(ordered)} vertices)")
                continue

            coordinates = close_ring([(v.lat, v.lon) for v in ordered])

            result.polygons.append(RegionFeature(
                id=f"{feature_id}:{part}",
                feature_id=feature_id,
                part=part,
                coordinates=coordinates,
                style=resolve_style(ordered, region_fields),
                source_row=group.popup_row if group.popup_row is not None else ordered[0].row,
            ))

    logger.debug(
        f"Derived {len(result.polygons)} polygons from {len(groups)} regions "
        f"(invalid: {result.skipped_invalid}, timeline: {result.skipped_by_timeline})"
    )
    return result
