#!/usr/bin/env python3
"""
Export derived features to GeoJSON.

Transformations:
1. Points -> Point features ([lon, lat] order)
2. Region parts -> one Polygon / MultiPolygon feature per featureId
3. Row values kept as properties; derivation metadata under "_"-prefixed keys
4. Leaflet style of the first part kept as "style"
5. Polygon validity checked with shapely (self-intersections are flagged,
   not repaired)
"""

import json
import logging
from collections import OrderedDict
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List

import geojson
from shapely.geometry import MultiPolygon, Polygon, mapping
from shapely.validation import explain_validity

from csvmap.models import DerivedLayer, PointFeature, RegionFeature

logger = logging.getLogger(__name__)


def point_to_feature(point: PointFeature) -> geojson.Feature:
    """
    Transform a point to a GeoJSON feature.

    Args:
        point: Derived point

    Returns:
        GeoJSON Point feature carrying the source row as properties
    """
    props = dict(point.source_row)
    props['_id'] = point.id
    props['_kind'] = 'point'

    return geojson.Feature(
        id=point.id,
        geometry=geojson.Point((point.lon, point.lat)),
        properties=props
    )


def part_to_polygon(part: RegionFeature) -> Polygon:
    """Shapely polygon of one part (lon/lat axis order)."""
    return Polygon([(lon, lat) for lat, lon in part.coordinates])


def regions_to_features(polygons: List[RegionFeature]) -> List[geojson.Feature]:
    """
    Merge region parts into one feature per featureId.

    A single part becomes a Polygon; several parts become a MultiPolygon in
    part order.
    """
    grouped: Dict[str, List[RegionFeature]] = OrderedDict()
    for part in polygons:
        grouped.setdefault(part.feature_id, []).append(part)

    features = []
    for feature_id, parts in grouped.items():
        shapes = [part_to_polygon(p) for p in parts]
        geometry = shapes[0] if len(shapes) == 1 else MultiPolygon(shapes)

        invalid = [
            f"{p.part}: {explain_validity(s)}"
            for p, s in zip(parts, shapes)
            if not s.is_valid
        ]
        if invalid:
            logger.warning(f"Region {feature_id} has invalid parts: {'; '.join(invalid)}")

        props = dict(parts[0].source_row or {})
        props['_id'] = feature_id
        props['_kind'] = 'region'
        props['_parts'] = [p.part for p in parts]
        props['_valid'] = not invalid
        props['style'] = parts[0].style.to_dict()

        features.append(geojson.Feature(
            id=feature_id,
            geometry=mapping(geometry),
            properties=props
        ))

    return features


def build_feature_collection(layer: DerivedLayer) -> geojson.FeatureCollection:
    """Points first (row order), then regions (first-seen order)."""
    features = [point_to_feature(p) for p in layer.points.points]
    features.extend(regions_to_features(layer.regions.polygons))
    return geojson.FeatureCollection(features)


def print_statistics(layer: DerivedLayer) -> None:
    """Print a summary of what was derived and skipped."""
    roles = layer.roles

    print("\n" + "=" * 60)
    print(f"EXPORT STATISTICS: {layer.name}")
    print("=" * 60)

    print("\nDetected fields:")
    for role, column in roles.to_dict().items():
        print(f"  {role:20s}: {column if column else '-'}")

    points = layer.points
    regions = layer.regions
    print(f"\nPoints:  {len(points.points):6d}")
    print(f"  Skipped (invalid coordinates): {points.skipped_invalid_coord}")
    print(f"  Skipped (timeline):            {points.skipped_by_timeline}")
    if points.reason:
        print(f"  Note: {points.reason}")

    region_ids = {p.feature_id for p in regions.polygons}
    print(f"\nRegions: {len(region_ids):6d} ({len(regions.polygons)} parts)")
    print(f"  Skipped (invalid rows):        {regions.skipped_invalid}")
    print(f"  Skipped (timeline):            {regions.skipped_by_timeline}")

    if layer.timeline is not None and layer.timeline.enabled:
        start, end = layer.timeline.window
        print(f"\nTimeline window: {start if start is not None else '-inf'} - "
              f"{end if end is not None else 'inf'}")
        if layer.timeline.day_filter_enabled:
            print(f"  Days: {layer.timeline.start_day} - {layer.timeline.end_day}")

    if layer.parse_errors:
        print(f"\nWarnings ({len(layer.parse_errors)}):")
        for message in layer.parse_errors[:10]:
            print(f"  - {message}")
        if len(layer.parse_errors) > 10:
            print(f"  ... and {len(layer.parse_errors) - 10} more")

    print("=" * 60)


def export_geojson(layer: DerivedLayer, output_path: Path, stats: bool = True) -> bool:
    """
    Write a derived layer as a GeoJSON FeatureCollection.

    Args:
        layer: Derived features of one file
        output_path: Path to write GeoJSON
        stats: Print statistics

    Returns:
        True if successful
    """
    collection = build_feature_collection(layer)

    if stats:
        print_statistics(layer)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Writing {len(collection['features'])} features to {output_path}")
    try:
        with open(output_path, 'w', encoding='utf-8') as f:
            geojson.dump(collection, f)
    except OSError as e:
        logger.error(f"Could not write {output_path}: {e}")
        return False

    metadata = {
        'exported_at': datetime.now(timezone.utc).isoformat(),
        'source_file': layer.name,
        'feature_count': len(collection['features']),
        'point_count': len(layer.points.points),
        'region_part_count': len(layer.regions.polygons),
        'skipped': {
            'invalid_coord': layer.points.skipped_invalid_coord,
            'invalid_region_rows': layer.regions.skipped_invalid,
            'timeline': layer.points.skipped_by_timeline + layer.regions.skipped_by_timeline,
        },
        'fields': layer.roles.to_dict(),
        'warnings': layer.parse_errors,
    }

    metadata_path = output_path.with_suffix('.meta.json')
    try:
        with open(metadata_path, 'w', encoding='utf-8') as f:
            json.dump(metadata, f, indent=2)
    except OSError as e:
        logger.error(f"Could not write {metadata_path}: {e}")
        return False

    logger.info(f"Metadata: {metadata_path}")
    return True
