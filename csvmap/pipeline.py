#!/usr/bin/env python3
"""
Main pipeline orchestrator.

Runs the full derivation for one CSV file:
1. Load - read a local file or URL and parse it tolerantly
2. Detect - guess coordinate, time, interval and feature-type columns
3. Derive - points and regions, filtered by the timeline window
4. Export - GeoJSON FeatureCollection plus a .meta.json summary

Usage:
    csvmap events.csv -o events.geojson --start-year 1900 --end-year 1950
    csvmap https://example.org/data.csv --config map.yaml --no-stats
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import List, Optional

from csvmap.config import ConfigError, PipelineConfig, load_config
from csvmap.derive.points import derive_points
from csvmap.derive.regions import derive_regions
from csvmap.export.export_geojson import export_geojson, print_statistics
from csvmap.ingest.files import CsvFileCollection
from csvmap.models import CsvFile, DerivedLayer
from csvmap.normalize.headers import detect_header_roles, detect_region_fields
from csvmap.timeline import TimelineConfig, sync_year_domain, with_day_range

logger = logging.getLogger(__name__)


def derive_layer(csv_file: CsvFile, timeline: Optional[TimelineConfig] = None) -> DerivedLayer:
    """
    Derive all features of one loaded file.

    Pure function of the file, its lat/lon mapping and the timeline settings;
    call it again whenever any of them change.

    Args:
        csv_file: Loaded file (its lat/lon mapping overrides detection)
        timeline: Timeline settings; the year domain is refreshed from the data
            and fills unset window bounds

    Returns:
        DerivedLayer with detected roles, points and regions
    """
    headers = csv_file.headers
    roles = detect_header_roles(headers, csv_file.lat_field, csv_file.lon_field)
    # Explicit start/end years are kept even when they lie outside the data
    timeline = sync_year_domain(
        timeline or TimelineConfig(),
        csv_file.rows,
        roles.timeline_fields,
        clamp_window=False,
    )

    points = derive_points(
        csv_file.rows,
        roles.lat_field,
        roles.lon_field,
        feature_type_field=roles.feature_type_field,
        timeline=timeline,
        fields=roles.timeline_fields,
        range_fields=roles.range_fields,
    )
    regions = derive_regions(
        csv_file.rows,
        roles.lat_field,
        roles.lon_field,
        feature_type_field=roles.feature_type_field,
        timeline=timeline,
        fields=roles.timeline_fields,
        range_fields=roles.range_fields,
        region_fields=detect_region_fields(headers),
    )

    return DerivedLayer(
        name=csv_file.name,
        roles=roles,
        points=points,
        regions=regions,
        timeline=timeline,
        parse_errors=list(csv_file.parse_errors),
    )


def is_url(location: str) -> bool:
    return str(location).lower().startswith(('http://', 'https://'))


def run(
    location: str,
    output_path: Optional[Path],
    config: Optional[PipelineConfig] = None,
    stats: bool = True
) -> bool:
    """
    Run the pipeline for one file or URL.

    Args:
        location: Local path or http(s) URL
        output_path: GeoJSON output (None = statistics only)
        config: Field overrides, timeline settings and limits
        stats: Print statistics

    Returns:
        True if successful
    """
    config = config or PipelineConfig()
    collection = CsvFileCollection(max_files=config.max_files)

    if is_url(location):
        csv_file = collection.import_url(location)
    else:
        added = collection.import_files([location])
        csv_file = added[0] if added else None

    if csv_file is None:
        logger.error(f"Nothing loaded from {location}")
        return False

    if config.lat_field or config.lon_field:
        csv_file = collection.update_file_mapping(
            csv_file.id,
            lat_field=config.lat_field,
            lon_field=config.lon_field,
        )

    layer = derive_layer(csv_file, config.timeline)

    if layer.points.reason:
        logger.warning(layer.points.reason)

    if output_path is None:
        if stats:
            print_statistics(layer)
        return True

    return export_geojson(layer, output_path, stats=stats)


def apply_overrides(config: PipelineConfig, args: argparse.Namespace) -> PipelineConfig:
    """Apply command-line flags on top of the file configuration."""
    timeline = config.timeline
    changes = {}

    if args.timeline:
        changes['enabled'] = True
    if args.start_year is not None:
        changes.update(enabled=True, start_year=args.start_year)
    if args.end_year is not None:
        changes.update(enabled=True, end_year=args.end_year)
    if changes:
        timeline = dataclasses.replace(timeline, **changes)

    if args.start_day is not None or args.end_day is not None:
        timeline = dataclasses.replace(timeline, enabled=True, day_filter_enabled=True)
        timeline = with_day_range(
            timeline,
            args.start_day if args.start_day is not None else timeline.start_day,
            args.end_day if args.end_day is not None else timeline.end_day,
        )

    return dataclasses.replace(
        config,
        lat_field=args.lat_field or config.lat_field,
        lon_field=args.lon_field or config.lon_field,
        timeline=timeline,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Derive map points and regions from a CSV file'
    )
    parser.add_argument(
        'input',
        help='CSV file path or http(s) URL'
    )
    parser.add_argument(
        '--output', '-o',
        type=Path,
        default=None,
        help='Path to write GeoJSON (default: print statistics only)'
    )
    parser.add_argument(
        '--config', '-c',
        type=Path,
        default=None,
        help='YAML configuration file'
    )
    parser.add_argument('--lat-field', help='Latitude column (overrides detection)')
    parser.add_argument('--lon-field', help='Longitude column (overrides detection)')
    parser.add_argument(
        '--timeline',
        action='store_true',
        help='Enable timeline filtering over the full data range'
    )
    parser.add_argument('--start-year', type=int, help='First visible year')
    parser.add_argument('--end-year', type=int, help='Last visible year')
    parser.add_argument('--start-day', type=int, help='First visible day of year (1-365)')
    parser.add_argument('--end-day', type=int, help='Last visible day of year (1-365)')
    parser.add_argument(
        '--no-stats',
        action='store_true',
        help='Disable statistics output'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Debug logging'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        config = load_config(args.config) if args.config else PipelineConfig()
    except ConfigError as e:
        logger.error(str(e))
        return 1

    config = apply_overrides(config, args)
    success = run(args.input, args.output, config=config, stats=not args.no_stats)
    return 0 if success else 1


if __name__ == '__main__':
    sys.exit(main())
