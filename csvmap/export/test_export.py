#!/usr/bin/env python3
"""
Tests for export_geojson.py
"""

import json

import geojson

from csvmap.constants import DEFAULT_STYLE
from csvmap.export.export_geojson import (
    build_feature_collection,
    export_geojson,
    part_to_polygon,
    point_to_feature,
    print_statistics,
    regions_to_features,
)
from csvmap.ingest.base import build_csv_file
from csvmap.models import PointFeature, RegionFeature, ResolvedStyle
from csvmap.pipeline import derive_layer

MIXED_CSV = """featureType,featureId,part,order,lat,lon,name
point,,,,59.33,18.07,Stockholm
region,A,main,1,10,10,Area A
region,A,main,2,20,10,
region,A,main,3,20,20,
region,A,hole,1,0,0,
region,A,hole,2,0,1,
region,A,hole,3,1,1,
"""


def as_json(obj):
    return json.loads(geojson.dumps(obj))


def square(part='main', feature_id='A', ring=None):
    ring = ring or [(0, 0), (0, 1), (1, 1), (1, 0), (0, 0)]
    return RegionFeature(
        id=f"{feature_id}:{part}",
        feature_id=feature_id,
        part=part,
        coordinates=ring,
        style=ResolvedStyle(),
        source_row={'name': feature_id},
    )


def test_point_to_feature():
    point = PointFeature(id='3', lat=59.33, lon=18.07, source_row={'name': 'Stockholm'})

    feature = as_json(point_to_feature(point))

    assert feature['id'] == '3'
    assert feature['geometry'] == {'type': 'Point', 'coordinates': [18.07, 59.33]}
    assert feature['properties'] == {'name': 'Stockholm', '_id': '3', '_kind': 'point'}


def test_part_to_polygon_swaps_axis_order():
    polygon = part_to_polygon(square(ring=[(10, 20), (10, 30), (15, 30), (10, 20)]))

    assert list(polygon.exterior.coords)[1] == (30.0, 10.0)
    assert polygon.is_valid


def test_single_part_region_is_polygon():
    features = [as_json(f) for f in regions_to_features([square()])]

    assert len(features) == 1
    feature = features[0]
    assert feature['id'] == 'A'
    assert feature['geometry']['type'] == 'Polygon'
    assert feature['properties']['_parts'] == ['main']
    assert feature['properties']['_valid'] is True
    assert feature['properties']['style'] == DEFAULT_STYLE


def test_multi_part_region_is_multipolygon():
    parts = [square('a'), square('b'), square('c', feature_id='B')]

    features = [as_json(f) for f in regions_to_features(parts)]

    assert [f['id'] for f in features] == ['A', 'B']
    assert features[0]['geometry']['type'] == 'MultiPolygon'
    assert len(features[0]['geometry']['coordinates']) == 2
    assert features[0]['properties']['_parts'] == ['a', 'b']
    assert features[1]['geometry']['type'] == 'Polygon'


def test_self_intersecting_region_is_flagged():
    bowtie = square(ring=[(0, 0), (1, 1), (1, 0), (0, 1), (0, 0)])

    feature = as_json(regions_to_features([bowtie])[0])

    assert feature['properties']['_valid'] is False


def test_build_feature_collection():
    layer = derive_layer(build_csv_file('mixed.csv', MIXED_CSV))

    collection = as_json(build_feature_collection(layer))

    assert collection['type'] == 'FeatureCollection'
    kinds = [f['properties']['_kind'] for f in collection['features']]
    assert kinds == ['point', 'region']
    region = collection['features'][1]
    assert region['geometry']['type'] == 'MultiPolygon'
    assert region['properties']['name'] == 'Area A'


def test_export_geojson(tmp_path):
    layer = derive_layer(build_csv_file('mixed.csv', MIXED_CSV))
    output = tmp_path / 'out' / 'mixed.geojson'

    assert export_geojson(layer, output, stats=False)

    with open(output) as f:
        data = json.load(f)
    assert len(data['features']) == 2

    with open(tmp_path / 'out' / 'mixed.meta.json') as f:
        metadata = json.load(f)
    assert metadata['source_file'] == 'mixed.csv'
    assert metadata['point_count'] == 1
    assert metadata['region_part_count'] == 2
    assert metadata['fields']['feature_type_field'] == 'featureType'
    assert metadata['skipped']['invalid_coord'] == 0


def test_print_statistics(capsys):
    layer = derive_layer(build_csv_file('mixed.csv', MIXED_CSV))

    print_statistics(layer)

    out = capsys.readouterr().out
    assert 'EXPORT STATISTICS: mixed.csv' in out
    assert 'Regions:      1 (2 parts)' in out
