#!/usr/bin/env python3
"""
Tests for headers.py (header role detection).
"""

from csvmap.constants import LAT_SYNONYMS, LON_SYNONYMS
from csvmap.normalize.headers import (
    auto_detect_lat_lon,
    auto_detect_range_fields,
    auto_detect_timeline_fields,
    detect_feature_type_field,
    detect_header_roles,
    detect_region_fields,
    normalize_key,
    normalize_timeline_key,
    pick_best,
    rank_headers,
    score_header,
)


def test_normalize_key():
    tests = [
        (' Latitude_2 ', 'latitude'),
        ('Feature-Type', 'featuretype'),
        ('date_from', 'datefrom'),
        ('Year From', 'yearfrom'),
        ('GPS Lat', 'gpslat'),
        (None, ''),
    ]
    for raw, expected in tests:
        assert normalize_key(raw) == expected, f"{raw!r}: expected {expected}"


def test_score_header():
    assert score_header('lat', LAT_SYNONYMS) == 100
    assert score_header('gpslatitude', LAT_SYNONYMS) == 50
    assert score_header('name', LAT_SYNONYMS) == 0


def test_lat_lon_exact_names():
    assert auto_detect_lat_lon(['Name', 'Latitude', 'Longitude']) == ('Latitude', 'Longitude')
    assert auto_detect_lat_lon(['lng', 'lat']) == ('lat', 'lng')


def test_exact_match_beats_containment():
    assert pick_best(['gps_latitude', 'lat'], LAT_SYNONYMS) == 'lat'


def test_ties_keep_first_header():
    assert pick_best(['gps_lat', 'raw_lat'], LAT_SYNONYMS) == 'gps_lat'


def test_rank_headers():
    ranked = rank_headers(['name', 'gps_lon', 'lon'], LON_SYNONYMS)
    assert ranked == [('lon', 100), ('gps_lon', 50)]


def test_no_coordinate_columns():
    assert auto_detect_lat_lon(['name', 'title']) == (None, None)
    assert auto_detect_lat_lon([]) == (None, None)


def test_disambiguated_header_is_detected():
    lat, lon = auto_detect_lat_lon(['lat', 'lon', 'lat_2'])
    assert lat == 'lat'
    assert lon == 'lon'


def test_timeline_fields():
    fields = auto_detect_timeline_fields(['id', 'Year', 'Date', 'DOY'])

    assert fields.year_field == 'Year'
    assert fields.date_field == 'Date'
    assert fields.day_of_year_field == 'DOY'


def test_timeline_fields_synonyms():
    fields = auto_detect_timeline_fields(['created_at', 'day of year'])

    assert fields.date_field == 'created_at'
    assert fields.day_of_year_field == 'day of year'


def test_numbered_timeline_columns_match_exactly():
    assert normalize_timeline_key('Year2') == 'year'
    assert normalize_timeline_key('date_from_1') == 'datefrom'

    # "year2" is an exact match and beats the containment match "yearbuilt"
    fields = auto_detect_timeline_fields(['yearbuilt', 'year2', 'date1'])
    assert fields.year_field == 'year2'
    assert fields.date_field == 'date1'

    ranges = auto_detect_range_fields(['yearFrom1', 'yearTo1'])
    assert ranges.year_from_field == 'yearFrom1'
    assert ranges.year_to_field == 'yearTo1'


def test_timeline_fields_missing():
    fields = auto_detect_timeline_fields(['lat', 'lon'])

    assert fields.year_field is None
    assert fields.date_field is None
    assert fields.day_of_year_field is None


def test_range_fields_exact_only():
    fields = auto_detect_range_fields(['Year From', 'year_to', 'date-from', 'DateTo'])

    assert fields.year_from_field == 'Year From'
    assert fields.year_to_field == 'year_to'
    assert fields.date_from_field == 'date-from'
    assert fields.date_to_field == 'DateTo'

    fuzzy = auto_detect_range_fields(['yearFromEstimate', 'year'])
    assert fuzzy.year_from_field is None
    assert fuzzy.year_to_field is None


def test_feature_type_field():
    assert detect_feature_type_field(['lat', 'Feature Type']) == 'Feature Type'
    assert detect_feature_type_field(['feature_type']) == 'feature_type'
    assert detect_feature_type_field(['type']) is None
    assert detect_feature_type_field([]) is None


def test_region_fields():
    fields = detect_region_fields(['feature_id', 'Part', 'ORDER', 'fill-color'])

    assert fields.feature_id == 'feature_id'
    assert fields.part == 'Part'
    assert fields.order == 'ORDER'
    assert fields.fill_color == 'fill-color'
    # Not present: literal default name
    assert fields.color == 'color'
    assert fields.fill_opacity == 'fillOpacity'


def test_header_roles_with_override():
    headers = ['featureType', 'lat', 'lon', 'y2', 'x2', 'yearFrom', 'yearTo']

    roles = detect_header_roles(headers)
    assert roles.lat_field == 'lat'
    assert roles.lon_field == 'lon'
    assert roles.feature_type_field == 'featureType'
    assert roles.year_from_field == 'yearFrom'
    assert roles.range_fields.year_to_field == 'yearTo'

    overridden = detect_header_roles(headers, lat_field='y2', lon_field='x2')
    assert overridden.lat_field == 'y2'
    assert overridden.lon_field == 'x2'
