#!/usr/bin/env python3
"""
Tests for base.py and files.py (sources and the file collection).
"""

import pytest
import requests

from csvmap.constants import GEO_DETECT_WARNING
from csvmap.ingest import files
from csvmap.ingest.base import build_csv_file
from csvmap.ingest.files import (
    CsvFileCollection,
    ExampleSource,
    FileSource,
    TextSource,
    UrlSource,
    is_safe_example_name,
)

POINTS_CSV = "name,lat,lon\nStockholm,59.33,18.07\nOslo,59.91,10.75\n"


class FakeResponse:
    def __init__(self, content: bytes, status_code: int = 200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")


def test_build_csv_file_detects_mapping():
    csv_file = build_csv_file('points.csv', POINTS_CSV)

    assert csv_file.name == 'points.csv'
    assert csv_file.lat_field == 'lat'
    assert csv_file.lon_field == 'lon'
    assert csv_file.headers == ['name', 'lat', 'lon']
    assert len(csv_file.rows) == 2
    assert csv_file.size == len(POINTS_CSV)
    assert csv_file.parse_errors == []


def test_build_csv_file_warns_without_coordinates():
    csv_file = build_csv_file('names.csv', "name,title\nA,B\n")

    assert csv_file.lat_field is None
    assert csv_file.parse_errors[-1] == GEO_DETECT_WARNING


def test_file_ids_are_unique():
    first = build_csv_file('a.csv', POINTS_CSV)
    second = build_csv_file('a.csv', POINTS_CSV)
    assert first.id != second.id


def test_file_source(tmp_path):
    path = tmp_path / 'points.csv'
    path.write_text(POINTS_CSV, encoding='utf-8')

    csv_file = FileSource(path).load()

    assert csv_file.name == 'points.csv'
    assert csv_file.size == path.stat().st_size
    assert csv_file.last_modified == path.stat().st_mtime
    assert csv_file.table.total_rows == 2


def test_file_with_bad_bytes_is_still_loaded(tmp_path):
    path = tmp_path / 'latin1.csv'
    path.write_bytes(b"name,lat,lon\nCaf\xe9,59.33,18.07\nOslo,59.91,10.75\n")

    added = CsvFileCollection().import_files([path])

    assert len(added) == 1
    rows = added[0].rows
    assert len(rows) == 2
    assert rows[0]['name'] == 'Caf\ufffd'
    assert rows[1]['name'] == 'Oslo'


def test_missing_file_returns_none(tmp_path):
    assert FileSource(tmp_path / 'missing.csv').load() is None


def test_url_source(monkeypatch):
    calls = []

    def fake_get(url, headers=None, timeout=None):
        calls.append((url, headers, timeout))
        return FakeResponse(POINTS_CSV.encode('utf-8'))

    monkeypatch.setattr(files.requests, 'get', fake_get)

    csv_file = UrlSource('https://example.org/data/points.csv').load()

    assert csv_file.name == 'points.csv'
    assert csv_file.table.total_rows == 2
    assert calls[0][1] == {'Cache-Control': 'no-cache'}


def test_url_source_http_error(monkeypatch):
    monkeypatch.setattr(files.requests, 'get', lambda *a, **kw: FakeResponse(b'', 404))
    assert UrlSource('https://example.org/missing.csv').load() is None


def test_url_source_connection_error(monkeypatch):
    def fail(*args, **kwargs):
        raise requests.exceptions.ConnectionError("unreachable")

    monkeypatch.setattr(files.requests, 'get', fail)
    assert UrlSource('https://example.org/points.csv').load() is None


def test_is_safe_example_name():
    assert is_safe_example_name('books.csv')
    assert is_safe_example_name('swedish-towns_1900.csv')
    assert not is_safe_example_name('../secret.csv')
    assert not is_safe_example_name('sub/dir.csv')
    assert not is_safe_example_name('a..b.csv')
    assert not is_safe_example_name('notes.txt')
    assert not is_safe_example_name('')
    assert not is_safe_example_name(None)


def test_example_source(tmp_path):
    (tmp_path / 'towns.csv').write_text(POINTS_CSV, encoding='utf-8')

    csv_file = ExampleSource('towns.csv', tmp_path).load()
    assert csv_file.name == 'towns.csv'

    with pytest.raises(ValueError):
        ExampleSource('../towns.csv', tmp_path)


def test_collection_import_selects_newest(tmp_path):
    collection = CsvFileCollection()

    first = collection.import_text('first.csv', POINTS_CSV)
    assert collection.selected is first

    second = collection.import_text('second.csv', POINTS_CSV)
    assert collection.selected is second
    assert [f.name for f in collection.files] == ['second.csv', 'first.csv']
    assert len(collection) == 2


def test_collection_import_files(tmp_path):
    paths = []
    for name in ('a.csv', 'b.csv'):
        path = tmp_path / name
        path.write_text(POINTS_CSV, encoding='utf-8')
        paths.append(path)

    collection = CsvFileCollection()
    added = collection.import_files(paths + [tmp_path / 'missing.csv'])

    assert [f.name for f in added] == ['a.csv', 'b.csv']
    assert collection.selected.name == 'a.csv'


def test_collection_limit():
    collection = CsvFileCollection(max_files=2)

    added = collection.import_sources(
        TextSource(f"{i}.csv", POINTS_CSV) for i in range(3)
    )
    assert len(added) == 2
    assert len(collection) == 2

    assert collection.import_text('extra.csv', POINTS_CSV) is None
    assert len(collection) == 2


def test_collection_import_example(tmp_path):
    (tmp_path / 'towns.csv').write_text(POINTS_CSV, encoding='utf-8')
    collection = CsvFileCollection()

    assert collection.import_example('../towns.csv', tmp_path) is None
    assert collection.import_example('towns.csv', tmp_path).name == 'towns.csv'


def test_collection_import_url(monkeypatch):
    monkeypatch.setattr(files.requests, 'get',
                        lambda *a, **kw: FakeResponse(POINTS_CSV.encode('utf-8')))
    collection = CsvFileCollection()

    csv_file = collection.import_url('https://example.org/points.csv', name='remote.csv')

    assert csv_file.name == 'remote.csv'
    assert collection.selected is csv_file


def test_select_and_unload():
    collection = CsvFileCollection()
    first = collection.import_text('first.csv', POINTS_CSV)
    second = collection.import_text('second.csv', POINTS_CSV)

    assert not collection.select('nope')
    assert collection.select(first.id)
    assert collection.selected is first

    assert collection.unload_selected() is first
    assert collection.selected is second

    assert collection.unload_selected() is second
    assert collection.selected is None
    assert collection.unload_selected() is None


def test_update_file_mapping():
    collection = CsvFileCollection()
    original = collection.import_text('points.csv', "y1,x1,lat,lon\n1,2,3,4\n")

    updated = collection.update_file_mapping(original.id, lat_field='y1')

    assert updated.lat_field == 'y1'
    assert updated.lon_field == original.lon_field
    assert updated.table is original.table
    assert collection.get(original.id) is updated
    # The original object is untouched
    assert original.lat_field == 'lat'

    assert collection.update_file_mapping('unknown', lat_field='y1') is None
