#!/usr/bin/env python3
"""
CSV sources and the in-memory collection of loaded files.

Sources:
- FileSource: a local file (UTF-8, BOM tolerated, bad bytes replaced)
- TextSource: text already in memory
- UrlSource: HTTP(S) GET via requests
- ExampleSource: a bundled example, by plain file name only

The collection keeps parsed files in memory only, newest first, and tracks
which one is selected. It never holds more than max_files files.
"""

import dataclasses
import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, Union

import requests

from csvmap.constants import EXAMPLE_NAME_PATTERN, MAX_FILES
from csvmap.ingest.base import BaseSource
from csvmap.models import CsvFile

logger = logging.getLogger(__name__)


class FileSource(BaseSource):
    """CSV file on disk."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(self.path.name)

    def read_text(self) -> str:
        with open(self.path, encoding='utf-8-sig', errors='replace') as f:
            return f.read()

    def size(self, text: str) -> int:
        return self.path.stat().st_size

    def last_modified(self) -> Optional[float]:
        return self.path.stat().st_mtime


class TextSource(BaseSource):
    """CSV text that is already loaded."""

    def __init__(self, name: str, text: str):
        super().__init__(name)
        self.text = text

    def read_text(self) -> str:
        return self.text


class UrlSource(BaseSource):
    """CSV fetched over HTTP(S)."""

    read_errors = (requests.exceptions.RequestException,)

    def __init__(self, url: str, name: Optional[str] = None, timeout: float = 30):
        super().__init__(name or url.rstrip('/').rsplit('/', 1)[-1] or url)
        self.url = url
        self.timeout = timeout

    def read_text(self) -> str:
        response = requests.get(
            self.url,
            headers={'Cache-Control': 'no-cache'},
            timeout=self.timeout
        )
        response.raise_for_status()
        # CSV is assumed UTF-8 regardless of the declared charset
        return response.content.decode('utf-8-sig', errors='replace')


def is_safe_example_name(name: str) -> bool:
    """Plain file names like "books.csv" only: no paths, no traversal."""
    name = str(name if name is not None else '').strip()
    return bool(re.match(EXAMPLE_NAME_PATTERN, name)) and '..' not in name


class ExampleSource(FileSource):
    """A bundled example file, addressed by name."""

    def __init__(self, name: str, examples_dir: Union[str, Path]):
        name = str(name).strip()
        if not is_safe_example_name(name):
            raise ValueError(f"Not an example file name: {name!r}")
        super().__init__(Path(examples_dir) / name)


class CsvFileCollection:
    """
    Loaded CSV files for one session.

    Supports:
    - Importing several files at once (capped at max_files)
    - Selecting one file as the active one
    - Changing a file's lat/lon mapping without re-parsing
    """

    def __init__(self, max_files: int = MAX_FILES):
        self.max_files = max_files
        self.files: List[CsvFile] = []
        self.selected_id: Optional[str] = None

    def __len__(self) -> int:
        return len(self.files)

    @property
    def selected(self) -> Optional[CsvFile]:
        """Currently selected file, or None."""
        for csv_file in self.files:
            if csv_file.id == self.selected_id:
                return csv_file
        return None

    def get(self, file_id: str) -> Optional[CsvFile]:
        for csv_file in self.files:
            if csv_file.id == file_id:
                return csv_file
        return None

    def _ensure_selection(self) -> None:
        if not self.files:
            self.selected_id = None
        elif self.get(self.selected_id) is None:
            self.selected_id = self.files[0].id

    def import_sources(self, sources: Iterable[BaseSource]) -> List[CsvFile]:
        """
        Load sources into the collection.

        New files go to the front and the newest one becomes selected.
        Sources beyond the remaining capacity are ignored; unreadable
        sources are logged and skipped.

        Returns:
            The files that were added
        """
        sources = list(sources)
        remaining = max(0, self.max_files - len(self.files))
        if len(sources) > remaining:
            logger.warning(
                f"File limit {self.max_files} reached; ignoring {len(sources) - remaining} file(s)"
            )

        added = []
        for source in sources[:remaining]:
            csv_file = source.load()
            if csv_file is not None:
                added.append(csv_file)

        if added:
            self.files = added + self.files
            self.selected_id = added[0].id

        return added

    def import_files(self, paths: Iterable[Union[str, Path]]) -> List[CsvFile]:
        """Import local CSV files."""
        return self.import_sources(FileSource(p) for p in paths)

    def import_text(self, name: str, text: str) -> Optional[CsvFile]:
        """Import CSV text that is already in memory."""
        added = self.import_sources([TextSource(name, text)])
        return added[0] if added else None

    def import_url(self, url: str, name: Optional[str] = None) -> Optional[CsvFile]:
        """Fetch and import a CSV file; None if the request failed."""
        added = self.import_sources([UrlSource(url, name=name)])
        return added[0] if added else None

    def import_example(self, name: str, examples_dir: Union[str, Path]) -> Optional[CsvFile]:
        """Import a bundled example by file name; unsafe names are ignored."""
        if not is_safe_example_name(name):
            logger.warning(f"Ignoring example with unsafe name: {name!r}")
            return None
        added = self.import_sources([ExampleSource(name, examples_dir)])
        return added[0] if added else None

    def select(self, file_id: str) -> bool:
        """Select a file by id. Returns False for unknown ids."""
        if self.get(file_id) is None:
            return False
        self.selected_id = file_id
        return True

    def unload_selected(self) -> Optional[CsvFile]:
        """Remove the selected file; the first remaining file becomes selected."""
        removed = self.selected
        if removed is None:
            return None

        self.files = [f for f in self.files if f.id != removed.id]
        self._ensure_selection()
        return removed

    def update_file_mapping(
        self,
        file_id: str,
        lat_field: Optional[str] = None,
        lon_field: Optional[str] = None
    ) -> Optional[CsvFile]:
        """
        Replace a file's lat/lon mapping.

        Only the given fields change. The stored file is replaced by an
        updated copy, never modified in place.

        Returns:
            The updated file, or None for an unknown id
        """
        current = self.get(file_id)
        if current is None:
            return None

        changes = {}
        if lat_field is not None:
            changes['lat_field'] = lat_field
        if lon_field is not None:
            changes['lon_field'] = lon_field

        updated = dataclasses.replace(current, **changes)
        self.files = [updated if f.id == file_id else f for f in self.files]
        return updated
