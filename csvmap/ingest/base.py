#!/usr/bin/env python3
"""
Base class for CSV text sources.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Optional, Tuple, Type

from csvmap.constants import GEO_DETECT_WARNING
from csvmap.ingest.csv_parse import parse_csv_text
from csvmap.models import CsvFile
from csvmap.normalize.headers import auto_detect_lat_lon

logger = logging.getLogger(__name__)


def build_csv_file(
    name: str,
    text: str,
    size: Optional[int] = None,
    last_modified: Optional[float] = None
) -> CsvFile:
    """
    Parse text and wrap it as a loaded file with an auto-detected mapping.

    Detection only suggests lat/lon columns; the mapping can be changed later
    without re-parsing.
    """
    table = parse_csv_text(text)
    lat_field, lon_field = auto_detect_lat_lon(table.headers)

    parse_errors = list(table.parse_errors)
    if not lat_field or not lon_field:
        parse_errors.append(GEO_DETECT_WARNING)

    return CsvFile(
        id=uuid.uuid4().hex,
        name=name,
        size=size if size is not None else len(text),
        table=table,
        lat_field=lat_field,
        lon_field=lon_field,
        parse_errors=parse_errors,
        last_modified=last_modified,
    )


class BaseSource(ABC):
    """Base class for places CSV text can be read from."""

    # Exceptions that mean "this source could not be read"
    read_errors: Tuple[Type[BaseException], ...] = (OSError, UnicodeDecodeError)

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def read_text(self) -> str:
        """
        Read the full CSV text.

        Returns:
            Decoded text (UTF-8)
        """
        pass

    def size(self, text: str) -> int:
        """Size reported for the loaded file."""
        return len(text)

    def last_modified(self) -> Optional[float]:
        return None

    def load(self) -> Optional[CsvFile]:
        """Read and parse the source; None if it could not be read."""
        logger.info(f"Loading {self.name}...")

        try:
            text = self.read_text()
        except self.read_errors as e:
            logger.error(f"Could not read {self.name}: {e}")
            return None

        csv_file = build_csv_file(
            self.name,
            text,
            size=self.size(text),
            last_modified=self.last_modified(),
        )

        logger.info(
            f"  {csv_file.table.total_rows} rows, {len(csv_file.headers)} columns, "
            f"{len(csv_file.parse_errors)} warnings"
        )
        return csv_file
