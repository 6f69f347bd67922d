#!/usr/bin/env python3
"""
Tolerant CSV parsing.

Turns raw CSV text into a rectangular Table:
- Uses what works
- Skips broken rows
- Reports problems as warning strings without raising

Cleaning happens before tokenizing: line endings are normalized, every line
is trimmed and blank lines are dropped. The delimiter is guessed from the
first lines by field-count consistency.
"""

import csv
import io
import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple, Union

from csvmap.constants import (
    DELIMITER_CANDIDATES,
    DELIMITER_SAMPLE_LINES,
    MAX_ERRORS,
    PREVIEW_ROWS,
)
from csvmap.models import Row, Table

logger = logging.getLogger(__name__)


def push_error(errors: List[str], message: str) -> None:
    """Add a warning unless the cap is reached."""
    if len(errors) < MAX_ERRORS:
        errors.append(message)


def clean_lines(text: str) -> List[str]:
    """Split on any line ending, trim lines and drop blank ones."""
    if text.startswith('\ufeff'):
        text = text[1:]
    lines = (line.strip() for line in re.split(r'\r\n|\n|\r', text))
    return [line for line in lines if line]


def guess_delimiter(lines: List[str]) -> str:
    """
    Guess the delimiter from a sample of lines.

    For each candidate the sample is tokenized and the field counts compared
    line to line. The candidate with the smallest total change in field
    count wins, the larger average width breaking ties; an average below
    two fields means the candidate does not split the data at all.

    Args:
        lines: Cleaned (non-blank) lines

    Returns:
        The best delimiter, ',' when nothing qualifies
    """
    sample = lines[:DELIMITER_SAMPLE_LINES]
    best = None
    best_delta = None
    best_avg = None

    for delimiter in DELIMITER_CANDIDATES:
        counts = []
        reader = csv.reader(io.StringIO('\n'.join(sample)), delimiter=delimiter)
        try:
            for cells in reader:
                counts.append(len(cells))
        except csv.Error:
            pass

        if not counts:
            continue

        delta = 0
        for prev, cur in zip(counts, counts[1:]):
            delta += abs(cur - prev)
        avg = sum(counts) / len(counts)

        if avg <= 1.99:
            continue
        if best is None or delta < best_delta or (delta == best_delta and avg > best_avg):
            best = delimiter
            best_delta = delta
            best_avg = avg

    return best or ','


def normalize_headers(raw: List[str]) -> Tuple[List[str], List[int]]:
    """
    Normalize header names.

    - Trim whitespace
    - Remove empty names
    - Ensure uniqueness: ["lat", "lon", "lat"] -> ["lat", "lon", "lat_2"]
      A suffix already taken by a real header is skipped:
      ["a", "a", "a_2"] -> ["a", "a_2", "a_2_2"]

    Returns:
        (header names, source column index of each name)
    """
    seen = {}
    emitted = set()
    names = []
    columns = []

    for index, value in enumerate(raw):
        base = value.strip()
        if not base:
            continue

        count = seen.get(base, 0) + 1
        name = base if count == 1 else f"{base}_{count}"
        while name in emitted:
            count += 1
            name = f"{base}_{count}"
        seen[base] = count
        emitted.add(name)

        names.append(name)
        columns.append(index)

    return names, columns


def _tokenize(cleaned: str, delimiter: str, errors: List[str]) -> List[Tuple[int, Optional[List[str]]]]:
    """Tokenize all records; a record that fails is kept as (line, None)."""
    reader = csv.reader(
        io.StringIO(cleaned),
        delimiter=delimiter,
        quotechar='"',
        doublequote=True,
        strict=True,
    )
    records = []

    while True:
        try:
            cells = next(reader)
        except StopIteration:
            break
        except csv.Error as e:
            push_error(errors, f"Parser: {e} (row {reader.line_num})")
            records.append((reader.line_num, None))
            continue
        records.append((reader.line_num, cells))

    return records


def _is_blank(cells: List[str]) -> bool:
    return all(not c.strip() for c in cells)


def _empty_table(errors: List[str], message: str, delimiter: str = ',') -> Table:
    push_error(errors, message)
    return Table(parse_errors=errors, delimiter=delimiter)


def parse_csv_text(text: str) -> Table:
    """
    Parse CSV text into a Table.

    Args:
        text: Raw CSV content

    Returns:
        Table with headers, rows, a preview slice and warnings. Malformed
        content never raises; the worst case is an empty table plus warnings.
    """
    errors: List[str] = []

    lines = clean_lines(text or '')
    if not lines:
        return _empty_table(errors, "File is empty (or only blank lines).")

    delimiter = guess_delimiter(lines)
    records = _tokenize('\n'.join(lines), delimiter, errors)

    if not records:
        return _empty_table(errors, "No rows detected.", delimiter)

    header_pos = None
    for pos, (_, cells) in enumerate(records):
        if cells is not None and not _is_blank(cells):
            header_pos = pos
            break

    if header_pos is None:
        return _empty_table(errors, "No header row detected.", delimiter)

    header_cells = records[header_pos][1]
    headers, columns = normalize_headers(header_cells)
    if not headers:
        return _empty_table(errors, "Header row is empty.", delimiter)

    width = len(header_cells)
    rows: List[Row] = []
    skipped = 0

    for line_num, cells in records[header_pos + 1:]:
        if cells is None:
            skipped += 1
            continue

        if _is_blank(cells):
            continue

        if len(cells) > width:
            push_error(
                errors,
                f"Line {line_num}: had {len(cells)} values; truncated to {width}."
            )

        row = {}
        for name, col in zip(headers, columns):
            row[name] = cells[col].strip() if col < len(cells) else ''
        rows.append(row)

    if not rows:
        push_error(errors, "No usable data rows were parsed.")

    if skipped > 0:
        push_error(errors, f"Skipped {skipped} malformed row(s).")

    logger.debug(
        f"Parsed {len(rows)} rows, {len(headers)} columns "
        f"(delimiter {delimiter!r}, {len(errors)} warnings)"
    )

    return Table(
        headers=headers,
        rows=rows,
        preview_rows=rows[:PREVIEW_ROWS],
        total_rows=len(rows),
        parse_errors=errors,
        delimiter=delimiter,
    )


def parse_csv_file(path: Union[str, Path]) -> Table:
    """Read a UTF-8 CSV file and parse it."""
    path = Path(path)
    with open(path, encoding='utf-8-sig', errors='replace') as f:
        text = f.read()
    return parse_csv_text(text)
