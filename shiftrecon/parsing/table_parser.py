from __future__ import annotations

import logging
from pathlib import Path

from shiftrecon.errors import SourceMalformedError, SourceMissingError
from shiftrecon.logging.error_log import DiagnosticLog
from shiftrecon.models.diagnostic import ROW_SKIPPED
from shiftrecon.models.row_data import Row
from shiftrecon.models.table import Table

"""Delimited text parsing into header-indexed tables.

Sensor head exports carry one header row. Shift-log exports carry two: a
header row and a sub-header row (lane / board labels such as TLB1, TIB1).
Fields are split on the delimiter without quoting rules and trimmed. Ragged
data lines are skipped and reported, never fatal.
"""

__all__ = [
    "parse_table",
    "read_source_text",
    "load_table",
]

logger = logging.getLogger(__name__)


def read_source_text(path: Path) -> str:
    """Return the full text of ``path``.

    Raises:
        SourceMissingError: the file does not exist
        SourceMalformedError: the file exists but cannot be read or decoded
    """
    if not path.exists():
        raise SourceMissingError(f"source file not found: {path}")
    try:
        # utf-8-sig drops the BOM some station exporters prepend
        return path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise SourceMalformedError(f"cannot read {path}: {e}") from e


def _pad_or_truncate(values: list[str], length: int) -> tuple[str, ...]:
    if len(values) < length:
        values = values + [""] * (length - len(values))
    return tuple(values[:length])


def parse_table(
    text: str,
    delimiter: str = ",",
    header_row_count: int = 1,
    *,
    source: str = "<text>",
    diagnostics: DiagnosticLog | None = None,
) -> Table | None:
    """Parse delimited ``text`` into a Table.

    Steps:
    1. line 0 is the header row
    2. with ``header_row_count=2`` line 1 is the sub-header row, padded with
       empty strings or truncated to the header length
    3. every following line is a data row; a line whose field count differs
       from the header count is skipped with one ROW_SKIPPED diagnostic

    Returns None when the text has fewer than ``header_row_count + 1`` lines.
    """
    if header_row_count not in (1, 2):
        raise ValueError(f"header_row_count must be 1 or 2, got {header_row_count}")

    lines = text.splitlines()
    if len(lines) < header_row_count + 1:
        logger.debug("source=%s has %d lines, need %d", source, len(lines), header_row_count + 1)
        return None

    headers = tuple(h.strip() for h in lines[0].split(delimiter))
    sub_headers: tuple[str, ...] | None = None
    if header_row_count == 2:
        raw_sub = [s.strip() for s in lines[1].split(delimiter)]
        sub_headers = _pad_or_truncate(raw_sub, len(headers))

    rows: list[Row] = []
    for i in range(header_row_count, len(lines)):
        fields = lines[i].split(delimiter)
        if len(fields) != len(headers):
            message = f"has {len(fields)} columns, expected {len(headers)}; skipped"
            if diagnostics is not None:
                diagnostics.record(source, i, ROW_SKIPPED, message)
            else:
                logger.warning("%s row %d %s", source, i, message)
            continue
        rows.append(Row.from_values(headers, [f.strip() for f in fields], line_number=i))

    return Table(headers=headers, rows=rows, sub_headers=sub_headers, source=source)


def load_table(
    path: Path,
    header_row_count: int = 1,
    delimiter: str = ",",
    diagnostics: DiagnosticLog | None = None,
) -> Table:
    """Read and parse ``path``; a file too short to hold data is SourceMalformed."""
    text = read_source_text(path)
    table = parse_table(
        text,
        delimiter=delimiter,
        header_row_count=header_row_count,
        source=path.name,
        diagnostics=diagnostics,
    )
    if table is None:
        raise SourceMalformedError(
            f"{path.name} has insufficient lines (need {header_row_count} header row(s) and data)"
        )
    return table
