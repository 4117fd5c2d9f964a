from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""Diagnostic model for per-run warnings and errors.

A Diagnostic is created wherever the pipeline recovers locally (skipped row,
unresolved timestamp, absent log source) or aborts (missing source, sink
failure). ``row=-1`` marks source-level entries where no line applies.
"""

__all__ = [
    "Diagnostic",
    "ROW_SKIPPED",
    "TIMESTAMP_UNRESOLVED",
    "COLUMN_MISSING",
    "NO_MATCHES",
    "LOG_SOURCE_ABSENT",
    "SOURCE_MISSING",
    "SOURCE_MALFORMED",
    "SINK_FAILURE",
    "NOTIFY_FAILURE",
]

ROW_SKIPPED = "ROW_SKIPPED"
TIMESTAMP_UNRESOLVED = "TIMESTAMP_UNRESOLVED"
COLUMN_MISSING = "COLUMN_MISSING"
NO_MATCHES = "NO_MATCHES"
LOG_SOURCE_ABSENT = "LOG_SOURCE_ABSENT"
SOURCE_MISSING = "SOURCE_MISSING"
SOURCE_MALFORMED = "SOURCE_MALFORMED"
SINK_FAILURE = "SINK_FAILURE"
NOTIFY_FAILURE = "NOTIFY_FAILURE"

_ERROR_KINDS = frozenset({SOURCE_MISSING, SOURCE_MALFORMED, SINK_FAILURE})


@dataclass(frozen=True)
class Diagnostic:
    """Structured diagnostic entry.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        source: file name or logical source label
        row: 0-based line index in the source, -1 for source-level entries
        kind: classification in UPPER_SNAKE_CASE
        message: human-readable description
    """
    timestamp: str
    source: str
    row: int
    kind: str
    message: str

    @staticmethod
    def create(source: str, row: int, kind: str, message: str) -> Diagnostic:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return Diagnostic(timestamp=ts, source=source, row=row, kind=kind, message=message)

    @property
    def is_error(self) -> bool:
        return self.kind in _ERROR_KINDS

    def __str__(self) -> str:
        where = self.source if self.row < 0 else f"{self.source} row {self.row}"
        return f"{self.kind} {where}: {self.message}"

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
