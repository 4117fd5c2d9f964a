from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from shiftrecon.models.diagnostic import Diagnostic

"""Diagnostic buffering for one report run.

- Every recorded Diagnostic is echoed to the application log (WARN, or ERROR
  for source/sink failures) at the moment it is recorded.
- Records are kept in order so the run result can expose them as strings.
- ``flush()`` appends them as JSON Lines to
  ``<logs_dir>/diagnostics-YYYYMMDD-HHMMSS.log`` (UTC, decided on first use).
"""

__all__ = [
    "Diagnostic",
    "DiagnosticLog",
]

TIMESTAMP_FMT = "%Y%m%d-%H%M%S"

logger = logging.getLogger(__name__)


class DiagnosticLog:
    """In-memory, ordered diagnostic buffer. Not thread safe (serial runs)."""

    def __init__(self, logs_dir: Path | str = "./logs") -> None:
        self._logs_dir = Path(logs_dir)
        self._records: list[Diagnostic] = []
        self._pending = 0
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"diagnostics-{stamp}.log"
        return self._file_path

    def record(self, source: str, row: int, kind: str, message: str) -> Diagnostic:
        diag = Diagnostic.create(source=source, row=row, kind=kind, message=message)
        self.append(diag)
        return diag

    def append(self, diag: Diagnostic) -> None:
        self._records.append(diag)
        self._pending += 1
        if diag.is_error:
            logger.error("%s", diag)
        else:
            logger.warning("%s", diag)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self._records)

    def kinds(self) -> list[str]:
        return [d.kind for d in self._records]

    def messages(self) -> list[str]:
        return [str(d) for d in self._records]

    def flush(self) -> Path | None:
        """Append records not yet written; returns the file path or None if nothing to write."""
        if not self._pending:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for d in self._records[-self._pending:]:
                f.write(d.to_json_line() + "\n")
        self._pending = 0
        return fp
