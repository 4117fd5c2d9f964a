from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

"""Result models for one report generation run.

SheetOutput is the logical sheet contract handed to the sink: a name plus
ordered rows of ordered cell strings. ReportResult aggregates the sheets,
the diagnostics and the metrics used for the SUMMARY line.
"""

_UNSAFE = re.compile(r"[\\/:*?\"<>|]")


def _safe(label: str) -> str:
    return _UNSAFE.sub("-", label).strip()


@dataclass(frozen=True)
class ReportKey:
    """Label derived from the merged table: shift identifier + calendar date."""
    shift: str
    date: str

    @property
    def workbook_name(self) -> str:
        return f"Combined_Report_Shift_{_safe(self.shift)}_{_safe(self.date)}.xlsx"

    @property
    def csv_name(self) -> str:
        return f"Sensor_Report_Shift_{_safe(self.shift)}_{_safe(self.date)}.csv"


@dataclass(frozen=True)
class SheetOutput:
    name: str
    rows: list[list[str]]
    header_rows: int = 1  # 2 when a sub-header row is rendered

    @property
    def data_rows(self) -> list[list[str]]:
        return self.rows[self.header_rows:]


@dataclass(frozen=True)
class LogSheetStat:
    """Per log-source match statistics."""
    station: str
    sheet_name: str
    source_file: str | None  # None when the log source was absent
    matched_rows: int
    total_rows: int


@dataclass(frozen=True)
class ReportResult:
    key: ReportKey
    sheets: list[SheetOutput]
    diagnostics: list[str]
    top_rows: int  # parsed rows of the primary sensor head
    bottom_rows: int  # parsed rows of the secondary sensor head
    merged_rows: int
    log_stats: list[LogSheetStat] = field(default_factory=list)
    start_time: datetime | None = None
    end_time: datetime | None = None
    elapsed_seconds: float = 0.0
    workbook_path: Path | None = None
    csv_path: Path | None = None

    @property
    def warning_count(self) -> int:
        return len(self.diagnostics)

    def sheet(self, name: str) -> SheetOutput:
        for s in self.sheets:
            if s.name == name:
                return s
        raise KeyError(name)
