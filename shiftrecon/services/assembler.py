from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from datetime import UTC, date, datetime
from pathlib import Path
from typing import NamedTuple

from ..errors import ReportError, SourceMalformedError, SourceMissingError
from ..joins.nearest_earlier import nearest_earlier_join
from ..joins.windowed_pair import merge_headers, merged_table, windowed_pair_join
from ..logging.error_log import DiagnosticLog
from ..models.column_plan import ColumnPlan
from ..models.config_models import PriorityColumns, ReportConfig, SensorSourceConfig, ShiftLogConfig
from ..models.diagnostic import LOG_SOURCE_ABSENT, NO_MATCHES, SOURCE_MALFORMED, SOURCE_MISSING
from ..models.report_result import LogSheetStat, ReportKey, ReportResult, SheetOutput
from ..models.row_data import Row
from ..models.table import Table
from ..parsing.table_parser import load_table
from ..parsing.timestamps import annotate_instants, sort_by_instant
from ..schema.reconciler import reconcile
from .discovery import any_csv, find_shift_log, latest_matching
from .progress import ProgressTracker

"""Report assembly.

Builds the three logical sheets of one report run:

1. combined sheet: top and bottom sensor heads merged by the window join
2. one sheet per shift log, each row of the merged table matched against the
   log by the nearest-earlier join and laid out by the schema reconciler

The merged table is the source of truth for every log sheet: each log sheet
has exactly one data row per merged row, in merged order, whether or not the
log source exists. Unmatched cells are zero-filled; priority columns are
filled from the merged row where possible and never zero-filled.
"""

__all__ = [
    "PrimaryColumns",
    "ReportAssembler",
    "ZERO_FILL",
    "header_rows",
    "render_log_rows",
]

logger = logging.getLogger(__name__)

ZERO_FILL = "0"
DATE_LABEL_FMT = "%d-%b-%Y"

_FILENAME_KEY = re.compile(r"Shift_([^_]+)_(.+)$", re.IGNORECASE)


class PrimaryColumns(NamedTuple):
    """Merged-table columns that feed the priority roles of a log sheet."""
    date: str | None
    timestamp: str | None
    shift: str | None


def _priority_value(
    header: str, primary: Row, columns: PrimaryColumns, station: str, priority: PriorityColumns
) -> str | None:
    """Value of a priority column resolved from the merged row; None if not a priority column."""
    name = header.casefold()
    if name == priority.station.casefold():
        return station
    if name == priority.date.casefold():
        return primary.get(columns.date, "") or ""
    if name == priority.timestamp.casefold():
        return primary.get(columns.timestamp, "") or ""
    if name == priority.shift.casefold():
        return primary.get(columns.shift, "") or ""
    if name == priority.primary_key.casefold():
        return ""
    return None


def _fill_row(
    plan: ColumnPlan, primary: Row, columns: PrimaryColumns, station: str, priority: PriorityColumns
) -> list[str]:
    cells = []
    for header in plan.ordered_headers:
        value = _priority_value(header, primary, columns, station, priority)
        cells.append(ZERO_FILL if value is None else value)
    return cells


def _blank_row(plan: ColumnPlan, priority: PriorityColumns) -> list[str]:
    names = priority.names()
    return ["" if h.casefold() in names else ZERO_FILL for h in plan.ordered_headers]


def _matched_row(
    plan: ColumnPlan, primary: Row, matched: Row, columns: PrimaryColumns, priority: PriorityColumns
) -> list[str]:
    timestamp = priority.timestamp.casefold()
    cells = []
    for header, idx in zip(plan.ordered_headers, plan.source_indices):
        if header.casefold() == timestamp:
            # merged table is authoritative for time
            cells.append(primary.get(columns.timestamp, "") or "")
        else:
            cells.append(matched.values[idx] if 0 <= idx < len(matched.values) else "")
    return cells


def header_rows(plan: ColumnPlan) -> list[list[str]]:
    rows = [list(plan.ordered_headers)]
    if plan.has_sub_headers:
        rows.append(list(plan.ordered_sub_headers))
    return rows


def render_log_rows(
    primary: Table,
    plan: ColumnPlan,
    matches: Sequence[Row | None] | None,
    columns: PrimaryColumns,
    station: str,
    priority: PriorityColumns,
) -> tuple[list[list[str]], int]:
    """Data rows of one log sheet, one per primary row, in primary order.

    ``matches`` is the nearest-earlier result aligned with ``primary.rows``;
    None means the log source is absent. Rules per primary row:

    - matched: log values, with the timestamp taken from the primary row
    - unmatched, or log absent: priority columns from the primary row, the
      rest zero-filled
    - no instant while the log is present: priority columns blank, the rest
      zero-filled

    Returns:
        (rows, matched_count)
    """
    rows: list[list[str]] = []
    if matches is None:
        for p in primary.rows:
            rows.append(_fill_row(plan, p, columns, station, priority))
        return rows, 0

    matched_count = 0
    for p, matched in zip(primary.rows, matches):
        if matched is not None:
            rows.append(_matched_row(plan, p, matched, columns, priority))
            matched_count += 1
        elif p.instant is None:
            rows.append(_blank_row(plan, priority))
        else:
            rows.append(_fill_row(plan, p, columns, station, priority))
    return rows, matched_count


class ReportAssembler:
    """Builds one ReportResult from the configured sources.

    Args:
        config: report configuration
        diagnostics: buffer collecting warnings for this run
        today: date provider for the fallback report date
    """

    def __init__(
        self,
        config: ReportConfig,
        diagnostics: DiagnosticLog | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.config = config
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticLog(config.logs_directory)
        self._today = today

    # ------------------------------------------------------------------ sources

    def _load_sensor(self, sensor: SensorSourceConfig, label: str) -> tuple[Table, Path]:
        directory = Path(sensor.directory)
        try:
            path = latest_matching(directory, sensor.name_contains)
            if path is None:
                raise SourceMissingError(
                    f"no file containing {sensor.name_contains!r} in {label} directory {directory}"
                )
            logger.info("processing %s file: %s", label, path.name)
            table = load_table(path, header_row_count=1, diagnostics=self.diagnostics)
            if not table.rows:
                raise SourceMalformedError(f"{label} file {path.name} has no usable data rows")
        except SourceMissingError as e:
            self.diagnostics.record(label, -1, SOURCE_MISSING, str(e))
            raise
        except SourceMalformedError as e:
            self.diagnostics.record(label, -1, SOURCE_MALFORMED, str(e))
            raise

        annotate_instants(table, sensor.date_column, sensor.timestamp_column, self.diagnostics)
        sort_by_instant(table)
        return table, path

    def _load_shift_log(self, log: ShiftLogConfig, key: ReportKey) -> Table | None:
        directory = Path(log.directory)
        path = find_shift_log(directory, key.shift, key.date)
        if path is None:
            self.diagnostics.record(
                log.station,
                -1,
                LOG_SOURCE_ABSENT,
                f"no shift log for shift {key.shift} / {key.date} in {directory}; zero-filling",
            )
            return None
        logger.info("processing %s file: %s", log.station, path.name)
        try:
            table = load_table(path, header_row_count=2, diagnostics=self.diagnostics)
        except ReportError as e:
            self.diagnostics.record(log.station, -1, LOG_SOURCE_ABSENT, f"{e}; zero-filling")
            return None
        priority = self.config.priority
        annotate_instants(table, priority.date, priority.timestamp, self.diagnostics)
        sort_by_instant(table)
        return table

    def _sample_schema(self, log: ShiftLogConfig) -> tuple[tuple[str, ...], tuple[str, ...] | None]:
        """Headers for an absent log: any file in its directory, else the defaults."""
        sample = any_csv(Path(log.directory))
        if sample is not None:
            try:
                table = load_table(sample, header_row_count=2)
            except ReportError as e:
                logger.debug("schema sample %s unusable: %s", sample.name, e)
            else:
                return table.headers, table.sub_headers
        return log.default_headers, None

    # -------------------------------------------------------------- merge stage

    def _merge_sensors(self, top: Table, bottom: Table) -> Table:
        cfg = self.config
        result_columns = None
        if cfg.top.result_column and cfg.bottom.result_column:
            result_columns = (cfg.top.result_column, cfg.bottom.result_column)
        derived = cfg.derived_column or None

        joined = windowed_pair_join(
            top,
            bottom,
            cfg.pair_tolerance_seconds,
            result_columns=result_columns,
            derived_column=derived,
        )
        # the bottom head's own date/time are redundant once paired
        excluded = [
            bottom.find_column([cfg.bottom.date_column]) or cfg.bottom.date_column,
            bottom.find_column([cfg.bottom.timestamp_column]) or cfg.bottom.timestamp_column,
        ]
        headers = merge_headers(top.headers, bottom.headers, exclude=excluded, derived_column=derived)
        merged = merged_table(top, bottom, joined, headers, source=top.source)
        if not joined:
            self.diagnostics.record(
                top.source,
                -1,
                NO_MATCHES,
                f"no rows matched between {top.source} and {bottom.source} "
                f"within {cfg.pair_tolerance_seconds}s",
            )
        logger.info("merged %d of %d top / %d bottom rows", len(merged), len(top), len(bottom))
        return merged

    def _primary_columns(self, merged: Table) -> PrimaryColumns:
        return PrimaryColumns(
            date=merged.find_column([self.config.top.date_column]),
            timestamp=merged.find_column([self.config.top.timestamp_column]),
            shift=merged.find_column([self.config.priority.shift]),
        )

    def _report_key(self, merged: Table, columns: PrimaryColumns, top_path: Path) -> ReportKey:
        shift = date_label = None
        if merged.rows:
            first = merged.rows[0]
            shift = first.get(columns.shift) or None
            date_label = first.get(columns.date) or None

        m = _FILENAME_KEY.search(top_path.stem)
        if m is not None:
            shift = shift or m.group(1)
            date_label = date_label or m.group(2)

        return ReportKey(
            shift=shift or "Unknown",
            date=date_label or self._today().strftime(DATE_LABEL_FMT),
        )

    # ---------------------------------------------------------------- rendering

    def _log_sheet(
        self, log: ShiftLogConfig, merged: Table, columns: PrimaryColumns, key: ReportKey
    ) -> tuple[SheetOutput, LogSheetStat]:
        table = self._load_shift_log(log, key)
        priority = self.config.priority

        if table is None:
            headers, sub_headers = self._sample_schema(log)
            plan = reconcile(headers, sub_headers, priority.leading)
            matches = None
        else:
            plan = reconcile(table.headers, table.sub_headers, priority.leading)
            matches = nearest_earlier_join(merged, table, self.config.log_tolerance_seconds)

        rows = header_rows(plan)
        count = len(rows)
        data, matched_count = render_log_rows(merged, plan, matches, columns, log.station, priority)
        rows.extend(data)

        source = table.source if table is not None else None
        if source is not None:
            logger.info(
                "%s: matched %d of %d rows from %s", log.sheet_name, matched_count, len(merged.rows), source
            )
        stat = LogSheetStat(log.station, log.sheet_name, source, matched_count, len(merged.rows))
        return SheetOutput(log.sheet_name, rows, header_rows=count), stat

    # --------------------------------------------------------------- entrypoint

    def generate_report(self) -> ReportResult:
        """Build all sheets for one run.

        Raises:
            SourceMissingError: a sensor directory or export cannot be found
            SourceMalformedError: a sensor export is unreadable or has no data
        """
        start_time = datetime.now(UTC)
        cfg = self.config

        top, top_path = self._load_sensor(cfg.top, "top")
        bottom, _ = self._load_sensor(cfg.bottom, "bottom")

        merged = self._merge_sensors(top, bottom)
        columns = self._primary_columns(merged)
        key = self._report_key(merged, columns, top_path)
        logger.info("report key: shift=%s date=%s", key.shift, key.date)

        combined_rows = [list(merged.headers)] + [list(r.values) for r in merged.rows]
        sheets = [SheetOutput(cfg.combined_sheet_name, combined_rows)]
        stats: list[LogSheetStat] = []

        with ProgressTracker(1 + len(cfg.shift_logs)) as progress:
            progress.start_sheet(cfg.combined_sheet_name)
            progress.finish_sheet()
            for log in cfg.shift_logs:
                progress.start_sheet(log.sheet_name)
                sheet, stat = self._log_sheet(log, merged, columns, key)
                sheets.append(sheet)
                stats.append(stat)
                progress.set_postfix(matched=stat.matched_rows, rows=stat.total_rows)
                progress.finish_sheet()

        end_time = datetime.now(UTC)
        return ReportResult(
            key=key,
            sheets=sheets,
            diagnostics=self.diagnostics.messages(),
            top_rows=len(top),
            bottom_rows=len(bottom),
            merged_rows=len(merged),
            log_stats=stats,
            start_time=start_time,
            end_time=end_time,
            elapsed_seconds=(end_time - start_time).total_seconds(),
        )
