from __future__ import annotations

from datetime import datetime

from shiftrecon.models.config_models import PriorityColumns
from shiftrecon.models.row_data import Row
from shiftrecon.models.table import Table
from shiftrecon.schema.reconciler import reconcile
from shiftrecon.services.assembler import PrimaryColumns, header_rows, render_log_rows

PRIMARY_HEADERS = ("Top:Date", "Top:Timestamp", "Shift", "Top:Width")
LOG_HEADERS = ("CHEP_PALLET_ID", "Date", "Timestamp", "Shift", "Station", "Weight")
COLUMNS = PrimaryColumns(date="Top:Date", timestamp="Top:Timestamp", shift="Shift")
PRIORITY = PriorityColumns()


def _primary_row(time: str, instant: datetime | None) -> Row:
    row = Row.from_values(PRIMARY_HEADERS, ("28-Jan-2026", time, "1", "100"))
    row.instant = instant
    return row


def _primary() -> Table:
    return Table(
        headers=PRIMARY_HEADERS,
        rows=[
            _primary_row("10:00:00.000", datetime(2026, 1, 28, 10, 0, 0)),
            _primary_row("garbled", None),
            _primary_row("10:00:20.000", datetime(2026, 1, 28, 10, 0, 20)),
        ],
    )


def _plan():
    return reconcile(LOG_HEADERS, ("", "", "", "", "", "kg"), PRIORITY.leading)


def test_header_rows_include_aligned_sub_headers():
    assert header_rows(_plan()) == [
        ["Station", "Date", "Timestamp", "CHEP_PALLET_ID", "Shift", "Weight"],
        ["", "", "", "", "", "kg"],
    ]


def test_row_without_instant_is_blank_in_priority_columns():
    matched = Row.from_values(LOG_HEADERS, ("P-100", "28-Jan-2026", "09:59:58", "1", "S2", "20.5"))

    rows, matched_count = render_log_rows(_primary(), _plan(), [matched, None, None], COLUMNS, "S2", PRIORITY)

    assert matched_count == 1
    assert rows == [
        ["S2", "28-Jan-2026", "10:00:00.000", "P-100", "1", "20.5"],
        ["", "", "", "", "", "0"],
        ["S2", "28-Jan-2026", "10:00:20.000", "", "1", "0"],
    ]


def test_absent_log_fills_every_row_from_primary():
    rows, matched_count = render_log_rows(_primary(), _plan(), None, COLUMNS, "S2", PRIORITY)

    assert matched_count == 0
    assert len(rows) == 3
    assert rows[1] == ["S2", "28-Jan-2026", "garbled", "", "1", "0"]
