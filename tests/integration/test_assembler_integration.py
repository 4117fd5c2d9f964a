from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from shiftrecon.config.loader import load_config
from shiftrecon.errors import SourceMalformedError, SourceMissingError
from shiftrecon.logging.error_log import DiagnosticLog
from shiftrecon.models.diagnostic import LOG_SOURCE_ABSENT, NO_MATCHES, SOURCE_MISSING
from shiftrecon.models.report_result import ReportKey
from shiftrecon.services.assembler import ReportAssembler

MERGED_HEADERS = [
    "Top:Date",
    "Top:Timestamp",
    "Shift",
    "top:overall pass",
    "Top:Width",
    "bot:overall_result",
    "Bot:Height",
    "Assured_Result",
]


def _assemble(config_path: Path, logs: Path):
    diags = DiagnosticLog(logs)
    result = ReportAssembler(load_config(config_path), diags).generate_report()
    return result, diags


def test_full_report(write_config: Path, sensor_exports, s1_log, s2_log, temp_workdir: Path):
    result, diags = _assemble(write_config, temp_workdir / "logs")

    assert result.key == ReportKey("1", "28-Jan-2026")
    assert [s.name for s in result.sheets] == ["Gocator_Combined", "S1_Shift_Data", "S2_Shift_Data"]
    assert (result.top_rows, result.bottom_rows, result.merged_rows) == (3, 3, 2)
    assert len(diags) == 0

    combined = result.sheet("Gocator_Combined")
    assert combined.rows == [
        MERGED_HEADERS,
        ["28-Jan-2026", "10:00:00.000", "1", "1", "100.5", "1", "50", "1"],
        ["28-Jan-2026", "10:00:20.000", "1", "1", "99.9", "1", "52", "1"],
    ]

    s1 = result.sheet("S1_Shift_Data")
    assert s1.header_rows == 2
    assert s1.rows == [
        ["Station", "Date", "Timestamp", "Shift", "RN", "RN"],
        ["", "", "", "", "TLB1", "TIB1"],
        # merged timestamp replaces the log's own time
        ["S1", "28-Jan-2026", "10:00:00.000", "1", "5", "6"],
        ["S1", "28-Jan-2026", "10:00:20.000", "1", "7", "8"],
    ]

    s2 = result.sheet("S2_Shift_Data")
    assert s2.rows == [
        ["Station", "Date", "Timestamp", "CHEP_PALLET_ID", "Shift", "Weight"],
        ["", "", "", "", "", "kg"],
        ["S2", "28-Jan-2026", "10:00:00.000", "P-100", "1", "20.5"],
        # 22 s after the only log row: outside the window, zero-filled
        ["S2", "28-Jan-2026", "10:00:20.000", "", "1", "0"],
    ]

    stats = {s.station: (s.matched_rows, s.total_rows, s.source_file) for s in result.log_stats}
    assert stats == {
        "S1": (2, 2, "S1_Report_Shift_1_28-Jan-2026.csv"),
        "S2": (1, 2, "S2_Report_Shift_1_28-Jan-2026.csv"),
    }


def test_absent_logs_still_one_row_per_merged_row(write_config: Path, sensor_exports, temp_workdir: Path):
    result, diags = _assemble(write_config, temp_workdir / "logs")

    assert diags.kinds() == [LOG_SOURCE_ABSENT, LOG_SOURCE_ABSENT]
    assert result.warning_count == 2
    assert [s.name for s in result.sheets] == ["Gocator_Combined", "S1_Shift_Data", "S2_Shift_Data"]
    s1 = result.sheet("S1_Shift_Data")
    s2 = result.sheet("S2_Shift_Data")
    assert len(s1.data_rows) == len(s2.data_rows) == result.merged_rows == 2
    assert s1.rows[0] == ["Station", "Date", "Timestamp", "Shift"]
    assert s1.data_rows[0] == ["S1", "28-Jan-2026", "10:00:00.000", "1"]
    assert s2.rows[0] == ["Station", "Date", "Timestamp", "CHEP_PALLET_ID", "Shift"]
    assert s2.data_rows[1] == ["S2", "28-Jan-2026", "10:00:20.000", "", "1"]
    assert [s.source_file for s in result.log_stats] == [None, None]


def test_absent_log_samples_schema_from_directory(
    write_config: Path, sensor_exports, temp_workdir: Path, write_source
):
    # a log for another shift: not used for matching, only for its columns
    write_source(
        temp_workdir / "data" / "s1" / "S1_Report_Shift_2_27-Jan-2026.csv",
        ["Date,Timestamp,Station,Count", ",,,pcs", "27-Jan-2026,18:00:00,S1,9"],
    )
    result, _ = _assemble(write_config, temp_workdir / "logs")
    s1 = result.sheet("S1_Shift_Data")
    assert s1.rows[:2] == [["Station", "Date", "Timestamp", "Count"], ["", "", "", "pcs"]]
    assert s1.data_rows == [
        ["S1", "28-Jan-2026", "10:00:00.000", "0"],
        ["S1", "28-Jan-2026", "10:00:20.000", "0"],
    ]


def test_unparseable_log_timestamp_never_matches(
    write_config: Path, temp_workdir: Path, write_source, s1_log
):
    write_source(
        temp_workdir / "data" / "top" / "Top_values_Shift_1_28-Jan-2026.csv",
        ["Top:Date,Top:Timestamp,Shift", "28-Jan-2026,10:00:00.000,1"],
    )
    write_source(
        temp_workdir / "data" / "bottom" / "Bot_values.csv",
        ["Bot:Date,Bot:Timestamp,Bot:Height", "28-Jan-2026,10:00:00.100,5"],
    )
    write_source(
        s1_log,
        ["Date,Timestamp,Shift,Station,RN", ",,,,TLB1", "28-Jan-2026,soon,1,S1,3"],
    )
    result, diags = _assemble(write_config, temp_workdir / "logs")
    assert "TIMESTAMP_UNRESOLVED" in diags.kinds()
    assert result.sheet("S1_Shift_Data").data_rows == [["S1", "28-Jan-2026", "10:00:00.000", "1", "0"]]
    # no result columns on either head: derived column is empty
    assert result.sheet("Gocator_Combined").data_rows == [
        ["28-Jan-2026", "10:00:00.000", "1", "5", ""]
    ]


def test_no_matches_is_a_warning(write_config: Path, temp_workdir: Path, write_source):
    write_source(
        temp_workdir / "data" / "top" / "Top_values_Shift_3_28-Jan-2026.csv",
        ["Top:Date,Top:Timestamp,Shift", "28-Jan-2026,10:00:00,3"],
    )
    write_source(
        temp_workdir / "data" / "bottom" / "Bot_values.csv",
        ["Bot:Date,Bot:Timestamp", "28-Jan-2026,11:00:00"],
    )
    result, diags = _assemble(write_config, temp_workdir / "logs")
    assert NO_MATCHES in diags.kinds()
    assert result.merged_rows == 0
    # key falls back to the top export's file name
    assert result.key == ReportKey("3", "28-Jan-2026")
    assert [len(s.data_rows) for s in result.sheets] == [0, 0, 0]
    assert result.sheet("Gocator_Combined").rows == [["Top:Date", "Top:Timestamp", "Shift", "Assured_Result"]]


def test_report_key_defaults_to_today(write_config: Path, temp_workdir: Path, write_source):
    write_source(
        temp_workdir / "data" / "top" / "top_values.csv",
        ["Top:Date,Top:Timestamp", "28-Jan-2026,10:00:00"],
    )
    write_source(
        temp_workdir / "data" / "bottom" / "bot_values.csv",
        ["Bot:Date,Bot:Timestamp", "28-Jan-2026,12:00:00"],
    )
    cfg = load_config(write_config)
    assembler = ReportAssembler(cfg, DiagnosticLog(temp_workdir / "logs"), today=lambda: date(2026, 2, 3))
    assert assembler.generate_report().key == ReportKey("Unknown", "03-Feb-2026")


def test_missing_top_export(write_config: Path, temp_workdir: Path, sensor_exports):
    sensor_exports[0].unlink()
    diags = DiagnosticLog(temp_workdir / "logs")
    with pytest.raises(SourceMissingError):
        ReportAssembler(load_config(write_config), diags).generate_report()
    assert diags.kinds() == [SOURCE_MISSING]


def test_missing_sensor_directory(write_config: Path, temp_workdir: Path, sensor_exports):
    sensor_exports[1].unlink()
    (temp_workdir / "data" / "bottom").rmdir()
    with pytest.raises(SourceMissingError):
        _assemble(write_config, temp_workdir / "logs")


def test_header_only_export_is_malformed(write_config: Path, temp_workdir: Path, sensor_exports, write_source):
    write_source(sensor_exports[1], ["Bot:Date,Bot:Timestamp"])
    with pytest.raises(SourceMalformedError):
        _assemble(write_config, temp_workdir / "logs")


def test_export_with_only_ragged_rows_is_malformed(
    write_config: Path, temp_workdir: Path, sensor_exports, write_source
):
    write_source(sensor_exports[1], ["Bot:Date,Bot:Timestamp", "28-Jan-2026"])
    with pytest.raises(SourceMalformedError):
        _assemble(write_config, temp_workdir / "logs")
