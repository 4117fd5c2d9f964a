from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

from shiftrecon.logging.error_log import DiagnosticLog
from shiftrecon.models.diagnostic import (
    LOG_SOURCE_ABSENT,
    ROW_SKIPPED,
    SINK_FAILURE,
    Diagnostic,
)


def test_diagnostic_creation_and_json_line():
    diag = Diagnostic.create(source="top.csv", row=4, kind=ROW_SKIPPED, message="has 2 columns")
    data = json.loads(diag.to_json_line())
    assert data["source"] == "top.csv"
    assert data["row"] == 4
    assert data["kind"] == ROW_SKIPPED
    assert data["timestamp"].endswith("Z")
    assert set(data.keys()) == {"timestamp", "source", "row", "kind", "message"}


def test_diagnostic_str():
    assert str(Diagnostic.create("top.csv", 4, ROW_SKIPPED, "m")) == "ROW_SKIPPED top.csv row 4: m"
    assert str(Diagnostic.create("S1", -1, LOG_SOURCE_ABSENT, "m")) == "LOG_SOURCE_ABSENT S1: m"


def test_flush_writes_json_lines(temp_workdir: Path):
    log = DiagnosticLog(temp_workdir / "logs")
    log.record("top.csv", 2, ROW_SKIPPED, "short row")
    log.record("S2", -1, LOG_SOURCE_ABSENT, "no file")
    path = log.flush()
    assert path is not None and path.exists()
    assert path.name.startswith("diagnostics-") and path.suffix == ".log"
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert [json.loads(raw)["kind"] for raw in lines] == [ROW_SKIPPED, LOG_SOURCE_ABSENT]
    # records stay available for the run result
    assert len(log) == 2
    assert log.messages()[0] == "ROW_SKIPPED top.csv row 2: short row"


def test_flush_nothing_pending(temp_workdir: Path):
    log = DiagnosticLog(temp_workdir / "logs")
    assert log.flush() is None
    assert list((temp_workdir / "logs").iterdir()) == []


def test_multiple_flushes_append_only_new_records(temp_workdir: Path):
    log = DiagnosticLog(temp_workdir / "logs")
    log.record("a", 1, ROW_SKIPPED, "first")
    path = log.flush()
    log.record("a", 2, ROW_SKIPPED, "second")
    assert log.flush() == path
    assert log.flush() is None
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert [json.loads(raw)["message"] for raw in lines] == ["first", "second"]


def test_record_echoes_to_logger(temp_workdir: Path):
    log = DiagnosticLog(temp_workdir / "logs")
    with patch("shiftrecon.logging.error_log.logger") as mock_logger:
        log.record("S1", -1, LOG_SOURCE_ABSENT, "no file")
        log.record("out", -1, SINK_FAILURE, "disk full")
    mock_logger.warning.assert_called_once()
    mock_logger.error.assert_called_once()
    assert log.kinds() == [LOG_SOURCE_ABSENT, SINK_FAILURE]
