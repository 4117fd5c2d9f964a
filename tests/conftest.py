# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path

import pytest

from shiftrecon.logging.init import reset_logging

TOP_HEADER = "Top:Date,Top:Timestamp,Shift,top:overall pass,Top:Width"
BOTTOM_HEADER = "Bot:Date,Bot:Timestamp,bot:overall_result,Bot:Height"


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        for sub in ("config", "logs", "reports", "data/top", "data/bottom", "data/s1", "data/s2"):
            (p / sub).mkdir(parents=True)
        monkeypatch.chdir(p)
        monkeypatch.delenv("SMTP_PASSWORD", raising=False)
        yield p


@pytest.fixture(autouse=True)
def _fresh_logging():
    # the stdout handler binds to the stream current at setup time (capsys)
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """sensors:
  top:
    directory: ./data/top
    date_column: "Top:Date"
    timestamp_column: "Top:Timestamp"
    result_column: "top:overall pass"
  bottom:
    directory: ./data/bottom
    date_column: "Bot:Date"
    timestamp_column: "Bot:Timestamp"
    result_column: "bot:overall_result"
shift_logs:
  - station: S1
    directory: ./data/s1
  - station: S2
    directory: ./data/s2
output_directory: ./reports
logs_directory: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "report.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def write_source() -> Callable[[Path, list[str]], Path]:
    def _write(path: Path, lines: list[str]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path
    return _write


@pytest.fixture()
def sensor_exports(temp_workdir: Path, write_source) -> tuple[Path, Path]:
    """Top/bottom exports where two of three rows pair within 1.5 s."""
    top = write_source(
        temp_workdir / "data" / "top" / "Top_values_Shift_1_28-Jan-2026.csv",
        [
            TOP_HEADER,
            "28-Jan-2026,10:00:00.000,1,1,100.5",
            "28-Jan-2026,10:00:05.000,1,0,101.0",
            "28-Jan-2026,10:00:20.000,1,1,99.9",
        ],
    )
    bottom = write_source(
        temp_workdir / "data" / "bottom" / "Bot_values_1.csv",
        [
            BOTTOM_HEADER,
            "28-Jan-2026,10:00:00.500,1,50",
            "28-Jan-2026,10:00:10.000,1,51",
            "28-Jan-2026,10:00:20.400,1,52",
        ],
    )
    return top, bottom


@pytest.fixture()
def s1_log(temp_workdir: Path, write_source) -> Path:
    return write_source(
        temp_workdir / "data" / "s1" / "S1_Report_Shift_1_28-Jan-2026.csv",
        [
            "Date,Timestamp,Shift,Station,RN,RN",
            ",,,,TLB1,TIB1",
            "28-Jan-2026,09:59:55,1,S1,5,6",
            "28-Jan-2026,10:00:18,1,S1,7,8",
        ],
    )


@pytest.fixture()
def s2_log(temp_workdir: Path, write_source) -> Path:
    return write_source(
        temp_workdir / "data" / "s2" / "S2_Report_Shift_1_28-Jan-2026.csv",
        [
            "CHEP_PALLET_ID,Date,Timestamp,Shift,Station,Weight",
            ",,,,,kg",
            "P-100,28-Jan-2026,09:59:58,1,S2,20.5",
        ],
    )
