from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from shiftrecon.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from shiftrecon.errors import ReportError
from shiftrecon.logging.init import attach_run_log, log_summary, set_debug, setup_logging
from shiftrecon.models.config_models import ReportConfig
from shiftrecon.parsing.table_parser import load_table
from shiftrecon.services.discovery import any_csv, latest_matching
from shiftrecon.services.runner import run_report
from shiftrecon.services.scheduler import run_forever
from shiftrecon.services.summary import render_summary_line

"""CLI entrypoint.

- Load ``.env`` (overrides the process environment) and the YAML config
- Run one report, or wait for shift slots with ``--schedule``
- Print the SUMMARY line and map the outcome to an exit code
"""

EXIT_SUCCESS = 0
EXIT_WARNINGS = 2
EXIT_FATAL = 1

SAMPLE_ROWS = 3


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load ``.env`` with python-dotenv; its values win over the environment (SMTP_PASSWORD)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Shift report builder for dual-head sensor exports")
    p.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="Path to the YAML config")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--no-email", action="store_true", help="Write the report but do not send it")
    p.add_argument("--schedule", action="store_true", help="Run at every configured shift slot")
    p.add_argument("--inspect-data", action="store_true", help="Print source headers & first rows then exit")
    return p.parse_args(argv)


def _inspect_file(path: Path | None, label: str, header_row_count: int) -> None:
    if path is None:
        print(f"{label}: no file found")
        return
    print(f"FILE: {path.name} ({label})")
    try:
        table = load_table(path, header_row_count=header_row_count)
    except ReportError as e:
        print(f"  read_error: {e}")
        return
    print(f"  headers={list(table.headers)}")
    if table.sub_headers is not None:
        print(f"  sub_headers={list(table.sub_headers)}")
    print("  sample_rows=", [list(r.values) for r in table.rows[:SAMPLE_ROWS]])


def _inspect_data(cfg: ReportConfig) -> int:
    for label, sensor in (("top", cfg.top), ("bottom", cfg.bottom)):
        try:
            path = latest_matching(Path(sensor.directory), sensor.name_contains)
        except ReportError as e:
            print(f"inspect: {e}")
            return EXIT_FATAL
        _inspect_file(path, label, header_row_count=1)
    for log in cfg.shift_logs:
        _inspect_file(any_csv(Path(log.directory)), log.station, header_row_count=2)
    return EXIT_SUCCESS


def _run_once(cfg: ReportConfig, send: bool) -> int:
    logger = setup_logging()
    try:
        result = run_report(cfg, send=send)
    except ReportError as e:
        logger.error(f"report: {e}")
        return EXIT_FATAL

    if result.workbook_path is not None:
        logger.info(f"report saved to: {result.workbook_path}")
    summary_line = render_summary_line(result)
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line[len("SUMMARY "):])
    return EXIT_WARNINGS if result.warning_count else EXIT_SUCCESS


def _run_scheduled(cfg: ReportConfig, send: bool) -> int:
    logger = setup_logging()
    logger.info("scheduler started")
    try:
        run_forever(lambda: _run_once(cfg, send), cfg.schedule)
    except KeyboardInterrupt:
        logger.info("scheduler stopped")
    except ValueError as e:
        logger.error(f"schedule: {e}")
        return EXIT_FATAL
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an empty list from tests must not fall back to sys.argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(Path(args.config))
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    attach_run_log(cfg.logs_directory)
    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    if args.inspect_data:
        return _inspect_data(cfg)

    send = not args.no_email
    if args.schedule:
        return _run_scheduled(cfg, send)
    return _run_once(cfg, send)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
