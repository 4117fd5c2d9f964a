from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

from ..errors import SinkError
from ..excel.writer import write_csv, write_workbook
from ..logging.error_log import DiagnosticLog
from ..models.config_models import ReportConfig
from ..models.diagnostic import NOTIFY_FAILURE, SINK_FAILURE
from ..models.report_result import ReportResult
from .assembler import ReportAssembler
from .notify import Notifier

"""One complete report run.

1. assemble the sheets (ReportAssembler)
2. write the workbook, and the combined CSV when enabled
3. send the workbook when notification is enabled
4. flush the diagnostic log once

Source and sink errors propagate to the caller after being recorded; a failed
notification only adds a diagnostic.
"""

__all__ = [
    "run_report",
]

logger = logging.getLogger(__name__)


def _flush(diagnostics: DiagnosticLog) -> None:
    try:
        path = diagnostics.flush()
    except OSError as e:
        logger.error("failed to write diagnostic log: %s", e)
        return
    if path is not None:
        logger.info("diagnostics written to: %s", path)


def run_report(
    config: ReportConfig,
    send: bool = True,
    diagnostics: DiagnosticLog | None = None,
) -> ReportResult:
    """Generate, write and optionally deliver one report.

    Args:
        config: report configuration
        send: False suppresses notification even when enabled in config
        diagnostics: buffer for this run (a fresh one when None)

    Returns:
        ReportResult with output paths and the final diagnostic list

    Raises:
        SourceMissingError / SourceMalformedError: a sensor source is unusable
        SinkError: the workbook or CSV could not be written
    """
    diagnostics = diagnostics if diagnostics is not None else DiagnosticLog(config.logs_directory)
    try:
        result = ReportAssembler(config, diagnostics).generate_report()

        output_dir = Path(config.output_directory)
        csv_path = None
        try:
            if config.write_combined_csv:
                combined = result.sheet(config.combined_sheet_name)
                csv_path = write_csv(output_dir / result.key.csv_name, combined)
            workbook_path = write_workbook(output_dir / result.key.workbook_name, result.sheets)
        except SinkError as e:
            diagnostics.record(str(output_dir), -1, SINK_FAILURE, str(e))
            raise

        if send and config.notification.enabled:
            if not Notifier(config.notification).send_report(result.key, workbook_path):
                diagnostics.record(
                    "notify", -1, NOTIFY_FAILURE, f"failed to send {workbook_path.name}"
                )
        elif config.notification.enabled:
            logger.info("notification skipped (--no-email)")
    finally:
        _flush(diagnostics)

    return dataclasses.replace(
        result,
        diagnostics=diagnostics.messages(),
        workbook_path=workbook_path,
        csv_path=csv_path,
    )
