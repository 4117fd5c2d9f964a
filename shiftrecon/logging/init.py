from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from pathlib import Path

"""Logging for report runs.

Console lines carry one of the labels INFO|WARN|ERROR|SUMMARY so the scheduler
console can be grepped uniformly. Once the config is known, ``attach_run_log``
adds a midnight-rotated ``shiftrecon.log`` under ``logs_directory`` with the
same labels plus a timestamp, so unattended scheduled runs leave a trail.
Module loggers are children of ``shiftrecon`` and propagate to both.
"""

__all__ = [
    "setup_logging",
    "attach_run_log",
    "get_logger",
    "set_debug",
    "log_summary",
    "reset_logging",
    "LOGGER_NAME",
    "RUN_LOG_NAME",
    "SUMMARY_LEVEL",
]

LOGGER_NAME = "shiftrecon"
RUN_LOG_NAME = "shiftrecon.log"
RUN_LOG_BACKUPS = 14

# between INFO=20 and WARNING=30
SUMMARY_LEVEL = 25

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """``<LABEL> <message>``, optionally preceded by the record time."""

    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def __init__(self, timestamps: bool = False) -> None:
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")
        self.timestamps = timestamps

    def format(self, record: logging.LogRecord) -> str:
        label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        line = f"{label} {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        if self.timestamps:
            return f"{self.formatTime(record, self.datefmt)} {line}"
        return line


def setup_logging() -> logging.Logger:
    """Configure the ``shiftrecon`` logger with a stdout handler (idempotent)."""
    global _logger

    if _logger is not None:
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.INFO)
    console.setFormatter(LabeledFormatter())
    logger.addHandler(console)
    logger.propagate = False

    _logger = logger
    return logger


def attach_run_log(logs_directory: str | Path) -> Path | None:
    """Add the rotating run log under ``logs_directory``.

    Attaching the same file twice is a no-op. An unwritable directory is
    reported on the console and the run continues without a file log.

    Returns:
        Path of the run log, or None when it could not be opened.
    """
    logger = get_logger()
    path = Path(logs_directory) / RUN_LOG_NAME
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == os.path.abspath(path):
            return path

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.TimedRotatingFileHandler(
            path, when="midnight", backupCount=RUN_LOG_BACKUPS, encoding="utf-8"
        )
    except OSError as e:
        logger.warning(f"run log disabled: {e}")
        return None

    # follow the console level so --debug reaches the file too
    handler.setLevel(min(h.level for h in logger.handlers))
    handler.setFormatter(LabeledFormatter(timestamps=True))
    logger.addHandler(handler)
    return path


def get_logger() -> logging.Logger:
    if _logger is None:
        return setup_logging()
    return _logger


def set_debug(logger: logging.Logger) -> None:
    for h in logger.handlers:
        h.setLevel(logging.DEBUG)
    logger.setLevel(logging.DEBUG)


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Forget the configured logger and close its file handlers (tests)."""
    global _logger
    if _logger is not None:
        for handler in _logger.handlers[:]:
            if isinstance(handler, logging.FileHandler):
                _logger.removeHandler(handler)
                handler.close()
    _logger = None
