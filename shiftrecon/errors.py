from __future__ import annotations

"""Exception hierarchy for report generation.

Only source-level and sink-level problems are raised; per-row problems are
recorded as diagnostics and never interrupt a run.
"""


class ReportError(Exception):
    """Base exception for report generation errors."""


class SourceMissingError(ReportError):
    """A required input directory or file cannot be located."""


class SourceMalformedError(ReportError):
    """A source exists but is unreadable or has too few lines."""


class SinkError(ReportError):
    """Writing the rendered workbook or CSV failed."""
