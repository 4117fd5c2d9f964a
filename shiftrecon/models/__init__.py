"""Domain models for the shift reconciliation report.

Tables and rows are produced by the parser, joined rows by the join stage,
column plans by the schema reconciler and results by the report assembler.
"""

from .column_plan import ColumnPlan
from .config_models import (
    NotificationConfig,
    PriorityColumns,
    ReportConfig,
    ScheduleConfig,
    SensorSourceConfig,
    ShiftLogConfig,
)
from .diagnostic import Diagnostic
from .joined_row import JoinedRow
from .report_result import LogSheetStat, ReportKey, ReportResult, SheetOutput
from .row_data import Row
from .table import Table, find_column

__all__ = [
    # Configuration models
    "NotificationConfig",
    "PriorityColumns",
    "ReportConfig",
    "ScheduleConfig",
    "SensorSourceConfig",
    "ShiftLogConfig",
    # Table models
    "Row",
    "Table",
    "find_column",
    "JoinedRow",
    "ColumnPlan",
    # Result models
    "Diagnostic",
    "LogSheetStat",
    "ReportKey",
    "ReportResult",
    "SheetOutput",
]
