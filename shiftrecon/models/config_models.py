from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the shift reconciliation report.

These are produced by ``shiftrecon.config.loader.load_config`` after schema
validation and default filling; nothing downstream reads raw YAML.
"""


@dataclass(frozen=True)
class SensorSourceConfig:
    """One sensor head export location (top or bottom)."""
    directory: str
    name_contains: str  # file name substring, e.g. "values"
    date_column: str
    timestamp_column: str
    result_column: str  # "overall result" column, matched by substring


@dataclass(frozen=True)
class ShiftLogConfig:
    """One shift-logging station (S1 / S2)."""
    station: str
    directory: str
    sheet_name: str
    default_headers: tuple[str, ...]  # minimal schema when no sample file exists


@dataclass(frozen=True)
class PriorityColumns:
    """Column names filling the priority roles (matched case-insensitively)."""
    station: str = "Station"
    date: str = "Date"
    timestamp: str = "Timestamp"
    shift: str = "Shift"
    primary_key: str = "CHEP_PALLET_ID"

    @property
    def leading(self) -> tuple[str, str, str]:
        # Only these three are moved to the front of a sheet.
        return (self.station, self.date, self.timestamp)

    def names(self) -> set[str]:
        return {
            n.casefold()
            for n in (self.station, self.date, self.timestamp, self.shift, self.primary_key)
        }


@dataclass(frozen=True)
class NotificationConfig:
    enabled: bool = False
    smtp_host: str = "localhost"
    smtp_port: int = 587
    use_tls: bool = True
    from_email: str = ""
    to_emails: tuple[str, ...] = ()
    cc_emails: tuple[str, ...] = ()
    subject: str = "Combined Report - Shift {shift} - {date}"
    body: str = (
        "Please find attached the Combined Report for {date} corresponding to Shift {shift}."
    )
    password: str | None = None  # resolved from SMTP_PASSWORD, never from YAML


@dataclass(frozen=True)
class ScheduleConfig:
    weekday_slots: tuple[str, ...] = ("06:00", "14:00", "22:00")
    sunday_slots: tuple[str, ...] = ("22:00",)
    saturday_slots: tuple[str, ...] = ()
    misfire_grace_seconds: int = 300  # a slot missed by more than this is skipped


@dataclass(frozen=True)
class ReportConfig:
    """Root configuration object for one report run."""
    top: SensorSourceConfig
    bottom: SensorSourceConfig
    shift_logs: tuple[ShiftLogConfig, ...]
    output_directory: str
    combined_sheet_name: str = "Gocator_Combined"
    derived_column: str = "Assured_Result"
    pair_tolerance_seconds: float = 1.5
    log_tolerance_seconds: float = 10.0
    priority: PriorityColumns = field(default_factory=PriorityColumns)
    write_combined_csv: bool = True
    logs_directory: str = "./logs"
    notification: NotificationConfig = field(default_factory=NotificationConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
