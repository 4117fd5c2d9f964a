from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from shiftrecon.models.config_models import (
    NotificationConfig,
    PriorityColumns,
    ReportConfig,
    ScheduleConfig,
    SensorSourceConfig,
    ShiftLogConfig,
)

"""Config loader.

Responsibilities:
- Load the YAML report config (default config/report.yml)
- Validate it against config_schema.json shipped next to this module
- Apply defaults for every optional key
- Resolve the SMTP password from the environment (SMTP_PASSWORD)
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/report.yml")
PASSWORD_ENV = "SMTP_PASSWORD"

# Minimal schemas used when a shift-log directory has no file to sample
DEFAULT_LOG_HEADERS: dict[str, tuple[str, ...]] = {
    "S1": ("Date", "Timestamp", "Shift", "Station"),
    "S2": ("CHEP_PALLET_ID", "Date", "Timestamp", "Shift", "Station"),
}
FALLBACK_LOG_HEADERS = ("Date", "Timestamp", "Shift", "Station")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: the schema file is missing or invalid, or the config
            fails validation (missing required keys, wrong types, unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _sensor(raw: dict[str, Any], default_contains: str) -> SensorSourceConfig:
    return SensorSourceConfig(
        directory=raw["directory"],
        name_contains=raw.get("name_contains", default_contains),
        date_column=raw["date_column"],
        timestamp_column=raw["timestamp_column"],
        result_column=raw.get("result_column", ""),
    )


def _shift_log(raw: dict[str, Any]) -> ShiftLogConfig:
    station = raw["station"]
    defaults = raw.get("default_headers") or DEFAULT_LOG_HEADERS.get(station, FALLBACK_LOG_HEADERS)
    return ShiftLogConfig(
        station=station,
        directory=raw["directory"],
        sheet_name=raw.get("sheet_name", f"{station}_Shift_Data"),
        default_headers=tuple(defaults),
    )


def _notification(raw: dict[str, Any]) -> NotificationConfig:
    base = NotificationConfig()
    return NotificationConfig(
        enabled=raw.get("enabled", base.enabled),
        smtp_host=raw.get("smtp_host", base.smtp_host),
        smtp_port=raw.get("smtp_port", base.smtp_port),
        use_tls=raw.get("use_tls", base.use_tls),
        from_email=raw.get("from_email", base.from_email),
        to_emails=tuple(raw.get("to_emails", ())),
        cc_emails=tuple(raw.get("cc_emails", ())),
        subject=raw.get("subject", base.subject),
        body=raw.get("body", base.body),
        password=os.getenv(PASSWORD_ENV) or None,
    )


def _schedule(raw: dict[str, Any]) -> ScheduleConfig:
    base = ScheduleConfig()
    return ScheduleConfig(
        weekday_slots=tuple(raw.get("weekday_slots", base.weekday_slots)),
        sunday_slots=tuple(raw.get("sunday_slots", base.sunday_slots)),
        saturday_slots=tuple(raw.get("saturday_slots", base.saturday_slots)),
        misfire_grace_seconds=raw.get("misfire_grace_seconds", base.misfire_grace_seconds),
    )


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ReportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    optional: dict[str, Any] = {
        key: data[key]
        for key in ("combined_sheet_name", "derived_column", "write_combined_csv", "logs_directory")
        if key in data
    }
    for key in ("pair_tolerance_seconds", "log_tolerance_seconds"):
        if key in data:
            optional[key] = float(data[key])

    sensors = data["sensors"]
    return ReportConfig(
        top=_sensor(sensors["top"], "values"),
        bottom=_sensor(sensors["bottom"], "values"),
        shift_logs=tuple(_shift_log(s) for s in data["shift_logs"]),
        output_directory=data["output_directory"],
        priority=PriorityColumns(**data.get("priority_columns", {})),
        notification=_notification(data.get("notification", {})),
        schedule=_schedule(data.get("schedule", {})),
        **optional,
    )
