from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import date, datetime, time, timedelta

from dateutil import parser as dateparser

from shiftrecon.logging.error_log import DiagnosticLog
from shiftrecon.models.diagnostic import COLUMN_MISSING, TIMESTAMP_UNRESOLVED
from shiftrecon.models.table import Table

"""Timestamp resolution from separate date and time fields.

Station firmware versions disagree on formats, so each field is tried
against an ordered list of attempts, most specific first. Every attempt is a
pure function returning a value or None; the first non-None result wins.

Date:  28-Jan-2026 -> 28-Jan-26 -> generic (dateutil)
Time:  12-hour (only when an AM/PM marker is present) or strict 24-hour
       hh:mm:ss.fff / hh:mm:ss -> generic duration -> combined "date time"
"""

__all__ = [
    "parse_date",
    "parse_time_of_day",
    "resolve_timestamp",
    "annotate_instants",
    "sort_by_instant",
]

logger = logging.getLogger(__name__)

DATE_FORMATS = ("%d-%b-%Y", "%d-%b-%y")

# %I accepts both "9" and "09", so one pattern covers h and hh.
TWELVE_HOUR_FORMATS = ("%I:%M:%S %p", "%I:%M:%S.%f %p")

_STRICT_MS = re.compile(r"^(\d{2}):(\d{2}):(\d{2})\.(\d{3})$")
_STRICT = re.compile(r"^(\d{2}):(\d{2}):(\d{2})$")
_DURATION = re.compile(
    r"^(?:(\d+)\.)?(\d{1,2}):(\d{1,2})(?::(\d{1,2})(?:\.(\d{1,7}))?)?$"
)
_DAYS_ONLY = re.compile(r"^\d+$")

_AM_PM = re.compile(r"am|pm", re.IGNORECASE)

DateAttempt = Callable[[str], "date | None"]
TimeAttempt = Callable[[str], "timedelta | None"]


def _exact_date(fmt: str) -> DateAttempt:
    def attempt(value: str) -> date | None:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            return None
    return attempt


def _generic_date(value: str) -> date | None:
    if not value:
        return None
    try:
        return dateparser.parse(value).date()
    except (ValueError, OverflowError):
        return None


DATE_ATTEMPTS: tuple[DateAttempt, ...] = (
    *(_exact_date(f) for f in DATE_FORMATS),
    _generic_date,
)


def _clock(h: int, m: int, s: int, micro: int = 0) -> timedelta | None:
    if h > 23 or m > 59 or s > 59:
        return None
    return timedelta(hours=h, minutes=m, seconds=s, microseconds=micro)


def _twelve_hour(fmt: str) -> TimeAttempt:
    def attempt(value: str) -> timedelta | None:
        try:
            t = datetime.strptime(value, fmt).time()
        except ValueError:
            return None
        return timedelta(hours=t.hour, minutes=t.minute, seconds=t.second, microseconds=t.microsecond)
    return attempt


def _strict_millis(value: str) -> timedelta | None:
    m = _STRICT_MS.match(value)
    if m is None:
        return None
    h, mi, s, ms = (int(g) for g in m.groups())
    return _clock(h, mi, s, ms * 1000)


def _strict_seconds(value: str) -> timedelta | None:
    m = _STRICT.match(value)
    if m is None:
        return None
    h, mi, s = (int(g) for g in m.groups())
    return _clock(h, mi, s)


def _generic_duration(value: str) -> timedelta | None:
    """Loose ``[d.]h:m[:s[.fffffff]]`` or a bare day count."""
    if _DAYS_ONLY.match(value):
        return timedelta(days=int(value))
    m = _DURATION.match(value)
    if m is None:
        return None
    days, h, mi, s, frac = m.groups()
    micro = int((frac or "").ljust(6, "0")[:6] or 0)
    clock = _clock(int(h), int(mi), int(s or 0), micro)
    if clock is None:
        return None
    return clock + timedelta(days=int(days or 0))


TWELVE_HOUR_ATTEMPTS: tuple[TimeAttempt, ...] = tuple(_twelve_hour(f) for f in TWELVE_HOUR_FORMATS)
TWENTY_FOUR_HOUR_ATTEMPTS: tuple[TimeAttempt, ...] = (_strict_millis, _strict_seconds)


def _first(attempts, value):
    for attempt in attempts:
        result = attempt(value)
        if result is not None:
            return result
    return None


def parse_date(value: str) -> date | None:
    return _first(DATE_ATTEMPTS, value.strip())


def parse_time_of_day(value: str) -> timedelta | None:
    """Time-of-day offset from midnight, or None. Does not try the combined parse."""
    value = value.strip()
    if _AM_PM.search(value):
        attempts = TWELVE_HOUR_ATTEMPTS
    else:
        attempts = TWENTY_FOUR_HOUR_ATTEMPTS
    return _first((*attempts, _generic_duration), value)


def _combined(date_field: str, time_field: str) -> datetime | None:
    combined = f"{date_field} {time_field}".strip()
    if not combined:
        return None
    try:
        parsed = dateparser.parse(combined)
    except (ValueError, OverflowError):
        return None
    # naive like every other resolved instant
    return parsed.replace(tzinfo=None)


def resolve_timestamp(date_field: str, time_field: str) -> datetime | None:
    """Combine a date field and a time field into one naive datetime.

    Returns None when the date cannot be parsed by any attempt, or when
    neither the time cascade nor the combined fallback succeeds.
    """
    date_field = date_field.strip()
    time_field = time_field.strip()
    day = parse_date(date_field)
    if day is None:
        return None
    offset = parse_time_of_day(time_field)
    if offset is not None:
        return datetime.combine(day, time()) + offset
    return _combined(date_field, time_field)


def annotate_instants(
    table: Table,
    date_column: str,
    time_column: str,
    diagnostics: DiagnosticLog | None = None,
) -> int:
    """Set ``row.instant`` on every row of ``table`` in place.

    The columns are located case-insensitively (``Top:Date`` also matches
    ``topdate``). Returns the number of rows that received an instant.
    """
    date_col = table.find_column([date_column])
    time_col = table.find_column([time_column])
    if date_col is None or time_col is None:
        message = f"date/time columns not found (wanted {date_column!r}, {time_column!r})"
        if diagnostics is not None:
            diagnostics.record(table.source, -1, COLUMN_MISSING, message)
        else:
            logger.warning("%s: %s", table.source, message)
        return 0

    resolved = 0
    for row in table.rows:
        date_value = row.get(date_col, "")
        time_value = row.get(time_col, "")
        row.instant = resolve_timestamp(date_value, time_value)
        if row.instant is None:
            if diagnostics is not None:
                diagnostics.record(
                    table.source,
                    row.line_number,
                    TIMESTAMP_UNRESOLVED,
                    f"cannot resolve timestamp from {date_value!r} {time_value!r}",
                )
            continue
        resolved += 1
    logger.debug("source=%s resolved=%d/%d", table.source, resolved, len(table.rows))
    return resolved


def sort_by_instant(table: Table) -> None:
    """Stable ascending sort by instant; rows without one sort first."""
    table.rows.sort(key=lambda r: (r.instant is not None, r.instant or datetime.min))
