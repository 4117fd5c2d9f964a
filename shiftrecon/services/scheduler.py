from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.combining import OrTrigger
from apscheduler.triggers.cron import CronTrigger

from shiftrecon.models.config_models import ScheduleConfig

"""Shift-slot scheduling.

Reports are produced at shift changes: Monday-Friday 06:00, 14:00 and
22:00, Sunday 22:00 only (start of the week's first shift), no Saturday runs.
Slots come from ScheduleConfig and are turned into APScheduler cron triggers.
"""

__all__ = [
    "build_trigger",
    "next_scheduled_time",
    "run_forever",
]

logger = logging.getLogger(__name__)

SATURDAY = 5
SUNDAY = 6

JOB_ID = "shift-report"


def _parse_slot(slot: str) -> tuple[int, int]:
    hours, minutes = slot.split(":")
    return int(hours), int(minutes)


def _slots_for(day: datetime, schedule: ScheduleConfig) -> list[timedelta]:
    weekday = day.weekday()
    if weekday == SATURDAY:
        raw = schedule.saturday_slots
    elif weekday == SUNDAY:
        raw = schedule.sunday_slots
    else:
        raw = schedule.weekday_slots
    return sorted(timedelta(hours=h, minutes=m) for h, m in map(_parse_slot, raw))


def next_scheduled_time(now: datetime, schedule: ScheduleConfig) -> datetime:
    """First slot strictly after ``now``.

    Raises:
        ValueError: the schedule defines no slot on any day of the week
    """
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    for offset in range(8):
        day = midnight + timedelta(days=offset)
        for slot in _slots_for(day, schedule):
            candidate = day + slot
            if candidate > now:
                return candidate
    raise ValueError("schedule has no slots")


def build_trigger(schedule: ScheduleConfig, timezone: Any = None) -> OrTrigger:
    """One cron trigger per slot, combined; fires at whichever slot comes first.

    Raises:
        ValueError: the schedule defines no slot
    """
    triggers = []
    for days, slots in (
        ("mon-fri", schedule.weekday_slots),
        ("sat", schedule.saturday_slots),
        ("sun", schedule.sunday_slots),
    ):
        for slot in slots:
            hour, minute = _parse_slot(slot)
            triggers.append(CronTrigger(day_of_week=days, hour=hour, minute=minute, timezone=timezone))
    if not triggers:
        raise ValueError("schedule has no slots")
    return OrTrigger(triggers)


def _guarded(job: Callable[[], object], schedule: ScheduleConfig) -> Callable[[], None]:
    def run() -> None:
        try:
            job()
        except Exception:
            logger.exception("scheduled report run failed")
        target = next_scheduled_time(datetime.now(), schedule)
        logger.info("next report scheduled at %s", target.strftime("%Y-%m-%d %H:%M"))
    return run


def run_forever(
    job: Callable[[], object],
    schedule: ScheduleConfig,
    *,
    scheduler: BaseScheduler | None = None,
) -> None:
    """Run ``job`` at every slot until interrupted.

    A job that raises is logged and the next slot still fires. Missed slots
    are coalesced into a single run.
    """
    trigger = build_trigger(schedule)
    scheduler = scheduler if scheduler is not None else BlockingScheduler()
    scheduler.add_job(
        _guarded(job, schedule),
        trigger,
        id=JOB_ID,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=schedule.misfire_grace_seconds,
    )
    now = datetime.now()
    target = next_scheduled_time(now, schedule)
    logger.info(
        "next report scheduled at %s (in %.2f minutes)",
        target.strftime("%Y-%m-%d %H:%M"),
        (target - now).total_seconds() / 60,
    )
    scheduler.start()
