"""
On-Call Resolver

Finds the doctor on duty for a point in time by scanning the roster for
the first entry whose weekday matches and whose hour window contains the
current minute of the day. A window ending at 0H runs until midnight.
"""
import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from .reference import DutyRecord

log = logging.getLogger(__name__)

# Index 0 is Monday, following datetime.weekday()
WEEKDAYS_PT = ["segunda", "terça", "quarta", "quinta", "sexta", "sábado", "domingo"]

MINUTES_PER_DAY = 24 * 60


def weekday_name(now: datetime) -> str:
    return WEEKDAYS_PT[now.weekday()]


def window_minutes(record: DutyRecord) -> tuple[int, int]:
    """(start, end) in minutes since midnight; an end hour of 0 or 24 is end-of-day"""
    start = record.start_hour * 60
    end = MINUTES_PER_DAY if record.end_hour == 0 else record.end_hour * 60
    return start, end


def resolve_duty_doctor(roster, now: datetime) -> str | None:
    """Return the on-duty doctor's name at `now`, or None when nobody is on duty"""
    day = weekday_name(now)
    minute = now.hour * 60 + now.minute

    for record in roster:
        if record.day_of_week.strip().lower() != day:
            continue
        start, end = window_minutes(record)
        if start <= minute < end:
            log.info(f"[ONCALL] {day} {now:%H:%M} → {record.doctor_name}")
            return record.doctor_name

    log.info(f"[ONCALL] {day} {now:%H:%M} → nobody on duty")
    return None


def local_now(tz: str) -> datetime:
    return datetime.now(ZoneInfo(tz))
