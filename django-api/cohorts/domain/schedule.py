"""Recurring session date generation for bulk session creation."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from cohorts.domain.value_objects import Recurrence

MAX_BULK_SESSIONS = 52


@dataclass(frozen=True)
class BulkSchedule:
    """Parameters for generating a run of sessions.

    day_of_week uses 0 = Sunday through 6 = Saturday.
    """

    count: int
    start_date: datetime
    recurrence: Recurrence
    time_of_day: time
    duration_minutes: int
    day_of_week: int | None = None

    def __post_init__(self) -> None:
        if not 1 <= self.count <= MAX_BULK_SESSIONS:
            raise ValueError(f"count must be between 1 and {MAX_BULK_SESSIONS}")
        if self.duration_minutes <= 0:
            raise ValueError("duration must be positive")
        if self.recurrence.aligns_to_weekday:
            if self.day_of_week is None:
                raise ValueError("dayOfWeek is required for weekly and fortnightly schedules")
            if not 0 <= self.day_of_week <= 6:
                raise ValueError("dayOfWeek must be between 0 (Sunday) and 6 (Saturday)")


@dataclass(frozen=True)
class SessionSlot:
    """One generated session window, in UTC."""

    number: int
    starts_at: datetime
    ends_at: datetime

    @property
    def title(self) -> str:
        return f"Session {self.number}"


def parse_time_of_day(value: str) -> time:
    """Parse an ``HH:MM`` string."""
    try:
        hours, minutes = value.split(":")
        return time(hour=int(hours), minute=int(minutes))
    except (ValueError, AttributeError) as exc:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM") from exc


def resolve_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone {name!r}") from exc


def _first_on_weekday(start: date, day_of_week: int) -> date:
    # date.weekday() is Monday=0; convert to the Sunday=0 convention.
    current = (start.weekday() + 1) % 7
    return start + timedelta(days=(day_of_week - current) % 7)


def generate_slots(schedule: BulkSchedule, tz_name: str, first_number: int = 1) -> list[SessionSlot]:
    """Lay out ``schedule.count`` sessions starting from ``first_number``.

    Local dates are computed in the cohort timezone so a schedule keeps its
    wall-clock time across daylight-saving changes.
    """
    tz = resolve_timezone(tz_name)
    start = schedule.start_date
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    local_day = start.astimezone(tz).date()
    if schedule.recurrence.aligns_to_weekday:
        local_day = _first_on_weekday(local_day, schedule.day_of_week)

    step = timedelta(days=schedule.recurrence.interval_days)
    duration = timedelta(minutes=schedule.duration_minutes)
    slots = []
    for offset in range(schedule.count):
        day = local_day + step * offset
        starts_at = datetime.combine(day, schedule.time_of_day, tzinfo=tz).astimezone(timezone.utc)
        slots.append(
            SessionSlot(
                number=first_number + offset,
                starts_at=starts_at,
                ends_at=starts_at + duration,
            )
        )
    return slots
