"""Display helpers for the editor: dates, money, percentages and stat cards."""

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any
from zoneinfo import ZoneInfo

EMPTY = "--"

_CURRENCY_SYMBOLS = {
    "AUD": "$",
    "NZD": "$",
    "USD": "US$",
    "CAD": "CA$",
    "EUR": "€",
    "GBP": "£",
}


def _parse(value: str | datetime | None) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None


def _localise(moment: datetime, tz: str | None) -> datetime:
    if tz and moment.tzinfo is not None:
        return moment.astimezone(ZoneInfo(tz))
    return moment


def format_date(value: str | datetime | None, tz: str | None = None) -> str:
    """``5 Mar 2026``, or ``--`` when empty or unparsable."""
    moment = _parse(value)
    if moment is None:
        return EMPTY
    moment = _localise(moment, tz)
    return f"{moment.day} {moment:%b %Y}"


def format_datetime(value: str | datetime | None, tz: str | None = None) -> str:
    """``5 Mar 2026, 06:30 pm``, or ``--`` when empty or unparsable."""
    moment = _parse(value)
    if moment is None:
        return EMPTY
    moment = _localise(moment, tz)
    return f"{moment.day} {moment:%b %Y}, {moment:%I:%M} {moment:%p}".replace("AM", "am").replace("PM", "pm")


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_currency(amount: Any, currency: str = "AUD") -> str:
    """Symbol, thousands separators and two decimals; ``$0.00`` for junk input."""
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return "$0.00"
    if not value.is_finite():
        return "$0.00"
    symbol = _CURRENCY_SYMBOLS.get(currency.upper(), f"{currency.upper()} ")
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_percent(value: Any) -> str:
    try:
        return f"{_round_half_up(Decimal(str(value)))}%"
    except (InvalidOperation, ValueError):
        return "0%"


@dataclass(frozen=True)
class CapacitySummary:
    """Capacity bar figures. ``capacity`` of None means unlimited."""

    enrolled: int
    capacity: int | None

    @property
    def unlimited(self) -> bool:
        return self.capacity is None

    @property
    def percent(self) -> float:
        if self.capacity is None:
            return 0.0
        if self.capacity <= 0:
            return 100.0
        return min(self.enrolled / self.capacity * 100, 100.0)

    @property
    def is_full(self) -> bool:
        return self.capacity is not None and self.enrolled >= self.capacity

    @property
    def label(self) -> str:
        if self.capacity is None:
            return f"{self.enrolled} enrolled (unlimited)"
        suffix = " Full" if self.is_full else ""
        return f"{self.enrolled} / {self.capacity}{suffix}"


@dataclass(frozen=True)
class StatCard:
    title: str
    value: str
    subtitle: str


def stat_cards(stats: dict[str, Any], currency: str = "AUD") -> list[StatCard]:
    """Cards for the stats tab, in display order."""
    enrolled = stats.get("enrolled", 0)
    capacity = stats.get("capacity")
    if capacity is None:
        enrolled_value, enrolled_subtitle = f"{enrolled}", "Unlimited capacity"
    else:
        share = Decimal(enrolled) / Decimal(capacity) * 100 if capacity else Decimal(0)
        enrolled_value = f"{enrolled} / {capacity}"
        enrolled_subtitle = f"{format_percent(share)} capacity"

    completed = stats.get("sessionsCompleted", 0)
    total = stats.get("sessionsTotal", 0)
    if total > 0:
        sessions_subtitle = f"{format_percent(Decimal(completed) / Decimal(total) * 100)} complete"
    else:
        sessions_subtitle = "No sessions"

    return [
        StatCard("Enrolled", enrolled_value, enrolled_subtitle),
        StatCard("Waitlist", f"{stats.get('waitlist', 0)}", "Waiting for a spot"),
        StatCard("Revenue", format_currency(stats.get("revenue", 0), currency), "Total collected"),
        StatCard(
            "Attendance Rate",
            format_percent(stats.get("attendanceRate", 0)),
            "Average across sessions",
        ),
        StatCard("Sessions Completed", f"{completed} of {total}", sessions_subtitle),
        StatCard(
            "Completion Rate",
            format_percent(stats.get("completionRate", 0)),
            "Enrollees who completed",
        ),
    ]
