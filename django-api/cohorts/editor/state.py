"""Client-side editor state: the cohort form, tabs and attendance sheet."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from cohorts.domain import AttendanceStatus, Recurrence

DEFAULT_TIMEZONE = "Australia/Sydney"
DEFAULT_CURRENCY = "AUD"

# A new cohort starts from these values; loaded cohorts are normalised onto the same keys.
EMPTY_COHORT: dict[str, Any] = {
    "workshopId": "",
    "title": "",
    "description": "",
    "internalNotes": "",
    "status": "draft",
    "startAt": "",
    "endAt": "",
    "timezone": DEFAULT_TIMEZONE,
    "registrationOpensAt": "",
    "registrationClosesAt": "",
    "price": "",
    "compareAtPrice": "",
    "earlyBirdPrice": "",
    "earlyBirdEndsAt": "",
    "currency": DEFAULT_CURRENCY,
    "capacity": None,
    "enrolledCount": 0,
    "waitlistEnabled": False,
    "waitlistCapacity": None,
    "waitlistCount": 0,
    "deliveryMode": "online",
    "locationLabel": "",
    "locationAddress": "",
    "meetingUrl": "",
    "instructorName": "",
    "instructorEmail": "",
}

# Never sent on save: identity, counters, status and server timestamps.
READ_ONLY_FIELDS = frozenset(
    {"id", "status", "enrolledCount", "waitlistCount", "createdAt", "updatedAt"}
)

EDITABLE_FIELDS = frozenset(EMPTY_COHORT) - READ_ONLY_FIELDS


class Tab(str, Enum):
    DETAILS = "details"
    SESSIONS = "sessions"
    ENROLLMENTS = "enrollments"
    ATTENDANCE = "attendance"
    STATS = "stats"


class SaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


def new_cohort_form() -> dict[str, Any]:
    return dict(EMPTY_COHORT)


def form_from_api(raw: dict[str, Any]) -> dict[str, Any]:
    """Project an API cohort onto the form keys, filling gaps with defaults."""
    form = {}
    for name, default in EMPTY_COHORT.items():
        value = raw.get(name)
        form[name] = default if value is None and default is not None else value
    form["id"] = raw["id"]
    form["createdAt"] = raw.get("createdAt")
    form["updatedAt"] = raw.get("updatedAt")
    return form


def save_payload(form: dict[str, Any]) -> dict[str, Any]:
    return {name: value for name, value in form.items() if name not in READ_ONLY_FIELDS}


def snapshot(payload: dict[str, Any]) -> str:
    """Canonical JSON used to detect unsaved changes."""
    return json.dumps(payload, sort_keys=True, default=str)


@dataclass(frozen=True)
class BulkSessionRequest:
    """Form values for generating a run of sessions."""

    start_date: str
    count: int = 6
    recurrence: Recurrence = Recurrence.WEEKLY
    day_of_week: int | None = 1
    time: str = "18:00"
    duration: int = 90

    def to_payload(self) -> dict[str, Any]:
        recurrence = Recurrence(self.recurrence)
        payload: dict[str, Any] = {
            "count": self.count,
            "startDate": self.start_date,
            "recurrence": recurrence.value,
            "time": self.time,
            "duration": self.duration,
        }
        if recurrence.aligns_to_weekday:
            payload["dayOfWeek"] = self.day_of_week
        return payload


@dataclass
class AttendanceEntry:
    enrollment_id: str
    customer_name: str
    customer_email: str
    status: AttendanceStatus | None = None
    notes: str = ""


@dataclass
class AttendanceSheet:
    """Editable attendance for one session. ``dirty`` tracks unsaved marks."""

    session_id: str
    entries: list[AttendanceEntry] = field(default_factory=list)
    dirty: bool = False

    @classmethod
    def from_api(cls, session_id: str, rows: list[dict[str, Any]]) -> "AttendanceSheet":
        entries = [
            AttendanceEntry(
                enrollment_id=row["enrollmentId"],
                customer_name=row.get("customerName", ""),
                customer_email=row.get("customerEmail", ""),
                status=AttendanceStatus(row["status"]) if row.get("status") else None,
                notes=row.get("notes") or "",
            )
            for row in rows
        ]
        return cls(session_id=session_id, entries=entries)

    def set_status(self, enrollment_id: str, status: str | AttendanceStatus) -> None:
        status = AttendanceStatus(status)
        for entry in self.entries:
            if entry.enrollment_id == enrollment_id:
                entry.status = status
                self.dirty = True
                return
        raise KeyError(enrollment_id)

    def mark_all(self, status: str | AttendanceStatus) -> None:
        status = AttendanceStatus(status)
        for entry in self.entries:
            entry.status = status
        self.dirty = True

    def records(self) -> list[dict[str, Any]]:
        """Marked entries in the shape the attendance endpoint accepts."""
        return [
            {"enrollmentId": entry.enrollment_id, "status": entry.status.value, "notes": entry.notes}
            for entry in self.entries
            if entry.status is not None
        ]
