"""Session service - scheduling of the meetings within a cohort."""

import logging
from datetime import timedelta
from typing import Any

from cohorts.domain import Session, SessionStatus
from cohorts.domain.errors import ValidationError
from cohorts.domain.schedule import BulkSchedule, generate_slots
from cohorts.services.common import require_cohort, require_session
from cohorts.stores.interfaces import CohortStore

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(
    {
        "session_number",
        "title",
        "description",
        "starts_at",
        "ends_at",
        "duration_minutes",
        "status",
        "location_label",
        "meeting_url",
        "notes",
    }
)


class SessionService:
    """Service for cohort session operations."""

    def __init__(self, store: CohortStore) -> None:
        self._store = store

    def list_sessions(self, cohort_id: str) -> list[Session]:
        """Return sessions ordered by session number.

        Raises:
            InvalidIdError: If the cohort_id is not a valid UUID.
            CohortNotFoundError: If the cohort does not exist.
        """
        cohort = require_cohort(self._store, cohort_id)
        return self._store.list_sessions(cohort.id)

    def create_session(self, cohort_id: str, data: dict[str, Any]) -> Session:
        """Add one session; the number defaults to the next free one."""
        fields = {name: value for name, value in data.items() if name in EDITABLE_FIELDS}
        if not fields.get("title") or not fields.get("starts_at"):
            raise ValidationError("title and startAt are required")

        with self._store.atomic():
            cohort = require_cohort(self._store, cohort_id, for_update=True)
            if fields.get("session_number") is None:
                fields["session_number"] = self._store.max_session_number(cohort.id) + 1
            fields["status"] = SessionStatus.SCHEDULED.value
            _fill_end(fields)
            [session] = self._store.create_sessions(cohort.id, [fields])
        return session

    def update_session(self, cohort_id: str, session_id: str, data: dict[str, Any]) -> Session:
        """Apply a partial update to a session of the cohort."""
        cohort = require_cohort(self._store, cohort_id)
        session = require_session(self._store, cohort, session_id)
        fields = {name: value for name, value in data.items() if name in EDITABLE_FIELDS}
        if "title" in fields and not fields["title"]:
            raise ValidationError("title cannot be blank")
        if "status" in fields and isinstance(fields["status"], SessionStatus):
            fields["status"] = fields["status"].value
        return self._store.update_session(session.id, fields)

    def delete_session(self, cohort_id: str, session_id: str) -> None:
        cohort = require_cohort(self._store, cohort_id)
        session = require_session(self._store, cohort, session_id)
        self._store.delete_session(session.id)

    def bulk_create(self, cohort_id: str, schedule: BulkSchedule) -> list[Session]:
        """Generate a recurring run of sessions after the cohort's last one."""
        with self._store.atomic():
            cohort = require_cohort(self._store, cohort_id, for_update=True)
            first_number = self._store.max_session_number(cohort.id) + 1
            try:
                slots = generate_slots(schedule, cohort.timezone, first_number=first_number)
            except ValueError as exc:
                raise ValidationError(str(exc)) from exc
            sessions = self._store.create_sessions(
                cohort.id,
                (
                    {
                        "session_number": slot.number,
                        "title": slot.title,
                        "starts_at": slot.starts_at,
                        "ends_at": slot.ends_at,
                        "duration_minutes": schedule.duration_minutes,
                        "location_label": cohort.location_label,
                        "meeting_url": cohort.meeting_url,
                        "status": SessionStatus.SCHEDULED.value,
                    }
                    for slot in slots
                ),
            )

        logger.info(
            "Sessions generated",
            extra={
                "cohort_id": str(cohort.id),
                "count": len(sessions),
                "recurrence": schedule.recurrence.value,
            },
        )
        return sessions


def _fill_end(fields: dict[str, Any]) -> None:
    """Derive ends_at from the duration when only the duration is given."""
    if fields.get("ends_at") is None and fields.get("duration_minutes"):
        fields["ends_at"] = fields["starts_at"] + timedelta(minutes=fields["duration_minutes"])
