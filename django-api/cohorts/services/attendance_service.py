"""Attendance service - per-session attendance sheets."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime

from django.utils import timezone

from cohorts.domain import (
    AttendanceRecord,
    AttendanceRow,
    AttendanceStatus,
    EnrollmentId,
    EnrollmentStatus,
)
from cohorts.domain.errors import EnrollmentNotFoundError, ValidationError
from cohorts.services.common import parse_enrollment_id, require_cohort, require_session
from cohorts.stores.interfaces import CohortStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttendanceMark:
    """One attendance mark submitted for a session."""

    enrollment_id: str
    status: str
    notes: str | None = None


class AttendanceService:
    """Service for loading and saving attendance."""

    def __init__(self, store: CohortStore, clock: Callable[[], datetime] = timezone.now) -> None:
        self._store = store
        self._clock = clock

    def sheet(self, cohort_id: str, session_id: str) -> list[AttendanceRow]:
        """Return one row per active enrollment, ordered by customer name."""
        cohort = require_cohort(self._store, cohort_id)
        session = require_session(self._store, cohort, session_id)
        records = self._store.attendance_for_session(session.id)
        enrollments = self._store.list_enrollments(cohort.id, EnrollmentStatus.ACTIVE)
        rows = [
            AttendanceRow(
                enrollment_id=enrollment.id,
                customer_name=enrollment.customer_name,
                customer_email=enrollment.customer_email,
                record=records.get(enrollment.id),
            )
            for enrollment in enrollments
        ]
        return sorted(rows, key=lambda row: row.customer_name.lower())

    def record(self, cohort_id: str, session_id: str, marks: Sequence[AttendanceMark]) -> list[AttendanceRecord]:
        """Upsert a batch of marks for one session.

        The whole batch is validated before anything is written.

        Raises:
            ValidationError: If the batch is empty or a status is unknown.
            EnrollmentNotFoundError: If a mark names an enrollment outside the cohort.
        """
        if not marks:
            raise ValidationError("records array is required and must not be empty")

        parsed: list[tuple[EnrollmentId, AttendanceStatus, str | None]] = []
        for mark in marks:
            if not mark.enrollment_id or not mark.status:
                raise ValidationError("Each record requires enrollmentId and status")
            try:
                status = AttendanceStatus(mark.status)
            except ValueError as exc:
                raise ValidationError(
                    f"Invalid status: {mark.status}. Must be present, absent, late, or excused"
                ) from exc
            parsed.append((parse_enrollment_id(mark.enrollment_id), status, mark.notes))

        with self._store.atomic():
            cohort = require_cohort(self._store, cohort_id)
            session = require_session(self._store, cohort, session_id)
            members = {enrollment.id for enrollment in self._store.list_enrollments(cohort.id)}
            existing = self._store.attendance_for_session(session.id)
            now = self._clock()

            saved = []
            for enrollment_id, status, notes in parsed:
                if enrollment_id not in members:
                    raise EnrollmentNotFoundError(str(enrollment_id))
                previous = existing.get(enrollment_id)
                if status.checks_in:
                    checked_in_at = now
                else:
                    checked_in_at = previous.checked_in_at if previous else None
                if notes is None:
                    notes = previous.notes if previous else ""
                saved.append(
                    self._store.save_attendance(
                        AttendanceRecord(
                            session_id=session.id,
                            enrollment_id=enrollment_id,
                            status=status,
                            checked_in_at=checked_in_at,
                            notes=notes,
                        )
                    )
                )

        logger.info(
            "Attendance recorded",
            extra={"cohort_id": str(cohort.id), "session_id": str(session.id), "count": len(saved)},
        )
        return saved
