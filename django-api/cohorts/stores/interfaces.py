"""Store interfaces (repository pattern).

Stores must be swappable and return domain models. Field mappings passed
to create/update methods use the persistence field names (snake_case).
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from cohorts.domain import (
    AttendanceRecord,
    Cohort,
    CohortId,
    CohortStatus,
    Enrollment,
    EnrollmentId,
    EnrollmentStatus,
    Page,
    Session,
    SessionId,
    SessionStatus,
    Workshop,
    WorkshopId,
)

SORT_FIELDS = ("startAt", "title", "createdAt")


@dataclass(frozen=True)
class CohortQuery:
    """Filters and paging for the cohort list."""

    workshop_id: WorkshopId | None = None
    status: CohortStatus | None = None
    search: str = ""
    upcoming_after: datetime | None = None
    sort: str = "-startAt"
    page: int = 1
    page_size: int = 20


class WorkshopStore(ABC):
    """Interface for workshop lookups."""

    @abstractmethod
    def list_workshops(self) -> list[Workshop]:
        """Return all workshops ordered by title."""
        ...

    @abstractmethod
    def workshop_exists(self, workshop_id: WorkshopId) -> bool:
        """Check if a workshop exists."""
        ...


class CohortStore(ABC):
    """Interface for cohort persistence operations."""

    @abstractmethod
    def atomic(self) -> AbstractContextManager:
        """Return a context manager wrapping a unit of work."""
        ...

    @abstractmethod
    def list_cohorts(self, query: CohortQuery) -> Page:
        """Return one page of cohorts matching the query."""
        ...

    @abstractmethod
    def get_cohort(self, cohort_id: CohortId, for_update: bool = False) -> Cohort | None:
        """Return a cohort by ID, or None if not found."""
        ...

    @abstractmethod
    def slug_exists(self, slug: str, exclude: CohortId | None = None) -> bool:
        """Check if another cohort already uses the slug."""
        ...

    @abstractmethod
    def create_cohort(self, fields: dict[str, Any]) -> Cohort:
        ...

    @abstractmethod
    def update_cohort(self, cohort_id: CohortId, fields: dict[str, Any]) -> Cohort:
        ...

    @abstractmethod
    def delete_cohort(self, cohort_id: CohortId) -> None:
        """Delete a cohort along with its sessions, enrollments and attendance."""
        ...

    @abstractmethod
    def list_sessions(self, cohort_id: CohortId) -> list[Session]:
        """Return all sessions for a cohort, ordered by session_number ascending."""
        ...

    @abstractmethod
    def get_session(self, session_id: SessionId) -> Session | None:
        ...

    @abstractmethod
    def max_session_number(self, cohort_id: CohortId) -> int:
        """Return the highest session_number in the cohort, or 0."""
        ...

    @abstractmethod
    def create_sessions(
        self, cohort_id: CohortId, rows: Iterable[dict[str, Any]]
    ) -> list[Session]:
        ...

    @abstractmethod
    def update_session(self, session_id: SessionId, fields: dict[str, Any]) -> Session:
        ...

    @abstractmethod
    def delete_session(self, session_id: SessionId) -> None:
        ...

    @abstractmethod
    def count_sessions(self, cohort_id: CohortId, status: SessionStatus | None = None) -> int:
        ...

    @abstractmethod
    def list_enrollments(
        self, cohort_id: CohortId, status: EnrollmentStatus | None = None
    ) -> list[Enrollment]:
        """Return enrollments for a cohort, ordered by enrolled_at ascending."""
        ...

    @abstractmethod
    def get_enrollment(self, enrollment_id: EnrollmentId) -> Enrollment | None:
        ...

    @abstractmethod
    def email_enrolled(self, cohort_id: CohortId, email: str) -> bool:
        """Check for an enrollment with the email, compared case-insensitively."""
        ...

    @abstractmethod
    def create_enrollment(self, cohort_id: CohortId, fields: dict[str, Any]) -> Enrollment:
        ...

    @abstractmethod
    def update_enrollment(self, enrollment_id: EnrollmentId, fields: dict[str, Any]) -> Enrollment:
        ...

    @abstractmethod
    def next_waitlisted(self, cohort_id: CohortId) -> Enrollment | None:
        """Return the waitlisted enrollment with the lowest position."""
        ...

    @abstractmethod
    def enrollment_status_counts(self, cohort_id: CohortId) -> dict[EnrollmentStatus, int]:
        ...

    @abstractmethod
    def revenue(self, cohort_id: CohortId) -> Decimal:
        """Sum of price_paid across active and completed enrollments."""
        ...

    @abstractmethod
    def attendance_for_session(self, session_id: SessionId) -> dict[EnrollmentId, AttendanceRecord]:
        ...

    @abstractmethod
    def save_attendance(self, record: AttendanceRecord) -> AttendanceRecord:
        """Insert or replace the record keyed by (session, enrollment)."""
        ...

    @abstractmethod
    def attendance_counts(self, cohort_id: CohortId) -> tuple[int, int]:
        """Return (total records, present or late records) across the cohort."""
        ...
