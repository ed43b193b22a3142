"""Cohort service - all cohort business logic lives here.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors
"""

import logging
import time
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any

from django.utils import timezone

from cohorts.domain import Cohort, CohortStats, CohortStatus, EnrollmentStatus, Page, SessionStatus
from cohorts.domain import lifecycle
from cohorts.domain.errors import (
    CohortNotDeletableError,
    InvalidStatusTransitionError,
    ValidationError,
    WorkshopNotFoundError,
)
from cohorts.domain.models import generate_slug
from cohorts.services.common import parse_workshop_id, require_cohort
from cohorts.stores.interfaces import CohortQuery, CohortStore, WorkshopStore

logger = logging.getLogger(__name__)

# Fields an admin may write directly. Counters, status and lifecycle
# timestamps only change through dedicated operations.
EDITABLE_FIELDS = frozenset(
    {
        "workshop_id",
        "title",
        "slug",
        "description",
        "internal_notes",
        "start_at",
        "end_at",
        "timezone",
        "registration_opens_at",
        "registration_closes_at",
        "capacity",
        "waitlist_enabled",
        "waitlist_capacity",
        "price",
        "compare_at_price",
        "early_bird_price",
        "early_bird_ends_at",
        "currency",
        "delivery_mode",
        "location_label",
        "location_address",
        "meeting_url",
        "instructor_name",
        "instructor_email",
    }
)

# Fields carried over when duplicating; schedule and counters start fresh.
_DUPLICATED_FIELDS = (
    "title",
    "description",
    "internal_notes",
    "timezone",
    "capacity",
    "waitlist_enabled",
    "waitlist_capacity",
    "price",
    "compare_at_price",
    "early_bird_price",
    "currency",
    "delivery_mode",
    "location_label",
    "location_address",
    "meeting_url",
    "instructor_name",
    "instructor_email",
)

_MAX_SLUG_ATTEMPTS = 20

# Enrollments that count towards the completion rate denominator.
_COMPLETION_POOL = (
    EnrollmentStatus.ACTIVE,
    EnrollmentStatus.COMPLETED,
    EnrollmentStatus.NO_SHOW,
)


def _percentage(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 2)


class CohortService:
    """Service for cohort lifecycle operations."""

    def __init__(
        self,
        store: CohortStore,
        workshops: WorkshopStore,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._store = store
        self._workshops = workshops
        self._clock = clock

    def list_cohorts(self, query: CohortQuery) -> Page:
        """Return one page of cohorts."""
        return self._store.list_cohorts(query)

    def get_cohort(self, cohort_id: str) -> Cohort:
        """Return a cohort by ID.

        Raises:
            InvalidIdError: If the cohort_id is not a valid UUID.
            CohortNotFoundError: If the cohort does not exist.
        """
        return require_cohort(self._store, cohort_id)

    def create_cohort(self, data: dict[str, Any]) -> Cohort:
        """Create a draft cohort.

        Raises:
            ValidationError: If workshop_id or title is missing.
            WorkshopNotFoundError: If the workshop does not exist.
        """
        fields = {name: value for name, value in data.items() if name in EDITABLE_FIELDS}
        if not fields.get("workshop_id") or not fields.get("title"):
            raise ValidationError("workshopId and title are required")
        workshop_id = parse_workshop_id(str(fields["workshop_id"]))
        if not self._workshops.workshop_exists(workshop_id):
            raise WorkshopNotFoundError(str(fields["workshop_id"]))

        fields["workshop_id"] = workshop_id.value
        fields["slug"] = self._unique_slug(fields.get("slug") or generate_slug(fields["title"]))
        fields["status"] = CohortStatus.DRAFT.value
        fields["enrolled_count"] = 0
        fields["waitlist_count"] = 0

        cohort = self._store.create_cohort(fields)
        logger.info("Cohort created", extra={"cohort_id": str(cohort.id), "slug": cohort.slug})
        return cohort

    def update_cohort(self, cohort_id: str, data: dict[str, Any]) -> Cohort:
        """Apply a partial update to the editable fields.

        A title change without an explicit slug regenerates the slug.
        """
        with self._store.atomic():
            existing = require_cohort(self._store, cohort_id, for_update=True)
            fields = {name: value for name, value in data.items() if name in EDITABLE_FIELDS}

            if "workshop_id" in fields:
                workshop_id = parse_workshop_id(str(fields["workshop_id"]))
                if not self._workshops.workshop_exists(workshop_id):
                    raise WorkshopNotFoundError(str(fields["workshop_id"]))
                fields["workshop_id"] = workshop_id.value

            if "title" in fields and not fields["title"]:
                raise ValidationError("title cannot be blank")

            requested_slug = fields.pop("slug", None)
            if requested_slug and requested_slug != existing.slug:
                fields["slug"] = self._unique_slug(requested_slug, exclude=existing)
            elif requested_slug is None and fields.get("title", existing.title) != existing.title:
                regenerated = generate_slug(fields["title"])
                if regenerated != existing.slug:
                    fields["slug"] = self._unique_slug(regenerated, exclude=existing)

            return self._store.update_cohort(existing.id, fields)

    def delete_cohort(self, cohort_id: str) -> None:
        """Delete a draft or cancelled cohort.

        Raises:
            CohortNotDeletableError: If the cohort has moved past draft.
        """
        cohort = require_cohort(self._store, cohort_id)
        if not lifecycle.can_delete(cohort.status):
            raise CohortNotDeletableError()
        self._store.delete_cohort(cohort.id)
        logger.info("Cohort deleted", extra={"cohort_id": str(cohort.id)})

    def change_status(self, cohort_id: str, status: str, reason: str | None = None) -> Cohort:
        """Move a cohort to its next status and stamp the matching timestamps.

        Raises:
            ValidationError: If the status is unknown.
            InvalidStatusTransitionError: If the move is not a legal next step.
        """
        try:
            target = CohortStatus(status)
        except ValueError as exc:
            raise ValidationError(f"Unknown status: {status}") from exc

        with self._store.atomic():
            cohort = require_cohort(self._store, cohort_id, for_update=True)
            if not lifecycle.can_transition(cohort.status, target):
                raise InvalidStatusTransitionError(cohort.status.value, target.value)

            now = self._clock()
            fields: dict[str, Any] = {"status": target.value}
            if target is CohortStatus.OPEN:
                fields["published_at"] = now
                if cohort.registration_opens_at is None:
                    fields["registration_opens_at"] = now
            elif target is CohortStatus.CLOSED:
                fields["registration_closes_at"] = now
            elif target is CohortStatus.COMPLETED:
                fields["completed_at"] = now
            elif target is CohortStatus.CANCELLED:
                fields["cancelled_at"] = now
                fields["cancellation_reason"] = reason or ""

            updated = self._store.update_cohort(cohort.id, fields)

        logger.info(
            "Cohort status changed",
            extra={
                "cohort_id": str(cohort.id),
                "from_status": cohort.status.value,
                "to_status": target.value,
            },
        )
        return updated

    def duplicate_cohort(self, cohort_id: str) -> Cohort:
        """Copy a cohort into a new draft, sessions included."""
        source = require_cohort(self._store, cohort_id)
        fields: dict[str, Any] = {}
        for name in _DUPLICATED_FIELDS:
            fields[name] = getattr(source, name)
        for name in ("price", "compare_at_price", "early_bird_price"):
            fields[name] = fields[name].amount if fields[name] is not None else None
        for name in ("capacity", "waitlist_capacity"):
            fields[name] = fields[name].value if fields[name] is not None else None
        fields["delivery_mode"] = source.delivery_mode.value if source.delivery_mode else None
        fields.update(
            workshop_id=source.workshop_id.value,
            slug=self._unique_slug(generate_slug(source.title)),
            status=CohortStatus.DRAFT.value,
            enrolled_count=0,
            waitlist_count=0,
            duplicated_from_id=source.id.value,
        )

        with self._store.atomic():
            duplicate = self._store.create_cohort(fields)
            self._store.create_sessions(
                duplicate.id,
                (
                    {
                        "session_number": session.session_number,
                        "title": session.title,
                        "description": session.description,
                        "starts_at": session.starts_at,
                        "ends_at": session.ends_at,
                        "duration_minutes": session.duration_minutes,
                        "location_label": session.location_label,
                        "meeting_url": session.meeting_url,
                        "notes": session.notes,
                        "status": SessionStatus.SCHEDULED.value,
                    }
                    for session in self._store.list_sessions(source.id)
                ),
            )

        logger.info(
            "Cohort duplicated",
            extra={"cohort_id": str(duplicate.id), "source_id": str(source.id)},
        )
        return duplicate

    def get_stats(self, cohort_id: str) -> CohortStats:
        """Aggregate enrollment, revenue and attendance figures for a cohort."""
        cohort = require_cohort(self._store, cohort_id)
        total_marks, checked_in = self._store.attendance_counts(cohort.id)
        counts = self._store.enrollment_status_counts(cohort.id)
        pool = sum(counts.get(status, 0) for status in _COMPLETION_POOL)
        revenue = self._store.revenue(cohort.id)

        return CohortStats(
            enrolled=cohort.enrolled_count,
            capacity=cohort.capacity.value if cohort.capacity else None,
            waitlist=cohort.waitlist_count,
            revenue=revenue.quantize(Decimal("0.01")),
            attendance_rate=_percentage(checked_in, total_marks),
            sessions_completed=self._store.count_sessions(cohort.id, SessionStatus.COMPLETED),
            sessions_total=self._store.count_sessions(cohort.id),
            completion_rate=_percentage(counts.get(EnrollmentStatus.COMPLETED, 0), pool),
        )

    def _unique_slug(self, base: str, exclude: Cohort | None = None) -> str:
        """Return base, or base-N for the first free N, falling back to a timestamp."""
        base = generate_slug(base) or "cohort"
        exclude_id = exclude.id if exclude else None
        for attempt in range(_MAX_SLUG_ATTEMPTS + 1):
            candidate = base if attempt == 0 else f"{base}-{attempt}"
            if not self._store.slug_exists(candidate, exclude=exclude_id):
                return candidate
        return f"{base}-{int(time.time() * 1000)}"
