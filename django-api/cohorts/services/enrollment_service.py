"""Enrollment service - capacity, waitlist and cancellation rules."""

import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any

from django.utils import timezone

from cohorts.domain import Cohort, Enrollment, EnrollmentStatus
from cohorts.domain.errors import (
    AlreadyCancelledError,
    AlreadyEnrolledError,
    CohortFullError,
    ValidationError,
    WaitlistFullError,
)
from cohorts.services.common import require_cohort, require_enrollment
from cohorts.stores.interfaces import CohortStore

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(
    {
        "customer_name",
        "customer_email",
        "status",
        "price_paid",
        "payment_method",
        "internal_notes",
    }
)

_CREATE_FIELDS = EDITABLE_FIELDS - {"status"}

# Outcomes an active enrollment may be given by edit. Both keep the seat, so
# counters are untouched; cancellation goes through cancel().
_OUTCOME_STATUSES = frozenset({EnrollmentStatus.COMPLETED, EnrollmentStatus.NO_SHOW})


class EnrollmentService:
    """Service for cohort enrollment operations."""

    def __init__(self, store: CohortStore, clock: Callable[[], datetime] = timezone.now) -> None:
        self._store = store
        self._clock = clock

    def list_enrollments(self, cohort_id: str) -> list[Enrollment]:
        cohort = require_cohort(self._store, cohort_id)
        return self._store.list_enrollments(cohort.id)

    def enroll(self, cohort_id: str, data: dict[str, Any]) -> Enrollment:
        """Register a customer, falling back to the waitlist when the cohort is full.

        Raises:
            ValidationError: If name or email is missing.
            AlreadyEnrolledError: If the email already holds an enrollment.
            CohortFullError: If the cohort is full and has no waitlist.
            WaitlistFullError: If the waitlist is full as well.
        """
        fields = {name: value for name, value in data.items() if name in _CREATE_FIELDS}
        if not fields.get("customer_name") or not fields.get("customer_email"):
            raise ValidationError("customerName and customerEmail are required")

        with self._store.atomic():
            cohort = require_cohort(self._store, cohort_id, for_update=True)
            if self._store.email_enrolled(cohort.id, fields["customer_email"]):
                raise AlreadyEnrolledError()

            status = self._admission_status(cohort)
            now = self._clock()
            fields.update(
                status=status.value,
                currency=cohort.currency,
                enrolled_at=now,
            )
            if status is EnrollmentStatus.WAITLISTED:
                fields["waitlist_position"] = cohort.waitlist_count + 1
                fields["waitlist_added_at"] = now
                self._store.update_cohort(
                    cohort.id, {"waitlist_count": cohort.waitlist_count + 1}
                )
            else:
                self._store.update_cohort(
                    cohort.id, {"enrolled_count": cohort.enrolled_count + 1}
                )
            enrollment = self._store.create_enrollment(cohort.id, fields)

        logger.info(
            "Enrollment added",
            extra={
                "cohort_id": str(cohort.id),
                "enrollment_id": str(enrollment.id),
                "enrollment_status": status.value,
            },
        )
        return enrollment

    def update_enrollment(self, cohort_id: str, enrollment_id: str, data: dict[str, Any]) -> Enrollment:
        """Edit enrollment details; counters are left to enroll and cancel."""
        cohort = require_cohort(self._store, cohort_id)
        enrollment = require_enrollment(self._store, cohort, enrollment_id)
        fields = {name: value for name, value in data.items() if name in EDITABLE_FIELDS}
        if "customer_email" in fields and fields["customer_email"].lower() != enrollment.customer_email.lower():
            if self._store.email_enrolled(cohort.id, fields["customer_email"]):
                raise AlreadyEnrolledError()
        if "status" in fields:
            target = EnrollmentStatus(fields["status"])
            if target is enrollment.status:
                del fields["status"]
            elif enrollment.status is not EnrollmentStatus.ACTIVE or target not in _OUTCOME_STATUSES:
                raise ValidationError(
                    "Only active enrollments can be marked completed or no_show; use cancel to cancel"
                )
            elif target is EnrollmentStatus.COMPLETED:
                fields["completed_at"] = self._clock()
        return self._store.update_enrollment(enrollment.id, fields)

    def cancel(
        self,
        cohort_id: str,
        enrollment_id: str,
        reason: str | None = None,
        refund_amount: Decimal | None = None,
    ) -> Enrollment:
        """Cancel an enrollment and promote the next waitlisted customer into the seat.

        Raises:
            AlreadyCancelledError: If the enrollment is already cancelled.
        """
        with self._store.atomic():
            cohort = require_cohort(self._store, cohort_id, for_update=True)
            enrollment = require_enrollment(self._store, cohort, enrollment_id)
            if enrollment.status is EnrollmentStatus.CANCELLED:
                raise AlreadyCancelledError()

            now = self._clock()
            fields: dict[str, Any] = {
                "status": EnrollmentStatus.CANCELLED.value,
                "cancelled_at": now,
                "cancellation_reason": reason or "",
                "waitlist_position": None,
            }
            if refund_amount:
                fields["refund_amount"] = refund_amount
                fields["refunded_at"] = now
            cancelled = self._store.update_enrollment(enrollment.id, fields)

            if enrollment.status is EnrollmentStatus.ACTIVE:
                self._release_seat(cohort, now)
            elif enrollment.status is EnrollmentStatus.WAITLISTED:
                self._store.update_cohort(
                    cohort.id, {"waitlist_count": max(0, cohort.waitlist_count - 1)}
                )

        logger.info(
            "Enrollment cancelled",
            extra={"cohort_id": str(cohort.id), "enrollment_id": str(enrollment.id)},
        )
        return cancelled

    def _admission_status(self, cohort: Cohort) -> EnrollmentStatus:
        if not cohort.is_full:
            return EnrollmentStatus.ACTIVE
        if not cohort.waitlist_enabled:
            raise CohortFullError()
        if cohort.waitlist_is_full:
            raise WaitlistFullError()
        return EnrollmentStatus.WAITLISTED

    def _release_seat(self, cohort: Cohort, now: datetime) -> None:
        enrolled = max(0, cohort.enrolled_count - 1)
        waitlisted = cohort.waitlist_count
        if cohort.waitlist_enabled and waitlisted > 0:
            promoted = self._store.next_waitlisted(cohort.id)
            if promoted is not None:
                self._store.update_enrollment(
                    promoted.id,
                    {
                        "status": EnrollmentStatus.ACTIVE.value,
                        "promoted_from_waitlist_at": now,
                        "waitlist_position": None,
                    },
                )
                enrolled += 1
                waitlisted = max(0, waitlisted - 1)
                logger.info(
                    "Promoted from waitlist",
                    extra={"cohort_id": str(cohort.id), "enrollment_id": str(promoted.id)},
                )
        self._store.update_cohort(
            cohort.id, {"enrolled_count": enrolled, "waitlist_count": waitlisted}
        )
