"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in cohorts/models.py (persistence layer).
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from cohorts.domain.value_objects import (
    AttendanceStatus,
    Capacity,
    CohortId,
    CohortStatus,
    DeliveryMode,
    EnrollmentId,
    EnrollmentStatus,
    Money,
    PaymentMethod,
    SessionId,
    SessionStatus,
    WorkshopId,
)

_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")


def generate_slug(title: str) -> str:
    """Lowercase the title and collapse anything non-alphanumeric to dashes."""
    return _SLUG_SEPARATORS.sub("-", title.lower()).strip("-")


@dataclass(frozen=True)
class Workshop:
    """Domain representation of the offering a cohort schedules."""

    id: WorkshopId
    title: str
    type: str
    created_at: datetime


@dataclass(frozen=True)
class Cohort:
    """Domain representation of a Cohort."""

    id: CohortId
    workshop_id: WorkshopId
    title: str
    slug: str
    status: CohortStatus
    description: str
    internal_notes: str
    start_at: datetime | None
    end_at: datetime | None
    timezone: str
    registration_opens_at: datetime | None
    registration_closes_at: datetime | None
    price: Money | None
    compare_at_price: Money | None
    early_bird_price: Money | None
    early_bird_ends_at: datetime | None
    currency: str
    capacity: Capacity | None
    enrolled_count: int
    waitlist_enabled: bool
    waitlist_capacity: Capacity | None
    waitlist_count: int
    delivery_mode: DeliveryMode | None
    location_label: str
    location_address: str
    meeting_url: str
    instructor_name: str
    instructor_email: str
    duplicated_from_id: CohortId | None
    published_at: datetime | None
    cancelled_at: datetime | None
    cancellation_reason: str
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime
    workshop_title: str = ""

    @property
    def is_full(self) -> bool:
        return self.capacity is not None and self.enrolled_count >= self.capacity.value

    @property
    def waitlist_is_full(self) -> bool:
        return (
            self.waitlist_capacity is not None
            and self.waitlist_count >= self.waitlist_capacity.value
        )


@dataclass(frozen=True)
class Session:
    """Domain representation of one scheduled meeting within a cohort."""

    id: SessionId
    cohort_id: CohortId
    session_number: int
    title: str
    description: str
    starts_at: datetime
    ends_at: datetime | None
    duration_minutes: int | None
    status: SessionStatus
    location_label: str
    meeting_url: str
    notes: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Enrollment:
    """Domain representation of a customer's registration in a cohort."""

    id: EnrollmentId
    cohort_id: CohortId
    customer_name: str
    customer_email: str
    status: EnrollmentStatus
    price_paid: Money | None
    currency: str
    payment_method: PaymentMethod | None
    waitlist_position: int | None
    waitlist_added_at: datetime | None
    promoted_from_waitlist_at: datetime | None
    cancelled_at: datetime | None
    cancellation_reason: str
    refunded_at: datetime | None
    refund_amount: Money | None
    internal_notes: str
    enrolled_at: datetime
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class AttendanceRecord:
    """Presence of one enrollment at one session."""

    session_id: SessionId
    enrollment_id: EnrollmentId
    status: AttendanceStatus
    checked_in_at: datetime | None
    notes: str


@dataclass(frozen=True)
class AttendanceRow:
    """An active enrollment paired with its attendance for a session, if any."""

    enrollment_id: EnrollmentId
    customer_name: str
    customer_email: str
    record: AttendanceRecord | None = None


@dataclass(frozen=True)
class CohortStats:
    """Read-only aggregate for the stats tab. Rates are percentages."""

    enrolled: int
    capacity: int | None
    waitlist: int
    revenue: Decimal
    attendance_rate: float
    sessions_completed: int
    sessions_total: int
    completion_rate: float


@dataclass(frozen=True)
class Page:
    """A slice of a larger ordered result."""

    items: tuple = field(default_factory=tuple)
    total: int = 0
    page: int = 1
    page_size: int = 20

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.page_size) if self.page_size else 0
