"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
"""

import uuid

from django.db import models
from django.db.models.functions import Lower

from cohorts.domain.value_objects import (
    AttendanceStatus,
    CohortStatus,
    DeliveryMode,
    EnrollmentStatus,
    PaymentMethod,
    SessionStatus,
)


def _choices(enum_cls) -> list[tuple[str, str]]:
    return [(member.value, member.value.replace("_", " ").title()) for member in enum_cls]


class Workshop(models.Model):
    """Persistence model for the offering a cohort schedules."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    type = models.CharField(max_length=50, default="workshop")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["title"]

    def __str__(self) -> str:
        return self.title


class Cohort(models.Model):
    """Persistence model for cohorts."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    workshop = models.ForeignKey(Workshop, on_delete=models.CASCADE, related_name="cohorts")
    title = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    status = models.CharField(
        max_length=20, choices=_choices(CohortStatus), default=CohortStatus.DRAFT.value
    )
    description = models.TextField(blank=True, default="")
    internal_notes = models.TextField(blank=True, default="")

    start_at = models.DateTimeField(blank=True, null=True)
    end_at = models.DateTimeField(blank=True, null=True)
    timezone = models.CharField(max_length=64, default="Australia/Sydney")
    registration_opens_at = models.DateTimeField(blank=True, null=True)
    registration_closes_at = models.DateTimeField(blank=True, null=True)

    capacity = models.PositiveIntegerField(blank=True, null=True)
    enrolled_count = models.PositiveIntegerField(default=0)
    waitlist_enabled = models.BooleanField(default=False)
    waitlist_capacity = models.PositiveIntegerField(blank=True, null=True)
    waitlist_count = models.PositiveIntegerField(default=0)

    price = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    compare_at_price = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    early_bird_price = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    early_bird_ends_at = models.DateTimeField(blank=True, null=True)
    currency = models.CharField(max_length=3, default="AUD")

    delivery_mode = models.CharField(
        max_length=20, choices=_choices(DeliveryMode), blank=True, null=True
    )
    location_label = models.CharField(max_length=255, blank=True, default="")
    location_address = models.CharField(max_length=500, blank=True, default="")
    meeting_url = models.URLField(max_length=500, blank=True, default="")

    instructor_name = models.CharField(max_length=255, blank=True, default="")
    instructor_email = models.EmailField(blank=True, default="")

    duplicated_from = models.ForeignKey(
        "self", on_delete=models.SET_NULL, blank=True, null=True, related_name="duplicates"
    )

    published_at = models.DateTimeField(blank=True, null=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)
    cancellation_reason = models.TextField(blank=True, default="")
    completed_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-start_at"]
        indexes = [
            models.Index(fields=["status"]),
            models.Index(fields=["start_at"]),
            models.Index(fields=["status", "start_at"]),
        ]

    def __str__(self) -> str:
        return self.title


class Session(models.Model):
    """Persistence model for cohort sessions."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    cohort = models.ForeignKey(Cohort, on_delete=models.CASCADE, related_name="sessions")
    session_number = models.PositiveIntegerField()
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    starts_at = models.DateTimeField()
    ends_at = models.DateTimeField(blank=True, null=True)
    duration_minutes = models.PositiveIntegerField(blank=True, null=True)
    status = models.CharField(
        max_length=20, choices=_choices(SessionStatus), default=SessionStatus.SCHEDULED.value
    )
    location_label = models.CharField(max_length=255, blank=True, default="")
    meeting_url = models.URLField(max_length=500, blank=True, default="")
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["session_number"]
        indexes = [
            models.Index(fields=["cohort", "session_number"]),
            models.Index(fields=["starts_at"]),
        ]

    def __str__(self) -> str:
        return f"{self.cohort.title} - {self.title}"


class Enrollment(models.Model):
    """Persistence model for cohort enrollments."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    cohort = models.ForeignKey(Cohort, on_delete=models.CASCADE, related_name="enrollments")
    customer_name = models.CharField(max_length=255)
    customer_email = models.EmailField()
    status = models.CharField(
        max_length=20, choices=_choices(EnrollmentStatus), default=EnrollmentStatus.ACTIVE.value
    )
    price_paid = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    currency = models.CharField(max_length=3, default="AUD")
    payment_method = models.CharField(
        max_length=20, choices=_choices(PaymentMethod), blank=True, null=True
    )

    waitlist_position = models.PositiveIntegerField(blank=True, null=True)
    waitlist_added_at = models.DateTimeField(blank=True, null=True)
    promoted_from_waitlist_at = models.DateTimeField(blank=True, null=True)

    cancelled_at = models.DateTimeField(blank=True, null=True)
    cancellation_reason = models.TextField(blank=True, default="")
    refunded_at = models.DateTimeField(blank=True, null=True)
    refund_amount = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)

    internal_notes = models.TextField(blank=True, default="")
    enrolled_at = models.DateTimeField()
    completed_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["enrolled_at"]
        indexes = [
            models.Index(fields=["status"]),
            models.Index(fields=["customer_email"]),
        ]
        constraints = [
            models.UniqueConstraint(
                "cohort", Lower("customer_email"), name="unique_enrollment_email_per_cohort"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.customer_name} <{self.customer_email}>"


class Attendance(models.Model):
    """Persistence model for per-session attendance."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    session = models.ForeignKey(Session, on_delete=models.CASCADE, related_name="attendance")
    enrollment = models.ForeignKey(
        Enrollment, on_delete=models.CASCADE, related_name="attendance"
    )
    status = models.CharField(
        max_length=20, choices=_choices(AttendanceStatus), default=AttendanceStatus.PRESENT.value
    )
    checked_in_at = models.DateTimeField(blank=True, null=True)
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["session", "enrollment"], name="unique_attendance_per_session"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.enrollment} @ {self.session}: {self.status}"
