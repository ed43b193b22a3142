"""Serializers for transforming requests and domain models.

Input serializers validate wire format (camelCase) and emit snake_case
``validated_data`` for the services. Output serializers read domain
dataclasses directly.
"""

from rest_framework import serializers

from cohorts.domain import (
    AttendanceStatus,
    CohortStatus,
    DeliveryMode,
    EnrollmentStatus,
    PaymentMethod,
    Recurrence,
    SessionStatus,
)
from cohorts.domain.schedule import MAX_BULK_SESSIONS, parse_time_of_day, resolve_timezone
from cohorts.stores.interfaces import SORT_FIELDS


class BlankAsNullMixin:
    """Treat "" as null so cleared form inputs round-trip."""

    def validate_empty_values(self, data):
        if data == "":
            data = None
        return super().validate_empty_values(data)


class NullableDateTimeField(BlankAsNullMixin, serializers.DateTimeField):
    pass


class NullableDecimalField(BlankAsNullMixin, serializers.DecimalField):
    pass


class NullableIntegerField(BlankAsNullMixin, serializers.IntegerField):
    pass


class NullableChoiceField(BlankAsNullMixin, serializers.ChoiceField):
    pass


class ValueField(serializers.Field):
    """Render IDs, enums and value objects by their primitive value."""

    def __init__(self, **kwargs):
        kwargs.setdefault("read_only", True)
        super().__init__(**kwargs)

    def to_representation(self, value):
        value = getattr(value, "value", value)
        return str(value) if not isinstance(value, (int, bool)) else value


class MoneyField(serializers.Field):
    """Render Money as a 2-decimal string."""

    def __init__(self, **kwargs):
        kwargs.setdefault("read_only", True)
        super().__init__(**kwargs)

    def to_representation(self, value):
        return str(value)


def _values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


# Input


class CohortInputSerializer(serializers.Serializer):
    """Editable cohort fields. Counters, status and timestamps are not accepted."""

    workshopId = serializers.UUIDField(source="workshop_id", required=False)
    title = serializers.CharField(max_length=255, required=False)
    slug = serializers.CharField(max_length=255, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    internalNotes = serializers.CharField(source="internal_notes", required=False, allow_blank=True)
    startAt = NullableDateTimeField(source="start_at", required=False, allow_null=True)
    endAt = NullableDateTimeField(source="end_at", required=False, allow_null=True)
    timezone = serializers.CharField(max_length=64, required=False)
    registrationOpensAt = NullableDateTimeField(
        source="registration_opens_at", required=False, allow_null=True
    )
    registrationClosesAt = NullableDateTimeField(
        source="registration_closes_at", required=False, allow_null=True
    )
    capacity = NullableIntegerField(min_value=1, required=False, allow_null=True)
    waitlistEnabled = serializers.BooleanField(source="waitlist_enabled", required=False)
    waitlistCapacity = NullableIntegerField(
        source="waitlist_capacity", min_value=1, required=False, allow_null=True
    )
    price = NullableDecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    compareAtPrice = NullableDecimalField(
        source="compare_at_price", max_digits=10, decimal_places=2, min_value=0,
        required=False, allow_null=True,
    )
    earlyBirdPrice = NullableDecimalField(
        source="early_bird_price", max_digits=10, decimal_places=2, min_value=0,
        required=False, allow_null=True,
    )
    earlyBirdEndsAt = NullableDateTimeField(
        source="early_bird_ends_at", required=False, allow_null=True
    )
    currency = serializers.CharField(max_length=3, required=False)
    deliveryMode = NullableChoiceField(
        source="delivery_mode", choices=_values(DeliveryMode), required=False, allow_null=True
    )
    locationLabel = serializers.CharField(source="location_label", required=False, allow_blank=True)
    locationAddress = serializers.CharField(
        source="location_address", required=False, allow_blank=True
    )
    meetingUrl = serializers.URLField(source="meeting_url", required=False, allow_blank=True)
    instructorName = serializers.CharField(source="instructor_name", required=False, allow_blank=True)
    instructorEmail = serializers.EmailField(
        source="instructor_email", required=False, allow_blank=True
    )

    def validate_timezone(self, value):
        try:
            resolve_timezone(value)
        except ValueError as exc:
            raise serializers.ValidationError(str(exc)) from exc
        return value

    def validate_currency(self, value):
        return value.upper()


class StatusChangeSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=_values(CohortStatus))
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class CohortListQuerySerializer(serializers.Serializer):
    """Query string for the cohort list. Paging values are clamped, not rejected."""

    workshopId = serializers.UUIDField(source="workshop_id", required=False)
    status = serializers.ChoiceField(choices=_values(CohortStatus), required=False)
    q = serializers.CharField(required=False, allow_blank=True, default="")
    upcoming = serializers.BooleanField(required=False, default=False)
    sort = serializers.ChoiceField(
        choices=[*SORT_FIELDS, *(f"-{name}" for name in SORT_FIELDS)],
        required=False,
        default="-startAt",
    )
    page = serializers.IntegerField(required=False, default=1)
    pageSize = serializers.IntegerField(source="page_size", required=False, default=20)

    def validate_page(self, value):
        return max(1, value)

    def validate_pageSize(self, value):
        return min(100, max(1, value))


class SessionInputSerializer(serializers.Serializer):
    sessionNumber = NullableIntegerField(
        source="session_number", min_value=1, required=False, allow_null=True
    )
    title = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    startAt = serializers.DateTimeField(source="starts_at", required=False)
    endAt = NullableDateTimeField(source="ends_at", required=False, allow_null=True)
    durationMinutes = NullableIntegerField(
        source="duration_minutes", min_value=1, required=False, allow_null=True
    )
    status = serializers.ChoiceField(choices=_values(SessionStatus), required=False)
    locationLabel = serializers.CharField(source="location_label", required=False, allow_blank=True)
    meetingUrl = serializers.URLField(source="meeting_url", required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class BulkSessionSerializer(serializers.Serializer):
    count = serializers.IntegerField(min_value=1, max_value=MAX_BULK_SESSIONS)
    startDate = serializers.DateTimeField(source="start_date")
    recurrence = serializers.ChoiceField(choices=_values(Recurrence))
    dayOfWeek = serializers.IntegerField(
        source="day_of_week", min_value=0, max_value=6, required=False, allow_null=True
    )
    time = serializers.CharField()
    duration = serializers.IntegerField(min_value=1)

    def validate_time(self, value):
        try:
            return parse_time_of_day(value)
        except ValueError as exc:
            raise serializers.ValidationError(str(exc)) from exc

    def validate(self, attrs):
        if attrs["recurrence"] != Recurrence.CUSTOM.value and attrs.get("day_of_week") is None:
            raise serializers.ValidationError(
                {"dayOfWeek": "This field is required for weekly and fortnightly schedules."}
            )
        return attrs


class EnrollmentInputSerializer(serializers.Serializer):
    customerName = serializers.CharField(source="customer_name", max_length=255, required=False)
    customerEmail = serializers.EmailField(source="customer_email", required=False)
    status = serializers.ChoiceField(choices=_values(EnrollmentStatus), required=False)
    pricePaid = NullableDecimalField(
        source="price_paid", max_digits=10, decimal_places=2, min_value=0,
        required=False, allow_null=True,
    )
    paymentMethod = NullableChoiceField(
        source="payment_method", choices=_values(PaymentMethod), required=False, allow_null=True
    )
    internalNotes = serializers.CharField(source="internal_notes", required=False, allow_blank=True)


class EnrollmentCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    refundAmount = NullableDecimalField(
        source="refund_amount", max_digits=10, decimal_places=2, min_value=0,
        required=False, allow_null=True,
    )


class AttendanceMarkSerializer(serializers.Serializer):
    enrollmentId = serializers.CharField(source="enrollment_id")
    status = serializers.ChoiceField(choices=_values(AttendanceStatus))
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class AttendanceBatchSerializer(serializers.Serializer):
    records = AttendanceMarkSerializer(many=True, allow_empty=False)


# Output


class WorkshopSerializer(serializers.Serializer):
    id = ValueField()
    title = serializers.CharField()
    type = serializers.CharField()


class CohortSerializer(serializers.Serializer):
    """Serializer for the Cohort domain model."""

    id = ValueField()
    workshopId = ValueField(source="workshop_id")
    workshopTitle = serializers.CharField(source="workshop_title")
    title = serializers.CharField()
    slug = serializers.CharField()
    status = ValueField()
    description = serializers.CharField()
    internalNotes = serializers.CharField(source="internal_notes")
    startAt = serializers.DateTimeField(source="start_at")
    endAt = serializers.DateTimeField(source="end_at")
    timezone = serializers.CharField()
    registrationOpensAt = serializers.DateTimeField(source="registration_opens_at")
    registrationClosesAt = serializers.DateTimeField(source="registration_closes_at")
    capacity = ValueField()
    enrolledCount = serializers.IntegerField(source="enrolled_count")
    waitlistEnabled = serializers.BooleanField(source="waitlist_enabled")
    waitlistCapacity = ValueField(source="waitlist_capacity")
    waitlistCount = serializers.IntegerField(source="waitlist_count")
    price = MoneyField()
    compareAtPrice = MoneyField(source="compare_at_price")
    earlyBirdPrice = MoneyField(source="early_bird_price")
    earlyBirdEndsAt = serializers.DateTimeField(source="early_bird_ends_at")
    currency = serializers.CharField()
    deliveryMode = ValueField(source="delivery_mode")
    locationLabel = serializers.CharField(source="location_label")
    locationAddress = serializers.CharField(source="location_address")
    meetingUrl = serializers.CharField(source="meeting_url")
    instructorName = serializers.CharField(source="instructor_name")
    instructorEmail = serializers.CharField(source="instructor_email")
    duplicatedFromId = ValueField(source="duplicated_from_id")
    publishedAt = serializers.DateTimeField(source="published_at")
    cancelledAt = serializers.DateTimeField(source="cancelled_at")
    cancellationReason = serializers.CharField(source="cancellation_reason")
    completedAt = serializers.DateTimeField(source="completed_at")
    createdAt = serializers.DateTimeField(source="created_at")
    updatedAt = serializers.DateTimeField(source="updated_at")


class SessionSerializer(serializers.Serializer):
    """Serializer for the Session domain model."""

    id = ValueField()
    cohortId = ValueField(source="cohort_id")
    sessionNumber = serializers.IntegerField(source="session_number")
    title = serializers.CharField()
    description = serializers.CharField()
    startAt = serializers.DateTimeField(source="starts_at")
    endAt = serializers.DateTimeField(source="ends_at")
    durationMinutes = serializers.IntegerField(source="duration_minutes")
    status = ValueField()
    locationLabel = serializers.CharField(source="location_label")
    meetingUrl = serializers.CharField(source="meeting_url")
    notes = serializers.CharField()


class EnrollmentSerializer(serializers.Serializer):
    """Serializer for the Enrollment domain model."""

    id = ValueField()
    cohortId = ValueField(source="cohort_id")
    customerName = serializers.CharField(source="customer_name")
    customerEmail = serializers.CharField(source="customer_email")
    status = ValueField()
    pricePaid = MoneyField(source="price_paid")
    currency = serializers.CharField()
    paymentMethod = ValueField(source="payment_method")
    waitlistPosition = serializers.IntegerField(source="waitlist_position")
    promotedFromWaitlistAt = serializers.DateTimeField(source="promoted_from_waitlist_at")
    cancelledAt = serializers.DateTimeField(source="cancelled_at")
    cancellationReason = serializers.CharField(source="cancellation_reason")
    refundedAt = serializers.DateTimeField(source="refunded_at")
    refundAmount = MoneyField(source="refund_amount")
    internalNotes = serializers.CharField(source="internal_notes")
    enrolledAt = serializers.DateTimeField(source="enrolled_at")
    completedAt = serializers.DateTimeField(source="completed_at")


class AttendanceRecordSerializer(serializers.Serializer):
    sessionId = ValueField(source="session_id")
    enrollmentId = ValueField(source="enrollment_id")
    status = ValueField()
    checkedInAt = serializers.DateTimeField(source="checked_in_at")
    notes = serializers.CharField()


class AttendanceRowSerializer(serializers.Serializer):
    """One line of a session's attendance sheet; status is null until marked."""

    enrollmentId = ValueField(source="enrollment_id")
    customerName = serializers.CharField(source="customer_name")
    customerEmail = serializers.CharField(source="customer_email")
    status = ValueField(source="record.status", default=None)
    checkedInAt = serializers.DateTimeField(source="record.checked_in_at", default=None)
    notes = serializers.CharField(source="record.notes", default="")


class CohortStatsSerializer(serializers.Serializer):
    enrolled = serializers.IntegerField()
    capacity = serializers.IntegerField()
    waitlist = serializers.IntegerField()
    revenue = serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=True)
    attendanceRate = serializers.FloatField(source="attendance_rate")
    sessionsCompleted = serializers.IntegerField(source="sessions_completed")
    sessionsTotal = serializers.IntegerField(source="sessions_total")
    completionRate = serializers.FloatField(source="completion_rate")
