"""Django ORM implementation of the cohort stores."""

from collections.abc import Iterable
from contextlib import AbstractContextManager
from decimal import Decimal
from typing import Any

from django.db import transaction
from django.db.models import Count, Max, Q, Sum

from cohorts import models as orm
from cohorts.domain import (
    AttendanceRecord,
    AttendanceStatus,
    Capacity,
    Cohort,
    CohortId,
    CohortStatus,
    DeliveryMode,
    Enrollment,
    EnrollmentId,
    EnrollmentStatus,
    Money,
    Page,
    PaymentMethod,
    Session,
    SessionId,
    SessionStatus,
    Workshop,
    WorkshopId,
)
from cohorts.stores.interfaces import CohortQuery, CohortStore, WorkshopStore

_SORT_COLUMNS = {
    "startAt": "start_at",
    "title": "title",
    "createdAt": "created_at",
}

_REVENUE_STATUSES = (EnrollmentStatus.ACTIVE.value, EnrollmentStatus.COMPLETED.value)
_CHECKED_IN_STATUSES = (AttendanceStatus.PRESENT.value, AttendanceStatus.LATE.value)


def _money(value: Decimal | None) -> Money | None:
    return Money(amount=value) if value is not None else None


def _capacity(value: int | None) -> Capacity | None:
    return Capacity(value=value) if value is not None else None


def _to_workshop(row: orm.Workshop) -> Workshop:
    return Workshop(
        id=WorkshopId(row.id),
        title=row.title,
        type=row.type,
        created_at=row.created_at,
    )


def _to_cohort(row: orm.Cohort) -> Cohort:
    return Cohort(
        id=CohortId(row.id),
        workshop_id=WorkshopId(row.workshop_id),
        title=row.title,
        slug=row.slug,
        status=CohortStatus(row.status),
        description=row.description,
        internal_notes=row.internal_notes,
        start_at=row.start_at,
        end_at=row.end_at,
        timezone=row.timezone,
        registration_opens_at=row.registration_opens_at,
        registration_closes_at=row.registration_closes_at,
        price=_money(row.price),
        compare_at_price=_money(row.compare_at_price),
        early_bird_price=_money(row.early_bird_price),
        early_bird_ends_at=row.early_bird_ends_at,
        currency=row.currency,
        capacity=_capacity(row.capacity),
        enrolled_count=row.enrolled_count,
        waitlist_enabled=row.waitlist_enabled,
        waitlist_capacity=_capacity(row.waitlist_capacity),
        waitlist_count=row.waitlist_count,
        delivery_mode=DeliveryMode(row.delivery_mode) if row.delivery_mode else None,
        location_label=row.location_label,
        location_address=row.location_address,
        meeting_url=row.meeting_url,
        instructor_name=row.instructor_name,
        instructor_email=row.instructor_email,
        duplicated_from_id=CohortId(row.duplicated_from_id) if row.duplicated_from_id else None,
        published_at=row.published_at,
        cancelled_at=row.cancelled_at,
        cancellation_reason=row.cancellation_reason,
        completed_at=row.completed_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
        workshop_title=row.workshop.title,
    )


def _to_session(row: orm.Session) -> Session:
    return Session(
        id=SessionId(row.id),
        cohort_id=CohortId(row.cohort_id),
        session_number=row.session_number,
        title=row.title,
        description=row.description,
        starts_at=row.starts_at,
        ends_at=row.ends_at,
        duration_minutes=row.duration_minutes,
        status=SessionStatus(row.status),
        location_label=row.location_label,
        meeting_url=row.meeting_url,
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_enrollment(row: orm.Enrollment) -> Enrollment:
    return Enrollment(
        id=EnrollmentId(row.id),
        cohort_id=CohortId(row.cohort_id),
        customer_name=row.customer_name,
        customer_email=row.customer_email,
        status=EnrollmentStatus(row.status),
        price_paid=_money(row.price_paid),
        currency=row.currency,
        payment_method=PaymentMethod(row.payment_method) if row.payment_method else None,
        waitlist_position=row.waitlist_position,
        waitlist_added_at=row.waitlist_added_at,
        promoted_from_waitlist_at=row.promoted_from_waitlist_at,
        cancelled_at=row.cancelled_at,
        cancellation_reason=row.cancellation_reason,
        refunded_at=row.refunded_at,
        refund_amount=_money(row.refund_amount),
        internal_notes=row.internal_notes,
        enrolled_at=row.enrolled_at,
        completed_at=row.completed_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_attendance(row: orm.Attendance) -> AttendanceRecord:
    return AttendanceRecord(
        session_id=SessionId(row.session_id),
        enrollment_id=EnrollmentId(row.enrollment_id),
        status=AttendanceStatus(row.status),
        checked_in_at=row.checked_in_at,
        notes=row.notes,
    )


class DjangoWorkshopStore(WorkshopStore):
    """Workshop lookups backed by the Django ORM."""

    def list_workshops(self) -> list[Workshop]:
        return [_to_workshop(row) for row in orm.Workshop.objects.order_by("title")]

    def workshop_exists(self, workshop_id: WorkshopId) -> bool:
        return orm.Workshop.objects.filter(pk=workshop_id.value).exists()


class DjangoCohortStore(CohortStore):
    """Database-backed cohort store using the Django ORM."""

    def atomic(self) -> AbstractContextManager:
        return transaction.atomic()

    # Cohorts

    def list_cohorts(self, query: CohortQuery) -> Page:
        qs = orm.Cohort.objects.select_related("workshop")
        if query.workshop_id is not None:
            qs = qs.filter(workshop_id=query.workshop_id.value)
        if query.status is not None:
            qs = qs.filter(status=query.status.value)
        if query.search:
            qs = qs.filter(title__icontains=query.search)
        if query.upcoming_after is not None:
            qs = qs.filter(start_at__gt=query.upcoming_after)

        descending = query.sort.startswith("-")
        column = _SORT_COLUMNS.get(query.sort.lstrip("-"), "start_at")
        qs = qs.order_by(f"-{column}" if descending else column, "id")

        total = qs.count()
        offset = (query.page - 1) * query.page_size
        rows = qs[offset : offset + query.page_size]
        return Page(
            items=tuple(_to_cohort(row) for row in rows),
            total=total,
            page=query.page,
            page_size=query.page_size,
        )

    def get_cohort(self, cohort_id: CohortId, for_update: bool = False) -> Cohort | None:
        qs = orm.Cohort.objects.select_related("workshop")
        if for_update:
            qs = qs.select_for_update(of=("self",))
        row = qs.filter(pk=cohort_id.value).first()
        return _to_cohort(row) if row else None

    def slug_exists(self, slug: str, exclude: CohortId | None = None) -> bool:
        qs = orm.Cohort.objects.filter(slug=slug)
        if exclude is not None:
            qs = qs.exclude(pk=exclude.value)
        return qs.exists()

    def create_cohort(self, fields: dict[str, Any]) -> Cohort:
        row = orm.Cohort.objects.create(**fields)
        return self.get_cohort(CohortId(row.pk))

    def update_cohort(self, cohort_id: CohortId, fields: dict[str, Any]) -> Cohort:
        row = orm.Cohort.objects.get(pk=cohort_id.value)
        for name, value in fields.items():
            setattr(row, name, value)
        row.save()
        return self.get_cohort(cohort_id)

    def delete_cohort(self, cohort_id: CohortId) -> None:
        orm.Cohort.objects.filter(pk=cohort_id.value).delete()

    # Sessions

    def list_sessions(self, cohort_id: CohortId) -> list[Session]:
        qs = orm.Session.objects.filter(cohort_id=cohort_id.value).order_by("session_number")
        return [_to_session(row) for row in qs]

    def get_session(self, session_id: SessionId) -> Session | None:
        row = orm.Session.objects.filter(pk=session_id.value).first()
        return _to_session(row) if row else None

    def max_session_number(self, cohort_id: CohortId) -> int:
        result = orm.Session.objects.filter(cohort_id=cohort_id.value).aggregate(
            highest=Max("session_number")
        )
        return result["highest"] or 0

    def create_sessions(
        self, cohort_id: CohortId, rows: Iterable[dict[str, Any]]
    ) -> list[Session]:
        created = []
        with transaction.atomic():
            for fields in rows:
                # save() per row so post_save fires for cache invalidation
                row = orm.Session.objects.create(cohort_id=cohort_id.value, **fields)
                created.append(_to_session(row))
        return created

    def update_session(self, session_id: SessionId, fields: dict[str, Any]) -> Session:
        row = orm.Session.objects.get(pk=session_id.value)
        for name, value in fields.items():
            setattr(row, name, value)
        row.save()
        return _to_session(row)

    def delete_session(self, session_id: SessionId) -> None:
        row = orm.Session.objects.filter(pk=session_id.value).first()
        if row is not None:
            row.delete()

    def count_sessions(self, cohort_id: CohortId, status: SessionStatus | None = None) -> int:
        qs = orm.Session.objects.filter(cohort_id=cohort_id.value)
        if status is not None:
            qs = qs.filter(status=status.value)
        return qs.count()

    # Enrollments

    def list_enrollments(
        self, cohort_id: CohortId, status: EnrollmentStatus | None = None
    ) -> list[Enrollment]:
        qs = orm.Enrollment.objects.filter(cohort_id=cohort_id.value)
        if status is not None:
            qs = qs.filter(status=status.value)
        return [_to_enrollment(row) for row in qs.order_by("enrolled_at", "id")]

    def get_enrollment(self, enrollment_id: EnrollmentId) -> Enrollment | None:
        row = orm.Enrollment.objects.filter(pk=enrollment_id.value).first()
        return _to_enrollment(row) if row else None

    def email_enrolled(self, cohort_id: CohortId, email: str) -> bool:
        return orm.Enrollment.objects.filter(
            cohort_id=cohort_id.value, customer_email__iexact=email
        ).exists()

    def create_enrollment(self, cohort_id: CohortId, fields: dict[str, Any]) -> Enrollment:
        row = orm.Enrollment.objects.create(cohort_id=cohort_id.value, **fields)
        return _to_enrollment(row)

    def update_enrollment(self, enrollment_id: EnrollmentId, fields: dict[str, Any]) -> Enrollment:
        row = orm.Enrollment.objects.get(pk=enrollment_id.value)
        for name, value in fields.items():
            setattr(row, name, value)
        row.save()
        return _to_enrollment(row)

    def next_waitlisted(self, cohort_id: CohortId) -> Enrollment | None:
        row = (
            orm.Enrollment.objects.filter(
                cohort_id=cohort_id.value, status=EnrollmentStatus.WAITLISTED.value
            )
            .order_by("waitlist_position", "enrolled_at")
            .first()
        )
        return _to_enrollment(row) if row else None

    def enrollment_status_counts(self, cohort_id: CohortId) -> dict[EnrollmentStatus, int]:
        rows = (
            orm.Enrollment.objects.filter(cohort_id=cohort_id.value)
            .values("status")
            .annotate(total=Count("id"))
        )
        counts = {status: 0 for status in EnrollmentStatus}
        for row in rows:
            counts[EnrollmentStatus(row["status"])] = row["total"]
        return counts

    def revenue(self, cohort_id: CohortId) -> Decimal:
        result = orm.Enrollment.objects.filter(
            cohort_id=cohort_id.value, status__in=_REVENUE_STATUSES
        ).aggregate(total=Sum("price_paid"))
        return result["total"] or Decimal("0")

    # Attendance

    def attendance_for_session(self, session_id: SessionId) -> dict[EnrollmentId, AttendanceRecord]:
        qs = orm.Attendance.objects.filter(session_id=session_id.value)
        return {EnrollmentId(row.enrollment_id): _to_attendance(row) for row in qs}

    def save_attendance(self, record: AttendanceRecord) -> AttendanceRecord:
        row, _ = orm.Attendance.objects.update_or_create(
            session_id=record.session_id.value,
            enrollment_id=record.enrollment_id.value,
            defaults={
                "status": record.status.value,
                "checked_in_at": record.checked_in_at,
                "notes": record.notes,
            },
        )
        return _to_attendance(row)

    def attendance_counts(self, cohort_id: CohortId) -> tuple[int, int]:
        result = orm.Attendance.objects.filter(session__cohort_id=cohort_id.value).aggregate(
            total=Count("id"),
            checked_in=Count("id", filter=Q(status__in=_CHECKED_IN_STATUSES)),
        )
        return result["total"], result["checked_in"]
