from cohorts.domain.models import (
    AttendanceRecord,
    AttendanceRow,
    Cohort,
    CohortStats,
    Enrollment,
    Page,
    Session,
    Workshop,
)
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
    Recurrence,
    SessionId,
    SessionStatus,
    WorkshopId,
)

__all__ = [
    "Workshop",
    "Cohort",
    "Session",
    "Enrollment",
    "AttendanceRecord",
    "AttendanceRow",
    "CohortStats",
    "Page",
    "WorkshopId",
    "CohortId",
    "SessionId",
    "EnrollmentId",
    "Money",
    "Capacity",
    "CohortStatus",
    "SessionStatus",
    "EnrollmentStatus",
    "AttendanceStatus",
    "DeliveryMode",
    "PaymentMethod",
    "Recurrence",
]
