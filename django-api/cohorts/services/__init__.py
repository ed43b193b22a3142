from cohorts.services.attendance_service import AttendanceMark, AttendanceService
from cohorts.services.cohort_service import CohortService
from cohorts.services.enrollment_service import EnrollmentService
from cohorts.services.session_service import SessionService

__all__ = [
    "AttendanceMark",
    "AttendanceService",
    "CohortService",
    "EnrollmentService",
    "SessionService",
]
