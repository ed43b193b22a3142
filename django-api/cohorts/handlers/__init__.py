from cohorts.handlers.views import (
    AttendanceView,
    CohortDetailView,
    CohortDuplicateView,
    CohortListView,
    CohortStatsView,
    CohortStatusView,
    EnrollmentCancelView,
    EnrollmentDetailView,
    EnrollmentListView,
    SessionBulkView,
    SessionDetailView,
    SessionListView,
    WorkshopListView,
)

__all__ = [
    "AttendanceView",
    "CohortDetailView",
    "CohortDuplicateView",
    "CohortListView",
    "CohortStatsView",
    "CohortStatusView",
    "EnrollmentCancelView",
    "EnrollmentDetailView",
    "EnrollmentListView",
    "SessionBulkView",
    "SessionDetailView",
    "SessionListView",
    "WorkshopListView",
]
