from django.urls import path

from cohorts.handlers import (
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

urlpatterns = [
    path("workshops", WorkshopListView.as_view(), name="workshop-list"),
    path("cohorts", CohortListView.as_view(), name="cohort-list"),
    path("cohorts/<str:cohort_id>", CohortDetailView.as_view(), name="cohort-detail"),
    path("cohorts/<str:cohort_id>/status", CohortStatusView.as_view(), name="cohort-status"),
    path(
        "cohorts/<str:cohort_id>/duplicate",
        CohortDuplicateView.as_view(),
        name="cohort-duplicate",
    ),
    path("cohorts/<str:cohort_id>/stats", CohortStatsView.as_view(), name="cohort-stats"),
    path("cohorts/<str:cohort_id>/sessions", SessionListView.as_view(), name="session-list"),
    path(
        "cohorts/<str:cohort_id>/sessions/bulk",
        SessionBulkView.as_view(),
        name="session-bulk",
    ),
    path(
        "cohorts/<str:cohort_id>/sessions/<str:session_id>",
        SessionDetailView.as_view(),
        name="session-detail",
    ),
    path(
        "cohorts/<str:cohort_id>/sessions/<str:session_id>/attendance",
        AttendanceView.as_view(),
        name="session-attendance",
    ),
    path(
        "cohorts/<str:cohort_id>/enrollments",
        EnrollmentListView.as_view(),
        name="enrollment-list",
    ),
    path(
        "cohorts/<str:cohort_id>/enrollments/<str:enrollment_id>",
        EnrollmentDetailView.as_view(),
        name="enrollment-detail",
    ),
    path(
        "cohorts/<str:cohort_id>/enrollments/<str:enrollment_id>/cancel",
        EnrollmentCancelView.as_view(),
        name="enrollment-cancel",
    ),
]
