"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Leave domain error mapping to the exception handler
- Never contain business logic
- Never expose internal error details
"""

from django.core.cache import cache
from django.utils import timezone
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from cohorts import cache as cohort_cache
from cohorts.domain import CohortStatus, Recurrence, WorkshopId
from cohorts.domain.errors import ValidationError
from cohorts.domain.schedule import BulkSchedule
from cohorts.handlers import serializers as s
from cohorts.services import (
    AttendanceMark,
    AttendanceService,
    CohortService,
    EnrollmentService,
    SessionService,
)
from cohorts.services.common import parse_cohort_id
from cohorts.stores.django_store import DjangoCohortStore, DjangoWorkshopStore
from cohorts.stores.interfaces import CohortQuery


def cohort_service() -> CohortService:
    return CohortService(DjangoCohortStore(), DjangoWorkshopStore())


def session_service() -> SessionService:
    return SessionService(DjangoCohortStore())


def enrollment_service() -> EnrollmentService:
    return EnrollmentService(DjangoCohortStore())


def attendance_service() -> AttendanceService:
    return AttendanceService(DjangoCohortStore())


def _validated(serializer_cls, data, partial: bool = False) -> dict:
    serializer = serializer_cls(data=data, partial=partial)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


class WorkshopListView(APIView):
    """Handler for GET /api/workshops"""

    def get(self, request: Request) -> Response:
        workshops = DjangoWorkshopStore().list_workshops()
        return Response(s.WorkshopSerializer(workshops, many=True).data)


class CohortListView(APIView):
    """Handler for GET/POST /api/cohorts"""

    def get(self, request: Request) -> Response:
        params = _validated(s.CohortListQuerySerializer, request.query_params)
        query = CohortQuery(
            workshop_id=WorkshopId(params["workshop_id"]) if params.get("workshop_id") else None,
            status=CohortStatus(params["status"]) if params.get("status") else None,
            search=params["q"].strip(),
            upcoming_after=timezone.now() if params["upcoming"] else None,
            sort=params["sort"],
            page=params["page"],
            page_size=params["page_size"],
        )
        page = cohort_service().list_cohorts(query)
        return Response(
            {
                "items": s.CohortSerializer(page.items, many=True).data,
                "total": page.total,
                "page": page.page,
                "pageSize": page.page_size,
                "totalPages": page.total_pages,
            }
        )

    def post(self, request: Request) -> Response:
        data = _validated(s.CohortInputSerializer, request.data)
        cohort = cohort_service().create_cohort(data)
        return Response(s.CohortSerializer(cohort).data, status=status.HTTP_201_CREATED)


class CohortDetailView(APIView):
    """Handler for GET/PUT/PATCH/DELETE /api/cohorts/{cohort_id}"""

    def get(self, request: Request, cohort_id: str) -> Response:
        key = cohort_cache.cohort_key(parse_cohort_id(cohort_id))
        data = cache.get(key)
        if data is None:
            cohort = cohort_service().get_cohort(cohort_id)
            data = s.CohortSerializer(cohort).data
            cache.set(key, data, cohort_cache.ttl())
        return Response(data)

    def put(self, request: Request, cohort_id: str) -> Response:
        data = _validated(s.CohortInputSerializer, request.data, partial=True)
        cohort = cohort_service().update_cohort(cohort_id, data)
        return Response(s.CohortSerializer(cohort).data)

    def patch(self, request: Request, cohort_id: str) -> Response:
        return self.put(request, cohort_id)

    def delete(self, request: Request, cohort_id: str) -> Response:
        cohort_service().delete_cohort(cohort_id)
        return Response({"success": True})


class CohortStatusView(APIView):
    """Handler for PUT /api/cohorts/{cohort_id}/status"""

    def put(self, request: Request, cohort_id: str) -> Response:
        data = _validated(s.StatusChangeSerializer, request.data)
        cohort = cohort_service().change_status(cohort_id, data["status"], data.get("reason"))
        return Response(s.CohortSerializer(cohort).data)


class CohortDuplicateView(APIView):
    """Handler for POST /api/cohorts/{cohort_id}/duplicate"""

    def post(self, request: Request, cohort_id: str) -> Response:
        cohort = cohort_service().duplicate_cohort(cohort_id)
        return Response(s.CohortSerializer(cohort).data, status=status.HTTP_201_CREATED)


class CohortStatsView(APIView):
    """Handler for GET /api/cohorts/{cohort_id}/stats"""

    def get(self, request: Request, cohort_id: str) -> Response:
        key = cohort_cache.stats_key(parse_cohort_id(cohort_id))
        data = cache.get(key)
        if data is None:
            stats = cohort_service().get_stats(cohort_id)
            data = s.CohortStatsSerializer(stats).data
            cache.set(key, data, cohort_cache.ttl())
        return Response(data)


class SessionListView(APIView):
    """Handler for GET/POST /api/cohorts/{cohort_id}/sessions"""

    def get(self, request: Request, cohort_id: str) -> Response:
        sessions = session_service().list_sessions(cohort_id)
        return Response(s.SessionSerializer(sessions, many=True).data)

    def post(self, request: Request, cohort_id: str) -> Response:
        data = _validated(s.SessionInputSerializer, request.data)
        session = session_service().create_session(cohort_id, data)
        return Response(s.SessionSerializer(session).data, status=status.HTTP_201_CREATED)


class SessionBulkView(APIView):
    """Handler for POST /api/cohorts/{cohort_id}/sessions/bulk"""

    def post(self, request: Request, cohort_id: str) -> Response:
        data = _validated(s.BulkSessionSerializer, request.data)
        recurrence = Recurrence(data["recurrence"])
        try:
            schedule = BulkSchedule(
                count=data["count"],
                start_date=data["start_date"],
                recurrence=recurrence,
                time_of_day=data["time"],
                duration_minutes=data["duration"],
                day_of_week=data.get("day_of_week") if recurrence.aligns_to_weekday else None,
            )
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        sessions = session_service().bulk_create(cohort_id, schedule)
        return Response(s.SessionSerializer(sessions, many=True).data, status=status.HTTP_201_CREATED)


class SessionDetailView(APIView):
    """Handler for PUT/PATCH/DELETE /api/cohorts/{cohort_id}/sessions/{session_id}"""

    def put(self, request: Request, cohort_id: str, session_id: str) -> Response:
        data = _validated(s.SessionInputSerializer, request.data, partial=True)
        session = session_service().update_session(cohort_id, session_id, data)
        return Response(s.SessionSerializer(session).data)

    def patch(self, request: Request, cohort_id: str, session_id: str) -> Response:
        return self.put(request, cohort_id, session_id)

    def delete(self, request: Request, cohort_id: str, session_id: str) -> Response:
        session_service().delete_session(cohort_id, session_id)
        return Response({"success": True})


class EnrollmentListView(APIView):
    """Handler for GET/POST /api/cohorts/{cohort_id}/enrollments"""

    def get(self, request: Request, cohort_id: str) -> Response:
        enrollments = enrollment_service().list_enrollments(cohort_id)
        return Response(s.EnrollmentSerializer(enrollments, many=True).data)

    def post(self, request: Request, cohort_id: str) -> Response:
        data = _validated(s.EnrollmentInputSerializer, request.data)
        enrollment = enrollment_service().enroll(cohort_id, data)
        return Response(s.EnrollmentSerializer(enrollment).data, status=status.HTTP_201_CREATED)


class EnrollmentDetailView(APIView):
    """Handler for PUT /api/cohorts/{cohort_id}/enrollments/{enrollment_id}"""

    def put(self, request: Request, cohort_id: str, enrollment_id: str) -> Response:
        data = _validated(s.EnrollmentInputSerializer, request.data, partial=True)
        enrollment = enrollment_service().update_enrollment(cohort_id, enrollment_id, data)
        return Response(s.EnrollmentSerializer(enrollment).data)


class EnrollmentCancelView(APIView):
    """Handler for POST /api/cohorts/{cohort_id}/enrollments/{enrollment_id}/cancel"""

    def post(self, request: Request, cohort_id: str, enrollment_id: str) -> Response:
        data = _validated(s.EnrollmentCancelSerializer, request.data)
        enrollment = enrollment_service().cancel(
            cohort_id,
            enrollment_id,
            reason=data.get("reason"),
            refund_amount=data.get("refund_amount"),
        )
        return Response(s.EnrollmentSerializer(enrollment).data)


class AttendanceView(APIView):
    """Handler for GET/POST /api/cohorts/{cohort_id}/sessions/{session_id}/attendance"""

    def get(self, request: Request, cohort_id: str, session_id: str) -> Response:
        rows = attendance_service().sheet(cohort_id, session_id)
        return Response(s.AttendanceRowSerializer(rows, many=True).data)

    def post(self, request: Request, cohort_id: str, session_id: str) -> Response:
        data = _validated(s.AttendanceBatchSerializer, request.data)
        marks = [
            AttendanceMark(
                enrollment_id=record["enrollment_id"],
                status=record["status"],
                notes=record.get("notes"),
            )
            for record in data["records"]
        ]
        records = attendance_service().record(cohort_id, session_id, marks)
        return Response(s.AttendanceRecordSerializer(records, many=True).data)
