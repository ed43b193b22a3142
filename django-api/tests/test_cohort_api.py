"""Integration tests for the cohort admin API.

These exercise the REST contract end to end through DRF's test client.
Run with: pytest tests/test_cohort_api.py -v
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from cohorts import models as orm


def url(*parts) -> str:
    return "/api/" + "/".join(str(part) for part in parts)


def enroll(client: APIClient, cohort, name="Ada Lovelace", email="ada@example.com", **extra):
    return client.post(
        url("cohorts", cohort.id, "enrollments"),
        {"customerName": name, "customerEmail": email, **extra},
        format="json",
    )


@pytest.mark.django_db
class TestAuthentication:
    """Tests for access control."""

    def test_anonymous_request_is_rejected(self, api_client: APIClient):
        response = api_client.get(url("cohorts"))
        assert response.status_code == 401
        assert response.json()["code"] == "NOT_AUTHENTICATED"

    def test_non_staff_token_is_forbidden(self, api_client: APIClient, django_user_model):
        from rest_framework.authtoken.models import Token

        user = django_user_model.objects.create_user(username="learner", password="secret")
        token = Token.objects.create(user=user)
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token.key}")
        assert api_client.get(url("cohorts")).status_code == 403


@pytest.mark.django_db
class TestCohortList:
    """Tests for GET /api/cohorts"""

    def test_list_returns_paginated_results(self, staff_client: APIClient, make_cohort):
        for _ in range(3):
            make_cohort()
        response = staff_client.get(url("cohorts"), {"pageSize": 2})
        body = response.json()
        assert response.status_code == 200
        assert len(body["items"]) == 2
        assert body["total"] == 3
        assert body["totalPages"] == 2

    def test_page_size_is_clamped(self, staff_client: APIClient):
        body = staff_client.get(url("cohorts"), {"pageSize": 500, "page": 0}).json()
        assert body["pageSize"] == 100
        assert body["page"] == 1

    def test_filters_by_status_and_title(self, staff_client: APIClient, make_cohort):
        make_cohort(title="Raku Firing", status="open")
        make_cohort(title="Raku Basics", status="draft")
        make_cohort(title="Glaze Lab", status="open")
        body = staff_client.get(url("cohorts"), {"status": "open", "q": "raku"}).json()
        assert [item["title"] for item in body["items"]] == ["Raku Firing"]

    def test_upcoming_excludes_past_cohorts(self, staff_client: APIClient, make_cohort):
        make_cohort(title="Past", start_at=datetime(2001, 1, 1, tzinfo=timezone.utc))
        make_cohort(title="Future", start_at=datetime(2099, 1, 1, tzinfo=timezone.utc))
        body = staff_client.get(url("cohorts"), {"upcoming": "true"}).json()
        assert [item["title"] for item in body["items"]] == ["Future"]


@pytest.mark.django_db
class TestCohortCrud:
    """Tests for creating, reading, updating and deleting cohorts."""

    def test_create_cohort_starts_as_draft(self, staff_client: APIClient, workshop):
        response = staff_client.post(
            url("cohorts"),
            {"workshopId": str(workshop.id), "title": "Summer Wheel", "capacity": 8},
            format="json",
        )
        body = response.json()
        assert response.status_code == 201
        assert body["status"] == "draft"
        assert body["slug"] == "summer-wheel"
        assert body["enrolledCount"] == 0
        assert body["workshopTitle"] == "Intro to Pottery"
        assert body["capacity"] == 8

    def test_create_requires_title(self, staff_client: APIClient, workshop):
        response = staff_client.post(url("cohorts"), {"workshopId": str(workshop.id)}, format="json")
        assert response.status_code == 400
        assert response.json() == {
            "error": "workshopId and title are required",
            "code": "VALIDATION_ERROR",
        }

    def test_create_with_unknown_workshop(self, staff_client: APIClient):
        response = staff_client.post(
            url("cohorts"), {"workshopId": str(uuid.uuid4()), "title": "X"}, format="json"
        )
        assert response.status_code == 404
        assert response.json()["code"] == "WORKSHOP_NOT_FOUND"

    def test_duplicate_title_gets_numbered_slug(self, staff_client: APIClient, workshop):
        payload = {"workshopId": str(workshop.id), "title": "Summer Wheel"}
        staff_client.post(url("cohorts"), payload, format="json")
        body = staff_client.post(url("cohorts"), payload, format="json").json()
        assert body["slug"] == "summer-wheel-1"

    def test_invalid_field_is_a_validation_error(self, staff_client: APIClient, workshop):
        response = staff_client.post(
            url("cohorts"),
            {"workshopId": str(workshop.id), "title": "X", "capacity": -1},
            format="json",
        )
        body = response.json()
        assert response.status_code == 400
        assert body["code"] == "VALIDATION_ERROR"
        assert body["error"].startswith("capacity:")

    def test_get_cohort(self, staff_client: APIClient, cohort):
        response = staff_client.get(url("cohorts", cohort.id))
        assert response.status_code == 200
        assert response.json()["id"] == str(cohort.id)

    def test_get_cohort_not_found(self, staff_client: APIClient):
        response = staff_client.get(url("cohorts", uuid.uuid4()))
        assert response.status_code == 404
        assert response.json()["code"] == "COHORT_NOT_FOUND"

    def test_get_cohort_invalid_id_format(self, staff_client: APIClient):
        response = staff_client.get(url("cohorts", "not-a-uuid"))
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_ID"

    def test_update_ignores_counters_and_status(self, staff_client: APIClient, cohort):
        response = staff_client.put(
            url("cohorts", cohort.id),
            {"title": "Spring Pottery II", "enrolledCount": 40, "status": "completed", "price": ""},
            format="json",
        )
        body = response.json()
        assert response.status_code == 200
        assert body["title"] == "Spring Pottery II"
        assert body["slug"] == "spring-pottery-ii"
        assert body["enrolledCount"] == 0
        assert body["status"] == "draft"
        assert body["price"] is None

    def test_update_rejects_unknown_timezone(self, staff_client: APIClient, cohort):
        response = staff_client.put(url("cohorts", cohort.id), {"timezone": "Mars/Olympus"}, format="json")
        assert response.status_code == 400

    @pytest.mark.parametrize("field", ["capacity", "waitlistCapacity"])
    def test_zero_capacity_is_rejected(self, staff_client: APIClient, cohort, field):
        response = staff_client.put(url("cohorts", cohort.id), {field: 0}, format="json")
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_blank_capacity_means_unlimited(self, staff_client: APIClient, make_cohort):
        cohort = make_cohort(capacity=5)
        response = staff_client.put(url("cohorts", cohort.id), {"capacity": ""}, format="json")
        assert response.status_code == 200
        assert response.json()["capacity"] is None

    def test_delete_draft(self, staff_client: APIClient, cohort):
        response = staff_client.delete(url("cohorts", cohort.id))
        assert response.json() == {"success": True}
        assert not orm.Cohort.objects.filter(pk=cohort.pk).exists()

    def test_delete_open_cohort_is_rejected(self, staff_client: APIClient, make_cohort):
        cohort = make_cohort(status="open")
        response = staff_client.delete(url("cohorts", cohort.id))
        assert response.status_code == 400
        assert response.json()["code"] == "COHORT_NOT_DELETABLE"

    def test_duplicate_copies_cohort_and_sessions(self, staff_client: APIClient, make_cohort):
        source = make_cohort(status="completed", capacity=10, enrolled_count=10)
        orm.Session.objects.create(
            cohort=source,
            session_number=1,
            title="Centering",
            starts_at=datetime(2030, 3, 4, tzinfo=timezone.utc),
            status="completed",
        )
        response = staff_client.post(url("cohorts", source.id, "duplicate"))
        body = response.json()
        assert response.status_code == 201
        assert body["status"] == "draft"
        assert body["enrolledCount"] == 0
        assert body["capacity"] == 10
        assert body["duplicatedFromId"] == str(source.id)
        assert body["slug"] != source.slug
        [session] = orm.Session.objects.filter(cohort_id=body["id"])
        assert session.status == "scheduled"


@pytest.mark.django_db
class TestCohortStatus:
    """Tests for PUT /api/cohorts/{id}/status"""

    def test_open_draft_cohort(self, staff_client: APIClient, cohort):
        response = staff_client.put(url("cohorts", cohort.id, "status"), {"status": "open"}, format="json")
        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "open"
        assert body["publishedAt"] is not None
        assert body["registrationOpensAt"] is not None

    def test_illegal_transition_is_rejected(self, staff_client: APIClient, cohort):
        response = staff_client.put(
            url("cohorts", cohort.id, "status"), {"status": "completed"}, format="json"
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATUS_TRANSITION"
        cohort.refresh_from_db()
        assert cohort.status == "draft"

    def test_cancel_records_reason(self, staff_client: APIClient, make_cohort):
        cohort = make_cohort(status="in_progress")
        response = staff_client.put(
            url("cohorts", cohort.id, "status"),
            {"status": "cancelled", "reason": "Kiln broke"},
            format="json",
        )
        body = response.json()
        assert body["status"] == "cancelled"
        assert body["cancellationReason"] == "Kiln broke"
        assert body["cancelledAt"] is not None

    def test_completed_cohort_cannot_move(self, staff_client: APIClient, make_cohort):
        cohort = make_cohort(status="completed")
        response = staff_client.put(
            url("cohorts", cohort.id, "status"), {"status": "cancelled"}, format="json"
        )
        assert response.status_code == 400


@pytest.mark.django_db
class TestSessions:
    """Tests for /api/cohorts/{id}/sessions"""

    def test_add_session_numbers_sequentially(self, staff_client: APIClient, cohort):
        for title in ("Centering", "Pulling"):
            response = staff_client.post(
                url("cohorts", cohort.id, "sessions"),
                {"title": title, "startAt": "2030-03-04T07:00:00Z", "durationMinutes": 90},
                format="json",
            )
            assert response.status_code == 201
        sessions = staff_client.get(url("cohorts", cohort.id, "sessions")).json()
        assert [(s["sessionNumber"], s["title"]) for s in sessions] == [(1, "Centering"), (2, "Pulling")]
        assert sessions[0]["endAt"] == "2030-03-04T08:30:00Z"

    def test_update_and_delete_session(self, staff_client: APIClient, cohort):
        created = staff_client.post(
            url("cohorts", cohort.id, "sessions"),
            {"title": "Centering", "startAt": "2030-03-04T07:00:00Z"},
            format="json",
        ).json()
        updated = staff_client.put(
            url("cohorts", cohort.id, "sessions", created["id"]),
            {"status": "completed"},
            format="json",
        ).json()
        assert updated["status"] == "completed"
        response = staff_client.delete(url("cohorts", cohort.id, "sessions", created["id"]))
        assert response.json() == {"success": True}
        assert staff_client.get(url("cohorts", cohort.id, "sessions")).json() == []

    def test_session_of_other_cohort_is_not_found(self, staff_client: APIClient, make_cohort):
        first, second = make_cohort(), make_cohort()
        session = orm.Session.objects.create(
            cohort=first, session_number=1, title="A", starts_at=datetime(2030, 1, 1, tzinfo=timezone.utc)
        )
        response = staff_client.delete(url("cohorts", second.id, "sessions", session.id))
        assert response.status_code == 404
        assert response.json()["code"] == "SESSION_NOT_FOUND"

    def test_bulk_weekly_sessions(self, staff_client: APIClient, cohort):
        """Six weekly Monday sessions at 6pm Sydney time."""
        response = staff_client.post(
            url("cohorts", cohort.id, "sessions", "bulk"),
            {
                "count": 6,
                "startDate": "2030-03-01T00:00:00Z",
                "recurrence": "weekly",
                "dayOfWeek": 1,
                "time": "18:00",
                "duration": 90,
            },
            format="json",
        )
        sessions = response.json()
        assert response.status_code == 201
        assert len(sessions) == 6
        assert sessions[0]["startAt"] == "2030-03-04T07:00:00Z"
        assert sessions[1]["startAt"] == "2030-03-11T07:00:00Z"
        assert sessions[5]["title"] == "Session 6"

    def test_bulk_weekly_requires_day_of_week(self, staff_client: APIClient, cohort):
        response = staff_client.post(
            url("cohorts", cohort.id, "sessions", "bulk"),
            {"count": 2, "startDate": "2030-03-01T00:00:00Z", "recurrence": "weekly", "time": "18:00", "duration": 60},
            format="json",
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_bulk_count_is_capped(self, staff_client: APIClient, cohort):
        response = staff_client.post(
            url("cohorts", cohort.id, "sessions", "bulk"),
            {"count": 53, "startDate": "2030-03-01T00:00:00Z", "recurrence": "custom", "time": "18:00", "duration": 60},
            format="json",
        )
        assert response.status_code == 400


@pytest.mark.django_db
class TestEnrollments:
    """Tests for /api/cohorts/{id}/enrollments"""

    def test_enroll_increments_count(self, staff_client: APIClient, cohort):
        response = enroll(staff_client, cohort, pricePaid="120.00", paymentMethod="manual")
        body = response.json()
        assert response.status_code == 201
        assert body["status"] == "active"
        assert body["pricePaid"] == "120.00"
        cohort.refresh_from_db()
        assert cohort.enrolled_count == 1

    def test_same_email_twice_conflicts(self, staff_client: APIClient, cohort):
        enroll(staff_client, cohort)
        response = enroll(staff_client, cohort, email="ADA@example.com")
        assert response.status_code == 409
        assert response.json()["code"] == "ALREADY_ENROLLED"

    def test_full_cohort_without_waitlist(self, staff_client: APIClient, make_cohort):
        cohort = make_cohort(capacity=1)
        enroll(staff_client, cohort)
        response = enroll(staff_client, cohort, name="Grace", email="grace@example.com")
        assert response.status_code == 400
        assert response.json()["code"] == "COHORT_FULL"

    def test_full_cohort_waitlists_then_promotes(self, staff_client: APIClient, make_cohort):
        cohort = make_cohort(capacity=1, waitlist_enabled=True)
        first = enroll(staff_client, cohort).json()
        second = enroll(staff_client, cohort, name="Grace", email="grace@example.com").json()
        assert second["status"] == "waitlisted"
        assert second["waitlistPosition"] == 1

        response = staff_client.post(
            url("cohorts", cohort.id, "enrollments", first["id"], "cancel"),
            {"reason": "Moved away"},
            format="json",
        )
        assert response.json()["status"] == "cancelled"

        promoted = orm.Enrollment.objects.get(pk=second["id"])
        assert promoted.status == "active"
        assert promoted.promoted_from_waitlist_at is not None
        cohort.refresh_from_db()
        assert (cohort.enrolled_count, cohort.waitlist_count) == (1, 0)

    def test_cancel_twice_is_rejected(self, staff_client: APIClient, cohort):
        enrollment = enroll(staff_client, cohort).json()
        cancel_url = url("cohorts", cohort.id, "enrollments", enrollment["id"], "cancel")
        staff_client.post(cancel_url, {}, format="json")
        response = staff_client.post(cancel_url, {}, format="json")
        assert response.json()["code"] == "ALREADY_CANCELLED"

    def test_update_enrollment_notes(self, staff_client: APIClient, cohort):
        enrollment = enroll(staff_client, cohort).json()
        response = staff_client.put(
            url("cohorts", cohort.id, "enrollments", enrollment["id"]),
            {"internalNotes": "Bringing own apron"},
            format="json",
        )
        assert response.json()["internalNotes"] == "Bringing own apron"

    def test_update_cannot_cancel_around_counters(self, staff_client: APIClient, make_cohort):
        cohort = make_cohort(capacity=1, waitlist_enabled=True)
        first = enroll(staff_client, cohort).json()
        second = enroll(staff_client, cohort, name="Grace", email="grace@example.com").json()

        response = staff_client.put(
            url("cohorts", cohort.id, "enrollments", first["id"]),
            {"status": "cancelled"},
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert orm.Enrollment.objects.get(pk=first["id"]).status == "active"
        assert orm.Enrollment.objects.get(pk=second["id"]).status == "waitlisted"
        cohort.refresh_from_db()
        assert (cohort.enrolled_count, cohort.waitlist_count) == (1, 1)

    def test_update_can_mark_active_enrollment_completed(self, staff_client: APIClient, cohort):
        enrollment = enroll(staff_client, cohort).json()
        response = staff_client.put(
            url("cohorts", cohort.id, "enrollments", enrollment["id"]),
            {"status": "completed"},
            format="json",
        )
        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "completed"
        assert body["completedAt"] is not None
        cohort.refresh_from_db()
        assert cohort.enrolled_count == 1


@pytest.mark.django_db
class TestAttendanceAndStats:
    """Tests for attendance sheets and the stats aggregate."""

    @pytest.fixture
    def session(self, cohort):
        return orm.Session.objects.create(
            cohort=cohort, session_number=1, title="Centering", starts_at=datetime(2030, 3, 4, tzinfo=timezone.utc)
        )

    def test_unmarked_sheet_has_null_status(self, staff_client: APIClient, cohort, session):
        enroll(staff_client, cohort, name="Zoe", email="zoe@example.com")
        enroll(staff_client, cohort, name="Ada", email="ada@example.com")
        rows = staff_client.get(url("cohorts", cohort.id, "sessions", session.id, "attendance")).json()
        assert [row["customerName"] for row in rows] == ["Ada", "Zoe"]
        assert {row["status"] for row in rows} == {None}

    def test_record_and_re_record_attendance(self, staff_client: APIClient, cohort, session):
        enrollment = enroll(staff_client, cohort).json()
        attendance_url = url("cohorts", cohort.id, "sessions", session.id, "attendance")

        first = staff_client.post(
            attendance_url, {"records": [{"enrollmentId": enrollment["id"], "status": "present"}]}, format="json"
        ).json()
        assert first[0]["checkedInAt"] is not None

        staff_client.post(
            attendance_url, {"records": [{"enrollmentId": enrollment["id"], "status": "absent"}]}, format="json"
        )
        assert orm.Attendance.objects.filter(session=session).count() == 1
        [row] = staff_client.get(attendance_url).json()
        assert row["status"] == "absent"

    def test_empty_batch_is_rejected(self, staff_client: APIClient, cohort, session):
        response = staff_client.post(
            url("cohorts", cohort.id, "sessions", session.id, "attendance"), {"records": []}, format="json"
        )
        assert response.status_code == 400

    def test_stats(self, staff_client: APIClient, make_cohort):
        cohort = make_cohort(capacity=10)
        session = orm.Session.objects.create(
            cohort=cohort,
            session_number=1,
            title="Centering",
            starts_at=datetime(2030, 3, 4, tzinfo=timezone.utc),
            status="completed",
        )
        ada = enroll(staff_client, cohort, pricePaid="100.00").json()
        grace = enroll(staff_client, cohort, name="Grace", email="grace@example.com", pricePaid="50").json()
        staff_client.post(
            url("cohorts", cohort.id, "sessions", session.id, "attendance"),
            {
                "records": [
                    {"enrollmentId": ada["id"], "status": "present"},
                    {"enrollmentId": grace["id"], "status": "absent"},
                ]
            },
            format="json",
        )
        orm.Enrollment.objects.filter(pk=grace["id"]).update(status="completed")

        stats = staff_client.get(url("cohorts", cohort.id, "stats")).json()

        assert stats["enrolled"] == 2
        assert stats["capacity"] == 10
        assert Decimal(stats["revenue"]) == Decimal("150.00")
        assert stats["attendanceRate"] == 50.0
        assert stats["completionRate"] == 50.0
        assert (stats["sessionsCompleted"], stats["sessionsTotal"]) == (1, 1)
