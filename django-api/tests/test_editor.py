"""Tests for the async cohort editor.

The editor talks to an in-memory httpx.MockTransport, so no server runs.
Run with: pytest tests/test_editor.py -v
"""

import asyncio
import json
from unittest.mock import MagicMock

import httpx
import pytest

from cohorts.domain import CohortStatus
from cohorts.editor import autosave
from cohorts.editor import (
    BulkSessionRequest,
    CohortApiClient,
    CohortEditor,
    Debouncer,
    EditorConfig,
    IllegalTransition,
    SaveStatus,
    Tab,
)

COHORT_ID = "6f1c2d9e-0000-4000-8000-000000000001"
SESSION_ID = "6f1c2d9e-0000-4000-8000-0000000000aa"


def cohort_body(**overrides) -> dict:
    body = {
        "id": COHORT_ID,
        "workshopId": "6f1c2d9e-0000-4000-8000-0000000000ff",
        "workshopTitle": "Intro to Pottery",
        "title": "Spring Pottery",
        "slug": "spring-pottery",
        "status": "draft",
        "description": "",
        "internalNotes": "",
        "startAt": "2030-03-04T07:00:00Z",
        "endAt": None,
        "timezone": "Australia/Sydney",
        "registrationOpensAt": None,
        "registrationClosesAt": None,
        "capacity": 10,
        "enrolledCount": 3,
        "waitlistEnabled": False,
        "waitlistCapacity": None,
        "waitlistCount": 0,
        "price": "120.00",
        "compareAtPrice": None,
        "earlyBirdPrice": None,
        "earlyBirdEndsAt": None,
        "currency": "AUD",
        "deliveryMode": "in_person",
        "locationLabel": "Studio 2",
        "locationAddress": "",
        "meetingUrl": "",
        "instructorName": "",
        "instructorEmail": "",
        "createdAt": "2030-01-01T00:00:00Z",
        "updatedAt": "2030-01-01T00:00:00Z",
    }
    body.update(overrides)
    return body


class FakeServer:
    """Route table for httpx.MockTransport that records every request."""

    def __init__(self):
        self.routes: dict[tuple[str, str], httpx.Response] = {}
        self.requests: list[httpx.Request] = []

    def route(self, method: str, path: str, status: int = 200, body=None, content: bytes | None = None):
        if content is not None:
            response = httpx.Response(status, content=content)
        else:
            response = httpx.Response(status, json=body)
        self.routes[(method, "/api" + path)] = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get((request.method, request.url.path))
        if response is None:
            return httpx.Response(404, json={"error": "Not found", "code": "NOT_FOUND"})
        return httpx.Response(response.status_code, content=response.content, headers=response.headers)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == "/api" + path]

    @property
    def writes(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method != "GET"]


class RecordingNotifier:
    def __init__(self):
        self.successes: list[str] = []
        self.errors: list[str] = []

    def success(self, message: str) -> None:
        self.successes.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


@pytest.fixture
def server() -> FakeServer:
    server = FakeServer()
    server.route("GET", f"/cohorts/{COHORT_ID}", body=cohort_body())
    server.route("PUT", f"/cohorts/{COHORT_ID}", body=cohort_body())
    server.route("GET", f"/cohorts/{COHORT_ID}/sessions", body=[])
    server.route("GET", f"/cohorts/{COHORT_ID}/enrollments", body=[])
    return server


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def confirm_answers() -> list[bool]:
    return []


@pytest.fixture
async def editor(server, notifier, confirm_answers):
    config = EditorConfig(base_url="http://testserver", token="secret", autosave_delay=0.01)
    api = CohortApiClient(config, transport=httpx.MockTransport(server))

    def confirm(message: str) -> bool:
        return confirm_answers.pop(0) if confirm_answers else True

    editor = CohortEditor(api, notifier, confirm=confirm)
    yield editor
    editor.close()
    await api.aclose()


async def loaded(editor: CohortEditor) -> CohortEditor:
    assert await editor.load(COHORT_ID)
    return editor


class TestLoading:
    """Tests for opening a cohort."""

    async def test_new_starts_blank_draft(self, editor, server):
        assert await editor.load("new")
        assert editor.cohort_id is None
        assert editor.form["status"] == "draft"
        assert editor.form["timezone"] == "Australia/Sydney"
        assert editor.form["currency"] == "AUD"
        assert editor.form["deliveryMode"] == "online"
        assert server.requests == []

    async def test_missing_cohort_reports_not_found(self, editor, notifier):
        assert not await editor.load("6f1c2d9e-0000-4000-8000-00000000dead")
        assert notifier.errors == ["Cohort not found."]
        assert editor.cohort_id is None

    async def test_sends_bearer_token(self, editor, server):
        await loaded(editor)
        assert server.requests[0].headers["Authorization"] == "Bearer secret"

    async def test_null_fields_fall_back_to_form_defaults(self, editor):
        await loaded(editor)
        assert editor.form["endAt"] == ""
        assert editor.form["capacity"] == 10


class TestSaving:
    """Tests for explicit save and the unchanged-snapshot shortcut."""

    async def test_unchanged_form_performs_no_write(self, editor, server, notifier):
        await loaded(editor)
        assert await editor.save() == COHORT_ID
        assert server.writes == []
        assert notifier.successes == ["No changes to save."]

    async def test_changed_form_puts_without_read_only_fields(self, editor, server):
        await loaded(editor)
        editor.close()
        editor.form["title"] = "Autumn Glazes"
        await editor.save()

        [request] = server.writes
        payload = json.loads(request.content)
        assert request.method == "PUT"
        assert payload["title"] == "Autumn Glazes"
        for name in ("id", "enrolledCount", "waitlistCount", "status", "createdAt", "updatedAt"):
            assert name not in payload
        assert editor.save_status is SaveStatus.SAVED

    async def test_second_save_after_success_is_skipped(self, editor, server):
        await loaded(editor)
        editor.form["title"] = "Autumn Glazes"
        await editor.save()
        await editor.save()
        assert len(server.writes) == 1

    async def test_counter_changes_do_not_count_as_edits(self, editor, server):
        await loaded(editor)
        editor.form["enrolledCount"] = 7
        await editor.save(show_feedback=False)
        assert server.writes == []

    async def test_new_cohort_posts_then_tracks_id(self, editor, server):
        server.route("POST", "/cohorts", 201, body=cohort_body())
        await editor.load(None)
        editor.form.update(workshopId="6f1c2d9e-0000-4000-8000-0000000000ff", title="Spring Pottery")

        assert await editor.save() == COHORT_ID
        assert editor.cohort_id == COHORT_ID
        await editor.save()
        assert [r.method for r in server.writes] == ["POST"]

    async def test_failed_save_keeps_form_and_reports_server_message(self, editor, server, notifier):
        server.route(
            "PUT", f"/cohorts/{COHORT_ID}", 400, body={"error": "title cannot be blank", "code": "VALIDATION_ERROR"}
        )
        await loaded(editor)
        editor.form["title"] = ""
        assert await editor.save() is None
        assert editor.save_status is SaveStatus.ERROR
        assert editor.form["title"] == ""
        assert notifier.errors == ["title cannot be blank"]

    async def test_unreadable_error_body_uses_fallback(self, editor, server, notifier):
        server.route("PUT", f"/cohorts/{COHORT_ID}", 502, content=b"<html>Bad gateway</html>")
        await loaded(editor)
        editor.form["title"] = "Autumn Glazes"
        await editor.save()
        assert notifier.errors == ["Could not save cohort."]


class TestAutosave:
    """Tests for debounced autosave on the Details tab."""

    async def test_burst_of_edits_saves_once(self, editor, server):
        await loaded(editor)
        for title in ("A", "Au", "Autumn"):
            editor.update_field("title", title)
        await editor.autosave.wait()

        [request] = server.writes
        assert json.loads(request.content)["title"] == "Autumn"

    async def test_other_tabs_never_autosave(self, editor, server):
        await loaded(editor)
        await editor.activate_tab(Tab.SESSIONS)
        editor.update_field("title", "Autumn")
        assert not editor.autosave.pending
        await asyncio.sleep(0.03)
        assert server.writes == []

    async def test_close_cancels_pending_autosave(self, editor, server):
        await loaded(editor)
        editor.update_field("title", "Autumn")
        editor.close()
        await asyncio.sleep(0.03)
        assert server.writes == []

    async def test_unknown_field_is_rejected(self, editor):
        await loaded(editor)
        with pytest.raises(KeyError):
            editor.update_field("enrolledCount", 99)


class TestDebouncer:
    """Tests for the asyncio debouncer itself."""

    async def test_trigger_restarts_the_countdown(self):
        calls = []

        async def callback():
            calls.append(asyncio.get_running_loop().time())

        debouncer = Debouncer(0.02, callback)
        debouncer.trigger()
        await asyncio.sleep(0.01)
        debouncer.trigger()
        await debouncer.wait()
        assert len(calls) == 1

    async def test_failing_callback_is_logged(self, monkeypatch):
        logger = MagicMock()
        monkeypatch.setattr(autosave, "logger", logger)

        async def callback():
            raise RuntimeError("disk full")

        debouncer = Debouncer(0.01, callback)
        debouncer.trigger()
        await debouncer.wait()

        logger.error.assert_called_once()
        assert logger.error.call_args.args == ("Autosave callback failed",)
        assert isinstance(logger.error.call_args.kwargs["exc_info"], RuntimeError)

    async def test_flush_runs_immediately(self):
        calls = []

        async def callback():
            calls.append(True)

        debouncer = Debouncer(10, callback)
        debouncer.trigger()
        await debouncer.flush()
        assert calls == [True]
        assert not debouncer.pending


class TestStatusTransitions:
    """Tests for the status button bar."""

    async def test_draft_offers_open_and_cancel(self, editor):
        await loaded(editor)
        assert editor.available_transitions() == (CohortStatus.OPEN, CohortStatus.CANCELLED)

    async def test_completed_offers_nothing(self, editor, server):
        server.route("GET", f"/cohorts/{COHORT_ID}", body=cohort_body(status="completed"))
        await loaded(editor)
        assert editor.available_transitions() == ()

    async def test_illegal_transition_raises_without_request(self, editor, server):
        await loaded(editor)
        with pytest.raises(IllegalTransition):
            await editor.transition_status("completed")
        assert server.writes == []

    async def test_legal_transition_updates_local_status(self, editor, server, notifier):
        server.route("PUT", f"/cohorts/{COHORT_ID}/status", body=cohort_body(status="open"))
        await loaded(editor)
        assert await editor.transition_status("open")
        assert editor.status is CohortStatus.OPEN
        assert json.loads(server.writes[0].content) == {"status": "open"}
        assert notifier.successes == ["Cohort status updated to open."]

    async def test_declined_cancel_sends_nothing(self, editor, server, confirm_answers):
        confirm_answers.append(False)
        await loaded(editor)
        assert not await editor.transition_status("cancelled")
        assert server.writes == []

    async def test_new_cohort_is_saved_before_transition(self, editor, server):
        server.route("POST", "/cohorts", 201, body=cohort_body())
        server.route("PUT", f"/cohorts/{COHORT_ID}/status", body=cohort_body(status="open"))
        await editor.load(None)
        editor.form.update(workshopId="6f1c2d9e-0000-4000-8000-0000000000ff", title="Spring Pottery")
        assert await editor.transition_status("open")
        assert [r.method for r in server.writes] == ["POST", "PUT"]


class TestCohortActions:
    """Tests for duplicate and delete."""

    async def test_duplicate_returns_copy_id(self, editor, server):
        server.route("POST", f"/cohorts/{COHORT_ID}/duplicate", 201, body=cohort_body(id="copy"))
        await loaded(editor)
        assert await editor.duplicate() == "copy"

    async def test_delete_requires_confirmation(self, editor, server, confirm_answers):
        server.route("DELETE", f"/cohorts/{COHORT_ID}", body={"success": True})
        confirm_answers.append(False)
        await loaded(editor)
        assert not await editor.delete()
        assert server.writes == []
        assert await editor.delete()
        assert len(server.writes) == 1


class TestTabs:
    """Tests for lazy tab loading."""

    async def test_tab_data_is_fetched_once(self, editor, server):
        await loaded(editor)
        await editor.activate_tab("sessions")
        await editor.activate_tab("details")
        await editor.activate_tab("sessions")
        assert len(server.calls("GET", f"/cohorts/{COHORT_ID}/sessions")) == 1

    async def test_non_json_success_body_is_reported(self, editor, server, notifier):
        server.route("GET", f"/cohorts/{COHORT_ID}/sessions", content=b"<html>gateway</html>")
        await loaded(editor)

        await editor.activate_tab(Tab.SESSIONS)

        assert notifier.errors == ["Could not load sessions."]
        assert editor.sessions == []

    async def test_new_cohort_tabs_fetch_nothing(self, editor, server):
        await editor.load(None)
        await editor.activate_tab("enrollments")
        assert server.requests == []

    async def test_stats_tab_builds_cards(self, editor, server):
        server.route(
            "GET",
            f"/cohorts/{COHORT_ID}/stats",
            body={
                "enrolled": 3,
                "capacity": 10,
                "waitlist": 0,
                "revenue": "360.00",
                "attendanceRate": 87.5,
                "sessionsCompleted": 2,
                "sessionsTotal": 6,
                "completionRate": 0,
            },
        )
        await loaded(editor)
        await editor.activate_tab(Tab.STATS)
        cards = {card.title: card for card in editor.stat_cards()}
        assert cards["Enrolled"].value == "3 / 10"
        assert cards["Enrolled"].subtitle == "30% capacity"
        assert cards["Revenue"].value == "$360.00"
        assert cards["Attendance Rate"].value == "88%"
        assert cards["Sessions Completed"].subtitle == "33% complete"


class TestSessions:
    """Tests for the sessions tab."""

    async def test_sessions_sorted_by_number(self, editor, server):
        server.route(
            "GET",
            f"/cohorts/{COHORT_ID}/sessions",
            body=[{"id": "b", "sessionNumber": 2}, {"id": "a", "sessionNumber": 1}],
        )
        await loaded(editor)
        await editor.load_sessions()
        assert [s["id"] for s in editor.sessions] == ["a", "b"]

    async def test_bulk_add_issues_single_post_with_count(self, editor, server):
        server.route("POST", f"/cohorts/{COHORT_ID}/sessions/bulk", 201, body=[])
        await loaded(editor)
        assert await editor.bulk_add_sessions(BulkSessionRequest(start_date="2030-03-01T00:00:00Z"))

        [request] = server.calls("POST", f"/cohorts/{COHORT_ID}/sessions/bulk")
        assert json.loads(request.content) == {
            "count": 6,
            "startDate": "2030-03-01T00:00:00Z",
            "recurrence": "weekly",
            "dayOfWeek": 1,
            "time": "18:00",
            "duration": 90,
        }
        assert len(server.calls("GET", f"/cohorts/{COHORT_ID}/sessions")) == 1

    async def test_custom_recurrence_omits_day_of_week(self):
        payload = BulkSessionRequest(start_date="2030-03-01", recurrence="custom").to_payload()
        assert "dayOfWeek" not in payload

    async def test_save_session_with_id_updates(self, editor, server):
        server.route("PUT", f"/cohorts/{COHORT_ID}/sessions/{SESSION_ID}", body={})
        await loaded(editor)
        assert await editor.save_session({"id": SESSION_ID, "title": "Trimming"})
        [request] = server.writes
        assert json.loads(request.content) == {"title": "Trimming"}


class TestEnrollments:
    """Tests for optimistic enrollment counters."""

    async def test_add_increments_enrolled_count_by_one(self, editor, server):
        server.route("POST", f"/cohorts/{COHORT_ID}/enrollments", 201, body={"id": "e1"})
        await loaded(editor)
        assert await editor.add_enrollment({"customerName": "Ada", "customerEmail": "ada@example.com"})
        assert editor.form["enrolledCount"] == 4
        assert len(server.calls("GET", f"/cohorts/{COHORT_ID}/enrollments")) == 1

    async def test_failed_add_leaves_count(self, editor, server, notifier):
        server.route(
            "POST", f"/cohorts/{COHORT_ID}/enrollments", 400, body={"error": "Cohort is full", "code": "COHORT_FULL"}
        )
        await loaded(editor)
        assert not await editor.add_enrollment({"customerName": "Ada", "customerEmail": "ada@example.com"})
        assert editor.form["enrolledCount"] == 3
        assert notifier.errors == ["Cohort is full"]

    async def test_cancel_never_drops_below_zero(self, editor, server):
        server.route("GET", f"/cohorts/{COHORT_ID}", body=cohort_body(enrolledCount=0))
        server.route("POST", f"/cohorts/{COHORT_ID}/enrollments/e1/cancel", body={"id": "e1"})
        await loaded(editor)
        assert await editor.cancel_enrollment("e1", "Moved away")
        assert editor.form["enrolledCount"] == 0

    async def test_cancel_decrements(self, editor, server):
        server.route("POST", f"/cohorts/{COHORT_ID}/enrollments/e1/cancel", body={"id": "e1"})
        await loaded(editor)
        await editor.cancel_enrollment("e1")
        assert editor.form["enrolledCount"] == 2

    async def test_capacity_bar(self, editor):
        await loaded(editor)
        bar = editor.capacity()
        assert bar.percent == 30.0
        assert not bar.is_full


class TestAttendance:
    """Tests for the attendance sheet."""

    @pytest.fixture
    def sheet_rows(self, server):
        server.route(
            "GET",
            f"/cohorts/{COHORT_ID}/sessions/{SESSION_ID}/attendance",
            body=[
                {"enrollmentId": "e1", "customerName": "Ada", "customerEmail": "a@x.io", "status": None},
                {"enrollmentId": "e2", "customerName": "Grace", "customerEmail": "g@x.io", "status": "absent"},
            ],
        )
        server.route("POST", f"/cohorts/{COHORT_ID}/sessions/{SESSION_ID}/attendance", body=[])

    async def test_mark_all_present_sets_every_record_and_dirty(self, editor, sheet_rows):
        await loaded(editor)
        await editor.select_session(SESSION_ID)
        assert not editor.attendance.dirty

        editor.mark_all("present")

        assert {entry.status.value for entry in editor.attendance.entries} == {"present"}
        assert editor.attendance.dirty

    async def test_save_sends_one_batch_and_clears_dirty(self, editor, server, sheet_rows):
        await loaded(editor)
        await editor.select_session(SESSION_ID)
        editor.set_attendance("e1", "late")

        assert await editor.save_attendance()

        [request] = server.writes
        assert json.loads(request.content) == {
            "records": [
                {"enrollmentId": "e1", "status": "late", "notes": ""},
                {"enrollmentId": "e2", "status": "absent", "notes": ""},
            ]
        }
        assert not editor.attendance.dirty

    async def test_clean_sheet_is_not_saved(self, editor, server, sheet_rows):
        await loaded(editor)
        await editor.select_session(SESSION_ID)
        assert not await editor.save_attendance()
        assert server.writes == []

    async def test_unknown_status_is_rejected(self, editor, sheet_rows):
        await loaded(editor)
        await editor.select_session(SESSION_ID)
        with pytest.raises(ValueError):
            editor.mark_all("asleep")
