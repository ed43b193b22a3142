"""Cohort editor: the admin's single-cohort workspace.

CohortEditor holds the form and the per-tab data for one cohort. It autosaves
the Details tab, loads the other tabs lazily and keeps counters updated
optimistically. Every failure is reported through the notifier and leaves
the previous state in place.
"""

import logging
from collections.abc import Callable
from typing import Any, Protocol

from cohorts.domain import CohortStatus, lifecycle
from cohorts.editor.api import ApiError, CohortApiClient
from cohorts.editor.autosave import Debouncer
from cohorts.editor.formatting import CapacitySummary, StatCard, stat_cards
from cohorts.editor.state import (
    EDITABLE_FIELDS,
    AttendanceSheet,
    BulkSessionRequest,
    SaveStatus,
    Tab,
    form_from_api,
    new_cohort_form,
    save_payload,
    snapshot,
)

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Toast-style feedback sink."""

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


Confirm = Callable[[str], bool]


class IllegalTransition(Exception):
    """The requested status is not a legal next step for the cohort."""

    def __init__(self, current: CohortStatus, target: CohortStatus):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move a {current.value} cohort to {target.value}")


def _always(_: str) -> bool:
    return True


class CohortEditor:
    def __init__(self, api: CohortApiClient, notifier: Notifier, confirm: Confirm = _always):
        self.api = api
        self.notifier = notifier
        self.confirm = confirm

        self.cohort_id: str | None = None
        self.form: dict[str, Any] = new_cohort_form()
        self.save_status = SaveStatus.IDLE
        self.active_tab = Tab.DETAILS
        self.has_changes = False

        self.workshops: list[dict] = []
        self.sessions: list[dict] = []
        self.enrollments: list[dict] = []
        self.attendance: AttendanceSheet | None = None
        self.stats: dict | None = None

        self._last_saved: str | None = None
        self._loaded_tabs: set[Tab] = set()
        self._autosave = Debouncer(api.config.autosave_delay, lambda: self.save(show_feedback=False))

    def _report(self, exc: ApiError, fallback: str) -> None:
        self.notifier.error(exc.message or fallback)

    @property
    def autosave(self) -> Debouncer:
        return self._autosave

    @property
    def status(self) -> CohortStatus:
        return CohortStatus(self.form["status"])

    # Cohort

    async def load(self, cohort_id: str | None = None) -> bool:
        """Open a cohort, or start a blank draft for None or ``"new"``."""
        self._autosave.cancel()
        self._loaded_tabs.clear()
        self.active_tab = Tab.DETAILS
        self.has_changes = False
        self.save_status = SaveStatus.IDLE

        if cohort_id is None or cohort_id == "new":
            self.cohort_id = None
            self.form = new_cohort_form()
            self._last_saved = None
            return True

        try:
            raw = await self.api.get_cohort(cohort_id)
        except ApiError as exc:
            self.notifier.error("Cohort not found." if exc.status == 404 else "Could not load cohort.")
            return False

        self.form = form_from_api(raw)
        self.cohort_id = raw["id"]
        self._last_saved = snapshot(save_payload(self.form))
        return True

    async def load_workshops(self) -> None:
        try:
            self.workshops = await self.api.list_workshops()
        except ApiError as exc:
            self._report(exc, "Could not load workshops.")

    def update_field(self, name: str, value: Any) -> None:
        """Change one form field; on the Details tab this (re)starts autosave."""
        if name not in EDITABLE_FIELDS:
            raise KeyError(f"Unknown cohort field: {name}")
        self.form[name] = value
        self.has_changes = True
        if self.active_tab is Tab.DETAILS:
            self._autosave.trigger()

    async def save(self, show_feedback: bool = True) -> str | None:
        """Write the form if it differs from the last save; returns the cohort id."""
        payload = save_payload(self.form)
        current = snapshot(payload)
        if self.cohort_id and current == self._last_saved:
            if show_feedback:
                self.notifier.success("No changes to save.")
            return self.cohort_id

        self.save_status = SaveStatus.SAVING
        try:
            if self.cohort_id:
                await self.api.update_cohort(self.cohort_id, payload)
            else:
                saved = await self.api.create_cohort(payload)
                self.cohort_id = saved["id"]
                self.form["id"] = saved["id"]
        except ApiError as exc:
            self.save_status = SaveStatus.ERROR
            if show_feedback:
                self._report(exc, "Could not save cohort.")
            return None

        self._last_saved = current
        self.has_changes = snapshot(save_payload(self.form)) != current
        self.save_status = SaveStatus.SAVED
        if show_feedback:
            self.notifier.success("Cohort saved.")
        return self.cohort_id

    def available_transitions(self) -> tuple[CohortStatus, ...]:
        """Statuses offered as buttons; none once the cohort is terminal."""
        return lifecycle.next_statuses(self.status)

    async def transition_status(self, new_status: str | CohortStatus, reason: str | None = None) -> bool:
        target = CohortStatus(new_status)
        if not lifecycle.can_transition(self.status, target):
            raise IllegalTransition(self.status, target)

        if not self.cohort_id and not await self.save(show_feedback=False):
            return False

        if target is CohortStatus.CANCELLED and not self.confirm(
            "Are you sure you want to cancel this cohort? Enrolled participants will be notified."
        ):
            return False

        try:
            await self.api.change_status(self.cohort_id, target.value, reason)
        except ApiError as exc:
            self._report(exc, "Could not change status.")
            return False

        self.form["status"] = target.value
        self._last_saved = snapshot(save_payload(self.form))
        self.has_changes = False
        self.notifier.success(f"Cohort status updated to {target.label.lower()}.")
        return True

    async def duplicate(self) -> str | None:
        """Copy the cohort into a new draft and return the copy's id."""
        if not self.cohort_id:
            return None
        try:
            copy = await self.api.duplicate_cohort(self.cohort_id)
        except ApiError as exc:
            self._report(exc, "Could not duplicate cohort.")
            return None
        self.notifier.success("Cohort duplicated.")
        return copy["id"]

    async def delete(self) -> bool:
        if not self.cohort_id:
            return False
        if not self.confirm("Are you sure you want to delete this cohort? This cannot be undone."):
            return False
        try:
            await self.api.delete_cohort(self.cohort_id)
        except ApiError as exc:
            self._report(exc, "Could not delete cohort.")
            return False
        self._autosave.cancel()
        self.notifier.success("Cohort deleted.")
        return True

    # Tabs

    async def activate_tab(self, tab: str | Tab) -> None:
        """Switch tabs, fetching the tab's data the first time it is shown."""
        tab = Tab(tab)
        self.active_tab = tab
        if not self.cohort_id or tab in self._loaded_tabs:
            return
        self._loaded_tabs.add(tab)
        if tab in (Tab.SESSIONS, Tab.ATTENDANCE):
            await self.load_sessions()
        elif tab is Tab.ENROLLMENTS:
            await self.load_enrollments()
        elif tab is Tab.STATS:
            await self.load_stats()

    # Sessions

    async def load_sessions(self) -> None:
        if not self.cohort_id:
            return
        try:
            sessions = await self.api.list_sessions(self.cohort_id)
        except ApiError as exc:
            self._report(exc, "Could not load sessions.")
            return
        self.sessions = sorted(sessions, key=lambda session: session["sessionNumber"])

    async def save_session(self, data: dict[str, Any]) -> bool:
        """Create the session, or update it when ``data`` carries an id."""
        if not self.cohort_id:
            return False
        session_id = data.get("id")
        body = {name: value for name, value in data.items() if name != "id"}
        try:
            if session_id:
                await self.api.update_session(self.cohort_id, session_id, body)
            else:
                await self.api.create_session(self.cohort_id, body)
        except ApiError as exc:
            self._report(exc, "Could not save session.")
            return False
        self.notifier.success("Session updated." if session_id else "Session added.")
        await self.load_sessions()
        return True

    async def delete_session(self, session_id: str) -> bool:
        if not self.cohort_id or not self.confirm("Delete this session?"):
            return False
        try:
            await self.api.delete_session(self.cohort_id, session_id)
        except ApiError as exc:
            self._report(exc, "Could not delete session.")
            return False
        self.notifier.success("Session deleted.")
        await self.load_sessions()
        return True

    async def bulk_add_sessions(self, request: BulkSessionRequest) -> bool:
        if not self.cohort_id:
            return False
        try:
            await self.api.bulk_create_sessions(self.cohort_id, request.to_payload())
        except ApiError as exc:
            self._report(exc, "Could not create sessions.")
            return False
        self.notifier.success(f"{request.count} sessions created.")
        await self.load_sessions()
        return True

    # Enrollments

    async def load_enrollments(self) -> None:
        if not self.cohort_id:
            return
        try:
            self.enrollments = await self.api.list_enrollments(self.cohort_id)
        except ApiError as exc:
            self._report(exc, "Could not load enrollments.")

    async def add_enrollment(self, data: dict[str, Any]) -> bool:
        if not self.cohort_id:
            return False
        try:
            await self.api.create_enrollment(self.cohort_id, data)
        except ApiError as exc:
            self._report(exc, "Could not add enrollment.")
            return False
        self.notifier.success("Enrollment added.")
        await self.load_enrollments()
        self.form["enrolledCount"] = self.form.get("enrolledCount", 0) + 1
        return True

    async def cancel_enrollment(self, enrollment_id: str, reason: str | None = None) -> bool:
        if not self.cohort_id:
            return False
        try:
            await self.api.cancel_enrollment(self.cohort_id, enrollment_id, reason)
        except ApiError as exc:
            self._report(exc, "Could not cancel enrollment.")
            return False
        self.notifier.success("Enrollment cancelled.")
        await self.load_enrollments()
        self.form["enrolledCount"] = max(0, self.form.get("enrolledCount", 0) - 1)
        return True

    def capacity(self) -> CapacitySummary:
        return CapacitySummary(enrolled=self.form.get("enrolledCount", 0), capacity=self.form.get("capacity"))

    # Attendance

    async def select_session(self, session_id: str) -> None:
        """Load the attendance sheet for one session."""
        if not self.cohort_id or not session_id:
            return
        try:
            rows = await self.api.get_attendance(self.cohort_id, session_id)
        except ApiError as exc:
            self._report(exc, "Could not load attendance.")
            return
        self.attendance = AttendanceSheet.from_api(session_id, rows)

    def set_attendance(self, enrollment_id: str, status: str) -> None:
        self._require_sheet().set_status(enrollment_id, status)

    def mark_all(self, status: str) -> None:
        self._require_sheet().mark_all(status)

    async def save_attendance(self) -> bool:
        """Send every marked record in one request; does nothing unless dirty."""
        sheet = self.attendance
        if not self.cohort_id or sheet is None or not sheet.dirty:
            return False
        try:
            await self.api.save_attendance(self.cohort_id, sheet.session_id, sheet.records())
        except ApiError as exc:
            self._report(exc, "Could not save attendance.")
            return False
        sheet.dirty = False
        self.notifier.success("Attendance saved.")
        return True

    def _require_sheet(self) -> AttendanceSheet:
        if self.attendance is None:
            raise RuntimeError("No session selected")
        return self.attendance

    # Stats

    async def load_stats(self) -> None:
        if not self.cohort_id:
            return
        try:
            self.stats = await self.api.get_stats(self.cohort_id)
        except ApiError as exc:
            self._report(exc, "Could not load stats.")

    def stat_cards(self) -> list[StatCard]:
        if self.stats is None:
            return []
        return stat_cards(self.stats, self.form.get("currency") or "AUD")

    def close(self) -> None:
        """Drop any pending autosave."""
        self._autosave.cancel()
