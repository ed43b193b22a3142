from cohorts.editor.api import ApiError, CohortApiClient, EditorConfig
from cohorts.editor.autosave import Debouncer
from cohorts.editor.editor import CohortEditor, IllegalTransition, Notifier
from cohorts.editor.state import AttendanceSheet, BulkSessionRequest, SaveStatus, Tab

__all__ = [
    "ApiError",
    "AttendanceSheet",
    "BulkSessionRequest",
    "CohortApiClient",
    "CohortEditor",
    "Debouncer",
    "EditorConfig",
    "IllegalTransition",
    "Notifier",
    "SaveStatus",
    "Tab",
]
