"""Cohort status state machine.

Registration runs draft -> open -> closed -> in_progress -> completed.
Any non-terminal cohort may be cancelled. The editor and the API both read
this table, so the buttons offered and the transitions accepted never drift.
"""

from cohorts.domain.value_objects import CohortStatus

_FORWARD: dict[CohortStatus, CohortStatus] = {
    CohortStatus.DRAFT: CohortStatus.OPEN,
    CohortStatus.OPEN: CohortStatus.CLOSED,
    CohortStatus.CLOSED: CohortStatus.IN_PROGRESS,
    CohortStatus.IN_PROGRESS: CohortStatus.COMPLETED,
}

TERMINAL_STATUSES = frozenset({CohortStatus.COMPLETED, CohortStatus.CANCELLED})

# Only these may be hard-deleted; anything else has history worth keeping.
DELETABLE_STATUSES = frozenset({CohortStatus.DRAFT, CohortStatus.CANCELLED})


def next_statuses(current: CohortStatus) -> tuple[CohortStatus, ...]:
    """Return the legal next statuses, forward step first."""
    if current in TERMINAL_STATUSES:
        return ()
    return (_FORWARD[current], CohortStatus.CANCELLED)


def can_transition(current: CohortStatus, target: CohortStatus) -> bool:
    return target in next_statuses(current)


def is_terminal(status: CohortStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_delete(status: CohortStatus) -> bool:
    return status in DELETABLE_STATUSES
