"""Lookups shared by the cohort services.

Every helper raises a domain error instead of returning None so callers can
stay linear.
"""

from cohorts.domain import (
    Cohort,
    CohortId,
    Enrollment,
    EnrollmentId,
    Session,
    SessionId,
    WorkshopId,
)
from cohorts.domain.errors import (
    CohortNotFoundError,
    EnrollmentNotFoundError,
    InvalidIdError,
    SessionNotFoundError,
)
from cohorts.stores.interfaces import CohortStore


def parse_cohort_id(value: str) -> CohortId:
    try:
        return CohortId.from_string(value)
    except (ValueError, TypeError, AttributeError) as exc:
        raise InvalidIdError("cohort") from exc


def parse_session_id(value: str) -> SessionId:
    try:
        return SessionId.from_string(value)
    except (ValueError, TypeError, AttributeError) as exc:
        raise InvalidIdError("session") from exc


def parse_enrollment_id(value: str) -> EnrollmentId:
    try:
        return EnrollmentId.from_string(value)
    except (ValueError, TypeError, AttributeError) as exc:
        raise InvalidIdError("enrollment") from exc


def parse_workshop_id(value: str) -> WorkshopId:
    try:
        return WorkshopId.from_string(value)
    except (ValueError, TypeError, AttributeError) as exc:
        raise InvalidIdError("workshop") from exc


def require_cohort(store: CohortStore, cohort_id: str, for_update: bool = False) -> Cohort:
    """Return the cohort or raise CohortNotFoundError."""
    cohort = store.get_cohort(parse_cohort_id(cohort_id), for_update=for_update)
    if cohort is None:
        raise CohortNotFoundError(cohort_id)
    return cohort


def require_session(store: CohortStore, cohort: Cohort, session_id: str) -> Session:
    """Return the session if it belongs to the cohort."""
    session = store.get_session(parse_session_id(session_id))
    if session is None or session.cohort_id != cohort.id:
        raise SessionNotFoundError(session_id)
    return session


def require_enrollment(store: CohortStore, cohort: Cohort, enrollment_id: str) -> Enrollment:
    """Return the enrollment if it belongs to the cohort."""
    enrollment = store.get_enrollment(parse_enrollment_id(enrollment_id))
    if enrollment is None or enrollment.cohort_id != cohort.id:
        raise EnrollmentNotFoundError(enrollment_id)
    return enrollment
