"""Domain error codes for the cohorts module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    WORKSHOP_NOT_FOUND = "WORKSHOP_NOT_FOUND"
    COHORT_NOT_FOUND = "COHORT_NOT_FOUND"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    ENROLLMENT_NOT_FOUND = "ENROLLMENT_NOT_FOUND"
    INVALID_ID = "INVALID_ID"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    COHORT_NOT_DELETABLE = "COHORT_NOT_DELETABLE"
    ALREADY_ENROLLED = "ALREADY_ENROLLED"
    ALREADY_CANCELLED = "ALREADY_CANCELLED"
    COHORT_FULL = "COHORT_FULL"
    WAITLIST_FULL = "WAITLIST_FULL"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class WorkshopNotFoundError(DomainError):
    """Raised when a cohort references a workshop that does not exist."""

    def __init__(self, workshop_id: str) -> None:
        super().__init__(
            code=ErrorCode.WORKSHOP_NOT_FOUND,
            message="Workshop not found",
        )
        object.__setattr__(self, "workshop_id", workshop_id)


class CohortNotFoundError(DomainError):
    """Raised when a cohort is not found."""

    def __init__(self, cohort_id: str) -> None:
        super().__init__(
            code=ErrorCode.COHORT_NOT_FOUND,
            message="Cohort not found",
        )
        object.__setattr__(self, "cohort_id", cohort_id)


class SessionNotFoundError(DomainError):
    """Raised when a session does not exist or belongs to another cohort."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            code=ErrorCode.SESSION_NOT_FOUND,
            message="Session not found",
        )
        object.__setattr__(self, "session_id", session_id)


class EnrollmentNotFoundError(DomainError):
    """Raised when an enrollment does not exist or belongs to another cohort."""

    def __init__(self, enrollment_id: str) -> None:
        super().__init__(
            code=ErrorCode.ENROLLMENT_NOT_FOUND,
            message="Enrollment not found",
        )
        object.__setattr__(self, "enrollment_id", enrollment_id)


class InvalidIdError(DomainError):
    """Raised when an ID is not a valid UUID."""

    def __init__(self, kind: str = "resource") -> None:
        super().__init__(
            code=ErrorCode.INVALID_ID,
            message=f"Invalid {kind} ID format",
        )


class ValidationError(DomainError):
    """Raised when input breaks a domain rule."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.VALIDATION_ERROR, message=message)


class InvalidStatusTransitionError(DomainError):
    """Raised when a cohort cannot move from its current status to the target."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_STATUS_TRANSITION,
            message=f"Cannot change cohort status from {current} to {target}",
        )


class CohortNotDeletableError(DomainError):
    """Raised when deleting a cohort that is neither draft nor cancelled."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.COHORT_NOT_DELETABLE,
            message="Only draft or cancelled cohorts can be deleted",
        )


class AlreadyEnrolledError(DomainError):
    """Raised when the email already holds an enrollment in the cohort."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.ALREADY_ENROLLED,
            message="This email is already enrolled in this cohort",
        )


class AlreadyCancelledError(DomainError):
    """Raised when cancelling an enrollment twice."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.ALREADY_CANCELLED,
            message="Enrollment is already cancelled",
        )


class CohortFullError(DomainError):
    """Raised when a cohort is at capacity and has no waitlist."""

    def __init__(self) -> None:
        super().__init__(code=ErrorCode.COHORT_FULL, message="Cohort is at capacity")


class WaitlistFullError(DomainError):
    """Raised when both the cohort and its waitlist are at capacity."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.WAITLIST_FULL,
            message="Cohort is full and waitlist is at capacity",
        )
