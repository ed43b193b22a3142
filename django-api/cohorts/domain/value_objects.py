"""Domain primitives that enforce validity at creation time."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Self
from uuid import UUID


@dataclass(frozen=True)
class WorkshopId:
    """Unique identifier for a Workshop."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class CohortId:
    """Unique identifier for a Cohort."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class SessionId:
    """Unique identifier for a cohort Session."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class EnrollmentId:
    """Unique identifier for an Enrollment."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Money:
    """Price representation with validation."""

    amount: Decimal

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("Money amount cannot be negative")

    @classmethod
    def parse(cls, value: str | int | float | Decimal | None) -> Self | None:
        """Build Money from loose input; blank input means no price."""
        if value is None or value == "":
            return None
        try:
            return cls(amount=Decimal(str(value)))
        except InvalidOperation as exc:
            raise ValueError(f"Invalid amount: {value!r}") from exc

    def __str__(self) -> str:
        return f"{self.amount:.2f}"


@dataclass(frozen=True)
class Capacity:
    """Non-negative integer representing capacity."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("Capacity cannot be negative")


class CohortStatus(str, Enum):
    DRAFT = "draft"
    OPEN = "open"
    CLOSED = "closed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").capitalize()


class SessionStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EnrollmentStatus(str, Enum):
    ACTIVE = "active"
    WAITLISTED = "waitlisted"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    REFUNDED = "refunded"
    NO_SHOW = "no_show"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"

    @property
    def checks_in(self) -> bool:
        """Whether this status stamps a check-in time."""
        return self in (AttendanceStatus.PRESENT, AttendanceStatus.LATE)


class DeliveryMode(str, Enum):
    IN_PERSON = "in_person"
    ONLINE = "online"
    HYBRID = "hybrid"


class PaymentMethod(str, Enum):
    STRIPE = "stripe"
    MANUAL = "manual"
    FREE = "free"
    OTHER = "other"


class Recurrence(str, Enum):
    WEEKLY = "weekly"
    FORTNIGHTLY = "fortnightly"
    CUSTOM = "custom"

    @property
    def interval_days(self) -> int:
        return 14 if self is Recurrence.FORTNIGHTLY else 7

    @property
    def aligns_to_weekday(self) -> bool:
        return self is not Recurrence.CUSTOM
