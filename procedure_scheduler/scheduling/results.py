"""Outcome objects returned by the scheduler."""

from dataclasses import dataclass, field

from procedure_scheduler.clinic.database import Booking

from .errors import SchedulingError


@dataclass
class ScheduleResult:
    """Outcome of a single scheduling attempt."""
    success: bool
    message: str
    booking: Booking | None = None
    error: SchedulingError | None = None

    @property
    def error_code(self) -> str | None:
        return self.error.code if self.error else None

    @classmethod
    def ok(cls, booking: Booking, message: str = "Operation scheduled successfully") -> "ScheduleResult":
        return cls(success=True, message=message, booking=booking)

    @classmethod
    def failed(cls, error: SchedulingError) -> "ScheduleResult":
        return cls(success=False, message=error.message, error=error)


@dataclass
class BatchSummary:
    """Aggregate outcome of a batch run for one day."""
    success: bool
    message: str
    scheduled: int = 0
    failed: int = 0
    bookings: list[Booking] = field(default_factory=list)
    error: SchedulingError | None = None

    @property
    def error_code(self) -> str | None:
        return self.error.code if self.error else None


@dataclass
class DayValidation:
    """Result of checking a day's bookings against its location rules."""
    is_valid: bool
    message: str
    reason: str | None = None  # insufficient, exceeded, colono_exceeded, not_found
    total: int = 0
    colono_count: int = 0


@dataclass
class DayAvailability:
    """Whether a patient could be placed on a day, and from when."""
    operation_day_id: str
    date: str
    location: str
    doctor_id: str
    next_available_time: str | None
    is_valid: bool
    reason: str | None = None
