"""Typed scheduling failures.

Each failure carries a stable ``code`` so callers (console, HTTP handlers,
tests) can map it to their own presentation.
"""


class SchedulingError(Exception):
    """Base class for scheduling failures."""
    code = "scheduling_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class PatientNotFound(SchedulingError):
    code = "patient_not_found"

    def __init__(self, patient_id: str):
        super().__init__(f"Patient {patient_id} not found")


class DoctorNotFound(SchedulingError):
    code = "doctor_not_found"

    def __init__(self, doctor_id: str):
        super().__init__(f"Doctor {doctor_id} not found")


class DayNotFound(SchedulingError):
    code = "day_not_found"

    def __init__(self, day_id: str):
        super().__init__(f"Operation day {day_id} not found")


class BookingNotFound(SchedulingError):
    code = "booking_not_found"

    def __init__(self, booking_id: str):
        super().__init__(f"Booking {booking_id} not found")


class DayLocked(SchedulingError):
    code = "day_locked"

    def __init__(self, day_id: str):
        super().__init__(f"Operation day {day_id} is locked")


class ProviderNotEligible(SchedulingError):
    code = "provider_not_eligible"

    def __init__(self, provider: str, location: str):
        super().__init__(f"Patients of {provider} cannot be scheduled at {location}")


class ProcedureTypeMissing(SchedulingError):
    code = "procedure_type_missing"

    def __init__(self, patient_id: str):
        super().__init__(f"Patient {patient_id} has no procedure type specified")


class OutsideOperatingHours(SchedulingError):
    code = "outside_operating_hours"

    def __init__(self, start_time: str, end_time: str, day_start: str, day_end: str):
        super().__init__(
            f"Slot {start_time}-{end_time} is outside operating hours {day_start}-{day_end}"
        )


class SlotConflict(SchedulingError):
    code = "slot_conflict"

    def __init__(self, start_time: str, end_time: str):
        super().__init__(f"Slot {start_time}-{end_time} conflicts with another booking")


class CapacityExceeded(SchedulingError):
    code = "capacity_exceeded"


class NoAvailableSlot(SchedulingError):
    code = "no_available_slot"

    def __init__(self, message: str = "No suitable slot found in any available operation day"):
        super().__init__(message)
