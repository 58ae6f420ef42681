from procedure_scheduler.clinic.database.fields import HCProvider, Location, PrepType, ProcedureType

from .day_validator import check_day, validate_day
from .errors import (
    BookingNotFound,
    CapacityExceeded,
    DayLocked,
    DayNotFound,
    DoctorNotFound,
    NoAvailableSlot,
    OutsideOperatingHours,
    PatientNotFound,
    ProcedureTypeMissing,
    ProviderNotEligible,
    SchedulingError,
    SlotConflict,
)
from .location_rules import LocationRules, is_provider_allowed, rules_for, should_auto_lock
from .occupancy import DayOccupancy
from .procedures import duration_minutes, is_colono_class
from .results import BatchSummary, DayAvailability, DayValidation, ScheduleResult
from .scheduler import Scheduler
from .slot_finder import find_earliest_slot, next_available_time, overlaps
from .time_utils import is_valid_time, minutes_to_time, time_to_minutes

__all__ = [
    "Scheduler",
    "ScheduleResult", "BatchSummary", "DayValidation", "DayAvailability",
    "check_day", "validate_day",
    "SchedulingError", "PatientNotFound", "DoctorNotFound", "DayNotFound",
    "BookingNotFound", "DayLocked", "ProviderNotEligible", "ProcedureTypeMissing",
    "OutsideOperatingHours", "SlotConflict", "CapacityExceeded", "NoAvailableSlot",
    "Location", "LocationRules", "rules_for", "is_provider_allowed", "should_auto_lock",
    "DayOccupancy",
    "ProcedureType", "PrepType", "HCProvider", "duration_minutes", "is_colono_class",
    "find_earliest_slot", "next_available_time", "overlaps",
    "time_to_minutes", "minutes_to_time", "is_valid_time",
]
