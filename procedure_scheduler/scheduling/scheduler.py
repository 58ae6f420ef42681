"""Scheduling engine: places patients into procedure slots on operation days.

Every mutating operation runs inside a single ``transaction()``: the reads
behind the eligibility, capacity and conflict checks and the writes (booking,
patient flag, day lock) commit together or not at all. Validation failures are
raised internally as ``SchedulingError`` subclasses, which roll the
transaction back, and are turned into ``ScheduleResult``/``BatchSummary``
values at the method boundary. ``StorageError`` is not caught here.
"""

import logging
from contextlib import closing
from dataclasses import dataclass
from datetime import date
from typing import Callable

from procedure_scheduler.clinic.database import (
    Booking,
    BookingRepository,
    Doctor,
    DoctorRepository,
    OperationDay,
    OperationDayRepository,
    Patient,
    PatientRepository,
    get_connection,
    transaction,
)

from .day_validator import validate_day
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
from .location_rules import is_provider_allowed, rules_for, should_auto_lock
from .occupancy import DayOccupancy
from .procedures import duration_minutes, is_colono_class
from .results import BatchSummary, DayAvailability, DayValidation, ScheduleResult
from .slot_finder import find_earliest_slot, next_available_time, overlaps
from .time_utils import minutes_to_time, time_to_minutes

logger = logging.getLogger(__name__)


@dataclass
class _Repositories:
    """All repositories bound to one connection."""
    patients: PatientRepository
    doctors: DoctorRepository
    days: OperationDayRepository
    bookings: BookingRepository

    @classmethod
    def on(cls, conn) -> "_Repositories":
        return cls(
            patients=PatientRepository(conn),
            doctors=DoctorRepository(conn),
            days=OperationDayRepository(conn),
            bookings=BookingRepository(conn),
        )


def capacity_error(location: str, occupancy: DayOccupancy, procedure_type: str) -> CapacityExceeded | None:
    """The capacity rule one more booking of ``procedure_type`` would break, if any."""
    rules = rules_for(location)
    if occupancy.total >= rules.max_operations:
        return CapacityExceeded(
            f"Maximum {rules.max_operations:g} operations reached for this day"
        )
    if is_colono_class(procedure_type) and occupancy.colono_count >= rules.max_colono:
        return CapacityExceeded(
            f"Maximum {rules.max_colono:g} colonoscopies reached for this day"
        )
    return None


class Scheduler:
    """Finds and assigns conflict-free procedure slots."""

    def __init__(self, today: Callable[[], date] = date.today):
        self._today = today

    # Scheduling operations

    def schedule_for_any_day(self, patient_id: str, doctor_id: str) -> ScheduleResult:
        """Book the patient into the earliest eligible slot on any upcoming day."""
        try:
            with transaction() as conn:
                booking = self._schedule_for_any_day(_Repositories.on(conn), patient_id, doctor_id)
        except SchedulingError as e:
            logger.info("Could not schedule patient %s: %s", patient_id, e.message)
            return ScheduleResult.failed(e)
        return ScheduleResult.ok(booking)

    def schedule_specific(
        self,
        patient_id: str,
        doctor_id: str,
        day_id: str,
        start_time: str,
    ) -> ScheduleResult:
        """Book the patient at ``start_time`` on a chosen day."""
        try:
            with transaction() as conn:
                booking = self._schedule_specific(
                    _Repositories.on(conn), patient_id, doctor_id, day_id, start_time
                )
        except SchedulingError as e:
            logger.info("Could not schedule patient %s on day %s: %s", patient_id, day_id, e.message)
            return ScheduleResult.failed(e)
        return ScheduleResult.ok(booking)

    def batch_schedule_for_day(self, day_id: str, doctor_id: str) -> BatchSummary:
        """Fill one day with waiting patients, longest-waiting first.

        Patients that cannot be placed are counted as failed; they never stop
        the batch.
        """
        try:
            with transaction() as conn:
                summary = self._batch_schedule_for_day(_Repositories.on(conn), day_id, doctor_id)
        except SchedulingError as e:
            logger.info("Batch scheduling for day %s failed: %s", day_id, e.message)
            return BatchSummary(success=False, message=e.message, error=e)
        logger.info(
            "Batch for day %s: %d scheduled, %d failed", day_id, summary.scheduled, summary.failed
        )
        return summary

    def validate_day(self, day_id: str) -> DayValidation:
        """Check a day's bookings against its location's rules (read only)."""
        with closing(get_connection()) as conn:
            return validate_day(day_id, conn)

    def unschedule(self, booking_id: str) -> ScheduleResult:
        """Remove a booking; the patient is unflagged if it was their last one."""
        try:
            with transaction() as conn:
                repos = _Repositories.on(conn)
                booking = repos.bookings.get_by_id(booking_id)
                if not booking:
                    raise BookingNotFound(booking_id)
                repos.bookings.delete(booking_id)
                if repos.bookings.count_for_patient(booking.patient_id) == 0:
                    repos.patients.set_scheduled(booking.patient_id, False)
        except SchedulingError as e:
            return ScheduleResult.failed(e)
        logger.info("Removed booking %s for patient %s", booking_id, booking.patient_id)
        return ScheduleResult.ok(booking, "Booking removed")

    def reschedule(self, booking_id: str, new_day_id: str, new_start_time: str) -> ScheduleResult:
        """Move an existing booking to another day and/or start time."""
        try:
            with transaction() as conn:
                booking = self._reschedule(
                    _Repositories.on(conn), booking_id, new_day_id, new_start_time
                )
        except SchedulingError as e:
            logger.info("Could not reschedule booking %s: %s", booking_id, e.message)
            return ScheduleResult.failed(e)
        return ScheduleResult.ok(booking, "Operation rescheduled successfully")

    def lock_day(self, day_id: str) -> OperationDay:
        return self._set_locked(day_id, True)

    def unlock_day(self, day_id: str) -> OperationDay:
        return self._set_locked(day_id, False)

    # Queries

    def get_available_patients(self) -> list[Patient]:
        """Patients waiting for a slot, oldest visit first."""
        return PatientRepository().find_unscheduled()

    def get_day_schedule(self, day_id: str) -> list[Booking]:
        with closing(get_connection()) as conn:
            repos = _Repositories.on(conn)
            self._load_day(repos, day_id)
            return repos.bookings.find_for_day(day_id)

    def get_patient_schedule(self, patient_id: str) -> list[Booking]:
        with closing(get_connection()) as conn:
            repos = _Repositories.on(conn)
            self._load_patient(repos, patient_id)
            return repos.bookings.find_for_patient(patient_id)

    def find_available_days(self, patient_id: str) -> list[DayAvailability]:
        """Next free start for the patient on every unlocked upcoming day.

        Days the patient cannot use are included with ``is_valid`` False and
        the reason.
        """
        with closing(get_connection()) as conn:
            repos = _Repositories.on(conn)
            patient = self._load_patient(repos, patient_id)
            if not patient.procedure_type:
                raise ProcedureTypeMissing(patient_id)
            duration = duration_minutes(patient.procedure_type)

            availability = []
            for day in repos.days.find_from(self._today().isoformat()):
                if day.is_locked:
                    continue
                bookings = repos.bookings.find_for_day(day.id)
                occupancy = DayOccupancy.from_bookings(bookings)
                next_time = None
                reason = None
                if not is_provider_allowed(day.location, patient.hc_provider):
                    reason = "Patient's health provider is not accepted at this location"
                else:
                    error = capacity_error(day.location, occupancy, patient.procedure_type)
                    if error:
                        reason = error.message
                    else:
                        next_time = next_available_time(
                            day.start_hour, day.end_hour, duration, bookings
                        )
                        if next_time is None:
                            reason = "No free time on this day"
                availability.append(DayAvailability(
                    operation_day_id=day.id,
                    date=day.date,
                    location=day.location,
                    doctor_id=day.doctor_id,
                    next_available_time=next_time,
                    is_valid=next_time is not None,
                    reason=reason,
                ))
            return availability

    # Internals

    def _schedule_for_any_day(self, repos: _Repositories, patient_id: str, doctor_id: str) -> Booking:
        patient = self._load_patient(repos, patient_id)
        doctor = self._load_doctor(repos, doctor_id)
        if not patient.procedure_type:
            raise ProcedureTypeMissing(patient_id)

        days = repos.days.find_from(self._today().isoformat())
        if not days:
            raise NoAvailableSlot("No upcoming operation days available")

        duration = duration_minutes(patient.procedure_type)
        for day in days:
            if day.is_locked:
                logger.debug("Skipping day %s: locked", day.id)
                continue
            occupancy = DayOccupancy.from_bookings(repos.bookings.find_for_day(day.id))
            start = self._find_start(day, occupancy, patient, duration)
            if start is None:
                continue
            booking = self._book(repos, patient, doctor, day, start, duration)
            self._auto_lock(repos, day)
            return booking

        raise NoAvailableSlot()

    def _schedule_specific(
        self,
        repos: _Repositories,
        patient_id: str,
        doctor_id: str,
        day_id: str,
        start_time: str,
    ) -> Booking:
        patient = self._load_patient(repos, patient_id)
        doctor = self._load_doctor(repos, doctor_id)
        day = self._load_day(repos, day_id)
        if day.is_locked:
            raise DayLocked(day_id)
        if not is_provider_allowed(day.location, patient.hc_provider):
            raise ProviderNotEligible(patient.hc_provider, day.location)
        if not patient.procedure_type:
            raise ProcedureTypeMissing(patient_id)

        duration = duration_minutes(patient.procedure_type)
        start = time_to_minutes(start_time)
        end = start + duration
        self._check_within_hours(day, start, end)

        occupancy = DayOccupancy.from_bookings(repos.bookings.find_for_day(day_id))
        if overlaps(start, end, occupancy.busy):
            raise SlotConflict(start_time, minutes_to_time(end))
        error = capacity_error(day.location, occupancy, patient.procedure_type)
        if error:
            raise error

        booking = self._book(repos, patient, doctor, day, start, duration)
        self._auto_lock(repos, day)
        return booking

    def _batch_schedule_for_day(self, repos: _Repositories, day_id: str, doctor_id: str) -> BatchSummary:
        day = self._load_day(repos, day_id)
        doctor = self._load_doctor(repos, doctor_id)
        if day.is_locked:
            raise DayLocked(day_id)

        patients = repos.patients.find_unscheduled()
        if not patients:
            return BatchSummary(success=True, message="No patients available for scheduling")

        occupancy = DayOccupancy.from_bookings(repos.bookings.find_for_day(day_id))
        bookings = []
        failed = 0
        for patient in patients:
            duration = duration_minutes(patient.procedure_type)
            start = self._find_start(day, occupancy, patient, duration)
            if start is None:
                failed += 1
                continue
            bookings.append(self._book(repos, patient, doctor, day, start, duration))
            occupancy.add(patient.procedure_type, start, start + duration)

        if bookings:
            self._auto_lock(repos, day)

        return BatchSummary(
            success=True,
            message=f"Scheduled {len(bookings)} patients, {failed} could not be scheduled",
            scheduled=len(bookings),
            failed=failed,
            bookings=bookings,
        )

    def _reschedule(
        self,
        repos: _Repositories,
        booking_id: str,
        new_day_id: str,
        new_start_time: str,
    ) -> Booking:
        booking = repos.bookings.get_by_id(booking_id)
        if not booking:
            raise BookingNotFound(booking_id)
        day = self._load_day(repos, new_day_id)
        if day.is_locked:
            raise DayLocked(new_day_id)
        patient = self._load_patient(repos, booking.patient_id)
        if not is_provider_allowed(day.location, patient.hc_provider):
            raise ProviderNotEligible(patient.hc_provider, day.location)

        # The booking keeps the procedure type it was made with
        start = time_to_minutes(new_start_time)
        end = start + duration_minutes(booking.procedure_type)
        self._check_within_hours(day, start, end)

        others = [b for b in repos.bookings.find_for_day(new_day_id) if b.id != booking_id]
        occupancy = DayOccupancy.from_bookings(others)
        if overlaps(start, end, occupancy.busy):
            raise SlotConflict(new_start_time, minutes_to_time(end))
        if new_day_id != booking.operation_day_id:
            error = capacity_error(day.location, occupancy, booking.procedure_type)
            if error:
                raise error

        moved = repos.bookings.update_slot(booking_id, new_day_id, new_start_time, minutes_to_time(end))
        logger.info(
            "Moved booking %s to day %s at %s", booking_id, new_day_id, new_start_time
        )
        self._auto_lock(repos, day)
        return moved

    def _find_start(
        self,
        day: OperationDay,
        occupancy: DayOccupancy,
        patient: Patient,
        duration: int,
    ) -> int | None:
        """Earliest start for the patient on the day, or None when they cannot go there."""
        if not is_provider_allowed(day.location, patient.hc_provider):
            logger.debug(
                "Skipping day %s for patient %s: %s not accepted at %s",
                day.id, patient.id, patient.hc_provider, day.location,
            )
            return None
        error = capacity_error(day.location, occupancy, patient.procedure_type)
        if error:
            logger.debug("Skipping day %s for patient %s: %s", day.id, patient.id, error.message)
            return None
        start = self._earliest_start(day, occupancy, duration)
        if start is None:
            logger.debug("Skipping day %s for patient %s: no free time", day.id, patient.id)
        return start

    def _earliest_start(self, day: OperationDay, occupancy: DayOccupancy, duration: int) -> int | None:
        return find_earliest_slot(
            time_to_minutes(day.start_hour),
            time_to_minutes(day.end_hour),
            duration,
            occupancy.busy,
        )

    def _check_within_hours(self, day: OperationDay, start: int, end: int) -> None:
        if start < time_to_minutes(day.start_hour) or end > time_to_minutes(day.end_hour):
            raise OutsideOperatingHours(
                minutes_to_time(start), minutes_to_time(end), day.start_hour, day.end_hour
            )

    def _book(
        self,
        repos: _Repositories,
        patient: Patient,
        doctor: Doctor,
        day: OperationDay,
        start: int,
        duration: int,
    ) -> Booking:
        """Write the booking and flag the patient as scheduled."""
        booking = repos.bookings.create(Booking(
            id="",
            patient_id=patient.id,
            doctor_id=doctor.id,
            operation_day_id=day.id,
            procedure_type=patient.procedure_type,
            start_time=minutes_to_time(start),
            end_time=minutes_to_time(start + duration),
            notes=patient.additional_info or "",
        ))
        repos.patients.set_scheduled(patient.id, True)
        logger.info(
            "Booked patient %s on day %s (%s) %s-%s",
            patient.id, day.id, day.location, booking.start_time, booking.end_time,
        )
        return booking

    def _auto_lock(self, repos: _Repositories, day: OperationDay) -> None:
        """Lock the day once its bookings reach the location's capacity."""
        occupancy = DayOccupancy.from_bookings(repos.bookings.find_for_day(day.id))
        if should_auto_lock(day.location, occupancy.total, occupancy.colono_count):
            repos.days.set_locked(day.id, True)
            logger.info(
                "Locked day %s (%s): %d booked, %d colono-class",
                day.id, day.location, occupancy.total, occupancy.colono_count,
            )

    def _set_locked(self, day_id: str, is_locked: bool) -> OperationDay:
        with transaction() as conn:
            repos = _Repositories.on(conn)
            self._load_day(repos, day_id)
            repos.days.set_locked(day_id, is_locked)
            day = repos.days.get_by_id(day_id)
        logger.info("Day %s %s manually", day_id, "locked" if is_locked else "unlocked")
        return day

    def _load_patient(self, repos: _Repositories, patient_id: str) -> Patient:
        patient = repos.patients.get_by_id(patient_id)
        if not patient:
            raise PatientNotFound(patient_id)
        return patient

    def _load_doctor(self, repos: _Repositories, doctor_id: str) -> Doctor:
        doctor = repos.doctors.get_by_id(doctor_id)
        if not doctor:
            raise DoctorNotFound(doctor_id)
        return doctor

    def _load_day(self, repos: _Repositories, day_id: str) -> OperationDay:
        day = repos.days.get_by_id(day_id)
        if not day:
            raise DayNotFound(day_id)
        return day
