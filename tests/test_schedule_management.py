"""Tests for managing existing bookings and for the read-only schedule queries."""

from unittest.mock import patch

import pytest

from procedure_scheduler.clinic.database import (
    BookingRepository,
    OperationDayRepository,
    PatientRepository,
    StorageError,
)
from procedure_scheduler.scheduling import DayNotFound, PatientNotFound, ProcedureTypeMissing


class TestUnschedule:

    def test_removes_booking_and_clears_flag(self, scheduler, doctor, make_day, make_patient):
        day = make_day()
        patient = make_patient()
        booking = scheduler.schedule_specific(patient.id, doctor.id, day.id, "09:00").booking

        result = scheduler.unschedule(booking.id)

        assert result.success
        assert result.message == "Booking removed"
        assert BookingRepository().get_by_id(booking.id) is None
        assert not PatientRepository().get_by_id(patient.id).is_scheduled

    def test_flag_kept_while_other_bookings_remain(self, scheduler, doctor, make_day, make_patient):
        day = make_day()
        patient = make_patient()
        first = scheduler.schedule_specific(patient.id, doctor.id, day.id, "09:00").booking
        second = scheduler.schedule_specific(patient.id, doctor.id, day.id, "11:00").booking

        scheduler.unschedule(first.id)
        assert PatientRepository().get_by_id(patient.id).is_scheduled

        scheduler.unschedule(second.id)
        assert not PatientRepository().get_by_id(patient.id).is_scheduled

    def test_patient_becomes_available_again(self, scheduler, doctor, make_day, make_patient):
        day = make_day()
        patient = make_patient()
        booking = scheduler.schedule_specific(patient.id, doctor.id, day.id, "09:00").booking
        assert patient.id not in [p.id for p in scheduler.get_available_patients()]

        scheduler.unschedule(booking.id)

        assert patient.id in [p.id for p in scheduler.get_available_patients()]

    def test_unknown_booking(self, scheduler):
        result = scheduler.unschedule("missing")
        assert not result.success
        assert result.error_code == "booking_not_found"


class TestReschedule:

    def test_moves_within_day(self, scheduler, doctor, make_day, make_patient):
        day = make_day()
        patient = make_patient(procedure_type="colono")
        booking = scheduler.schedule_specific(patient.id, doctor.id, day.id, "09:00").booking

        result = scheduler.reschedule(booking.id, day.id, "13:00")

        assert result.success
        assert result.message == "Operation rescheduled successfully"
        assert (result.booking.start_time, result.booking.end_time) == ("13:00", "13:30")

    def test_may_overlap_its_own_old_slot(self, scheduler, doctor, make_day, make_patient):
        day = make_day()
        patient = make_patient(procedure_type="colono")
        booking = scheduler.schedule_specific(patient.id, doctor.id, day.id, "10:00").booking

        result = scheduler.reschedule(booking.id, day.id, "10:15")

        assert result.success
        assert result.booking.end_time == "10:45"

    def test_keeps_booked_procedure_duration(self, scheduler, doctor, make_day, make_patient):
        day = make_day()
        patient = make_patient(procedure_type="gastro")
        booking = scheduler.schedule_specific(patient.id, doctor.id, day.id, "09:00").booking
        PatientRepository().update(patient.id, {"procedure_type": "double"})

        result = scheduler.reschedule(booking.id, day.id, "12:00")

        assert result.booking.end_time == "12:15"
        assert result.booking.procedure_type == "gastro"

    def test_moves_to_another_day(self, scheduler, doctor, make_day, make_patient):
        day = make_day(date="2030-01-02")
        other = make_day(date="2030-01-05", location="asotaRamatHahayal")
        patient = make_patient()
        booking = scheduler.schedule_specific(patient.id, doctor.id, day.id, "09:00").booking

        result = scheduler.reschedule(booking.id, other.id, "10:00")

        assert result.booking.operation_day_id == other.id
        assert BookingRepository().find_for_day(day.id) == []
        assert scheduler.get_patient_schedule(patient.id)[0].operation_day_id == other.id

    def test_conflict_with_other_booking(self, scheduler, doctor, make_day, make_patient, add_booking):
        day = make_day()
        add_booking(day, "12:00", "colono")
        patient = make_patient()
        booking = scheduler.schedule_specific(patient.id, doctor.id, day.id, "09:00").booking

        result = scheduler.reschedule(booking.id, day.id, "12:10")

        assert result.error_code == "slot_conflict"
        assert BookingRepository().get_by_id(booking.id).start_time == "09:00"

    def test_locked_target_day(self, scheduler, doctor, make_day, make_patient):
        day = make_day(date="2030-01-02")
        locked = make_day(date="2030-01-03", is_locked=True)
        patient = make_patient()
        booking = scheduler.schedule_specific(patient.id, doctor.id, day.id, "09:00").booking

        assert scheduler.reschedule(booking.id, locked.id, "09:00").error_code == "day_locked"

    def test_provider_not_accepted_at_target(self, scheduler, doctor, make_day, make_patient):
        day = make_day(date="2030-01-02", location="asotaRamatHahayal")
        holon = make_day(date="2030-01-03", location="asotaHolon")
        patient = make_patient(hc_provider="leumit")
        booking = scheduler.schedule_specific(patient.id, doctor.id, day.id, "09:00").booking

        assert scheduler.reschedule(booking.id, holon.id, "09:00").error_code == "provider_not_eligible"

    def test_outside_hours(self, scheduler, doctor, make_day, make_patient):
        day = make_day(start_hour="09:00", end_hour="17:00")
        patient = make_patient(procedure_type="colono")
        booking = scheduler.schedule_specific(patient.id, doctor.id, day.id, "09:00").booking

        assert scheduler.reschedule(booking.id, day.id, "16:45").error_code == "outside_operating_hours"

    def test_capacity_checked_when_changing_day(self, scheduler, doctor, make_day, make_patient, fill_day):
        day = make_day(date="2030-01-02", location="asotaRamatHahayal")
        full = make_day(date="2030-01-03", location="asotaCalaniotAshdod")
        fill_day(full, ["gastro"] * 12)
        patient = make_patient()
        booking = scheduler.schedule_specific(patient.id, doctor.id, day.id, "09:00").booking

        assert scheduler.reschedule(booking.id, full.id, "15:00").error_code == "capacity_exceeded"

    def test_capacity_not_rechecked_within_same_day(self, scheduler, make_day, fill_day):
        full = make_day(location="asotaCalaniotAshdod")
        bookings = fill_day(full, ["gastro"] * 12)

        assert scheduler.reschedule(bookings[0].id, full.id, "15:00").success

    def test_auto_locks_target_day(self, scheduler, doctor, make_day, make_patient, fill_day):
        day = make_day(date="2030-01-02", location="asotaRamatHahayal")
        calaniot = make_day(date="2030-01-03", location="asotaCalaniotAshdod")
        fill_day(calaniot, ["colono"] * 7 + ["gastro"] * 4)
        patient = make_patient()
        booking = scheduler.schedule_specific(patient.id, doctor.id, day.id, "09:00").booking

        assert scheduler.reschedule(booking.id, calaniot.id, "15:00").success
        assert OperationDayRepository().get_by_id(calaniot.id).is_locked

    def test_unknown_booking_and_day(self, scheduler, doctor, make_day, make_patient):
        day = make_day()
        patient = make_patient()
        booking = scheduler.schedule_specific(patient.id, doctor.id, day.id, "09:00").booking

        assert scheduler.reschedule("missing", day.id, "10:00").error_code == "booking_not_found"
        assert scheduler.reschedule(booking.id, "missing", "10:00").error_code == "day_not_found"


class TestLocking:

    def test_lock_and_unlock(self, scheduler, make_day):
        day = make_day()

        assert scheduler.lock_day(day.id).is_locked
        assert OperationDayRepository().get_by_id(day.id).is_locked
        assert not scheduler.unlock_day(day.id).is_locked
        assert not OperationDayRepository().get_by_id(day.id).is_locked

    def test_unlocked_day_accepts_bookings_again(self, scheduler, doctor, make_day, make_patient):
        day = make_day()
        patient = make_patient()
        scheduler.lock_day(day.id)
        assert scheduler.schedule_specific(patient.id, doctor.id, day.id, "09:00").error_code == "day_locked"

        scheduler.unlock_day(day.id)

        assert scheduler.schedule_specific(patient.id, doctor.id, day.id, "09:00").success

    def test_unknown_day(self, scheduler):
        with pytest.raises(DayNotFound):
            scheduler.lock_day("missing")


class TestScheduleQueries:

    def test_available_patients_oldest_first(self, scheduler, make_patient):
        newer = make_patient(visit_date="2029-12-20")
        older = make_patient(visit_date="2029-10-01")
        make_patient(declined_procedure=True)
        make_patient(procedure_type=None)

        assert [p.id for p in scheduler.get_available_patients()] == [older.id, newer.id]

    def test_day_schedule_by_start_time(self, scheduler, make_day, add_booking):
        day = make_day()
        late = add_booking(day, "14:00")
        early = add_booking(day, "09:00")

        assert [b.id for b in scheduler.get_day_schedule(day.id)] == [early.id, late.id]

    def test_day_schedule_unknown_day(self, scheduler):
        with pytest.raises(DayNotFound):
            scheduler.get_day_schedule("missing")

    def test_patient_schedule_by_date(self, scheduler, doctor, make_day, make_patient):
        later = make_day(date="2030-02-01")
        sooner = make_day(date="2030-01-10")
        patient = make_patient()
        scheduler.schedule_specific(patient.id, doctor.id, later.id, "09:00")
        scheduler.schedule_specific(patient.id, doctor.id, sooner.id, "12:00")

        schedule = scheduler.get_patient_schedule(patient.id)

        assert [b.operation_day_id for b in schedule] == [sooner.id, later.id]

    def test_patient_schedule_unknown_patient(self, scheduler):
        with pytest.raises(PatientNotFound):
            scheduler.get_patient_schedule("missing")


class TestFindAvailableDays:

    def test_next_free_time_per_day(self, scheduler, make_day, make_patient, add_booking):
        empty = make_day(date="2030-01-02")
        busy = make_day(date="2030-01-03")
        add_booking(busy, "09:00", "gastro")
        patient = make_patient(procedure_type="gastro")

        days = scheduler.find_available_days(patient.id)

        assert [(d.operation_day_id, d.next_available_time, d.is_valid) for d in days] == [
            (empty.id, "09:00", True),
            (busy.id, "09:15", True),
        ]

    def test_gap_must_fit_the_procedure(self, scheduler, make_day, make_patient, add_booking):
        day = make_day()
        add_booking(day, "09:00", "gastro")
        add_booking(day, "09:30", "gastro")
        short = make_patient(procedure_type="gastro")
        long = make_patient(procedure_type="colono")

        assert scheduler.find_available_days(short.id)[0].next_available_time == "09:15"
        assert scheduler.find_available_days(long.id)[0].next_available_time == "09:45"

    def test_skips_locked_and_past_days(self, scheduler, make_day, make_patient):
        make_day(date="2029-12-30")
        make_day(date="2030-01-02", is_locked=True)
        open_day = make_day(date="2030-01-03")
        patient = make_patient()

        assert [d.operation_day_id for d in scheduler.find_available_days(patient.id)] == [open_day.id]

    def test_reports_why_a_day_is_unusable(self, scheduler, make_day, make_patient, add_booking, fill_day):
        holon = make_day(date="2030-01-02", location="asotaHolon")
        calaniot = make_day(date="2030-01-03", location="asotaCalaniotAshdod")
        fill_day(calaniot, ["colono"] * 7)
        short = make_day(date="2030-01-04", location="asotaRamatHahayal", start_hour="09:00", end_hour="09:30")
        add_booking(short, "09:15", "gastro")
        patient = make_patient(hc_provider="leumit", procedure_type="colono")

        reasons = {d.operation_day_id: d for d in scheduler.find_available_days(patient.id)}

        assert reasons[holon.id].reason == "Patient's health provider is not accepted at this location"
        assert reasons[calaniot.id].reason == "Maximum 7 colonoscopies reached for this day"
        assert reasons[short.id].reason == "No free time on this day"
        assert not any(d.is_valid for d in reasons.values())
        assert all(d.next_available_time is None for d in reasons.values())

    def test_unknown_patient(self, scheduler):
        with pytest.raises(PatientNotFound):
            scheduler.find_available_days("missing")

    def test_patient_without_procedure(self, scheduler, make_day, make_patient):
        make_day()
        patient = make_patient(procedure_type=None)
        with pytest.raises(ProcedureTypeMissing):
            scheduler.find_available_days(patient.id)


class TestStorageFailures:
    """Storage errors propagate and nothing from the failed operation is kept."""

    def test_booking_write_failure_propagates(self, scheduler, doctor, make_day, make_patient):
        day = make_day()
        patient = make_patient()

        with patch.object(BookingRepository, "create", side_effect=StorageError("disk I/O error")):
            with pytest.raises(StorageError):
                scheduler.schedule_specific(patient.id, doctor.id, day.id, "09:00")

        assert not PatientRepository().get_by_id(patient.id).is_scheduled

    def test_flag_write_failure_rolls_back_booking(self, scheduler, doctor, make_day, make_patient):
        day = make_day()
        patient = make_patient()

        with patch.object(PatientRepository, "set_scheduled", side_effect=StorageError("disk I/O error")):
            with pytest.raises(StorageError):
                scheduler.schedule_for_any_day(patient.id, doctor.id)

        assert BookingRepository().find_for_day(day.id) == []

    def test_batch_is_all_or_nothing(self, scheduler, doctor, make_day, make_patient):
        day = make_day()
        for _ in range(3):
            make_patient()

        with patch.object(
            PatientRepository, "set_scheduled", side_effect=[None, StorageError("disk I/O error")]
        ):
            with pytest.raises(StorageError):
                scheduler.batch_schedule_for_day(day.id, doctor.id)

        assert BookingRepository().find_for_day(day.id) == []
        assert len(scheduler.get_available_patients()) == 3
