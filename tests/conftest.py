"""Shared pytest fixtures."""

from datetime import date

import pytest

from procedure_scheduler.clinic.database import (
    Booking,
    BookingRepository,
    Doctor,
    DoctorRepository,
    OperationDay,
    OperationDayRepository,
    Patient,
    PatientRepository,
    init_database,
)
from procedure_scheduler.scheduling import Scheduler, duration_minutes, minutes_to_time, time_to_minutes

TODAY = date(2030, 1, 1)
TOMORROW = "2030-01-02"


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    """Point every test at its own fresh SQLite file."""
    monkeypatch.setenv("SCHEDULER_DB_PATH", str(tmp_path / "scheduler_test.db"))
    init_database()
    yield tmp_path / "scheduler_test.db"


@pytest.fixture
def scheduler():
    """Scheduler with a fixed 'today'."""
    return Scheduler(today=lambda: TODAY)


@pytest.fixture
def make_doctor():
    counter = iter(range(1, 1000))

    def _make(**overrides) -> Doctor:
        n = next(counter)
        fields = {
            "id": f"doc-{n}",
            "national_id": f"{n:09d}",
            "first_name": "Test",
            "last_name": f"Doctor{n}",
        }
        fields.update(overrides)
        return DoctorRepository().create(Doctor(**fields))

    return _make


@pytest.fixture
def doctor(make_doctor):
    return make_doctor(id="doc-main")


@pytest.fixture
def make_patient():
    counter = iter(range(1, 10000))

    def _make(**overrides) -> Patient:
        n = next(counter)
        fields = {
            "id": f"pat-{n}",
            "national_id": f"{100000000 + n}",
            "first_name": "Test",
            "last_name": f"Patient{n}",
            "hc_provider": "maccabi",
            "phone": "0501234567",
            "visit_date": f"2029-12-{(n % 28) + 1:02d}",
            "procedure_type": "gastro",
        }
        fields.update(overrides)
        return PatientRepository().create(Patient(**fields))

    return _make


@pytest.fixture
def make_day(doctor):
    counter = iter(range(1, 1000))

    def _make(**overrides) -> OperationDay:
        n = next(counter)
        fields = {
            "id": f"day-{n}",
            "date": TOMORROW,
            "location": "asotaHolon",
            "doctor_id": doctor.id,
            "start_hour": "09:00",
            "end_hour": "17:00",
        }
        fields.update(overrides)
        return OperationDayRepository().create(OperationDay(**fields))

    return _make


@pytest.fixture
def add_booking(doctor, make_patient):
    """Insert a booking directly (bypassing the scheduler) for a new filler patient."""
    counter = iter(range(1, 10000))

    def _add(day: OperationDay, start_time: str, procedure_type: str = "gastro", **patient_fields) -> Booking:
        patient = make_patient(procedure_type=procedure_type, is_scheduled=True, **patient_fields)
        end = minutes_to_time(time_to_minutes(start_time) + duration_minutes(procedure_type))
        return BookingRepository().create(Booking(
            id=f"bk-{next(counter)}",
            patient_id=patient.id,
            doctor_id=doctor.id,
            operation_day_id=day.id,
            procedure_type=procedure_type,
            start_time=start_time,
            end_time=end,
        ))

    return _add


@pytest.fixture
def fill_day(add_booking):
    """Book a run of back-to-back procedures starting at the day's opening hour."""

    def _fill(day: OperationDay, procedure_types: list[str], **patient_fields) -> list[Booking]:
        bookings = []
        cursor = time_to_minutes(day.start_hour)
        for procedure_type in procedure_types:
            bookings.append(add_booking(day, minutes_to_time(cursor), procedure_type, **patient_fields))
            cursor += duration_minutes(procedure_type)
        return bookings

    return _fill
