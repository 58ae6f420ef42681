"""Operation day and booking repositories."""

import uuid
from dataclasses import dataclass
from datetime import datetime

from .base import BaseRepository
from .errors import LockedDayError, ReferencedRecordError
from .fields import Location, choice_value, time_value


@dataclass
class OperationDay:
    id: str
    date: str
    location: str
    doctor_id: str
    start_hour: str
    end_hour: str
    is_locked: bool = False
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class Booking:
    id: str
    patient_id: str
    doctor_id: str
    operation_day_id: str
    procedure_type: str
    start_time: str
    end_time: str
    notes: str | None = None
    created_at: str | None = None


class OperationDayRepository(BaseRepository):
    """Repository for operation days."""

    DAY_FIELDS = ["date", "location", "doctor_id", "start_hour", "end_hour"]

    # Frozen once the day is locked
    LOCKED_FIELDS = {"date", "location", "start_hour", "end_hour"}

    def create(self, day: OperationDay) -> OperationDay:
        """Create an operation day; (date, location, doctor) must be unique."""
        for field in ("location", "start_hour", "end_hour"):
            setattr(day, field, self._checked(field, getattr(day, field)))
        day.id = day.id or str(uuid.uuid4())
        now = datetime.now().isoformat()
        with self._cursor() as cursor:
            cursor.execute(
                """INSERT INTO operation_days
                   (id, date, location, doctor_id, start_hour, end_hour, is_locked,
                    created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (day.id, day.date, day.location, day.doctor_id, day.start_hour,
                 day.end_hour, int(day.is_locked), now, now),
            )
        day.created_at = now
        day.updated_at = now
        return day

    def get_by_id(self, day_id: str) -> OperationDay | None:
        """Get an operation day by ID."""
        with self._cursor() as cursor:
            cursor.execute("SELECT * FROM operation_days WHERE id = ?", (day_id,))
            row = cursor.fetchone()
        return self._row_to_day(row) if row else None

    def find_from(self, from_date: str) -> list[OperationDay]:
        """Days on or after ``from_date`` (YYYY-MM-DD), earliest first."""
        with self._cursor() as cursor:
            cursor.execute(
                """SELECT * FROM operation_days
                   WHERE date >= ?
                   ORDER BY date, start_hour, created_at""",
                (from_date,),
            )
            rows = cursor.fetchall()
        return [self._row_to_day(row) for row in rows]

    def update(self, day_id: str, updates: dict) -> OperationDay | None:
        """Update day fields. Hours, date and location are frozen on a locked day."""
        current = self.get_by_id(day_id)
        if not current:
            return None

        valid_updates = {
            field: self._checked(field, value)
            for field, value in updates.items()
            if field in self.DAY_FIELDS
        }
        if current.is_locked:
            frozen = sorted(
                field for field in self.LOCKED_FIELDS & set(valid_updates)
                if valid_updates[field] != getattr(current, field)
            )
            if frozen:
                raise LockedDayError(
                    f"Operation day {day_id} is locked; cannot change {', '.join(frozen)}"
                )

        if valid_updates:
            set_clause = ", ".join(f"{field} = ?" for field in valid_updates)
            set_clause += ", updated_at = ?"
            values = list(valid_updates.values()) + [datetime.now().isoformat(), day_id]
            with self._cursor() as cursor:
                cursor.execute(f"UPDATE operation_days SET {set_clause} WHERE id = ?", values)
        return self.get_by_id(day_id)

    def set_locked(self, day_id: str, is_locked: bool) -> None:
        with self._cursor() as cursor:
            cursor.execute(
                "UPDATE operation_days SET is_locked = ?, updated_at = ? WHERE id = ?",
                (int(is_locked), datetime.now().isoformat(), day_id),
            )

    def delete(self, day_id: str) -> bool:
        """Delete an operation day. Refused while it has bookings."""
        with self._cursor() as cursor:
            references = self._count_bookings(cursor, "operation_day_id", day_id)
            if references:
                raise ReferencedRecordError("operation day", day_id, references)
            cursor.execute("DELETE FROM operation_days WHERE id = ?", (day_id,))
            return cursor.rowcount > 0

    def _checked(self, field: str, value):
        if field == "location":
            return choice_value(field, value, Location)
        if field in ("start_hour", "end_hour"):
            return time_value(field, value)
        return value

    def _row_to_day(self, row) -> OperationDay:
        """Convert a database row to an OperationDay object."""
        return OperationDay(
            id=row["id"],
            date=row["date"],
            location=row["location"],
            doctor_id=row["doctor_id"],
            start_hour=row["start_hour"],
            end_hour=row["end_hour"],
            is_locked=bool(row["is_locked"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


class BookingRepository(BaseRepository):
    """Repository for booked procedure slots."""

    def create(self, booking: Booking) -> Booking:
        booking.id = booking.id or str(uuid.uuid4())
        now = datetime.now().isoformat()
        with self._cursor() as cursor:
            cursor.execute(
                """INSERT INTO bookings
                   (id, patient_id, doctor_id, operation_day_id, procedure_type,
                    start_time, end_time, notes, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (booking.id, booking.patient_id, booking.doctor_id,
                 booking.operation_day_id, booking.procedure_type,
                 booking.start_time, booking.end_time, booking.notes, now),
            )
        booking.created_at = now
        return booking

    def get_by_id(self, booking_id: str) -> Booking | None:
        with self._cursor() as cursor:
            cursor.execute("SELECT * FROM bookings WHERE id = ?", (booking_id,))
            row = cursor.fetchone()
        return self._row_to_booking(row) if row else None

    def find_for_day(self, day_id: str) -> list[Booking]:
        """Bookings of one operation day, by start time."""
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT * FROM bookings WHERE operation_day_id = ? ORDER BY start_time",
                (day_id,),
            )
            rows = cursor.fetchall()
        return [self._row_to_booking(row) for row in rows]

    def find_for_patient(self, patient_id: str) -> list[Booking]:
        """Bookings of one patient record, by day date then start time."""
        with self._cursor() as cursor:
            cursor.execute(
                """SELECT b.* FROM bookings b
                   JOIN operation_days d ON d.id = b.operation_day_id
                   WHERE b.patient_id = ?
                   ORDER BY d.date, b.start_time""",
                (patient_id,),
            )
            rows = cursor.fetchall()
        return [self._row_to_booking(row) for row in rows]

    def count_for_patient(self, patient_id: str) -> int:
        with self._cursor() as cursor:
            return self._count_bookings(cursor, "patient_id", patient_id)

    def update_slot(
        self,
        booking_id: str,
        operation_day_id: str,
        start_time: str,
        end_time: str,
    ) -> Booking | None:
        """Move a booking to another day and/or start time."""
        with self._cursor() as cursor:
            cursor.execute(
                """UPDATE bookings
                   SET operation_day_id = ?, start_time = ?, end_time = ?
                   WHERE id = ?""",
                (operation_day_id, start_time, end_time, booking_id),
            )
        return self.get_by_id(booking_id)

    def delete(self, booking_id: str) -> bool:
        with self._cursor() as cursor:
            cursor.execute("DELETE FROM bookings WHERE id = ?", (booking_id,))
            return cursor.rowcount > 0

    def _row_to_booking(self, row) -> Booking:
        """Convert a database row to a Booking object."""
        return Booking(
            id=row["id"],
            patient_id=row["patient_id"],
            doctor_id=row["doctor_id"],
            operation_day_id=row["operation_day_id"],
            procedure_type=row["procedure_type"],
            start_time=row["start_time"],
            end_time=row["end_time"],
            notes=row["notes"],
            created_at=row["created_at"],
        )
