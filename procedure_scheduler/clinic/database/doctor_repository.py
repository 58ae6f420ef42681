"""Doctor repository."""

import uuid
from dataclasses import dataclass
from datetime import datetime

from .base import BaseRepository
from .errors import ReferencedRecordError


@dataclass
class Doctor:
    id: str
    national_id: str
    first_name: str
    last_name: str
    created_at: str | None = None

    @property
    def full_name(self) -> str:
        return f"Dr. {self.first_name} {self.last_name}"


class DoctorRepository(BaseRepository):
    """Repository for doctors."""

    def create(self, doctor: Doctor) -> Doctor:
        doctor.id = doctor.id or str(uuid.uuid4())
        now = datetime.now().isoformat()
        with self._cursor() as cursor:
            cursor.execute(
                """INSERT INTO doctors (id, national_id, first_name, last_name, created_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (doctor.id, doctor.national_id, doctor.first_name, doctor.last_name, now),
            )
        doctor.created_at = now
        return doctor

    def get_by_id(self, doctor_id: str) -> Doctor | None:
        """Get a doctor by ID."""
        with self._cursor() as cursor:
            cursor.execute("SELECT * FROM doctors WHERE id = ?", (doctor_id,))
            row = cursor.fetchone()
        return self._row_to_doctor(row) if row else None

    def list_all(self) -> list[Doctor]:
        with self._cursor() as cursor:
            cursor.execute("SELECT * FROM doctors ORDER BY last_name, first_name")
            rows = cursor.fetchall()
        return [self._row_to_doctor(row) for row in rows]

    def delete(self, doctor_id: str) -> bool:
        """Delete a doctor. Refused while bookings or history records reference them."""
        with self._cursor() as cursor:
            references = self._count_references(cursor, "doctor_id", doctor_id)
            if references:
                raise ReferencedRecordError("doctor", doctor_id, references)
            cursor.execute("DELETE FROM doctors WHERE id = ?", (doctor_id,))
            return cursor.rowcount > 0

    def _row_to_doctor(self, row) -> Doctor:
        return Doctor(
            id=row["id"],
            national_id=row["national_id"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            created_at=row["created_at"],
        )
