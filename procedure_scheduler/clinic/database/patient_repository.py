"""Patient repository with CRUD operations and scheduling queries."""

import uuid
from dataclasses import dataclass
from datetime import date, datetime

from .base import BaseRepository
from .fields import HCProvider, PrepType, ProcedureType, choice_value
from .errors import ReferencedRecordError


@dataclass
class Patient:
    id: str
    national_id: str
    first_name: str
    last_name: str
    hc_provider: str
    phone: str
    additional_phone: str | None = None
    visit_date: str | None = None
    procedure_type: str | None = None
    preparation_type: str | None = None
    additional_info: str | None = None
    is_scheduled: bool = False
    declined_procedure: bool = False
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class PatientRepository(BaseRepository):
    """Repository for patient visit records."""

    # Fields staff may update. is_scheduled is owned by the scheduler.
    PATIENT_FIELDS = [
        "national_id", "first_name", "last_name", "hc_provider", "phone",
        "additional_phone", "visit_date", "procedure_type", "preparation_type",
        "additional_info", "declined_procedure",
    ]

    # (field, allowed values, required)
    CHOICE_FIELDS = [
        ("hc_provider", HCProvider, True),
        ("procedure_type", ProcedureType, False),
        ("preparation_type", PrepType, False),
    ]

    def create(self, patient: Patient) -> Patient:
        """Create a new patient visit record."""
        for field, choices, required in self.CHOICE_FIELDS:
            setattr(patient, field, choice_value(field, getattr(patient, field), choices, required))
        patient.id = patient.id or str(uuid.uuid4())
        patient.visit_date = patient.visit_date or date.today().isoformat()
        now = datetime.now().isoformat()

        with self._cursor() as cursor:
            cursor.execute("""
                INSERT INTO patients (
                    id, national_id, first_name, last_name, hc_provider, phone,
                    additional_phone, visit_date, procedure_type, preparation_type,
                    additional_info, is_scheduled, declined_procedure,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                patient.id, patient.national_id, patient.first_name, patient.last_name,
                patient.hc_provider, patient.phone, patient.additional_phone,
                patient.visit_date, patient.procedure_type, patient.preparation_type,
                patient.additional_info, int(patient.is_scheduled),
                int(patient.declined_procedure), now, now
            ))

        patient.created_at = now
        patient.updated_at = now
        return patient

    def get_by_id(self, patient_id: str) -> Patient | None:
        """Get a patient by record ID."""
        with self._cursor() as cursor:
            cursor.execute("SELECT * FROM patients WHERE id = ?", (patient_id,))
            row = cursor.fetchone()
        return self._row_to_patient(row) if row else None

    def find_by_national_id(self, national_id: str) -> list[Patient]:
        """All visit records of one person, oldest visit first."""
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT * FROM patients WHERE national_id = ? ORDER BY visit_date",
                (national_id,)
            )
            rows = cursor.fetchall()
        return [self._row_to_patient(row) for row in rows]

    def find_unscheduled(self) -> list[Patient]:
        """Patients waiting for a slot: procedure set, not scheduled, not declined.

        Ordered by visit date so the longest-waiting patient comes first.
        """
        with self._cursor() as cursor:
            cursor.execute("""
                SELECT * FROM patients
                WHERE procedure_type IS NOT NULL
                  AND procedure_type != ''
                  AND is_scheduled = 0
                  AND declined_procedure = 0
                ORDER BY visit_date, created_at
            """)
            rows = cursor.fetchall()
        return [self._row_to_patient(row) for row in rows]

    def update(self, patient_id: str, updates: dict) -> Patient | None:
        """Update staff-editable patient fields; unknown fields are ignored."""
        valid_updates = {
            field: (int(value) if field == "declined_procedure" else value)
            for field, value in updates.items()
            if field in self.PATIENT_FIELDS
        }
        for field, choices, required in self.CHOICE_FIELDS:
            if field in valid_updates:
                valid_updates[field] = choice_value(field, valid_updates[field], choices, required)
        if valid_updates:
            set_clause = ", ".join(f"{field} = ?" for field in valid_updates)
            set_clause += ", updated_at = ?"
            values = list(valid_updates.values()) + [datetime.now().isoformat(), patient_id]
            with self._cursor() as cursor:
                cursor.execute(f"UPDATE patients SET {set_clause} WHERE id = ?", values)
        return self.get_by_id(patient_id)

    def set_scheduled(self, patient_id: str, is_scheduled: bool) -> None:
        """Set the derived scheduled flag."""
        with self._cursor() as cursor:
            cursor.execute(
                "UPDATE patients SET is_scheduled = ?, updated_at = ? WHERE id = ?",
                (int(is_scheduled), datetime.now().isoformat(), patient_id)
            )

    def delete(self, patient_id: str) -> bool:
        """Delete a patient record. Refused while bookings or history records reference it."""
        with self._cursor() as cursor:
            references = self._count_references(cursor, "patient_id", patient_id)
            if references:
                raise ReferencedRecordError("patient", patient_id, references)
            cursor.execute("DELETE FROM patients WHERE id = ?", (patient_id,))
            return cursor.rowcount > 0

    def _row_to_patient(self, row) -> Patient:
        """Convert a database row to a Patient object."""
        return Patient(
            id=row["id"],
            national_id=row["national_id"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            hc_provider=row["hc_provider"],
            phone=row["phone"],
            additional_phone=row["additional_phone"],
            visit_date=row["visit_date"],
            procedure_type=row["procedure_type"],
            preparation_type=row["preparation_type"],
            additional_info=row["additional_info"],
            is_scheduled=bool(row["is_scheduled"]),
            declined_procedure=bool(row["declined_procedure"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
