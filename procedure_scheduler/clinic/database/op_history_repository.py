"""Operation history repository: performed operations and consultations."""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime

from .base import BaseRepository
from .fields import Location, PrepType, ProcedureType, choice_value, time_value


@dataclass
class OpHistory:
    id: str
    patient_id: str
    doctor_id: str
    date: str
    op_type: str
    prep_type: str
    location: str
    start_hour: str
    end_hour: str
    is_operation: bool = True
    notes: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class OpHistoryStats:
    """Counts over the history table."""
    total_operations: int = 0
    total_consultations: int = 0
    op_type_counts: dict[str, int] = field(default_factory=dict)    # operations only
    location_counts: dict[str, int] = field(default_factory=dict)
    monthly_counts: dict[int, int] = field(default_factory=dict)    # month -> records, one year


class OpHistoryRepository(BaseRepository):
    """Repository for the operation history."""

    HISTORY_FIELDS = [
        "patient_id", "doctor_id", "is_operation", "date", "op_type", "prep_type",
        "location", "start_hour", "end_hour", "notes",
    ]

    def create(self, record: OpHistory) -> OpHistory:
        for name in ("op_type", "prep_type", "location", "start_hour", "end_hour"):
            setattr(record, name, self._checked(name, getattr(record, name)))
        record.id = record.id or str(uuid.uuid4())
        now = datetime.now().isoformat()
        with self._cursor() as cursor:
            cursor.execute(
                """INSERT INTO op_history
                   (id, patient_id, doctor_id, is_operation, date, op_type, prep_type,
                    location, start_hour, end_hour, notes, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (record.id, record.patient_id, record.doctor_id, int(record.is_operation),
                 record.date, record.op_type, record.prep_type, record.location,
                 record.start_hour, record.end_hour, record.notes, now, now),
            )
        record.created_at = now
        record.updated_at = now
        return record

    def get_by_id(self, record_id: str) -> OpHistory | None:
        with self._cursor() as cursor:
            cursor.execute("SELECT * FROM op_history WHERE id = ?", (record_id,))
            row = cursor.fetchone()
        return self._row_to_history(row) if row else None

    def list_all(self) -> list[OpHistory]:
        """All records, most recent first."""
        return self._find("1 = 1", ())

    def find_for_patient(self, patient_id: str) -> list[OpHistory]:
        return self._find("patient_id = ?", (patient_id,))

    def find_for_national_id(self, national_id: str) -> list[OpHistory]:
        """Records of every visit of one person, most recent first."""
        with self._cursor() as cursor:
            cursor.execute(
                """SELECT h.* FROM op_history h
                   JOIN patients p ON p.id = h.patient_id
                   WHERE p.national_id = ?
                   ORDER BY h.date DESC, h.start_hour""",
                (national_id,),
            )
            rows = cursor.fetchall()
        return [self._row_to_history(row) for row in rows]

    def find_for_doctor(self, doctor_id: str) -> list[OpHistory]:
        return self._find("doctor_id = ?", (doctor_id,))

    def find_by_location(self, location: str) -> list[OpHistory]:
        return self._find("location = ?", (choice_value("location", location, Location),))

    def find_by_op_type(self, op_type: str) -> list[OpHistory]:
        return self._find("op_type = ?", (choice_value("op_type", op_type, ProcedureType),))

    def find_by_date(self, day_date: str) -> list[OpHistory]:
        """Records of one day (YYYY-MM-DD) in start-hour order."""
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT * FROM op_history WHERE date = ? ORDER BY start_hour",
                (day_date,),
            )
            rows = cursor.fetchall()
        return [self._row_to_history(row) for row in rows]

    def update(self, record_id: str, updates: dict) -> OpHistory | None:
        """Update record fields; unknown fields are ignored."""
        valid_updates = {
            name: self._checked(name, value)
            for name, value in updates.items()
            if name in self.HISTORY_FIELDS
        }
        if "is_operation" in valid_updates:
            valid_updates["is_operation"] = int(valid_updates["is_operation"])
        if valid_updates:
            set_clause = ", ".join(f"{name} = ?" for name in valid_updates)
            set_clause += ", updated_at = ?"
            values = list(valid_updates.values()) + [datetime.now().isoformat(), record_id]
            with self._cursor() as cursor:
                cursor.execute(f"UPDATE op_history SET {set_clause} WHERE id = ?", values)
        return self.get_by_id(record_id)

    def delete(self, record_id: str) -> bool:
        with self._cursor() as cursor:
            cursor.execute("DELETE FROM op_history WHERE id = ?", (record_id,))
            return cursor.rowcount > 0

    def stats_summary(self, year: int | None = None) -> OpHistoryStats:
        """Totals, counts per operation type and location, and per month of ``year``.

        ``year`` defaults to the current year.
        """
        year = year or date.today().year
        stats = OpHistoryStats()
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT is_operation, COUNT(*) AS n FROM op_history GROUP BY is_operation"
            )
            for row in cursor.fetchall():
                if row["is_operation"]:
                    stats.total_operations = row["n"]
                else:
                    stats.total_consultations = row["n"]

            cursor.execute(
                """SELECT op_type, COUNT(*) AS n FROM op_history
                   WHERE is_operation = 1
                   GROUP BY op_type ORDER BY op_type"""
            )
            stats.op_type_counts = {row["op_type"]: row["n"] for row in cursor.fetchall()}

            cursor.execute(
                "SELECT location, COUNT(*) AS n FROM op_history GROUP BY location ORDER BY location"
            )
            stats.location_counts = {row["location"]: row["n"] for row in cursor.fetchall()}

            cursor.execute(
                """SELECT CAST(substr(date, 6, 2) AS INTEGER) AS month, COUNT(*) AS n
                   FROM op_history
                   WHERE substr(date, 1, 4) = ?
                   GROUP BY month ORDER BY month""",
                (f"{year:04d}",),
            )
            stats.monthly_counts = {row["month"]: row["n"] for row in cursor.fetchall()}
        return stats

    def _find(self, where: str, params: tuple) -> list[OpHistory]:
        with self._cursor() as cursor:
            cursor.execute(
                f"SELECT * FROM op_history WHERE {where} ORDER BY date DESC, start_hour",
                params,
            )
            rows = cursor.fetchall()
        return [self._row_to_history(row) for row in rows]

    def _checked(self, name: str, value):
        if name == "op_type":
            return choice_value(name, value, ProcedureType)
        if name == "prep_type":
            return choice_value(name, value, PrepType)
        if name == "location":
            return choice_value(name, value, Location)
        if name in ("start_hour", "end_hour"):
            return time_value(name, value)
        return value

    def _row_to_history(self, row) -> OpHistory:
        """Convert a database row to an OpHistory object."""
        return OpHistory(
            id=row["id"],
            patient_id=row["patient_id"],
            doctor_id=row["doctor_id"],
            date=row["date"],
            op_type=row["op_type"],
            prep_type=row["prep_type"],
            location=row["location"],
            start_hour=row["start_hour"],
            end_hour=row["end_hour"],
            is_operation=bool(row["is_operation"]),
            notes=row["notes"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
