from .connection import get_connection, init_database, transaction
from .doctor_repository import Doctor, DoctorRepository
from .errors import (
    DuplicateRecordError,
    InvalidValueError,
    LockedDayError,
    ReferencedRecordError,
    StorageError,
)
from .fields import HCProvider, Location, PrepType, ProcedureType
from .op_history_repository import OpHistory, OpHistoryRepository, OpHistoryStats
from .patient_repository import Patient, PatientRepository
from .schedule_repository import Booking, BookingRepository, OperationDay, OperationDayRepository

__all__ = [
    "get_connection", "init_database", "transaction",
    "Patient", "PatientRepository",
    "Doctor", "DoctorRepository",
    "OperationDay", "OperationDayRepository",
    "Booking", "BookingRepository",
    "OpHistory", "OpHistoryRepository", "OpHistoryStats",
    "HCProvider", "Location", "PrepType", "ProcedureType",
    "StorageError", "DuplicateRecordError", "ReferencedRecordError", "LockedDayError",
    "InvalidValueError",
]
