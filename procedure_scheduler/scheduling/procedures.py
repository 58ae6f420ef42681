"""Procedure duration policy and the colono-class grouping."""

from enum import Enum

from procedure_scheduler.clinic.database.fields import ProcedureType


# Keyed by the stored string value
PROCEDURE_DURATIONS = {
    ProcedureType.DOUBLE.value: 45,
    ProcedureType.COLONO.value: 30,
    ProcedureType.GASTRO.value: 15,
    ProcedureType.SIGMO.value: 15,
}

# Anything unrecognized (including a missing type) gets a colonoscopy-length slot
DEFAULT_DURATION = 30

COLONO_CLASS = frozenset({ProcedureType.COLONO.value, ProcedureType.DOUBLE.value})


def _value(procedure_type):
    return procedure_type.value if isinstance(procedure_type, Enum) else procedure_type


def duration_minutes(procedure_type: str | None) -> int:
    """Fixed slot length in minutes for a procedure type."""
    return PROCEDURE_DURATIONS.get(_value(procedure_type), DEFAULT_DURATION)


def is_colono_class(procedure_type: str | None) -> bool:
    """Colonoscopy and double procedures count against the colono cap."""
    return _value(procedure_type) in COLONO_CLASS
