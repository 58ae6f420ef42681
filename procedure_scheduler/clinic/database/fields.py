"""Enumerated values and format checks for stored fields."""

import re
from enum import Enum

from .errors import InvalidValueError


# 24h clock time, "HH:MM"
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class ProcedureType(str, Enum):
    COLONO = "colono"
    SIGMO = "sigmo"
    GASTRO = "gastro"
    DOUBLE = "double"


class PrepType(str, Enum):
    PIKO = "piko"
    MEROKEN = "meroken"
    NO_PREP = "noPrep"


class HCProvider(str, Enum):
    """Israeli health maintenance organizations (kupot holim)."""
    MACCABI = "maccabi"
    CLALIT = "clalit"
    MEUHEDET = "meuhedet"
    LEUMIT = "leumit"


class Location(str, Enum):
    ASOTA_CALANIOT = "asotaCalaniotAshdod"
    ASOTA_HOLON = "asotaHolon"
    ASOTA_RAMAT_HAHAYAL = "asotaRamatHahayal"
    BEST_MEDICAL = "bestMedicalBatYam"


def choice_value(field: str, value, choices: type[Enum], required: bool = True) -> str | None:
    """Return the stored string for ``value``, or raise InvalidValueError.

    Blank optional values are stored as NULL.
    """
    if isinstance(value, Enum):
        value = value.value
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise InvalidValueError(f"{field} is required")
        return None
    allowed = [c.value for c in choices]
    if value not in allowed:
        raise InvalidValueError(f"{field} must be one of {', '.join(allowed)} (got {value!r})")
    return value


def time_value(field: str, value) -> str:
    """Return ``value`` if it is an "HH:MM" time, else raise InvalidValueError."""
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        raise InvalidValueError(f"{field}: {value!r} is not a valid time format (HH:MM)")
    return value
