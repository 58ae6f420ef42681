"""Conversions between "HH:MM" clock strings and minutes since midnight."""

from procedure_scheduler.clinic.database.fields import TIME_PATTERN


def is_valid_time(value: str) -> bool:
    """True for a 24h "HH:MM" string."""
    return bool(value) and bool(TIME_PATTERN.match(value))


def time_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight. Input is assumed valid."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight back to zero-padded "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
