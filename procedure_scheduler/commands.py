"""Pydantic models validating console command arguments."""

import re

from pydantic import BaseModel, Field, field_validator

from procedure_scheduler.scheduling.time_utils import is_valid_time


def _normalize_time(v):
    """Accept "9:05" as well as "09:05"; reject anything that is not a 24h clock time."""
    if not isinstance(v, str):
        raise ValueError("time must be a string in HH:MM format")
    v = v.strip()
    match = re.match(r"^(\d{1,2}):(\d{2})$", v)
    if match:
        v = f"{int(match.group(1)):02d}:{match.group(2)}"
    if not is_valid_time(v):
        raise ValueError(f"{v} is not a valid time format (HH:MM)")
    return v


class ScheduleAnyRequest(BaseModel):
    """schedule <patient_id> <doctor_id>"""
    patient_id: str = Field(min_length=1)
    doctor_id: str = Field(min_length=1)


class ScheduleSpecificRequest(BaseModel):
    """book <patient_id> <doctor_id> <day_id> <HH:MM>"""
    patient_id: str = Field(min_length=1)
    doctor_id: str = Field(min_length=1)
    day_id: str = Field(min_length=1)
    start_time: str

    @field_validator("start_time", mode="before")
    @classmethod
    def normalize_start_time(cls, v):
        return _normalize_time(v)


class BatchRequest(BaseModel):
    """batch <day_id> <doctor_id>"""
    day_id: str = Field(min_length=1)
    doctor_id: str = Field(min_length=1)


class RescheduleRequest(BaseModel):
    """reschedule <booking_id> <day_id> <HH:MM>"""
    booking_id: str = Field(min_length=1)
    day_id: str = Field(min_length=1)
    start_time: str

    @field_validator("start_time", mode="before")
    @classmethod
    def normalize_start_time(cls, v):
        return _normalize_time(v)


def parse_args(model: type[BaseModel], args: list[str]) -> BaseModel:
    """Map positional command arguments onto a request model's fields, in order."""
    fields = list(model.model_fields)
    if len(args) != len(fields):
        raise ValueError(f"Usage: {model.__doc__}")
    return model(**dict(zip(fields, args)))
