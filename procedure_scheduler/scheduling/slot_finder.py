"""Earliest free start time within a day's operating hours."""

from typing import Iterable

from .time_utils import minutes_to_time, time_to_minutes

Interval = tuple[int, int]


def overlaps(start: int, end: int, busy: Iterable[Interval]) -> bool:
    """True if ``[start, end)`` intersects any busy ``[busy_start, busy_end)``."""
    return any(start < busy_end and end > busy_start for busy_start, busy_end in busy)


def find_earliest_slot(
    day_start: int,
    day_end: int,
    duration: int,
    busy: Iterable[Interval],
) -> int | None:
    """Smallest start in ``[day_start, day_end - duration]`` that fits, else None.

    Candidates are tried minute by minute, so the result depends only on the
    inputs and not on the order of ``busy``.
    """
    busy_sorted = sorted(busy)
    candidate = day_start
    while candidate + duration <= day_end:
        if not overlaps(candidate, candidate + duration, busy_sorted):
            return candidate
        candidate += 1
    return None


def booked_intervals(bookings) -> list[Interval]:
    """Busy intervals (in minutes) of a list of bookings."""
    return [
        (time_to_minutes(b.start_time), time_to_minutes(b.end_time))
        for b in bookings
    ]


def next_available_time(
    start_hour: str,
    end_hour: str,
    duration: int,
    bookings,
) -> str | None:
    """Clock-string wrapper around ``find_earliest_slot`` for a day's bookings."""
    slot = find_earliest_slot(
        time_to_minutes(start_hour),
        time_to_minutes(end_hour),
        duration,
        booked_intervals(bookings),
    )
    return minutes_to_time(slot) if slot is not None else None
