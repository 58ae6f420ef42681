"""Running occupancy of an operation day."""

from dataclasses import dataclass, field

from .procedures import is_colono_class
from .slot_finder import Interval, booked_intervals


@dataclass
class DayOccupancy:
    """Booking counts and busy intervals of one day.

    Batch scheduling threads one instance through its loop and calls ``add``
    after each placement so later patients see earlier ones.
    """
    total: int = 0
    colono_count: int = 0
    busy: list[Interval] = field(default_factory=list)

    @classmethod
    def from_bookings(cls, bookings) -> "DayOccupancy":
        return cls(
            total=len(bookings),
            colono_count=sum(1 for b in bookings if is_colono_class(b.procedure_type)),
            busy=booked_intervals(bookings),
        )

    def add(self, procedure_type: str, start: int, end: int) -> None:
        self.total += 1
        if is_colono_class(procedure_type):
            self.colono_count += 1
        self.busy.append((start, end))
        self.busy.sort()
