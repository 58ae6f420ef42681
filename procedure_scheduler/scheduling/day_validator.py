"""Checks an operation day's bookings against its location rules."""

from procedure_scheduler.clinic.database import BookingRepository, OperationDayRepository

from .location_rules import is_calaniot, rules_for
from .occupancy import DayOccupancy
from .results import DayValidation


def check_day(location: str, occupancy: DayOccupancy) -> DayValidation:
    """Validate counts for a location. Pure; does not touch lock state."""
    rules = rules_for(location)
    counts = {"total": occupancy.total, "colono_count": occupancy.colono_count}

    if occupancy.total < rules.min_operations:
        return DayValidation(
            is_valid=False,
            reason="insufficient",
            message=(
                f"Minimum {rules.min_operations} operations required for this location "
                f"(current: {occupancy.total})"
            ),
            **counts,
        )

    if occupancy.total > rules.max_operations:
        return DayValidation(
            is_valid=False,
            reason="exceeded",
            message=(
                f"Maximum {rules.max_operations:g} operations allowed for this location "
                f"(current: {occupancy.total})"
            ),
            **counts,
        )

    if is_calaniot(location) and occupancy.colono_count > rules.max_colono:
        return DayValidation(
            is_valid=False,
            reason="colono_exceeded",
            message=(
                f"Maximum {rules.max_colono:g} colonoscopies allowed for Calaniot Ashdod "
                f"(current: {occupancy.colono_count})"
            ),
            **counts,
        )

    return DayValidation(is_valid=True, message="Operation day is valid", **counts)


def validate_day(day_id: str, conn=None) -> DayValidation:
    """Load a day and its bookings and validate them."""
    day = OperationDayRepository(conn).get_by_id(day_id)
    if not day:
        return DayValidation(
            is_valid=False, reason="not_found", message=f"Operation day {day_id} not found"
        )
    bookings = BookingRepository(conn).find_for_day(day_id)
    return check_day(day.location, DayOccupancy.from_bookings(bookings))
