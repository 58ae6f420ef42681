"""Per-location capacity and insurance eligibility rules."""

import math
from dataclasses import dataclass
from enum import Enum

from procedure_scheduler.clinic.database.fields import HCProvider, Location


ALL_PROVIDERS = frozenset(p.value for p in HCProvider)


@dataclass(frozen=True)
class LocationRules:
    min_operations: int = 0
    max_operations: float = math.inf
    max_colono: float = math.inf
    allowed_providers: frozenset[str] = ALL_PROVIDERS


LOCATION_RULES = {
    Location.ASOTA_HOLON.value: LocationRules(
        min_operations=8,
        allowed_providers=frozenset({HCProvider.MACCABI.value}),
    ),
    Location.ASOTA_RAMAT_HAHAYAL.value: LocationRules(
        min_operations=12,
        allowed_providers=frozenset({HCProvider.MACCABI.value, HCProvider.LEUMIT.value}),
    ),
    # Calaniot runs exactly 12 procedures a day, at most 7 of them colono-class
    Location.ASOTA_CALANIOT.value: LocationRules(
        min_operations=12,
        max_operations=12,
        max_colono=7,
        allowed_providers=frozenset({HCProvider.MACCABI.value, HCProvider.LEUMIT.value}),
    ),
    Location.BEST_MEDICAL.value: LocationRules(
        min_operations=0,
        allowed_providers=frozenset({HCProvider.LEUMIT.value}),
    ),
}

# Unknown locations: no minimum, no caps, every provider allowed
DEFAULT_RULES = LocationRules()


def _value(item):
    return item.value if isinstance(item, Enum) else item


def rules_for(location: str) -> LocationRules:
    return LOCATION_RULES.get(_value(location), DEFAULT_RULES)


def is_provider_allowed(location: str, provider: str) -> bool:
    """Whether patients of ``provider`` may be scheduled at ``location``."""
    return _value(provider) in rules_for(location).allowed_providers


def is_calaniot(location: str) -> bool:
    return _value(location) == Location.ASOTA_CALANIOT.value


def should_auto_lock(location: str, total: int, colono_count: int) -> bool:
    """Whether a day has reached the point where no further bookings belong on it.

    Any location locks at its maximum. Calaniot also locks at 12 bookings, or
    once 7 colono-class and 5 other procedures are booked.
    """
    rules = rules_for(location)
    if total >= rules.max_operations:
        return True
    if is_calaniot(location):
        non_colono = total - colono_count
        return total >= 12 or (colono_count >= 7 and non_colono >= 5)
    return False
