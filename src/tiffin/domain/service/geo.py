"""Domain service: distance and delivery pricing.

Pure functions, no I/O.  Location is frequently unknown (permission
denied, chef never set a kitchen address), so a missing point yields a
distance of zero rather than an error.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from tiffin.domain.exceptions import ValidationError
from tiffin.domain.model.value_objects import GeoPoint, Money

EARTH_RADIUS_KM = 6371.0

DEFAULT_RATE_PER_KM = 10
DEFAULT_MIN_FEE = 20
DEFAULT_FALLBACK_FEE = 40
DEFAULT_RANGE_KM = 5.0


def haversine_distance_km(a: GeoPoint | None, b: GeoPoint | None) -> float:
    """Great-circle distance between two points in kilometres."""
    if a is None or b is None:
        return 0.0

    lat1, lat2 = math.radians(a.latitude), math.radians(b.latitude)
    d_lat = lat2 - lat1
    d_lon = math.radians(b.longitude - a.longitude)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def is_out_of_range(distance_km: float, threshold_km: float = DEFAULT_RANGE_KM) -> bool:
    """Purchase gate for the menu: True when the kitchen is too far away."""
    return distance_km > threshold_km


def delivery_fee(
    distance_km: float,
    rate_per_km: int = DEFAULT_RATE_PER_KM,
    min_fee: int = DEFAULT_MIN_FEE,
) -> Money:
    """``max(min_fee, round(distance_km * rate_per_km))`` in whole units."""
    if distance_km < 0:
        raise ValidationError(f"Distance cannot be negative, got {distance_km}")
    raw = Decimal(str(distance_km)) * rate_per_km
    fee = int(raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return Money(max(min_fee, fee))


def format_distance(distance_km: float) -> str:
    return f"{distance_km:.1f} km"


@dataclass(frozen=True)
class FeeSchedule:
    """Delivery pricing policy, loaded from configuration."""

    rate_per_km: int = DEFAULT_RATE_PER_KM
    min_fee: int = DEFAULT_MIN_FEE
    fallback_fee: int = DEFAULT_FALLBACK_FEE
    range_km: float = DEFAULT_RANGE_KM

    def fee_between(self, buyer: GeoPoint | None, kitchen: GeoPoint | None) -> Money:
        """Fee for a delivery; the flat fallback when either end is unknown."""
        if buyer is None or kitchen is None:
            return Money(self.fallback_fee)
        distance = haversine_distance_km(buyer, kitchen)
        return delivery_fee(distance, self.rate_per_km, self.min_fee)

    def is_out_of_range(self, distance_km: float) -> bool:
        return is_out_of_range(distance_km, self.range_km)
