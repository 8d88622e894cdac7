"""Small immutable types used by the cart, orders and the geo engine.

Each one checks its own fields on construction, so a rupee amount,
a line quantity or a coordinate that made it into the model is valid.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from tiffin.domain.exceptions import ValidationError


@dataclass(frozen=True)
class Money:
    """Monetary amount in whole currency units.

    Menu prices and fees are quoted in whole rupees, so amounts are
    plain integers and totals never accumulate fractional paise.
    """

    amount: int
    currency: str = "INR"

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise ValidationError(
                f"Money amount must be an int, got {type(self.amount).__name__}"
            )
        if self.amount < 0:
            raise ValidationError(
                f"Money amount cannot be negative, got {self.amount}"
            )

    # --- Arithmetic helpers ---------------------------------------------------

    def __add__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, factor: int) -> Money:
        if not isinstance(factor, int):
            raise TypeError(f"Can only multiply Money by int, got {type(factor).__name__}")
        return Money(self.amount * factor, self.currency)

    # --- Display --------------------------------------------------------------

    def __str__(self) -> str:
        return f"₹{self.amount}"

    # --- Internal helpers -----------------------------------------------------

    def _assert_same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise ValidationError(
                f"Cannot combine {self.currency} with {other.currency}"
            )

    # --- Factories ------------------------------------------------------------

    @staticmethod
    def zero() -> Money:
        return Money(0)

    @staticmethod
    def of(amount: str | float | int | Decimal) -> Money:
        """Coerce to whole currency units, rounding half-up."""
        try:
            value = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc
        return Money(int(value))


@dataclass(frozen=True)
class Quantity:
    """How many of one dish sit on a cart or order line; always >= 1."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def increment(self) -> Quantity:
        return Quantity(self.value + 1)

    def decrement(self) -> Quantity:
        """Raises ValidationError when called on a quantity of one."""
        return Quantity(self.value - 1)

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class GeoPoint:
    """A WGS84 coordinate in decimal degrees."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValidationError(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValidationError(f"Longitude out of range: {self.longitude}")

    @staticmethod
    def maybe(latitude: float | None, longitude: float | None) -> GeoPoint | None:
        """Build a point from optional parts; None if either part is missing."""
        if latitude is None or longitude is None:
            return None
        return GeoPoint(float(latitude), float(longitude))

    def __str__(self) -> str:
        return f"({self.latitude:.4f}, {self.longitude:.4f})"
