"""Domain service: the checkout bill shown before payment."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from tiffin.domain.model.value_objects import Money

DEFAULT_PLATFORM_FEE = 5
DEFAULT_GST_PERCENT = 5


@dataclass(frozen=True)
class Bill:
    item_total: Money
    delivery_fee: Money
    platform_fee: Money
    gst: Money

    @property
    def grand_total(self) -> Money:
        return self.item_total + self.delivery_fee + self.platform_fee + self.gst


def compute_bill(
    item_total: Money,
    delivery_fee: Money,
    platform_fee: int = DEFAULT_PLATFORM_FEE,
    gst_percent: int = DEFAULT_GST_PERCENT,
) -> Bill:
    """Platform fee applies only to a non-empty basket; GST is on items only."""
    gst = Decimal(item_total.amount * gst_percent) / 100
    return Bill(
        item_total=item_total,
        delivery_fee=delivery_fee,
        platform_fee=Money(platform_fee if item_total.amount > 0 else 0),
        gst=Money(int(gst.quantize(Decimal("1"), rounding=ROUND_HALF_UP))),
    )
