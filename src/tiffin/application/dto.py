"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass

from tiffin.domain.model.order import Order


@dataclass(frozen=True)
class OrderLineDTO:
    """Output: a single order line as displayed to the user."""

    item_id: str
    display_name: str
    quantity: int
    unit_price: str  # formatted, e.g. "₹100"
    line_total: str


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: int
    buyer_id: str
    seller_id: str
    status: str
    items: list[OrderLineDTO]
    total: str
    created_at: str
    instruction: str = ""

    @staticmethod
    def from_order(order: Order) -> OrderDTO:
        return OrderDTO(
            id=order.id,  # type: ignore[arg-type]
            buyer_id=order.buyer_id,
            seller_id=order.seller_id,
            status=order.status.value,
            items=[
                OrderLineDTO(
                    item_id=line.item_id,
                    display_name=line.display_name,
                    quantity=line.quantity.value,
                    unit_price=str(line.unit_price),
                    line_total=str(line.line_total),
                )
                for line in order.lines
            ],
            total=str(order.total_price),
            created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
            instruction=order.instruction,
        )


@dataclass(frozen=True)
class BillDTO:
    """Output: the checkout bill shown before payment."""

    item_total: str
    delivery_fee: str
    platform_fee: str
    gst: str
    grand_total: str


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a seller action on an order.

    ``applied`` is False when the action was a repeat or not allowed
    from the current status; ``reason`` then says why.
    """

    order_id: int
    status: str
    applied: bool
    reason: str = ""


@dataclass(frozen=True)
class DishListingDTO:
    """Output: a menu entry with its distance gate."""

    id: str
    name: str
    seller_id: str
    seller_name: str
    price: str
    distance: str | None
    out_of_range: bool
