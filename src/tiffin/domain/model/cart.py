"""Cart aggregate — the buyer's in-progress, single-seller basket.

The cart is transient: it is never persisted, only snapshotted into an
order at submission time.  A cart holds dishes from exactly one seller;
adding a dish from another seller is a decision the buyer must make
explicitly, never a silent merge.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import structlog

from tiffin.domain.exceptions import SellerConflictError, ValidationError
from tiffin.domain.model.dish import Dish
from tiffin.domain.model.value_objects import Money, Quantity

logger = structlog.get_logger(__name__)


@dataclass
class CartLine:
    item_id: str
    seller_id: str
    unit_price: Money
    quantity: Quantity
    display_name: str

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value

    @staticmethod
    def for_dish(dish: Dish) -> CartLine:
        return CartLine(
            item_id=dish.id,
            seller_id=dish.seller_id,
            unit_price=dish.price,
            quantity=Quantity(1),
            display_name=dish.name,
        )


@dataclass(frozen=True)
class SellerConflict:
    """A pending seller-switch decision."""

    current_seller_id: str
    requested_seller_id: str
    item: Dish


# Returns True to discard the cart and start over with the new seller.
ConflictResolver = Callable[[SellerConflict], bool]


class Cart:
    """Aggregate root for the buyer's basket.

    Invariant: every line shares one ``seller_id``.  An empty cart has
    no seller constraint.
    """

    def __init__(self) -> None:
        self._lines: list[CartLine] = []

    # --- Queries --------------------------------------------------------------

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines)

    @property
    def seller_id(self) -> str | None:
        return self._lines[0].seller_id if self._lines else None

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def item_count(self) -> int:
        return sum(line.quantity.value for line in self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def quantity_of(self, item_id: str) -> int:
        line = self._find_line(item_id)
        return line.quantity.value if line else 0

    def total(self) -> Money:
        result = Money.zero()
        for line in self._lines:
            result = result + line.line_total
        return result

    # --- Mutations ------------------------------------------------------------

    def add_item(self, dish: Dish, on_conflict: ConflictResolver | None = None) -> Cart:
        """Add one unit of *dish*.

        If the cart belongs to another seller, the buyer has to decide:
        with no ``on_conflict`` the conflict is raised as
        ``SellerConflictError``; otherwise the resolver's answer either
        replaces the cart (True) or leaves it untouched (False).
        """
        if self.seller_id is not None and dish.seller_id != self.seller_id:
            conflict = SellerConflict(
                current_seller_id=self.seller_id,
                requested_seller_id=dish.seller_id,
                item=dish,
            )
            if on_conflict is None:
                raise SellerConflictError(conflict)
            if not on_conflict(conflict):
                logger.info(
                    "cart.seller_switch_declined",
                    current_seller_id=conflict.current_seller_id,
                    requested_seller_id=conflict.requested_seller_id,
                )
                return self
            return self.switch_seller(dish)

        line = self._find_line(dish.id)
        if line is not None:
            # No upper bound on quantity.
            line.quantity = line.quantity.increment()
        else:
            self._lines.append(CartLine.for_dish(dish))

        self._check_invariants()
        return self

    def switch_seller(self, dish: Dish) -> Cart:
        """Discard the current basket and start a new one with *dish*."""
        logger.info(
            "cart.seller_switched",
            previous_seller_id=self.seller_id,
            seller_id=dish.seller_id,
            discarded_lines=len(self._lines),
        )
        self._lines = [CartLine.for_dish(dish)]
        self._check_invariants()
        return self

    def remove_item(self, item_id: str) -> Cart:
        """Take one unit of *item_id* out; drop the line at quantity one.

        Removing an item that is not in the cart is a no-op.
        """
        line = self._find_line(item_id)
        if line is None:
            return self

        if line.quantity.value > 1:
            line.quantity = line.quantity.decrement()
        else:
            self._lines.remove(line)

        self._check_invariants()
        return self

    def clear(self) -> None:
        self._lines.clear()

    def snapshot(self) -> list[CartLine]:
        """Detached copies of the lines, safe to hand to order submission."""
        return [
            CartLine(
                item_id=line.item_id,
                seller_id=line.seller_id,
                unit_price=line.unit_price,
                quantity=line.quantity,
                display_name=line.display_name,
            )
            for line in self._lines
        ]

    # --- Internal helpers -----------------------------------------------------

    def _find_line(self, item_id: str) -> CartLine | None:
        for line in self._lines:
            if line.item_id == item_id:
                return line
        return None

    def _check_invariants(self) -> None:
        sellers = {line.seller_id for line in self._lines}
        if len(sellers) > 1:
            raise ValidationError(
                f"Cart must hold items from a single seller, found {sorted(sellers)}"
            )
