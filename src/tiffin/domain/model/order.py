"""Order aggregate — the core of the lifecycle.

An order is created once from a non-empty single-seller cart, always in
PENDING, and then only moved forward by the seller:

    PENDING --accept--> COOKING --mark_ready--> READY
       |
       +----reject----> REJECTED

READY and REJECTED are terminal.  The buyer never writes to an order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from tiffin.domain.exceptions import IllegalTransitionError, ValidationError
from tiffin.domain.model.cart import CartLine
from tiffin.domain.model.value_objects import Money, Quantity


class OrderStatus(Enum):
    PENDING = "pending"
    COOKING = "cooking"
    READY = "ready"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.READY, OrderStatus.REJECTED)

    @property
    def is_active(self) -> bool:
        return self in (OrderStatus.PENDING, OrderStatus.COOKING)


class OrderAction(Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    MARK_READY = "mark_ready"


# (current status, action) -> next status.  Anything absent is illegal.
TRANSITIONS: dict[tuple[OrderStatus, OrderAction], OrderStatus] = {
    (OrderStatus.PENDING, OrderAction.ACCEPT): OrderStatus.COOKING,
    (OrderStatus.PENDING, OrderAction.REJECT): OrderStatus.REJECTED,
    (OrderStatus.COOKING, OrderAction.MARK_READY): OrderStatus.READY,
}

TARGETS: dict[OrderAction, OrderStatus] = {
    action: target for (_, action), target in TRANSITIONS.items()
}

# Forward-only ordering, used to discard stale change-feed events.
_RANK = {
    OrderStatus.PENDING: 0,
    OrderStatus.COOKING: 1,
    OrderStatus.READY: 2,
    OrderStatus.REJECTED: 2,
}


def is_forward(current: OrderStatus, new: OrderStatus) -> bool:
    """True if moving from *current* to *new* never goes backward."""
    if current == new:
        return True
    if current.is_terminal:
        return False
    return _RANK[new] > _RANK[current]


@dataclass(frozen=True)
class OrderLine:
    """Price snapshot of a dish at submission time.  Immutable."""

    item_id: str
    display_name: str
    quantity: Quantity
    unit_price: Money  # copied at submission, never re-read from the menu

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value

    @staticmethod
    def from_cart_line(line: CartLine) -> OrderLine:
        return OrderLine(
            item_id=line.item_id,
            display_name=line.display_name,
            quantity=line.quantity,
            unit_price=line.unit_price,
        )


@dataclass
class Order:
    """Aggregate root for a submitted order.

    Use ``Order.create()`` for new orders; ``__init__`` stays simple so
    stores can reconstitute persisted rows without re-validating.
    """

    id: int | None
    buyer_id: str
    seller_id: str
    lines: list[OrderLine]
    total_price: Money
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    instruction: str = ""

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        buyer_id: str,
        cart_lines: list[CartLine],
        instruction: str = "",
    ) -> Order:
        """Build a new PENDING order from a cart snapshot."""
        if not buyer_id or not buyer_id.strip():
            raise ValidationError("Please log in to place an order")
        if not cart_lines:
            raise ValidationError("Cart is empty")

        sellers = {line.seller_id for line in cart_lines}
        if len(sellers) != 1:
            raise ValidationError("An order can only contain dishes from one seller")

        lines = [OrderLine.from_cart_line(line) for line in cart_lines]
        total = Money.zero()
        for line in lines:
            total = total + line.line_total

        return Order(
            id=None,
            buyer_id=buyer_id.strip(),
            seller_id=sellers.pop(),
            lines=lines,
            total_price=total,
            instruction=instruction.strip(),
        )

    # --- State transitions ----------------------------------------------------

    def next_status(self, action: OrderAction) -> OrderStatus | None:
        """Status *action* would move this order to.

        Returns None when the order already sits in the action's target
        (a repeated tap).  Raises IllegalTransitionError otherwise.
        """
        if self.status == TARGETS[action]:
            return None
        target = TRANSITIONS.get((self.status, action))
        if target is None:
            raise IllegalTransitionError(
                f"Cannot {action.value} order #{self.id} — "
                f"current status is {self.status.value}"
            )
        return target

    def apply(self, action: OrderAction) -> bool:
        """Apply *action*; returns False if it had already been applied."""
        target = self.next_status(action)
        if target is None:
            return False
        self.status = target
        return True

    def accept(self) -> bool:
        return self.apply(OrderAction.ACCEPT)

    def reject(self) -> bool:
        return self.apply(OrderAction.REJECT)

    def mark_ready(self) -> bool:
        return self.apply(OrderAction.MARK_READY)

    # --- Computed properties --------------------------------------------------

    @property
    def items_total(self) -> Money:
        result = Money.zero()
        for line in self.lines:
            result = result + line.line_total
        return result


class ChangeKind(Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"


@dataclass(frozen=True)
class OrderChange:
    """One row-level change pushed by the change feed."""

    kind: ChangeKind
    order_id: int
    buyer_id: str
    seller_id: str
    status: OrderStatus
