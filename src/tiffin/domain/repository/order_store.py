"""Abstract data-store port for orders.

The store of record owns orders and their lines.  Buyers only read;
the seller's client is the sole writer of ``status``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from tiffin.domain.exceptions import ValidationError
from tiffin.domain.model.order import Order, OrderChange, OrderLine, OrderStatus
from tiffin.domain.model.value_objects import Money


@dataclass(frozen=True)
class OrderFilter:
    """Selects one party's orders, optionally narrowed to a status."""

    seller_id: str | None = None
    buyer_id: str | None = None
    status: OrderStatus | None = None

    def __post_init__(self) -> None:
        if (self.seller_id is None) == (self.buyer_id is None):
            raise ValidationError("Filter orders by exactly one of seller or buyer")

    def matches(self, buyer_id: str, seller_id: str, status: OrderStatus) -> bool:
        if self.seller_id is not None and seller_id != self.seller_id:
            return False
        if self.buyer_id is not None and buyer_id != self.buyer_id:
            return False
        return self.status is None or status == self.status

    def unfiltered_by_status(self) -> OrderFilter:
        return OrderFilter(seller_id=self.seller_id, buyer_id=self.buyer_id)


class OrderStore(ABC):
    """All calls may raise StoreError; none of them time out."""

    @abstractmethod
    async def insert_order(
        self,
        buyer_id: str,
        seller_id: str,
        total_price: Money,
        instruction: str = "",
    ) -> int:
        """Insert a PENDING order row and return its new id."""

    @abstractmethod
    async def insert_order_lines(self, order_id: int, lines: list[OrderLine]) -> None:
        """Attach the price-snapshot lines to an order.

        Stores with a change feed announce the INSERT only after this call.
        """

    @abstractmethod
    async def update_order_status(
        self,
        order_id: int,
        new_status: OrderStatus,
        expected: OrderStatus | None = None,
    ) -> OrderStatus:
        """Set ``status``; if *expected* is given, only while it still matches.

        Returns the status stored after the call.
        """

    @abstractmethod
    async def get_order(self, order_id: int) -> Order | None:
        """Return one order with its lines, or None if not found."""

    @abstractmethod
    async def list_orders(self, order_filter: OrderFilter) -> list[Order]:
        """Return matching orders with their lines, newest first."""


class Subscription(ABC):
    """A live stream of order changes.

    Iterating raises FeedDisconnectedError when the channel drops and
    stops once ``close()`` has been called.
    """

    def __aiter__(self) -> Subscription:
        return self

    @abstractmethod
    async def __anext__(self) -> OrderChange:
        """Wait for the next change."""

    @abstractmethod
    async def close(self) -> None:
        """Release the channel.  Safe to call more than once."""


class OrderChangeFeed(ABC):

    @abstractmethod
    async def subscribe(self, order_filter: OrderFilter) -> Subscription:
        """Open a channel for changes matching *order_filter*."""
