"""Seller's kitchen board — a cached projection of the chef's orders.

The board is what the chef's screen renders.  Actions go through the
transition handlers, which touch the cached order only after the store
acknowledged the write.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone

from tiffin.application.accept_order import AcceptOrderHandler
from tiffin.application.dto import OrderDTO, TransitionResult
from tiffin.application.mark_order_ready import MarkOrderReadyHandler
from tiffin.application.order_transition import OrderTransitionHandler
from tiffin.application.reject_order import RejectOrderHandler
from tiffin.domain.exceptions import EntityNotFoundError
from tiffin.domain.model.order import Order, OrderStatus
from tiffin.domain.model.value_objects import Money
from tiffin.domain.repository.order_store import OrderFilter, OrderStore


@dataclass(frozen=True)
class KitchenStats:
    earnings_today: Money
    active: int


class SellerOrderBoard:

    def __init__(self, seller_id: str, order_store: OrderStore) -> None:
        self.seller_id = seller_id
        self._order_store = order_store
        self._orders: dict[int, Order] = {}

    async def refresh(self) -> list[OrderDTO]:
        orders = await self._order_store.list_orders(OrderFilter(seller_id=self.seller_id))
        self._orders = {order.id: order for order in orders}  # type: ignore[misc]
        return self.orders()

    def orders(self, status: OrderStatus | None = None) -> list[OrderDTO]:
        """Cached orders, newest first, optionally in one status."""
        selected = [
            order
            for order in self._orders.values()
            if status is None or order.status == status
        ]
        selected.sort(key=lambda o: o.created_at, reverse=True)
        return [OrderDTO.from_order(order) for order in selected]

    def status_of(self, order_id: int) -> OrderStatus:
        return self._get(order_id).status

    # --- Actions --------------------------------------------------------------

    async def accept(self, order_id: int) -> TransitionResult:
        return await self._run(AcceptOrderHandler(self._order_store), order_id)

    async def reject(self, order_id: int) -> TransitionResult:
        return await self._run(RejectOrderHandler(self._order_store), order_id)

    async def mark_ready(self, order_id: int) -> TransitionResult:
        return await self._run(MarkOrderReadyHandler(self._order_store), order_id)

    # --- Dashboard ------------------------------------------------------------

    def stats(self, today: date | None = None) -> KitchenStats:
        """Today's takings from READY orders and the open order count."""
        today = today or datetime.now(timezone.utc).date()
        earnings = Money.zero()
        active = 0
        for order in self._orders.values():
            if order.status == OrderStatus.READY and order.created_at.date() == today:
                earnings = earnings + order.total_price
            if order.status.is_active:
                active += 1
        return KitchenStats(earnings_today=earnings, active=active)

    # --- Internal helpers -----------------------------------------------------

    async def _run(self, handler: OrderTransitionHandler, order_id: int) -> TransitionResult:
        return await handler.apply(self._get(order_id))

    def _get(self, order_id: int) -> Order:
        order = self._orders.get(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} is not on this board")
        return order
