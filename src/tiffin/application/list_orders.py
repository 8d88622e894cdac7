"""Application service: List Orders use case (query)."""

from __future__ import annotations

from tiffin.application.dto import OrderDTO
from tiffin.domain.exceptions import EntityNotFoundError
from tiffin.domain.repository.order_store import OrderFilter, OrderStore


class ListOrdersHandler:

    def __init__(self, order_store: OrderStore) -> None:
        self._order_store = order_store

    async def handle(self, order_filter: OrderFilter) -> list[OrderDTO]:
        orders = await self._order_store.list_orders(order_filter)
        return [OrderDTO.from_order(order) for order in orders]


class ShowOrderHandler:

    def __init__(self, order_store: OrderStore) -> None:
        self._order_store = order_store

    async def handle(self, order_id: int) -> OrderDTO:
        order = await self._order_store.get_order(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return OrderDTO.from_order(order)
