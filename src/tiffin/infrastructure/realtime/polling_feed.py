"""Change feed synthesised by polling the order store.

Used where the store cannot push (the JSON files shared between CLI
processes).  Each subscription remembers the last status it saw per
order and turns differences into INSERT/UPDATE changes.  A failed poll
surfaces as a dropped channel so the tracker's reconnect logic applies.
"""

from __future__ import annotations

import asyncio
from collections import deque

import structlog

from tiffin.domain.exceptions import FeedDisconnectedError, StoreError
from tiffin.domain.model.order import ChangeKind, OrderChange, OrderStatus
from tiffin.domain.repository.order_store import (
    OrderChangeFeed,
    OrderFilter,
    OrderStore,
    Subscription,
)

logger = structlog.get_logger(__name__)


class PollingSubscription(Subscription):

    def __init__(
        self,
        order_store: OrderStore,
        order_filter: OrderFilter,
        interval: float,
        seen: dict[int, OrderStatus],
    ) -> None:
        self._order_store = order_store
        self._filter = order_filter
        self._interval = interval
        self._seen = seen
        self._pending: deque[OrderChange] = deque()
        self._closed = False

    async def __anext__(self) -> OrderChange:
        while not self._pending:
            if self._closed:
                raise StopAsyncIteration
            await asyncio.sleep(self._interval)
            if self._closed:
                raise StopAsyncIteration
            await self._poll()
        return self._pending.popleft()

    async def close(self) -> None:
        self._closed = True

    async def _poll(self) -> None:
        try:
            orders = await self._order_store.list_orders(self._filter)
        except StoreError as exc:
            self._closed = True
            raise FeedDisconnectedError(f"Polling failed: {exc}") from exc

        for order in reversed(orders):
            if not order.lines:
                continue  # lines not written yet; pick it up on a later poll
            previous = self._seen.get(order.id)  # type: ignore[arg-type]
            if previous == order.status:
                continue
            self._seen[order.id] = order.status  # type: ignore[index]
            self._pending.append(
                OrderChange(
                    kind=ChangeKind.INSERT if previous is None else ChangeKind.UPDATE,
                    order_id=order.id,  # type: ignore[arg-type]
                    buyer_id=order.buyer_id,
                    seller_id=order.seller_id,
                    status=order.status,
                )
            )


class PollingOrderChangeFeed(OrderChangeFeed):

    def __init__(self, order_store: OrderStore, interval: float = 2.0) -> None:
        self._order_store = order_store
        self._interval = interval

    async def subscribe(self, order_filter: OrderFilter) -> Subscription:
        try:
            baseline = await self._order_store.list_orders(order_filter)
        except StoreError as exc:
            raise FeedDisconnectedError(f"Could not open feed: {exc}") from exc
        seen = {order.id: order.status for order in baseline if order.lines}
        logger.debug("feed.polling_subscribed", known=len(seen), interval=self._interval)
        return PollingSubscription(
            self._order_store,
            order_filter,
            self._interval,
            seen,  # type: ignore[arg-type]
        )
