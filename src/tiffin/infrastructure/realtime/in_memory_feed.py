"""In-process change feed.

Each subscription owns an ``asyncio.Queue``; ``publish`` fans a change
out to every subscription whose filter matches.  Delivery is eventual:
subscribers see a change on their next turn of the event loop.
"""

from __future__ import annotations

import asyncio

import structlog

from tiffin.domain.exceptions import FeedDisconnectedError
from tiffin.domain.model.order import OrderChange
from tiffin.domain.repository.order_store import (
    OrderChangeFeed,
    OrderFilter,
    Subscription,
)

logger = structlog.get_logger(__name__)

_CLOSED = object()


class InMemorySubscription(Subscription):

    def __init__(self, feed: InMemoryOrderChangeFeed, order_filter: OrderFilter) -> None:
        self.order_filter = order_filter
        self._feed = feed
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False

    def deliver(self, item: object) -> None:
        if not self._closed:
            self._queue.put_nowait(item)

    async def __anext__(self) -> OrderChange:
        if self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, FeedDisconnectedError):
            self._closed = True
            self._feed.detach(self)
            raise item
        return item  # type: ignore[return-value]

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._feed.detach(self)
        self._queue.put_nowait(_CLOSED)

    @property
    def closed(self) -> bool:
        return self._closed


class InMemoryOrderChangeFeed(OrderChangeFeed):

    def __init__(self) -> None:
        self._subscriptions: list[InMemorySubscription] = []

    async def subscribe(self, order_filter: OrderFilter) -> Subscription:
        subscription = InMemorySubscription(self, order_filter)
        self._subscriptions.append(subscription)
        logger.debug("feed.subscribed", subscribers=len(self._subscriptions))
        return subscription

    def publish(self, change: OrderChange) -> None:
        delivered = 0
        for subscription in list(self._subscriptions):
            if subscription.order_filter.matches(
                change.buyer_id, change.seller_id, change.status
            ):
                subscription.deliver(change)
                delivered += 1
        logger.debug(
            "feed.published",
            kind=change.kind.value,
            order_id=change.order_id,
            status=change.status.value,
            delivered=delivered,
        )

    def drop_all(self, reason: str = "channel closed") -> None:
        """Disconnect every subscriber, as a lost socket would."""
        for subscription in list(self._subscriptions):
            subscription.deliver(FeedDisconnectedError(reason))

    def detach(self, subscription: InMemorySubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)
