"""Live order tracking over the store's change feed.

The buyer's orders screen (and the chef's new-order alert) keeps an
``OrderTracker`` open for as long as it is shown.  The tracker loads a
snapshot, then applies pushed changes.  Change feeds drop silently, so a
disconnect triggers a resubscribe with exponential backoff followed by a
fresh snapshot to pick up whatever was missed.

    async with OrderTracker(store, feed, OrderFilter(buyer_id="b1")) as tracker:
        await tracker.wait_for_status(order_id, OrderStatus.COOKING)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    stop_never,
    wait_exponential,
)

from tiffin.application.dto import OrderDTO
from tiffin.domain.exceptions import FeedDisconnectedError, StoreError
from tiffin.domain.model.order import Order, OrderChange, OrderStatus, is_forward
from tiffin.domain.repository.order_store import (
    OrderChangeFeed,
    OrderFilter,
    OrderStore,
    Subscription,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    initial_delay: float = 0.5
    max_delay: float = 10.0
    max_attempts: int | None = 5  # consecutive failures; None retries forever

    def retrying(self) -> AsyncRetrying:
        """Reconnect schedule: first retry at once, then exponential waits."""
        return AsyncRetrying(
            wait=wait_exponential(multiplier=self.initial_delay, max=self.max_delay),
            stop=stop_never if self.max_attempts is None else stop_after_attempt(self.max_attempts),
            retry=retry_if_exception_type(StoreError),
            before_sleep=_log_failed_reconnect,
            reraise=True,
        )


def _log_failed_reconnect(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    logger.warning(
        "tracker.reconnect_failed",
        attempt=state.attempt_number,
        next_delay=state.next_action.sleep if state.next_action else None,
        error=str(exc),
    )


class OrderTracker:

    def __init__(
        self,
        order_store: OrderStore,
        feed: OrderChangeFeed,
        order_filter: OrderFilter,
        on_change: Callable[[OrderChange], None] | None = None,
        retry: RetryPolicy | None = None,
    ) -> None:
        # Status narrowing would hide the very transitions we track.
        self._filter = order_filter.unfiltered_by_status()
        self._order_store = order_store
        self._feed = feed
        self._on_change = on_change
        self._retry = retry or RetryPolicy()
        self._orders: dict[int, Order] = {}
        self._subscription: Subscription | None = None
        self._task: asyncio.Task[None] | None = None
        self._changed = asyncio.Condition()
        self.reconnects = 0
        self.error: StoreError | None = None

    # --- Lifecycle ------------------------------------------------------------

    async def start(self) -> None:
        if self._task is not None:
            return
        await self._connect()
        self._task = asyncio.create_task(self._run())
        logger.info("tracker.started", filter=self._describe())

    async def close(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._release()
        logger.info("tracker.closed", filter=self._describe())

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def __aenter__(self) -> OrderTracker:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # --- Projection -----------------------------------------------------------

    def orders(self) -> list[OrderDTO]:
        ordered = sorted(self._orders.values(), key=lambda o: o.created_at, reverse=True)
        return [OrderDTO.from_order(order) for order in ordered]

    def status_of(self, order_id: int) -> OrderStatus | None:
        order = self._orders.get(order_id)
        return order.status if order else None

    async def wait_for_status(
        self, order_id: int, status: OrderStatus, timeout: float = 5.0
    ) -> None:
        """Block until *order_id* is observed in *status*.

        Raises asyncio.TimeoutError if it does not arrive in time.
        """
        async with self._changed:
            await asyncio.wait_for(
                self._changed.wait_for(lambda: self.status_of(order_id) == status),
                timeout,
            )

    # --- Internal helpers -----------------------------------------------------

    async def _run(self) -> None:
        while True:
            try:
                async for change in self._subscription:  # type: ignore[union-attr]
                    await self._apply(change)
                return
            except FeedDisconnectedError as exc:
                logger.warning("tracker.disconnected", filter=self._describe(), error=str(exc))
                await self._release()
                try:
                    await self._reconnect()
                except StoreError as final:
                    self.error = final
                    logger.error(
                        "tracker.gave_up",
                        filter=self._describe(),
                        attempts=self._retry.max_attempts,
                        error=str(final),
                    )
                    return

    async def _reconnect(self) -> None:
        async for attempt in self._retry.retrying():
            with attempt:
                await self._connect()
        self.reconnects += 1
        logger.info(
            "tracker.reconnected",
            filter=self._describe(),
            attempt=attempt.retry_state.attempt_number,
        )

    async def _connect(self) -> None:
        # Subscribe before loading so nothing falls between the two.
        self._subscription = await self._feed.subscribe(self._filter)
        try:
            snapshot = await self._order_store.list_orders(self._filter)
        except StoreError:
            await self._release()
            raise
        await self._resync(snapshot)

    async def _release(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            await subscription.close()

    async def _resync(self, snapshot: list[Order]) -> None:
        async with self._changed:
            for order in snapshot:
                known = self._orders.get(order.id)  # type: ignore[arg-type]
                if known is None or is_forward(known.status, order.status):
                    self._orders[order.id] = order  # type: ignore[index]
            self._changed.notify_all()

    async def _apply(self, change: OrderChange) -> None:
        known = self._orders.get(change.order_id)
        if known is not None and not is_forward(known.status, change.status):
            logger.debug(
                "tracker.stale_change",
                order_id=change.order_id,
                known=known.status.value,
                received=change.status.value,
            )
            return

        if known is None or not known.lines:
            # A copy without lines was read before they were saved; reload it.
            order = await self._order_store.get_order(change.order_id)
            if order is None:
                return
            # The row may already be ahead of the event that announced it.
            if not is_forward(change.status, order.status):
                order.status = change.status
            self._orders[change.order_id] = order
        else:
            known.status = change.status

        if self._on_change is not None:
            try:
                self._on_change(change)
            except Exception:
                logger.exception("tracker.on_change_failed", order_id=change.order_id)
        async with self._changed:
            self._changed.notify_all()

    def _describe(self) -> str:
        if self._filter.buyer_id is not None:
            return f"buyer:{self._filter.buyer_id}"
        return f"seller:{self._filter.seller_id}"
