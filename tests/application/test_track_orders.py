"""Tests for live order tracking over the change feed.

Feed delivery is eventual, so every assertion on observed state goes
through ``wait_for_status`` (or a short poll) rather than checking
immediately after a write.
"""

import asyncio

import pytest
from tenacity import stop_never

from tiffin.application.accept_order import AcceptOrderHandler
from tiffin.application.mark_order_ready import MarkOrderReadyHandler
from tiffin.application.place_order import PlaceOrderHandler
from tiffin.application.session import BuyerSession
from tiffin.application.track_orders import OrderTracker, RetryPolicy
from tiffin.domain.model.order import ChangeKind, OrderChange, OrderStatus
from tiffin.domain.model.value_objects import Money
from tiffin.domain.repository.order_store import OrderFilter
from tiffin.infrastructure.realtime.in_memory_feed import InMemoryOrderChangeFeed
from tests.fakes import (
    SELLER_A,
    FakeOrderStore,
    FakeSellerRepository,
    FlakyFeed,
    make_dish,
    make_line,
)

FAST_RETRY = RetryPolicy(initial_delay=0.01, max_delay=0.05, max_attempts=3)


def _wiring():
    feed = InMemoryOrderChangeFeed()
    store = FakeOrderStore(feed)
    return feed, store


async def _until(predicate, timeout: float = 1.0) -> None:
    async def poll():
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout)


class TestBuyerObservesSeller:

    @pytest.mark.asyncio
    async def test_snapshot_on_start(self):
        feed, store = _wiring()
        order_id = await store.insert_order("buyer-1", "chef-a", Money(250))

        async with OrderTracker(store, feed, OrderFilter(buyer_id="buyer-1")) as tracker:
            assert tracker.status_of(order_id) == OrderStatus.PENDING
            assert [dto.id for dto in tracker.orders()] == [order_id]

    @pytest.mark.asyncio
    async def test_seller_transitions_reach_the_buyer(self):
        feed, store = _wiring()
        order_id = await store.insert_order("buyer-1", "chef-a", Money(250))
        seen: list[OrderChange] = []

        async with OrderTracker(
            store, feed, OrderFilter(buyer_id="buyer-1"), on_change=seen.append
        ) as tracker:
            await AcceptOrderHandler(store).handle(order_id)
            await tracker.wait_for_status(order_id, OrderStatus.COOKING, timeout=1.0)

            await MarkOrderReadyHandler(store).handle(order_id)
            await tracker.wait_for_status(order_id, OrderStatus.READY, timeout=1.0)

        assert [c.status for c in seen] == [OrderStatus.COOKING, OrderStatus.READY]

    @pytest.mark.asyncio
    async def test_other_buyers_orders_are_not_tracked(self):
        feed, store = _wiring()
        async with OrderTracker(store, feed, OrderFilter(buyer_id="buyer-1")) as tracker:
            other = await store.insert_order("buyer-2", "chef-a", Money(90))
            await asyncio.sleep(0.05)
            assert tracker.status_of(other) is None

    @pytest.mark.asyncio
    async def test_stale_event_does_not_move_status_backward(self):
        feed, store = _wiring()
        order_id = await store.insert_order("buyer-1", "chef-a", Money(250))

        async with OrderTracker(store, feed, OrderFilter(buyer_id="buyer-1")) as tracker:
            await AcceptOrderHandler(store).handle(order_id)
            await tracker.wait_for_status(order_id, OrderStatus.COOKING)

            feed.publish(
                OrderChange(ChangeKind.UPDATE, order_id, "buyer-1", "chef-a", OrderStatus.PENDING)
            )
            await asyncio.sleep(0.05)

            assert tracker.status_of(order_id) == OrderStatus.COOKING

    @pytest.mark.asyncio
    async def test_wait_for_status_times_out(self):
        feed, store = _wiring()
        order_id = await store.insert_order("buyer-1", "chef-a", Money(250))

        async with OrderTracker(store, feed, OrderFilter(buyer_id="buyer-1")) as tracker:
            with pytest.raises(asyncio.TimeoutError):
                await tracker.wait_for_status(order_id, OrderStatus.READY, timeout=0.05)


class TestSellerNewOrders:

    @pytest.mark.asyncio
    async def test_chef_is_told_about_new_orders(self):
        feed, store = _wiring()
        seen: list[OrderChange] = []

        async with OrderTracker(
            store, feed, OrderFilter(seller_id="chef-a"), on_change=seen.append
        ) as tracker:
            order_id = await store.insert_order("buyer-1", "chef-a", Money(250))
            await store.insert_order_lines(order_id, [make_line(quantity=2)])
            await tracker.wait_for_status(order_id, OrderStatus.PENDING)

        assert seen[0].kind == ChangeKind.INSERT
        assert seen[0].order_id == order_id

    @pytest.mark.asyncio
    async def test_new_order_arrives_with_its_dishes_from_a_slow_store(self):
        feed, store = _wiring()
        store.lines_delay = 0.02
        sellers = FakeSellerRepository([SELLER_A])
        session = BuyerSession("buyer-1", sellers)
        session.add_item(make_dish("dal", "chef-a", 100))
        session.add_item(make_dish("dal", "chef-a", 100))

        async with OrderTracker(store, feed, OrderFilter(seller_id="chef-a")) as tracker:
            placed = await PlaceOrderHandler(store).handle(session)
            await tracker.wait_for_status(placed.id, OrderStatus.PENDING)

            [dto] = tracker.orders()
            assert [(i.item_id, i.quantity) for i in dto.items] == [("dal", 2)]

    @pytest.mark.asyncio
    async def test_order_seen_before_its_lines_is_reloaded(self):
        feed, store = _wiring()
        order_id = await store.insert_order("buyer-1", "chef-a", Money(250))

        async with OrderTracker(store, feed, OrderFilter(seller_id="chef-a")) as tracker:
            assert tracker.orders()[0].items == []

            await store.insert_order_lines(order_id, [make_line(quantity=2), make_line("roti", 1, 50)])
            await _until(lambda: bool(tracker.orders()[0].items))

            assert [i.item_id for i in tracker.orders()[0].items] == ["dal", "roti"]


class TestChangeCallback:

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_stop_tracking(self):
        feed, store = _wiring()
        order_id = await store.insert_order("buyer-1", "chef-a", Money(250))

        def explode(change):
            raise RuntimeError("render failed")

        async with OrderTracker(
            store, feed, OrderFilter(buyer_id="buyer-1"), on_change=explode
        ) as tracker:
            await AcceptOrderHandler(store).handle(order_id)
            await tracker.wait_for_status(order_id, OrderStatus.COOKING, timeout=1.0)
            await MarkOrderReadyHandler(store).handle(order_id)
            await tracker.wait_for_status(order_id, OrderStatus.READY, timeout=1.0)

            assert tracker.is_running
            assert tracker.error is None


class TestSubscriptionLifecycle:

    @pytest.mark.asyncio
    async def test_close_releases_the_channel(self):
        feed, store = _wiring()
        tracker = OrderTracker(store, feed, OrderFilter(buyer_id="buyer-1"))
        await tracker.start()
        assert feed.subscriber_count == 1

        await tracker.close()

        assert feed.subscriber_count == 0
        assert not tracker.is_running

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        feed, store = _wiring()
        tracker = OrderTracker(store, feed, OrderFilter(buyer_id="buyer-1"))
        await tracker.start()
        await tracker.close()
        await tracker.close()
        assert feed.subscriber_count == 0


class TestReconnect:

    @pytest.mark.asyncio
    async def test_resubscribes_and_catches_up_after_a_drop(self):
        feed, store = _wiring()
        order_id = await store.insert_order("buyer-1", "chef-a", Money(250))

        async with OrderTracker(
            store, feed, OrderFilter(buyer_id="buyer-1"), retry=FAST_RETRY
        ) as tracker:
            feed.drop_all("socket closed")
            # The seller moves on while the buyer's channel is down.
            store.force_status(order_id, OrderStatus.COOKING, publish=False)

            await tracker.wait_for_status(order_id, OrderStatus.COOKING, timeout=1.0)
            assert tracker.reconnects == 1
            assert feed.subscriber_count == 1

            await MarkOrderReadyHandler(store).handle(order_id)
            await tracker.wait_for_status(order_id, OrderStatus.READY, timeout=1.0)

    @pytest.mark.asyncio
    async def test_retries_refused_subscriptions(self):
        inner, store = _wiring()
        feed = FlakyFeed(inner)

        async with OrderTracker(
            store, feed, OrderFilter(buyer_id="buyer-1"), retry=FAST_RETRY
        ) as tracker:
            feed.failures = 2
            inner.drop_all()

            await _until(lambda: tracker.reconnects == 1)
            assert feed.attempts == 4  # initial + two refused + one accepted
            assert tracker.error is None

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        inner, store = _wiring()
        feed = FlakyFeed(inner)

        tracker = OrderTracker(store, feed, OrderFilter(buyer_id="buyer-1"), retry=FAST_RETRY)
        await tracker.start()
        feed.failures = 10
        inner.drop_all()

        await _until(lambda: not tracker.is_running)
        assert tracker.error is not None
        assert feed.attempts == 1 + FAST_RETRY.max_attempts
        await tracker.close()
        assert inner.subscriber_count == 0

    def test_backoff_is_capped(self):
        retrying = RetryPolicy(initial_delay=0.5, max_delay=4.0).retrying()
        assert retrying.wait.multiplier == 0.5
        assert retrying.wait.max == 4.0

    def test_unlimited_attempts(self):
        assert RetryPolicy(max_attempts=None).retrying().stop is stop_never
