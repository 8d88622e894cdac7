"""Integration tests for the seller's transition use cases."""

import pytest

from tiffin.application.accept_order import AcceptOrderHandler
from tiffin.application.mark_order_ready import MarkOrderReadyHandler
from tiffin.application.reject_order import RejectOrderHandler
from tiffin.domain.exceptions import EntityNotFoundError, StoreError, ValidationError
from tiffin.domain.model.order import OrderStatus
from tiffin.domain.model.value_objects import Money
from tests.fakes import FakeOrderStore


async def _store_with_order(status: OrderStatus = OrderStatus.PENDING):
    store = FakeOrderStore()
    order_id = await store.insert_order("buyer-1", "chef-a", Money(250))
    store.force_status(order_id, status, publish=False)
    return store, order_id


class TestLegalTransitions:

    @pytest.mark.asyncio
    async def test_accept(self):
        store, order_id = await _store_with_order()
        result = await AcceptOrderHandler(store).handle(order_id)
        assert result.applied
        assert result.status == "cooking"
        assert store.raw(order_id).status == OrderStatus.COOKING

    @pytest.mark.asyncio
    async def test_reject(self):
        store, order_id = await _store_with_order()
        result = await RejectOrderHandler(store).handle(order_id)
        assert result.applied
        assert store.raw(order_id).status == OrderStatus.REJECTED

    @pytest.mark.asyncio
    async def test_mark_ready(self):
        store, order_id = await _store_with_order(OrderStatus.COOKING)
        result = await MarkOrderReadyHandler(store).handle(order_id)
        assert result.applied
        assert store.raw(order_id).status == OrderStatus.READY


class TestIllegalTransitions:

    @pytest.mark.asyncio
    async def test_mark_ready_on_pending_is_ignored(self):
        store, order_id = await _store_with_order()
        result = await MarkOrderReadyHandler(store).handle(order_id)
        assert not result.applied
        assert "current status is pending" in result.reason
        assert store.raw(order_id).status == OrderStatus.PENDING
        assert store.update_calls == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [OrderStatus.READY, OrderStatus.REJECTED])
    @pytest.mark.parametrize(
        "handler_cls", [AcceptOrderHandler, RejectOrderHandler, MarkOrderReadyHandler]
    )
    async def test_terminal_orders_never_move(self, status, handler_cls):
        store, order_id = await _store_with_order(status)
        result = await handler_cls(store).handle(order_id)
        assert not result.applied
        assert store.raw(order_id).status == status
        assert store.update_calls == 0


class TestIdempotentRepeats:

    @pytest.mark.asyncio
    async def test_accept_on_cooking_is_a_no_op(self):
        store, order_id = await _store_with_order(OrderStatus.COOKING)
        result = await AcceptOrderHandler(store).handle(order_id)
        assert not result.applied
        assert result.status == "cooking"
        assert result.reason == "Order is already cooking"
        assert store.update_calls == 0

    @pytest.mark.asyncio
    async def test_double_tap(self):
        store, order_id = await _store_with_order()
        handler = AcceptOrderHandler(store)
        first = await handler.handle(order_id)
        second = await handler.handle(order_id)
        assert first.applied and not second.applied
        assert store.raw(order_id).status == OrderStatus.COOKING

    @pytest.mark.asyncio
    async def test_stale_cached_order_does_not_overwrite(self):
        store, order_id = await _store_with_order()
        cached = await store.get_order(order_id)
        store.force_status(order_id, OrderStatus.REJECTED, publish=False)

        result = await AcceptOrderHandler(store).apply(cached)

        assert not result.applied
        assert result.status == "rejected"
        assert cached.status == OrderStatus.REJECTED
        assert store.raw(order_id).status == OrderStatus.REJECTED


class TestFailures:

    @pytest.mark.asyncio
    async def test_store_failure_is_reported_and_local_state_kept(self):
        store, order_id = await _store_with_order()
        cached = await store.get_order(order_id)
        store.fail_updates = True

        with pytest.raises(StoreError, match="connection reset"):
            await AcceptOrderHandler(store).apply(cached)

        assert cached.status == OrderStatus.PENDING
        assert store.raw(order_id).status == OrderStatus.PENDING
        assert store.update_calls == 1  # not retried

    @pytest.mark.asyncio
    async def test_unknown_order(self):
        store = FakeOrderStore()
        with pytest.raises(EntityNotFoundError, match="#42"):
            await AcceptOrderHandler(store).handle(42)

    @pytest.mark.asyncio
    async def test_other_kitchens_order(self):
        store, order_id = await _store_with_order()
        with pytest.raises(ValidationError, match="another kitchen"):
            await AcceptOrderHandler(store).handle(order_id, seller_id="chef-b")
