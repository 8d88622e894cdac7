"""Shared flow for seller-driven order transitions.

The local order is moved only after the store acknowledges the write,
so a failed write leaves the seller's view on the pre-transition status.
Repeated or out-of-order taps come back as a non-applied result instead
of an error.
"""

from __future__ import annotations

import structlog

from tiffin.application.dto import TransitionResult
from tiffin.domain.exceptions import (
    EntityNotFoundError,
    IllegalTransitionError,
    ValidationError,
)
from tiffin.domain.model.order import Order, OrderAction
from tiffin.domain.repository.order_store import OrderStore

logger = structlog.get_logger(__name__)


class OrderTransitionHandler:

    action: OrderAction

    def __init__(self, order_store: OrderStore) -> None:
        self._order_store = order_store

    async def handle(self, order_id: int, seller_id: str | None = None) -> TransitionResult:
        order = await self._order_store.get_order(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        if seller_id is not None and order.seller_id != seller_id:
            raise ValidationError(f"Order #{order_id} belongs to another kitchen")
        return await self.apply(order)

    async def apply(self, order: Order) -> TransitionResult:
        """Run the transition against an already loaded *order*."""
        log = logger.bind(order_id=order.id, action=self.action.value)

        try:
            target = order.next_status(self.action)
        except IllegalTransitionError as exc:
            log.warning("order.transition_ignored", status=order.status.value)
            return self._result(order, applied=False, reason=str(exc))

        if target is None:
            log.debug("order.transition_repeated", status=order.status.value)
            return self._result(
                order, applied=False, reason=f"Order is already {order.status.value}"
            )

        previous = order.status
        stored = await self._order_store.update_order_status(
            order.id, target, expected=previous  # type: ignore[arg-type]
        )

        if stored != target:
            # Conditional update lost: the row moved on since we read it.
            order.status = stored
            log.warning(
                "order.transition_stale",
                expected=previous.value,
                stored=stored.value,
            )
            return self._result(
                order, applied=False, reason=f"Order is now {stored.value}"
            )

        if not order.apply(self.action):
            # A concurrent call on the same order got there first.
            log.debug("order.transition_repeated", status=order.status.value)
            return self._result(
                order, applied=False, reason=f"Order is already {order.status.value}"
            )
        log.info("order.transitioned", previous=previous.value, status=target.value)
        return self._result(order, applied=True)

    @staticmethod
    def _result(order: Order, applied: bool, reason: str = "") -> TransitionResult:
        return TransitionResult(
            order_id=order.id,  # type: ignore[arg-type]
            status=order.status.value,
            applied=applied,
            reason=reason,
        )
