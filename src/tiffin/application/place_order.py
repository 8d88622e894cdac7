"""Application service: Place Order use case.

Snapshots the buyer's cart into a PENDING order plus its lines, then
empties the cart.  Validation happens before any write; a store failure
is reported as-is and leaves the cart untouched so the buyer can retry.
"""

from __future__ import annotations

import structlog

from tiffin.application.dto import BillDTO, OrderDTO
from tiffin.application.session import BuyerSession
from tiffin.domain.exceptions import StoreError
from tiffin.domain.model.order import Order
from tiffin.domain.repository.order_store import OrderStore
from tiffin.domain.service.billing import (
    DEFAULT_GST_PERCENT,
    DEFAULT_PLATFORM_FEE,
    compute_bill,
)

logger = structlog.get_logger(__name__)


class PlaceOrderHandler:

    def __init__(
        self,
        order_store: OrderStore,
        platform_fee: int = DEFAULT_PLATFORM_FEE,
        gst_percent: int = DEFAULT_GST_PERCENT,
    ) -> None:
        self._order_store = order_store
        self._platform_fee = platform_fee
        self._gst_percent = gst_percent

    def quote(self, session: BuyerSession) -> BillDTO:
        """Bill breakdown for the current cart, shown before payment."""
        bill = compute_bill(
            item_total=session.cart.total(),
            delivery_fee=session.delivery_fee(),
            platform_fee=self._platform_fee,
            gst_percent=self._gst_percent,
        )
        return BillDTO(
            item_total=str(bill.item_total),
            delivery_fee=str(bill.delivery_fee),
            platform_fee=str(bill.platform_fee),
            gst=str(bill.gst),
            grand_total=str(bill.grand_total),
        )

    async def handle(self, session: BuyerSession, instruction: str = "") -> OrderDTO:
        """Submit the session's cart.

        Steps:
        1. Let the Order aggregate validate the snapshot (buyer, non-empty, one seller).
        2. Insert the order row, then its lines with the copied prices.
        3. Clear the cart only once both writes succeeded.
        """
        order = Order.create(
            buyer_id=session.buyer_id or "",
            cart_lines=session.cart.snapshot(),
            instruction=instruction,
        )

        order.id = await self._order_store.insert_order(
            buyer_id=order.buyer_id,
            seller_id=order.seller_id,
            total_price=order.total_price,
            instruction=order.instruction,
        )
        try:
            await self._order_store.insert_order_lines(order.id, order.lines)
        except StoreError:
            logger.error("order.lines_insert_failed", order_id=order.id)
            raise

        session.cart.clear()
        logger.info(
            "order.placed",
            order_id=order.id,
            buyer_id=order.buyer_id,
            seller_id=order.seller_id,
            total=order.total_price.amount,
            lines=len(order.lines),
        )
        return OrderDTO.from_order(order)
