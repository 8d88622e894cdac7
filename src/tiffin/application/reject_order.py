"""Application service: Reject Order use case (PENDING -> REJECTED)."""

from __future__ import annotations

from tiffin.application.order_transition import OrderTransitionHandler
from tiffin.domain.model.order import OrderAction


class RejectOrderHandler(OrderTransitionHandler):

    action = OrderAction.REJECT
