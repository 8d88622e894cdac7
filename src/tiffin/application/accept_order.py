"""Application service: Accept Order use case (PENDING -> COOKING)."""

from __future__ import annotations

from tiffin.application.order_transition import OrderTransitionHandler
from tiffin.domain.model.order import OrderAction


class AcceptOrderHandler(OrderTransitionHandler):

    action = OrderAction.ACCEPT
