"""Application service: Mark Order Ready use case (COOKING -> READY)."""

from __future__ import annotations

from tiffin.application.order_transition import OrderTransitionHandler
from tiffin.domain.model.order import OrderAction


class MarkOrderReadyHandler(OrderTransitionHandler):

    action = OrderAction.MARK_READY
