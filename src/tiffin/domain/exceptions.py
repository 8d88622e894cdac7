"""Errors raised by the ordering core.

Everything derives from DomainException; the CLI turns any of them into
a one-line message.  StoreError covers the backing store and the change
feed, whose messages are shown unaltered.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tiffin.domain.model.cart import SellerConflict


class DomainException(Exception):
    """Root of the tiffin error hierarchy."""


class ValidationError(DomainException):
    """Input or state rejected before anything was written."""


class EntityNotFoundError(DomainException):
    """No order, dish or seller with that id."""


class SellerConflictError(DomainException):
    """An item from a second seller was added to a single-seller cart.

    Carries the pending decision so the caller can ask the buyer to
    confirm the switch (``Cart.switch_seller``) or drop the request.
    """

    def __init__(self, conflict: SellerConflict) -> None:
        super().__init__(
            f"Cart holds items from seller '{conflict.current_seller_id}'; "
            f"'{conflict.item.name}' is sold by '{conflict.requested_seller_id}'"
        )
        self.conflict = conflict


class IllegalTransitionError(DomainException):
    """The requested lifecycle action is not allowed from the current status."""


class StoreError(DomainException):
    """The backing data store rejected or failed a read or write."""


class FeedDisconnectedError(StoreError):
    """A change-feed subscription dropped and must be re-established."""
