"""Buyer session — owns the cart and the last known position.

One session per signed-in buyer; it is created at sign-in, handed to
whatever needs the cart, and torn down at sign-out.
"""

from __future__ import annotations

import structlog

from tiffin.domain.exceptions import ValidationError
from tiffin.domain.model.cart import Cart, ConflictResolver
from tiffin.domain.model.dish import Dish
from tiffin.domain.model.value_objects import GeoPoint, Money
from tiffin.domain.repository.catalog_repository import SellerRepository
from tiffin.domain.repository.location_provider import LocationProvider
from tiffin.domain.service.geo import FeeSchedule, haversine_distance_km

logger = structlog.get_logger(__name__)


class BuyerSession:

    def __init__(
        self,
        buyer_id: str | None,
        seller_repo: SellerRepository,
        fee_schedule: FeeSchedule | None = None,
    ) -> None:
        self.buyer_id = buyer_id
        self._seller_repo = seller_repo
        self._fees = fee_schedule or FeeSchedule()
        self._cart = Cart()
        self._position: GeoPoint | None = None
        self._closed = False

    # --- Cart -----------------------------------------------------------------

    @property
    def cart(self) -> Cart:
        if self._closed:
            raise ValidationError("Session has ended; sign in again")
        return self._cart

    def add_item(self, dish: Dish, on_conflict: ConflictResolver | None = None) -> Cart:
        return self.cart.add_item(dish, on_conflict=on_conflict)

    def remove_item(self, item_id: str) -> Cart:
        return self.cart.remove_item(item_id)

    # --- Location -------------------------------------------------------------

    @property
    def position(self) -> GeoPoint | None:
        return self._position

    def set_location(self, point: GeoPoint | None) -> None:
        self._position = point

    async def refresh_location(self, provider: LocationProvider) -> GeoPoint | None:
        """Ask the device for a fix; a denial just leaves the position unset."""
        point = await provider.get_current_position()
        if point is None:
            logger.info("session.location_unavailable", buyer_id=self.buyer_id)
        self._position = point
        return point

    def distance_to(self, seller_id: str) -> float | None:
        """Kilometres to a kitchen, or None if either end is unknown."""
        kitchen = self._kitchen_location(seller_id)
        if self._position is None or kitchen is None:
            return None
        return haversine_distance_km(self._position, kitchen)

    def can_purchase_from(self, seller_id: str) -> bool:
        distance = self.distance_to(seller_id)
        return distance is None or not self._fees.is_out_of_range(distance)

    def delivery_fee(self) -> Money:
        """Fee for the current cart, from the kitchen's stored location."""
        seller_id = self.cart.seller_id
        if seller_id is None:
            return Money(self._fees.fallback_fee)
        return self._fees.fee_between(self._position, self._kitchen_location(seller_id))

    # --- Lifecycle ------------------------------------------------------------

    def sign_out(self) -> None:
        self._cart.clear()
        self._position = None
        self._closed = True
        logger.info("session.signed_out", buyer_id=self.buyer_id)

    @property
    def is_closed(self) -> bool:
        return self._closed

    def __enter__(self) -> BuyerSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.sign_out()

    # --- Internal helpers -----------------------------------------------------

    def _kitchen_location(self, seller_id: str) -> GeoPoint | None:
        seller = self._seller_repo.get_by_id(seller_id)
        return seller.location if seller else None
