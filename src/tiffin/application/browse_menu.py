"""Application service: Browse Menu use case (query).

Lists available dishes with the distance to each kitchen.  Dishes from
kitchens beyond the delivery range are flagged so the menu can disable
their add button; the cart itself does not enforce this.
"""

from __future__ import annotations

from tiffin.application.dto import DishListingDTO
from tiffin.application.session import BuyerSession
from tiffin.domain.repository.catalog_repository import DishRepository, SellerRepository
from tiffin.domain.service.geo import format_distance


class BrowseMenuHandler:

    def __init__(self, dish_repo: DishRepository, seller_repo: SellerRepository) -> None:
        self._dish_repo = dish_repo
        self._seller_repo = seller_repo

    def handle(self, session: BuyerSession) -> list[DishListingDTO]:
        listings: list[DishListingDTO] = []
        for dish in self._dish_repo.list_all():
            if not dish.is_available:
                continue
            seller = self._seller_repo.get_by_id(dish.seller_id)
            distance = session.distance_to(dish.seller_id)
            listings.append(
                DishListingDTO(
                    id=dish.id,
                    name=dish.name,
                    seller_id=dish.seller_id,
                    seller_name=seller.name if seller else dish.seller_id,
                    price=str(dish.price),
                    distance=format_distance(distance) if distance is not None else None,
                    out_of_range=not session.can_purchase_from(dish.seller_id),
                )
            )
        return listings
