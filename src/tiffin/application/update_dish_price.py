"""Application service: Update Dish Price use case."""

from __future__ import annotations

from tiffin.domain.exceptions import EntityNotFoundError, ValidationError
from tiffin.domain.model.dish import Dish
from tiffin.domain.model.value_objects import Money
from tiffin.domain.repository.catalog_repository import DishRepository


class UpdateDishPriceHandler:

    def __init__(self, dish_repo: DishRepository) -> None:
        self._dish_repo = dish_repo

    def handle(self, dish_id: str, new_price: str, seller_id: str | None = None) -> Dish:
        """Change a dish's menu price.

        This does NOT affect any placed orders — they captured a
        price snapshot at submission time.
        """
        dish = self._dish_repo.get_by_id(dish_id)
        if dish is None:
            raise EntityNotFoundError(f"Dish with ID '{dish_id}' not found")
        if seller_id is not None and dish.seller_id != seller_id:
            raise ValidationError(f"Dish '{dish.name}' is on another kitchen's menu")

        dish.update_price(Money.of(new_price))
        self._dish_repo.save(dish)
        return dish
