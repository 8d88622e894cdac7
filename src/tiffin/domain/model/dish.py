"""Dish aggregate.

Dishes live independently of orders. They have their own lifecycle:
chefs change prices, add dishes and take them off the menu.
"""

from __future__ import annotations

from dataclasses import dataclass

from tiffin.domain.exceptions import ValidationError
from tiffin.domain.model.value_objects import Money


@dataclass
class Dish:
    """A dish on a chef's menu.

    Kept as a mutable dataclass because price updates are a legitimate
    mutation on the aggregate.
    """

    id: str
    seller_id: str
    name: str
    price: Money
    is_available: bool = True

    def update_price(self, new_price: Money) -> None:
        """Change the dish price.

        This does NOT affect any placed orders because order lines
        capture a price snapshot at submission time.
        """
        if new_price.amount <= 0:
            raise ValidationError("Dish price must be greater than zero")
        self.price = new_price
