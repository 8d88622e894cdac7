"""Abstract repositories for the menu catalog.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations live in the infrastructure layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from tiffin.domain.model.dish import Dish
from tiffin.domain.model.seller import SellerProfile


class DishRepository(ABC):

    @abstractmethod
    def get_by_id(self, dish_id: str) -> Dish | None:
        """Return a dish by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Dish]:
        """Return every dish on every menu."""

    @abstractmethod
    def save(self, dish: Dish) -> None:
        """Persist a new or updated dish."""


class SellerRepository(ABC):

    @abstractmethod
    def get_by_id(self, seller_id: str) -> SellerProfile | None:
        """Return a seller profile, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[SellerProfile]:
        """Return every seller profile."""
