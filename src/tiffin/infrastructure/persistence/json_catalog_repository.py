"""JSON-file-backed implementations of the catalog repositories."""

from __future__ import annotations

import json
from pathlib import Path

from tiffin.domain.model.dish import Dish
from tiffin.domain.model.seller import SellerProfile
from tiffin.domain.model.value_objects import GeoPoint, Money
from tiffin.domain.repository.catalog_repository import DishRepository, SellerRepository


def _ensure_file(file_path: Path) -> None:
    if not file_path.exists():
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text("[]", encoding="utf-8")


class JsonDishRepository(DishRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        _ensure_file(file_path)

    # --- DishRepository interface ---------------------------------------------

    def get_by_id(self, dish_id: str) -> Dish | None:
        return self._load().get(dish_id)

    def list_all(self) -> list[Dish]:
        return list(self._load().values())

    def save(self, dish: Dish) -> None:
        dishes = self._load()
        dishes[dish.id] = dish
        self._persist(dishes)

    # --- Serialization helpers ------------------------------------------------

    def _load(self) -> dict[str, Dish]:
        raw = json.loads(self._file_path.read_text(encoding="utf-8"))
        return {
            item["id"]: Dish(
                id=item["id"],
                seller_id=item["chef_id"],
                name=item["name"],
                price=Money(item["price"], item.get("currency", "INR")),
                is_available=item.get("is_available", True),
            )
            for item in raw
        }

    def _persist(self, dishes: dict[str, Dish]) -> None:
        raw = [
            {
                "id": d.id,
                "chef_id": d.seller_id,
                "name": d.name,
                "price": d.price.amount,
                "currency": d.price.currency,
                "is_available": d.is_available,
            }
            for d in dishes.values()
        ]
        self._file_path.write_text(
            json.dumps(raw, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )


class JsonSellerRepository(SellerRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        _ensure_file(file_path)

    def get_by_id(self, seller_id: str) -> SellerProfile | None:
        for seller in self.list_all():
            if seller.id == seller_id:
                return seller
        return None

    def list_all(self) -> list[SellerProfile]:
        raw = json.loads(self._file_path.read_text(encoding="utf-8"))
        return [
            SellerProfile(
                id=item["id"],
                name=item["full_name"],
                location=GeoPoint.maybe(item.get("latitude"), item.get("longitude")),
            )
            for item in raw
        ]
