"""Seller (home-chef) profile."""

from __future__ import annotations

from dataclasses import dataclass

from tiffin.domain.model.value_objects import GeoPoint


@dataclass
class SellerProfile:
    """A chef's kitchen. ``location`` is None until the chef sets it."""

    id: str
    name: str
    location: GeoPoint | None = None
