"""Port for the device position."""

from __future__ import annotations

from abc import ABC, abstractmethod

from tiffin.domain.model.value_objects import GeoPoint


class LocationProvider(ABC):

    @abstractmethod
    async def get_current_position(self) -> GeoPoint | None:
        """Current position, or None if permission is denied or the fix fails."""
