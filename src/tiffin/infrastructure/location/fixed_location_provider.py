"""Location provider backed by a configured coordinate.

The CLI has no GPS; an unset coordinate behaves like a denied
permission and yields None.
"""

from __future__ import annotations

from tiffin.domain.model.value_objects import GeoPoint
from tiffin.domain.repository.location_provider import LocationProvider


class FixedLocationProvider(LocationProvider):

    def __init__(self, point: GeoPoint | None) -> None:
        self._point = point

    async def get_current_position(self) -> GeoPoint | None:
        return self._point
