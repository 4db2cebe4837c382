"""Map viewport derivation from decoded parcel polygons."""

from __future__ import annotations

from typing import Iterable, Sequence

from fieldwatch.core.errors import ViewportResolutionError
from fieldwatch.geo.models import Coordinate, Region


def resolve_center(
    polygons: Iterable[Sequence[Coordinate]],
    supplied_center: Coordinate | None = None,
    *fallbacks: Coordinate | None,
) -> Coordinate:
    """Pick the point the map should open on.

    Candidates, in priority order: the first vertex of the first non-empty
    polygon, then *supplied_center*, then each of *fallbacks*. Non-finite
    candidates are passed over.

    Raises:
        ViewportResolutionError: If no candidate is present and finite.
    """
    first_vertex = next((polygon[0] for polygon in polygons if len(polygon) > 0), None)
    for candidate in (first_vertex, supplied_center, *fallbacks):
        if candidate is not None and candidate.is_finite:
            return Coordinate(latitude=candidate.latitude, longitude=candidate.longitude)
    raise ViewportResolutionError(
        "Cannot resolve a map center: no polygon vertex and no finite fallback center"
    )


def build_region(
    center: Coordinate,
    latitude_delta: float = 0.1,
    longitude_delta: float = 0.1,
) -> Region:
    """Wrap a center into the viewport record handed to a map surface."""
    return Region(
        latitude=center.latitude,
        longitude=center.longitude,
        latitude_delta=latitude_delta,
        longitude_delta=longitude_delta,
    )
