"""Map data assembly for a project's parcels and sensors."""

from __future__ import annotations

import logging
from typing import Iterable

from fieldwatch.api.models import CityCenter, ParcelGeometry, SensorNode
from fieldwatch.core.config import MapConfig
from fieldwatch.core.errors import GeometryParseError
from fieldwatch.dashboard.models import MapView, SensorMarker
from fieldwatch.dashboard.projects import DEFAULT_FWI_THRESHOLD
from fieldwatch.geo.models import Coordinate
from fieldwatch.geo.viewport import build_region, resolve_center
from fieldwatch.geo.wkt import decode_polygon

logger = logging.getLogger(__name__)


def fallback_center(config: MapConfig) -> Coordinate | None:
    """The configured default center, if both ordinates are set."""
    if config.default_latitude is None or config.default_longitude is None:
        return None
    return Coordinate(latitude=config.default_latitude, longitude=config.default_longitude)


def sensor_markers(
    nodes: Iterable[SensorNode],
    threshold: float = DEFAULT_FWI_THRESHOLD,
) -> list[SensorMarker]:
    """One marker per node with a finite position."""
    markers = []
    for node in nodes:
        position = node.position
        if position is None or not position.is_finite:
            continue
        markers.append(
            SensorMarker(
                node_id=node.id,
                name=node.name,
                position=position,
                fwi=node.fwi,
                danger=node.fwi is not None and node.fwi >= threshold,
            )
        )
    return markers


def build_map_view(
    parcels: Iterable[ParcelGeometry],
    nodes: Iterable[SensorNode] = (),
    city_center: CityCenter | None = None,
    *,
    config: MapConfig | None = None,
    threshold: float = DEFAULT_FWI_THRESHOLD,
) -> MapView:
    """Decode parcel boundaries and place the initial viewport.

    Polygons that fail to decode are left out and counted in
    ``skipped_polygons``. The center is the first vertex of the first
    decoded polygon, else the city center, else the configured default.

    Raises:
        ViewportResolutionError: If none of those yields a finite point.
    """
    config = config or MapConfig()
    polygons = []
    skipped = 0
    for parcel in parcels:
        try:
            polygons.append(decode_polygon(parcel.polygon))
        except GeometryParseError as exc:
            skipped += 1
            logger.warning("Skipping parcel with malformed geometry: %s", exc)

    supplied = city_center.to_coordinate() if city_center else None
    if supplied is not None and not supplied.is_finite:
        logger.warning("Ignoring non-finite city center %s", supplied)
    center = resolve_center(polygons, supplied, fallback_center(config))

    return MapView(
        polygons=polygons,
        markers=sensor_markers(nodes, threshold),
        region=build_region(center, config.latitude_delta, config.longitude_delta),
        skipped_polygons=skipped,
    )
