"""Decoder for Well-Known-Text polygon strings.

The server stores parcel boundaries as EWKT, e.g.::

    SRID=4326;POLYGON ((9.01 33.81, 9.02 33.82, 9.03 33.80))

Vertices are written ``longitude latitude`` as the WKT standard requires,
and are decoded in that order. Only the outer ring is read.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Iterable

from fieldwatch.core.errors import GeometryParseError
from fieldwatch.geo.models import Coordinate

logger = logging.getLogger(__name__)

_POLYGON_RE = re.compile(
    r"^\s*(?:SRID=(?P<srid>\d+);)?\s*POLYGON\s*\(\((?P<body>.*)\)\)\s*$",
    re.IGNORECASE | re.DOTALL,
)
_VERTEX_SEP_RE = re.compile(r",\s*")


def _match(wkt: str) -> re.Match[str]:
    if not isinstance(wkt, str):
        raise GeometryParseError(f"Expected a WKT string, got {type(wkt).__name__}", repr(wkt))
    match = _POLYGON_RE.match(wkt)
    if match is None:
        raise GeometryParseError(f"Not a WKT polygon: {wkt!r}", wkt)
    return match


def parse_srid(wkt: str) -> int | None:
    """Return the SRID declared in front of the polygon, if any."""
    srid = _match(wkt).group("srid")
    return int(srid) if srid is not None else None


def _parse_vertex(token: str) -> Coordinate:
    parts = token.split()
    if len(parts) != 2:
        raise GeometryParseError(f"Vertex must have two ordinates: {token!r}", token)
    try:
        longitude, latitude = (float(p) for p in parts)
    except ValueError:
        raise GeometryParseError(f"Non-numeric ordinate in vertex {token!r}", token) from None
    if not (math.isfinite(longitude) and math.isfinite(latitude)):
        raise GeometryParseError(f"Non-finite ordinate in vertex {token!r}", token)
    return Coordinate(latitude=latitude, longitude=longitude)


def decode_polygon(wkt: str) -> list[Coordinate]:
    """Decode the outer ring of a WKT polygon into coordinates.

    Args:
        wkt: ``[SRID=<n>;]POLYGON((lon lat, lon lat, ...))``.

    Returns:
        The vertices in ring order. An empty ring yields an empty list.

    Raises:
        GeometryParseError: If the wrapper does not match or any vertex is
            not a pair of finite numbers. No partial result is returned.
    """
    body = _match(wkt).group("body").strip()
    if not body:
        return []
    return [_parse_vertex(token) for token in _VERTEX_SEP_RE.split(body)]


def decode_many(wkts: Iterable[str], *, strict: bool = False) -> list[list[Coordinate]]:
    """Decode several polygons, skipping the malformed ones unless *strict*."""
    polygons: list[list[Coordinate]] = []
    for wkt in wkts:
        try:
            polygons.append(decode_polygon(wkt))
        except GeometryParseError as exc:
            if strict:
                raise
            logger.warning("Skipping malformed polygon (%s)", exc.fragment)
    return polygons
