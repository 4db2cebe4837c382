"""Geometry decoding and map viewport helpers."""

from fieldwatch.core.errors import GeometryParseError, ViewportResolutionError
from fieldwatch.geo.models import Coordinate, Region
from fieldwatch.geo.viewport import build_region, resolve_center
from fieldwatch.geo.wkt import decode_many, decode_polygon, parse_srid

__all__ = [
    "Coordinate",
    "GeometryParseError",
    "Region",
    "ViewportResolutionError",
    "build_region",
    "decode_many",
    "decode_polygon",
    "parse_srid",
    "resolve_center",
]
