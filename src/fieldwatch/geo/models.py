"""Geographic data models."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict


class Coordinate(BaseModel):
    """A single point, in degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.latitude) and math.isfinite(self.longitude)


class Region(BaseModel):
    """Initial map viewport: a center plus the visible span in degrees."""

    latitude: float
    longitude: float
    latitude_delta: float = 0.1
    longitude_delta: float = 0.1

    @property
    def center(self) -> Coordinate:
        return Coordinate(latitude=self.latitude, longitude=self.longitude)
