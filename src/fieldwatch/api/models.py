"""Response models for the monitoring API.

Field names follow the server's JSON (``descp``, ``date_fin``,
``parcelle``, ``FWI``) so payloads validate without renaming. Unknown
fields are ignored.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fieldwatch.geo.models import Coordinate


def _to_date(value: Any) -> Any:
    # The server sends either plain dates or full ISO timestamps.
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and len(value) > 10:
        return datetime.fromisoformat(value).date()
    return value


class Project(BaseModel):
    """A land parcel under monitoring."""

    polygon_id: int
    name: str
    descp: str = ""
    date_debut: date | None = None
    date_fin: date | None = None
    piece_joindre: str | None = None
    polygon: str | None = None

    @field_validator("date_debut", "date_fin", mode="before")
    @classmethod
    def coerce_dates(cls, value: Any) -> Any:
        return _to_date(value)


class ClientProject(BaseModel):
    id: int
    name: str
    description: str = ""


class SensorNode(BaseModel):
    """A field sensor attached to a parcel."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    parcelle: int | None = None
    fwi: float | None = Field(default=None, alias="FWI")
    latitude: float | None = None
    longitude: float | None = None

    @property
    def position(self) -> Coordinate | None:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(latitude=self.latitude, longitude=self.longitude)


class ParcelGeometry(BaseModel):
    """One parcel boundary; rows without geometry are kept so the map can skip them."""

    polygon: str | None = None


class CityCenter(BaseModel):
    latitude: float
    longitude: float

    def to_coordinate(self) -> Coordinate:
        return Coordinate(latitude=self.latitude, longitude=self.longitude)


class ProjectsPayload(BaseModel):
    """Body of the project listing: projects plus all their sensor nodes."""

    projects: list[Project] = Field(default_factory=list)
    nodes: list[SensorNode] = Field(default_factory=list)


class ParcelsPayload(BaseModel):
    """Body of the parcel geometry listing for one project."""

    parcelles: list[ParcelGeometry] = Field(default_factory=list)
    city_data: CityCenter | None = None
