"""View models produced by the dashboard assemblers."""

from __future__ import annotations

from pydantic import BaseModel, Field

from fieldwatch.api.models import Project, SensorNode
from fieldwatch.geo.models import Coordinate, Region


class FwiAlert(BaseModel):
    """A sensor node whose fire weather index reached the danger threshold."""

    project_id: int
    project_name: str
    node_id: int
    node_name: str
    fwi: float
    threshold: float

    @property
    def message(self) -> str:
        return (
            f"Project {self.project_name} node {self.node_name} has an FWI of "
            f"{self.fwi:g}, which makes it dangerous!"
        )


class ProjectCard(BaseModel):
    """Everything a project list row displays."""

    project: Project
    expired: bool = False
    nodes: list[SensorNode] = Field(default_factory=list)
    alerts: list[FwiAlert] = Field(default_factory=list)
    image_url: str | None = None


class SensorMarker(BaseModel):
    node_id: int
    name: str
    position: Coordinate
    fwi: float | None = None
    danger: bool = False


class MapView(BaseModel):
    """Polygons, markers and initial viewport for one project's map."""

    polygons: list[list[Coordinate]] = Field(default_factory=list)
    markers: list[SensorMarker] = Field(default_factory=list)
    region: Region
    skipped_polygons: int = 0
