"""Project list assembly: expiry, node association and FWI danger alerts."""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Iterable

from fieldwatch.api.models import Project, SensorNode
from fieldwatch.dashboard.models import FwiAlert, ProjectCard

logger = logging.getLogger(__name__)

DEFAULT_FWI_THRESHOLD = 35.0


def is_expired(project: Project, today: date | None = None) -> bool:
    """True once the project's end date is in the past.

    A project without an end date never expires.
    """
    if project.date_fin is None:
        return False
    return project.date_fin < (today or date.today())


def nodes_for_project(project: Project, nodes: Iterable[SensorNode]) -> list[SensorNode]:
    return [node for node in nodes if node.parcelle == project.polygon_id]


def fwi_alerts(
    project: Project,
    nodes: Iterable[SensorNode],
    threshold: float = DEFAULT_FWI_THRESHOLD,
) -> list[FwiAlert]:
    """Alerts for the project's nodes at or above *threshold*.

    Nodes that belong to another project or report no FWI are ignored.
    """
    alerts = []
    for node in nodes_for_project(project, nodes):
        if node.fwi is None or node.fwi < threshold:
            continue
        alerts.append(
            FwiAlert(
                project_id=project.polygon_id,
                project_name=project.name,
                node_id=node.id,
                node_name=node.name,
                fwi=node.fwi,
                threshold=threshold,
            )
        )
    return alerts


def build_project_cards(
    projects: Iterable[Project],
    nodes: Iterable[SensorNode],
    today: date | None = None,
    *,
    threshold: float = DEFAULT_FWI_THRESHOLD,
    attachment_url: Callable[[str | None], str | None] | None = None,
) -> list[ProjectCard]:
    """Build one display card per project, in input order.

    Args:
        projects: Projects from the listing.
        nodes: All sensor nodes from the same listing.
        today: Reference date for expiry; defaults to the current date.
        threshold: FWI value from which a node raises a danger alert.
        attachment_url: Resolves ``piece_joindre`` into an absolute URL,
            typically ``FieldWatchClient.attachment_url``.
    """
    today = today or date.today()
    nodes = list(nodes)
    cards = []
    for project in projects:
        alerts = fwi_alerts(project, nodes, threshold)
        for alert in alerts:
            logger.warning("FWI alert: %s", alert.message)
        cards.append(
            ProjectCard(
                project=project,
                expired=is_expired(project, today),
                nodes=nodes_for_project(project, nodes),
                alerts=alerts,
                image_url=attachment_url(project.piece_joindre) if attachment_url else None,
            )
        )
    return cards
