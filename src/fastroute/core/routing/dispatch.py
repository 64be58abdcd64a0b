"""
Emergency centers, incidents and single-pair response planning.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from fastroute.core.routing.graph import CityGraph
from fastroute.core.routing.nodes import NodeId, format_node_id, parse_node_id
from fastroute.core.routing.pathfinding import DijkstraPathfinder, RouteResult
from fastroute.core.routing.stats import RouteStats, compute_route_stats

logger = logging.getLogger(__name__)


class CenterType(str, Enum):
    HOSPITAL = "hospital"
    FIRE = "fire"
    POLICE = "police"


class IncidentType(str, Enum):
    ACCIDENT = "accident"
    FIRE = "fire"
    MEDICAL = "medical"
    CRIME = "crime"


class Severity(str, Enum):
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class EmergencyCenter:
    """A station vehicles are dispatched from."""

    id: str
    name: str
    type: CenterType
    node: NodeId

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "node": format_node_id(self.node),
        }


@dataclass(frozen=True)
class Incident:
    """A location that needs a response."""

    id: str
    name: str
    type: IncidentType
    node: NodeId
    severity: Severity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "node": format_node_id(self.node),
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class DispatchPlan:
    """
    Route from one center to one incident.

    Attributes:
        center: Dispatching center
        incident: Target incident
        route: Solver result (Route or NoRoute)
        stats: Route statistics, None if undefined
    """

    center: EmergencyCenter
    incident: Incident
    route: RouteResult
    stats: Optional[RouteStats]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "center": self.center.to_dict(),
            "incident": self.incident.to_dict(),
            "route": self.route.to_dict(),
            "stats": self.stats.to_dict() if self.stats else None,
        }


def default_emergency_data() -> Tuple[List[EmergencyCenter], List[Incident]]:
    """Stations and incidents laid out for the default 8x8 city."""
    centers = [
        EmergencyCenter(
            "hospital-1", "City General Hospital", CenterType.HOSPITAL, parse_node_id("1-1")
        ),
        EmergencyCenter("fire-1", "Fire Station Alpha", CenterType.FIRE, parse_node_id("6-2")),
        EmergencyCenter("police-1", "Police HQ", CenterType.POLICE, parse_node_id("2-6")),
        EmergencyCenter("fire-2", "Fire Station Beta", CenterType.FIRE, parse_node_id("5-5")),
    ]
    incidents = [
        Incident(
            "incident-1", "Car Accident", IncidentType.ACCIDENT, parse_node_id("4-3"), Severity.HIGH
        ),
        Incident(
            "incident-2", "Building Fire", IncidentType.FIRE, parse_node_id("7-1"), Severity.CRITICAL
        ),
        Incident(
            "incident-3",
            "Medical Emergency",
            IncidentType.MEDICAL,
            parse_node_id("1-4"),
            Severity.MEDIUM,
        ),
        Incident(
            "incident-4",
            "Robbery in Progress",
            IncidentType.CRIME,
            parse_node_id("6-6"),
            Severity.HIGH,
        ),
    ]
    return centers, incidents


def emergency_data_for_graph(
    graph: CityGraph,
) -> Tuple[List[EmergencyCenter], List[Incident]]:
    """Default centers and incidents, keeping only those located on ``graph``."""
    centers, incidents = default_emergency_data()
    return (
        [center for center in centers if center.node in graph],
        [incident for incident in incidents if incident.node in graph],
    )


def plan_response(
    graph: CityGraph, center: EmergencyCenter, incident: Incident
) -> DispatchPlan:
    """
    Route a vehicle from ``center`` to ``incident``.

    Raises:
        InvalidNodeError: If either location is not on the graph
    """
    route = DijkstraPathfinder(graph).find_route(center.node, incident.node)
    stats = compute_route_stats(route, graph)

    logger.info(
        f"Dispatch {center.id} -> {incident.id} ({incident.severity.value}): "
        + (f"{stats.estimated_time} min" if stats else "no timed route")
    )

    return DispatchPlan(center=center, incident=incident, route=route, stats=stats)
