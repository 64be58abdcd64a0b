"""
Shortest-path routing on a weighted city grid.

This module provides:
- Grid graph generation with traffic-aware street weights
- Dijkstra routing between two intersections
- Route statistics (road-type mix, congestion mix, efficiency)
- Emergency center / incident catalog for dispatch planning
"""

from typing import Optional, Union

from fastroute.core.routing.dispatch import (
    DispatchPlan,
    EmergencyCenter,
    Incident,
    default_emergency_data,
    emergency_data_for_graph,
    plan_response,
)
from fastroute.core.routing.graph import (
    CityGraph,
    Edge,
    EdgeType,
    GraphGenerator,
    RandomSource,
    WeightModel,
    generate_graph,
)
from fastroute.core.routing.nodes import GridNode, NodeId, format_node_id, parse_node_id
from fastroute.core.routing.pathfinding import (
    DijkstraPathfinder,
    NoRoute,
    Route,
    RouteResult,
    find_route,
)
from fastroute.core.routing.stats import (
    EfficiencyRating,
    RoadType,
    RouteStats,
    TrafficCondition,
    classify_edge,
    compute_route_stats,
)


def route_statistics(
    route: Union[Route, NoRoute, None], graph: CityGraph
) -> Optional[RouteStats]:
    """Statistics for ``route`` on ``graph``; None when undefined."""
    return compute_route_stats(route, graph)


__all__ = [
    "CityGraph",
    "DijkstraPathfinder",
    "DispatchPlan",
    "Edge",
    "EdgeType",
    "EfficiencyRating",
    "EmergencyCenter",
    "GraphGenerator",
    "GridNode",
    "Incident",
    "NoRoute",
    "NodeId",
    "RandomSource",
    "RoadType",
    "Route",
    "RouteResult",
    "RouteStats",
    "TrafficCondition",
    "WeightModel",
    "classify_edge",
    "compute_route_stats",
    "default_emergency_data",
    "emergency_data_for_graph",
    "find_route",
    "format_node_id",
    "generate_graph",
    "parse_node_id",
    "plan_response",
    "route_statistics",
]
