"""
Dijkstra shortest-path search over the city graph.

The search uses a binary heap with lazy deletion: improving a node's
tentative distance pushes a new entry, and entries that no longer match the
best known distance are skipped when popped. Ties on distance are broken by
the canonical ``"x-y"`` id in ascending lexicographic order so results are
reproducible.
"""

import heapq
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Set, Tuple, Union

from shapely.geometry import LineString

from fastroute.core.config import settings
from fastroute.core.errors import InvalidNodeError, MalformedGraphError
from fastroute.core.routing.graph import CityGraph
from fastroute.core.routing.nodes import NodeId, NodeRef, format_node_id, to_node_id
from fastroute.utils.logging import PerformanceTimer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Route:
    """
    A solved route.

    Attributes:
        path: Node ids from start to end inclusive
        distance: Total weight along the path
        visited_nodes: Nodes whose tentative distance became finite during search
    """

    path: Tuple[NodeId, ...]
    distance: float
    visited_nodes: FrozenSet[NodeId] = field(default_factory=frozenset)

    found = True

    @property
    def start(self) -> NodeId:
        return self.path[0]

    @property
    def end(self) -> NodeId:
        return self.path[-1]

    def path_ids(self) -> List[str]:
        """Path in canonical ``"x-y"`` form."""
        return [format_node_id(node_id) for node_id in self.path]

    def get_waypoints(self) -> List[Tuple[float, float]]:
        """
        Get list of waypoint coordinates.

        Returns:
            List of (x, y) tuples in grid units
        """
        return [(float(node_id.x), float(node_id.y)) for node_id in self.path]

    def get_geometry(self) -> LineString:
        """
        Get path as Shapely LineString.

        A single-node route has no length and yields an empty LineString.
        """
        if len(self.path) < 2:
            return LineString()

        return LineString(self.get_waypoints())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "found": True,
            "path": self.path_ids(),
            "distance": self.distance,
            "visited_nodes": sorted(format_node_id(node_id) for node_id in self.visited_nodes),
        }


@dataclass(frozen=True)
class NoRoute:
    """
    Result of a search whose destination is unreachable.

    Evaluates as false so callers can write ``if result:``.
    """

    start: NodeId
    end: NodeId
    visited_nodes: FrozenSet[NodeId] = field(default_factory=frozenset)

    found = False

    def __bool__(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "found": False,
            "path": [],
            "distance": None,
            "visited_nodes": sorted(format_node_id(node_id) for node_id in self.visited_nodes),
        }


RouteResult = Union[Route, NoRoute]


class DijkstraPathfinder:
    """
    Shortest-path search bound to one graph.

    The pathfinder keeps no per-search state, so a single instance (or a
    single graph shared by many instances) can serve concurrent queries.
    """

    def __init__(self, graph: CityGraph, slow_search_threshold_ms: Optional[float] = None):
        """
        Initialize the pathfinder.

        Args:
            graph: Graph to search; never modified
            slow_search_threshold_ms: Searches at least this slow are logged
                at INFO (defaults to the configured threshold)
        """
        self.graph = graph
        self.slow_search_threshold_ms = (
            settings.slow_search_threshold_ms
            if slow_search_threshold_ms is None
            else slow_search_threshold_ms
        )

    def find_route(self, start: NodeRef, end: NodeRef) -> RouteResult:
        """
        Find the lowest-cost route between two nodes.

        Args:
            start: Start node as NodeId, (x, y) or ``"x-y"``
            end: End node as NodeId, (x, y) or ``"x-y"``

        Returns:
            Route if the end is reachable, NoRoute otherwise

        Raises:
            InvalidNodeError: If either node is not in the graph
            MalformedGraphError: If an edge leads to an uncatalogued node
        """
        start_id = self._resolve(start, "start")
        end_id = self._resolve(end, "end")

        operation = f"dijkstra {format_node_id(start_id)} -> {format_node_id(end_id)}"
        with PerformanceTimer(operation, threshold_ms=self.slow_search_threshold_ms):
            result = self._search(start_id, end_id)

        if result.found:
            logger.debug(
                f"Route {format_node_id(start_id)} -> {format_node_id(end_id)}: "
                f"{len(result.path)} nodes, distance {result.distance}, "
                f"{len(result.visited_nodes)} reached"
            )
        else:
            logger.info(
                f"No route from {format_node_id(start_id)} to {format_node_id(end_id)} "
                f"({len(result.visited_nodes)} nodes reached)"
            )

        return result

    def _resolve(self, ref: NodeRef, role: str) -> NodeId:
        """Normalize a node reference and check it belongs to the graph."""
        try:
            node_id = to_node_id(ref)
        except ValueError as exc:
            raise InvalidNodeError(
                f"Invalid {role} node {ref!r}", node_id=str(ref), role=role
            ) from exc

        if node_id not in self.graph.nodes:
            raise InvalidNodeError(
                f"{role.capitalize()} node {format_node_id(node_id)} is not in the graph",
                node_id=format_node_id(node_id),
                role=role,
            )
        return node_id

    def _search(self, start_id: NodeId, end_id: NodeId) -> RouteResult:
        # Missing keys mean an infinite tentative distance
        distances: Dict[NodeId, float] = {start_id: 0.0}
        came_from: Dict[NodeId, NodeId] = {}
        settled: Set[NodeId] = set()

        open_set: List[Tuple[float, str, NodeId]] = [(0.0, format_node_id(start_id), start_id)]

        while open_set:
            current_distance, _, current_id = heapq.heappop(open_set)

            # Stale entry
            if current_id in settled or current_distance > distances[current_id]:
                continue

            if current_id == end_id:
                return self._reconstruct_route(came_from, end_id, current_distance, distances)

            settled.add(current_id)

            for neighbor_id, edge in self.graph.neighbors(current_id):
                if neighbor_id not in self.graph.nodes:
                    raise MalformedGraphError(
                        f"Edge {current_id} -> {neighbor_id} references an unknown node",
                        edge=(current_id, neighbor_id),
                    )
                if neighbor_id in settled:
                    continue

                tentative = current_distance + edge.weight
                if tentative < distances.get(neighbor_id, float("inf")):
                    distances[neighbor_id] = tentative
                    came_from[neighbor_id] = current_id
                    heapq.heappush(
                        open_set, (tentative, format_node_id(neighbor_id), neighbor_id)
                    )

        return NoRoute(start=start_id, end=end_id, visited_nodes=frozenset(distances))

    @staticmethod
    def _reconstruct_route(
        came_from: Dict[NodeId, NodeId],
        end_id: NodeId,
        distance: float,
        distances: Dict[NodeId, float],
    ) -> Route:
        path = [end_id]
        current_id = end_id
        while current_id in came_from:
            current_id = came_from[current_id]
            path.append(current_id)

        path.reverse()

        return Route(path=tuple(path), distance=distance, visited_nodes=frozenset(distances))


def find_route(graph: CityGraph, start: NodeRef, end: NodeRef) -> RouteResult:
    """Find the lowest-cost route between ``start`` and ``end`` in ``graph``."""
    return DijkstraPathfinder(graph).find_route(start, end)
