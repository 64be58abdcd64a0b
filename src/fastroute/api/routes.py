"""
Graph and route API endpoints.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Dict, Optional

from fastapi import APIRouter, status

from fastroute.core.config import settings
from fastroute.core.errors import GraphNotFoundError, ValidationError
from fastroute.core.logging_config import add_log_context
from fastroute.core.routing import (
    CityGraph,
    DijkstraPathfinder,
    GraphGenerator,
    RouteStats,
    compute_route_stats,
    emergency_data_for_graph,
)
from fastroute.models.errors import ErrorResponse
from fastroute.models.routing import (
    EmergencyDataResponse,
    GraphCreateRequest,
    GraphResponse,
    GraphSummary,
    RouteRequest,
    RouteResponse,
    RouteStatsSchema,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/graphs", tags=["graphs"])


@dataclass(frozen=True)
class StoredGraph:
    graph: CityGraph
    grid_size: int
    seed: Optional[int]


# In-memory graph store; computed routes are never stored
graphs_db: Dict[str, StoredGraph] = {}


def get_stored_graph(graph_id: str) -> StoredGraph:
    stored = graphs_db.get(graph_id)
    if stored is None:
        raise GraphNotFoundError(graph_id)
    return stored


def _summary(graph_id: str, stored: StoredGraph) -> Dict:
    stats = stored.graph.get_graph_stats()
    return {
        "graph_id": graph_id,
        "grid_size": stored.grid_size,
        "seed": stored.seed,
        "num_nodes": stats["num_nodes"],
        "num_edges": stats["num_edges"],
        "is_connected": stats["is_connected"],
        "min_weight": stats["min_weight"],
        "max_weight": stats["max_weight"],
    }


def _stats_schema(stats: Optional[RouteStats]) -> Optional[RouteStatsSchema]:
    if stats is None:
        return None
    return RouteStatsSchema(
        **stats.to_dict(),
        rating=stats.rating.value,
        formattedTime=stats.formatted_time,
    )


@router.post(
    "",
    response_model=GraphSummary,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Grid size out of range"}},
    summary="Generate a city graph",
)
def create_graph(request: GraphCreateRequest) -> GraphSummary:
    """
    Generate a weighted city grid and keep it for later route queries.

    Args:
        request: Grid size and optional seed

    Returns:
        GraphSummary with the new graph's id
    """
    grid_size = request.grid_size or settings.default_grid_size
    if grid_size > settings.max_grid_size:
        raise ValidationError(
            f"grid_size must not exceed {settings.max_grid_size}, got {grid_size}",
            field="grid_size",
        )

    seed = request.seed if request.seed is not None else settings.default_seed
    graph, _ = GraphGenerator().generate(grid_size, seed)

    graph_id = str(uuid.uuid4())
    stored = StoredGraph(graph=graph, grid_size=grid_size, seed=seed)
    graphs_db[graph_id] = stored

    logger.info(f"Created graph {graph_id}: {grid_size}x{grid_size}, seed={seed}")

    return GraphSummary(**_summary(graph_id, stored))


@router.get(
    "/{graph_id}",
    response_model=GraphResponse,
    responses={404: {"model": ErrorResponse, "description": "Graph not found"}},
    summary="Get a graph with its nodes and streets",
)
def get_graph(graph_id: str) -> GraphResponse:
    stored = get_stored_graph(graph_id)
    return GraphResponse(
        **_summary(graph_id, stored),
        nodes=[node.to_dict() for node in stored.graph.nodes.values()],
        graph=stored.graph.to_adjacency(),
    )


@router.post(
    "/{graph_id}/routes",
    response_model=RouteResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Graph or node not found"},
        422: {"model": ErrorResponse, "description": "Malformed node id"},
    },
    summary="Find the fastest route between two intersections",
)
def create_route(graph_id: str, request: RouteRequest) -> RouteResponse:
    """
    Solve a route on a stored graph.

    An unreachable destination is a normal result with ``found`` false,
    not an error.
    """
    stored = get_stored_graph(graph_id)

    with add_log_context(graph_id=graph_id):
        result = DijkstraPathfinder(stored.graph).find_route(request.start, request.end)
        stats = compute_route_stats(result, stored.graph)

    payload = result.to_dict()
    return RouteResponse(
        found=payload["found"],
        start=request.start,
        end=request.end,
        path=payload["path"],
        distance=payload["distance"],
        visited_nodes=payload["visited_nodes"],
        stats=_stats_schema(stats),
    )


@router.get(
    "/{graph_id}/emergency-data",
    response_model=EmergencyDataResponse,
    responses={404: {"model": ErrorResponse, "description": "Graph not found"}},
    summary="Emergency centers and incidents located on the graph",
)
def get_emergency_data(graph_id: str) -> EmergencyDataResponse:
    stored = get_stored_graph(graph_id)
    centers, incidents = emergency_data_for_graph(stored.graph)

    logger.debug(
        f"Graph {graph_id} hosts {len(centers)} centers and {len(incidents)} incidents"
    )

    return EmergencyDataResponse(
        emergency_centers=[center.to_dict() for center in centers],
        incidents=[incident.to_dict() for incident in incidents],
    )
