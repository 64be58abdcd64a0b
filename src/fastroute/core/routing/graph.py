"""
Weighted city grid graph and its generator.

Intersections sit on an integer lattice and each one is joined to its right
and bottom neighbours. Edge weights model expected travel time: congestion
grows towards the city centre, even-numbered streets are faster main roads,
signalized intersections add a fixed delay, and a random factor drawn from
an injected generator varies traffic per street.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

import networkx as nx
import numpy as np

from fastroute.core.errors import MalformedGraphError, ValidationError
from fastroute.core.routing.nodes import (
    GridNode,
    NodeId,
    format_node_id,
    parse_node_id,
)
from fastroute.utils.logging import log_performance

logger = logging.getLogger(__name__)

RandomSource = Union[None, int, np.random.SeedSequence, np.random.Generator]


def round_half_up(value: float, digits: int) -> float:
    """
    Round to ``digits`` decimals with halves rounded up.

    Python's ``round`` uses banker's rounding; weights and statistics are
    rounded half-up so ``0.25`` becomes ``0.3`` rather than ``0.2``.
    """
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


class EdgeType(str, Enum):
    """Orientation of a street segment."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@dataclass(frozen=True)
class Edge:
    """
    A street segment between two adjacent intersections.

    Attributes:
        weight: Expected traversal time, strictly positive
        type: Segment orientation
    """

    weight: float
    type: EdgeType

    def __post_init__(self) -> None:
        if not math.isfinite(self.weight) or self.weight <= 0:
            raise ValueError(f"Edge weight must be positive and finite, got {self.weight}")

    def to_dict(self) -> Dict[str, Any]:
        return {"weight": self.weight, "type": self.type.value}


class CityGraph:
    """
    Undirected weighted graph over grid intersections.

    Each undirected street is stored as a mirrored pair of directed entries in
    ``adjacency`` sharing one ``Edge`` value. The graph is only built through
    ``add_node``/``add_edge`` (or ``from_adjacency``); there is no API for
    changing a weight once an edge exists.
    """

    def __init__(self) -> None:
        self.nodes: Dict[NodeId, GridNode] = {}
        self.adjacency: Dict[NodeId, Dict[NodeId, Edge]] = {}

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def num_edges(self) -> int:
        """Number of undirected edges."""
        return sum(len(neighbors) for neighbors in self.adjacency.values()) // 2

    def add_node(self, x: int, y: int) -> GridNode:
        """
        Add an intersection to the catalog.

        Raises:
            MalformedGraphError: If the node already exists
        """
        node = GridNode(x, y)
        if node.id in self.nodes:
            raise MalformedGraphError(f"Duplicate node {node.id}")

        self.nodes[node.id] = node
        self.adjacency[node.id] = {}
        return node

    def add_edge(
        self,
        node1_id: NodeId,
        node2_id: NodeId,
        weight: float,
        edge_type: EdgeType,
    ) -> Edge:
        """
        Add a street between two catalogued nodes, in both directions.

        Args:
            node1_id: First endpoint
            node2_id: Second endpoint
            weight: Traversal cost
            edge_type: Orientation tag

        Returns:
            The shared Edge value

        Raises:
            MalformedGraphError: On unknown endpoints, self-loops or duplicates
        """
        for node_id in (node1_id, node2_id):
            if node_id not in self.nodes:
                raise MalformedGraphError(
                    f"Edge references unknown node {node_id}", edge=(node1_id, node2_id)
                )
        if node1_id == node2_id:
            raise MalformedGraphError(f"Self-loop at {node1_id}", edge=(node1_id, node2_id))
        if node2_id in self.adjacency[node1_id]:
            raise MalformedGraphError(
                f"Duplicate edge {node1_id} -> {node2_id}", edge=(node1_id, node2_id)
            )

        edge = Edge(weight=weight, type=EdgeType(edge_type))
        self.adjacency[node1_id][node2_id] = edge
        self.adjacency[node2_id][node1_id] = edge
        return edge

    def neighbors(self, node_id: NodeId) -> Iterator[Tuple[NodeId, Edge]]:
        """Iterate ``(neighbor_id, edge)`` pairs leaving a node."""
        return iter(self.adjacency.get(node_id, {}).items())

    def get_edge(self, node1_id: NodeId, node2_id: NodeId) -> Optional[Edge]:
        return self.adjacency.get(node1_id, {}).get(node2_id)

    def has_edge(self, node1_id: NodeId, node2_id: NodeId) -> bool:
        return self.get_edge(node1_id, node2_id) is not None

    def edges(self) -> Iterator[Tuple[NodeId, NodeId, Edge]]:
        """Iterate each undirected edge once, in insertion order."""
        seen = set()
        for node_id, neighbors in self.adjacency.items():
            for neighbor_id, edge in neighbors.items():
                key = frozenset((node_id, neighbor_id))
                if key in seen:
                    continue
                seen.add(key)
                yield node_id, neighbor_id, edge

    def to_networkx(self) -> nx.Graph:
        """
        Build an equivalent NetworkX graph.

        Nodes are keyed by NodeId and edges carry ``weight`` and ``type``.
        """
        graph = nx.Graph()
        for node_id, node in self.nodes.items():
            graph.add_node(node_id, node=node)
        for node1_id, node2_id, edge in self.edges():
            graph.add_edge(node1_id, node2_id, weight=edge.weight, type=edge.type.value)
        return graph

    def get_graph_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the graph.

        Returns:
            Dictionary with node/edge counts, connectivity and weight range
        """
        if not self.nodes:
            return {
                "num_nodes": 0,
                "num_edges": 0,
                "is_connected": False,
                "num_components": 0,
                "min_weight": None,
                "max_weight": None,
            }

        graph = self.to_networkx()
        weights = [edge.weight for _, _, edge in self.edges()]

        return {
            "num_nodes": graph.number_of_nodes(),
            "num_edges": graph.number_of_edges(),
            "is_connected": nx.is_connected(graph),
            "num_components": nx.number_connected_components(graph),
            "min_weight": min(weights) if weights else None,
            "max_weight": max(weights) if weights else None,
        }

    def to_adjacency(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        """
        Export in the rendering layer's form.

        Returns:
            ``{"x-y": {"x-y": {"weight": w, "type": "horizontal"}}}``
        """
        return {
            format_node_id(node_id): {
                format_node_id(neighbor_id): edge.to_dict()
                for neighbor_id, edge in neighbors.items()
            }
            for node_id, neighbors in self.adjacency.items()
        }

    @classmethod
    def from_adjacency(
        cls, adjacency: Mapping[str, Mapping[str, Mapping[str, Any]]]
    ) -> "CityGraph":
        """
        Rebuild a graph from the rendering layer's adjacency form.

        Every key of ``adjacency`` becomes a catalogued node. Both directions
        of every street must be present with identical weight and type.

        Raises:
            MalformedGraphError: On unparsable ids, dangling references,
                self-loops, asymmetric pairs or invalid weights
        """
        graph = cls()

        try:
            parsed = {
                parse_node_id(node): {
                    parse_node_id(neighbor): data for neighbor, data in neighbors.items()
                }
                for node, neighbors in adjacency.items()
            }
        except ValueError as exc:
            raise MalformedGraphError(f"Unparsable node id in adjacency: {exc}") from exc
        except (AttributeError, TypeError) as exc:
            raise MalformedGraphError(f"Adjacency is not a mapping of mappings: {exc}") from exc

        for node_id, neighbors in parsed.items():
            for neighbor_id, data in neighbors.items():
                if not isinstance(data, Mapping):
                    raise MalformedGraphError(
                        f"Edge data for {node_id} -> {neighbor_id} is not a mapping",
                        edge=(node_id, neighbor_id),
                    )

        for node_id in parsed:
            graph.add_node(node_id.x, node_id.y)

        for node_id, neighbors in parsed.items():
            for neighbor_id, data in neighbors.items():
                if graph.has_edge(node_id, neighbor_id):
                    continue

                mirror = parsed.get(neighbor_id, {}).get(node_id)
                if mirror is None:
                    raise MalformedGraphError(
                        f"Edge {node_id} -> {neighbor_id} has no mirror",
                        edge=(node_id, neighbor_id),
                    )
                if mirror.get("weight") != data.get("weight") or mirror.get("type") != data.get(
                    "type"
                ):
                    raise MalformedGraphError(
                        f"Edge {node_id} <-> {neighbor_id} differs between directions",
                        edge=(node_id, neighbor_id),
                    )

                try:
                    graph.add_edge(
                        node_id, neighbor_id, float(data["weight"]), EdgeType(data["type"])
                    )
                except (KeyError, TypeError, ValueError) as exc:
                    raise MalformedGraphError(
                        f"Invalid edge data for {node_id} -> {neighbor_id}: {exc}",
                        edge=(node_id, neighbor_id),
                    ) from exc

        return graph

    def export_to_geojson(self) -> Dict[str, Any]:
        """
        Export graph to GeoJSON in grid coordinates.

        Returns:
            GeoJSON FeatureCollection with a Point per node and a
            LineString per undirected edge
        """
        features: List[Dict[str, Any]] = []

        for node in self.nodes.values():
            features.append(
                {
                    "type": "Feature",
                    "geometry": {"type": "Point", "coordinates": [node.x, node.y]},
                    "properties": {
                        "id": format_node_id(node.id),
                        "signalized": node.is_signalized(),
                        "type": "node",
                    },
                }
            )

        for node1_id, node2_id, edge in self.edges():
            features.append(
                {
                    "type": "Feature",
                    "geometry": {
                        "type": "LineString",
                        "coordinates": [list(node1_id), list(node2_id)],
                    },
                    "properties": {
                        "from": format_node_id(node1_id),
                        "to": format_node_id(node2_id),
                        "weight": edge.weight,
                        "orientation": edge.type.value,
                        "type": "edge",
                    },
                }
            )

        return {"type": "FeatureCollection", "features": features}


@dataclass
class WeightModel:
    """
    Constants of the street weight formula.

    Attributes:
        base_weight: Travel time of an uncongested secondary street
        center: Grid point where congestion peaks; fixed, not tied to grid size
        peak_traffic: Traffic multiplier at the centre
        traffic_falloff: Multiplier drop per block of combined endpoint distance
        main_road_multiplier: Speed-up for streets on even rows/columns
        random_low: Lower bound of the random traffic factor
        random_high: Upper bound of the random traffic factor
        signal_delay: Delay added when an endpoint is signalized
        precision: Decimal places kept in the final weight
    """

    base_weight: float = 1.0
    center: Tuple[int, int] = (4, 4)
    peak_traffic: float = 3.0
    traffic_falloff: float = 0.3
    main_road_multiplier: float = 0.7
    random_low: float = 0.8
    random_high: float = 1.2
    signal_delay: float = 0.3
    precision: int = 1

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.base_weight <= 0:
            raise ValueError("base_weight must be positive")
        if self.main_road_multiplier <= 0:
            raise ValueError("main_road_multiplier must be positive")
        if not 0 < self.random_low <= self.random_high:
            raise ValueError("random range must satisfy 0 < random_low <= random_high")
        if self.signal_delay < 0:
            raise ValueError("signal_delay must be non-negative")
        if self.precision < 0:
            raise ValueError("precision must be non-negative")

    def traffic_multiplier(self, node1: GridNode, node2: GridNode) -> float:
        cx, cy = self.center
        distance_from_center = (
            abs(node1.x - cx) + abs(node1.y - cy) + abs(node2.x - cx) + abs(node2.y - cy)
        )
        return max(1.0, self.peak_traffic - self.traffic_falloff * distance_from_center)

    @staticmethod
    def is_main_road(node1: GridNode, node2: GridNode) -> bool:
        """A street is a main road when it runs along an even column or row."""
        return (node1.x % 2 == 0 and node2.x % 2 == 0) or (node1.y % 2 == 0 and node2.y % 2 == 0)

    def calculate_weight(self, node1: GridNode, node2: GridNode, random_factor: float) -> float:
        """
        Calculate the weight of the street between two nodes.

        Args:
            node1: First endpoint
            node2: Second endpoint
            random_factor: Random traffic factor in ``[random_low, random_high]``

        Returns:
            Weight rounded half-up to ``precision`` decimals
        """
        road_type_multiplier = self.main_road_multiplier if self.is_main_road(node1, node2) else 1.0
        has_signal = node1.is_signalized() or node2.is_signalized()
        delay = self.signal_delay if has_signal else 0.0

        weight = (
            self.base_weight
            * self.traffic_multiplier(node1, node2)
            * road_type_multiplier
            * random_factor
            + delay
        )
        return round_half_up(weight, self.precision)


class GraphGenerator:
    """
    Builds a ``grid_size x grid_size`` city graph.

    Randomness always comes from the generator handed to ``generate``, so a
    seed fully determines the graph.
    """

    def __init__(self, weight_model: Optional[WeightModel] = None):
        self.weight_model = weight_model or WeightModel()

    @log_performance()
    def generate(
        self, grid_size: int, rng: RandomSource = None
    ) -> Tuple[CityGraph, List[GridNode]]:
        """
        Generate the graph and its node catalog.

        Args:
            grid_size: Number of intersections per side, at least 1
            rng: Seed, SeedSequence, numpy Generator, or None for fresh entropy

        Returns:
            (graph, nodes) with nodes ordered by x, then y

        Raises:
            ValidationError: If grid_size is not a positive integer
        """
        if isinstance(grid_size, bool) or not isinstance(grid_size, (int, np.integer)):
            raise ValidationError(
                f"grid_size must be an integer, got {type(grid_size).__name__}",
                field="grid_size",
            )
        if grid_size < 1:
            raise ValidationError(
                f"grid_size must be at least 1, got {grid_size}", field="grid_size"
            )

        grid_size = int(grid_size)
        generator = np.random.default_rng(rng)
        model = self.weight_model
        graph = CityGraph()

        for x in range(grid_size):
            for y in range(grid_size):
                graph.add_node(x, y)

        for x in range(grid_size):
            for y in range(grid_size):
                node = graph.nodes[NodeId(x, y)]

                if x < grid_size - 1:
                    right = graph.nodes[NodeId(x + 1, y)]
                    draw = generator.uniform(model.random_low, model.random_high)
                    weight = model.calculate_weight(node, right, float(draw))
                    graph.add_edge(node.id, right.id, weight, EdgeType.HORIZONTAL)

                if y < grid_size - 1:
                    below = graph.nodes[NodeId(x, y + 1)]
                    draw = generator.uniform(model.random_low, model.random_high)
                    weight = model.calculate_weight(node, below, float(draw))
                    graph.add_edge(node.id, below.id, weight, EdgeType.VERTICAL)

        logger.debug(
            f"Generated {grid_size}x{grid_size} city graph: "
            f"{len(graph)} nodes, {graph.num_edges} edges"
        )

        return graph, list(graph.nodes.values())


def generate_graph(
    grid_size: int = 8, rng: RandomSource = None
) -> Tuple[CityGraph, List[GridNode]]:
    """Generate a city graph with the default weight model."""
    return GraphGenerator().generate(grid_size, rng)
