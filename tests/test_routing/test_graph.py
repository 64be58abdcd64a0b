"""
Tests for the city graph and its generator.

Covers graph construction invariants, the street weight formula, seeded
reproducibility, and import/export formats.
"""

import networkx as nx
import numpy as np
import pytest

from fastroute.core.errors import MalformedGraphError, ValidationError
from fastroute.core.routing.graph import (
    CityGraph,
    Edge,
    EdgeType,
    GraphGenerator,
    WeightModel,
    generate_graph,
    round_half_up,
)
from fastroute.core.routing.nodes import GridNode, NodeId


@pytest.fixture
def small_graph():
    """Three nodes in an L shape."""
    graph = CityGraph()
    graph.add_node(0, 0)
    graph.add_node(1, 0)
    graph.add_node(0, 1)
    graph.add_edge(NodeId(0, 0), NodeId(1, 0), 1.5, EdgeType.HORIZONTAL)
    graph.add_edge(NodeId(0, 0), NodeId(0, 1), 0.9, EdgeType.VERTICAL)
    return graph


class TestRoundHalfUp:
    """Tests for half-up rounding."""

    def test_rounds_halves_up(self):
        """Test that exact halves round away from zero."""
        assert round_half_up(0.25, 1) == 0.3
        assert round_half_up(2.5, 0) == 3.0

    def test_regular_rounding(self):
        """Test ordinary values."""
        assert round_half_up(2.19, 1) == 2.2
        assert round_half_up(0.86, 1) == 0.9
        assert round_half_up(1.234, 2) == 1.23


class TestEdge:
    """Tests for Edge dataclass."""

    def test_edge_creation(self):
        """Test creating an edge."""
        edge = Edge(weight=1.2, type=EdgeType.VERTICAL)

        assert edge.weight == 1.2
        assert edge.to_dict() == {"weight": 1.2, "type": "vertical"}

    @pytest.mark.parametrize("weight", [0.0, -1.0, float("inf"), float("nan")])
    def test_invalid_weight(self, weight):
        """Test that weights must be positive and finite."""
        with pytest.raises(ValueError, match="Edge weight must be positive"):
            Edge(weight=weight, type=EdgeType.HORIZONTAL)


class TestCityGraph:
    """Tests for CityGraph construction."""

    def test_add_edge_is_mirrored(self, small_graph):
        """Test that each street is stored in both directions."""
        forward = small_graph.get_edge(NodeId(0, 0), NodeId(1, 0))
        backward = small_graph.get_edge(NodeId(1, 0), NodeId(0, 0))

        assert forward is not None
        assert forward == backward
        assert forward.type == EdgeType.HORIZONTAL
        assert small_graph.num_edges == 2
        assert len(small_graph) == 3

    def test_neighbors(self, small_graph):
        """Test neighbor iteration."""
        neighbors = dict(small_graph.neighbors(NodeId(0, 0)))

        assert set(neighbors) == {NodeId(1, 0), NodeId(0, 1)}
        assert neighbors[NodeId(0, 1)].weight == 0.9
        assert list(small_graph.neighbors(NodeId(9, 9))) == []

    def test_contains(self, small_graph):
        """Test node membership."""
        assert NodeId(0, 1) in small_graph
        assert (1, 0) in small_graph
        assert NodeId(1, 1) not in small_graph

    def test_edges_yields_each_street_once(self, small_graph):
        """Test undirected edge iteration."""
        edges = list(small_graph.edges())

        assert len(edges) == 2
        assert {frozenset((u, v)) for u, v, _ in edges} == {
            frozenset((NodeId(0, 0), NodeId(1, 0))),
            frozenset((NodeId(0, 0), NodeId(0, 1))),
        }

    def test_duplicate_node(self, small_graph):
        """Test that nodes cannot be added twice."""
        with pytest.raises(MalformedGraphError, match="Duplicate node"):
            small_graph.add_node(0, 0)

    def test_edge_to_unknown_node(self, small_graph):
        """Test that edges must connect catalogued nodes."""
        with pytest.raises(MalformedGraphError, match="unknown node"):
            small_graph.add_edge(NodeId(0, 0), NodeId(5, 5), 1.0, EdgeType.HORIZONTAL)

    def test_self_loop(self, small_graph):
        """Test that self-loops are rejected."""
        with pytest.raises(MalformedGraphError, match="Self-loop"):
            small_graph.add_edge(NodeId(0, 0), NodeId(0, 0), 1.0, EdgeType.HORIZONTAL)

    def test_duplicate_edge(self, small_graph):
        """Test that a street cannot be added twice, in either direction."""
        with pytest.raises(MalformedGraphError, match="Duplicate edge"):
            small_graph.add_edge(NodeId(1, 0), NodeId(0, 0), 2.0, EdgeType.HORIZONTAL)

    def test_to_networkx(self, small_graph):
        """Test NetworkX conversion."""
        graph = small_graph.to_networkx()

        assert isinstance(graph, nx.Graph)
        assert graph.number_of_nodes() == 3
        assert graph.number_of_edges() == 2
        assert graph[NodeId(0, 0)][NodeId(1, 0)]["weight"] == 1.5

    def test_graph_stats(self, small_graph):
        """Test statistics of a small graph."""
        stats = small_graph.get_graph_stats()

        assert stats["num_nodes"] == 3
        assert stats["num_edges"] == 2
        assert stats["is_connected"]
        assert stats["num_components"] == 1
        assert stats["min_weight"] == 0.9
        assert stats["max_weight"] == 1.5

    def test_empty_graph_stats(self):
        """Test statistics of an empty graph."""
        stats = CityGraph().get_graph_stats()

        assert stats["num_nodes"] == 0
        assert not stats["is_connected"]

    def test_isolated_node_disconnects(self, small_graph):
        """Test that an isolated node is reported as a second component."""
        small_graph.add_node(5, 5)
        stats = small_graph.get_graph_stats()

        assert not stats["is_connected"]
        assert stats["num_components"] == 2

    def test_export_to_geojson(self, small_graph):
        """Test GeoJSON export."""
        geojson = small_graph.export_to_geojson()

        assert geojson["type"] == "FeatureCollection"
        points = [f for f in geojson["features"] if f["geometry"]["type"] == "Point"]
        lines = [f for f in geojson["features"] if f["geometry"]["type"] == "LineString"]
        assert len(points) == 3
        assert len(lines) == 2
        assert points[0]["properties"]["signalized"]


class TestAdjacencyFormat:
    """Tests for the rendering layer's adjacency format."""

    def test_to_adjacency(self, small_graph):
        """Test export with string ids."""
        adjacency = small_graph.to_adjacency()

        assert adjacency["0-0"]["1-0"] == {"weight": 1.5, "type": "horizontal"}
        assert adjacency["1-0"]["0-0"] == {"weight": 1.5, "type": "horizontal"}
        assert adjacency["0-1"] == {"0-0": {"weight": 0.9, "type": "vertical"}}

    def test_from_adjacency_restores_graph(self, small_graph):
        """Test that import reproduces the exported graph."""
        restored = CityGraph.from_adjacency(small_graph.to_adjacency())

        assert set(restored.nodes) == set(small_graph.nodes)
        assert restored.to_adjacency() == small_graph.to_adjacency()

    def test_missing_mirror(self):
        """Test that one-way entries are rejected."""
        adjacency = {
            "0-0": {"1-0": {"weight": 1.0, "type": "horizontal"}},
            "1-0": {},
        }

        with pytest.raises(MalformedGraphError, match="no mirror"):
            CityGraph.from_adjacency(adjacency)

    def test_asymmetric_weights(self):
        """Test that both directions must agree."""
        adjacency = {
            "0-0": {"1-0": {"weight": 1.0, "type": "horizontal"}},
            "1-0": {"0-0": {"weight": 2.0, "type": "horizontal"}},
        }

        with pytest.raises(MalformedGraphError, match="differs"):
            CityGraph.from_adjacency(adjacency)

    def test_dangling_reference(self):
        """Test that neighbors must also be catalogued."""
        adjacency = {"0-0": {"1-0": {"weight": 1.0, "type": "horizontal"}}}

        with pytest.raises(MalformedGraphError):
            CityGraph.from_adjacency(adjacency)

    def test_unparsable_id(self):
        """Test that ids must be in x-y form."""
        with pytest.raises(MalformedGraphError, match="Unparsable node id"):
            CityGraph.from_adjacency({"zero": {}})

    @pytest.mark.parametrize(
        "adjacency",
        [
            {"0-0": None},
            {"0-0": ["1-0"]},
            {0: {}},
            {"0-0": {"1-0": 1.0}, "1-0": {"0-0": 1.0}},
            {"0-0": {"1-0": None}, "1-0": {"0-0": {"weight": 1.0, "type": "horizontal"}}},
        ],
    )
    def test_non_mapping_payloads(self, adjacency):
        """Test that wrongly shaped input is reported as a malformed graph."""
        with pytest.raises(MalformedGraphError):
            CityGraph.from_adjacency(adjacency)

    def test_invalid_edge_data(self):
        """Test that weights and types are validated."""
        adjacency = {
            "0-0": {"1-0": {"weight": -1.0, "type": "horizontal"}},
            "1-0": {"0-0": {"weight": -1.0, "type": "horizontal"}},
        }

        with pytest.raises(MalformedGraphError, match="Invalid edge data"):
            CityGraph.from_adjacency(adjacency)


class TestWeightModel:
    """Tests for the street weight formula."""

    def test_default_constants(self):
        """Test default configuration."""
        model = WeightModel()

        assert model.base_weight == 1.0
        assert model.center == (4, 4)
        assert model.main_road_multiplier == 0.7
        assert (model.random_low, model.random_high) == (0.8, 1.2)
        assert model.signal_delay == 0.3

    def test_invalid_random_range(self):
        """Test validation of the random factor range."""
        with pytest.raises(ValueError, match="random range"):
            WeightModel(random_low=1.2, random_high=0.8)

    def test_invalid_base_weight(self):
        """Test validation of the base weight."""
        with pytest.raises(ValueError, match="base_weight must be positive"):
            WeightModel(base_weight=0.0)

    def test_traffic_peaks_at_center(self):
        """Test congestion near the centre and its floor far away."""
        model = WeightModel()

        assert model.traffic_multiplier(GridNode(4, 4), GridNode(4, 5)) == pytest.approx(2.7)
        assert model.traffic_multiplier(GridNode(0, 0), GridNode(1, 0)) == 1.0

    def test_center_independent_of_grid_size(self):
        """Test that the reference point stays at (4, 4) on small grids."""
        model = WeightModel()

        # The middle of a 3x3 grid is far from (4, 4), so it gets no congestion
        assert model.traffic_multiplier(GridNode(1, 1), GridNode(1, 2)) == 1.0
        # (3, 4) - (4, 4) is combined distance 1 from the fixed centre
        assert model.traffic_multiplier(GridNode(3, 4), GridNode(4, 4)) == pytest.approx(2.7)

    def test_main_road_rule(self):
        """Test main roads along even rows and columns."""
        assert WeightModel.is_main_road(GridNode(1, 2), GridNode(2, 2))
        assert WeightModel.is_main_road(GridNode(2, 1), GridNode(2, 2))
        assert not WeightModel.is_main_road(GridNode(1, 1), GridNode(2, 1))
        assert not WeightModel.is_main_road(GridNode(1, 1), GridNode(1, 2))

    def test_calculate_weight(self):
        """Test complete formula on hand-computed streets."""
        model = WeightModel()

        # Centre, main road, signal: 2.7 * 0.7 * 1.0 + 0.3
        assert model.calculate_weight(GridNode(4, 4), GridNode(5, 4), 1.0) == 2.2
        # Corner, main road, signal: 1.0 * 0.7 * 0.8 + 0.3
        assert model.calculate_weight(GridNode(0, 0), GridNode(1, 0), 0.8) == 0.9
        # Secondary street, no signal: 1.0 * 1.0 * 1.2
        assert model.calculate_weight(GridNode(1, 1), GridNode(1, 2), 1.2) == 1.2


class TestGraphGenerator:
    """Tests for grid generation."""

    def test_grid_shape(self):
        """Test node and edge counts of the default grid."""
        graph, nodes = GraphGenerator().generate(8, rng=1)

        assert len(nodes) == 64
        assert len(graph) == 64
        assert graph.num_edges == 2 * 8 * 7

    def test_node_catalog_order(self):
        """Test that nodes are listed x-major."""
        _, nodes = GraphGenerator().generate(3, rng=1)

        assert [node.id for node in nodes[:4]] == [
            NodeId(0, 0),
            NodeId(0, 1),
            NodeId(0, 2),
            NodeId(1, 0),
        ]

    def test_lattice_adjacency(self):
        """Test that only orthogonal neighbours are connected."""
        graph, _ = GraphGenerator().generate(4, rng=1)

        assert graph.get_edge(NodeId(1, 1), NodeId(2, 1)).type == EdgeType.HORIZONTAL
        assert graph.get_edge(NodeId(1, 1), NodeId(1, 2)).type == EdgeType.VERTICAL
        assert not graph.has_edge(NodeId(1, 1), NodeId(2, 2))
        assert not graph.has_edge(NodeId(0, 0), NodeId(2, 0))
        assert len(dict(graph.neighbors(NodeId(0, 0)))) == 2
        assert len(dict(graph.neighbors(NodeId(1, 1)))) == 4

    @pytest.mark.parametrize("seed", [0, 1, 42, 2024])
    def test_weights_positive_and_mirrored(self, seed):
        """Test weight positivity and mirror symmetry."""
        graph, _ = generate_graph(8, rng=seed)

        for node_id, neighbors in graph.adjacency.items():
            for neighbor_id, edge in neighbors.items():
                assert edge.weight > 0
                mirror = graph.get_edge(neighbor_id, node_id)
                assert mirror is not None
                assert mirror.weight == edge.weight
                assert mirror.type == edge.type

    @pytest.mark.parametrize("grid_size", [1, 2, 5, 9])
    def test_connected(self, grid_size):
        """Test that every generated graph is connected."""
        graph, _ = generate_graph(grid_size, rng=3)

        assert graph.get_graph_stats()["is_connected"]

    def test_single_node_grid(self):
        """Test the smallest grid."""
        graph, nodes = generate_graph(1, rng=0)

        assert nodes == [GridNode(0, 0)]
        assert graph.num_edges == 0

    def test_same_seed_same_graph(self):
        """Test reproducibility from a seed."""
        first, _ = generate_graph(6, rng=42)
        second, _ = generate_graph(6, rng=42)

        assert first.to_adjacency() == second.to_adjacency()

    def test_generator_and_seed_agree(self):
        """Test that a numpy Generator and its seed produce the same graph."""
        from_seed, _ = generate_graph(5, rng=7)
        from_generator, _ = generate_graph(5, rng=np.random.default_rng(7))

        assert from_seed.to_adjacency() == from_generator.to_adjacency()

    def test_one_draw_per_street_in_order(self):
        """Test that draws are consumed right-then-bottom in x-major order."""
        model = WeightModel()
        graph, _ = GraphGenerator(model).generate(3, rng=11)

        rng = np.random.default_rng(11)
        for x in range(3):
            for y in range(3):
                node = GridNode(x, y)
                if x < 2:
                    expected = model.calculate_weight(
                        node, GridNode(x + 1, y), float(rng.uniform(0.8, 1.2))
                    )
                    assert graph.get_edge(node.id, NodeId(x + 1, y)).weight == expected
                if y < 2:
                    expected = model.calculate_weight(
                        node, GridNode(x, y + 1), float(rng.uniform(0.8, 1.2))
                    )
                    assert graph.get_edge(node.id, NodeId(x, y + 1)).weight == expected

    def test_weights_within_formula_bounds(self):
        """Test weights stay within the formula's reachable range."""
        graph, _ = generate_graph(8, rng=5)

        for _, _, edge in graph.edges():
            # min: 1.0 * 0.7 * 0.8, max: 3.0 * 1.0 * 1.2 + 0.3
            assert 0.5 <= edge.weight <= 3.9

    @pytest.mark.parametrize("grid_size", [0, -3])
    def test_non_positive_grid_size(self, grid_size):
        """Test validation of grid size."""
        with pytest.raises(ValidationError, match="grid_size must be at least 1"):
            generate_graph(grid_size)

    @pytest.mark.parametrize("grid_size", [2.5, "8", True, None])
    def test_non_integer_grid_size(self, grid_size):
        """Test that grid size must be an integer."""
        with pytest.raises(ValidationError, match="grid_size must be an integer"):
            generate_graph(grid_size)
