"""
Tests for the graph and route endpoints.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient

from fastroute.api.main import app
from fastroute.api.routes import graphs_db
from fastroute.core.routing import find_route, generate_graph
from fastroute.core.routing.nodes import NodeId

GRAPHS_URL = "/api/v1/graphs"


@pytest.fixture
def client() -> TestClient:
    """Create a test client with an empty graph store."""
    graphs_db.clear()
    yield TestClient(app)
    graphs_db.clear()


@pytest.fixture
def graph_id(client: TestClient) -> str:
    """Id of a seeded 8x8 graph."""
    response = client.post(GRAPHS_URL, json={"grid_size": 8, "seed": 42})
    return response.json()["graph_id"]


class TestCreateGraph:
    """Tests for POST /graphs."""

    def test_create_graph(self, client: TestClient) -> None:
        """Test graph generation with explicit size and seed."""
        response = client.post(GRAPHS_URL, json={"grid_size": 5, "seed": 3})

        assert response.status_code == 201
        data = response.json()
        assert data["grid_size"] == 5
        assert data["seed"] == 3
        assert data["num_nodes"] == 25
        assert data["num_edges"] == 40
        assert data["is_connected"] is True
        assert 0 < data["min_weight"] <= data["max_weight"]
        assert data["graph_id"] in graphs_db

    def test_default_grid_size(self, client: TestClient) -> None:
        """Test the configured grid size is used when none is given."""
        response = client.post(GRAPHS_URL, json={})

        assert response.status_code == 201
        assert response.json()["grid_size"] == 8
        assert response.json()["num_nodes"] == 64

    def test_same_seed_same_weights(self, client: TestClient) -> None:
        """Test two graphs from one seed have identical streets."""
        first = client.post(GRAPHS_URL, json={"grid_size": 4, "seed": 11}).json()
        second = client.post(GRAPHS_URL, json={"grid_size": 4, "seed": 11}).json()

        assert first["graph_id"] != second["graph_id"]
        assert (
            client.get(f"{GRAPHS_URL}/{first['graph_id']}").json()["graph"]
            == client.get(f"{GRAPHS_URL}/{second['graph_id']}").json()["graph"]
        )

    def test_grid_size_too_large(self, client: TestClient) -> None:
        """Test grid sizes above the configured maximum are rejected."""
        response = client.post(GRAPHS_URL, json={"grid_size": 1000})

        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "VALIDATION_ERROR"
        assert data["details"]["field"] == "grid_size"

    @pytest.mark.parametrize("body", [{"grid_size": 0}, {"grid_size": "big"}, {"seed": -1}])
    def test_invalid_body(self, client: TestClient, body) -> None:
        """Test malformed request bodies."""
        response = client.post(GRAPHS_URL, json=body)

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"


class TestGetGraph:
    """Tests for GET /graphs/{id}."""

    def test_get_graph(self, client: TestClient, graph_id: str) -> None:
        """Test the adjacency payload matches the generator output."""
        response = client.get(f"{GRAPHS_URL}/{graph_id}")

        assert response.status_code == 200
        data = response.json()
        assert len(data["nodes"]) == 64
        assert data["nodes"][0] == {"id": "0-0", "x": 0, "y": 0}

        expected, _ = generate_graph(8, rng=42)
        assert data["graph"] == expected.to_adjacency()
        assert data["graph"]["0-0"]["1-0"]["type"] == "horizontal"

    def test_unknown_graph(self, client: TestClient) -> None:
        """Test requesting a graph that does not exist."""
        response = client.get(f"{GRAPHS_URL}/nope")

        assert response.status_code == 404
        assert response.json()["error_code"] == "GRAPH_NOT_FOUND"


class TestCreateRoute:
    """Tests for POST /graphs/{id}/routes."""

    def test_route(self, client: TestClient, graph_id: str) -> None:
        """Test a route matches the in-process solver."""
        response = client.post(
            f"{GRAPHS_URL}/{graph_id}/routes", json={"start": "0-0", "end": "7-7"}
        )

        assert response.status_code == 200
        data = response.json()
        graph, _ = generate_graph(8, rng=42)
        expected = find_route(graph, NodeId(0, 0), NodeId(7, 7))

        assert data["found"] is True
        assert data["path"] == expected.path_ids()
        assert data["distance"] == pytest.approx(expected.distance)
        assert data["path"][0] == "0-0"
        assert data["path"][-1] == "7-7"

        stats = data["stats"]
        assert stats["totalBlocks"] == len(data["path"]) - 1
        assert sum(stats["roadTypes"].values()) == stats["totalBlocks"]
        assert sum(stats["trafficConditions"].values()) == stats["totalBlocks"]
        assert stats["rating"] in {"excellent", "good", "average", "poor"}
        assert stats["formattedTime"].endswith("s")

    def test_route_to_self(self, client: TestClient, graph_id: str) -> None:
        """Test a zero-length route has no statistics."""
        response = client.post(
            f"{GRAPHS_URL}/{graph_id}/routes", json={"start": "3-3", "end": "3-3"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["path"] == ["3-3"]
        assert data["distance"] == 0
        assert data["stats"] is None

    def test_unreachable(self, client: TestClient, graph_id: str) -> None:
        """Test an unreachable destination is a normal response."""
        graphs_db[graph_id].graph.add_node(9, 9)

        response = client.post(
            f"{GRAPHS_URL}/{graph_id}/routes", json={"start": "0-0", "end": "9-9"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["found"] is False
        assert data["path"] == []
        assert data["distance"] is None
        assert data["stats"] is None
        assert len(data["visited_nodes"]) == 64

    def test_node_outside_grid(self, client: TestClient, graph_id: str) -> None:
        """Test a well-formed id that is not on the grid."""
        response = client.post(
            f"{GRAPHS_URL}/{graph_id}/routes", json={"start": "0-0", "end": "8-8"}
        )

        assert response.status_code == 404
        data = response.json()
        assert data["error_code"] == "INVALID_NODE"
        assert data["details"] == {"node_id": "8-8", "role": "end"}

    @pytest.mark.parametrize("start", ["abc", "1_1", "-1-2", ""])
    def test_malformed_node_id(self, client: TestClient, graph_id: str, start: str) -> None:
        """Test ids that are not in 'x-y' form."""
        response = client.post(
            f"{GRAPHS_URL}/{graph_id}/routes", json={"start": start, "end": "1-1"}
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_concurrent_routes_leave_no_log_context(self, client: TestClient) -> None:
        """Test overlapping route requests do not leak graph ids into later logs."""
        ids = [
            client.post(GRAPHS_URL, json={"grid_size": 4, "seed": seed}).json()["graph_id"]
            for seed in range(4)
        ]

        def solve(graph_id: str) -> int:
            return client.post(
                f"{GRAPHS_URL}/{graph_id}/routes", json={"start": "0-0", "end": "3-3"}
            ).status_code

        with ThreadPoolExecutor(max_workers=4) as executor:
            statuses = list(executor.map(solve, ids * 3))

        assert statuses == [200] * 12
        record = logging.getLogRecordFactory()(
            "test", logging.INFO, "", 0, "after", (), None
        )
        assert not hasattr(record, "graph_id")

    def test_unknown_graph(self, client: TestClient) -> None:
        """Test routing on a graph that does not exist."""
        response = client.post(
            f"{GRAPHS_URL}/nope/routes", json={"start": "0-0", "end": "1-1"}
        )

        assert response.status_code == 404
        assert response.json()["error_code"] == "GRAPH_NOT_FOUND"


class TestEmergencyData:
    """Tests for GET /graphs/{id}/emergency-data."""

    def test_default_grid(self, client: TestClient, graph_id: str) -> None:
        """Test the full catalog is returned for the default grid."""
        response = client.get(f"{GRAPHS_URL}/{graph_id}/emergency-data")

        assert response.status_code == 200
        data = response.json()
        assert len(data["emergency_centers"]) == 4
        assert len(data["incidents"]) == 4
        assert data["emergency_centers"][0] == {
            "id": "hospital-1",
            "name": "City General Hospital",
            "type": "hospital",
            "node": "1-1",
        }
        assert data["incidents"][1]["severity"] == "critical"

    def test_small_grid(self, client: TestClient) -> None:
        """Test entries off a small grid are left out."""
        graph_id = client.post(GRAPHS_URL, json={"grid_size": 3, "seed": 1}).json()["graph_id"]

        data = client.get(f"{GRAPHS_URL}/{graph_id}/emergency-data").json()

        assert [center["id"] for center in data["emergency_centers"]] == ["hospital-1"]
        assert data["incidents"] == []
