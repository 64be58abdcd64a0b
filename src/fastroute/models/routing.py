"""
Request and response schemas for the routing API.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fastroute.core.routing.nodes import parse_node_id


class GraphCreateRequest(BaseModel):
    """Parameters for generating a city graph."""

    grid_size: Optional[int] = Field(
        None, ge=1, description="Intersections per side (defaults to configured size)"
    )
    seed: Optional[int] = Field(None, ge=0, description="Random seed for street weights")

    model_config = ConfigDict(json_schema_extra={"example": {"grid_size": 8, "seed": 42}})


class NodeSchema(BaseModel):
    id: str
    x: int
    y: int


class EdgeSchema(BaseModel):
    weight: float
    type: str


class GraphSummary(BaseModel):
    """Metadata for a generated graph."""

    graph_id: str
    grid_size: int
    seed: Optional[int] = None
    num_nodes: int
    num_edges: int
    is_connected: bool
    min_weight: Optional[float] = None
    max_weight: Optional[float] = None


class GraphResponse(GraphSummary):
    """Full graph in the rendering layer's adjacency form."""

    nodes: List[NodeSchema]
    graph: Dict[str, Dict[str, EdgeSchema]]


class RouteRequest(BaseModel):
    """Start and end intersections, as ``"x-y"`` ids."""

    start: str = Field(..., description="Start node id", examples=["0-0"])
    end: str = Field(..., description="End node id", examples=["7-7"])

    @field_validator("start", "end")
    @classmethod
    def validate_node_id(cls, value: str) -> str:
        """Reject ids that are not two non-negative integers joined by '-'."""
        parse_node_id(value)
        return value.strip()


class RoadTypesSchema(BaseModel):
    main: int
    secondary: int


class TrafficConditionsSchema(BaseModel):
    normal: int
    heavy: int
    blocked: int


class RouteStatsSchema(BaseModel):
    """Route statistics, keyed the way the rendering layer reads them."""

    model_config = ConfigDict(populate_by_name=True)

    estimated_time: float = Field(..., alias="estimatedTime")
    total_blocks: int = Field(..., alias="totalBlocks")
    road_types: RoadTypesSchema = Field(..., alias="roadTypes")
    traffic_conditions: TrafficConditionsSchema = Field(..., alias="trafficConditions")
    efficiency: float
    rating: str
    formatted_time: str = Field(..., alias="formattedTime")


class RouteResponse(BaseModel):
    """Result of a route query. ``found`` is false when no path exists."""

    found: bool
    start: str
    end: str
    path: List[str] = Field(default_factory=list)
    distance: Optional[float] = None
    visited_nodes: List[str] = Field(default_factory=list)
    stats: Optional[RouteStatsSchema] = None


class EmergencyCenterSchema(BaseModel):
    id: str
    name: str
    type: str
    node: str


class IncidentSchema(BaseModel):
    id: str
    name: str
    type: str
    node: str
    severity: str


class EmergencyDataResponse(BaseModel):
    emergency_centers: List[EmergencyCenterSchema]
    incidents: List[IncidentSchema]
