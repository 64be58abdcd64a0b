"""
Summary statistics for a solved route.

Each street on the route is bucketed by weight into a road type and a
congestion level. The ``efficiency`` figure is nodes on the path divided by
total travel time; it mixes a node count with a time, is not bounded to
[0, 1], and is kept in this form for compatibility with existing consumers.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from fastroute.core.errors import MalformedGraphError
from fastroute.core.routing.graph import CityGraph, round_half_up
from fastroute.core.routing.pathfinding import NoRoute, Route

logger = logging.getLogger(__name__)

MAIN_ROAD_MAX_WEIGHT = 1.0
NORMAL_TRAFFIC_MAX_WEIGHT = 2.0
HEAVY_TRAFFIC_MAX_WEIGHT = 3.0


class RoadType(str, Enum):
    MAIN = "main"
    SECONDARY = "secondary"


class TrafficCondition(str, Enum):
    NORMAL = "normal"
    HEAVY = "heavy"
    BLOCKED = "blocked"


class EfficiencyRating(str, Enum):
    """Display bands for the efficiency figure."""

    EXCELLENT = "excellent"
    GOOD = "good"
    AVERAGE = "average"
    POOR = "poor"


def classify_edge(weight: float) -> Tuple[RoadType, TrafficCondition]:
    """
    Bucket a street by its weight.

    Args:
        weight: Edge weight

    Returns:
        (road type, traffic condition)
    """
    if weight < MAIN_ROAD_MAX_WEIGHT:
        return RoadType.MAIN, TrafficCondition.NORMAL
    if weight < NORMAL_TRAFFIC_MAX_WEIGHT:
        return RoadType.SECONDARY, TrafficCondition.NORMAL
    if weight < HEAVY_TRAFFIC_MAX_WEIGHT:
        return RoadType.SECONDARY, TrafficCondition.HEAVY
    return RoadType.SECONDARY, TrafficCondition.BLOCKED


def efficiency_rating(efficiency: float) -> EfficiencyRating:
    if efficiency > 0.8:
        return EfficiencyRating.EXCELLENT
    if efficiency > 0.6:
        return EfficiencyRating.GOOD
    if efficiency > 0.4:
        return EfficiencyRating.AVERAGE
    return EfficiencyRating.POOR


def format_travel_time(minutes: float) -> str:
    """
    Format a travel time given in minutes as ``"Xm Ys"``.

    Example:
        >>> format_travel_time(2.5)
        '2m 30s'
    """
    whole_minutes = math.floor(minutes)
    seconds = math.floor((minutes - whole_minutes) * 60 + 0.5)
    if seconds == 60:
        whole_minutes, seconds = whole_minutes + 1, 0
    return f"{whole_minutes}m {seconds}s"


@dataclass(frozen=True)
class RoadTypeCounts:
    main: int = 0
    secondary: int = 0

    @property
    def total(self) -> int:
        return self.main + self.secondary


@dataclass(frozen=True)
class TrafficConditionCounts:
    normal: int = 0
    heavy: int = 0
    blocked: int = 0

    @property
    def total(self) -> int:
        return self.normal + self.heavy + self.blocked


@dataclass(frozen=True)
class RouteStats:
    """
    Derived statistics for one route.

    Attributes:
        road_types: Street count per road type
        traffic_conditions: Street count per congestion level
        total_blocks: Number of streets traversed
        total_time: Sum of street weights
        estimated_time: ``total_time`` rounded to two decimals
        efficiency: Path node count divided by total time, two decimals
    """

    road_types: RoadTypeCounts
    traffic_conditions: TrafficConditionCounts
    total_blocks: int
    total_time: float
    estimated_time: float
    efficiency: float

    @property
    def rating(self) -> EfficiencyRating:
        return efficiency_rating(self.efficiency)

    @property
    def formatted_time(self) -> str:
        return format_travel_time(self.estimated_time)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the keys the rendering layer expects."""
        return {
            "estimatedTime": self.estimated_time,
            "totalBlocks": self.total_blocks,
            "roadTypes": {"main": self.road_types.main, "secondary": self.road_types.secondary},
            "trafficConditions": {
                "normal": self.traffic_conditions.normal,
                "heavy": self.traffic_conditions.heavy,
                "blocked": self.traffic_conditions.blocked,
            },
            "efficiency": self.efficiency,
        }


def compute_route_stats(
    route: Union[Route, NoRoute, None], graph: CityGraph
) -> Optional[RouteStats]:
    """
    Compute statistics for a route solved on ``graph``.

    Args:
        route: Solver result
        graph: Graph the route was solved against

    Returns:
        RouteStats, or None when the route has fewer than two nodes
        (no route, or start equal to end)

    Raises:
        MalformedGraphError: If consecutive path nodes share no edge
    """
    if route is None or not route.found or len(route.path) < 2:
        return None

    road_types = {road_type: 0 for road_type in RoadType}
    conditions = {condition: 0 for condition in TrafficCondition}
    total_time = 0.0
    total_blocks = 0

    for current_id, next_id in zip(route.path, route.path[1:]):
        edge = graph.get_edge(current_id, next_id)
        if edge is None:
            raise MalformedGraphError(
                f"Route step {current_id} -> {next_id} has no edge in the graph",
                edge=(current_id, next_id),
            )

        total_time += edge.weight
        total_blocks += 1

        road_type, condition = classify_edge(edge.weight)
        road_types[road_type] += 1
        conditions[condition] += 1

    logger.debug(
        f"Route stats: {total_blocks} blocks, {total_time:.2f} total time, "
        f"{road_types[RoadType.MAIN]} main roads"
    )

    return RouteStats(
        road_types=RoadTypeCounts(
            main=road_types[RoadType.MAIN], secondary=road_types[RoadType.SECONDARY]
        ),
        traffic_conditions=TrafficConditionCounts(
            normal=conditions[TrafficCondition.NORMAL],
            heavy=conditions[TrafficCondition.HEAVY],
            blocked=conditions[TrafficCondition.BLOCKED],
        ),
        total_blocks=total_blocks,
        total_time=total_time,
        estimated_time=round_half_up(total_time, 2),
        efficiency=round_half_up(len(route.path) / total_time, 2),
    )

