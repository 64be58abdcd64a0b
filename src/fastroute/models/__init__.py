"""
Data models and schemas.
"""

from .errors import ErrorDetail, ErrorResponse
from .routing import (
    EdgeSchema,
    EmergencyCenterSchema,
    EmergencyDataResponse,
    GraphCreateRequest,
    GraphResponse,
    GraphSummary,
    IncidentSchema,
    NodeSchema,
    RouteRequest,
    RouteResponse,
    RouteStatsSchema,
)

__all__ = [
    "EdgeSchema",
    "EmergencyCenterSchema",
    "EmergencyDataResponse",
    "ErrorDetail",
    "ErrorResponse",
    "GraphCreateRequest",
    "GraphResponse",
    "GraphSummary",
    "IncidentSchema",
    "NodeSchema",
    "RouteRequest",
    "RouteResponse",
    "RouteStatsSchema",
]
