"""
Custom exception hierarchy for FastRoute.

Expected routing outcomes are not exceptions: an unreachable destination is
returned as a ``NoRoute`` value and undefined route statistics as ``None``.
The classes below cover invalid input and broken graph invariants.
"""

from typing import Any, Dict, List, Optional


class FastRouteException(Exception):
    """
    Base exception for all FastRoute-specific errors.

    Attributes:
        error_code: String identifier for the error type
        message: User-friendly error message
        details: Technical details for logging/debugging
        status_code: HTTP status code for API responses
        suggestions: Optional list of resolution suggestions
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize FastRouteException.

        Args:
            message: User-friendly error message
            error_code: String identifier for the error type
            status_code: HTTP status code (default: 500)
            details: Technical details for logging
            suggestions: List of suggestions for resolution
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for API responses.

        Returns:
            Dictionary representation of the error
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "suggestions": self.suggestions,
        }

    def __str__(self) -> str:
        return f"{self.error_code}: {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"error_code='{self.error_code}', "
            f"message='{self.message}', "
            f"status_code={self.status_code})"
        )


class ValidationError(FastRouteException):
    """
    Raised when caller input is out of range or malformed.

    Maps to HTTP 400 Bad Request.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if field:
            error_details["field"] = field

        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            details=error_details,
            suggestions=suggestions or ["Check the input format and try again"],
        )


class InvalidNodeError(FastRouteException):
    """
    Raised when a start or end node is not part of the graph.

    Callers are expected to recover from this; it is never retried.
    Maps to HTTP 404 Not Found.
    """

    def __init__(
        self,
        message: str,
        node_id: Optional[str] = None,
        role: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize InvalidNodeError.

        Args:
            message: User-friendly error message
            node_id: The offending node reference, as given by the caller
            role: Which endpoint was invalid ('start' or 'end')
            details: Technical details about the failure
            suggestions: List of suggestions for resolution
        """
        error_details = details or {}
        if node_id is not None:
            error_details["node_id"] = node_id
        if role:
            error_details["role"] = role

        default_suggestions = [
            "Node ids use the 'x-y' form, e.g. '0-0'",
            "Check that both coordinates are inside the grid",
        ]

        super().__init__(
            message=message,
            error_code="INVALID_NODE",
            status_code=404,
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )


class MalformedGraphError(FastRouteException):
    """
    Raised when a graph invariant is violated.

    Covers edges that reference nodes missing from the catalog, self-loops,
    asymmetric edge pairs, and routes whose consecutive nodes share no edge.
    This is a programming error and must not be swallowed.
    Maps to HTTP 500 Internal Server Error.
    """

    def __init__(
        self,
        message: str,
        edge: Optional[tuple] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if edge is not None:
            error_details["edge"] = [str(node) for node in edge]

        super().__init__(
            message=message,
            error_code="MALFORMED_GRAPH",
            status_code=500,
            details=error_details,
            suggestions=suggestions or ["Regenerate the graph and retry the query"],
        )


class GraphNotFoundError(FastRouteException):
    """
    Raised when an API request references a graph that was never generated.

    Maps to HTTP 404 Not Found.
    """

    def __init__(self, graph_id: str):
        super().__init__(
            message=f"Graph {graph_id} not found",
            error_code="GRAPH_NOT_FOUND",
            status_code=404,
            details={"graph_id": graph_id},
            suggestions=["Generate a graph with POST /graphs first"],
        )


class ConfigurationError(FastRouteException):
    """
    Raised when application configuration is invalid.

    Maps to HTTP 500 Internal Server Error.
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if config_key:
            error_details["config_key"] = config_key

        default_suggestions = [
            "Check FASTROUTE_* environment variables are set correctly",
            "Verify .env file syntax",
        ]

        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            status_code=500,
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )
