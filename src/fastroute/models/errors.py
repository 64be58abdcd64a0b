"""
Pydantic models for standardized error responses.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class ErrorDetail(BaseModel):
    """
    Detailed information about a specific error.

    Used for validation errors with multiple field-level issues.
    """

    field: Optional[str] = Field(None, description="Field name that caused the error")
    message: str = Field(..., description="Error message for this field")
    code: Optional[str] = Field(None, description="Error code for this specific issue")


class ErrorResponse(BaseModel):
    """
    Standardized error response model for all API errors.

    Attributes:
        error_code: Machine-readable error identifier (e.g., 'INVALID_NODE')
        message: Human-readable error message
        details: Optional dictionary with additional technical details
        timestamp: When the error occurred (UTC)
        suggestions: Optional list of actionable suggestions for resolution
        errors: Optional list of detailed field-level errors
    """

    error_code: str = Field(
        ...,
        description="Machine-readable error code",
        examples=["INVALID_NODE", "GRAPH_NOT_FOUND", "VALIDATION_ERROR"],
    )
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional technical details about the error",
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the error occurred (UTC)",
    )
    suggestions: Optional[List[str]] = Field(
        None,
        description="Actionable suggestions for resolving the error",
    )
    errors: Optional[List[ErrorDetail]] = Field(
        None,
        description="Detailed field-level errors (for validation)",
    )

    @field_serializer("timestamp")
    def serialize_timestamp(self, timestamp: datetime, _info: Any) -> str:
        """Serialize timestamp to ISO format string."""
        return timestamp.isoformat()

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error_code": "INVALID_NODE",
                "message": "End node 9-9 is not in the graph",
                "details": {"node_id": "9-9", "role": "end"},
                "timestamp": "2026-01-12T09:30:00+00:00",
                "suggestions": ["Check that both coordinates are inside the grid"],
            }
        }
    )
