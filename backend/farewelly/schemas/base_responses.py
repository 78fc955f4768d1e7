"""
Base response schemas for standardized API responses.

Every endpoint answers with the same envelope:
``{success, data?, message?, error?, pagination?}``. Errors are rendered by
the handlers in ``farewelly.errors``; this module covers the success side.
"""

from datetime import datetime, timezone
from typing import Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class PaginationInfo(BaseModel):
    page: int = Field(description="Current page number", ge=1)
    limit: int = Field(description="Items per page", ge=1, le=100)
    total: int = Field(description="Total number of matching items", ge=0)
    pages: int = Field(description="Total number of pages", ge=0)


class ApiResponse(BaseModel, Generic[T]):
    """Uniform success envelope."""

    success: bool = Field(default=True, description="Operation success status")
    data: Optional[T] = Field(default=None, description="Response payload")
    message: Optional[str] = Field(default=None, description="Human-readable message")
    pagination: Optional[PaginationInfo] = Field(default=None)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "data": {},
                "message": "Bookings retrieved successfully",
                "pagination": {"page": 1, "limit": 10, "total": 42, "pages": 5},
            }
        }
    )


class ErrorResponse(BaseModel):
    """Envelope returned for every failed request."""

    success: bool = Field(default=False)
    error: str = Field(description="Human-readable error message")
    code: Optional[str] = Field(default=None, description="Error code for programmatic handling")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": False,
                "error": "Cannot complete booking with status pending",
                "code": "INVALID_TRANSITION",
            }
        }
    )


class HealthCheckResponse(BaseModel):
    """Standard health check response."""

    status: str = Field(description="Service health status", pattern="^(healthy|degraded|unhealthy)$")
    service: str = Field(default="Farewelly API", description="Service name")
    version: str = Field(description="API version")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    checks: Dict[str, bool] = Field(description="Individual component health checks")
