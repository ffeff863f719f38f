"""Common schemas shared across API endpoints."""

from datetime import datetime, timezone
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


def _utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope wrapping every payload."""

    success: bool = Field(default=True, description="Always true on success")
    message: str = Field(..., description="Human-readable outcome")
    data: Optional[T] = Field(default=None, description="Response payload")


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "success": False,
                "message": "User not found",
                "error": "USER_NOT_FOUND",
            },
        },
    )

    success: bool = Field(default=False, description="Always false on errors")
    message: str = Field(..., description="Error message")
    error: str = Field(..., description="Error code for programmatic handling")
    errors: Optional[list[str]] = Field(
        default=None,
        description="Individual problems, in field order",
    )
    path: Optional[str] = None
    method: Optional[str] = None
    timestamp: Optional[datetime] = None
    retry_after: Optional[int] = Field(
        default=None,
        alias="retryAfter",
        description="Seconds until the rate-limit window resets",
    )
    available_routes: Optional[list[str]] = Field(
        default=None,
        alias="availableRoutes",
    )
    detail: Optional[str] = Field(default=None, description="Debug only")
    stack: Optional[list[str]] = Field(default=None, description="Debug only")

    def to_content(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str = Field(..., description="Health status")
    message: str = Field(..., description="Status description")
    timestamp: datetime = Field(default_factory=_utc_now)
    environment: str = Field(..., description="Runtime environment")
    version: str = Field(..., description="API version")
    database: dict[str, Any] = Field(
        default_factory=dict,
        description="Connection pool statistics",
    )
