"""
Taskforge Backend — Shared API Schemas
========================================

What:  Base model, pagination envelope, and error/health bodies shared by
       every resource.
How:   Field names are snake_case in Python and camelCase on the wire
       (`total_pages` ↔ `totalPages`). Inputs accept either spelling.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Generic, List, Optional, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ItemT = TypeVar("ItemT")


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive values for DateTime(timezone=True); they are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Serialized with a UTC offset whichever database the row came from
UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class ApiModel(BaseModel):
    """Base for every request/response schema: camelCase aliases, ORM reads."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Pagination
# ══════════════════════════════════════════════════════════════════════════


class PaginationMeta(ApiModel):
    """
    Pagination block of a list response.

    `total_pages = ceil(total / limit)`; `total` and the page items are
    computed from the same filter within one request.
    """
    page: int = Field(description="1-based page number that was returned")
    limit: int = Field(description="Page size that was requested")
    total: int = Field(description="Rows matching the filter across all pages")
    total_pages: int = Field(description="ceil(total / limit)")


class PaginatedResponse(ApiModel, Generic[ItemT]):
    data: List[ItemT] = Field(description="Items on this page, newest first")
    pagination: PaginationMeta


class SuccessResponse(ApiModel):
    success: bool = True


# ══════════════════════════════════════════════════════════════════════════
# Error / Health
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(ApiModel):
    """
    Error body for every failed request.

    Example:
        {
            "error": "Unauthenticated",
            "message": "Invalid email or password",
            "statusCode": 401
        }
    """
    error: str = Field(description="Error kind: ValidationError, Unauthenticated, Conflict, NotFound, Internal")
    message: str = Field(description="Human-readable error description")
    status_code: int = Field(description="HTTP status code, repeated in the body")
    details: Optional[List[Dict[str, Any]]] = Field(
        default=None,
        description="Field-level problems for request validation failures",
    )


class HealthResponse(ApiModel):
    status: str = Field(description="healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since the app was created")
