"""Common Pydantic schemas."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Violation(BaseModel):
    """Validation error violation."""

    path: str = Field(..., description="JSON path to the invalid field")
    message: str = Field(..., description="Validation error message")


class Problem(BaseModel):
    """RFC 9457 Problem Details response; error-specific members are carried as extensions."""

    model_config = ConfigDict(extra="allow")

    type: Optional[str] = Field(None, description="Problem type URI")
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: Optional[str] = Field(None, description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="URI reference for this occurrence")
    code: Optional[str] = Field(None, description="Application-specific error code")
    retryable: Optional[bool] = Field(None, description="Whether the operation can be retried")
    violations: Optional[List[Violation]] = Field(None, description="Validation errors")


def problem_responses(*status_codes: int) -> dict:
    """OpenAPI ``responses`` entries documenting Problem bodies for the given status codes."""
    descriptions = {
        401: "Missing or invalid bearer token",
        403: "Caller lacks the required capability",
        404: "Resource not found in the caller's hotel",
        409: "Status transition not allowed",
        412: "Booking or venue is not in a state that allows the operation",
        422: "Request failed validation or capacity rules",
        429: "Too many requests",
    }
    return {
        code: {"model": Problem, "description": descriptions[code]}
        for code in status_codes
    }


class PaginatedResponse(BaseModel):
    """Base class for paginated responses."""

    next_cursor: Optional[str] = Field(None, description="Cursor for next page")
