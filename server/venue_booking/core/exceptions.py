"""Booking engine exceptions following RFC 9457 Problem Details for HTTP APIs."""

import uuid
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..schemas.common import Problem, Violation
from .clock import utcnow


class ProblemDetailsException(HTTPException):
    """
    Base exception class following RFC 9457 Problem Details for HTTP APIs.

    https://tools.ietf.org/rfc/rfc9457.txt
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize Problem Details exception.

        Args:
            status_code: HTTP status code
            title: Short, human-readable summary of the problem type
            detail: Human-readable explanation specific to this occurrence
            type_uri: URI reference that identifies the problem type
            instance: URI reference that identifies the specific occurrence
            extensions: Additional problem-specific information
            headers: HTTP headers to include in response
        """
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type_uri = type_uri or f"about:blank#{status_code}"
        self.instance = instance
        self.extensions = extensions or {}

        self.problem_details = {
            "type": self.type_uri,
            "title": self.title,
            "status": self.status_code,
        }

        if self.detail:
            self.problem_details["detail"] = self.detail

        if self.instance:
            self.problem_details["instance"] = self.instance

        self.problem_details.update(self.extensions)

        super().__init__(
            status_code=status_code,
            detail=self.problem_details,
            headers=headers
        )


class ValidationError(ProblemDetailsException):
    """Exception for request validation errors."""

    def __init__(
        self,
        detail: str = "The request data failed validation",
        errors: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if errors:
            extensions["errors"] = errors

        super().__init__(
            status_code=400,
            title="Validation Error",
            detail=detail,
            type_uri="https://example.com/problems/validation-error",
            instance=instance,
            extensions=extensions,
        )


class AuthenticationError(ProblemDetailsException):
    """Exception for authentication errors."""

    def __init__(
        self,
        detail: str = "Authentication credentials are required",
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=401,
            title="Authentication Required",
            detail=detail,
            type_uri="https://example.com/problems/authentication-required",
            instance=instance,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(ProblemDetailsException):
    """Exception for authorization errors (role or tenant mismatch)."""

    def __init__(
        self,
        detail: str = "Insufficient permissions to access this resource",
        required_permissions: Optional[list] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if required_permissions:
            extensions["required_permissions"] = required_permissions

        super().__init__(
            status_code=403,
            title="Access Forbidden",
            detail=detail,
            type_uri="https://example.com/problems/access-forbidden",
            instance=instance,
            extensions=extensions,
        )


class NotFoundError(ProblemDetailsException):
    """
    Exception for resource not found errors.

    Also raised for resources owned by another tenant, so callers cannot
    distinguish "missing" from "not yours".
    """

    def __init__(
        self,
        resource_type: str = "resource",
        resource_id: Optional[str] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"The requested {resource_type}"
            if resource_id:
                detail += f" with ID '{resource_id}'"
            detail += " could not be found"

        extensions = {
            "resource_type": resource_type,
        }
        if resource_id:
            extensions["resource_id"] = resource_id

        super().__init__(
            status_code=404,
            title="Resource Not Found",
            detail=detail,
            type_uri="https://example.com/problems/resource-not-found",
            instance=instance,
            extensions=extensions,
        )


class RateLimitError(ProblemDetailsException):
    """Exception for rate limit errors."""

    def __init__(
        self,
        detail: str = "Rate limit exceeded",
        retry_after: Optional[int] = None,
        limit: Optional[int] = None,
        window: Optional[int] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if limit:
            extensions["limit"] = limit
        if window:
            extensions["window_seconds"] = window

        headers = {}
        if retry_after:
            headers["Retry-After"] = str(retry_after)
            extensions["retry_after_seconds"] = retry_after

        super().__init__(
            status_code=429,
            title="Rate Limit Exceeded",
            detail=detail,
            type_uri="https://example.com/problems/rate-limit-exceeded",
            instance=instance,
            extensions=extensions,
            headers=headers,
        )


# Business rule exceptions

class CapacityExceededError(ProblemDetailsException):
    """Exception when the guest count is above the venue capacity and override is disabled."""

    def __init__(
        self,
        requested: int,
        max_capacity: int,
        venue_id: Optional[str] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        excess = requested - max_capacity
        if not detail:
            detail = (
                f"Guest count {requested} exceeds venue capacity {max_capacity} "
                f"by {excess}"
            )

        extensions: Dict[str, Any] = {
            "code": "CAPACITY_EXCEEDED",
            "retryable": False,
            "requested": requested,
            "max_capacity": max_capacity,
            "excess": excess,
        }
        if venue_id:
            extensions["venue_id"] = venue_id

        self.requested = requested
        self.max_capacity = max_capacity

        super().__init__(
            status_code=422,
            title="Capacity Exceeded",
            detail=detail,
            type_uri="https://example.com/problems/capacity-exceeded",
            instance=instance,
            extensions=extensions,
        )


class InvalidTransitionError(ProblemDetailsException):
    """Exception when a booking status change is not allowed from its current status."""

    def __init__(
        self,
        current_status: str,
        requested_status: str,
        allowed_transitions: Optional[list[str]] = None,
        booking_id: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        allowed = allowed_transitions or []
        detail = f"Cannot change booking status from {current_status} to {requested_status}"
        if booking_id:
            detail = f"Cannot change booking {booking_id} from {current_status} to {requested_status}"
        if allowed:
            detail += f" (allowed: {', '.join(allowed)})"
        else:
            detail += f" ({current_status} is a terminal status)"

        extensions: Dict[str, Any] = {
            "code": "INVALID_TRANSITION",
            "retryable": False,
            "current_status": current_status,
            "requested_status": requested_status,
            "allowed_transitions": allowed,
        }
        if booking_id:
            extensions["booking_id"] = booking_id

        self.current_status = current_status
        self.requested_status = requested_status

        super().__init__(
            status_code=409,
            title="Invalid Status Transition",
            detail=detail,
            type_uri="https://example.com/problems/invalid-transition",
            instance=instance,
            extensions=extensions,
        )


class PreconditionFailedError(ProblemDetailsException):
    """Exception when an operation's precondition does not hold."""

    def __init__(
        self,
        detail: str,
        extensions: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=412,
            title="Precondition Failed",
            detail=detail,
            type_uri="https://example.com/problems/precondition-failed",
            instance=instance,
            extensions={
                "code": "PRECONDITION_FAILED",
                "retryable": False,
                **(extensions or {}),
            },
        )


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """
    Exception handler for Problem Details exceptions.

    Args:
        request: FastAPI request object
        exc: Problem Details exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.problem_details,
        headers=exc.headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI request validation failures as a Problem with violations."""
    violations = [
        Violation(
            path=".".join(str(part) for part in error.get("loc", ())),
            message=error.get("msg", "Invalid value"),
        )
        for error in exc.errors()
    ]
    problem = Problem(
        type="https://example.com/problems/validation-error",
        title="Validation Error",
        status=422,
        detail="The request data failed validation",
        instance=str(request.url),
        violations=violations,
    )

    return JSONResponse(
        status_code=422,
        content=problem.model_dump(mode="json", exclude_none=True),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Generic exception handler that converts unhandled exceptions to Problem Details format.

    Args:
        request: FastAPI request object
        exc: Unhandled exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    error_id = str(uuid.uuid4())

    problem_details = {
        "type": "https://example.com/problems/internal-server-error",
        "title": "Internal Server Error",
        "status": 500,
        "detail": "An unexpected error occurred while processing the request",
        "instance": str(request.url),
        "error_id": error_id,
        "timestamp": utcnow().isoformat() + "Z",
    }

    return JSONResponse(
        status_code=500,
        content=problem_details,
    )
