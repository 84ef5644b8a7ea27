"""Request correlation and access logging middleware."""

import json
import logging
import time
import uuid
from typing import Callable, Optional

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .config import settings
from .observability import metrics_collector

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Only identifiers are logged; booking bodies also carry customer notes and requests
LOGGED_BODY_FIELDS = ("booking_id", "venue_id", "customer_id", "status")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with a correlation id.

    Reuses the caller's X-Request-ID when present, echoes it on the response
    and binds it to the structlog context while the request runs.
    """

    def __init__(self, app: ASGIApp, header_name: str = REQUEST_ID_HEADER):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and add request ID."""
        request_id = request.headers.get(self.header_name)
        if not request_id:
            request_id = str(uuid.uuid4())

        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers[self.header_name] = request_id

        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Access log plus per-route request counter.

    Probe and scrape endpoints are skipped. With ``log_booking_fields`` the
    booking identifiers found in JSON bodies are added to the log line.
    """

    def __init__(
        self,
        app: ASGIApp,
        log_booking_fields: bool = False,
        skip_paths: Optional[list] = None,
    ):
        super().__init__(app)
        self.log_booking_fields = log_booking_fields
        self.skip_paths = skip_paths or ["/health", "/metrics", "/favicon.ico"]

    def _should_log(self, path: str) -> bool:
        """Check if request should be logged."""
        return path not in self.skip_paths

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP address from request."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host

        return "unknown"

    def _endpoint_label(self, request: Request) -> str:
        """Route template when matched, so metric labels stay bounded."""
        route = request.scope.get("route")
        return getattr(route, "path", None) or request.url.path

    async def _booking_fields(self, request: Request) -> dict:
        try:
            payload = json.loads(await request.body() or b"{}")
        except ValueError:
            return {}
        if not isinstance(payload, dict):
            return {}
        return {field: payload[field] for field in LOGGED_BODY_FIELDS if field in payload}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and log information."""
        if not self._should_log(request.url.path):
            return await call_next(request)

        start_time = time.perf_counter()
        request_id = getattr(request.state, "request_id", "unknown")

        log_data = {
            "event": "request_started",
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client_ip": self._get_client_ip(request),
            "user_agent": request.headers.get("User-Agent", "unknown"),
            "content_type": request.headers.get("Content-Type"),
            "content_length": request.headers.get("Content-Length"),
        }

        if self.log_booking_fields and request.method == "POST":
            log_data.update(await self._booking_fields(request))

        logger.info("HTTP request started", extra=log_data)

        response = await call_next(request)
        status_code = response.status_code
        duration = time.perf_counter() - start_time

        metrics_collector.record_request(request.method, self._endpoint_label(request), status_code)

        log_data.update({
            "event": "request_completed",
            "status_code": status_code,
            "duration_ms": round(duration * 1000, 2),
            "response_size": response.headers.get("Content-Length"),
        })

        if status_code >= 500:
            logger.error("HTTP request completed with server error", extra=log_data)
        elif status_code >= 400:
            logger.warning("HTTP request completed with client error", extra=log_data)
        else:
            logger.info("HTTP request completed successfully", extra=log_data)

        return response


def setup_middleware(app, enable_logging: bool = True) -> None:
    """
    Setup all middleware on the FastAPI app.

    Args:
        app: FastAPI application instance
        enable_logging: Whether to enable request logging middleware
    """
    # Last added runs first
    if enable_logging:
        app.add_middleware(
            LoggingMiddleware,
            log_booking_fields=not settings.is_production,
        )

    app.add_middleware(RequestIDMiddleware)
