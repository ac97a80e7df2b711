"""
Observability module for the SOP Script service.

Provides:
- Structured logging with JSON format and correlation IDs
- Request correlation ID (request_id) generation and propagation
- Prometheus metrics collection (HTTP, compiler)
- Request tracking middleware for latency and status codes

Usage:
    from sop_script.core.observability import (
        get_request_id,
        set_correlation_id,
        metrics,
    )
"""

import json
import logging
import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from fastapi import Request, Response
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match
from starlette.types import ASGIApp

# ============================================================================
# Context Variables for Request Tracking
# ============================================================================

# Correlation ID - links all logs for a single request
_request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")


def generate_request_id() -> str:
    """Generate a unique request ID for correlation."""
    return str(uuid.uuid4())


def get_request_id() -> str:
    """Get the current request ID from context."""
    return _request_id_ctx.get()


def set_correlation_id(request_id: str) -> None:
    """Set the correlation ID for the current request context."""
    _request_id_ctx.set(request_id)


# ============================================================================
# Structured Logging Configuration
# ============================================================================

# LogRecord attributes that are not user-supplied extras
_RESERVED_RECORD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs as JSON with standard fields:
    - timestamp: ISO 8601 format
    - level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - logger: Logger name
    - message: Log message
    - request_id: Correlation ID (if available)
    - trace_id / span_id: OpenTelemetry context (if a span is recording)
    - extra: Any additional context from logging.extra
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = get_request_id()
        if request_id:
            log_entry["request_id"] = request_id

        from sop_script.core.telemetry import get_span_id, get_trace_id

        trace_id = get_trace_id()
        if trace_id:
            log_entry["trace_id"] = trace_id
        span_id = get_span_id()
        if span_id:
            log_entry["span_id"] = span_id

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
            }

        log_entry["file"] = record.pathname
        log_entry["line"] = record.lineno
        log_entry["function"] = record.funcName

        extra_keys = {
            k: v for k, v in record.__dict__.items() if k not in _RESERVED_RECORD_ATTRS
        }
        if extra_keys:
            log_entry["extra"] = extra_keys

        return json.dumps(log_entry, default=str)


def configure_structured_logging(level: str = "INFO") -> None:
    """
    Configure root logger with structured JSON formatting.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())

    root_logger.addHandler(handler)


# ============================================================================
# Prometheus Metrics
# ============================================================================

# Use a custom registry to avoid conflicts with other Prometheus metrics
_registry = CollectorRegistry()


class Metrics:
    """
    Centralized metrics collection for the application.

    Metrics groups:
    - HTTP: Request rate, errors, latency
    - Compiler: Compilation outcome, duration, script size, diagnostics
    """

    def __init__(self, registry: CollectorRegistry) -> None:
        self.registry = registry

        # -------------------------------------------------------------------
        # HTTP Metrics
        # -------------------------------------------------------------------

        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "route", "status_code"],
            registry=self.registry,
        )

        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "HTTP request latency in seconds",
            ["method", "route"],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
            registry=self.registry,
        )

        self.http_requests_in_progress = Gauge(
            "http_requests_in_progress",
            "HTTP requests currently in progress",
            ["method", "route"],
            registry=self.registry,
        )

        self.http_errors_total = Counter(
            "http_errors_total",
            "Total HTTP errors",
            ["error_type", "method", "route"],
            registry=self.registry,
        )

        # -------------------------------------------------------------------
        # Compiler Metrics
        # -------------------------------------------------------------------

        # Compilation is sub-millisecond for typical SOPs
        self.compiler_duration_seconds = Histogram(
            "s1_compiler_duration_seconds",
            "SOP compilation duration in seconds",
            buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.5),
            registry=self.registry,
        )

        self.compiler_rules_count = Histogram(
            "s1_compiler_rules_count",
            "Number of enabled rules in compiled SOPs",
            buckets=(1, 5, 10, 25, 50, 100, 250),
            registry=self.registry,
        )

        self.compiler_script_bytes = Histogram(
            "s1_compiler_script_bytes",
            "Size of compiled S1 scripts in bytes",
            buckets=(256, 1024, 4096, 16384, 65536, 262144, 1048576),
            registry=self.registry,
        )

        self.compiler_compilations_total = Counter(
            "s1_compiler_compilations_total",
            "Total SOP compilations by validation outcome",
            ["status"],
            registry=self.registry,
        )

        self.compiler_diagnostics_total = Counter(
            "s1_compiler_diagnostics_total",
            "Validation diagnostics reported during compilation",
            ["severity"],
            registry=self.registry,
        )


# Global metrics instance
metrics = Metrics(_registry)


# ============================================================================
# Middleware
# ============================================================================


UNMATCHED_ROUTE = "unmatched"


def route_template(request: Request) -> str:
    """
    Route template used as the metrics ``route`` label.

    Paths that match no route share the UNMATCHED_ROUTE label so arbitrary
    404 traffic cannot grow the label set.
    """
    router = getattr(request.scope.get("app"), "router", None)
    partial = None
    for route in getattr(router, "routes", ()):
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return route.path
        if match == Match.PARTIAL and partial is None:
            partial = route.path
    return partial or UNMATCHED_ROUTE


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds observability to all requests.

    Features:
    - Generates and propagates request_id (correlation ID)
    - Logs all requests with structured fields
    - Tracks request latency
    - Records Prometheus metrics
    - Adds request_id to response headers
    """

    def __init__(
        self,
        app: ASGIApp,
        metrics_instance: Metrics | None = None,
        skip_paths: list[str] | None = None,
        request_id_header: str = "X-Request-ID",
    ) -> None:
        """
        Initialize observability middleware.

        Args:
            app: ASGI application
            metrics_instance: Metrics instance (uses global if None)
            skip_paths: Paths to skip detailed logging (e.g., health checks)
            request_id_header: Header carrying the correlation ID
        """
        super().__init__(app)
        self.metrics = metrics_instance or metrics
        self.skip_paths = set(skip_paths or ["/api/v1/health", "/metrics"])
        self.request_id_header = request_id_header

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.request_id_header) or generate_request_id()
        set_correlation_id(request_id)

        route_pattern = route_template(request)
        is_skipped_path = any(request.url.path.startswith(path) for path in self.skip_paths)

        self.metrics.http_requests_in_progress.labels(
            method=request.method, route=route_pattern
        ).inc()

        start_time = time.time()
        logger = logging.getLogger("sop_script.request")

        try:
            response = await call_next(request)

            latency_ms = (time.time() - start_time) * 1000

            self.metrics.http_requests_total.labels(
                method=request.method,
                route=route_pattern,
                status_code=response.status_code,
            ).inc()
            self.metrics.http_request_duration_seconds.labels(
                method=request.method, route=route_pattern
            ).observe(latency_ms / 1000)

            response.headers[self.request_id_header] = request_id

            if not is_skipped_path:
                logger.info(
                    f"{request.method} {request.url.path}",
                    extra={
                        "method": request.method,
                        "route": route_pattern,
                        "status_code": response.status_code,
                        "latency_ms": round(latency_ms, 2),
                    },
                )

            return response

        except Exception as e:
            latency_ms = (time.time() - start_time) * 1000

            error_type = type(e).__name__
            self.metrics.http_requests_total.labels(
                method=request.method,
                route=route_pattern,
                status_code=500,
            ).inc()
            self.metrics.http_errors_total.labels(
                error_type=error_type, method=request.method, route=route_pattern
            ).inc()
            self.metrics.http_request_duration_seconds.labels(
                method=request.method, route=route_pattern
            ).observe(latency_ms / 1000)

            logger.error(
                f"{request.method} {request.url.path} - {error_type}: {str(e)}",
                extra={
                    "method": request.method,
                    "route": route_pattern,
                    "status_code": 500,
                    "latency_ms": round(latency_ms, 2),
                    "error_type": error_type,
                },
                exc_info=True,
            )

            # Re-raise for exception handlers
            raise

        finally:
            self.metrics.http_requests_in_progress.labels(
                method=request.method, route=route_pattern
            ).dec()


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format for scraping.
    """
    return Response(
        content=generate_latest(_registry),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )


def extract_request_context(request: Request) -> dict[str, Any]:
    """
    Extract observability context from request for logging.

    Args:
        request: FastAPI Request object

    Returns:
        Dictionary with request_id and path
    """
    return {
        "request_id": get_request_id(),
        "path": request.url.path,
    }
