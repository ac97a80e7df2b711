import hmac
import logging

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sop_script import __version__
from sop_script.api.routes.health import router as health_router
from sop_script.api.routes.scripts import router as scripts_router
from sop_script.core.config import settings
from sop_script.core.errors import SopScriptError, get_status_code
from sop_script.core.middleware import RequestSizeLimitMiddleware
from sop_script.core.observability import (
    ObservabilityMiddleware,
    configure_structured_logging,
    extract_request_context,
    metrics_endpoint,
)
from sop_script.core.telemetry import init_telemetry, instrument_fastapi, shutdown_telemetry

# Configure structured logging before creating logger
if settings.observability_structured_logs:
    configure_structured_logging(settings.app_log_level)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Sets up:
    - OpenTelemetry distributed tracing
    - Observability middleware (correlation IDs, metrics, request logs)
    - CORS for the rule editor
    - Request size limit
    - Exception handlers for domain errors
    - API routers
    - Metrics endpoint for Prometheus scraping
    """
    app = FastAPI(
        title="SOP Script Service",
        description="Compiles SOP automation rules into S1 script",
        version=__version__,
    )

    # ============================================================================
    # OpenTelemetry Distributed Tracing
    # ============================================================================

    @app.on_event("startup")
    async def startup_telemetry():
        """Initialize OpenTelemetry tracing and instrumentation."""
        init_telemetry()
        instrument_fastapi(app)

    @app.on_event("shutdown")
    async def shutdown_app():
        """Shutdown OpenTelemetry tracer provider gracefully."""
        shutdown_telemetry()

    # ============================================================================
    # Middleware
    # ============================================================================

    if settings.observability_enabled:
        app.add_middleware(
            ObservabilityMiddleware,
            request_id_header=settings.observability_request_id_header,
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", settings.observability_request_id_header],
    )

    app.add_middleware(RequestSizeLimitMiddleware, max_size_mb=settings.max_request_size_mb)

    # ============================================================================
    # Exception Handlers
    # ============================================================================

    @app.exception_handler(SopScriptError)
    async def sop_script_error_handler(request: Request, exc: SopScriptError) -> JSONResponse:
        """
        Handle domain-specific errors.

        Maps domain exceptions to HTTP status codes and returns structured
        error responses.
        """
        status_code = get_status_code(exc)

        context = {
            "details": exc.details,
            **extract_request_context(request),
        }

        if status_code >= 500:
            logger.error(f"{exc.__class__.__name__}: {exc.message}", extra=context)
        else:
            logger.warning(f"{exc.__class__.__name__}: {exc.message}", extra=context)

        return JSONResponse(
            status_code=status_code,
            content={
                "error": exc.__class__.__name__,
                "message": exc.message,
                "details": exc.details,
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """Consistent error body for FastAPI HTTP exceptions."""
        if exc.status_code >= 500:
            logger.error(f"HTTP {exc.status_code}: {exc.detail}", extra=extract_request_context(request))
        elif exc.status_code in (401, 403):
            logger.warning(
                f"Access denied: {exc.detail}",
                extra={"security_event": True, **extract_request_context(request)},
            )

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": "HTTPException",
                "message": exc.detail,
                "details": {},
            },
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Catch-all handler for unexpected exceptions.

        Logs the full exception and returns a generic 500 error to the client
        without exposing internal implementation details.
        """
        logger.error(
            f"Unhandled exception: {exc}",
            exc_info=True,
            extra=extract_request_context(request),
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "InternalServerError",
                "message": "An unexpected error occurred",
                "details": {},
            },
        )

    # ============================================================================
    # Router Registration
    # ============================================================================

    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(scripts_router, prefix=API_PREFIX)

    # ============================================================================
    # Metrics Endpoint (Prometheus) - Token Protected
    # ============================================================================

    async def protected_metrics(request: Request) -> Response:
        """
        Protected Prometheus metrics endpoint.

        Always requires the X-Metrics-Token header.
        """
        from sop_script.core.config import settings

        expected_token = settings.metrics_token
        if not expected_token:
            logger.error(
                "Metrics endpoint accessed but METRICS_TOKEN not configured",
                extra={"security_event": True, "event_type": "METRICS_NOT_CONFIGURED"},
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Metrics token not configured. Set METRICS_TOKEN environment variable.",
            )

        metrics_token = request.headers.get("X-Metrics-Token")
        if not hmac.compare_digest(metrics_token or "", expected_token):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid metrics token",
            )

        return metrics_endpoint()

    if settings.observability_enabled:
        app.add_route("/metrics", protected_metrics)

    return app


app = create_app()
