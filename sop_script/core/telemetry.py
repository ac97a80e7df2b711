"""
OpenTelemetry distributed tracing configuration for the SOP Script service.

This module provides:
- Tracer provider setup with an OTLP span exporter
- FastAPI instrumentation (HTTP requests/responses)
- Trace/span id lookup for structured logs

Compilation spans are created in the compiler through the global tracer; they
are no-ops until init_telemetry installs a provider.

Configuration via environment variables:
- OTEL_ENABLED: Enable/disable tracing (default: false)
- OTEL_SERVICE_NAME: Service name for traces (default: sop-script-service)
- OTEL_EXPORTER_OTLP_ENDPOINT: OTLP collector endpoint (default: http://localhost:4317)
- OTEL_EXPORTER_OTLP_HEADERS: Optional headers for OTLP exporter
- OTEL_TRACES_SAMPLER: Sampling strategy (default: parent_trace_always)
- OTEL_TRACES_SAMPLER_ARG: Sampling rate (default: 1.0)
"""

import logging
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import DEPLOYMENT_ENVIRONMENT, SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import (
    ALWAYS_OFF,
    ALWAYS_ON,
    ParentBased,
    Sampler,
    TraceIdRatioBased,
)

from sop_script import __version__

logger = logging.getLogger(__name__)

# Global tracer provider reference for shutdown
_tracer_provider: TracerProvider | None = None


def _parse_headers(headers_string: str | None) -> dict[str, str]:
    """
    Parse OTLP headers from environment variable format.

    Args:
        headers_string: Headers in format "key1=value1,key2=value2"

    Returns:
        Dictionary of headers
    """
    if not headers_string:
        return {}

    headers = {}
    for pair in headers_string.split(","):
        pair = pair.strip()
        if "=" in pair:
            key, value = pair.split("=", 1)
            headers[key.strip()] = value.strip()
    return headers


def _create_sampler(sampler_name: str, sampler_arg: float) -> Sampler:
    """
    Build a sampler from its configured name.

    Supports: parent_trace_always (default), always_on, always_off, traceidratio.
    """
    if sampler_name == "always_on":
        return ALWAYS_ON
    if sampler_name == "always_off":
        return ALWAYS_OFF
    if sampler_name == "traceidratio":
        return TraceIdRatioBased(sampler_arg)
    return ParentBased(root=TraceIdRatioBased(sampler_arg))


def init_telemetry(
    service_name: str | None = None,
    app_env: str | None = None,
    otlp_endpoint: str | None = None,
    otlp_headers: str | None = None,
    sampler_name: str | None = None,
    sampler_arg: float | None = None,
) -> TracerProvider | None:
    """
    Initialize OpenTelemetry distributed tracing.

    Arguments default to the corresponding settings.

    Returns:
        TracerProvider instance if enabled, None otherwise
    """
    global _tracer_provider

    from sop_script.core.config import settings

    if not settings.otel_enabled:
        logger.info("OpenTelemetry tracing is disabled (OTEL_ENABLED=false)")
        return None

    service_name = service_name or settings.otel_service_name
    app_env = app_env or settings.app_env.value
    otlp_endpoint = otlp_endpoint or settings.otel_exporter_otlp_endpoint
    otlp_headers = otlp_headers or settings.otel_exporter_otlp_headers
    sampler_name = sampler_name or settings.otel_traces_sampler
    sampler_arg = sampler_arg if sampler_arg is not None else settings.otel_traces_sampler_arg

    try:
        resource = Resource.create(
            {
                SERVICE_NAME: service_name,
                DEPLOYMENT_ENVIRONMENT: app_env,
                "service.version": __version__,
            }
        )

        tracer_provider = TracerProvider(
            resource=resource, sampler=_create_sampler(sampler_name, sampler_arg)
        )
        tracer_provider.add_span_processor(
            BatchSpanProcessor(
                OTLPSpanExporter(endpoint=otlp_endpoint, headers=_parse_headers(otlp_headers))
            )
        )
        trace.set_tracer_provider(tracer_provider)
        _tracer_provider = tracer_provider

        logger.info(
            f"OpenTelemetry initialized: service={service_name}, "
            f"environment={app_env}, endpoint={otlp_endpoint}, sampler={sampler_name}"
        )

        return tracer_provider

    except Exception as e:
        logger.error(f"Failed to initialize OpenTelemetry: {e}", exc_info=True)
        return None


def instrument_fastapi(app: Any) -> None:
    """
    Instrument FastAPI application with OpenTelemetry.

    Args:
        app: FastAPI application instance
    """
    from sop_script.core.config import settings

    if not settings.otel_enabled:
        logger.debug("OpenTelemetry disabled - skipping FastAPI instrumentation")
        return

    try:
        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI instrumentation enabled")
    except Exception as e:
        logger.error(f"Failed to instrument FastAPI: {e}", exc_info=True)


def shutdown_telemetry() -> None:
    """
    Shutdown OpenTelemetry tracer provider gracefully.

    Flushes all pending spans and closes connections to OTLP collector.
    """
    global _tracer_provider

    if _tracer_provider is None:
        logger.debug("OpenTelemetry tracer provider not initialized")
        return

    try:
        logger.info("Shutting down OpenTelemetry tracer provider")
        _tracer_provider.shutdown()
        _tracer_provider = None
    except Exception as e:
        logger.error(f"Error during OpenTelemetry shutdown: {e}", exc_info=True)


def get_trace_id() -> str | None:
    """
    Get the current trace ID from OpenTelemetry context.

    Returns:
        Trace ID as hex string, or None if no span is recording
    """
    current_span = trace.get_current_span()
    if not current_span.is_recording():
        return None
    return format(current_span.get_span_context().trace_id, "032x")


def get_span_id() -> str | None:
    """
    Get the current span ID from OpenTelemetry context.

    Returns:
        Span ID as hex string, or None if no span is recording
    """
    current_span = trace.get_current_span()
    if not current_span.is_recording():
        return None
    return format(current_span.get_span_context().span_id, "016x")
