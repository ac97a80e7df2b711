"""
Unit tests for observability features.

Tests cover:
- Request correlation ID generation and propagation
- Structured JSON logging
- Compiler metrics recorded by compile_sop
- Request tracking middleware and the metrics endpoint
"""

import json
import logging
import re
import sys

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from sop_script.compiler.compiler import compile_sop
from sop_script.core.observability import (
    UNMATCHED_ROUTE,
    Metrics,
    ObservabilityMiddleware,
    StructuredFormatter,
    configure_structured_logging,
    generate_request_id,
    get_request_id,
    metrics,
    metrics_endpoint,
    set_correlation_id,
)
from tests.factories import make_rule, make_sop


def _record(msg: str = "Test message", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname="/test/path.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def _sample(name: str, labels: dict[str, str] | None = None) -> float:
    return metrics.registry.get_sample_value(name, labels or {}) or 0.0


class TestRequestIdGeneration:
    @pytest.mark.anyio
    async def test_generate_request_id_returns_uuid_format(self):
        uuid_pattern = re.compile(
            r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"
        )
        assert uuid_pattern.match(generate_request_id())

    @pytest.mark.anyio
    async def test_request_id_context(self):
        set_correlation_id("request-1")
        assert get_request_id() == "request-1"

        set_correlation_id("")
        assert get_request_id() == ""


class TestStructuredLogging:
    @pytest.mark.anyio
    async def test_outputs_json(self):
        parsed = json.loads(StructuredFormatter().format(_record()))

        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test.logger"
        assert parsed["message"] == "Test message"
        assert parsed["line"] == 42
        assert parsed["timestamp"].endswith("+00:00")

    @pytest.mark.anyio
    async def test_includes_request_id(self):
        set_correlation_id("req-123")
        try:
            parsed = json.loads(StructuredFormatter().format(_record()))
        finally:
            set_correlation_id("")

        assert parsed["request_id"] == "req-123"

    @pytest.mark.anyio
    async def test_no_trace_ids_without_span(self):
        parsed = json.loads(StructuredFormatter().format(_record()))

        assert "trace_id" not in parsed
        assert "span_id" not in parsed

    @pytest.mark.anyio
    async def test_includes_extra_fields(self):
        parsed = json.loads(
            StructuredFormatter().format(_record(route="/api/v1/scripts/compile", status_code=200))
        )

        assert parsed["extra"] == {"route": "/api/v1/scripts/compile", "status_code": 200}

    @pytest.mark.anyio
    async def test_includes_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()

        parsed = json.loads(StructuredFormatter().format(record))
        assert parsed["exception"] == {"type": "ValueError", "message": "boom"}

    @pytest.mark.anyio
    async def test_configure_structured_logging(self):
        root_logger = logging.getLogger()
        previous_handlers = list(root_logger.handlers)
        previous_level = root_logger.level

        try:
            configure_structured_logging("DEBUG")

            assert root_logger.level == logging.DEBUG
            assert isinstance(root_logger.handlers[0].formatter, StructuredFormatter)
        finally:
            root_logger.handlers[:] = previous_handlers
            root_logger.setLevel(previous_level)


class TestCompilerMetrics:
    @pytest.mark.anyio
    async def test_valid_compilation_recorded(self, support_sop):
        before = _sample("s1_compiler_compilations_total", {"status": "valid"})
        rules_before = _sample("s1_compiler_rules_count_sum")

        compile_sop(support_sop)

        assert _sample("s1_compiler_compilations_total", {"status": "valid"}) == before + 1
        assert _sample("s1_compiler_rules_count_sum") == rules_before + 2

    @pytest.mark.anyio
    async def test_invalid_compilation_recorded(self):
        sop = make_sop(make_rule("", then_actions=[]), name="")
        invalid_before = _sample("s1_compiler_compilations_total", {"status": "invalid"})
        errors_before = _sample("s1_compiler_diagnostics_total", {"severity": "error"})
        warnings_before = _sample("s1_compiler_diagnostics_total", {"severity": "warning"})

        compile_sop(sop)

        assert _sample("s1_compiler_compilations_total", {"status": "invalid"}) == invalid_before + 1
        assert _sample("s1_compiler_diagnostics_total", {"severity": "error"}) == errors_before + 2
        assert (
            _sample("s1_compiler_diagnostics_total", {"severity": "warning"}) == warnings_before + 1
        )

    @pytest.mark.anyio
    async def test_script_size_observed(self, support_sop):
        count_before = _sample("s1_compiler_script_bytes_count")
        compile_sop(support_sop)
        assert _sample("s1_compiler_script_bytes_count") == count_before + 1

    @pytest.mark.anyio
    async def test_separate_registry(self):
        registry = CollectorRegistry()
        isolated = Metrics(registry)

        isolated.compiler_compilations_total.labels(status="valid").inc()
        assert registry.get_sample_value(
            "s1_compiler_compilations_total", {"status": "valid"}
        ) == 1.0


class TestObservabilityMiddleware:
    @staticmethod
    def _app(registry_metrics: Metrics | None = None) -> FastAPI:
        app = FastAPI()
        app.add_middleware(ObservabilityMiddleware, metrics_instance=registry_metrics)

        @app.get("/probe")
        async def probe():
            return {"request_id": get_request_id()}

        @app.get("/boom")
        async def boom():
            raise RuntimeError("boom")

        return app

    @pytest.mark.anyio
    async def test_generates_request_id(self):
        response = TestClient(self._app()).get("/probe")

        assert response.status_code == 200
        assert response.json()["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.anyio
    async def test_propagates_request_id(self):
        response = TestClient(self._app()).get("/probe", headers={"X-Request-ID": "abc"})

        assert response.json()["request_id"] == "abc"
        assert response.headers["X-Request-ID"] == "abc"

    @pytest.mark.anyio
    async def test_custom_header_name(self):
        app = FastAPI()
        app.add_middleware(ObservabilityMiddleware, request_id_header="X-Correlation-ID")

        @app.get("/probe")
        async def probe():
            return {"request_id": get_request_id()}

        response = TestClient(app).get("/probe", headers={"X-Correlation-ID": "corr-1"})
        assert response.headers["X-Correlation-ID"] == "corr-1"

    @pytest.mark.anyio
    async def test_records_http_metrics(self):
        registry = CollectorRegistry()
        app = self._app(Metrics(registry))

        TestClient(app).get("/probe")

        assert registry.get_sample_value(
            "http_requests_total", {"method": "GET", "route": "/probe", "status_code": "200"}
        ) == 1.0
        assert registry.get_sample_value(
            "http_requests_in_progress", {"method": "GET", "route": "/probe"}
        ) == 0.0

    @pytest.mark.anyio
    async def test_route_label_is_template(self):
        registry = CollectorRegistry()
        app = self._app(Metrics(registry))

        @app.get("/items/{item_id}")
        async def item(item_id: str):
            return {"id": item_id}

        client = TestClient(app)
        client.get("/items/a")
        client.get("/items/b")

        assert registry.get_sample_value(
            "http_requests_total",
            {"method": "GET", "route": "/items/{item_id}", "status_code": "200"},
        ) == 2.0

    @pytest.mark.anyio
    async def test_unmatched_paths_share_one_label(self):
        registry = CollectorRegistry()
        app = self._app(Metrics(registry))
        client = TestClient(app)

        for i in range(5):
            assert client.get(f"/api/v1/random-{i}").status_code == 404

        routes = {
            sample.labels["route"]
            for metric in registry.collect()
            if metric.name == "http_requests"
            for sample in metric.samples
            if "route" in sample.labels
        }
        assert routes == {UNMATCHED_ROUTE}
        assert registry.get_sample_value(
            "http_requests_total",
            {"method": "GET", "route": UNMATCHED_ROUTE, "status_code": "404"},
        ) == 5.0

    @pytest.mark.anyio
    async def test_records_errors(self):
        registry = CollectorRegistry()
        app = self._app(Metrics(registry))

        response = TestClient(app, raise_server_exceptions=False).get("/boom")

        assert response.status_code == 500
        assert registry.get_sample_value(
            "http_errors_total", {"error_type": "RuntimeError", "method": "GET", "route": "/boom"}
        ) == 1.0


class TestMetricsEndpoint:
    @pytest.mark.anyio
    async def test_prometheus_format(self):
        response = metrics_endpoint()

        assert response.media_type.startswith("text/plain")
        assert b"s1_compiler_duration_seconds" in response.body
