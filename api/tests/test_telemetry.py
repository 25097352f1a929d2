from __future__ import annotations

from fastapi import FastAPI
from opentelemetry import trace

from nursejobs.core.config import Settings
from nursejobs.core.telemetry import otlp_headers, setup_api_telemetry
from nursejobs.services import listings


def test_listing_spans_record_after_setup() -> None:
    runtime = setup_api_telemetry(FastAPI(), Settings(otel_enabled=True, otel_exporter_otlp_endpoint=None))
    assert runtime.enabled

    with listings.tracer.start_as_current_span("listings.resolve") as span:
        assert span.is_recording()
        assert span.get_span_context().trace_id != 0
    assert isinstance(trace.get_tracer_provider(), type(runtime.provider))


def test_disabled_telemetry_installs_nothing() -> None:
    runtime = setup_api_telemetry(FastAPI(), Settings(otel_enabled=False))
    assert runtime.enabled is False
    assert runtime.provider is None


def test_otlp_headers_skip_malformed_items() -> None:
    settings = Settings(otel_exporter_otlp_headers="authorization=Bearer abc, broken ,x-team = jobs")
    assert otlp_headers(settings) == {"authorization": "Bearer abc", "x-team": "jobs"}
