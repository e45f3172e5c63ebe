"""OpenTelemetry + Prometheus fallback wiring for the agent detector.

Detection runs are counted by ``tool``/``result`` only. The number of
candidate transcripts per run goes to its own histogram so that it never
becomes a label dimension.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

from fastapi import FastAPI

from agent_detector import config

logger = logging.getLogger("agent_detector.observability")

DETECTIONS_METRIC = "agent_detector_detections_total"
DETECTION_LATENCY_METRIC = "agent_detector_detection_latency_ms"
DETECTION_CANDIDATES_METRIC = "agent_detector_detection_candidates"
PARSER_FAILURES_METRIC = "agent_detector_parser_failures_total"

_initialized = False
_enabled = False
_tracer: Any | None = None
_trace_provider: Any | None = None
_meter_provider: Any | None = None
_fastapi_instrumentor: Any | None = None

# Metric name -> OTel instrument / Prometheus collector.
_otel_instruments: dict[str, Any] = {}
_prom_collectors: dict[str, Any] = {}


def _normalize_otlp_endpoint(base_endpoint: str, signal_path: str) -> str:
    endpoint = (base_endpoint or "").strip()
    if not endpoint:
        return ""
    if endpoint.endswith(signal_path):
        return endpoint
    if endpoint.endswith("/"):
        endpoint = endpoint[:-1]
    if endpoint.endswith("/v1"):
        return f"{endpoint}{signal_path[3:]}"
    return f"{endpoint}{signal_path}"


def _prom_labels(**labels: str) -> dict[str, str]:
    return {key: (value or "").strip() or "unknown" for key, value in labels.items()}


def _build_otel_instruments(meter: Any) -> dict[str, Any]:
    return {
        DETECTIONS_METRIC: meter.create_counter(
            DETECTIONS_METRIC,
            unit="1",
            description="Count of session detection runs by outcome",
        ),
        DETECTION_LATENCY_METRIC: meter.create_histogram(
            DETECTION_LATENCY_METRIC,
            unit="ms",
            description="Latency of session detection runs",
        ),
        DETECTION_CANDIDATES_METRIC: meter.create_histogram(
            DETECTION_CANDIDATES_METRIC,
            unit="1",
            description="Candidate transcripts considered per detection run",
        ),
        PARSER_FAILURES_METRIC: meter.create_counter(
            PARSER_FAILURES_METRIC,
            unit="1",
            description="Count of transcript files that could not be read",
        ),
    }


def _start_prometheus_fallback(port: int) -> dict[str, Any]:
    from prometheus_client import Counter, Histogram, start_http_server

    start_http_server(port)
    return {
        DETECTIONS_METRIC: Counter(
            DETECTIONS_METRIC,
            "Count of session detection runs by outcome",
            ["tool", "result"],
        ),
        DETECTION_LATENCY_METRIC: Histogram(
            DETECTION_LATENCY_METRIC,
            "Latency of session detection runs",
            ["tool", "result"],
        ),
        DETECTION_CANDIDATES_METRIC: Histogram(
            DETECTION_CANDIDATES_METRIC,
            "Candidate transcripts considered per detection run",
            ["tool"],
            buckets=(0, 1, 2, 5, 10, 25, 50, 100, 250),
        ),
        PARSER_FAILURES_METRIC: Counter(
            PARSER_FAILURES_METRIC,
            "Count of transcript files that could not be read",
            ["parser", "tool"],
        ),
    }


def initialize(app: FastAPI | None = None) -> None:
    global _initialized, _enabled, _tracer, _trace_provider, _meter_provider, _fastapi_instrumentor
    global _otel_instruments, _prom_collectors

    if _initialized:
        if _enabled and app and _fastapi_instrumentor:
            _fastapi_instrumentor.instrument_app(app)
        return

    _initialized = True

    if not config.OTEL_ENABLED:
        logger.info("OpenTelemetry disabled (AGENT_DETECTOR_OTEL_ENABLED=false)")
        return

    try:
        from opentelemetry import metrics, trace
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
    except ImportError as exc:
        logger.warning("OpenTelemetry dependencies unavailable: %s", exc)
        return

    service_name = config.OTEL_SERVICE_NAME or "agent-detector"
    resource = Resource.create({"service.name": service_name, "service.namespace": "agent-detector"})

    trace_provider = TracerProvider(resource=resource)
    trace_provider.add_span_processor(
        BatchSpanProcessor(
            OTLPSpanExporter(endpoint=_normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/traces") or None)
        )
    )
    trace.set_tracer_provider(trace_provider)

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=_normalize_otlp_endpoint(config.OTEL_ENDPOINT, "/v1/metrics") or None)
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)

    _otel_instruments = _build_otel_instruments(metrics.get_meter("agent_detector"))
    _trace_provider = trace_provider
    _meter_provider = meter_provider
    _tracer = trace.get_tracer("agent_detector")
    _fastapi_instrumentor = FastAPIInstrumentor()
    _enabled = True

    if app:
        _fastapi_instrumentor.instrument_app(app)

    if config.PROM_PORT > 0:
        try:
            _prom_collectors = _start_prometheus_fallback(config.PROM_PORT)
            logger.info("Prometheus fallback metrics server listening on port %s", config.PROM_PORT)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Prometheus fallback not started: %s", exc)
            _prom_collectors = {}

    logger.info("OpenTelemetry initialized (service=%s endpoint=%s)", service_name, config.OTEL_ENDPOINT)


def shutdown(app: FastAPI | None = None) -> None:
    global _enabled
    if not _initialized:
        return
    try:
        if app and _fastapi_instrumentor:
            _fastapi_instrumentor.uninstrument_app(app)
    except Exception as exc:  # noqa: BLE001
        logger.debug("FastAPI uninstrument failed: %s", exc)
    for name, provider in (("Meter", _meter_provider), ("Trace", _trace_provider)):
        if provider is None:
            continue
        try:
            provider.shutdown()
        except Exception as exc:  # noqa: BLE001
            logger.debug("%s provider shutdown failed: %s", name, exc)
    _enabled = False


def is_enabled() -> bool:
    return _enabled


def _otel(name: str) -> Any | None:
    return _otel_instruments.get(name) if _enabled else None


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None):
    if not _enabled or _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)
        yield span


def record_detection(tool: str, result: str, duration_ms: float, *, candidates: int = 0) -> None:
    labels = {"tool": tool or "unknown", "result": result or "unknown"}
    latency = max(0.0, float(duration_ms))
    candidate_count = max(0, int(candidates))

    counter = _otel(DETECTIONS_METRIC)
    if counter is not None:
        counter.add(1, labels)
    latency_hist = _otel(DETECTION_LATENCY_METRIC)
    if latency_hist is not None:
        latency_hist.record(latency, labels)
    candidates_hist = _otel(DETECTION_CANDIDATES_METRIC)
    if candidates_hist is not None:
        candidates_hist.record(candidate_count, {"tool": labels["tool"]})

    if not _prom_collectors:
        return
    prom = _prom_labels(tool=tool, result=result)
    _prom_collectors[DETECTIONS_METRIC].labels(**prom).inc()
    _prom_collectors[DETECTION_LATENCY_METRIC].labels(**prom).observe(latency)
    _prom_collectors[DETECTION_CANDIDATES_METRIC].labels(tool=prom["tool"]).observe(candidate_count)


def record_parser_failure(parser: str, *, tool: str) -> None:
    labels = {"parser": parser or "unknown", "tool": tool or "unknown"}
    counter = _otel(PARSER_FAILURES_METRIC)
    if counter is not None:
        counter.add(1, labels)
    if _prom_collectors:
        _prom_collectors[PARSER_FAILURES_METRIC].labels(**_prom_labels(parser=parser, tool=tool)).inc()
