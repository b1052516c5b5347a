"""OpenTelemetry helpers for the composer service."""
from __future__ import annotations

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from ..config import get_settings

_configured = False


def configure_telemetry() -> None:
    """Install tracer and meter providers; exporters only when an OTLP endpoint is set.

    Safe to call more than once: OpenTelemetry refuses to replace a global
    provider, so repeat calls are no-ops.
    """
    global _configured
    if _configured:
        return
    settings = get_settings().observability
    resource = Resource(attributes={SERVICE_NAME: settings.otel_service_name})

    tracer_provider = TracerProvider(resource=resource)
    trace.set_tracer_provider(tracer_provider)

    if settings.otel_exporter_otlp_endpoint:
        span_exporter = OTLPSpanExporter(endpoint=f"{settings.otel_exporter_otlp_endpoint.rstrip('/')}/v1/traces")
        tracer_provider.add_span_processor(BatchSpanProcessor(span_exporter))

        metric_exporter = OTLPMetricExporter(endpoint=f"{settings.otel_exporter_otlp_endpoint.rstrip('/')}/v1/metrics")
        reader = PeriodicExportingMetricReader(metric_exporter)
        metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[reader]))
    _configured = True


__all__ = ["configure_telemetry"]
