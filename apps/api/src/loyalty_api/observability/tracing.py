from __future__ import annotations

from contextlib import contextmanager
from typing import Dict, Iterator

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.semconv.resource import ResourceAttributes
from opentelemetry.trace import Span, Status, StatusCode

from loyalty_api.core.settings import settings

_CONFIGURED = False
_TRACER_NAME = "loyalty_api.loyalty_cloud"


def _parse_headers(raw: str | None) -> Dict[str, str] | None:
    if not raw:
        return None
    headers: Dict[str, str] = {}
    for pair in raw.split(","):
        if "=" not in pair:
            continue
        key, value = pair.split("=", 1)
        headers[key.strip()] = value.strip()
    return headers or None


def _build_exporter() -> SpanExporter:
    endpoint = settings.otel_exporter_otlp_endpoint
    if endpoint:
        return OTLPSpanExporter(endpoint=endpoint, headers=_parse_headers(settings.otel_exporter_otlp_headers))
    return ConsoleSpanExporter()


def configure_tracing(
    app: FastAPI,
    *,
    service_name: str,
    service_version: str,
    environment: str,
) -> None:
    """Configure OpenTelemetry tracing + log correlation for the FastAPI app."""

    global _CONFIGURED

    if not _CONFIGURED:
        resource = Resource.create(
            {
                ResourceAttributes.SERVICE_NAME: service_name,
                ResourceAttributes.SERVICE_VERSION: service_version,
                ResourceAttributes.DEPLOYMENT_ENVIRONMENT: environment,
            }
        )
        tracer_provider = TracerProvider(resource=resource)
        tracer_provider.add_span_processor(BatchSpanProcessor(_build_exporter()))
        trace.set_tracer_provider(tracer_provider)
        LoggingInstrumentor().instrument(set_logging_format=False)
        _CONFIGURED = True
    else:
        tracer_provider = trace.get_tracer_provider()

    FastAPIInstrumentor.instrument_app(app, tracer_provider=tracer_provider)


@contextmanager
def provider_span(service_name: str, method: str) -> Iterator[Span]:
    """Wrap one Loyalty Cloud round trip in a client span.

    Without a configured provider the global no-op tracer is used, so callers
    never need to check whether tracing is enabled.
    """

    tracer = trace.get_tracer(_TRACER_NAME)
    with tracer.start_as_current_span(
        f"loyalty_cloud.{service_name}",
        kind=trace.SpanKind.CLIENT,
        attributes={"loyalty_cloud.service": service_name, "http.request.method": method},
    ) as span:
        yield span


def record_provider_status(span: Span, status_code: int | None, *, ok: bool) -> None:
    if status_code is not None:
        span.set_attribute("http.response.status_code", status_code)
    if not ok:
        span.set_status(Status(StatusCode.ERROR))


__all__ = ["configure_tracing", "provider_span", "record_provider_status"]
