import os
import logging

import structlog
from fastapi import FastAPI, Request
from prometheus_fastapi_instrumentator import Instrumentator

# OpenTelemetry
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Scrape and probe endpoints are kept out of the HTTP metrics
UNMETERED_PATHS = ["/metrics", "/health"]


def add_otel_ids(logger, log_method, event_dict):
    """Adds the active trace and span ids so log lines join up with traces."""
    span = trace.get_current_span()
    if span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = trace.format_trace_id(ctx.trace_id)
        event_dict["span_id"] = trace.format_span_id(ctx.span_id)
    return event_dict


def configure_logging(level: str = LOG_LEVEL, service_name: str | None = None):
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_otel_ids,
    ]
    if service_name:
        def add_service(logger, log_method, event_dict):
            event_dict.setdefault("service", service_name)
            return event_dict
        processors.append(add_service)
    processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level, logging.INFO)),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_tracing(app: FastAPI, service_name: str):
    """Spans are always created; they are exported only when OTLP_ENDPOINT is set."""
    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))

    otlp_endpoint = os.getenv("OTLP_ENDPOINT")
    if otlp_endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True)))

    trace.set_tracer_provider(provider)
    FastAPIInstrumentor.instrument_app(app, excluded_urls=",".join(UNMETERED_PATHS))


def configure_metrics(app: FastAPI):
    Instrumentator(excluded_handlers=UNMETERED_PATHS).instrument(app).expose(app, include_in_schema=False)


def bind_request_context(app: FastAPI):
    """Every log line written while serving a request carries its method and path."""

    @app.middleware("http")
    async def _bind(request: Request, call_next):
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(method=request.method, path=request.url.path)
        return await call_next(request)


def setup_observability(app: FastAPI, service_name: str):
    """
    Logging, tracing and metrics for the API.
    Call once from main.py, before the routers are included.
    """
    configure_logging(service_name=service_name)
    bind_request_context(app)
    configure_tracing(app, service_name)
    configure_metrics(app)
