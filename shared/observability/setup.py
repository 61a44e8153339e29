import os
import logging
import structlog
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

# OpenTelemetry
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

# Every sub-app is mounted into one process, the tracer provider is global
_provider_installed = False


# 1. Structlog Processor: Injects Trace/Span IDs into every log line
def add_otel_ids(logger, log_method, event_dict):
    span = trace.get_current_span()
    if span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = trace.format_trace_id(ctx.trace_id)
        event_dict["span_id"] = trace.format_span_id(ctx.span_id)
    return event_dict


# 2. Configure Structlog for JSON output
def configure_logging():
    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_otel_ids,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


# 3. Configure OpenTelemetry Tracing
def configure_tracing(app: FastAPI, service_name: str):
    global _provider_installed

    if not _provider_installed:
        resource = Resource.create({SERVICE_NAME: os.getenv("OTEL_SERVICE_NAME", "bakery")})
        provider = TracerProvider(resource=resource)
        trace.set_tracer_provider(provider)

        # Export via OTLP gRPC (defaults to localhost:4317)
        otlp_endpoint = os.getenv("OTLP_ENDPOINT", "http://localhost:4317")
        exporter = OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True)
        provider.add_span_processor(BatchSpanProcessor(exporter))

        # Outgoing chat-log notifications become child spans
        HTTPXClientInstrumentor().instrument()
        _provider_installed = True

    # Spans for every incoming request, tagged with the sub-app name
    FastAPIInstrumentor.instrument_app(app, server_request_hook=_tag_component(service_name))


def _tag_component(service_name: str):
    def hook(span, scope):
        if span and span.is_recording():
            span.set_attribute("bakery.component", service_name)
    return hook


# 4. Configure Prometheus Metrics
def configure_metrics(app: FastAPI):
    # HTTP latency / status codes, exposed at <mount>/metrics
    Instrumentator().instrument(app).expose(app)


# --- THE MASTER SETUP FUNCTION ---
def setup_observability(app: FastAPI, service_name: str):
    """
    Bootstraps Logging, Tracing, and Metrics for a FastAPI sub-app.
    Call this once per sub-app in its main.py.
    """
    configure_logging()
    configure_tracing(app, service_name)
    configure_metrics(app)
