from typing import Dict, Optional
import functools
import inspect
import logging
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from common.core.config import settings

# Configure logging at module level
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    force=True,  # This ensures it overrides any existing configuration
)


# Global flag to ensure initialization only happens once
_initialized = False
tracer = None


def _initialize_telemetry():
    """Initialize telemetry once and only once."""
    global _initialized, tracer

    if _initialized:
        return

    resource = Resource(attributes={SERVICE_NAME: settings.otel_service_name})

    # TRACING SETUP
    provider = TracerProvider(resource=resource)
    if settings.otel_exporter_endpoint:
        otlp_trace_exporter = OTLPSpanExporter(endpoint=settings.otel_exporter_endpoint)
        provider.add_span_processor(BatchSpanProcessor(otlp_trace_exporter))
    trace.set_tracer_provider(provider)
    tracer = trace.get_tracer(settings.otel_service_name)

    logging.getLogger().setLevel(logging.DEBUG if settings.debug else logging.INFO)

    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance. Ensures telemetry is initialized.
    Use this instead of logging.getLogger() directly.
    """
    if not _initialized:
        _initialize_telemetry()
    return logging.getLogger(name)


def _span_name(func, args) -> str:
    # If it's a method, include class name
    if args and hasattr(args[0].__class__, func.__name__):
        return f"{args[0].__class__.__name__}.{func.__name__}"
    return func.__name__


# Custom decorator for automatic span naming
def trace_span(func):
    """Decorator that automatically creates a span with the function name."""

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        if not _initialized:
            _initialize_telemetry()
        with tracer.start_as_current_span(_span_name(func, args)):
            return func(*args, **kwargs)

    @functools.wraps(func)
    async def async_wrapper(*args, **kwargs):
        if not _initialized:
            _initialize_telemetry()
        with tracer.start_as_current_span(_span_name(func, args)):
            return await func(*args, **kwargs)

    # Return appropriate wrapper based on function type
    if inspect.iscoroutinefunction(func):
        return async_wrapper
    else:
        return sync_wrapper


# Helper function to log within current span context
def log_span_event(message: str, attributes: Optional[Dict[str, str]] = None):
    """
    Log a message as an event in the current span.
    This will make the log appear in the trace view.
    """
    current_span = trace.get_current_span()
    if current_span and current_span.is_recording():
        current_span.add_event(message, attributes=attributes or {})

    # Also log normally so it appears in logs
    logger = get_logger(__name__)
    logger.info(message, extra=attributes)
