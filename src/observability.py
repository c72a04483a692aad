"""
Observability and monitoring setup for the sound catalog and alarm API.
"""

import asyncio
from functools import wraps
from typing import Optional, Dict, Any, Callable

import structlog
from opentelemetry import trace, metrics
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor

logger = structlog.get_logger()

# Global tracer and meter
tracer: Optional[trace.Tracer] = None
meter: Optional[metrics.Meter] = None

# Metrics instruments
request_counter: Optional[metrics.Counter] = None
request_duration: Optional[metrics.Histogram] = None
error_counter: Optional[metrics.Counter] = None
alarm_operation_counter: Optional[metrics.Counter] = None
catalog_size_histogram: Optional[metrics.Histogram] = None
catalog_scan_duration: Optional[metrics.Histogram] = None


def setup_observability(
    service_name: str = "sound-alarm-api",
    service_version: str = "1.0.0",
    otlp_endpoint: Optional[str] = None,
    enable_console_export: bool = False
) -> None:
    """
    Set up OpenTelemetry tracing and metrics.

    Providers are installed once per process; later calls are no-ops.

    Args:
        service_name: Name of the service for tracing
        service_version: Version of the service
        otlp_endpoint: OTLP endpoint for trace/metric export
        enable_console_export: Whether to enable console export for development
    """
    global tracer, meter
    global request_counter, request_duration, error_counter
    global alarm_operation_counter, catalog_size_histogram, catalog_scan_duration

    if tracer is not None:
        return

    logger.info(
        "Setting up observability",
        service_name=service_name,
        service_version=service_version,
        otlp_endpoint=otlp_endpoint
    )

    resource = Resource.create({
        "service.name": service_name,
        "service.version": service_version,
    })

    # Set up tracing
    trace_provider = TracerProvider(resource=resource)

    if otlp_endpoint:
        otlp_span_exporter = OTLPSpanExporter(endpoint=otlp_endpoint)
        trace_provider.add_span_processor(BatchSpanProcessor(otlp_span_exporter))

    if enable_console_export:
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter
        trace_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(trace_provider)
    tracer = trace.get_tracer(__name__)

    # Set up metrics
    metric_readers = []

    if otlp_endpoint:
        metric_readers.append(
            PeriodicExportingMetricReader(
                exporter=OTLPMetricExporter(endpoint=otlp_endpoint),
                export_interval_millis=30000  # 30 seconds
            )
        )

    if enable_console_export:
        from opentelemetry.sdk.metrics.export import ConsoleMetricExporter
        metric_readers.append(
            PeriodicExportingMetricReader(
                exporter=ConsoleMetricExporter(),
                export_interval_millis=60000  # 60 seconds
            )
        )

    meter_provider = MeterProvider(resource=resource, metric_readers=metric_readers)

    metrics.set_meter_provider(meter_provider)
    meter = metrics.get_meter(__name__)

    # Create metric instruments
    request_counter = meter.create_counter(
        name="http_requests_total",
        description="Total number of HTTP requests",
        unit="1"
    )

    request_duration = meter.create_histogram(
        name="http_request_duration_seconds",
        description="HTTP request duration in seconds",
        unit="s"
    )

    error_counter = meter.create_counter(
        name="http_errors_total",
        description="Total number of HTTP errors",
        unit="1"
    )

    alarm_operation_counter = meter.create_counter(
        name="alarm_operations_total",
        description="Total number of alarm writes by operation",
        unit="1"
    )

    catalog_size_histogram = meter.create_histogram(
        name="catalog_sounds",
        description="Number of sounds produced per catalog scan",
        unit="1"
    )

    catalog_scan_duration = meter.create_histogram(
        name="catalog_scan_duration_seconds",
        description="Catalog directory scan duration in seconds",
        unit="s"
    )

    logger.info("Observability setup completed")


def instrument_fastapi_app(app) -> None:
    """
    Instrument FastAPI application with OpenTelemetry.

    Must run before the application starts serving, since it adds middleware.

    Args:
        app: FastAPI application instance
    """
    if tracer is None:
        logger.warning("Tracer not initialized, call setup_observability() first")
        return

    FastAPIInstrumentor.instrument_app(app)

    logging_instrumentor = LoggingInstrumentor()
    if not logging_instrumentor.is_instrumented_by_opentelemetry:
        logging_instrumentor.instrument(set_logging_format=True)

    logger.info("FastAPI application instrumented with OpenTelemetry")


def trace_function(operation_name: Optional[str] = None):
    """
    Decorator to trace function execution.

    Args:
        operation_name: Optional custom operation name for the span
    """
    def decorator(func: Callable) -> Callable:
        def start_span():
            span_name = operation_name or f"{func.__module__}.{func.__name__}"
            return tracer.start_as_current_span(span_name)

        def annotate(span) -> None:
            span.set_attribute("function.name", func.__name__)
            span.set_attribute("function.module", func.__module__)

        def record_failure(span, e: Exception) -> None:
            span.record_exception(e)
            span.set_attribute("success", False)
            span.set_attribute("error.type", type(e).__name__)
            span.set_attribute("error.message", str(e))

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            if tracer is None:
                return await func(*args, **kwargs)

            with start_span() as span:
                annotate(span)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    record_failure(span, e)
                    raise
                span.set_attribute("success", True)
                return result

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            if tracer is None:
                return func(*args, **kwargs)

            with start_span() as span:
                annotate(span)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    record_failure(span, e)
                    raise
                span.set_attribute("success", True)
                return result

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


def record_alarm_operation(operation: str) -> None:
    """
    Record a successful alarm write.

    Args:
        operation: One of create, update, delete
    """
    if alarm_operation_counter is None:
        return

    alarm_operation_counter.add(1, {"operation": operation})


def record_catalog_scan(sound_count: int, processing_time: float) -> None:
    """
    Record size and duration of a catalog scan.

    Args:
        sound_count: Number of sounds the scan produced
        processing_time: Scan duration in seconds
    """
    if catalog_size_histogram is None or catalog_scan_duration is None:
        return

    catalog_size_histogram.record(sound_count)
    catalog_scan_duration.record(processing_time)


def record_http_metrics(
    method: str,
    path: str,
    status_code: int,
    processing_time: float
) -> None:
    """
    Record HTTP request metrics.

    Args:
        method: HTTP method
        path: Request path
        status_code: HTTP status code
        processing_time: Request processing time in seconds
    """
    if request_counter is None or request_duration is None or error_counter is None:
        return

    attributes = {
        "method": method,
        "path": path,
        "status_code": str(status_code)
    }

    request_counter.add(1, attributes)
    request_duration.record(processing_time, attributes)

    if status_code >= 400:
        error_attributes = {
            **attributes,
            "error_type": "client_error" if status_code < 500 else "server_error"
        }
        error_counter.add(1, error_attributes)


def get_trace_context() -> Dict[str, Any]:
    """
    Get current trace context information.

    Returns:
        Dict with trace ID and span ID if available
    """
    current_span = trace.get_current_span()
    if current_span is None or not current_span.is_recording():
        return {}

    span_context = current_span.get_span_context()
    return {
        "trace_id": f"{span_context.trace_id:032x}",
        "span_id": f"{span_context.span_id:016x}",
        "trace_flags": int(span_context.trace_flags)
    }


class TracingContextMiddleware:
    """
    Middleware to add tracing context to structured logs.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        # Outermost logging context for the request; inner middleware only adds to it
        structlog.contextvars.clear_contextvars()
        trace_context = get_trace_context()
        if trace_context:
            structlog.contextvars.bind_contextvars(**trace_context)

        await self.app(scope, receive, send)
