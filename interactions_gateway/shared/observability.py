"""Structured JSON logging and OpenTelemetry tracing for the gateway."""
import os
import json
import logging
import traceback
import uuid
from datetime import datetime, timezone
from functools import wraps
from typing import Optional, Dict, Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


class JsonFormatter(logging.Formatter):
    """JSON formatter for records that were not built by StructuredLogger."""

    def format(self, record):
        if isinstance(record.msg, str) and record.msg.startswith('{'):
            return record.msg

        return json.dumps({
            "timestamp": _utcnow_iso(),
            "severity": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        })


class StructuredLogger:
    """Structured logger emitting one JSON object per line.

    Keyword arguments passed to the level methods become top-level fields of
    the log entry, next to the service name and the active trace context.
    """

    def __init__(self, service_name: str, level: int = logging.INFO):
        self.service_name = service_name
        self.logger = self._setup_logger(level)

    def _setup_logger(self, level: int):
        logger = logging.getLogger(self.service_name)
        logger.setLevel(level)
        logger.handlers = []

        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        logger.propagate = False

        return logger

    def _get_trace_context(self) -> Dict[str, str]:
        span = trace.get_current_span()
        if span and span.is_recording():
            span_context = span.get_span_context()
            return {
                "trace_id": format(span_context.trace_id, '032x'),
                "span_id": format(span_context.span_id, '016x')
            }
        return {}

    def _build_log_entry(self, message: str, level: str, correlation_id: Optional[str] = None, **extra) -> Dict[str, Any]:
        entry = {
            "timestamp": _utcnow_iso(),
            "severity": level,
            "service": self.service_name,
            "message": message,
        }

        trace_context = self._get_trace_context()
        if trace_context:
            entry.update(trace_context)

        if correlation_id:
            entry["correlation_id"] = correlation_id

        entry.update(extra)
        return entry

    def _emit(self, level: int, label: str, message: str, **kwargs):
        if not self.logger.isEnabledFor(level):
            return
        entry = self._build_log_entry(message, label, **kwargs)
        self.logger.log(level, json.dumps(entry, default=str))

    def info(self, message: str, **kwargs):
        self._emit(logging.INFO, "INFO", message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._emit(logging.WARNING, "WARNING", message, **kwargs)

    def error(self, message: str, error: Optional[BaseException] = None, **kwargs):
        """Log ERROR level, attaching exception details when given."""
        if error is not None:
            kwargs["error"] = {
                "type": type(error).__name__,
                "message": str(error),
                "stacktrace": ''.join(traceback.format_exception(type(error), error, error.__traceback__))
            }
        self._emit(logging.ERROR, "ERROR", message, **kwargs)

    def debug(self, message: str, **kwargs):
        self._emit(logging.DEBUG, "DEBUG", message, **kwargs)


class TracingManager:
    """OpenTelemetry tracing manager."""

    def __init__(self, service_name: str, environment: str = "production"):
        self.service_name = service_name
        self.environment = environment
        self.tracer = self._setup_tracer()

    def _setup_tracer(self):
        """Setup the tracer provider, exporting to Cloud Trace outside local dev."""
        resource = Resource.create({
            "service.name": self.service_name,
            "service.namespace": "interactions-gateway",
            "deployment.environment": self.environment,
        })

        tracer_provider = TracerProvider(resource=resource)

        if not os.getenv("LOCAL_DEV"):
            try:
                from opentelemetry.exporter.cloud_trace import CloudTraceSpanExporter

                project_id = os.getenv('GCP_PROJECT_ID')
                span_processor = BatchSpanProcessor(CloudTraceSpanExporter(project_id=project_id))
                tracer_provider.add_span_processor(span_processor)
            except Exception as e:
                logging.getLogger(self.service_name).warning(
                    "Could not setup Cloud Trace exporter: %s", e
                )

        trace.set_tracer_provider(tracer_provider)
        return trace.get_tracer(self.service_name)

    def get_tracer(self):
        return self.tracer

    def instrument_flask(self, app):
        """Auto-instrument a Flask application."""
        from opentelemetry.instrumentation.flask import FlaskInstrumentor

        try:
            FlaskInstrumentor().instrument_app(app)
        except Exception as e:
            logging.getLogger(self.service_name).warning("Could not instrument Flask: %s", e)

    def instrument_requests(self):
        """Auto-instrument the requests library used for platform API calls."""
        from opentelemetry.instrumentation.requests import RequestsInstrumentor

        try:
            instrumentor = RequestsInstrumentor()
            if not instrumentor.is_instrumented_by_opentelemetry:
                instrumentor.instrument()
        except Exception as e:
            logging.getLogger(self.service_name).warning("Could not instrument requests: %s", e)


_LOGGERS: Dict[str, StructuredLogger] = {}
_TRACING: Optional[TracingManager] = None


def get_logger(service_name: str) -> StructuredLogger:
    """Return the structured logger for a component, creating it once."""
    logger = _LOGGERS.get(service_name)
    if logger is None:
        level = logging.DEBUG if os.getenv('LOG_LEVEL', '').upper() == 'DEBUG' else logging.INFO
        logger = StructuredLogger(service_name, level=level)
        _LOGGERS[service_name] = logger
    return logger


def init_observability(service_name: str, app=None, environment: str = None):
    """Initialize logging and tracing for a service.

    The tracer provider is process-wide, so it is only set up on the first
    call; later calls reuse it and just hand back a logger.

    Args:
        service_name: Name of the service
        app: Flask app instance to instrument (optional)
        environment: Environment name (defaults to the ENVIRONMENT variable)

    Returns:
        tuple: (logger, tracing_manager)
    """
    global _TRACING

    if environment is None:
        environment = os.getenv('ENVIRONMENT', 'production')

    logger = get_logger(service_name)

    if _TRACING is None:
        _TRACING = TracingManager(service_name, environment)
        _TRACING.instrument_requests()
        logger.info("Observability initialized", environment=environment)

    if app is not None:
        _TRACING.instrument_flask(app)

    return logger, _TRACING


def traced_function(operation_name: Optional[str] = None):
    """Decorator to trace a function with OpenTelemetry.

    Usage:
        @traced_function("my_operation")
        def my_function():
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            tracer = trace.get_tracer(__name__)
            op_name = operation_name or func.__name__

            with tracer.start_as_current_span(op_name) as span:
                span.set_attribute("function.name", func.__name__)
                span.set_attribute("function.module", func.__module__)

                try:
                    result = func(*args, **kwargs)
                    span.set_attribute("function.status", "success")
                    return result
                except Exception as e:
                    span.set_attribute("function.status", "error")
                    span.set_attribute("error.type", type(e).__name__)
                    span.set_attribute("error.message", str(e))
                    span.record_exception(e)
                    raise

        return wrapper
    return decorator


def get_correlation_id(request=None) -> str:
    """Get or generate a correlation ID.

    Checks the X-Correlation-ID header, then X-Request-ID, and falls back to
    a fresh UUID.
    """
    if request is not None:
        return (
            request.headers.get('X-Correlation-ID') or
            request.headers.get('X-Request-ID') or
            str(uuid.uuid4())
        )
    return str(uuid.uuid4())
