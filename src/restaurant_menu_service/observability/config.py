"""Structured logging and OpenTelemetry setup for the menu service.

Logging is always JSON. Tracing and metrics are only exported when the
application factory calls setup_observability (ENABLE_OTEL=true); without it
the @traced spans and counters go to the no-op providers.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.botocore import BotocoreInstrumentor
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from pythonjsonlogger import jsonlogger

logger = logging.getLogger(__name__)

SERVICE_NAME = "restaurant-menu-service"
SERVICE_VERSION = "1.0.0"

# SDK loggers that log every request at INFO/DEBUG
NOISY_LOGGERS = ("boto3", "botocore", "urllib3", "s3transfer")

# Health probes are not traced
UNTRACED_URLS = "health"


@dataclass(frozen=True)
class ObservabilitySettings:
    """OpenTelemetry settings read from the environment."""

    service_name: str = SERVICE_NAME
    environment: str = "development"
    otlp_endpoint: str = "http://localhost:4318"
    metric_export_interval_ms: int = 60000

    @property
    def exporters_enabled(self) -> bool:
        """Tests never export; they run with in-process providers only."""
        return self.environment != "test"

    @classmethod
    def from_env(cls) -> "ObservabilitySettings":
        return cls(
            service_name=os.getenv("OTEL_SERVICE_NAME", SERVICE_NAME),
            environment=os.getenv("ENVIRONMENT", "development"),
            otlp_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4318").rstrip(
                "/"
            ),
            metric_export_interval_ms=int(os.getenv("OTEL_METRIC_EXPORT_INTERVAL", "60000")),
        )


def build_resource(settings: ObservabilitySettings) -> Resource:
    """Describe this service to the telemetry backend."""
    return Resource.create(
        {
            "service.name": settings.service_name,
            "service.version": SERVICE_VERSION,
            "deployment.environment": settings.environment,
        }
    )


def setup_observability(app: Any = None, settings: ObservabilitySettings | None = None) -> None:
    """Install trace and metric providers and instrument botocore and FastAPI.

    Every DynamoDB and S3 call goes through botocore, so one instrumentor
    covers both stores.

    Args:
        app: FastAPI application to instrument, if any
        settings: Settings to use instead of reading the environment
    """
    settings = settings or ObservabilitySettings.from_env()
    resource = build_resource(settings)

    tracer_provider = TracerProvider(resource=resource)
    metric_readers: list[PeriodicExportingMetricReader] = []

    if settings.exporters_enabled:
        tracer_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=f"{settings.otlp_endpoint}/v1/traces"))
        )
        metric_readers.append(
            PeriodicExportingMetricReader(
                OTLPMetricExporter(endpoint=f"{settings.otlp_endpoint}/v1/metrics"),
                export_interval_millis=settings.metric_export_interval_ms,
            )
        )

    trace.set_tracer_provider(tracer_provider)
    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=metric_readers))

    BotocoreInstrumentor().instrument()
    if app is not None:
        FastAPIInstrumentor.instrument_app(app, excluded_urls=UNTRACED_URLS)

    logger.info(
        f"OpenTelemetry configured for {settings.service_name} "
        f"(exporting: {settings.exporters_enabled}, endpoint: {settings.otlp_endpoint})"
    )


def configure_logging(log_level: str = "INFO") -> None:
    """Send JSON log lines to stderr through a single root handler.

    Lambda and uvicorn both install handlers of their own; they are replaced
    so every record is emitted exactly once, as JSON.

    Args:
        log_level: Fallback level when LOG_LEVEL is not set
    """
    level_name = os.getenv("LOG_LEVEL", log_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s",
        rename_fields={"levelname": "level", "name": "logger"},
        static_fields={"service": os.getenv("OTEL_SERVICE_NAME", SERVICE_NAME)},
        timestamp=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logger.info(f"JSON logging configured at {level_name}")
