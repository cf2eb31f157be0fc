"""
Observability Module - logging setup and OpenTelemetry tracing

USAGE:
------
# At application startup:
from diabetes_risk_engine.observability import init_tracing, setup_logging

setup_logging("INFO")
init_tracing()  # Installs an SDK provider if TRACING_ENABLED=true

# In code that needs tracing:
from diabetes_risk_engine.observability import get_tracer

tracer = get_tracer()
with tracer.start_span("risk.report", attributes={"risk.patient_id": 3}) as span:
    # ... do work ...
    span.set_attributes({"risk.level": "Borderline"})
    span.succeed()
"""

from __future__ import annotations

import logging

from diabetes_risk_engine.observability.attributes import (
    RISK_DELETED_COUNT,
    RISK_HIT_COUNT,
    RISK_INDEX_BACKEND,
    RISK_INDEXED_COUNT,
    RISK_LEVEL,
    RISK_NOTE_COUNT,
    RISK_PATIENT_ID,
    RISK_TRIGGER_COUNT,
    eval_case_attributes,
    report_attributes,
)
from diabetes_risk_engine.observability.config import (
    TracingConfig,
    get_config,
    reset_config,
)
from diabetes_risk_engine.observability.log_setup import setup_logging
from diabetes_risk_engine.observability.tracer import (
    NoOpSpan,
    NoOpTracer,
    SpanProtocol,
    TracerProtocol,
    get_tracer,
    reset_tracer,
)

logger = logging.getLogger(__name__)

_tracing_initialized = False


def init_tracing(config: TracingConfig | None = None) -> bool:
    """
    Install an OpenTelemetry tracer provider.

    Spans are exported over OTLP/HTTP when a collector endpoint is configured
    (requires the `otlp` extra), to the console otherwise.

    Args:
        config: Optional config (uses env vars if not provided)

    Returns:
        True if tracing was initialized, False if disabled or failed
    """
    global _tracing_initialized
    if _tracing_initialized:
        return True

    config = config or get_config()

    if not config.enabled:
        logger.debug("Tracing disabled")
        return False

    from opentelemetry import trace
    from opentelemetry.sdk.resources import SERVICE_NAME, Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

    if config.collector_endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        except ImportError as e:
            logger.warning(f"OTLP exporter not installed, tracing disabled: {e}")
            return False
        exporter = OTLPSpanExporter(endpoint=config.collector_endpoint)
        logger.info(f"Exporting traces to: {config.collector_endpoint}")
    else:
        exporter = ConsoleSpanExporter()
        logger.info("Exporting traces to console")

    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: config.service_name}))
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    reset_tracer()
    _tracing_initialized = True
    return True


def shutdown_tracing() -> None:
    """Flush pending spans and reset tracing state."""
    global _tracing_initialized

    if not _tracing_initialized:
        return

    from opentelemetry import trace

    provider = trace.get_tracer_provider()
    if hasattr(provider, "shutdown"):
        provider.shutdown()

    reset_tracer()
    reset_config()
    _tracing_initialized = False


__all__ = [
    # Initialization
    "init_tracing",
    "shutdown_tracing",
    "setup_logging",
    # Config
    "TracingConfig",
    "get_config",
    "reset_config",
    # Tracer
    "TracerProtocol",
    "SpanProtocol",
    "NoOpTracer",
    "NoOpSpan",
    "get_tracer",
    "reset_tracer",
    # Attributes
    "RISK_PATIENT_ID",
    "RISK_NOTE_COUNT",
    "RISK_INDEXED_COUNT",
    "RISK_DELETED_COUNT",
    "RISK_HIT_COUNT",
    "RISK_TRIGGER_COUNT",
    "RISK_LEVEL",
    "RISK_INDEX_BACKEND",
    # Helpers
    "report_attributes",
    "eval_case_attributes",
]
