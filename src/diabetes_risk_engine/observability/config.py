"""
Tracing Configuration

Loads OpenTelemetry settings from environment variables.
Supports graceful degradation when no exporter is installed.
"""

import os
from dataclasses import dataclass


@dataclass
class TracingConfig:
    """Configuration for OpenTelemetry tracing.

    Environment Variables:
        TRACING_ENABLED: Enable tracing (default: false)
        TRACING_SERVICE_NAME: service.name resource attribute (default: diabetes-risk-engine)
        OTEL_EXPORTER_OTLP_ENDPOINT: OTLP/HTTP collector endpoint (optional, console if empty)

    PRIVACY WARNING:
        Spans carry patient ids and trigger counts, never note text. Do not add
        note fragments as span attributes; they are clinical data.
    """

    enabled: bool = False
    service_name: str = "diabetes-risk-engine"
    collector_endpoint: str | None = None

    @classmethod
    def from_env(cls) -> "TracingConfig":
        """Load config from environment variables."""
        return cls(
            enabled=os.environ.get("TRACING_ENABLED", "false").lower() in ("true", "1", "yes"),
            service_name=os.environ.get("TRACING_SERVICE_NAME", "diabetes-risk-engine"),
            collector_endpoint=os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT") or None,
        )


# Global config singleton
_config: TracingConfig | None = None


def get_config() -> TracingConfig:
    """Get the global tracing config (lazy-loaded from env)."""
    global _config
    if _config is None:
        _config = TracingConfig.from_env()
    return _config


def reset_config() -> None:
    """Reset config (useful for testing)."""
    global _config
    _config = None
