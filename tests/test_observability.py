"""
Unit Tests for Observability Module

Tests logging setup and the OpenTelemetry integration with focus on:
1. Graceful degradation (NoOpTracer when disabled)
2. Configuration loading from environment
3. Span attribute helpers

PATTERNS:
---------
1. Environment variable handling tested with patch.dict
2. Global singletons reset around every test
3. Zero overhead when disabled
"""

import logging
from unittest.mock import MagicMock, patch

import pytest

from diabetes_risk_engine.core.errors import IndexUnavailableError
from diabetes_risk_engine.observability import init_tracing, shutdown_tracing
from diabetes_risk_engine.observability.attributes import (
    EVAL_CASE_ERROR,
    EVAL_CASE_ID,
    EVAL_CASE_PASSED,
    RISK_LEVEL,
    RISK_PATIENT_ID,
    RISK_TRIGGER_COUNT,
    eval_case_attributes,
    report_attributes,
)
from diabetes_risk_engine.observability.config import TracingConfig, get_config, reset_config
from diabetes_risk_engine.observability.log_setup import StructuredFormatter, setup_logging
from diabetes_risk_engine.observability.tracer import (
    NoOpSpan,
    NoOpTracer,
    OTelSpan,
    OTelTracer,
    get_tracer,
    reset_tracer,
)


@pytest.fixture(autouse=True)
def clean_state():
    reset_config()
    reset_tracer()
    yield
    reset_config()
    reset_tracer()


# ---------------------------------------------------------------------------
# CONFIG TESTS
# ---------------------------------------------------------------------------


class TestTracingConfig:
    """Test configuration loading."""

    def test_config_defaults(self):
        """Tracing is off unless asked for."""
        with patch.dict("os.environ", {}, clear=True):
            config = TracingConfig.from_env()

        assert config.enabled is False
        assert config.service_name == "diabetes-risk-engine"
        assert config.collector_endpoint is None

    def test_config_from_env(self):
        env = {
            "TRACING_ENABLED": "yes",
            "TRACING_SERVICE_NAME": "risk-api",
            "OTEL_EXPORTER_OTLP_ENDPOINT": "http://collector:4318/v1/traces",
        }
        with patch.dict("os.environ", env, clear=True):
            config = TracingConfig.from_env()

        assert config.enabled is True
        assert config.service_name == "risk-api"
        assert config.collector_endpoint == "http://collector:4318/v1/traces"

    def test_config_singleton(self):
        assert get_config() is get_config()


# ---------------------------------------------------------------------------
# TRACER TESTS
# ---------------------------------------------------------------------------


class TestNoOpTracer:
    """Test the zero-overhead tracer."""

    def test_span_accepts_everything(self):
        with NoOpTracer().start_span("risk.report", attributes={RISK_PATIENT_ID: 1}) as span:
            assert isinstance(span, NoOpSpan)
            span.set_attributes({RISK_LEVEL: "None"})
            span.succeed("patient not found")
            span.fail(IndexUnavailableError("down"))

    def test_exceptions_propagate(self):
        with pytest.raises(ValueError):
            with NoOpTracer().start_span("risk.report"):
                raise ValueError("boom")


class TestGetTracer:
    """Test the tracer factory."""

    def test_disabled_returns_noop(self):
        with patch.dict("os.environ", {"TRACING_ENABLED": "false"}):
            assert isinstance(get_tracer(), NoOpTracer)

    def test_enabled_without_provider_returns_noop(self):
        with patch.dict("os.environ", {"TRACING_ENABLED": "true"}):
            with patch("opentelemetry.trace.get_tracer_provider", return_value=object()):
                assert isinstance(get_tracer(), NoOpTracer)

    def test_enabled_with_sdk_provider_returns_otel(self):
        from opentelemetry.sdk.trace import TracerProvider

        with patch.dict("os.environ", {"TRACING_ENABLED": "true"}):
            with patch("opentelemetry.trace.get_tracer_provider", return_value=TracerProvider()):
                assert isinstance(get_tracer(), OTelTracer)

    def test_tracer_is_cached(self):
        assert get_tracer() is get_tracer()


class TestOTelSpan:
    """Test the span wrapper against a mocked OTel span."""

    def test_fail_records_error_and_message(self):
        from opentelemetry.trace import StatusCode

        raw = MagicMock()
        error = IndexUnavailableError("index down")

        OTelSpan(raw).fail(error)

        raw.record_exception.assert_called_once_with(error)
        status = raw.set_status.call_args.args[0]
        assert status.status_code == StatusCode.ERROR
        assert status.description == "index down"

    def test_succeed_keeps_note_as_attribute(self):
        from opentelemetry.trace import StatusCode

        raw = MagicMock()

        OTelSpan(raw).succeed("patient not found")

        raw.set_attribute.assert_called_once_with("risk.outcome", "patient not found")
        assert raw.set_status.call_args.args[0].status_code == StatusCode.OK

    def test_succeed_without_note(self):
        raw = MagicMock()

        OTelSpan(raw).succeed()

        raw.set_attribute.assert_not_called()

    def test_attributes_forwarded(self):
        raw = MagicMock()

        OTelSpan(raw).set_attributes({RISK_LEVEL: "Borderline", RISK_TRIGGER_COUNT: 2})

        raw.set_attributes.assert_called_once_with({RISK_LEVEL: "Borderline", RISK_TRIGGER_COUNT: 2})


class TestInitTracing:
    """Test tracing initialization."""

    def test_disabled(self):
        assert init_tracing(TracingConfig(enabled=False)) is False

    def test_shutdown_without_init_is_noop(self):
        shutdown_tracing()


# ---------------------------------------------------------------------------
# ATTRIBUTE HELPERS
# ---------------------------------------------------------------------------


class TestAttributes:
    """Test attribute helper functions."""

    def test_report_attributes(self):
        assert report_attributes(3, "In Danger", 4) == {
            RISK_PATIENT_ID: 3,
            RISK_LEVEL: "In Danger",
            RISK_TRIGGER_COUNT: 4,
        }

    def test_eval_case_attributes(self):
        assert eval_case_attributes("seed-none", True) == {EVAL_CASE_ID: "seed-none", EVAL_CASE_PASSED: True}

    def test_eval_case_attributes_with_error(self):
        attrs = eval_case_attributes("seed-none", False, "Missing triggers: Vertiges")
        assert attrs[EVAL_CASE_ERROR] == "Missing triggers: Vertiges"


# ---------------------------------------------------------------------------
# LOGGING
# ---------------------------------------------------------------------------


class TestLogging:
    """Test the log formatter and setup."""

    def _record(self, level=logging.INFO, msg="Patient 3: In Danger"):
        return logging.LogRecord("diabetes_risk_engine.service", level, __file__, 1, msg, None, None)

    def test_format(self):
        line = StructuredFormatter().format(self._record())

        assert "INFO" in line
        assert "[diabetes_risk_engine.service]" in line
        assert line.endswith("Patient 3: In Danger")

    def test_color(self):
        line = StructuredFormatter(use_color=True).format(self._record(logging.ERROR))

        assert line.startswith(StructuredFormatter.COLORS["ERROR"])
        assert line.endswith(StructuredFormatter.RESET)

    def test_setup_logging(self, tmp_path):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging("debug", log_file=str(tmp_path / "engine.log"))

            assert root.level == logging.DEBUG
            assert len(root.handlers) == 2
            assert isinstance(root.handlers[0].formatter, StructuredFormatter)
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_invalid_level(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            setup_logging("LOUD")
