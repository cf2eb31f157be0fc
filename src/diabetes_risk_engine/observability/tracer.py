"""
Risk-engine spans over OpenTelemetry.

Every traced step in the engine ends one of two ways: it produced a result
(succeed, with the counts it wants on the span) or a RiskEngineError escaped
(fail). The span surface is narrowed to exactly that so call sites stay one
line per outcome. When tracing is off, get_tracer() hands out NoOpTracer.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, ContextManager, Iterator, Mapping, Protocol


class SpanProtocol(Protocol):
    def set_attributes(self, attributes: Mapping[str, Any]) -> None: ...

    def succeed(self, note: str | None = None) -> None: ...

    def fail(self, error: Exception) -> None: ...


class TracerProtocol(Protocol):
    def start_span(
        self, name: str, attributes: Mapping[str, Any] | None = None
    ) -> ContextManager[SpanProtocol]: ...


class NoOpSpan:
    def set_attributes(self, attributes: Mapping[str, Any]) -> None:
        pass

    def succeed(self, note: str | None = None) -> None:
        pass

    def fail(self, error: Exception) -> None:
        pass


class NoOpTracer:
    @contextmanager
    def start_span(self, name: str, attributes: Mapping[str, Any] | None = None) -> Iterator[NoOpSpan]:
        yield NoOpSpan()


class OTelSpan:
    """Maps succeed/fail onto an OpenTelemetry span's status and events."""

    def __init__(self, span: Any):
        self._span = span

    def set_attributes(self, attributes: Mapping[str, Any]) -> None:
        self._span.set_attributes(dict(attributes))

    def succeed(self, note: str | None = None) -> None:
        from opentelemetry.trace import Status, StatusCode

        # OTel drops descriptions on OK statuses, so the note goes on an attribute.
        if note:
            self._span.set_attribute("risk.outcome", note)
        self._span.set_status(Status(StatusCode.OK))

    def fail(self, error: Exception) -> None:
        from opentelemetry.trace import Status, StatusCode

        self._span.record_exception(error)
        self._span.set_status(Status(StatusCode.ERROR, getattr(error, "message", str(error))))


class OTelTracer:
    def __init__(self, tracer: Any):
        self._tracer = tracer

    @contextmanager
    def start_span(self, name: str, attributes: Mapping[str, Any] | None = None) -> Iterator[OTelSpan]:
        # fail() records domain errors; anything else only flips the status.
        with self._tracer.start_as_current_span(
            name,
            attributes=dict(attributes or {}),
            record_exception=False,
            set_status_on_exception=True,
        ) as span:
            yield OTelSpan(span)


_tracer: TracerProtocol | None = None


def get_tracer(scope: str = "diabetes_risk_engine") -> TracerProtocol:
    """Process-wide tracer; OTel-backed only once init_tracing() installed an SDK provider."""
    global _tracer
    if _tracer is None:
        _tracer = _build_tracer(scope)
    return _tracer


def _build_tracer(scope: str) -> TracerProtocol:
    from diabetes_risk_engine.observability.config import get_config

    if not get_config().enabled:
        return NoOpTracer()

    from opentelemetry import trace
    from opentelemetry.sdk.trace import TracerProvider

    if not isinstance(trace.get_tracer_provider(), TracerProvider):
        return NoOpTracer()
    return OTelTracer(trace.get_tracer(scope))


def reset_tracer() -> None:
    global _tracer
    _tracer = None
