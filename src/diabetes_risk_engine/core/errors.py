"""
Exception hierarchy for the risk engine.

Every failure that terminates a report request derives from RiskEngineError.
None of them are recoverable inside the pipeline: a report built from a stale
or partial index would carry an unverifiable risk tier.
"""

from __future__ import annotations

from typing import Any


class RiskEngineError(Exception):
    """Base exception for all risk engine errors."""

    def __init__(
        self,
        message: str,
        code: str = "RISK_ENGINE_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for callers and logs."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class IndexUnavailableError(RiskEngineError):
    """The note index could not be reached or refused a write."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, code="INDEX_UNAVAILABLE", details=details)


class SearchBackendError(RiskEngineError):
    """The trigger query failed or returned a malformed response."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, code="SEARCH_BACKEND_ERROR", details=details)


class CollaboratorError(RiskEngineError):
    """The patient directory or note store failed."""

    def __init__(
        self,
        message: str,
        collaborator: str = "unknown",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code="COLLABORATOR_ERROR",
            details={"collaborator": collaborator, **(details or {})},
        )
        self.collaborator = collaborator
