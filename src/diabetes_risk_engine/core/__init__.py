"""
Core module - shared protocols, hit type and errors.

USAGE:
------
from diabetes_risk_engine.core import NoteIndex, SearchHit

class MyNoteIndex:
    '''Implements NoteIndex protocol.'''
    ...
"""

from diabetes_risk_engine.core.errors import (
    CollaboratorError,
    IndexUnavailableError,
    RiskEngineError,
    SearchBackendError,
)
from diabetes_risk_engine.core.protocols import (
    # Protocols
    Clock,
    NoteIndex,
    NoteStore,
    PatientDirectory,
    RiskClassifier,
    # Data classes
    SearchHit,
)

__all__ = [
    # Protocols
    "Clock",
    "NoteIndex",
    "NoteStore",
    "PatientDirectory",
    "RiskClassifier",
    # Data classes
    "SearchHit",
    # Errors
    "RiskEngineError",
    "IndexUnavailableError",
    "SearchBackendError",
    "CollaboratorError",
]
