"""
Collaborators module - adapters for the patient and note services.
"""

from diabetes_risk_engine.collaborators.http import HttpNoteStore, HttpPatientDirectory
from diabetes_risk_engine.collaborators.memory import InMemoryNoteStore, InMemoryPatientDirectory

__all__ = [
    "HttpPatientDirectory",
    "HttpNoteStore",
    "InMemoryPatientDirectory",
    "InMemoryNoteStore",
]
