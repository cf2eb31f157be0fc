"""
Core protocols defining contracts for the risk engine.

Every collaborator the report pipeline talks to is described here as a
Protocol, so the service can be wired with production adapters (HTTP,
Elasticsearch, PostgreSQL) or with the in-memory doubles used in tests.

PATTERN:
- Protocol defines the contract
- Production implementation talks to the real backend
- In-memory implementation for fast tests
- Factory function picks one from configuration
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from diabetes_risk_engine.index.document import IndexedNote
    from diabetes_risk_engine.schemas.records import NoteRecord, PatientRecord
    from diabetes_risk_engine.schemas.risk_report import RiskLevel


# ---------------------------------------------------------------------------
# EXTERNAL COLLABORATORS
# ---------------------------------------------------------------------------


@runtime_checkable
class PatientDirectory(Protocol):
    """
    Contract for patient demographics lookup.

    Implementations:
    - HttpPatientDirectory (patient API behind the gateway)
    - InMemoryPatientDirectory (testing)
    """

    def get_patient(self, patient_id: int) -> PatientRecord | None:
        """Return the patient, or None when the id is unknown."""
        ...


@runtime_checkable
class NoteStore(Protocol):
    """
    Contract for clinical note retrieval.

    Implementations:
    - HttpNoteStore (note API behind the gateway)
    - InMemoryNoteStore (testing)
    """

    def get_notes_by_patient_id(self, patient_id: int) -> list[NoteRecord]:
        """Return every note for the patient, possibly empty."""
        ...


# ---------------------------------------------------------------------------
# NOTE INDEX PROTOCOL
# ---------------------------------------------------------------------------


@dataclass
class SearchHit:
    """
    One note matched by a trigger query.

    `highlight_fragments` hold excerpts of the note text in which each
    matched token is wrapped in the highlight marker pair.
    """
    note_id: str
    patient_id: int
    text: str
    highlight_fragments: list[str] = field(default_factory=list)


@runtime_checkable
class NoteIndex(Protocol):
    """
    Contract for the full-text index holding a projection of patient notes.

    Implementations:
    - ElasticsearchNoteIndex (production)
    - PgNoteIndex (PostgreSQL)
    - InMemoryNoteIndex (testing/development)
    """

    def ensure_index(self) -> None:
        """Create the index/table if it does not exist yet."""
        ...

    def delete_by_patient(self, patient_id: int) -> int:
        """Remove every document tagged with the patient. Returns the count removed."""
        ...

    def index_note(self, doc: IndexedNote) -> None:
        """Insert or replace one document."""
        ...

    def refresh(self) -> None:
        """Make previously indexed documents visible to search."""
        ...

    def search_triggers(self, patient_id: int, terms: list[str]) -> list[SearchHit]:
        """Fuzzy should-match-any search over `terms`, restricted to one patient."""
        ...


# ---------------------------------------------------------------------------
# RISK CLASSIFIER PROTOCOL
# ---------------------------------------------------------------------------


@runtime_checkable
class RiskClassifier(Protocol):
    """
    Contract for mapping demographics and trigger count to a risk tier.

    Implementations:
    - RuleBasedRiskClassifier (the deterministic decision table)
    """

    def classify(self, age: int, gender: str | None, trigger_count: int) -> RiskLevel:
        """Return the risk tier."""
        ...


@runtime_checkable
class Clock(Protocol):
    """Source of today's date, injected so age computation is testable."""

    def today(self) -> date:
        ...
