"""
Index synchronisation: make the note index mirror one patient's notes.

The index is a projection of the note store. Every sync throws away what the
index holds for the patient and rewrites it, so edits and deletions in the
store always show up. Cost is proportional to the patient's note count.
"""

from __future__ import annotations

import logging

from diabetes_risk_engine.core.errors import RiskEngineError
from diabetes_risk_engine.core.protocols import NoteIndex
from diabetes_risk_engine.index.document import IndexedNote
from diabetes_risk_engine.observability.attributes import (
    RISK_DELETED_COUNT,
    RISK_INDEXED_COUNT,
    RISK_NOTE_COUNT,
    RISK_PATIENT_ID,
)
from diabetes_risk_engine.observability.tracer import TracerProtocol, get_tracer
from diabetes_risk_engine.schemas.records import NoteRecord

logger = logging.getLogger(__name__)


class NoteIndexSync:
    """Delete-then-reinsert-then-refresh for one patient."""

    def __init__(self, index: NoteIndex, tracer: TracerProtocol | None = None):
        self.index = index
        self._tracer = tracer

    @property
    def tracer(self) -> TracerProtocol:
        return self._tracer or get_tracer()

    def sync(self, patient_id: int, notes: list[NoteRecord]) -> int:
        """
        Replace the patient's indexed notes with `notes`.

        Blank notes are skipped. After this returns, every inserted document
        is visible to search.

        Returns:
            Number of documents inserted

        Raises:
            IndexUnavailableError: the index rejected or could not serve a step
        """
        docs = [IndexedNote.from_record(note, patient_id) for note in notes if not note.is_blank]

        with self.tracer.start_span(
            "risk.index_sync",
            attributes={RISK_PATIENT_ID: patient_id, RISK_NOTE_COUNT: len(notes)},
        ) as span:
            try:
                deleted = self.index.delete_by_patient(patient_id)
                if docs:
                    self.index.ensure_index()
                    for doc in docs:
                        self.index.index_note(doc)
                self.index.refresh()
            except RiskEngineError as e:
                span.fail(e)
                logger.error(f"Index sync failed for patient {patient_id}: {e.message}")
                raise

            span.set_attributes({RISK_DELETED_COUNT: deleted, RISK_INDEXED_COUNT: len(docs)})
            span.succeed()

        skipped = len(notes) - len(docs)
        logger.debug(
            f"Synced patient {patient_id}: deleted {deleted}, indexed {len(docs)}"
            + (f", skipped {skipped} blank" if skipped else "")
        )
        return len(docs)
