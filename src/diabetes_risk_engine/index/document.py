"""
Document model for the note index.

Single responsibility: the shape of one indexed note, and its serialised form
in the index (`noteId`, `patientId`, `note`, `date`).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from diabetes_risk_engine.schemas.records import NoteRecord


@dataclass
class IndexedNote:
    """
    One note as stored in the index.

    The index is a disposable projection of the note store; an IndexedNote is
    always rebuilt from a NoteRecord, never edited in place.
    """
    note_id: str
    patient_id: int
    text: str
    date: datetime | None = None

    @classmethod
    def from_record(cls, note: NoteRecord, patient_id: int) -> IndexedNote:
        return cls(note_id=note.id, patient_id=patient_id, text=note.text, date=note.date)

    def to_dict(self) -> dict:
        """Convert to the document body stored in the index."""
        return {
            "noteId": self.note_id,
            "patientId": self.patient_id,
            "note": self.text,
            "date": self.date.isoformat() if self.date else None,
        }

    def sort_key(self) -> tuple[str, str]:
        # Undated notes sort first.
        return (self.date.isoformat() if self.date else "", self.note_id)
