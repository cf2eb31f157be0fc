"""
In-memory patient directory and note store for development/testing.
"""

from __future__ import annotations

from collections import defaultdict

from diabetes_risk_engine.schemas.records import NoteRecord, PatientRecord


class InMemoryPatientDirectory:
    """Implements the PatientDirectory protocol over a dict."""

    def __init__(self, patients: list[PatientRecord] | None = None):
        self._patients: dict[int, PatientRecord] = {}
        for patient in patients or []:
            self.add(patient)

    def add(self, patient: PatientRecord) -> None:
        self._patients[patient.id] = patient

    def get_patient(self, patient_id: int) -> PatientRecord | None:
        return self._patients.get(patient_id)


class InMemoryNoteStore:
    """Implements the NoteStore protocol; notes are returned in insertion order."""

    def __init__(self, notes: list[NoteRecord] | None = None):
        self._notes: dict[int, list[NoteRecord]] = defaultdict(list)
        for note in notes or []:
            self.add(note)

    def add(self, note: NoteRecord) -> None:
        self._notes[note.patient_id].append(note)

    def remove(self, note_id: str) -> None:
        for notes in self._notes.values():
            notes[:] = [n for n in notes if n.id != note_id]

    def get_notes_by_patient_id(self, patient_id: int) -> list[NoteRecord]:
        return list(self._notes.get(patient_id, []))
