"""
Risk Report Service - the engine's single entry point.

FLOW (sequential, per request):
-------------------------------
    get_patient ──► get_notes ──► NoteIndexSync.sync ──► TriggerSearch.search
                                                               │
            RiskReport ◄── RiskClassifier.classify ◄── TriggerAggregator.aggregate

Every collaborator is injected; get_report_service() wires the configured
production adapters. Requests for the same patient are serialized inside the
process because sync rewrites the patient's documents and a concurrent search
could observe a half-written index.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import date
from typing import Iterator

from diabetes_risk_engine.analysis.aggregator import TriggerAggregator
from diabetes_risk_engine.catalog import TRIGGER_CATALOG, TriggerTerm
from diabetes_risk_engine.classification.risk_rules import RuleBasedRiskClassifier, compute_age
from diabetes_risk_engine.config import EngineConfig, get_config
from diabetes_risk_engine.core.errors import RiskEngineError
from diabetes_risk_engine.core.protocols import Clock, NoteIndex, NoteStore, PatientDirectory, RiskClassifier
from diabetes_risk_engine.index.search import TriggerSearch
from diabetes_risk_engine.index.store import NoteIndexConfig, get_note_index
from diabetes_risk_engine.index.sync import NoteIndexSync
from diabetes_risk_engine.observability.attributes import (
    RISK_NOTE_COUNT,
    RISK_PATIENT_ID,
    report_attributes,
)
from diabetes_risk_engine.observability.tracer import TracerProtocol, get_tracer
from diabetes_risk_engine.schemas.risk_report import RiskReport

logger = logging.getLogger(__name__)


class SystemClock:
    """Clock backed by the local date."""

    def today(self) -> date:
        return date.today()


class PatientLocks:
    """One lock per patient id, kept only while a request holds or awaits it."""

    def __init__(self):
        self._guard = threading.Lock()
        # patient id -> [lock, number of requests holding or waiting]
        self._locks: dict[int, list] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @contextmanager
    def hold(self, patient_id: int) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(patient_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[patient_id]


class RiskReportService:
    """Builds a RiskReport for one patient from their current notes."""

    def __init__(
        self,
        patients: PatientDirectory,
        notes: NoteStore,
        index: NoteIndex,
        catalog: tuple[TriggerTerm, ...] | list[TriggerTerm] = TRIGGER_CATALOG,
        classifier: RiskClassifier | None = None,
        aggregator: TriggerAggregator | None = None,
        clock: Clock | None = None,
        tracer: TracerProtocol | None = None,
    ):
        self.patients = patients
        self.notes = notes
        self.index = index
        self.classifier = classifier or RuleBasedRiskClassifier()
        self.aggregator = aggregator or TriggerAggregator(catalog)
        self.clock = clock or SystemClock()
        self._tracer = tracer
        self._sync = NoteIndexSync(index, tracer)
        self._search = TriggerSearch(index, catalog, tracer)
        self._locks = PatientLocks()

    @property
    def tracer(self) -> TracerProtocol:
        return self._tracer or get_tracer()

    def get_risk_report(self, patient_id: int) -> RiskReport | None:
        """
        Assess the patient's diabetes risk from all of their notes.

        Returns:
            The report, or None when the patient does not exist

        Raises:
            CollaboratorError: the patient or note service failed
            IndexUnavailableError: the index could not be synchronised
            SearchBackendError: the trigger query failed
        """
        with self._locks.hold(patient_id):
            with self.tracer.start_span("risk.report", attributes={RISK_PATIENT_ID: patient_id}) as span:
                try:
                    report = self._build_report(patient_id, span)
                except RiskEngineError as e:
                    span.fail(e)
                    logger.error(f"Risk report failed for patient {patient_id}: [{e.code}] {e.message}")
                    raise

                if report is None:
                    span.succeed("patient not found")
                    return None

                span.set_attributes(
                    report_attributes(patient_id, report.risk_level.value, report.trigger_count)
                )
                span.succeed()

        logger.info(
            f"Patient {patient_id}: {report.risk_level.value} ({report.trigger_count} trigger(s))"
        )
        return report

    def _build_report(self, patient_id: int, span) -> RiskReport | None:
        patient = self.patients.get_patient(patient_id)
        if patient is None:
            return None

        notes = self.notes.get_notes_by_patient_id(patient_id)
        span.set_attributes({RISK_NOTE_COUNT: len(notes)})

        # Always sync, so notes deleted upstream leave the index too.
        indexed = self._sync.sync(patient_id, notes)
        if indexed == 0:
            logger.debug(f"Patient {patient_id} has no notes to assess")
            return RiskReport.empty(patient_id)

        hits = self._search.search(patient_id)
        trigger_terms = self.aggregator.aggregate(hits)

        age = compute_age(patient.date_of_birth, self.clock.today())
        risk_level = self.classifier.classify(age, patient.gender, len(trigger_terms))

        return RiskReport(patient_id=patient_id, risk_level=risk_level, trigger_terms=tuple(trigger_terms))


# ---------------------------------------------------------------------------
# FACTORY FUNCTION
# ---------------------------------------------------------------------------


def get_report_service(
    config: EngineConfig | None = None,
    index: NoteIndex | None = None,
) -> RiskReportService:
    """
    Wire a RiskReportService from configuration.

    Patient and note services are reached over HTTP; the index backend comes
    from INDEX_BACKEND unless an index is passed in.
    """
    from diabetes_risk_engine.collaborators.http import HttpNoteStore, HttpPatientDirectory

    config = config or get_config()
    if index is None:
        index = get_note_index(config.index_backend, NoteIndexConfig.from_engine_config(config))
        index.connect()

    return RiskReportService(
        patients=HttpPatientDirectory.from_config(config),
        notes=HttpNoteStore.from_config(config),
        index=index,
    )
