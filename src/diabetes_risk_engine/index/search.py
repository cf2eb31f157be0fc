"""
Trigger search: one query per report over the whole catalog vocabulary.
"""

from __future__ import annotations

import logging

from diabetes_risk_engine.catalog import TRIGGER_CATALOG, TriggerTerm, search_terms
from diabetes_risk_engine.core.errors import RiskEngineError
from diabetes_risk_engine.core.protocols import NoteIndex, SearchHit
from diabetes_risk_engine.matching.fuzzy import fuzzy_match, normalize_words
from diabetes_risk_engine.observability.attributes import RISK_HIT_COUNT, RISK_PATIENT_ID
from diabetes_risk_engine.observability.tracer import TracerProtocol, get_tracer

logger = logging.getLogger(__name__)


def _covered_by(variant: str, kept: str) -> bool:
    """True when every word of `variant` is within the fuzzy budget of the same word of `kept`."""
    words, kept_words = normalize_words(variant), normalize_words(kept)
    return len(words) == len(kept_words) and all(
        fuzzy_match(k, w) for k, w in zip(kept_words, words)
    )


def query_terms(catalog: tuple[TriggerTerm, ...] | list[TriggerTerm] = TRIGGER_CATALOG) -> list[str]:
    """
    The strings sent to the index for `catalog`.

    Starts from search_terms() and drops each variant already matched by the
    fuzziness of an earlier variant of the same entry ("Réchute" under
    "Rechute"). Sending both would widen the match radius around the
    misspelling: "récente" is two edits from "Réchute" but three from "Rechute".
    """
    seen: set[str] = set()
    result: list[str] = []
    for term in catalog:
        kept: list[str] = []
        for variant in search_terms([term]):
            if any(_covered_by(variant, k) for k in kept):
                continue
            kept.append(variant)
            if variant.casefold() not in seen:
                seen.add(variant.casefold())
                result.append(variant)
    return result


class TriggerSearch:
    """
    Fuzzy, highlighted search for catalog terms in one patient's notes.

    The term list comes from query_terms() and is computed once per instance.
    """

    def __init__(
        self,
        index: NoteIndex,
        catalog: tuple[TriggerTerm, ...] | list[TriggerTerm] = TRIGGER_CATALOG,
        tracer: TracerProtocol | None = None,
    ):
        self.index = index
        self.terms = query_terms(catalog)
        self._tracer = tracer

    @property
    def tracer(self) -> TracerProtocol:
        return self._tracer or get_tracer()

    def search(self, patient_id: int, terms: list[str] | None = None) -> list[SearchHit]:
        """
        Return the patient's notes that mention any term, with highlights.

        Zero hits is a normal outcome and returns an empty list.

        Raises:
            SearchBackendError: the backend failed or answered malformed data
        """
        terms = terms if terms is not None else self.terms
        if not terms:
            return []

        with self.tracer.start_span("risk.trigger_search", attributes={RISK_PATIENT_ID: patient_id}) as span:
            try:
                hits = self.index.search_triggers(patient_id, terms)
            except RiskEngineError as e:
                span.fail(e)
                logger.error(f"Trigger search failed for patient {patient_id}: {e.message}")
                raise
            span.set_attributes({RISK_HIT_COUNT: len(hits)})
            span.succeed()

        logger.debug(f"Trigger search for patient {patient_id}: {len(hits)} matching note(s)")
        return hits
