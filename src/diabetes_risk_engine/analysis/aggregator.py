"""
Trigger Aggregator - from highlighted hits to the final trigger set.

For every fragment of every hit:
1. merge adjacent marker pairs
2. read each marked span
3. drop the "normal" false positive
4. ask the negation filter about the span in its fragment
5. keep the surviving mention as written in the note

Triggers are the matched words themselves, deduplicated case-insensitively:
"fumeur" and "Tabagisme" are two triggers even though both come from the
smoker entry, while "Vertiges" and "vertiges" are one. `report_canonical_names=True`
reports the catalog entry instead, which collapses synonyms across notes.

The output is sorted, so the same hits always produce the same list whatever
order the backend returned them in.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from diabetes_risk_engine.analysis.negation import NegationFilter
from diabetes_risk_engine.catalog import TRIGGER_CATALOG, TriggerTerm
from diabetes_risk_engine.core.protocols import SearchHit
from diabetes_risk_engine.matching.fuzzy import phrase_distance
from diabetes_risk_engine.matching.highlights import (
    MARKED_SPAN,
    clean_surface,
    is_false_positive,
    merge_adjacent_spans,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Mention:
    """One highlighted mention and what the pipeline made of it."""
    surface: str
    canonical_name: str
    note_id: str
    negated: bool
    fragment: str


class CatalogResolver:
    """Maps a surface form to the closest catalog entry."""

    def __init__(self, catalog: tuple[TriggerTerm, ...] | list[TriggerTerm] = TRIGGER_CATALOG):
        self._variants = [
            (variant, term.canonical_name)
            for term in catalog
            for variant in term.variants
        ]

    def resolve(self, surface: str) -> str:
        """
        Canonical name of the variant nearest to `surface`.

        The index only highlights what matched a catalog variant, so the
        nearest variant is the one that produced the highlight. Ties go to the
        earlier catalog entry.
        """
        best_name = ""
        best_distance: int | None = None
        for variant, canonical_name in self._variants:
            distance = phrase_distance(surface, variant)
            if best_distance is None or distance < best_distance:
                best_name, best_distance = canonical_name, distance
                if distance == 0:
                    break
        return best_name


class TriggerAggregator:
    """Reduces search hits to a deduplicated list of detected triggers."""

    def __init__(
        self,
        catalog: tuple[TriggerTerm, ...] | list[TriggerTerm] = TRIGGER_CATALOG,
        negation_filter: NegationFilter | None = None,
        report_canonical_names: bool = False,
    ):
        self._resolver = CatalogResolver(catalog)
        self._negation = negation_filter or NegationFilter()
        self.report_canonical_names = report_canonical_names

    def iter_mentions(self, hits: list[SearchHit]) -> Iterator[Mention]:
        """Yield every highlighted mention, negated ones included."""
        for hit in hits:
            for fragment in hit.highlight_fragments:
                merged = merge_adjacent_spans(fragment)
                for match in MARKED_SPAN.finditer(merged):
                    surface = clean_surface(match.group(1))
                    if not surface or is_false_positive(surface):
                        continue
                    yield Mention(
                        surface=surface,
                        canonical_name=self._resolver.resolve(surface),
                        note_id=hit.note_id,
                        negated=self._negation.is_negated_span(merged, match.start(), match.end()),
                        fragment=merged,
                    )

    def collect_mentions(self, hits: list[SearchHit], include_negated: bool = False) -> list[Mention]:
        return [m for m in self.iter_mentions(hits) if include_negated or not m.negated]

    def aggregate(self, hits: list[SearchHit]) -> list[str]:
        """
        Return the detected triggers, case-insensitively unique and sorted.

        Among case variants of the same trigger the lexicographically smallest
        spelling is kept, so the result does not depend on hit order.
        """
        chosen: dict[str, str] = {}
        negated = 0
        for mention in self.iter_mentions(hits):
            if mention.negated:
                negated += 1
                continue
            value = mention.canonical_name if self.report_canonical_names else mention.surface
            key = value.casefold()
            if key not in chosen or value < chosen[key]:
                chosen[key] = value

        logger.debug(f"Aggregated {len(chosen)} trigger(s), {negated} negated mention(s) dropped")
        return [chosen[key] for key in sorted(chosen)]
