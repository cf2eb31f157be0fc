"""
Elasticsearch request bodies for the note index.

Kept apart from the HTTP client so the exact JSON sent to the cluster can be
asserted in tests without a cluster.

QUERY SHAPE:
------------
    bool
      filter: term patientId          (exact, no scoring)
      must:   bool should [...]       (at least one catalog term)
              - single word  -> match, fuzziness AUTO
              - several words -> span_near of fuzzy span_multi clauses, slop 0

A plain `match` on "Consommation de tabac" would match, and highlight, every
"de" in every note. The span query keeps multi-word terms together while each
word stays fuzzy.
"""

from __future__ import annotations

from diabetes_risk_engine.catalog import HIGHLIGHT_POST, HIGHLIGHT_PRE
from diabetes_risk_engine.matching.fuzzy import normalize_words

TEXT_FIELD = "note"
DEFAULT_FRAGMENT_SIZE = 200
DEFAULT_MAX_FRAGMENTS = 20
DEFAULT_MAX_HITS = 1000


def index_settings() -> dict:
    """Index creation body: elision-aware French text field, keyword ids."""
    return {
        "settings": {
            "analysis": {
                "filter": {
                    "french_elision": {
                        "type": "elision",
                        "articles_case": True,
                        "articles": ["l", "m", "t", "qu", "n", "s", "j", "d", "c",
                                     "jusqu", "quoiqu", "lorsqu", "puisqu"],
                    }
                },
                "analyzer": {
                    "note_text": {
                        "tokenizer": "standard",
                        "filter": ["french_elision", "lowercase"],
                    }
                },
            }
        },
        "mappings": {
            "properties": {
                "noteId": {"type": "keyword"},
                "patientId": {"type": "integer"},
                TEXT_FIELD: {"type": "text", "analyzer": "note_text"},
                "date": {"type": "date"},
            }
        },
    }


def term_clause(term: str, field: str = TEXT_FIELD) -> dict | None:
    """Fuzzy clause for one catalog term, or None for a term with no words."""
    words = normalize_words(term)
    if not words:
        return None
    if len(words) == 1:
        return {"match": {field: {"query": term, "fuzziness": "AUTO"}}}
    return {
        "span_near": {
            "clauses": [
                {"span_multi": {"match": {"fuzzy": {field: {"value": word, "fuzziness": "AUTO"}}}}}
                for word in words
            ],
            "slop": 0,
            "in_order": True,
        }
    }


def build_trigger_query(
    patient_id: int,
    terms: list[str],
    field: str = TEXT_FIELD,
    fragment_size: int = DEFAULT_FRAGMENT_SIZE,
    max_fragments: int = DEFAULT_MAX_FRAGMENTS,
    max_hits: int = DEFAULT_MAX_HITS,
) -> dict:
    """Search body: one patient, any catalog term, highlighted with the marker pair."""
    should = [clause for clause in (term_clause(t, field) for t in terms) if clause is not None]
    if not should:
        raise ValueError("At least one non-empty search term is required")

    return {
        "size": max_hits,
        "query": {
            "bool": {
                "must": {"bool": {"should": should, "minimum_should_match": 1}},
                "filter": {"term": {"patientId": patient_id}},
            }
        },
        "sort": [{"date": {"order": "asc", "missing": "_first"}}, {"noteId": {"order": "asc"}}],
        "highlight": {
            "pre_tags": [HIGHLIGHT_PRE],
            "post_tags": [HIGHLIGHT_POST],
            "fields": {
                field: {
                    "type": "unified",
                    "boundary_scanner": "sentence",
                    "fragment_size": fragment_size,
                    "number_of_fragments": max_fragments,
                }
            },
        },
    }


def build_delete_query(patient_id: int) -> dict:
    return {"query": {"term": {"patientId": patient_id}}}
