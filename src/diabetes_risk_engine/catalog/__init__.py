"""
Catalog module - the fixed trigger vocabulary and negation word lists.
"""

from diabetes_risk_engine.catalog.trigger_terms import (
    CLAUSE_BREAKERS,
    CLINICAL_NEGATION_NOUNS,
    FALSE_POSITIVE_SPANS,
    HIGHLIGHT_POST,
    HIGHLIGHT_PRE,
    NEGATION_CLOSERS,
    NEGATION_CUES,
    NEGATION_OPENERS,
    PARTITIVE_ARTICLES,
    TRIGGER_CATALOG,
    TriggerCategory,
    TriggerTerm,
    canonical_names,
    get_term,
    search_terms,
    terms,
)

__all__ = [
    # Types
    "TriggerCategory",
    "TriggerTerm",
    # Data
    "TRIGGER_CATALOG",
    "NEGATION_CUES",
    "CLINICAL_NEGATION_NOUNS",
    "PARTITIVE_ARTICLES",
    "NEGATION_OPENERS",
    "NEGATION_CLOSERS",
    "CLAUSE_BREAKERS",
    "FALSE_POSITIVE_SPANS",
    "HIGHLIGHT_PRE",
    "HIGHLIGHT_POST",
    # Accessors
    "terms",
    "canonical_names",
    "search_terms",
    "get_term",
]
