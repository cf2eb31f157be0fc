"""
Matching module - fuzzy token matching and highlight marker handling.

Shared by the index backends that highlight in Python and by the
negation/aggregation stage that reads the highlights back.
"""

from diabetes_risk_engine.matching.fuzzy import (
    Token,
    auto_fuzziness,
    edit_distance,
    find_phrase_matches,
    fuzzy_match,
    normalize_words,
    phrase_distance,
    tokenize,
)
from diabetes_risk_engine.matching.highlights import (
    MARKED_SPAN,
    clean_surface,
    extract_marked_terms,
    highlight_note,
    is_false_positive,
    mark_tokens,
    merge_adjacent_spans,
    split_sentences,
    strip_markers,
)

__all__ = [
    # Fuzzy
    "Token",
    "tokenize",
    "normalize_words",
    "auto_fuzziness",
    "edit_distance",
    "fuzzy_match",
    "find_phrase_matches",
    "phrase_distance",
    # Highlights
    "MARKED_SPAN",
    "merge_adjacent_spans",
    "extract_marked_terms",
    "strip_markers",
    "clean_surface",
    "is_false_positive",
    "mark_tokens",
    "split_sentences",
    "highlight_note",
]
