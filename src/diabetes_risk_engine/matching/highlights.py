"""
Highlight markers - producing and reading `«…»` spans.

Search backends wrap every matched token in the marker pair. Downstream code
only ever sees marked fragments, so this module is the one place that knows
how markers are written, merged and read back.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from diabetes_risk_engine.catalog import FALSE_POSITIVE_SPANS, HIGHLIGHT_POST, HIGHLIGHT_PRE
from diabetes_risk_engine.matching.fuzzy import find_phrase_matches, normalize_words, tokenize

_PRE = re.escape(HIGHLIGHT_PRE)
_POST = re.escape(HIGHLIGHT_POST)

ADJACENT_SPANS = re.compile(rf"{_POST}(\s+){_PRE}")
MARKED_SPAN = re.compile(rf"{_PRE}([^{_PRE}{_POST}]+){_POST}")
SENTENCE_BREAK = re.compile(r"(?<=[.!?;])\s+|\n+")

# Articles glued to a highlighted token by analyzers that keep elisions.
ELIDED_PREFIX = re.compile(r"^(?:qu|[cdjlmnst])['’]", re.IGNORECASE)
WHITESPACE = re.compile(r"\s+")


def merge_adjacent_spans(fragment: str) -> str:
    """
    Join marker pairs separated only by whitespace.

    "«Hémoglobine» «A1C»" becomes "«Hémoglobine A1C»", so multi-word triggers
    highlighted word by word count as one mention.
    """
    return ADJACENT_SPANS.sub(r"\1", fragment)


def extract_marked_terms(fragment: str) -> list[str]:
    """Return the text of every marked span, after merging adjacent spans."""
    return [m.group(1) for m in MARKED_SPAN.finditer(merge_adjacent_spans(fragment))]


def strip_markers(text: str) -> str:
    return text.replace(HIGHLIGHT_PRE, "").replace(HIGHLIGHT_POST, "")


def clean_surface(span: str) -> str:
    """Collapse whitespace and drop a leading elided article ("l'", "d'")."""
    return ELIDED_PREFIX.sub("", WHITESPACE.sub(" ", span).strip())


def is_false_positive(span: str) -> bool:
    """True for spans known to collide with a catalog term ("normal" vs "anormal")."""
    return clean_surface(span).casefold() in FALSE_POSITIVE_SPANS


def mark_tokens(text: str, token_spans: Iterable[tuple[int, int]]) -> str:
    """Wrap each (start, end) character span of `text` in the marker pair."""
    parts: list[str] = []
    cursor = 0
    for start, end in sorted(set(token_spans)):
        if start < cursor:
            continue
        parts.append(text[cursor:start])
        parts.append(f"{HIGHLIGHT_PRE}{text[start:end]}{HIGHLIGHT_POST}")
        cursor = end
    parts.append(text[cursor:])
    return "".join(parts)


def split_sentences(text: str) -> list[str]:
    return [s.strip() for s in SENTENCE_BREAK.split(text) if s and s.strip()]


def highlight_note(text: str, terms: list[str]) -> list[str]:
    """
    Highlight every fuzzy occurrence of `terms` in `text`.

    Multi-word terms must match as a contiguous phrase; each matched token is
    marked on its own, the way a full-text highlighter does. Returns the
    sentences holding at least one marked token, in note order.
    """
    tokens = tokenize(text)
    if not tokens:
        return []

    matched: set[int] = set()
    for term in terms:
        phrase = normalize_words(term)
        for hit in find_phrase_matches(tokens, phrase):
            matched.update(hit)

    if not matched:
        return []

    marked = mark_tokens(text, ((tokens[i].start, tokens[i].end) for i in matched))
    return [sentence for sentence in split_sentences(marked) if HIGHLIGHT_PRE in sentence]
