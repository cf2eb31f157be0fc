"""
Negation Filter - is a highlighted trigger mention being denied?

French clinical notes routinely mention a trigger only to rule it out:
"pas de vertiges", "Cholestérol : non détecté", "aucune anomalie de
l'Hémoglobine A1C n'a été détectée". A mention counts only if none of the
following holds.

1. SPAN MERGING: "«Hémoglobine» «A1C»" is one mention, not two.

2. DIRECT NEGATION: a cue sits right before or right after the span, with at
   most a partitive article in between ("aucune trace de «Microalbumine»",
   "«Vertiges» : jamais").

3. CONTEXTUAL NEGATION: a cue appears further away, but a clinical-negation
   noun sits between the cue and the span ("aucune anomalie liée au
   «Cholestérol»", "«Cholestérol» : anomalie non détectée").

4. SPLIT NEGATION: "ne ... pas" wraps the span itself ("ne «fume» pas"), or
   its closer sits at most one word before an article ("n'a jamais eu de
   «vertiges»"). A coordinating word in that slot ends the clause, so "ne
   tousse pas mais des «vertiges»" still counts.

Context is the sentence holding the span; text in other sentences never
negates a mention. All patterns are compiled once, from the catalog word
lists, when the filter is built.

The filter is pure and total: any string in, a boolean out.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from diabetes_risk_engine.catalog import (
    CLAUSE_BREAKERS,
    CLINICAL_NEGATION_NOUNS,
    HIGHLIGHT_POST,
    HIGHLIGHT_PRE,
    NEGATION_CLOSERS,
    NEGATION_CUES,
    NEGATION_OPENERS,
    PARTITIVE_ARTICLES,
)
from diabetes_risk_engine.matching.highlights import merge_adjacent_spans, strip_markers

# One or two intervening words, for "ne ... pas".
GAP = r"\S+(?:\s+\S+)?"
# A cue ends at a word boundary, or right after an elided apostrophe.
CUE_END = r"(?:(?<=')|(?!\w))"
CUE_START = r"(?<![\w'])"
WORD_END = r"(?!\w)"
WORD_START = r"(?<!\w)"

SENTENCE_BOUNDARY = re.compile(r"[.!?;](?=\s|$)|\n")
APOSTROPHES = str.maketrans({"’": "'", "‘": "'", "`": "'", "ʼ": "'"})


def normalize_text(text: str) -> str:
    """Lowercase and unify apostrophes."""
    return text.translate(APOSTROPHES).lower()


def _phrase_pattern(phrase: str) -> str:
    """
    Turn a catalog phrase into a regex.

    Words are joined by flexible whitespace, "..." becomes a short word gap,
    and a word ending in an apostrophe may be glued to the next one.
    """
    words = normalize_text(phrase).split()
    pattern = ""
    for index, word in enumerate(words):
        if index:
            pattern += r"\s*" if words[index - 1].endswith("'") else r"\s+"
        pattern += GAP if word == "..." else re.escape(word)
    return pattern


def _alternation(phrases: Iterable[str]) -> str:
    ordered = sorted({normalize_text(p) for p in phrases}, key=len, reverse=True)
    return "|".join(_phrase_pattern(p) for p in ordered)


def _sentence_before(text: str) -> str:
    boundaries = list(SENTENCE_BOUNDARY.finditer(text))
    return text[boundaries[-1].end():] if boundaries else text


def _sentence_after(text: str) -> str:
    boundary = SENTENCE_BOUNDARY.search(text)
    return text[:boundary.start()] if boundary else text


class NegationFilter:
    """
    Decides whether one highlighted mention is negated.

    Word lists default to the catalog; alternative lists can be injected for
    tests or for another language.
    """

    def __init__(
        self,
        cues: Iterable[str] = NEGATION_CUES,
        nouns: Iterable[str] = CLINICAL_NEGATION_NOUNS,
        articles: Iterable[str] = PARTITIVE_ARTICLES,
        openers: Iterable[str] = NEGATION_OPENERS,
        closers: Iterable[str] = NEGATION_CLOSERS,
        breakers: Iterable[str] = CLAUSE_BREAKERS,
    ):
        cue = _alternation(cues)
        article = _alternation(articles)
        noun = "|".join(re.escape(normalize_text(n)) + "s?" for n in nouns)

        cue_rx = rf"{CUE_START}(?:{cue}){CUE_END}"
        noun_rx = rf"{WORD_START}(?:{noun}){WORD_END}"
        article_rx = rf"(?:{article})"

        self._cue_before = re.compile(rf"{cue_rx}(?:\s*{article_rx})?\s*$")
        self._cue_after = re.compile(rf"^\s*[:,\-–]?\s*(?:{article_rx}\s*)?{cue_rx}")
        self._context_before = re.compile(rf"{cue_rx}.*?{noun_rx}")
        self._context_after = re.compile(rf"{noun_rx}.*?{cue_rx}")

        opener_rx = rf"{CUE_START}(?:{_alternation(openers)}){CUE_END}"
        closer_rx = rf"{WORD_START}(?:{_alternation(closers)}){WORD_END}"
        verb_rx = rf"(?!(?:{_alternation(breakers)}){WORD_END})\w+"

        self._opener_before = re.compile(rf"{opener_rx}\s*$")
        self._closer_after = re.compile(rf"^\s*{closer_rx}")
        self._auxiliary_before = re.compile(
            rf"{opener_rx}\s*\w+\s+{closer_rx}(?:\s+{verb_rx})?\s+{article_rx}\s*$"
        )

    def is_negated(self, fragment: str, marked_term: str) -> bool:
        """
        True when every occurrence of `marked_term` in `fragment` is negated.

        The term is looked up as a marked span first; when the fragment holds
        no marked occurrence it is looked up as plain text. A term that does
        not occur at all is not negated.
        """
        text = normalize_text(merge_adjacent_spans(fragment))
        words = normalize_text(marked_term).split()
        if not words:
            return False
        body = r"\s+".join(re.escape(w) for w in words)

        spans = [
            (m.start(), m.end())
            for m in re.finditer(rf"{re.escape(HIGHLIGHT_PRE)}{body}{re.escape(HIGHLIGHT_POST)}", text)
        ]
        if not spans:
            spans = [
                (m.start(), m.end())
                for m in re.finditer(rf"{WORD_START}{body}{WORD_END}", strip_markers(text))
            ]
            text = strip_markers(text)
        if not spans:
            return False

        return all(self._negated_between(text[:start], text[end:]) for start, end in spans)

    def is_negated_span(self, fragment: str, start: int, end: int) -> bool:
        """
        Check the span occupying `fragment[start:end]`.

        `fragment` must already have its adjacent spans merged; offsets index
        into that merged text.
        """
        return self._negated_between(normalize_text(fragment[:start]), normalize_text(fragment[end:]))

    def _negated_between(self, before: str, after: str) -> bool:
        before = _sentence_before(strip_markers(before))
        after = _sentence_after(strip_markers(after))

        if self._cue_before.search(before) or self._cue_after.search(after):
            return True
        if self._opener_before.search(before) and self._closer_after.search(after):
            return True
        if self._auxiliary_before.search(before):
            return True
        return bool(self._context_before.search(before) or self._context_after.search(after))


_default_filter: NegationFilter | None = None


def is_negated(fragment: str, marked_term: str) -> bool:
    """Module-level shortcut using the catalog word lists."""
    global _default_filter
    if _default_filter is None:
        _default_filter = NegationFilter()
    return _default_filter.is_negated(fragment, marked_term)
