"""
Fuzzy Matching - Single Responsibility: decide whether two words are "close enough".

Mirrors what a fuzzy full-text query does so that every index backend, and the
aggregator that maps mentions back to the catalog, agree on what a match is:

- Tokens are runs of word characters; apostrophes and hyphens split tokens,
  so "l'Hémoglobine" yields "l" and "Hémoglobine".
- Comparison is case-insensitive but accent-sensitive.
- The allowed edit budget follows Elasticsearch's AUTO fuzziness, computed
  from the length of the query token.
- Edits are insertions, deletions, substitutions and adjacent transpositions
  (optimal string alignment distance).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

import numpy as np

TOKEN_PATTERN = re.compile(r"\w+")

# AUTO:3,6 - terms shorter than 3 must match exactly, 3-5 allow 1 edit.
AUTO_LOW = 3
AUTO_HIGH = 6


@dataclass(frozen=True)
class Token:
    """A word of a note, with its character offsets in the original text."""
    text: str
    start: int
    end: int

    @property
    def norm(self) -> str:
        return self.text.casefold()


def tokenize(text: str) -> list[Token]:
    """Split text into word tokens, keeping offsets."""
    return [Token(m.group(0), m.start(), m.end()) for m in TOKEN_PATTERN.finditer(text)]


def normalize_words(text: str) -> list[str]:
    """Casefolded token strings of `text`."""
    return [token.norm for token in tokenize(text)]


def auto_fuzziness(length: int) -> int:
    """Maximum edits allowed for a query token of the given length."""
    if length < AUTO_LOW:
        return 0
    if length < AUTO_HIGH:
        return 1
    return 2


@lru_cache(maxsize=8192)
def edit_distance(a: str, b: str) -> int:
    """
    Optimal string alignment distance between `a` and `b`.

    Row-by-row dynamic programming: substitutions, deletions and
    transpositions are vectorised over the previous rows, then insertions are
    folded in with a running minimum.
    """
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    sa = np.fromiter((ord(c) for c in a), dtype=np.int64, count=len(a))
    sb = np.fromiter((ord(c) for c in b), dtype=np.int64, count=len(b))
    n = len(b)
    offsets = np.arange(n + 1, dtype=np.int64)

    prev2: np.ndarray | None = None
    prev = offsets.copy()

    for i in range(1, len(a) + 1):
        cost = (sb != sa[i - 1]).astype(np.int64)

        row = np.empty(n + 1, dtype=np.int64)
        row[0] = i
        row[1:] = np.minimum(prev[1:] + 1, prev[:-1] + cost)

        if prev2 is not None:
            swapped = (sb[:-1] == sa[i - 1]) & (sb[1:] == sa[i - 2])
            row[2:] = np.where(swapped, np.minimum(row[2:], prev2[:-2] + 1), row[2:])

        current = np.minimum.accumulate(row - offsets) + offsets
        prev2, prev = prev, current

    return int(prev[n])


def fuzzy_match(query_token: str, text_token: str) -> bool:
    """True when `text_token` is within the AUTO edit budget of `query_token`."""
    query = query_token.casefold()
    text = text_token.casefold()
    if query == text:
        return True
    budget = auto_fuzziness(len(query))
    if budget == 0 or abs(len(query) - len(text)) > budget:
        return False
    return edit_distance(query, text) <= budget


def find_phrase_matches(tokens: list[Token], phrase: list[str]) -> list[range]:
    """
    Locate `phrase` (casefolded words) in `tokens`.

    Every phrase word must fuzzily match the token at the same position; the
    words must be contiguous and in order. Returns token index ranges.
    """
    width = len(phrase)
    if width == 0 or width > len(tokens):
        return []

    matches: list[range] = []
    for i in range(len(tokens) - width + 1):
        if all(fuzzy_match(phrase[j], tokens[i + j].text) for j in range(width)):
            matches.append(range(i, i + width))
    return matches


def phrase_distance(left: str, right: str) -> int:
    """Edit distance between two phrases after token normalisation."""
    return edit_distance(" ".join(normalize_words(left)), " ".join(normalize_words(right)))
