"""Ranked fuzzy search over a fixed collection.

Scores run from 0.0 (perfect) to 1.0 (no resemblance). A value scores by
the share of query characters ``difflib`` could not align, plus a small
penalty for how far into the value the match starts. Exact substrings skip
the alignment and only pay the location penalty, so two names sharing the
query as a prefix tie at 0.0.
"""

from __future__ import annotations

from dataclasses import dataclass
from difflib import SequenceMatcher
from typing import Generic, Iterable, Sequence, TypeVar

T = TypeVar("T")

DEFAULT_THRESHOLD = 0.4
LOCATION_WEIGHT = 0.01


@dataclass(frozen=True)
class FuzzyMatch(Generic[T]):
    item: T
    score: float
    ref_index: int


def score_text(query: str, text: str) -> float:
    """Score how well *query* matches *text* (lower is better)."""
    needle = query.lower()
    haystack = text.lower()
    if not needle or not haystack:
        return 1.0

    index = haystack.find(needle)
    if index != -1:
        return min(1.0, index * LOCATION_WEIGHT)

    matcher = SequenceMatcher(None, needle, haystack, autojunk=False)
    blocks = [block for block in matcher.get_matching_blocks() if block.size]
    if not blocks:
        return 1.0

    matched = sum(block.size for block in blocks)
    errors = (len(needle) - matched) / len(needle)
    return min(1.0, errors + blocks[0].b * LOCATION_WEIGHT)


def _key_values(item: object, key: str) -> list[str]:
    value = getattr(item, key, None)
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [entry for entry in value if isinstance(entry, str)]


class FuzzySearch(Generic[T]):
    """Search *items* by one or more attribute names.

    String attributes are scored directly; sequence attributes (such as
    aliases) contribute their best entry. An item scores as its best key.
    """

    def __init__(
        self,
        items: Iterable[T],
        keys: Sequence[str],
        threshold: float = DEFAULT_THRESHOLD,
    ) -> None:
        self.items = list(items)
        self.keys = tuple(keys)
        self.threshold = threshold

    def score_item(self, query: str, item: T) -> float:
        best = 1.0
        for key in self.keys:
            for value in _key_values(item, key):
                best = min(best, score_text(query, value))
                if best == 0.0:
                    return best
        return best

    def search(self, query: str) -> list[FuzzyMatch[T]]:
        if not query:
            return []
        matches = []
        for index, item in enumerate(self.items):
            score = self.score_item(query, item)
            if score <= self.threshold:
                matches.append(FuzzyMatch(item=item, score=score, ref_index=index))
        matches.sort(key=lambda match: (match.score, match.ref_index))
        return matches


__all__ = ["DEFAULT_THRESHOLD", "FuzzyMatch", "FuzzySearch", "score_text"]
