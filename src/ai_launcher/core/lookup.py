"""Resolve a typed query to a tool or template.

Strategies run in a fixed order and the first one that reaches a decision
wins:

1. exact name (case-insensitive)
2. exact alias (case-insensitive)
3. unique name suffix, so ``mm`` finds ``ccs:mm``
4. unique name substring
5. fuzzy search with ambiguity detection

Tiers 1-4 are deterministic string checks; fuzzy search is only consulted
for typos and partial recall.
"""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from ai_launcher.core.fuzzy import DEFAULT_THRESHOLD, FuzzySearch
from ai_launcher.core.models import LookupResult, SelectableItem

logger = logging.getLogger(__name__)

AMBIGUITY_GAP = 0.05
CONFIDENT_SCORE = 0.25


class MatchStrategy(Protocol):
    """One resolution tier.

    Returns a ``LookupResult`` when the tier is decisive, ``None`` to defer
    to the next tier.
    """

    name: str

    def match(
        self, query: str, items: Sequence[SelectableItem]
    ) -> LookupResult | None: ...


class ExactNameStrategy:
    name = "exact"

    def match(self, query: str, items: Sequence[SelectableItem]) -> LookupResult | None:
        lowered = query.lower()
        for item in items:
            if item.name.lower() == lowered:
                return LookupResult.found(item)
        return None


class AliasStrategy:
    name = "alias"

    def match(self, query: str, items: Sequence[SelectableItem]) -> LookupResult | None:
        lowered = query.lower()
        for item in items:
            if any(alias.lower() == lowered for alias in item.aliases):
                return LookupResult.found(item)
        return None


class SuffixStrategy:
    name = "suffix"

    def match(self, query: str, items: Sequence[SelectableItem]) -> LookupResult | None:
        lowered = query.lower()
        hits = [item for item in items if item.name.lower().endswith(lowered)]
        if len(hits) == 1:
            return LookupResult.found(hits[0])
        return None


class SubstringStrategy:
    name = "substring"

    def match(self, query: str, items: Sequence[SelectableItem]) -> LookupResult | None:
        lowered = query.lower()
        hits = [item for item in items if lowered in item.name.lower()]
        if len(hits) == 1:
            return LookupResult.found(hits[0])
        return None


def format_candidates(candidates: Sequence[SelectableItem]) -> str:
    lines = []
    for item in candidates:
        alias_text = f" ({', '.join(item.aliases)})" if item.aliases else ""
        lines.append(f"  • {item.name}{alias_text}")
    return "\n".join(lines)


class FuzzyStrategy:
    """Last tier; always decisive."""

    name = "fuzzy"

    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        ambiguity_gap: float = AMBIGUITY_GAP,
        confident_score: float = CONFIDENT_SCORE,
    ) -> None:
        self.threshold = threshold
        self.ambiguity_gap = ambiguity_gap
        self.confident_score = confident_score

    def match(self, query: str, items: Sequence[SelectableItem]) -> LookupResult | None:
        results = FuzzySearch(items, keys=("name",), threshold=self.threshold).search(query)

        if not results:
            return LookupResult.failed(f"No tool or template found matching '{query}'")

        top = results[0]
        if len(results) >= 2:
            gap = abs(top.score - results[1].score)
            if gap < self.ambiguity_gap:
                ambiguous = [
                    result.item
                    for result in results
                    if abs(result.score - top.score) < self.ambiguity_gap
                ]
                logger.debug(
                    "Ambiguous fuzzy match for %r: %s",
                    query,
                    [item.name for item in ambiguous],
                )
                return LookupResult.failed(
                    f"Ambiguous match for '{query}'\nDid you mean:\n"
                    f"{format_candidates(ambiguous)}",
                    candidates=ambiguous,
                )

        if top.score < self.confident_score:
            logger.debug("Confident fuzzy match %r -> %s (%.3f)", query, top.item.name, top.score)
        else:
            logger.debug("Weak fuzzy match %r -> %s (%.3f)", query, top.item.name, top.score)
        return LookupResult.found(top.item)


DEFAULT_STRATEGIES: tuple[MatchStrategy, ...] = (
    ExactNameStrategy(),
    AliasStrategy(),
    SuffixStrategy(),
    SubstringStrategy(),
    FuzzyStrategy(),
)


def find_tool_by_name(
    query: str | None,
    items: Sequence[SelectableItem],
    strategies: Sequence[MatchStrategy] = DEFAULT_STRATEGIES,
) -> LookupResult:
    """Resolve *query* against *items*, tier by tier."""
    if not query:
        return LookupResult.failed("No query provided")

    for strategy in strategies:
        result = strategy.match(query, items)
        if result is not None:
            if result.success and result.item is not None:
                logger.debug("Resolved %r via %s tier to %s", query, strategy.name, result.item.name)
            return result

    return LookupResult.failed(f"No tool or template found matching '{query}'")


__all__ = [
    "AMBIGUITY_GAP",
    "CONFIDENT_SCORE",
    "MatchStrategy",
    "ExactNameStrategy",
    "AliasStrategy",
    "SuffixStrategy",
    "SubstringStrategy",
    "FuzzyStrategy",
    "DEFAULT_STRATEGIES",
    "find_tool_by_name",
    "format_candidates",
]
