from __future__ import annotations

from collections import Counter
from enum import Enum
from typing import Iterable

from clockbot.config import ResolverConfig
from clockbot.core.translit import to_variants
from clockbot.core.types import CatalogItem, RankedCandidate


DEFAULT_LOW_CONFIDENCE = 0.56
DEFAULT_MIN_GAP = 0.08
DEFAULT_NO_MATCH = 0.35

PREFIX_SCORE = 0.90
CONTAINS_SCORE = 0.78
MIN_OVERRIDE_LEN = 4


class MatchConfidence(str, Enum):
    CONFIDENT = "confident"
    LOW = "low"
    NO_MATCH = "no_match"


def _bigrams(value: str) -> list[str]:
    padded = f" {value} "
    return [padded[i : i + 2] for i in range(len(padded) - 1)]


def dice_score(a: str, b: str) -> float:
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    first = _bigrams(a)
    second = _bigrams(b)
    overlap = sum((Counter(first) & Counter(second)).values())
    return (2.0 * overlap) / (len(first) + len(second))


def best_variant_score(name_variants: Iterable[str], query_variants: Iterable[str]) -> float:
    queries = [q for q in query_variants if q]
    best = 0.0
    for name in name_variants:
        if not name:
            continue
        for query in queries:
            compact = len("".join(query.split()))
            score = dice_score(name, query)
            if name == query:
                score = 1.0
            elif compact >= MIN_OVERRIDE_LEN and name.startswith(query):
                score = max(score, PREFIX_SCORE)
            elif compact >= MIN_OVERRIDE_LEN and query in name:
                score = max(score, CONTAINS_SCORE)
            if score > best:
                best = score
    return best


def rank(catalog: Iterable[CatalogItem], query: str) -> list[RankedCandidate]:
    """Score every catalog item against the query, best first, ties by name."""
    query_variants = to_variants(query)
    ranked = [
        RankedCandidate(
            id=item.id,
            display_name=item.display_name,
            score=best_variant_score(to_variants(item.display_name), query_variants),
        )
        for item in catalog
    ]
    ranked.sort(key=lambda c: (-c.score, c.display_name))
    return ranked


def is_low_confidence(
    ranked: list[RankedCandidate],
    threshold: float = DEFAULT_LOW_CONFIDENCE,
    min_gap: float = DEFAULT_MIN_GAP,
    config: ResolverConfig | None = None,
) -> bool:
    if config is not None:
        threshold, min_gap = config.low_confidence_threshold, config.min_score_gap
    if not ranked:
        return True
    top = ranked[0].score
    second = ranked[1].score if len(ranked) > 1 else 0.0
    if top < threshold:
        return True
    if second > 0 and top - second < min_gap:
        return True
    return False


def classify(ranked: list[RankedCandidate], config: ResolverConfig | None = None) -> MatchConfidence:
    no_match = config.no_match_threshold if config else DEFAULT_NO_MATCH
    if not ranked or ranked[0].score < no_match:
        return MatchConfidence.NO_MATCH
    if is_low_confidence(ranked, config=config):
        return MatchConfidence.LOW
    return MatchConfidence.CONFIDENT
