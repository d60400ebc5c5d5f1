"""Scoring and fusion helpers shared by retrieval and duplicate detection."""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..models.contribution import Contribution
from ..models.search import ScoredResult, ValueSignal
from ..ports.contribution_store import RankedContribution

# Damping constant from the reciprocal rank fusion literature.
RRF_K = 60

STRONG_MATCH_RELEVANCE = 0.8
STRONG_MATCH_MIN_COUNT = 3
CLOSE_MATCH_RELEVANCE = 0.9


@dataclass
class Candidate:
    """A contribution on its way into a response."""

    contribution: Contribution
    relevance: float
    expansion_lens: Optional[str] = None

    @property
    def id(self) -> str:
        return self.contribution.id

    @classmethod
    def from_ranked(cls, ranked: RankedContribution, lens: Optional[str] = None) -> "Candidate":
        return cls(contribution=ranked.contribution, relevance=ranked.score, expansion_lens=lens)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 for mismatched or zero vectors."""
    if len(a) != len(b) or not a:
        return 0.0

    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def reciprocal_rank_fusion(
    rankings: Sequence[Sequence[RankedContribution]],
    limit: Optional[int] = None,
) -> List[Candidate]:
    """Fuse several ranked lists with Reciprocal Rank Fusion.

    An id found at 1-based rank ``r`` in a list contributes ``1 / (60 + r)``;
    its fused score is the sum over the lists that found it. Only ranks are
    used, so the lists' native scores never need to be comparable.

    Args:
        rankings: Ranked result lists, best first.
        limit: Optional cap on the fused list length.

    Returns:
        Candidates sorted by fused score, highest first. Ties keep the
        order in which ids were first seen.
    """
    fused: Dict[str, Candidate] = {}

    for ranking in rankings:
        for rank, ranked in enumerate(ranking, start=1):
            contribution_id = ranked.contribution.id
            contribution_score = 1.0 / (RRF_K + rank)
            if contribution_id in fused:
                fused[contribution_id].relevance += contribution_score
            else:
                fused[contribution_id] = Candidate(
                    contribution=ranked.contribution,
                    relevance=contribution_score,
                )

    ordered = sorted(fused.values(), key=lambda candidate: candidate.relevance, reverse=True)
    return ordered[:limit] if limit is not None else ordered


def merge_expansions(
    primary: Sequence[Candidate],
    expansions: Iterable[Tuple[str, Sequence[RankedContribution]]],
    limit: int,
) -> List[Candidate]:
    """Merge lens results into the primary results, keyed by contribution id.

    A lens hit replaces an existing entry only when its relevance is
    strictly higher, so a direct hit is never displaced by an expansion hit
    of equal score. Between lenses, the earlier lens wins ties.

    Args:
        primary: Results of the direct query.
        expansions: ``(lens name, hits)`` pairs in lens order.
        limit: Maximum number of merged results.

    Returns:
        Deduplicated candidates sorted by relevance, highest first.
    """
    merged: Dict[str, Candidate] = {}
    for candidate in primary:
        merged.setdefault(candidate.id, candidate)

    for lens, hits in expansions:
        for hit in hits:
            existing = merged.get(hit.contribution.id)
            if existing is None or hit.score > existing.relevance:
                merged[hit.contribution.id] = Candidate.from_ranked(hit, lens=lens)

    ordered = sorted(merged.values(), key=lambda candidate: candidate.relevance, reverse=True)
    return ordered[:limit]


def related_domains(results: Sequence[ScoredResult]) -> List[str]:
    """Domain tags across results, most frequent first.

    Equal counts keep first-encountered order.
    """
    counts: Dict[str, int] = {}
    for result in results:
        for tag in result.domain_tags:
            counts[tag] = counts.get(tag, 0) + 1
    return sorted(counts, key=lambda tag: counts[tag], reverse=True)


def compute_value_signal(results: Sequence[ScoredResult]) -> Optional[ValueSignal]:
    """Flag responses holding several strong matches or one very close match."""
    if not results:
        return None

    strong = sum(1 for result in results if result.relevance > STRONG_MATCH_RELEVANCE)
    if strong >= STRONG_MATCH_MIN_COUNT:
        return ValueSignal(
            type="strong_match",
            message=f"{strong} highly relevant insights found on this topic.",
        )

    top = max(result.relevance for result in results)
    if top > CLOSE_MATCH_RELEVANCE:
        return ValueSignal(
            type="strong_match",
            message="Found a very closely related insight.",
        )

    return None
