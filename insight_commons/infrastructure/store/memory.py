"""In-memory stores for local development and tests.

Searches are brute force over every stored row, which is fine for the
small corpora these are meant for.
"""

import logging
import re
from collections import Counter
from typing import Dict, List, Optional, Tuple

from ...domain.errors import NotFoundError
from ...domain.models.agent import Agent
from ...domain.models.contribution import Contribution
from ...domain.models.domain import DomainStat
from ...domain.models.validation import Validation, ValidationSignal, ValidationSummary
from ...domain.ports.contribution_store import RankedContribution, SearchOptions
from ...domain.services.ranking import cosine_similarity

logger = logging.getLogger(__name__)

_TOKEN_PATTERN = re.compile(r"\w+")

STOPWORDS = frozenset(
    "a an and are as at be by can do does for from how i in is it of on or "
    "should that the this to was what when where which who why with you".split()
)


def tokenize(text: str) -> List[str]:
    """Lowercase word tokens with common English stopwords removed."""
    return [token for token in _TOKEN_PATTERN.findall(text.lower()) if token not in STOPWORDS]


def _matches_filters(contribution: Contribution, options: SearchOptions) -> bool:
    if options.min_confidence is not None and contribution.confidence < options.min_confidence:
        return False
    if options.domain_tags and not set(options.domain_tags) & set(contribution.domain_tags):
        return False
    return True


class InMemoryContributionStore:
    """Contribution store backed by a dict keyed by id."""

    def __init__(self):
        self._contributions: Dict[str, Contribution] = {}

    async def insert(self, contribution: Contribution) -> Contribution:
        self._contributions[contribution.id] = contribution
        return contribution

    async def get(self, contribution_id: str) -> Optional[Contribution]:
        return self._contributions.get(contribution_id)

    async def update(self, contribution: Contribution) -> Contribution:
        if contribution.id not in self._contributions:
            raise NotFoundError(f'Contribution "{contribution.id}" not found')
        self._contributions[contribution.id] = contribution
        return contribution

    async def delete(self, contribution_id: str) -> None:
        self._contributions.pop(contribution_id, None)

    async def list_by_author(
        self,
        author_id: str,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Contribution]:
        owned = [c for c in self._contributions.values() if c.author_id == author_id]
        owned.sort(key=lambda c: c.created_at, reverse=True)
        return owned[offset:offset + limit]

    async def count_by_author(self, author_id: str) -> int:
        return sum(1 for c in self._contributions.values() if c.author_id == author_id)

    async def vector_search(
        self,
        vector: List[float],
        options: SearchOptions,
    ) -> List[RankedContribution]:
        scored = [
            RankedContribution(
                contribution=c,
                score=max(0.0, cosine_similarity(vector, c.embedding)),
            )
            for c in self._contributions.values()
            if _matches_filters(c, options)
        ]
        scored.sort(key=lambda row: row.score, reverse=True)
        return scored[:options.max_results]

    async def lexical_search(
        self,
        text: str,
        options: SearchOptions,
    ) -> List[RankedContribution]:
        """Rank by the share of distinct query terms found in claim and reasoning.

        Rows matching no query term are left out.
        """
        terms = set(tokenize(text))
        if not terms:
            return []

        scored: List[RankedContribution] = []
        for contribution in self._contributions.values():
            if not _matches_filters(contribution, options):
                continue
            document = set(tokenize(f"{contribution.claim} {contribution.reasoning or ''}"))
            matched = len(terms & document)
            if matched:
                scored.append(
                    RankedContribution(contribution=contribution, score=matched / len(terms))
                )

        scored.sort(key=lambda row: row.score, reverse=True)
        return scored[:options.max_results]

    async def find_similar(
        self,
        vector: List[float],
        threshold: float,
    ) -> List[RankedContribution]:
        matches = []
        for contribution in self._contributions.values():
            similarity = cosine_similarity(vector, contribution.embedding)
            if similarity >= threshold:
                matches.append(RankedContribution(contribution=contribution, score=similarity))
        matches.sort(key=lambda row: row.score, reverse=True)
        return matches

    async def domain_stats(self) -> List[DomainStat]:
        counts: Counter = Counter()
        confidence_totals: Dict[str, float] = {}
        latest: Dict[str, Contribution] = {}

        for contribution in self._contributions.values():
            for tag in contribution.domain_tags:
                counts[tag] += 1
                confidence_totals[tag] = confidence_totals.get(tag, 0.0) + contribution.confidence
                if tag not in latest or contribution.created_at > latest[tag].created_at:
                    latest[tag] = contribution

        return [
            DomainStat(
                domain=tag,
                contribution_count=count,
                avg_confidence=confidence_totals[tag] / count,
                latest_contribution=latest[tag].created_at,
            )
            for tag, count in counts.most_common()
        ]


class InMemoryValidationStore:
    """Validation store keyed by (contribution id, agent id)."""

    def __init__(self):
        self._validations: Dict[Tuple[str, str], Validation] = {}

    async def upsert(self, validation: Validation) -> Validation:
        self._validations[(validation.contribution_id, validation.agent_id)] = validation
        return validation

    async def list_for_contribution(self, contribution_id: str) -> List[Validation]:
        found = [v for v in self._validations.values() if v.contribution_id == contribution_id]
        return sorted(found, key=lambda v: v.created_at, reverse=True)

    async def list_by_agent(self, agent_id: str) -> List[Validation]:
        found = [v for v in self._validations.values() if v.agent_id == agent_id]
        return sorted(found, key=lambda v: v.created_at, reverse=True)

    async def delete(self, contribution_id: str, agent_id: str) -> None:
        self._validations.pop((contribution_id, agent_id), None)

    async def summary(self, contribution_id: str) -> ValidationSummary:
        return (await self.summaries([contribution_id]))[contribution_id]

    async def summaries(self, contribution_ids: List[str]) -> Dict[str, ValidationSummary]:
        counts: Dict[str, Counter] = {cid: Counter() for cid in contribution_ids}
        for validation in self._validations.values():
            if validation.contribution_id in counts:
                counts[validation.contribution_id][validation.signal] += 1

        return {
            cid: ValidationSummary(
                confirmed=counter[ValidationSignal.CONFIRMED],
                contradicted=counter[ValidationSignal.CONTRADICTED],
                refined=counter[ValidationSignal.REFINED],
            )
            for cid, counter in counts.items()
        }


class InMemoryAgentDirectory:
    """Agent directory backed by a dict. Agents are added with ``add``."""

    def __init__(self, agents: Optional[List[Agent]] = None):
        self._agents: Dict[str, Agent] = {}
        for agent in agents or []:
            self.add(agent)

    def add(self, agent: Agent) -> Agent:
        self._agents[agent.id] = agent
        return agent

    async def get(self, agent_id: str) -> Optional[Agent]:
        return self._agents.get(agent_id)

    async def update_trust_score(self, agent_id: str, trust_score: float) -> Agent:
        agent = self._agents.get(agent_id)
        if agent is None:
            raise NotFoundError(f'Agent "{agent_id}" not found')
        updated = agent.model_copy(update={"trust_score": trust_score})
        self._agents[agent_id] = updated
        logger.debug(f"Agent {agent_id} trust snapshot now {trust_score:.2f}")
        return updated
