"""Trust computation for contributions and agents."""

import logging
from typing import List

from ..errors import InsightCommonsError, InternalError, NotFoundError
from ..models.agent import DEFAULT_TRUST_SCORE, MAX_AGENT_TRUST, MIN_AGENT_TRUST
from ..models.contribution import Contribution
from ..models.trust import AgentTrust, ContributionTrust, ContributionTrustBreakdown
from ..ports.agent_directory import AgentDirectory
from ..ports.contribution_store import ContributionStore
from ..ports.validation_store import ValidationAggregate

logger = logging.getLogger(__name__)

# Contradictions cost more than confirmations earn.
CONFIRMED_WEIGHT = 0.10
CONTRADICTED_WEIGHT = 0.15
REFINED_WEIGHT = 0.05

AGENT_BASELINE_TRUST = DEFAULT_TRUST_SCORE
NET_POSITIVE_STEP = 0.02
NET_NEGATIVE_STEP = 0.03

AUTHOR_PAGE_SIZE = 500


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


class TrustService:
    """Computes bounded trust scores from community validation signals.

    Trust is metadata: it is surfaced next to search results and never
    blended into their ordering. Agent trust is a persisted snapshot that
    only moves when ``update_agent_trust`` runs.
    """

    def __init__(
        self,
        contribution_store: ContributionStore,
        agent_directory: AgentDirectory,
        validations: ValidationAggregate,
    ):
        """Initialize the service.

        Args:
            contribution_store: Source of contributions and their confidence
            agent_directory: Source and sink of agent trust snapshots
            validations: Per-contribution signal counts
        """
        self._contributions = contribution_store
        self._agents = agent_directory
        self._validations = validations
        logger.info("🔧 TrustService initialized")

    async def compute_contribution_trust(self, contribution_id: str) -> ContributionTrust:
        """Score a contribution in [0, 1].

        ``base = author trust × confidence`` and
        ``boost = 0.10×confirmed − 0.15×contradicted + 0.05×refined``.

        Raises:
            NotFoundError: If the contribution does not exist
            InternalError: If a collaborator fails
        """
        try:
            contribution = await self._contributions.get(contribution_id)
            if contribution is None:
                raise NotFoundError(f'Contribution "{contribution_id}" not found')

            author = await self._agents.get(contribution.author_id)
            author_trust = author.trust_score if author else DEFAULT_TRUST_SCORE
            summary = await self._validations.summary(contribution_id)
        except InsightCommonsError:
            raise
        except Exception as e:
            logger.error(f"❌ Contribution trust lookup failed for {contribution_id}: {e}", exc_info=True)
            raise InternalError("Trust computation failed") from e

        base = author_trust * contribution.confidence
        boost = (
            CONFIRMED_WEIGHT * summary.confirmed
            - CONTRADICTED_WEIGHT * summary.contradicted
            + REFINED_WEIGHT * summary.refined
        )

        return ContributionTrust(
            contribution_id=contribution_id,
            score=clamp(base + boost, 0.0, 1.0),
            breakdown=ContributionTrustBreakdown(
                base=base,
                boost=boost,
                confirmed=summary.confirmed,
                contradicted=summary.contradicted,
                refined=summary.refined,
            ),
        )

    async def compute_agent_trust(self, agent_id: str) -> float:
        """Score an agent in [0.1, 1.0] from the net verdicts on its contributions.

        Starts at 0.5; each contribution with more confirmations than
        contradictions adds 0.02, each with fewer subtracts 0.03, and ties
        change nothing. Refinements are neutral here.
        """
        try:
            contributions = await self._all_by_author(agent_id)
            summaries = await self._validations.summaries([c.id for c in contributions])
        except Exception as e:
            logger.error(f"❌ Agent trust lookup failed for {agent_id}: {e}", exc_info=True)
            raise InternalError("Trust computation failed") from e

        positive = 0
        negative = 0
        for contribution in contributions:
            summary = summaries.get(contribution.id)
            if summary is None:
                continue
            if summary.net > 0:
                positive += 1
            elif summary.net < 0:
                negative += 1

        trust = AGENT_BASELINE_TRUST + NET_POSITIVE_STEP * positive - NET_NEGATIVE_STEP * negative
        return clamp(trust, MIN_AGENT_TRUST, MAX_AGENT_TRUST)

    async def update_agent_trust(self, agent_id: str) -> AgentTrust:
        """Recompute an agent's trust and persist it as the new snapshot.

        Raises:
            NotFoundError: If the agent does not exist
        """
        try:
            agent = await self._agents.get(agent_id)
        except Exception as e:
            raise InternalError("Agent lookup failed") from e
        if agent is None:
            raise NotFoundError(f'Agent "{agent_id}" not found')

        trust_score = await self.compute_agent_trust(agent_id)
        try:
            await self._agents.update_trust_score(agent_id, trust_score)
        except Exception as e:
            logger.error(f"❌ Failed to persist trust for {agent_id}: {e}", exc_info=True)
            raise InternalError("Failed to persist agent trust") from e

        logger.info(f"✅ Agent trust updated: {agent_id} {agent.trust_score:.2f} -> {trust_score:.2f}")
        return AgentTrust(agent_id=agent_id, trust_score=trust_score, persisted=True)

    async def _all_by_author(self, agent_id: str) -> List[Contribution]:
        contributions: List[Contribution] = []
        offset = 0
        while True:
            page = await self._contributions.list_by_author(
                agent_id, limit=AUTHOR_PAGE_SIZE, offset=offset
            )
            contributions.extend(page)
            if len(page) < AUTHOR_PAGE_SIZE:
                return contributions
            offset += AUTHOR_PAGE_SIZE
