"""Service for creating, reading, updating and deleting contributions."""

import logging
from datetime import datetime, timezone
from typing import List

from ..errors import ForbiddenError, InternalError, NotFoundError
from ..models.agent import AgentSummary
from ..models.contribution import (
    Contribution,
    ContributionDraft,
    ContributionPage,
    ContributionUpdate,
    ContributionView,
    build_embedding_text,
)
from ..ports.agent_directory import AgentDirectory
from ..ports.contribution_store import ContributionStore
from ..ports.embedding_gateway import EmbeddingGateway
from ..ports.validation_store import ValidationAggregate
from .duplicate_guard import DuplicateGuard

logger = logging.getLogger(__name__)


class ContributionService:
    """Coordinates embedding, duplicate detection and ownership for contributions."""

    def __init__(
        self,
        contribution_store: ContributionStore,
        embedding_gateway: EmbeddingGateway,
        duplicate_guard: DuplicateGuard,
        agent_directory: AgentDirectory,
        validations: ValidationAggregate,
    ):
        """Initialize the service.

        Args:
            contribution_store: Contribution persistence
            embedding_gateway: Embeds claim, reasoning and applicability
            duplicate_guard: Rejects near-identical contributions
            agent_directory: Author lookups for responses
            validations: Validation counts for responses
        """
        self._store = contribution_store
        self._embeddings = embedding_gateway
        self._guard = duplicate_guard
        self._agents = agent_directory
        self._validations = validations
        logger.info("🔧 ContributionService initialized")

    async def create(self, draft: ContributionDraft, author_id: str) -> ContributionView:
        """Create a contribution.

        Args:
            draft: Validated contribution fields
            author_id: Authoring agent

        Returns:
            The stored contribution with author and validation summaries

        Raises:
            ConflictError: If a near-identical contribution already exists
            InternalError: If embedding generation fails
        """
        embedding = await self._embed(
            build_embedding_text(draft.claim, draft.reasoning, draft.applicability)
        )
        await self._guard.check(embedding)

        contribution = Contribution(
            claim=draft.claim,
            reasoning=draft.reasoning,
            applicability=draft.applicability,
            limitations=draft.limitations,
            confidence=draft.confidence,
            domain_tags=draft.domain_tags,
            author_id=author_id,
            embedding=embedding,
        )
        stored = await self._store.insert(contribution)
        logger.info(f"✅ Contribution created: {stored.id} by {author_id}")
        return await self._to_view(stored)

    async def get(self, contribution_id: str) -> ContributionView:
        """Fetch a contribution.

        Raises:
            NotFoundError: If the contribution does not exist
        """
        return await self._to_view(await self._require(contribution_id))

    async def update(
        self,
        contribution_id: str,
        update: ContributionUpdate,
        agent_id: str,
    ) -> ContributionView:
        """Apply a partial update to the caller's own contribution.

        The embedding is regenerated, and the duplicate check re-run, only
        when claim, reasoning or applicability were supplied.

        Raises:
            NotFoundError: If the contribution does not exist
            ForbiddenError: If the caller is not the author
            ConflictError: If the new text duplicates another contribution
        """
        existing = await self._require(contribution_id)
        if existing.author_id != agent_id:
            logger.warning(f"⚠️ Agent {agent_id} tried to update {contribution_id}")
            raise ForbiddenError("You can only update your own contributions")

        changes = update.changes
        changes["updated_at"] = datetime.now(timezone.utc)

        if update.touches_embedding():
            merged = existing.model_copy(update=changes)
            embedding = await self._embed(merged.embedding_text)
            await self._guard.check(embedding, exclude_id=contribution_id)
            changes["embedding"] = embedding

        updated = await self._store.update(existing.model_copy(update=changes))
        logger.info(f"✅ Contribution updated: {contribution_id} ({', '.join(update.changes)})")
        return await self._to_view(updated)

    async def delete(self, contribution_id: str, agent_id: str) -> None:
        """Delete the caller's own contribution.

        Raises:
            NotFoundError: If the contribution does not exist
            ForbiddenError: If the caller is not the author
        """
        existing = await self._require(contribution_id)
        if existing.author_id != agent_id:
            logger.warning(f"⚠️ Agent {agent_id} tried to delete {contribution_id}")
            raise ForbiddenError("You can only delete your own contributions")

        await self._store.delete(contribution_id)
        logger.info(f"🗑️ Contribution deleted: {contribution_id}")

    async def list_by_author(self, author_id: str, limit: int = 20, offset: int = 0) -> ContributionPage:
        """List an author's contributions, newest first."""
        contributions = await self._store.list_by_author(author_id, limit=limit, offset=offset)
        total = await self._store.count_by_author(author_id)
        items = await self._to_views(contributions)
        return ContributionPage(items=items, total=total, limit=limit, offset=offset)

    async def _require(self, contribution_id: str) -> Contribution:
        contribution = await self._store.get(contribution_id)
        if contribution is None:
            raise NotFoundError(f'Contribution "{contribution_id}" not found')
        return contribution

    async def _embed(self, text: str) -> List[float]:
        try:
            return await self._embeddings.generate(text)
        except Exception as e:
            logger.error(f"❌ Embedding generation failed: {e}", exc_info=True)
            raise InternalError("Embedding generation failed") from e

    async def _to_view(self, contribution: Contribution) -> ContributionView:
        return (await self._to_views([contribution]))[0]

    async def _to_views(self, contributions: List[Contribution]) -> List[ContributionView]:
        if not contributions:
            return []

        summaries = await self._validations.summaries([c.id for c in contributions])
        authors = {}
        for contribution in contributions:
            if contribution.author_id not in authors:
                agent = await self._agents.get(contribution.author_id)
                authors[contribution.author_id] = (
                    AgentSummary.from_agent(agent) if agent else AgentSummary.unknown(contribution.author_id)
                )

        return [
            ContributionView.build(
                contribution,
                contributor=authors[contribution.author_id],
                validations=summaries.get(contribution.id),
            )
            for contribution in contributions
        ]
