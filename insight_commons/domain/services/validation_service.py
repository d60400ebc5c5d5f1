"""Service for agents confirming, contradicting or refining each other's insights."""

import logging
from typing import List

from ..errors import ForbiddenError, NotFoundError
from ..models.validation import Validation, ValidationDraft, ValidationSummary
from ..ports.contribution_store import ContributionStore
from ..ports.validation_store import ValidationStore

logger = logging.getLogger(__name__)


class ValidationService:
    """Records validations. Trust is not recomputed here; that is an explicit call."""

    def __init__(self, validation_store: ValidationStore, contribution_store: ContributionStore):
        self._validations = validation_store
        self._contributions = contribution_store

    async def validate(
        self,
        contribution_id: str,
        draft: ValidationDraft,
        agent_id: str,
    ) -> Validation:
        """Record or overwrite an agent's validation of a contribution.

        Args:
            contribution_id: Contribution being validated
            draft: Signal and optional context
            agent_id: Validating agent

        Returns:
            The stored validation

        Raises:
            NotFoundError: If the contribution does not exist
            ForbiddenError: If the agent authored the contribution
        """
        contribution = await self._contributions.get(contribution_id)
        if contribution is None:
            raise NotFoundError(f'Contribution "{contribution_id}" not found')

        if contribution.author_id == agent_id:
            logger.warning(f"⚠️ Self-validation rejected: {agent_id} on {contribution_id}")
            raise ForbiddenError("Cannot validate your own contribution", code="SELF_VALIDATION")

        validation = await self._validations.upsert(
            Validation(
                contribution_id=contribution_id,
                agent_id=agent_id,
                signal=draft.signal,
                context=draft.context,
            )
        )
        logger.info(f"✅ Validation recorded: {agent_id} {draft.signal.value} {contribution_id}")
        return validation

    async def list_validations(self, contribution_id: str) -> List[Validation]:
        """All validations of a contribution.

        Raises:
            NotFoundError: If the contribution does not exist
        """
        if await self._contributions.get(contribution_id) is None:
            raise NotFoundError(f'Contribution "{contribution_id}" not found')
        return await self._validations.list_for_contribution(contribution_id)

    async def summary(self, contribution_id: str) -> ValidationSummary:
        return await self._validations.summary(contribution_id)

    async def remove(self, contribution_id: str, agent_id: str) -> None:
        await self._validations.delete(contribution_id, agent_id)
