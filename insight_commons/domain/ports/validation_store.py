"""Protocols for validation lookups and persistence."""

from typing import Dict, List, Protocol

from ..models.validation import Validation, ValidationSummary


class ValidationAggregate(Protocol):
    """Read-only signal counts per contribution."""

    async def summary(self, contribution_id: str) -> ValidationSummary:
        """Counts for one contribution. Never None; all zeros when unvalidated."""
        ...

    async def summaries(self, contribution_ids: List[str]) -> Dict[str, ValidationSummary]:
        """Counts for several contributions in one call, keyed by id."""
        ...


class ValidationStore(ValidationAggregate, Protocol):
    """Validation persistence keyed by (contribution, agent)."""

    async def upsert(self, validation: Validation) -> Validation:
        """Insert or overwrite the agent's validation of a contribution."""
        ...

    async def list_for_contribution(self, contribution_id: str) -> List[Validation]:
        """All validations of a contribution."""
        ...

    async def list_by_agent(self, agent_id: str) -> List[Validation]:
        """All validations an agent has recorded."""
        ...

    async def delete(self, contribution_id: str, agent_id: str) -> None:
        """Remove an agent's validation of a contribution."""
        ...
