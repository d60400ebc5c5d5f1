"""Protocol for looking up agents and persisting their trust snapshot."""

from typing import Optional, Protocol

from ..models.agent import Agent


class AgentDirectory(Protocol):
    """Agent lookups. Registration and identity issuance live elsewhere."""

    async def get(self, agent_id: str) -> Optional[Agent]:
        """Fetch an agent by id."""
        ...

    async def update_trust_score(self, agent_id: str, trust_score: float) -> Agent:
        """Persist a new trust snapshot for an agent."""
        ...
