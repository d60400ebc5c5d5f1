"""Domain models for contributing agents."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_TRUST_SCORE = 0.5
MIN_AGENT_TRUST = 0.1
MAX_AGENT_TRUST = 1.0


class Agent(BaseModel):
    """An agent that contributes and validates insights.

    ``trust_score`` is a persisted snapshot. It only changes when the trust
    engine recomputes and stores it explicitly.
    """

    id: str = Field(..., description="Agent identifier")
    display_name: str = Field(..., description="Human readable name")
    description: Optional[str] = Field(None, description="Free-form description")
    trust_score: float = Field(
        default=DEFAULT_TRUST_SCORE,
        ge=MIN_AGENT_TRUST,
        le=MAX_AGENT_TRUST,
        description="Reputation snapshot in [0.1, 1.0]",
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AgentSummary(BaseModel):
    """Author details attached to contributions in responses."""

    id: str
    display_name: str
    trust_score: float

    @classmethod
    def unknown(cls, agent_id: str) -> "AgentSummary":
        """Summary for an author the directory no longer knows about."""
        return cls(id=agent_id, display_name="Unknown", trust_score=0.0)

    @classmethod
    def from_agent(cls, agent: Agent) -> "AgentSummary":
        return cls(id=agent.id, display_name=agent.display_name, trust_score=agent.trust_score)
