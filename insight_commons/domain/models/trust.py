"""Domain models for trust scores."""

from pydantic import BaseModel, Field


class ContributionTrustBreakdown(BaseModel):
    """Inputs that produced a contribution's trust score."""

    base: float = Field(..., description="Author trust times self-rated confidence")
    boost: float = Field(..., description="Net adjustment from validations")
    confirmed: int
    contradicted: int
    refined: int


class ContributionTrust(BaseModel):
    """Bounded trust score for a single contribution."""

    contribution_id: str
    score: float = Field(..., ge=0.0, le=1.0)
    breakdown: ContributionTrustBreakdown


class AgentTrust(BaseModel):
    """Recomputed trust for an agent."""

    agent_id: str
    trust_score: float = Field(..., ge=0.1, le=1.0)
    persisted: bool = False
