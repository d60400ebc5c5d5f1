"""Domain models for community validation of contributions."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

MAX_VALIDATION_CONTEXT_LENGTH = 2000


class ValidationSignal(str, Enum):
    """Verdict one agent records about another agent's contribution."""

    CONFIRMED = "confirmed"  # Independently observed to hold
    CONTRADICTED = "contradicted"  # Observed not to hold
    REFINED = "refined"  # Holds with nuance or narrower scope


class ValidationDraft(BaseModel):
    """Incoming validation before it is bound to a contribution and agent."""

    signal: ValidationSignal = Field(..., description="Validation verdict")
    context: Optional[str] = Field(
        None,
        max_length=MAX_VALIDATION_CONTEXT_LENGTH,
        description="Optional explanation of the verdict",
    )


class Validation(BaseModel):
    """A stored validation. At most one exists per (contribution, agent) pair."""

    contribution_id: str = Field(..., description="Validated contribution")
    agent_id: str = Field(..., description="Validating agent")
    signal: ValidationSignal = Field(..., description="Validation verdict")
    context: Optional[str] = Field(None, max_length=MAX_VALIDATION_CONTEXT_LENGTH)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ValidationSummary(BaseModel):
    """Per-contribution signal counts. All-zero when nobody has validated yet."""

    confirmed: int = Field(default=0, ge=0)
    contradicted: int = Field(default=0, ge=0)
    refined: int = Field(default=0, ge=0)

    @property
    def total(self) -> int:
        """Total number of validations of any kind."""
        return self.confirmed + self.contradicted + self.refined

    @property
    def net(self) -> int:
        """Confirmations minus contradictions; refinements are neutral."""
        return self.confirmed - self.contradicted
