"""Domain model for per-tag statistics."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class DomainStat(BaseModel):
    """Aggregate over all contributions carrying one domain tag."""

    domain: str = Field(..., description="Domain tag")
    contribution_count: int = Field(..., ge=0)
    avg_confidence: float = Field(..., ge=0.0, le=1.0)
    latest_contribution: Optional[datetime] = None
