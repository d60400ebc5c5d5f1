"""Protocol for contribution persistence and search."""

from typing import List, Optional, Protocol

from pydantic import BaseModel, Field

from ..models.contribution import Contribution
from ..models.domain import DomainStat


class SearchOptions(BaseModel):
    """Filters shared by vector and lexical search."""

    max_results: int = Field(..., ge=1, description="Maximum rows to return")
    min_confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    domain_tags: Optional[List[str]] = Field(None, description="OR-matched tag filter")


class RankedContribution(BaseModel):
    """A stored contribution with the score the store ranked it by.

    Vector search and similarity lookup report cosine similarity in [0, 1];
    lexical search reports a relative rank score that is only meaningful
    for ordering.
    """

    contribution: Contribution
    score: float


class ContributionStore(Protocol):
    """Persistence, vector search and lexical search over contributions."""

    async def insert(self, contribution: Contribution) -> Contribution:
        """Persist a new contribution."""
        ...

    async def get(self, contribution_id: str) -> Optional[Contribution]:
        """Fetch a contribution by id."""
        ...

    async def update(self, contribution: Contribution) -> Contribution:
        """Replace a stored contribution."""
        ...

    async def delete(self, contribution_id: str) -> None:
        """Remove a contribution."""
        ...

    async def list_by_author(
        self,
        author_id: str,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Contribution]:
        """List an author's contributions, newest first."""
        ...

    async def count_by_author(self, author_id: str) -> int:
        """Count an author's contributions."""
        ...

    async def vector_search(
        self,
        vector: List[float],
        options: SearchOptions,
    ) -> List[RankedContribution]:
        """Rank contributions by cosine similarity to ``vector``."""
        ...

    async def lexical_search(
        self,
        text: str,
        options: SearchOptions,
    ) -> List[RankedContribution]:
        """Rank contributions by full-text match against ``text``."""
        ...

    async def find_similar(
        self,
        vector: List[float],
        threshold: float,
    ) -> List[RankedContribution]:
        """Return contributions whose similarity to ``vector`` is at least ``threshold``."""
        ...

    async def domain_stats(self) -> List[DomainStat]:
        """Aggregate statistics per domain tag."""
        ...
