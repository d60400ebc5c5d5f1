"""Service for per-domain statistics."""

from typing import List

from ..models.domain import DomainStat
from ..ports.contribution_store import ContributionStore


class DomainService:
    """Aggregated statistics across contribution domain tags."""

    def __init__(self, contribution_store: ContributionStore):
        self._store = contribution_store

    async def list_domains(self) -> List[DomainStat]:
        """Domains ordered by contribution count, most active first."""
        stats = await self._store.domain_stats()
        return sorted(stats, key=lambda stat: stat.contribution_count, reverse=True)
