"""Rejects contributions that are near-identical to stored ones."""

import logging
from typing import List, Optional

from ..errors import ConflictError
from ..ports.contribution_store import ContributionStore

logger = logging.getLogger(__name__)

DUPLICATE_THRESHOLD = 0.95


class DuplicateGuard:
    """Checks a candidate embedding against stored contributions.

    Near-duplicates add no retrieval value and split validation signal
    across clones, so any stored contribution at or above the threshold
    blocks the write.

    The check and the subsequent insert are not atomic: two concurrent,
    near-identical submissions can both pass. Callers that need a hard
    guarantee must add a uniqueness constraint in the store.
    """

    def __init__(self, contribution_store: ContributionStore, threshold: float = DUPLICATE_THRESHOLD):
        """Initialize the guard.

        Args:
            contribution_store: Store providing the similarity lookup
            threshold: Cosine similarity at or above which a write is rejected
        """
        self._store = contribution_store
        self._threshold = threshold

    @property
    def threshold(self) -> float:
        return self._threshold

    async def check(self, embedding: List[float], exclude_id: Optional[str] = None) -> None:
        """Raise ``ConflictError`` if a stored contribution is too similar.

        Args:
            embedding: Embedding of the contribution about to be written
            exclude_id: Contribution being updated, which may match itself

        Raises:
            ConflictError: Naming the closest colliding contribution
        """
        similar = await self._store.find_similar(embedding, self._threshold)
        collisions = [hit for hit in similar if hit.contribution.id != exclude_id]
        if not collisions:
            return

        closest = max(collisions, key=lambda hit: hit.score)
        logger.warning(
            f"⚠️ Duplicate contribution rejected: matches {closest.contribution.id} "
            f"(similarity {closest.score:.3f})"
        )
        raise ConflictError(
            "A very similar contribution already exists",
            existing_id=closest.contribution.id,
            similarity=closest.score,
        )
