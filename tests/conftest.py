"""Test configuration and common fixtures."""

from typing import Callable, Dict, List, Optional

import pytest

from insight_commons.domain.models.agent import Agent
from insight_commons.domain.models.contribution import Contribution
from insight_commons.domain.services.contribution_service import ContributionService
from insight_commons.domain.services.duplicate_guard import DuplicateGuard
from insight_commons.domain.services.retrieval_service import RetrievalService
from insight_commons.domain.services.trust_service import TrustService
from insight_commons.domain.services.validation_service import ValidationService
from insight_commons.infrastructure.embedding.hashing_gateway import (
    HashingEmbeddingConfig,
    HashingEmbeddingGateway,
)
from insight_commons.infrastructure.store.memory import (
    InMemoryAgentDirectory,
    InMemoryContributionStore,
    InMemoryValidationStore,
)

DIMENSIONS = 16


def unit_vector(index: int, dimensions: int = DIMENSIONS) -> List[float]:
    """Basis vector; distinct indexes are orthogonal."""
    vector = [0.0] * dimensions
    vector[index] = 1.0
    return vector


class StubEmbeddingGateway:
    """Returns preset vectors for known texts and hashed vectors for the rest."""

    def __init__(self, vectors: Optional[Dict[str, List[float]]] = None):
        self.vectors: Dict[str, List[float]] = dict(vectors or {})
        self.calls: List[str] = []
        self._fallback = HashingEmbeddingGateway(HashingEmbeddingConfig(dimensions=DIMENSIONS))

    async def initialize(self) -> None:
        pass

    async def shutdown(self) -> None:
        pass

    async def generate(self, text: str) -> List[float]:
        self.calls.append(text)
        if text in self.vectors:
            return self.vectors[text]
        return await self._fallback.generate(text)

    async def generate_batch(self, texts: List[str]) -> List[List[float]]:
        return [await self.generate(text) for text in texts]

    @property
    def dimensions(self) -> int:
        return DIMENSIONS

    @property
    def provider_name(self) -> str:
        return "stub"


@pytest.fixture
def embeddings() -> StubEmbeddingGateway:
    """Provide an embedding gateway with controllable vectors."""
    return StubEmbeddingGateway()


@pytest.fixture
def contribution_store() -> InMemoryContributionStore:
    return InMemoryContributionStore()


@pytest.fixture
def validation_store() -> InMemoryValidationStore:
    return InMemoryValidationStore()


@pytest.fixture
def agent_directory() -> InMemoryAgentDirectory:
    """Provide a directory with three known agents."""
    return InMemoryAgentDirectory([
        Agent(id="alice", display_name="Alice", trust_score=0.5),
        Agent(id="bob", display_name="Bob", trust_score=0.7),
        Agent(id="carol", display_name="Carol", trust_score=0.9),
    ])


@pytest.fixture
def make_contribution(contribution_store) -> Callable:
    """Provide an async helper that stores a contribution with sensible defaults."""

    async def _make(**overrides) -> Contribution:
        fields = {
            "claim": "Write-ahead logs make agent memory crash-safe",
            "confidence": 0.8,
            "domain_tags": ["agent-memory"],
            "author_id": "alice",
            "embedding": unit_vector(0),
        }
        fields.update(overrides)
        return await contribution_store.insert(Contribution(**fields))

    return _make


@pytest.fixture
def retrieval_service(embeddings, contribution_store, agent_directory, validation_store) -> RetrievalService:
    return RetrievalService(embeddings, contribution_store, agent_directory, validation_store)


@pytest.fixture
def trust_service(contribution_store, agent_directory, validation_store) -> TrustService:
    return TrustService(contribution_store, agent_directory, validation_store)


@pytest.fixture
def validation_service(validation_store, contribution_store) -> ValidationService:
    return ValidationService(validation_store, contribution_store)


@pytest.fixture
def contribution_service(
    contribution_store, embeddings, agent_directory, validation_store
) -> ContributionService:
    return ContributionService(
        contribution_store,
        embeddings,
        DuplicateGuard(contribution_store),
        agent_directory,
        validation_store,
    )
