"""Deterministic hashing embeddings for local development and tests."""

import hashlib
import math
import struct
from typing import List, Optional

from pydantic import BaseModel, Field


class HashingEmbeddingConfig(BaseModel):
    """Configuration for the hashing gateway."""

    dimensions: int = Field(default=64, ge=8, description="Vector dimensionality")


class HashingEmbeddingGateway:
    """Embedding gateway that needs no network access.

    Vectors carry no meaning: identical text yields identical vectors and
    different text yields unrelated ones. Good enough for wiring the
    service up without credentials.
    """

    def __init__(self, config: Optional[HashingEmbeddingConfig] = None, provider_name: str = "hashing"):
        self._config = config or HashingEmbeddingConfig()
        self._name = provider_name

    async def initialize(self) -> None:
        pass

    async def shutdown(self) -> None:
        pass

    async def generate(self, text: str) -> List[float]:
        return self._vectorize(text)

    async def generate_batch(self, texts: List[str]) -> List[List[float]]:
        return [self._vectorize(text) for text in texts]

    @property
    def dimensions(self) -> int:
        return self._config.dimensions

    @property
    def provider_name(self) -> str:
        return self._name

    @property
    def is_available(self) -> bool:
        return True

    def _vectorize(self, text: str) -> List[float]:
        values: List[float] = []
        counter = 0
        while len(values) < self._config.dimensions:
            digest = hashlib.sha256(f"{counter}:{text}".encode("utf-8")).digest()
            for (word,) in struct.iter_unpack(">I", digest):
                values.append(word / 0xFFFFFFFF * 2.0 - 1.0)
            counter += 1

        vector = values[:self._config.dimensions]
        norm = math.sqrt(sum(v * v for v in vector))
        return [v / norm for v in vector] if norm else vector
