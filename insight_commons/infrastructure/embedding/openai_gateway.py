"""OpenAI implementation of the embedding gateway."""

import logging
from typing import List, Optional

from openai import AsyncOpenAI
from pydantic import BaseModel, Field

from .cache import cached_batch, create_embedding_cache

logger = logging.getLogger(__name__)


class OpenAIEmbeddingConfig(BaseModel):
    """Configuration for the OpenAI embedding gateway."""

    api_key: str = Field(..., description="OpenAI API key")
    model: str = Field(default="text-embedding-3-small", description="Embedding model")
    dimensions: int = Field(default=1536, description="Requested vector dimensionality")
    timeout: float = Field(default=30.0, description="API timeout in seconds")
    cache_ttl: int = Field(default=3600, description="Cache TTL in seconds")
    cache_maxsize: int = Field(default=1000, description="Maximum cached texts")


class OpenAIEmbeddingGateway:
    """Embeds text with the OpenAI embeddings API."""

    def __init__(
        self,
        config: Optional[OpenAIEmbeddingConfig] = None,
        provider_name: str = "openai",
    ):
        """Initialize the gateway.

        Args:
            config: Gateway configuration
            provider_name: Name of the provider
        """
        self._config = config or OpenAIEmbeddingConfig(api_key="")
        self._name = provider_name
        self._client: Optional[AsyncOpenAI] = None
        self._cache = create_embedding_cache(self._config.cache_maxsize, self._config.cache_ttl)

    async def initialize(self) -> None:
        """Create the API client."""
        if not self._config.api_key:
            raise ConnectionError("Failed to initialize OpenAI embeddings: OPENAI_API_KEY is not set")
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._config.api_key, timeout=self._config.timeout)
        logger.info(f"✅ OpenAI embeddings ready: {self._config.model} ({self._config.dimensions} dims)")

    async def shutdown(self) -> None:
        """Close the API client."""
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def generate(self, text: str) -> List[float]:
        """Embed a single text."""
        return (await self.generate_batch([text]))[0]

    async def generate_batch(self, texts: List[str]) -> List[List[float]]:
        """Embed several texts in one API call, preserving input order."""
        if not texts:
            return []
        return await cached_batch(self._cache, texts, self._fetch)

    async def _fetch(self, texts: List[str]) -> List[List[float]]:
        if self._client is None:
            raise RuntimeError("Provider not initialized")

        response = await self._client.embeddings.create(
            model=self._config.model,
            input=texts,
            dimensions=self._config.dimensions,
        )
        return [item.embedding for item in sorted(response.data, key=lambda item: item.index)]

    @property
    def dimensions(self) -> int:
        return self._config.dimensions

    @property
    def provider_name(self) -> str:
        return self._name

    @property
    def is_available(self) -> bool:
        return self._client is not None
