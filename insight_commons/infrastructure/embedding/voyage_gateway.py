"""Voyage AI implementation of the embedding gateway."""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field

from .cache import cached_batch, create_embedding_cache

logger = logging.getLogger(__name__)

VOYAGE_DEFAULT_DIMENSIONS = 1024


class VoyageConfig(BaseModel):
    """Configuration for the Voyage embedding gateway."""

    api_key: str = Field(..., description="Voyage API key")
    base_url: str = Field(default="https://api.voyageai.com/v1", description="API base URL")
    model: str = Field(default="voyage-4-lite", description="Embedding model")
    dimensions: int = Field(default=VOYAGE_DEFAULT_DIMENSIONS, description="Output dimensionality")
    input_type: str = Field(default="document", description="Voyage input type hint")
    timeout: float = Field(default=30.0, description="API timeout in seconds")
    cache_ttl: int = Field(default=3600, description="Cache TTL in seconds")
    cache_maxsize: int = Field(default=1000, description="Maximum cached texts")


class VoyageEmbeddingGateway:
    """Embeds text through the Voyage REST API."""

    def __init__(
        self,
        config: Optional[VoyageConfig] = None,
        provider_name: str = "voyage",
    ):
        """Initialize the gateway.

        Args:
            config: Gateway configuration
            provider_name: Name of the provider
        """
        self._config = config or VoyageConfig(api_key="")
        self._name = provider_name
        self._client: Optional[httpx.AsyncClient] = None
        self._cache = create_embedding_cache(self._config.cache_maxsize, self._config.cache_ttl)

    async def initialize(self) -> None:
        """Create the HTTP client."""
        if not self._config.api_key:
            raise ConnectionError("Failed to initialize Voyage embeddings: VOYAGE_API_KEY is not set")
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                headers={
                    "Authorization": f"Bearer {self._config.api_key}",
                    "Content-Type": "application/json",
                },
            )
        logger.info(f"✅ Voyage embeddings ready: {self._config.model} ({self._config.dimensions} dims)")

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
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
        if not self._client:
            raise RuntimeError("Provider not initialized")

        body: Dict[str, Any] = {
            "input": texts,
            "model": self._config.model,
            "input_type": self._config.input_type,
        }
        # Only sent for non-default sizes; the API rejects it for some models.
        if self._config.dimensions != VOYAGE_DEFAULT_DIMENSIONS:
            body["output_dimension"] = self._config.dimensions

        response = await self._client.post("/embeddings", json=body)
        if response.is_error:
            try:
                detail = response.json().get("detail", "Unknown error")
            except ValueError:
                detail = response.text or "Unknown error"
            raise ConnectionError(f"Voyage API error ({response.status_code}): {detail}")

        data = response.json()["data"]
        return [item["embedding"] for item in sorted(data, key=lambda item: item["index"])]

    @property
    def dimensions(self) -> int:
        return self._config.dimensions

    @property
    def provider_name(self) -> str:
        return self._name

    @property
    def is_available(self) -> bool:
        return self._client is not None
