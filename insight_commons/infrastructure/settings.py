"""Application settings read from the environment."""

import json
import os
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from ..domain.models.agent import Agent
from .embedding.hashing_gateway import HashingEmbeddingConfig
from .embedding.openai_gateway import OpenAIEmbeddingConfig
from .embedding.voyage_gateway import VoyageConfig
from .store.supabase import SupabaseConfig

EMBEDDING_PROVIDERS = ("openai", "voyage", "hashing")
STORE_BACKENDS = ("memory", "supabase")


def _optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value else None


def _agents(name: str) -> List[Agent]:
    """Agents from a JSON array, e.g. ``[{"id": "alice", "display_name": "Alice"}]``."""
    value = os.getenv(name)
    if not value:
        return []
    return [Agent(**item) for item in json.loads(value)]


class AppSettings(BaseModel):
    """Settings for the whole service. Missing values fall back to local defaults."""

    embedding_provider: str = Field(default="hashing", description="openai, voyage or hashing")
    openai_api_key: str = ""
    openai_embedding_model: str = "text-embedding-3-small"
    voyage_api_key: str = ""
    voyage_embedding_model: str = "voyage-4-lite"
    embedding_dimensions: Optional[int] = Field(
        default=None, description="Overrides the provider's default dimensionality"
    )
    embedding_cache_ttl: int = 3600
    embedding_cache_size: int = 1000
    store_backend: str = Field(default="memory", description="memory or supabase")
    memory_agents: List[Agent] = Field(
        default_factory=list, description="Agents preloaded into the in-memory directory"
    )
    supabase_url: str = ""
    supabase_service_key: str = ""
    http_timeout: float = 30.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AppSettings":
        """Build settings from environment variables.

        Raises:
            ValueError: If the provider or backend name is unknown, or
                MEMORY_AGENTS is not a JSON array of agents
        """
        settings = cls(
            embedding_provider=os.getenv("EMBEDDING_PROVIDER", "hashing").lower(),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_embedding_model=os.getenv("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small"),
            voyage_api_key=os.getenv("VOYAGE_API_KEY", ""),
            voyage_embedding_model=os.getenv("VOYAGE_EMBEDDING_MODEL", "voyage-4-lite"),
            embedding_dimensions=_optional_int("EMBEDDING_DIMENSIONS"),
            embedding_cache_ttl=int(os.getenv("EMBEDDING_CACHE_TTL", "3600")),
            embedding_cache_size=int(os.getenv("EMBEDDING_CACHE_SIZE", "1000")),
            store_backend=os.getenv("STORE_BACKEND", "memory").lower(),
            memory_agents=_agents("MEMORY_AGENTS"),
            supabase_url=os.getenv("SUPABASE_URL", ""),
            supabase_service_key=os.getenv("SUPABASE_SERVICE_KEY", ""),
            http_timeout=float(os.getenv("HTTP_TIMEOUT", "30")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
        if settings.embedding_provider not in EMBEDDING_PROVIDERS:
            raise ValueError(f"Unknown EMBEDDING_PROVIDER '{settings.embedding_provider}'")
        if settings.store_backend not in STORE_BACKENDS:
            raise ValueError(f"Unknown STORE_BACKEND '{settings.store_backend}'")
        return settings

    def embedding_config(self) -> Any:
        """Configuration model for the selected embedding provider."""
        if self.embedding_provider == "openai":
            config = OpenAIEmbeddingConfig(
                api_key=self.openai_api_key,
                model=self.openai_embedding_model,
                timeout=self.http_timeout,
                cache_ttl=self.embedding_cache_ttl,
                cache_maxsize=self.embedding_cache_size,
            )
        elif self.embedding_provider == "voyage":
            config = VoyageConfig(
                api_key=self.voyage_api_key,
                model=self.voyage_embedding_model,
                timeout=self.http_timeout,
                cache_ttl=self.embedding_cache_ttl,
                cache_maxsize=self.embedding_cache_size,
            )
        else:
            config = HashingEmbeddingConfig()

        if self.embedding_dimensions:
            config = config.model_copy(update={"dimensions": self.embedding_dimensions})
        return config

    def supabase_config(self) -> SupabaseConfig:
        return SupabaseConfig(
            url=self.supabase_url,
            service_key=self.supabase_service_key,
            timeout=self.http_timeout,
        )
