"""Dependency injection configuration for hexagonal architecture."""

import logging
from functools import lru_cache
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from ..domain.services.contribution_service import ContributionService
from ..domain.services.domain_service import DomainService
from ..domain.services.duplicate_guard import DuplicateGuard
from ..domain.services.retrieval_service import RetrievalService
from ..domain.services.trust_service import TrustService
from ..domain.services.validation_service import ValidationService
from .embedding.factory import EmbeddingGatewayFactory
from .settings import AppSettings
from .store.memory import InMemoryAgentDirectory, InMemoryContributionStore, InMemoryValidationStore
from .store.supabase import (
    SupabaseAgentDirectory,
    SupabaseClient,
    SupabaseContributionStore,
    SupabaseValidationStore,
)

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Service container for dependency injection.

    Adapters need async initialization, so services are wired on the first
    ``startup()`` call rather than in the constructor.
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        """Initialize service container.

        Args:
            settings: Application settings; read from the environment when omitted
        """
        self._settings = settings or AppSettings.from_env()
        self._services: Dict[str, Any] = {}
        self._embedding_factory = EmbeddingGatewayFactory()
        self._supabase: Optional[SupabaseClient] = None

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def is_started(self) -> bool:
        return bool(self._services)

    async def startup(self) -> None:
        """Create adapters and wire all services. Safe to call repeatedly."""
        if self.is_started:
            return

        settings = self._settings
        logger.info(
            f"🔧 Setting up service container (embeddings={settings.embedding_provider}, "
            f"store={settings.store_backend})..."
        )

        embedding_gateway = await self._embedding_factory.create_gateway(
            settings.embedding_provider, settings.embedding_config()
        )

        if settings.store_backend == "supabase":
            self._supabase = SupabaseClient(settings.supabase_config())
            await self._supabase.initialize()
            contribution_store = SupabaseContributionStore(self._supabase)
            validation_store = SupabaseValidationStore(self._supabase)
            agent_directory = SupabaseAgentDirectory(self._supabase)
        else:
            logger.warning("⚠️ Using in-memory stores; data is lost on restart")
            contribution_store = InMemoryContributionStore()
            validation_store = InMemoryValidationStore()
            agent_directory = InMemoryAgentDirectory(settings.memory_agents)

        duplicate_guard = DuplicateGuard(contribution_store)

        self._services = {
            'embedding_gateway': embedding_gateway,
            'contribution_store': contribution_store,
            'validation_store': validation_store,
            'agent_directory': agent_directory,
            'retrieval_service': RetrievalService(
                embedding_gateway, contribution_store, agent_directory, validation_store
            ),
            'contribution_service': ContributionService(
                contribution_store, embedding_gateway, duplicate_guard, agent_directory, validation_store
            ),
            'validation_service': ValidationService(validation_store, contribution_store),
            'trust_service': TrustService(contribution_store, agent_directory, validation_store),
            'domain_service': DomainService(contribution_store),
        }

        logger.info("✅ Service container setup completed")

    async def shutdown(self) -> None:
        """Close adapter clients."""
        await self._embedding_factory.shutdown()
        if self._supabase is not None:
            await self._supabase.shutdown()
            self._supabase = None
        self._services = {}
        logger.info("👋 Service container shut down")

    def get(self, service_name: str) -> Any:
        """Get a service by name.

        Args:
            service_name: Name of the service

        Returns:
            Service instance

        Raises:
            KeyError: If service not found
        """
        if service_name not in self._services:
            raise KeyError(f"Service '{service_name}' not found")
        return self._services[service_name]

    def health(self) -> Dict[str, Any]:
        """Component status for the health endpoint."""
        return {
            "embedding_provider": self._settings.embedding_provider,
            "embedding_gateways": self._embedding_factory.available_gateways,
            "store_backend": self._settings.store_backend,
            "started": self.is_started,
        }


# Global service container instance
@lru_cache()
def get_service_container() -> ServiceContainer:
    """Get global service container instance.

    Returns:
        Service container instance
    """
    load_dotenv()
    return ServiceContainer()


async def _started_service(name: str) -> Any:
    container = get_service_container()
    await container.startup()
    return container.get(name)


# Convenience functions for FastAPI dependency injection
async def get_retrieval_service() -> RetrievalService:
    """FastAPI dependency for the retrieval service."""
    return await _started_service('retrieval_service')


async def get_contribution_service() -> ContributionService:
    """FastAPI dependency for the contribution service."""
    return await _started_service('contribution_service')


async def get_validation_service() -> ValidationService:
    """FastAPI dependency for the validation service."""
    return await _started_service('validation_service')


async def get_trust_service() -> TrustService:
    """FastAPI dependency for the trust service."""
    return await _started_service('trust_service')


async def get_domain_service() -> DomainService:
    """FastAPI dependency for the domain statistics service."""
    return await _started_service('domain_service')
