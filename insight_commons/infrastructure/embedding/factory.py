"""Factory for creating and managing embedding gateways."""

from typing import Any, Dict, Optional, Type

from ...domain.ports.embedding_gateway import EmbeddingGateway
from .hashing_gateway import HashingEmbeddingGateway
from .openai_gateway import OpenAIEmbeddingGateway
from .voyage_gateway import VoyageEmbeddingGateway


class EmbeddingGatewayFactory:
    """Factory for creating and managing embedding gateways."""

    def __init__(self):
        """Initialize the factory."""
        self._gateways: Dict[str, Type[EmbeddingGateway]] = {}
        self._instances: Dict[str, EmbeddingGateway] = {}

        # Register default gateways
        self.register_gateway("openai", OpenAIEmbeddingGateway)
        self.register_gateway("voyage", VoyageEmbeddingGateway)
        self.register_gateway("hashing", HashingEmbeddingGateway)

    def register_gateway(self, name: str, gateway_class: Type[EmbeddingGateway]) -> None:
        """Register a new embedding gateway.

        Args:
            name: Gateway name
            gateway_class: Gateway class
        """
        self._gateways[name] = gateway_class

    async def create_gateway(self, name: str, config: Optional[Any] = None) -> EmbeddingGateway:
        """Create and initialize a gateway instance.

        Args:
            name: Gateway name
            config: Gateway-specific configuration model

        Returns:
            Initialized gateway instance

        Raises:
            ValueError: If gateway not found
        """
        if name not in self._gateways:
            raise ValueError(f"Embedding provider '{name}' not found")

        if name not in self._instances:
            gateway = self._gateways[name](config=config, provider_name=name)
            await gateway.initialize()
            self._instances[name] = gateway

        return self._instances[name]

    def get_gateway(self, name: str) -> Optional[EmbeddingGateway]:
        """Get an existing gateway instance.

        Args:
            name: Gateway name

        Returns:
            Gateway instance if exists, None otherwise
        """
        return self._instances.get(name)

    @property
    def available_gateways(self) -> Dict[str, bool]:
        """Get dictionary of registered gateways and whether they are running."""
        return {
            name: name in self._instances
            for name in self._gateways
        }

    async def shutdown(self) -> None:
        """Shutdown all gateway instances."""
        for gateway in self._instances.values():
            await gateway.shutdown()
        self._instances.clear()
