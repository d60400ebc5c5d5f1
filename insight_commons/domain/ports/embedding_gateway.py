"""Protocol for embedding gateways."""

from typing import List, Protocol


class EmbeddingGateway(Protocol):
    """Turns text into fixed-dimension vectors.

    Implementations are deterministic per (text, model) pair and return
    vectors of the same dimensionality for the lifetime of a deployment.
    """

    async def initialize(self) -> None:
        """Open connections and verify credentials."""
        ...

    async def shutdown(self) -> None:
        """Release resources."""
        ...

    async def generate(self, text: str) -> List[float]:
        """Embed a single text."""
        ...

    async def generate_batch(self, texts: List[str]) -> List[List[float]]:
        """Embed several texts, preserving input order."""
        ...

    @property
    def dimensions(self) -> int:
        """Vector dimensionality."""
        ...

    @property
    def provider_name(self) -> str:
        """Get the provider name."""
        ...
