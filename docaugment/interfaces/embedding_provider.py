"""Abstract base class for text-embedding providers.

Defines the contract for generating embedding vectors from text.
Implementations wrap OpenAI ``text-embedding-3-small`` or Nomic
``nomic-embed-text`` served by a local Ollama instance.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   OpenAIEmbeddingProvider -- text-embedding-3-small (requires API key)
#   NomicEmbeddingProvider  -- nomic-embed-text via Ollama (local)
# Located in: docaugment/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by chunk indexing and search."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*.

        Raises
        ------
        docaugment.utils.errors.ProviderUnavailableError
            On connection failures, timeouts, 5xx, rate limits, or an empty
            vector.
        docaugment.utils.errors.EmbeddingError
            On any other API failure.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the produced vectors, e.g. ``1536``."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the stable identifier used in logs, e.g. ``"openai_embedding"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured."""
