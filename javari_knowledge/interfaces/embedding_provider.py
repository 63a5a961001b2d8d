"""Abstract base class for text-embedding service providers.

Defines the contract for turning one chunk of text into an embedding
vector.  The production implementation wraps the OpenAI embeddings API;
tests substitute scripted fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: OpenAIEmbeddingProvider
# Located in: javari_knowledge/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for the embedding client used by ingestion and search.

    Implementations do not retry.  Retry and per-call timeouts are applied
    by the ingestion pipeline so every provider behaves the same way.
    """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string.

        Parameters
        ----------
        text:
            The chunk text (or search query) to embed.

        Returns
        -------
        list[float]
            The embedding vector with length equal to :meth:`get_dimension`.

        Raises
        ------
        javari_knowledge.utils.errors.TransientServiceError
            Network failure, timeout, rate limiting or 5xx from the API.
        javari_knowledge.utils.errors.PermanentServiceError
            The model rejected the input (empty text, bad request, auth).
        """

    @abstractmethod
    def get_model_name(self) -> str:
        """Return the embedding model identifier, e.g. ``"text-embedding-ada-002"``."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors.

        This value must remain constant for the lifetime of the provider
        instance and must match the ``embedding`` column of the store.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier used in logs and error prefixes."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider has the credentials it needs."""
