"""Embedding provider implementations."""

from javari_knowledge.providers.embedding.openai_embedding_provider import (
    OpenAIEmbeddingProvider,
)

__all__ = ["OpenAIEmbeddingProvider"]
