"""Javari knowledge-base models: re-exports the public model classes."""

from __future__ import annotations

from javari_knowledge.models.knowledge import (
    Chunk,
    Document,
    EmbeddingVector,
    IngestionProgress,
    IngestionResult,
    KnowledgeRecord,
    SearchHit,
    content_hash,
)

__all__ = [
    "Chunk",
    "Document",
    "EmbeddingVector",
    "IngestionProgress",
    "IngestionResult",
    "KnowledgeRecord",
    "SearchHit",
    "content_hash",
]
