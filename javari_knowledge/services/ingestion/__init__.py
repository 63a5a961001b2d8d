"""Ingestion pipeline: loader, chunker and the orchestrating service."""

from javari_knowledge.services.ingestion.chunker import ChunkSequence, TextChunker, estimate_tokens
from javari_knowledge.services.ingestion.ingestion_service import IngestionService
from javari_knowledge.services.ingestion.loader import DocumentLoader

__all__ = [
    "ChunkSequence",
    "DocumentLoader",
    "IngestionService",
    "TextChunker",
    "estimate_tokens",
]
