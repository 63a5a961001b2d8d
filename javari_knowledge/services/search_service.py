"""Semantic search over the knowledge store."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from javari_knowledge.models.knowledge import SearchHit
from javari_knowledge.utils.errors import ValidationError

if TYPE_CHECKING:
    from javari_knowledge.interfaces.embedding_provider import IEmbeddingProvider
    from javari_knowledge.interfaces.knowledge_store import IKnowledgeStore

logger = structlog.get_logger(logger_name=__name__)


class KnowledgeSearchService:
    """Embeds a query and asks the store for the nearest knowledge records."""

    def __init__(self, embedding_provider: IEmbeddingProvider, store: IKnowledgeStore) -> None:
        self._embedding_provider = embedding_provider
        self._store = store

    async def search(
        self,
        query: str,
        match_threshold: float = 0.7,
        match_count: int = 10,
    ) -> list[SearchHit]:
        if not query or not query.strip():
            raise ValidationError("Search query is empty")
        if not 0.0 <= match_threshold <= 1.0:
            raise ValidationError(f"match_threshold must be within [0, 1], got {match_threshold}")
        if match_count < 1:
            raise ValidationError(f"match_count must be >= 1, got {match_count}")

        embedding = await self._embedding_provider.embed_single(query)
        hits = await self._store.search(embedding, match_threshold, match_count)
        logger.info(
            "knowledge_search",
            query_chars=len(query),
            hits=len(hits),
            match_threshold=match_threshold,
        )
        return hits
