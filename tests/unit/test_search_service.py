"""Unit tests for KnowledgeSearchService."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from javari_knowledge.config.ingestion import IngestionConfig
from javari_knowledge.models.knowledge import Document
from javari_knowledge.providers.store.memory_store import InMemoryKnowledgeStore
from javari_knowledge.services.ingestion.ingestion_service import IngestionService
from javari_knowledge.services.search_service import KnowledgeSearchService
from javari_knowledge.utils.errors import ValidationError
from tests.conftest import FakeEmbeddingProvider


class TestKnowledgeSearchService:
    @pytest.mark.asyncio
    async def test_finds_ingested_chunk(
        self,
        embedding_provider: FakeEmbeddingProvider,
        memory_store: InMemoryKnowledgeStore,
    ) -> None:
        text = "Credits roll over for paid plans."
        ingestion = IngestionService(embedding_provider, memory_store, IngestionConfig())
        await ingestion.ingest(Document(text=text, source="pricing", category="manual"))

        hits = await KnowledgeSearchService(embedding_provider, memory_store).search(text)

        assert len(hits) == 1
        assert hits[0].content == text
        assert hits[0].source == "pricing"
        assert hits[0].similarity == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_passes_threshold_and_count_to_store(
        self, embedding_provider: FakeEmbeddingProvider
    ) -> None:
        store = AsyncMock()
        store.search = AsyncMock(return_value=[])
        service = KnowledgeSearchService(embedding_provider, store)

        await service.search("credits", match_threshold=0.5, match_count=3)

        args = store.search.await_args.args
        assert args[1:] == (0.5, 3)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   "])
    async def test_empty_query_rejected(
        self,
        embedding_provider: FakeEmbeddingProvider,
        memory_store: InMemoryKnowledgeStore,
        query: str,
    ) -> None:
        with pytest.raises(ValidationError):
            await KnowledgeSearchService(embedding_provider, memory_store).search(query)
        assert embedding_provider.calls == []

    @pytest.mark.asyncio
    async def test_threshold_out_of_range_rejected(
        self,
        embedding_provider: FakeEmbeddingProvider,
        memory_store: InMemoryKnowledgeStore,
    ) -> None:
        with pytest.raises(ValidationError):
            await KnowledgeSearchService(embedding_provider, memory_store).search(
                "credits", match_threshold=1.5
            )
