"""In-memory knowledge store.

Dict-backed implementation of :class:`IKnowledgeStore` with sequential
ids and brute-force cosine similarity search.  Used by the test suite and
by the CLI's ``--dry-run`` mode; nothing is persisted.
"""

from __future__ import annotations

import math

import structlog

from javari_knowledge.interfaces.knowledge_store import IKnowledgeStore
from javari_knowledge.models.knowledge import KnowledgeRecord, SearchHit

logger = structlog.get_logger(logger_name=__name__)


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine similarity of two equal-length vectors; 0.0 if either is zero."""
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)


class InMemoryKnowledgeStore(IKnowledgeStore):
    """Knowledge store that keeps records in a dict keyed by id."""

    def __init__(self) -> None:
        self._records: dict[str, KnowledgeRecord] = {}
        self._next_id = 1

    @property
    def records(self) -> list[KnowledgeRecord]:
        """Stored records in insertion order."""
        return list(self._records.values())

    async def insert(self, record: KnowledgeRecord) -> str:
        record_id = str(self._next_id)
        self._next_id += 1
        self._records[record_id] = record
        logger.debug("memory_record_inserted", record_id=record_id, source=record.source)
        return record_id

    async def has_content_hash(self, content_hash: str) -> bool:
        return any(r.content_hash == content_hash for r in self._records.values())

    async def search(
        self,
        embedding: list[float],
        match_threshold: float = 0.7,
        match_count: int = 10,
    ) -> list[SearchHit]:
        hits: list[SearchHit] = []
        for record_id, record in self._records.items():
            similarity = cosine_similarity(embedding, record.embedding)
            if similarity < match_threshold:
                continue
            hits.append(
                SearchHit(
                    record_id=record_id,
                    content=record.chunk_text,
                    source=record.source,
                    category=record.category,
                    section=record.section,
                    similarity=min(max(similarity, 0.0), 1.0),
                )
            )
        hits.sort(key=lambda h: h.similarity, reverse=True)
        return hits[:match_count]

    def get_provider_name(self) -> str:
        return "memory"

    def is_available(self) -> bool:
        return True
