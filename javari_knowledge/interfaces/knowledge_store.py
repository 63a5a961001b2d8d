"""Abstract base class for the managed knowledge store.

The store owns durability, indexing and similarity ranking.  This
package only issues insert, lookup and search requests against it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from javari_knowledge.models.knowledge import KnowledgeRecord, SearchHit


# Concrete implementations:
#   SupabaseKnowledgeStore  -- PostgREST table + search_knowledge RPC (production)
#   InMemoryKnowledgeStore  -- dict-backed, cosine search (tests, --dry-run)
# Located in: javari_knowledge/providers/store/
class IKnowledgeStore(ABC):
    """Contract for persisting and searching knowledge records.

    Inserts are independent: there is no transactional batching and no
    idempotency key.  Re-running an ingestion (or retrying an insert that
    timed out after the store accepted it) writes duplicate records.  The
    ingestion pipeline can opt into a document-level content-hash check
    through :meth:`has_content_hash`, but per-record deduplication is not
    provided.
    """

    @abstractmethod
    async def insert(self, record: KnowledgeRecord) -> str:
        """Insert one record and return the identifier assigned by the store.

        Raises
        ------
        javari_knowledge.utils.errors.TransientServiceError
            The store was unreachable, timed out or returned 429/5xx.
        javari_knowledge.utils.errors.PermanentServiceError
            The store rejected the record (schema or permission error).
        """

    @abstractmethod
    async def has_content_hash(self, content_hash: str) -> bool:
        """Return ``True`` if any stored record carries *content_hash*."""

    @abstractmethod
    async def search(
        self,
        embedding: list[float],
        match_threshold: float = 0.7,
        match_count: int = 10,
    ) -> list[SearchHit]:
        """Return up to *match_count* records with similarity >= *match_threshold*.

        Results are ordered by similarity, highest first.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier used in logs and error prefixes."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is configured."""

    async def aclose(self) -> None:
        """Release network resources.  The default implementation does nothing."""
