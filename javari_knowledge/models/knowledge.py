"""Data models for the Javari knowledge base.

Defines Pydantic v2 models for the documents, chunks, and records that
flow through the ingestion pipeline, plus the result and search-hit
shapes returned to callers.  All public models are frozen; the only
mutable type is :class:`IngestionProgress`, which the pipeline updates
in place while a single ingestion call runs.

Lifecycle of the data:

    1. A :class:`Document` is built by the loader from raw text plus
       ``source`` and ``category`` metadata.  It exists only for the
       duration of one ingestion call.
    2. The chunker turns it into overlapping :class:`Chunk` windows.
    3. Each chunk is embedded and combined with the document metadata
       into a :class:`KnowledgeRecord`, which is inserted into the
       managed store exactly once.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field, replace

from pydantic import BaseModel, ConfigDict, Field

# An embedding is a fixed-length ordered sequence of floats.
EmbeddingVector = list[float]


def content_hash(text: str) -> str:
    """Return the MD5 hex digest used for document change detection."""
    return hashlib.md5(text.encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Document: raw input to one ingestion call.
# ---------------------------------------------------------------------------
class Document(BaseModel):
    """Raw document content plus the metadata copied onto every record."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(description="Full document text.")
    source: str = Field(description="Identifier of where the text came from (path, URL, name).")
    category: str = Field(description="Category label, e.g. 'manual', 'webpage', 'document'.")
    title: str | None = Field(default=None, description="Optional human-readable title.")

    @property
    def content_hash(self) -> str:
        return content_hash(self.text)


# ---------------------------------------------------------------------------
# Chunk: one overlapping window over a document's text.
# ---------------------------------------------------------------------------
class Chunk(BaseModel):
    """A contiguous slice of a document, sized for the embedding model.

    Token positions are approximate (see
    :class:`~javari_knowledge.services.ingestion.chunker.TextChunker`).
    ``overlap_tokens`` is the number of tokens this chunk shares with the
    tail of the previous chunk; it is 0 for the first chunk.
    """

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0, description="Position of the chunk within its document.")
    text: str = Field(description="The chunk's textual content, overlap included.")
    start_token: int = Field(ge=0)
    end_token: int = Field(ge=0)
    overlap_tokens: int = Field(default=0, ge=0)
    overlap_chars: int = Field(default=0, ge=0)
    start_char: int = Field(ge=0)
    end_char: int = Field(ge=0)
    section: str = Field(default="", description="Nearest preceding heading, if any.")

    @property
    def token_count(self) -> int:
        return self.end_token - self.start_token

    @property
    def character_count(self) -> int:
        return len(self.text)

    @property
    def novel_text(self) -> str:
        """The part of the chunk not shared with the previous chunk."""
        return self.text[self.overlap_chars :]


# ---------------------------------------------------------------------------
# KnowledgeRecord: the persisted unit.
# ---------------------------------------------------------------------------
class KnowledgeRecord(BaseModel):
    """Chunk text, its embedding, and source metadata, as written to the store."""

    model_config = ConfigDict(frozen=True)

    chunk_text: str
    embedding: EmbeddingVector
    source: str
    category: str
    chunk_index: int = Field(ge=0)
    section: str = ""
    token_count: int = Field(default=0, ge=0)
    character_count: int = Field(default=0, ge=0)
    content_hash: str = Field(description="MD5 of the parent document's text.")
    embedding_model: str = ""

    @classmethod
    def from_chunk(
        cls,
        chunk: Chunk,
        embedding: EmbeddingVector,
        document: Document,
        embedding_model: str,
    ) -> KnowledgeRecord:
        return cls(
            chunk_text=chunk.text,
            embedding=embedding,
            source=document.source,
            category=document.category,
            chunk_index=chunk.index,
            section=chunk.section,
            token_count=chunk.token_count,
            character_count=chunk.character_count,
            content_hash=document.content_hash,
            embedding_model=embedding_model,
        )

    def to_row(self) -> dict[str, object]:
        """Serialise to the column layout of the ``javari_knowledge_chunks`` table."""
        return {
            "content": self.chunk_text,
            "embedding": self.embedding,
            "source": self.source,
            "category": self.category,
            "chunk_index": self.chunk_index,
            "section_title": self.section,
            "token_count": self.token_count,
            "character_count": self.character_count,
            "content_hash": self.content_hash,
            "embedding_model": self.embedding_model,
        }


# ---------------------------------------------------------------------------
# Progress and results
# ---------------------------------------------------------------------------
@dataclass
class IngestionProgress:
    """Running counters for one ingestion call.

    Mutable on purpose: the pipeline updates it after every chunk, and a
    copy is attached to any error that aborts the run.
    """

    source: str = ""
    chunks_created: int = 0
    chunks_embedded: int = 0
    records_written: int = 0
    record_ids: list[str] = field(default_factory=list)
    failed_chunk_index: int | None = None

    def snapshot(self) -> IngestionProgress:
        return replace(self, record_ids=list(self.record_ids))

    def to_dict(self) -> dict[str, object]:
        return {
            "source": self.source,
            "chunks_created": self.chunks_created,
            "chunks_embedded": self.chunks_embedded,
            "records_written": self.records_written,
            "record_ids": list(self.record_ids),
            "failed_chunk_index": self.failed_chunk_index,
        }


class IngestionResult(BaseModel):
    """Summary of a completed ingestion call."""

    model_config = ConfigDict(frozen=True)

    source: str
    category: str
    chunks_created: int = Field(default=0, ge=0)
    records_written: int = Field(default=0, ge=0)
    record_ids: list[str] = Field(default_factory=list)
    total_tokens: int = Field(default=0, ge=0)
    total_characters: int = Field(default=0, ge=0)
    content_hash: str = ""
    skipped_duplicate: bool = Field(
        default=False,
        description="True when the document's content hash was already stored.",
    )
    ingestion_time: float = Field(default=0.0, ge=0.0, description="Wall-clock seconds.")


class SearchHit(BaseModel):
    """A stored knowledge record returned by a similarity search."""

    model_config = ConfigDict(frozen=True)

    record_id: str
    content: str
    source: str = ""
    category: str = "unknown"
    section: str = ""
    similarity: float = Field(default=0.0, ge=0.0, le=1.0)
