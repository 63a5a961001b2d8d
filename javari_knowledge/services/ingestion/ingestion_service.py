"""Orchestrator for the document ingestion pipeline.

Pipeline stages: **validate -> chunk -> embed -> store**.

The :class:`IngestionService` coordinates three collaborators (chunker,
embedding provider, knowledge store) without any of them knowing about
each other.  Both external collaborators are injected behind interfaces,
so tests swap in scripted fakes and the CLI swaps in the in-memory store
for dry runs.

Embedding calls run through a bounded, ordered window: up to
``max_concurrency`` chunks are being embedded at once, but records are
written strictly in chunk order as soon as each prefix is ready.  The
first error stops the run, cancels whatever is still in flight and
propagates with an :class:`IngestionProgress` snapshot attached, so a
failure at chunk *i* always means chunks ``0..i-1`` (and only those)
were written.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import time
from contextlib import aclosing
from typing import TYPE_CHECKING, Awaitable, Callable, Sequence, TypeVar

import structlog

from javari_knowledge.config.ingestion import IngestionConfig
from javari_knowledge.models.knowledge import (
    Chunk,
    Document,
    IngestionProgress,
    IngestionResult,
    KnowledgeRecord,
)
from javari_knowledge.services.ingestion.chunker import TextChunker
from javari_knowledge.utils.concurrency import ordered_bounded_map, throttled_gather
from javari_knowledge.utils.errors import (
    KnowledgeError,
    TransientServiceError,
    ValidationError,
)
from javari_knowledge.utils.retry import call_with_retry

if TYPE_CHECKING:
    from javari_knowledge.interfaces.embedding_provider import IEmbeddingProvider
    from javari_knowledge.interfaces.knowledge_store import IKnowledgeStore
    from javari_knowledge.utils.cancellation import CancellationToken

logger = structlog.get_logger(logger_name=__name__)

_T = TypeVar("_T")

ProgressCallback = Callable[[IngestionProgress], object]


class IngestionService:
    """Runs documents through chunking, embedding and storage.

    Parameters
    ----------
    embedding_provider:
        Generates one embedding vector per chunk.
    store:
        Receives one :class:`KnowledgeRecord` per chunk.
    config:
        Default chunking, concurrency, timeout and retry settings.  A
        per-call ``config`` passed to :meth:`ingest` takes precedence.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        store: IKnowledgeStore,
        config: IngestionConfig | None = None,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._store = store
        self._config = config or IngestionConfig()

    @property
    def config(self) -> IngestionConfig:
        return self._config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(
        self,
        document: Document,
        *,
        config: IngestionConfig | None = None,
        cancel_token: CancellationToken | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> IngestionResult:
        """Chunk, embed and store *document*.

        Returns
        -------
        IngestionResult
            Counts and record ids for the completed run.

        Raises
        ------
        ValidationError
            The document is empty or lacks metadata.  Nothing was written.
        TransientServiceError, PermanentServiceError
            An embedding or store call failed.  ``error.progress`` holds
            how many chunks were embedded and written before the failure.
        IngestionCancelledError
            *cancel_token* fired.  ``error.progress`` is attached as above.
        """
        cfg = config or self._config
        self._validate(document, cfg)
        chunker = TextChunker(cfg.chunk_size, cfg.chunk_overlap, cfg.chars_per_token)

        start = time.monotonic()
        doc_hash = document.content_hash
        progress = IngestionProgress(source=document.source)
        log = logger.bind(source=document.source, category=document.category)

        try:
            if cfg.skip_duplicate_documents:
                lookup = functools.partial(self._store.has_content_hash, doc_hash)
                if await self._call(lookup, cfg, cancel_token, "store_lookup"):
                    log.info("ingestion_skipped_duplicate", content_hash=doc_hash)
                    return IngestionResult(
                        source=document.source,
                        category=document.category,
                        content_hash=doc_hash,
                        skipped_duplicate=True,
                        ingestion_time=round(time.monotonic() - start, 3),
                    )

            chunks = chunker.chunk(document.text)
            progress.chunks_created = len(chunks)
            log.info(
                "ingestion_started",
                chunks=progress.chunks_created,
                tokens=chunks.total_tokens,
                max_concurrency=cfg.max_concurrency,
            )

            model_name = self._embedding_provider.get_model_name()
            total_tokens = 0
            total_chars = 0

            async def _embed(chunk: Chunk) -> list[float]:
                call = functools.partial(self._embedding_provider.embed_single, chunk.text)
                return await self._call(call, cfg, cancel_token, "embed")

            async with aclosing(ordered_bounded_map(_embed, chunks, cfg.max_concurrency)) as embedded:
                async for chunk, embedding in embedded:
                    progress.chunks_embedded += 1
                    record = KnowledgeRecord.from_chunk(chunk, embedding, document, model_name)
                    insert = functools.partial(self._store.insert, record)
                    record_id = await self._call(insert, cfg, cancel_token, "store_insert")
                    progress.records_written += 1
                    progress.record_ids.append(record_id)
                    total_tokens += chunk.token_count
                    total_chars += chunk.character_count
                    if on_progress is not None:
                        await _maybe_await(on_progress(progress.snapshot()))
        except KnowledgeError as exc:
            progress.failed_chunk_index = progress.records_written
            snapshot = progress.snapshot()
            exc.attach_progress(snapshot)
            log.error(
                "ingestion_failed",
                error=str(exc),
                error_type=type(exc).__name__,
                **snapshot.to_dict(),
            )
            raise

        elapsed = round(time.monotonic() - start, 3)
        log.info(
            "ingestion_complete",
            chunks_created=progress.chunks_created,
            records_written=progress.records_written,
            time_s=elapsed,
        )
        return IngestionResult(
            source=document.source,
            category=document.category,
            chunks_created=progress.chunks_created,
            records_written=progress.records_written,
            record_ids=list(progress.record_ids),
            total_tokens=total_tokens,
            total_characters=total_chars,
            content_hash=doc_hash,
            ingestion_time=elapsed,
        )

    async def ingest_many(
        self,
        documents: Sequence[Document],
        *,
        max_parallel_documents: int = 2,
        config: IngestionConfig | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> list[IngestionResult | BaseException]:
        """Ingest several documents, at most *max_parallel_documents* at a time.

        One document failing does not stop the others; its slot in the
        returned list holds the exception instead of a result.
        """
        semaphore = asyncio.Semaphore(max(1, max_parallel_documents))
        coros = [self.ingest(doc, config=config, cancel_token=cancel_token) for doc in documents]
        results = await throttled_gather(coros, semaphore, return_exceptions=True)
        failed = sum(1 for r in results if isinstance(r, BaseException))
        logger.info("batch_ingestion_complete", documents=len(documents), failed=failed)
        return results

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate(document: Document, cfg: IngestionConfig) -> None:
        if not document.text or not document.text.strip():
            raise ValidationError("Document text is empty")
        if len(document.text.strip()) < cfg.min_document_chars:
            raise ValidationError(
                f"Document text is shorter than {cfg.min_document_chars} characters"
            )
        if not document.source or not document.source.strip():
            raise ValidationError("Document source is required")
        if not document.category or not document.category.strip():
            raise ValidationError("Document category is required")

    @staticmethod
    async def _call(
        operation: Callable[[], Awaitable[_T]],
        cfg: IngestionConfig,
        cancel_token: CancellationToken | None,
        description: str,
    ) -> _T:
        """Run one external call with cancellation check, timeout and retry."""

        async def _attempt() -> _T:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            try:
                return await asyncio.wait_for(operation(), timeout=cfg.call_timeout)
            except asyncio.TimeoutError as exc:
                raise TransientServiceError(
                    message=f"{description} timed out after {cfg.call_timeout}s",
                ) from exc

        return await call_with_retry(_attempt, cfg.retry, description=description)


async def _maybe_await(value: object) -> None:
    if inspect.isawaitable(value):
        await value
