"""Explicit configuration passed into the ingestion pipeline entry point."""

from __future__ import annotations

import pydantic
from pydantic import BaseModel, ConfigDict, Field, model_validator

from javari_knowledge.config.settings import Settings
from javari_knowledge.utils.errors import ConfigurationError
from javari_knowledge.utils.retry import RetryPolicy


class IngestionConfig(BaseModel):
    """Chunking, embedding and concurrency settings for one ingestion call.

    Built once from :class:`Settings` (or constructed directly in tests) and
    handed to :class:`~javari_knowledge.services.ingestion.IngestionService`.
    Nothing in the pipeline reads module-level constants.
    """

    model_config = ConfigDict(frozen=True)

    chunk_size: int = Field(default=1000, gt=0, description="Target chunk size in tokens.")
    chunk_overlap: int = Field(default=200, ge=0, description="Overlap between chunks in tokens.")
    chars_per_token: int = Field(default=4, gt=0)
    embedding_model: str = "text-embedding-ada-002"
    max_concurrency: int = Field(default=4, ge=1, description="Embedding calls in flight at once.")
    call_timeout: float = Field(default=30.0, gt=0.0, description="Seconds per external call.")
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    skip_duplicate_documents: bool = False
    min_document_chars: int = Field(default=1, ge=1)

    @model_validator(mode="after")
    def _overlap_below_chunk_size(self) -> IngestionConfig:
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be < chunk_size ({self.chunk_size})"
            )
        return self

    @classmethod
    def from_settings(cls, settings: Settings) -> IngestionConfig:
        """Build the pipeline config from *settings*.

        Raises
        ------
        ConfigurationError
            The chunking, concurrency or retry settings are out of range.
        """
        try:
            return cls(
                chunk_size=settings.chunk_size,
                chunk_overlap=settings.chunk_overlap,
                chars_per_token=settings.chars_per_token,
                embedding_model=settings.embedding_model,
                max_concurrency=settings.max_concurrency,
                call_timeout=settings.call_timeout,
                retry=RetryPolicy(
                    max_attempts=settings.retry_max_attempts,
                    base_delay=settings.retry_base_delay,
                    multiplier=settings.retry_multiplier,
                    max_delay=settings.retry_max_delay,
                ),
                skip_duplicate_documents=settings.skip_duplicate_documents,
                min_document_chars=settings.min_document_chars,
            )
        except pydantic.ValidationError as exc:
            raise ConfigurationError(
                message=f"Invalid ingestion settings: {exc}",
                provider_name="settings",
            ) from exc
