"""Pydantic request/response schemas for the knowledge API.

Request schemas end with "Request", response schemas end with
"Response".  FastAPI validates incoming JSON against them (invalid bodies
get a 422) and renders the OpenAPI docs from them.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class IngestRequest(BaseModel):
    """Raw document text plus metadata to ingest."""

    text: str = Field(..., description="Full document text.")
    source: str = Field(..., min_length=1, description="Where the text came from.")
    category: str = Field(default="manual", min_length=1)
    title: str | None = None


class IngestResponse(BaseModel):
    """Outcome of one ingestion call."""

    source: str
    category: str
    chunks_created: int
    records_written: int
    record_ids: list[str] = Field(default_factory=list)
    total_tokens: int = 0
    total_characters: int = 0
    content_hash: str = ""
    skipped_duplicate: bool = False
    ingestion_time: float = 0.0


class SearchRequest(BaseModel):
    """Natural-language query against the knowledge base."""

    query: str = Field(..., min_length=1, max_length=2000)
    match_threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    match_count: int | None = Field(default=None, ge=1, le=100)


class SearchHitResponse(BaseModel):
    record_id: str
    content: str
    source: str = ""
    category: str = "unknown"
    section: str = ""
    similarity: float


class SearchResponse(BaseModel):
    query: str
    total: int
    results: list[SearchHitResponse] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body.

    ``kind`` is ``"transient"`` or ``"permanent"`` for service errors.
    ``progress`` is present when an ingestion stopped part-way through.
    """

    error: str
    detail: str | None = None
    kind: str | None = None
    progress: dict[str, Any] | None = None
