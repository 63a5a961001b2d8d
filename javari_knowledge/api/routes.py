"""FastAPI routes for the knowledge service.

# Endpoint                      Method  Description
# ──────────────────────────────────────────────────────────────
# /api/v1/knowledge/ingest      POST    Chunk, embed and store a document
# /api/v1/knowledge/search      POST    Semantic search over stored records
# /api/v1/health                GET     Health check + backend status

Services are resolved from ``app.state`` (populated by main.py's lifespan)
through ``Depends`` helpers and ``Annotated`` aliases.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from javari_knowledge.api.schemas import (
    HealthResponse,
    IngestRequest,
    IngestResponse,
    SearchHitResponse,
    SearchRequest,
    SearchResponse,
)
from javari_knowledge.config.settings import Settings
from javari_knowledge.services.ingestion.ingestion_service import IngestionService
from javari_knowledge.services.ingestion.loader import DocumentLoader
from javari_knowledge.services.search_service import KnowledgeSearchService

router = APIRouter(prefix="/api/v1")

_VERSION = "0.1.0"


def _get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


def _get_search_service(request: Request) -> KnowledgeSearchService:
    return request.app.state.search_service


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


IngestionDep = Annotated[IngestionService, Depends(_get_ingestion_service)]
SearchDep = Annotated[KnowledgeSearchService, Depends(_get_search_service)]
SettingsDep = Annotated[Settings, Depends(_get_settings)]


@router.post(
    "/knowledge/ingest",
    response_model=IngestResponse,
    summary="Ingest a document into the knowledge base",
)
async def ingest_document(body: IngestRequest, service: IngestionDep) -> IngestResponse:
    document = DocumentLoader.from_text(
        body.text,
        source=body.source,
        category=body.category,
        title=body.title,
    )
    result = await service.ingest(document)
    return IngestResponse(**result.model_dump())


@router.post(
    "/knowledge/search",
    response_model=SearchResponse,
    summary="Semantic search over stored knowledge records",
)
async def search_knowledge(
    body: SearchRequest,
    service: SearchDep,
    settings: SettingsDep,
) -> SearchResponse:
    threshold = (
        body.match_threshold
        if body.match_threshold is not None
        else settings.search_match_threshold
    )
    count = body.match_count if body.match_count is not None else settings.search_match_count
    hits = await service.search(body.query, match_threshold=threshold, match_count=count)
    return SearchResponse(
        query=body.query,
        total=len(hits),
        results=[SearchHitResponse(**hit.model_dump()) for hit in hits],
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and backend availability."""
    providers: dict[str, bool] = {}
    embedding = getattr(request.app.state, "embedding_provider", None)
    store = getattr(request.app.state, "knowledge_store", None)
    providers["embedding"] = bool(embedding is not None and embedding.is_available())
    providers["store"] = bool(store is not None and store.is_available())

    status = "healthy" if all(providers.values()) else "degraded"
    return HealthResponse(status=status, version=_VERSION, providers=providers)
