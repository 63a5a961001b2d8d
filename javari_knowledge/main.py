"""FastAPI application entry point for the Javari knowledge service.

Builds the embedding provider, knowledge store and the two services on
startup, stores them on ``app.state`` for the route dependencies, and
closes the store's HTTP client on shutdown.

Run locally with::

    python -m javari_knowledge.main
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from javari_knowledge.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from javari_knowledge.api.routes import router as api_router
from javari_knowledge.config.ingestion import IngestionConfig
from javari_knowledge.config.settings import Settings
from javari_knowledge.interfaces.embedding_provider import IEmbeddingProvider
from javari_knowledge.interfaces.knowledge_store import IKnowledgeStore
from javari_knowledge.providers.embedding.openai_embedding_provider import (
    OpenAIEmbeddingProvider,
)
from javari_knowledge.providers.store.memory_store import InMemoryKnowledgeStore
from javari_knowledge.providers.store.supabase_store import SupabaseKnowledgeStore
from javari_knowledge.services.ingestion.ingestion_service import IngestionService
from javari_knowledge.services.search_service import KnowledgeSearchService
from javari_knowledge.utils.logging import configure_logging, get_logger

_VERSION = "0.1.0"

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Component factories
# ---------------------------------------------------------------------------


def build_knowledge_store(app_settings: Settings, *, dry_run: bool = False) -> IKnowledgeStore:
    """Return the Supabase store, or the in-memory store for dry runs.

    Falls back to the in-memory store (with a warning) when Supabase
    credentials are missing, so the API still starts in development.
    """
    if dry_run:
        return InMemoryKnowledgeStore()
    if app_settings.supabase_url and app_settings.supabase_service_role_key:
        return SupabaseKnowledgeStore(settings=app_settings)
    _logger.warning(
        "knowledge_store_fallback",
        store="memory",
        reason="SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not set",
    )
    return InMemoryKnowledgeStore()


def build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    return OpenAIEmbeddingProvider(settings=app_settings)


def build_components(app_settings: Settings, *, dry_run: bool = False) -> dict[str, Any]:
    """Construct every service with its dependencies injected."""
    embedding_provider = build_embedding_provider(app_settings)
    store = build_knowledge_store(app_settings, dry_run=dry_run)
    config = IngestionConfig.from_settings(app_settings)
    return {
        "settings": app_settings,
        "embedding_provider": embedding_provider,
        "knowledge_store": store,
        "ingestion_config": config,
        "ingestion_service": IngestionService(embedding_provider, store, config),
        "search_service": KnowledgeSearchService(embedding_provider, store),
    }


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(
    custom_settings: Settings | None = None,
    components: dict[str, Any] | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    Parameters
    ----------
    custom_settings:
        Application settings; read from the environment when omitted.
    components:
        Pre-built services (tests pass fakes).  Built from settings when
        omitted.
    """
    app_settings = custom_settings or Settings()

    @asynccontextmanager
    async def _lifespan(application: FastAPI):  # noqa: ANN202
        built = components or build_components(app_settings)
        for key, value in built.items():
            setattr(application.state, key, value)

        store: IKnowledgeStore = built["knowledge_store"]
        _logger.info(
            "app_startup",
            version=_VERSION,
            environment=app_settings.app_env,
            store=store.get_provider_name(),
            backends=app_settings.get_configured_backends(),
        )

        yield

        await store.aclose()
        _logger.info("app_shutdown", message="Knowledge store closed")

    application = FastAPI(
        title="Javari Knowledge API",
        version=_VERSION,
        description=(
            "Ingest documents into the Javari knowledge base (chunk, embed, store) "
            "and run semantic search over the stored records."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.include_router(api_router)
    return application


def main() -> None:
    settings = Settings()
    configure_logging(
        log_level=settings.log_level,
        json_output=(settings.app_env == "production"),
    )
    uvicorn.run(
        create_app(settings),
        host=settings.app_host,
        port=settings.app_port,
    )


if __name__ == "__main__":
    main()
