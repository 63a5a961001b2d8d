"""Supabase knowledge store adapter.

Talks to the Supabase PostgREST API over ``httpx``: one ``POST`` per record
into the knowledge table, a filtered ``GET`` for the content-hash lookup,
and the ``search_knowledge`` RPC for similarity search.  No Supabase SDK
is involved; the REST surface is small and stable.

Failure classification:

* timeouts, connection errors, 408, 429 and 5xx -> TransientServiceError
* any other 4xx -> PermanentServiceError, with the response body verbatim
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from javari_knowledge.config.settings import Settings
from javari_knowledge.interfaces.knowledge_store import IKnowledgeStore
from javari_knowledge.models.knowledge import KnowledgeRecord, SearchHit
from javari_knowledge.utils.errors import (
    ConfigurationError,
    PermanentServiceError,
    TransientServiceError,
)

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 30.0
_TRANSIENT_STATUS = frozenset({408, 429})


class SupabaseKnowledgeStore(IKnowledgeStore):
    """Knowledge store backed by a Supabase table and RPC function.

    Parameters
    ----------
    settings:
        Supplies ``supabase_url``, ``supabase_service_role_key``,
        ``knowledge_table`` and ``search_function``.
    http_client:
        Optional injected ``httpx.AsyncClient`` (tests pass one built on
        ``httpx.MockTransport``).  When omitted the store creates and owns
        its own client.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise ConfigurationError(
                message="SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set",
                provider_name="supabase",
            )
        self._base_url = settings.supabase_url.rstrip("/")
        self._table = settings.knowledge_table
        self._search_function = settings.search_function
        self._headers = {
            "apikey": settings.supabase_service_role_key,
            "Authorization": f"Bearer {settings.supabase_service_role_key}",
            "Content-Type": "application/json",
        }
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(_DEFAULT_TIMEOUT))

    # ------------------------------------------------------------------
    # IKnowledgeStore implementation
    # ------------------------------------------------------------------

    async def insert(self, record: KnowledgeRecord) -> str:
        response = await self._request(
            "POST",
            f"/rest/v1/{self._table}",
            json=record.to_row(),
            headers={"Prefer": "return=representation"},
        )
        rows = self._json(response)
        if isinstance(rows, list):
            row = rows[0] if rows else {}
        else:
            row = rows or {}
        record_id = row.get("id") if isinstance(row, dict) else None
        if record_id is None:
            raise PermanentServiceError(
                message=f"Insert returned no id: {response.text}",
                provider_name=self.get_provider_name(),
            )
        logger.debug(
            "knowledge_record_inserted",
            record_id=str(record_id),
            source=record.source,
            chunk_index=record.chunk_index,
        )
        return str(record_id)

    async def has_content_hash(self, content_hash: str) -> bool:
        response = await self._request(
            "GET",
            f"/rest/v1/{self._table}",
            params={"content_hash": f"eq.{content_hash}", "select": "id", "limit": "1"},
        )
        rows = self._json(response)
        return bool(rows)

    async def search(
        self,
        embedding: list[float],
        match_threshold: float = 0.7,
        match_count: int = 10,
    ) -> list[SearchHit]:
        response = await self._request(
            "POST",
            f"/rest/v1/rpc/{self._search_function}",
            json={
                "query_embedding": embedding,
                "match_threshold": match_threshold,
                "match_count": match_count,
            },
        )
        rows = self._json(response) or []
        hits = [self._to_hit(row) for row in rows]
        hits.sort(key=lambda h: h.similarity, reverse=True)
        return hits[:match_count]

    def get_provider_name(self) -> str:
        return "supabase"

    def is_available(self) -> bool:
        return True

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = {**self._headers, **kwargs.pop("headers", {})}
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException as exc:
            raise TransientServiceError(
                message=f"Timeout calling {method} {path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise TransientServiceError(
                message=f"HTTP error calling {method} {path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        status = response.status_code
        if status < 400:
            return response
        message = f"HTTP {status} from {method} {path}: {response.text}"
        if status >= 500 or status in _TRANSIENT_STATUS:
            raise TransientServiceError(message=message, provider_name=self.get_provider_name())
        raise PermanentServiceError(message=message, provider_name=self.get_provider_name())

    def _json(self, response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise PermanentServiceError(
                message=f"Invalid JSON from store: {response.text}",
                provider_name=self.get_provider_name(),
            ) from exc

    @staticmethod
    def _to_hit(row: dict[str, Any]) -> SearchHit:
        metadata = row.get("metadata") or {}
        similarity = float(row.get("similarity") or 0.0)
        return SearchHit(
            record_id=str(row.get("id", "")),
            content=row.get("content") or "",
            source=row.get("source") or metadata.get("source", ""),
            category=row.get("category") or metadata.get("category") or "unknown",
            section=row.get("section_title") or "",
            similarity=min(max(similarity, 0.0), 1.0),
        )
