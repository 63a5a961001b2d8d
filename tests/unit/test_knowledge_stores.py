"""Unit tests for the Supabase (httpx) and in-memory knowledge stores."""

from __future__ import annotations

import json

import httpx
import pytest

from javari_knowledge.models.knowledge import KnowledgeRecord
from javari_knowledge.providers.store.memory_store import InMemoryKnowledgeStore, cosine_similarity
from javari_knowledge.providers.store.supabase_store import SupabaseKnowledgeStore
from javari_knowledge.utils.errors import (
    ConfigurationError,
    PermanentServiceError,
    TransientServiceError,
)
from tests.conftest import make_settings


def _record(text: str = "Javari helps with credits.", embedding=None) -> KnowledgeRecord:  # noqa: ANN001
    return KnowledgeRecord(
        chunk_text=text,
        embedding=embedding or [1.0, 0.0, 0.0],
        source="faq.md",
        category="manual",
        chunk_index=0,
        section="Pricing",
        token_count=7,
        character_count=len(text),
        content_hash="abc123",
        embedding_model="text-embedding-ada-002",
    )


def _store(handler) -> SupabaseKnowledgeStore:  # noqa: ANN001
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SupabaseKnowledgeStore(make_settings(), http_client=client)


# ======================================================================
# SupabaseKnowledgeStore
# ======================================================================


class TestSupabaseInsert:
    @pytest.mark.asyncio
    async def test_posts_row_and_returns_id(self) -> None:
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json=[{"id": 42}])

        store = _store(handler)
        record_id = await store.insert(_record())

        assert record_id == "42"
        assert seen["method"] == "POST"
        assert seen["url"] == "https://project.supabase.co/rest/v1/javari_knowledge_chunks"
        assert seen["headers"]["apikey"] == "service-role-test"
        assert seen["headers"]["authorization"] == "Bearer service-role-test"
        assert seen["headers"]["prefer"] == "return=representation"
        assert seen["body"]["content"] == "Javari helps with credits."
        assert seen["body"]["section_title"] == "Pricing"
        assert seen["body"]["chunk_index"] == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [429, 500, 502, 503])
    async def test_retryable_status_is_transient(self, status: int) -> None:
        store = _store(lambda request: httpx.Response(status, text="try later"))

        with pytest.raises(TransientServiceError, match="try later"):
            await store.insert(_record())

    @pytest.mark.asyncio
    async def test_client_error_is_permanent_with_body_verbatim(self) -> None:
        body = '{"code":"PGRST204","message":"Could not find the \'embedding\' column"}'
        store = _store(lambda request: httpx.Response(400, text=body))

        with pytest.raises(PermanentServiceError) as exc_info:
            await store.insert(_record())

        assert body in exc_info.value.message
        assert exc_info.value.provider_name == "supabase"

    @pytest.mark.asyncio
    async def test_connection_error_is_transient(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransientServiceError):
            await _store(handler).insert(_record())

    @pytest.mark.asyncio
    async def test_timeout_is_transient(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TransientServiceError, match="Timeout"):
            await _store(handler).insert(_record())

    @pytest.mark.asyncio
    async def test_missing_id_is_permanent(self) -> None:
        store = _store(lambda request: httpx.Response(201, json=[]))
        with pytest.raises(PermanentServiceError, match="no id"):
            await store.insert(_record())


class TestSupabaseLookupAndSearch:
    @pytest.mark.asyncio
    async def test_has_content_hash_queries_by_hash(self) -> None:
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[{"id": 1}])

        assert await _store(handler).has_content_hash("abc123") is True
        assert seen["params"] == {"content_hash": "eq.abc123", "select": "id", "limit": "1"}

    @pytest.mark.asyncio
    async def test_has_content_hash_false_when_empty(self) -> None:
        store = _store(lambda request: httpx.Response(200, json=[]))
        assert await store.has_content_hash("missing") is False

    @pytest.mark.asyncio
    async def test_search_calls_rpc_and_maps_rows(self) -> None:
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json=[
                    {"id": 2, "content": "b", "similarity": 0.75, "source": "s", "category": None},
                    {"id": 1, "content": "a", "similarity": 0.91, "metadata": {"category": "manual"}},
                ],
            )

        hits = await _store(handler).search([0.1, 0.2], match_threshold=0.7, match_count=5)

        assert seen["url"].endswith("/rest/v1/rpc/search_knowledge")
        assert seen["body"] == {
            "query_embedding": [0.1, 0.2],
            "match_threshold": 0.7,
            "match_count": 5,
        }
        assert [h.record_id for h in hits] == ["1", "2"]
        assert hits[0].category == "manual"
        assert hits[1].category == "unknown"

    @pytest.mark.asyncio
    async def test_search_tolerates_null_columns(self) -> None:
        store = _store(
            lambda request: httpx.Response(
                200,
                json=[{"id": 7, "content": None, "similarity": 0.8, "section_title": None}],
            )
        )

        hits = await store.search([0.1, 0.2])

        assert len(hits) == 1
        assert hits[0].content == ""
        assert hits[0].section == ""

    def test_missing_credentials_raise_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            SupabaseKnowledgeStore(make_settings(supabase_url=""))

    @pytest.mark.asyncio
    async def test_aclose_leaves_injected_client_open(self) -> None:
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        store = SupabaseKnowledgeStore(make_settings(), http_client=client)
        await store.aclose()
        assert client.is_closed is False
        await client.aclose()


# ======================================================================
# InMemoryKnowledgeStore
# ======================================================================


class TestInMemoryStore:
    @pytest.mark.asyncio
    async def test_sequential_ids(self) -> None:
        store = InMemoryKnowledgeStore()
        assert await store.insert(_record()) == "1"
        assert await store.insert(_record()) == "2"
        assert len(store.records) == 2

    @pytest.mark.asyncio
    async def test_has_content_hash(self) -> None:
        store = InMemoryKnowledgeStore()
        await store.insert(_record())
        assert await store.has_content_hash("abc123") is True
        assert await store.has_content_hash("other") is False

    @pytest.mark.asyncio
    async def test_search_orders_and_filters_by_threshold(self) -> None:
        store = InMemoryKnowledgeStore()
        await store.insert(_record("exact", [1.0, 0.0, 0.0]))
        await store.insert(_record("close", [0.9, 0.1, 0.0]))
        await store.insert(_record("orthogonal", [0.0, 1.0, 0.0]))

        hits = await store.search([1.0, 0.0, 0.0], match_threshold=0.7, match_count=10)

        assert [h.content for h in hits] == ["exact", "close"]
        assert hits[0].similarity == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_search_respects_match_count(self) -> None:
        store = InMemoryKnowledgeStore()
        for _ in range(5):
            await store.insert(_record())
        hits = await store.search([1.0, 0.0, 0.0], match_threshold=0.0, match_count=3)
        assert len(hits) == 3

    def test_cosine_similarity_zero_vector(self) -> None:
        assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0
