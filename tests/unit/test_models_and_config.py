"""Unit tests for models, errors, Settings and IngestionConfig."""

from __future__ import annotations

import pydantic
import pytest

from javari_knowledge.config.ingestion import IngestionConfig
from javari_knowledge.models.knowledge import (
    Chunk,
    Document,
    IngestionProgress,
    KnowledgeRecord,
    SearchHit,
    content_hash,
)
from javari_knowledge.utils.errors import (
    ConfigurationError,
    KnowledgeError,
    PermanentServiceError,
    ServiceError,
    TransientServiceError,
)
from tests.conftest import make_settings


class TestModels:
    def test_document_hash_is_md5_of_text(self) -> None:
        doc = Document(text="hello", source="s", category="c")
        assert doc.content_hash == "5d41402abc4b2a76b9719d911017c592"
        assert content_hash("hello") == doc.content_hash

    def test_models_are_frozen(self) -> None:
        doc = Document(text="hello", source="s", category="c")
        with pytest.raises(pydantic.ValidationError):
            doc.text = "changed"  # type: ignore[misc]

    def test_record_row_layout(self) -> None:
        chunk = Chunk(
            index=3,
            text="abcdefgh",
            start_token=10,
            end_token=12,
            overlap_tokens=1,
            overlap_chars=4,
            start_char=40,
            end_char=48,
            section="Intro",
        )
        doc = Document(text="full text", source="faq", category="manual")
        record = KnowledgeRecord.from_chunk(chunk, [0.5, 0.5], doc, "text-embedding-ada-002")

        assert chunk.novel_text == "efgh"
        assert record.to_row() == {
            "content": "abcdefgh",
            "embedding": [0.5, 0.5],
            "source": "faq",
            "category": "manual",
            "chunk_index": 3,
            "section_title": "Intro",
            "token_count": 2,
            "character_count": 8,
            "content_hash": doc.content_hash,
            "embedding_model": "text-embedding-ada-002",
        }

    def test_progress_snapshot_is_independent(self) -> None:
        progress = IngestionProgress(source="s", record_ids=["1"])
        snap = progress.snapshot()
        progress.record_ids.append("2")
        assert snap.record_ids == ["1"]
        assert snap.to_dict()["record_ids"] == ["1"]

    def test_search_hit_similarity_bounds(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            SearchHit(record_id="1", content="x", similarity=1.5)


class TestErrors:
    def test_provider_prefix_in_str(self) -> None:
        exc = TransientServiceError("HTTP 503", provider_name="supabase")
        assert str(exc) == "[supabase] HTTP 503"
        assert exc.message == "HTTP 503"

    def test_kinds(self) -> None:
        assert TransientServiceError().kind == "transient"
        assert PermanentServiceError().kind == "permanent"
        assert issubclass(TransientServiceError, ServiceError)
        assert issubclass(ServiceError, KnowledgeError)

    def test_attach_progress(self) -> None:
        exc = PermanentServiceError("bad")
        assert exc.progress is None
        exc.attach_progress(IngestionProgress(records_written=2))
        assert exc.progress.records_written == 2


class TestConfig:
    def test_settings_defaults(self) -> None:
        settings = make_settings()
        assert settings.chunk_size == 1000
        assert settings.chunk_overlap == 200
        assert settings.embedding_model == "text-embedding-ada-002"
        assert settings.knowledge_table == "javari_knowledge_chunks"
        assert settings.retry_max_attempts == 1

    def test_settings_read_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHUNK_SIZE", "512")
        monkeypatch.setenv("MAX_CONCURRENCY", "8")
        settings = make_settings()
        assert settings.chunk_size == 512
        assert settings.max_concurrency == 8

    def test_configured_backends(self) -> None:
        assert make_settings().get_configured_backends() == ["openai", "supabase"]
        assert make_settings(openai_api_key="", supabase_url="").get_configured_backends() == []

    def test_ingestion_config_from_settings(self) -> None:
        settings = make_settings(chunk_size=300, chunk_overlap=50, retry_max_attempts=3)
        config = IngestionConfig.from_settings(settings)
        assert (config.chunk_size, config.chunk_overlap) == (300, 50)
        assert config.retry.max_attempts == 3

    def test_overlap_must_be_below_chunk_size(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            IngestionConfig(chunk_size=100, chunk_overlap=100)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"chunk_size": 1000, "chunk_overlap": 1000},
            {"max_concurrency": 0},
            {"retry_max_attempts": 0},
        ],
    )
    def test_bad_settings_raise_configuration_error(self, overrides: dict) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            IngestionConfig.from_settings(make_settings(**overrides))
        assert exc_info.value.provider_name == "settings"
        assert str(exc_info.value).startswith("[settings] Invalid ingestion settings")
