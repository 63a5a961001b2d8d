"""Shared pytest fixtures for the Javari knowledge test suite."""

from __future__ import annotations

import asyncio
import hashlib

import pytest
import structlog

from javari_knowledge.config.ingestion import IngestionConfig
from javari_knowledge.config.settings import Settings
from javari_knowledge.interfaces.embedding_provider import IEmbeddingProvider
from javari_knowledge.models.knowledge import Document
from javari_knowledge.providers.store.memory_store import InMemoryKnowledgeStore

_DIMENSION = 8


def fake_embedding(text: str) -> list[float]:
    """Deterministic non-zero vector derived from the text's digest."""
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    return [(b + 1) / 256 for b in digest[:_DIMENSION]]


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Scriptable embedding provider.

    Parameters
    ----------
    failures:
        Maps chunk text to an exception.  A single exception is raised on
        every call for that text; a list is consumed one call at a time,
        after which the call succeeds.
    delays:
        Maps chunk text to seconds slept before answering.
    default_delay:
        Seconds slept for texts without an explicit delay.
    """

    def __init__(
        self,
        failures: dict[str, BaseException | list[BaseException]] | None = None,
        delays: dict[str, float] | None = None,
        default_delay: float = 0.0,
    ) -> None:
        self.failures = failures or {}
        self.delays = delays or {}
        self.default_delay = default_delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def embed_single(self, text: str) -> list[float]:
        self.calls.append(text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.delays.get(text, self.default_delay)
            if delay:
                await asyncio.sleep(delay)
            else:
                await asyncio.sleep(0)
            failure = self.failures.get(text)
            if isinstance(failure, list):
                if failure:
                    raise failure.pop(0)
            elif failure is not None:
                raise failure
            return fake_embedding(text)
        finally:
            self.in_flight -= 1

    def get_model_name(self) -> str:
        return "fake-embedding"

    def get_dimension(self) -> int:
        return _DIMENSION

    def get_provider_name(self) -> str:
        return "fake_embedding"

    def is_available(self) -> bool:
        return True


def make_settings(**overrides) -> Settings:
    """Build a Settings instance with test defaults, ignoring any .env file."""
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "supabase_url": "https://project.supabase.co",
        "supabase_service_role_key": "service-role-test",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


@pytest.fixture(autouse=True, scope="session")
def _uncached_loggers() -> None:
    """Resolve sys.stdout on every log call so capsys swaps never leave stale streams."""
    structlog.configure(cache_logger_on_first_use=False)


def five_chunk_text() -> str:
    """167 characters -> 42 tokens -> five chunks at chunk_size=10, overlap=2."""
    return " ".join(f"word{i:03d}" for i in range(21))


@pytest.fixture
def small_config() -> IngestionConfig:
    return IngestionConfig(chunk_size=10, chunk_overlap=2, max_concurrency=4, call_timeout=2.0)


@pytest.fixture
def embedding_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def memory_store() -> InMemoryKnowledgeStore:
    return InMemoryKnowledgeStore()


@pytest.fixture
def sample_document() -> Document:
    return Document(text=five_chunk_text(), source="faq.md", category="manual")


@pytest.fixture
def sample_markdown() -> str:
    return (
        "# Getting Started\n\n"
        "Javari is the assistant built into the CR AudioViz AI site. "
        "It answers questions about tools, credits and subscriptions.\n\n"
        "Pricing:\n\n"
        "Credits are deducted per generation. Unused credits roll over "
        "for paid plans and expire for free accounts.\n\n"
        "## Support\n\n"
        "Open a ticket from the dashboard and a human will reply.\n"
    )
