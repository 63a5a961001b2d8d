"""Unit tests for the OpenAI embedding provider adapter."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from javari_knowledge.config.settings import Settings
from javari_knowledge.providers.embedding.openai_embedding_provider import (
    OpenAIEmbeddingProvider,
)
from javari_knowledge.utils.errors import PermanentServiceError, TransientServiceError
from tests.conftest import make_settings

_PATCH_TARGET = "javari_knowledge.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI"
_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/embeddings")


def _status_error(cls: type[openai.APIStatusError], status: int) -> openai.APIStatusError:
    response = httpx.Response(status, request=_REQUEST, json={"error": {"message": "nope"}})
    return cls(f"Error code: {status}", response=response, body=None)


def _mock_client(side_effect=None, data=None) -> AsyncMock:  # noqa: ANN001
    client = AsyncMock()
    if side_effect is not None:
        client.embeddings.create = AsyncMock(side_effect=side_effect)
    else:
        response = MagicMock()
        response.data = data if data is not None else [MagicMock(embedding=[0.1] * 1536)]
        response.usage = MagicMock(total_tokens=12)
        client.embeddings.create = AsyncMock(return_value=response)
    return client


class TestOpenAIEmbeddingProvider:
    @pytest.fixture()
    def settings(self) -> Settings:
        return make_settings()

    def test_defaults(self, settings: Settings) -> None:
        provider = OpenAIEmbeddingProvider(settings)
        assert provider.get_model_name() == "text-embedding-ada-002"
        assert provider.get_dimension() == 1536
        assert provider.get_provider_name() == "openai_embedding"

    def test_is_available_without_key(self) -> None:
        provider = OpenAIEmbeddingProvider(make_settings(openai_api_key=""))
        assert provider.is_available() is False

    def test_custom_base_url_changes_label(self) -> None:
        provider = OpenAIEmbeddingProvider(make_settings(openai_base_url="https://llm.local/v1"))
        assert provider.get_provider_name() == "openai-compatible_embedding"

    @pytest.mark.asyncio
    async def test_embed_single_success(self, settings: Settings) -> None:
        client = _mock_client()
        with patch(_PATCH_TARGET, return_value=client):
            provider = OpenAIEmbeddingProvider(settings)
            vector = await provider.embed_single("What is Javari?")

        assert len(vector) == 1536
        kwargs = client.embeddings.create.call_args.kwargs
        assert kwargs["model"] == "text-embedding-ada-002"
        assert kwargs["input"] == "What is Javari?"

    @pytest.mark.asyncio
    async def test_input_truncated_to_8000_chars(self, settings: Settings) -> None:
        client = _mock_client()
        with patch(_PATCH_TARGET, return_value=client):
            provider = OpenAIEmbeddingProvider(settings)
            await provider.embed_single("x" * 9000)

        assert len(client.embeddings.create.call_args.kwargs["input"]) == 8000

    @pytest.mark.asyncio
    async def test_empty_text_is_permanent_without_call(self, settings: Settings) -> None:
        client = _mock_client()
        with patch(_PATCH_TARGET, return_value=client):
            provider = OpenAIEmbeddingProvider(settings)
            with pytest.raises(PermanentServiceError):
                await provider.embed_single("")

        client.embeddings.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_whitespace_only_text_is_embedded(self, settings: Settings) -> None:
        client = _mock_client()
        with patch(_PATCH_TARGET, return_value=client):
            provider = OpenAIEmbeddingProvider(settings)
            vector = await provider.embed_single("   \n   ")

        assert len(vector) == 1536
        assert client.embeddings.create.call_args.kwargs["input"] == "   \n   "

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            openai.APITimeoutError(request=_REQUEST),
            openai.APIConnectionError(request=_REQUEST),
            _status_error(openai.RateLimitError, 429),
            _status_error(openai.InternalServerError, 500),
        ],
    )
    async def test_transient_errors(self, settings: Settings, error: Exception) -> None:
        with patch(_PATCH_TARGET, return_value=_mock_client(side_effect=error)):
            provider = OpenAIEmbeddingProvider(settings)
            with pytest.raises(TransientServiceError) as exc_info:
                await provider.embed_single("hello")

        assert exc_info.value.provider_name == "openai_embedding"
        assert exc_info.value.kind == "transient"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            _status_error(openai.BadRequestError, 400),
            _status_error(openai.AuthenticationError, 401),
            _status_error(openai.NotFoundError, 404),
        ],
    )
    async def test_permanent_errors(self, settings: Settings, error: Exception) -> None:
        with patch(_PATCH_TARGET, return_value=_mock_client(side_effect=error)):
            provider = OpenAIEmbeddingProvider(settings)
            with pytest.raises(PermanentServiceError) as exc_info:
                await provider.embed_single("hello")

        assert str(exc_info.value).startswith("[openai_embedding]")

    @pytest.mark.asyncio
    async def test_empty_response_data_is_permanent(self, settings: Settings) -> None:
        with patch(_PATCH_TARGET, return_value=_mock_client(data=[])):
            provider = OpenAIEmbeddingProvider(settings)
            with pytest.raises(PermanentServiceError, match="no embedding"):
                await provider.embed_single("hello")
