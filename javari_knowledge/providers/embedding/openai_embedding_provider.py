"""OpenAI-compatible embedding provider adapter.

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`.
Supports real OpenAI and OpenAI-compatible endpoints via ``openai_base_url``.

SDK exceptions are translated into the two service error kinds the
pipeline understands: transient (timeouts, connection errors, 429, 5xx)
and permanent (every other API rejection).
"""

from __future__ import annotations

import openai
import structlog

from javari_knowledge.config.settings import Settings
from javari_knowledge.interfaces.embedding_provider import IEmbeddingProvider
from javari_knowledge.utils.errors import PermanentServiceError, TransientServiceError

logger = structlog.get_logger(logger_name=__name__)

# Inputs are cut to this many characters before the API call.
_MAX_INPUT_CHARS = 8000

# Known embedding model dimensions.
_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-ada-002": 1536,
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
}

_TRANSIENT_ERRORS = (
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API.

    Uses ``text-embedding-ada-002`` (1536 dims) by default.  When
    ``openai_base_url`` is configured the client points at that URL.
    The SDK's own retry loop is disabled; retry is the pipeline's job.
    """

    def __init__(self, settings: Settings, model: str | None = None) -> None:
        self._api_key = settings.openai_api_key

        # Build client kwargs; add base_url only when configured.
        client_kwargs: dict = {"api_key": self._api_key, "max_retries": 0}
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._model = model or settings.embedding_model or "text-embedding-ada-002"
        self._dimension = _MODEL_DIMENSIONS.get(self._model, 1536)
        self._provider_label = (
            "openai-compatible_embedding" if settings.openai_base_url else "openai_embedding"
        )

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed_single(self, text: str) -> list[float]:
        """Embed *text*, truncated to the first 8000 characters.

        Whitespace-only text is embedded as-is; only the empty string is
        rejected.
        """
        if not text:
            raise PermanentServiceError(
                message="Cannot embed empty text",
                provider_name=self.get_provider_name(),
            )

        try:
            response = await self._client.embeddings.create(
                input=text[:_MAX_INPUT_CHARS],
                model=self._model,
            )
        except _TRANSIENT_ERRORS as exc:
            raise TransientServiceError(
                message=f"{self._provider_label} unavailable: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise PermanentServiceError(
                message=f"{self._provider_label} rejected input: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.data:
            raise PermanentServiceError(
                message=f"{self._provider_label} returned no embedding",
                provider_name=self.get_provider_name(),
            )

        logger.debug(
            "openai_embedding",
            model=self._model,
            provider=self._provider_label,
            chars=min(len(text), _MAX_INPUT_CHARS),
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return list(response.data[0].embedding)

    def get_model_name(self) -> str:
        return self._model

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)
