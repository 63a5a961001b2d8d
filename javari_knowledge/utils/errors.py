"""Custom exception hierarchy for the Javari knowledge pipeline.

All application exceptions inherit from :class:`KnowledgeError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai_embedding", "supabase") caused the failure.

The hierarchy is organized by how a caller should react:

    KnowledgeError  (base -- catch-all for any knowledge-pipeline error)
    +-- ValidationError          (empty / invalid document, no side effects)
    +-- ConfigurationError       (bad chunking parameters, missing credentials)
    +-- IngestionCancelledError  (cancellation token fired mid-ingestion)
    +-- ServiceError             (an embedding or store call failed)
        +-- TransientServiceError  (network, timeout, 429, 5xx -- may succeed later)
        +-- PermanentServiceError  (the model or store rejected the input)

``ServiceError`` subclasses expose a ``kind`` of ``"transient"`` or
``"permanent"``, which is the error envelope returned over HTTP.  When the
ingestion pipeline aborts on a service error it attaches an
:class:`~javari_knowledge.models.knowledge.IngestionProgress` snapshot via
``progress`` so callers can see how many records were already written.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from javari_knowledge.models.knowledge import IngestionProgress


class KnowledgeError(Exception):
    """Base exception for all knowledge-pipeline errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[supabase] HTTP 503: upstream down``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        self._progress: IngestionProgress | None = None
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    @property
    def progress(self) -> IngestionProgress | None:
        """Partial ingestion progress at the moment the error surfaced, if known."""
        return self._progress

    def attach_progress(self, progress: IngestionProgress) -> None:
        self._progress = progress

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Input / configuration errors
# ---------------------------------------------------------------------------


class ValidationError(KnowledgeError):
    """Raised when a document is empty or otherwise invalid.

    Validation happens before any embedding or store call, so raising this
    never leaves partial records behind.
    """

    def __init__(
        self,
        message: str = "Invalid document",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(KnowledgeError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class IngestionCancelledError(KnowledgeError):
    """Raised when an ingestion call is cancelled through its token."""

    def __init__(
        self,
        message: str = "Ingestion was cancelled",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External service errors (embedding API, managed store)
# ---------------------------------------------------------------------------


class ServiceError(KnowledgeError):
    """Raised when an embedding or store call fails."""

    kind: str = "service"

    def __init__(
        self,
        message: str = "External service call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class TransientServiceError(ServiceError):
    """Raised on network, timeout, rate-limit, or availability failures.

    Re-invoking the same call later may succeed.  This is the only error
    kind that :func:`~javari_knowledge.utils.retry.call_with_retry` retries.
    """

    kind = "transient"

    def __init__(
        self,
        message: str = "External service is temporarily unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PermanentServiceError(ServiceError):
    """Raised when the embedding model or store rejects the input itself."""

    kind = "permanent"

    def __init__(
        self,
        message: str = "External service rejected the request",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
