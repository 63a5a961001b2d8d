"""Utility modules for the Javari knowledge service.

- **errors** -- exception hierarchy rooted at KnowledgeError; service
  failures are split into transient and permanent kinds.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **retry** -- exponential backoff for transient service failures.
- **cancellation** -- cooperative cancellation token for ingestion calls.
- **concurrency** -- semaphore throttling and an ordered sliding window
  used to keep embedding calls under provider rate limits.
"""

# -- Domain exception hierarchy --------------------------------------------
from javari_knowledge.utils.errors import (
    ConfigurationError,
    IngestionCancelledError,
    KnowledgeError,
    PermanentServiceError,
    ServiceError,
    TransientServiceError,
    ValidationError,
)

# -- Cancellation ----------------------------------------------------------
from javari_knowledge.utils.cancellation import CancellationToken

# -- Async concurrency helpers ---------------------------------------------
from javari_knowledge.utils.concurrency import ordered_bounded_map, throttled_gather

# -- Structured logging setup ----------------------------------------------
from javari_knowledge.utils.logging import configure_logging, get_logger

# -- Retry -----------------------------------------------------------------
from javari_knowledge.utils.retry import NO_RETRY, RetryPolicy, call_with_retry

__all__ = [
    "CancellationToken",
    "ConfigurationError",
    "IngestionCancelledError",
    "KnowledgeError",
    "NO_RETRY",
    "PermanentServiceError",
    "RetryPolicy",
    "ServiceError",
    "TransientServiceError",
    "ValidationError",
    "call_with_retry",
    "configure_logging",
    "get_logger",
    "ordered_bounded_map",
    "throttled_gather",
]
