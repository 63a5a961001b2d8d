"""API middleware: CORS, request logging, and error handling.

Starlette middleware is a stack (last added, first executed).  main.py
adds ErrorHandlingMiddleware before RequestLoggingMiddleware, so the
request log sees the final status code even when an application error
was translated into a JSON error body.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from javari_knowledge.api.schemas import ErrorResponse
from javari_knowledge.utils.errors import (
    ConfigurationError,
    IngestionCancelledError,
    KnowledgeError,
    PermanentServiceError,
    ServiceError,
    TransientServiceError,
    ValidationError,
)
from javari_knowledge.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# Most specific class first; the first isinstance match wins.
_STATUS_BY_ERROR: tuple[tuple[type[KnowledgeError], int], ...] = (
    (ValidationError, 422),
    (TransientServiceError, 503),
    (PermanentServiceError, 502),
    (IngestionCancelledError, 409),
    (ConfigurationError, 500),
)


def status_for_error(exc: KnowledgeError) -> int:
    """Return the HTTP status code for an application error."""
    for error_cls, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return status_code
    return 500


def error_body(exc: KnowledgeError) -> ErrorResponse:
    return ErrorResponse(
        error=type(exc).__name__,
        detail=exc.message,
        kind=exc.kind if isinstance(exc, ServiceError) else None,
        progress=exc.progress.to_dict() if exc.progress is not None else None,
    )


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware; defaults to all origins for development."""
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Translate ``KnowledgeError`` subclasses into structured JSON errors.

    Stack traces stay in the server log; the client sees the error class,
    its message, the transient/permanent kind and any partial progress.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except KnowledgeError as exc:
            status_code = status_for_error(exc)
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                status=status_code,
                path=str(request.url.path),
            )
            return JSONResponse(
                status_code=status_code,
                content=error_body(exc).model_dump(exclude_none=True),
            )
