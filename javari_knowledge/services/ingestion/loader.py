"""Document loader: turns raw text, local files and web pages into Documents.

Supported inputs:

* raw text (``from_text``)
* ``.txt`` / ``.md`` files, read as UTF-8
* ``.pdf`` files, text extracted page by page with PyMuPDF
* web pages, fetched with httpx and reduced to article text by trafilatura

Anything else (``.docx``, ``.epub``, images, ...) is rejected with a
:class:`ValidationError` before any external call is made.
"""

from __future__ import annotations

from pathlib import Path

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import httpx
import structlog
import trafilatura

from javari_knowledge.models.knowledge import Document
from javari_knowledge.utils.errors import (
    PermanentServiceError,
    TransientServiceError,
    ValidationError,
)

logger = structlog.get_logger(logger_name=__name__)

_TEXT_SUFFIXES = frozenset({".txt", ".md", ".markdown"})
_PDF_SUFFIXES = frozenset({".pdf"})

_DEFAULT_TIMEOUT = 15.0
_DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; javari-knowledge/0.1)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


class DocumentLoader:
    """Builds :class:`Document` objects from the supported input kinds.

    Parameters
    ----------
    http_client:
        Optional injected ``httpx.AsyncClient`` used by :meth:`from_url`.
        When omitted, a client is created per call.
    """

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        self._client = http_client

    @staticmethod
    def from_text(
        text: str,
        source: str,
        category: str,
        title: str | None = None,
    ) -> Document:
        return Document(text=text, source=source, category=category, title=title)

    def from_file(
        self,
        path: str | Path,
        source: str | None = None,
        category: str = "document",
        title: str | None = None,
    ) -> Document:
        """Read a local file into a Document.

        Raises
        ------
        ValidationError
            If the file does not exist, cannot be decoded, or has an
            unsupported suffix.
        """
        file_path = Path(path)
        suffix = file_path.suffix.lower()
        if suffix not in _TEXT_SUFFIXES and suffix not in _PDF_SUFFIXES:
            raise ValidationError(f"Unsupported file type: {suffix or file_path.name}")
        if not file_path.is_file():
            raise ValidationError(f"File not found: {file_path}")

        if suffix in _PDF_SUFFIXES:
            text = self._read_pdf(file_path)
        else:
            try:
                text = file_path.read_text(encoding="utf-8")
            except UnicodeDecodeError as exc:
                raise ValidationError(f"File is not valid UTF-8: {file_path}") from exc

        logger.info("document_loaded", path=str(file_path), chars=len(text), kind=suffix)
        return Document(
            text=text,
            source=source or file_path.name,
            category=category,
            title=title or file_path.stem,
        )

    async def from_url(
        self,
        url: str,
        category: str = "webpage",
        title: str | None = None,
    ) -> Document:
        """Fetch *url* and extract its readable text via trafilatura."""
        if self._client is not None:
            html = await self._fetch(self._client, url)
        else:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(_DEFAULT_TIMEOUT),
                headers=_DEFAULT_HEADERS,
                follow_redirects=True,
            ) as client:
                html = await self._fetch(client, url)

        text = trafilatura.extract(html, include_comments=False, include_tables=True)
        if not text:
            logger.warning("trafilatura_extraction_empty", url=url)
            raise ValidationError(f"No readable text extracted from {url}")

        logger.info("webpage_loaded", url=url, chars=len(text))
        return Document(text=text, source=url, category=category, title=title)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _fetch(client: httpx.AsyncClient, url: str) -> str:
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise TransientServiceError(
                message=f"Timeout fetching {url}: {exc}",
                provider_name="web",
            ) from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            error_cls = TransientServiceError if status >= 500 or status == 429 else PermanentServiceError
            raise error_cls(
                message=f"HTTP {status} for {url}",
                provider_name="web",
            ) from exc
        except httpx.HTTPError as exc:
            raise TransientServiceError(
                message=f"HTTP error fetching {url}: {exc}",
                provider_name="web",
            ) from exc
        return response.text

    @staticmethod
    def _read_pdf(file_path: Path) -> str:
        try:
            doc = fitz.open(file_path)
        except Exception as exc:
            raise ValidationError(f"Cannot open PDF {file_path}: {exc}") from exc

        pages: list[str] = []
        try:
            for page in doc:
                text = page.get_text("text").strip()
                if text:
                    pages.append(text)
        finally:
            doc.close()

        if not pages:
            logger.warning("pdf_no_text_extracted", file_path=str(file_path))
        return "\n\n".join(pages)
