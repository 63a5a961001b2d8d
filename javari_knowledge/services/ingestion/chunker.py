"""Token-window chunking with exact overlap.

Splits document text into :class:`~javari_knowledge.models.knowledge.Chunk`
windows of ``chunk_size`` tokens, each window starting ``overlap`` tokens
before the previous one ended:

    tokens   0 ........ 1000
                  800 ........ 1800
                            1600 ........ 2400

Token counting is an approximation, not a real tokenizer: one token is
taken to be ``chars_per_token`` characters (4 by default, the usual
rule of thumb for English text and OpenAI models).  Chunk sizes are
therefore best-effort bounds on what the embedding model will count, not
hard guarantees.  Keeping the heuristic keeps the boundaries exact and
reproducible: dropping the overlap from every chunk after the first and
concatenating the rest gives back the original text, character for
character.

The sequence returned by :meth:`TextChunker.chunk` is lazy and
restartable.  Each ``iter()`` call walks the text again from the start,
so the pipeline can stream chunks into the embedding client without
materialising the whole list.
"""

from __future__ import annotations

import bisect
import math
import re
from typing import Iterator

import structlog

from javari_knowledge.models.knowledge import Chunk
from javari_knowledge.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)

_SECTION_MAX_CHARS = 100

# "# Heading" through "###### Heading".
_MARKDOWN_HEADING = re.compile(r"^#{1,6}[ \t]+(.+?)[ \t#]*$", re.MULTILINE)
# A one-line paragraph starting with a capital and without sentence
# punctuation, e.g. "Getting Started" or "Pricing:".
_TITLE_PARAGRAPH = re.compile(r"(?:^|(?<=\n\n))([A-Z][^.!?\n]*?):?[ \t]*(?=\n[ \t]*\n|\Z)")


def estimate_tokens(text: str, chars_per_token: int = 4) -> int:
    """Return the approximate token count of *text* (``ceil(len / chars_per_token)``)."""
    return math.ceil(len(text) / chars_per_token)


def find_sections(text: str) -> list[tuple[int, str]]:
    """Return ``(char_offset, title)`` for every heading in *text*, in order."""
    found: dict[int, str] = {}
    for match in _MARKDOWN_HEADING.finditer(text):
        found[match.start()] = match.group(1).strip()[:_SECTION_MAX_CHARS]
    for match in _TITLE_PARAGRAPH.finditer(text):
        found.setdefault(match.start(), match.group(1).strip()[:_SECTION_MAX_CHARS])
    return sorted(found.items())


class ChunkSequence:
    """Lazy, finite, restartable sequence of chunks over one text."""

    def __init__(
        self,
        text: str,
        chunk_size: int,
        overlap: int,
        chars_per_token: int,
    ) -> None:
        self._text = text
        self._chunk_size = chunk_size
        self._overlap = overlap
        self._chars_per_token = chars_per_token
        self._total_tokens = estimate_tokens(text, chars_per_token)
        self._sections: list[tuple[int, str]] | None = None

    @property
    def text(self) -> str:
        return self._text

    @property
    def total_tokens(self) -> int:
        return self._total_tokens

    def __len__(self) -> int:
        total = self._total_tokens
        if total == 0:
            return 0
        if total <= self._chunk_size:
            return 1
        step = self._chunk_size - self._overlap
        return 1 + math.ceil((total - self._chunk_size) / step)

    def __iter__(self) -> Iterator[Chunk]:
        return self._generate()

    def _generate(self) -> Iterator[Chunk]:
        total = self._total_tokens
        if total == 0:
            return

        if self._sections is None:
            self._sections = find_sections(self._text)
        positions = [pos for pos, _ in self._sections]

        index = 0
        start = 0
        prev_end_char = 0
        while True:
            end = min(start + self._chunk_size, total)
            start_char = self._char_offset(start)
            end_char = self._char_offset(end)
            overlap_chars = prev_end_char - start_char if index > 0 else 0

            # Nearest heading that begins before the chunk ends.
            section_idx = bisect.bisect_left(positions, end_char) - 1
            section = self._sections[section_idx][1] if section_idx >= 0 else ""

            yield Chunk(
                index=index,
                text=self._text[start_char:end_char],
                start_token=start,
                end_token=end,
                overlap_tokens=self._overlap if index > 0 else 0,
                overlap_chars=overlap_chars,
                start_char=start_char,
                end_char=end_char,
                section=section,
            )

            if end >= total:
                return
            index += 1
            prev_end_char = end_char
            start = end - self._overlap

    def _char_offset(self, token: int) -> int:
        return min(token * self._chars_per_token, len(self._text))


class TextChunker:
    """Splits text into overlapping, token-bounded windows.

    Parameters
    ----------
    chunk_size:
        Target token count per chunk (default 1000).
    overlap:
        Tokens shared by consecutive chunks (default 200).  Must be
        smaller than *chunk_size*.
    chars_per_token:
        Characters counted as one token by the estimate (default 4).
    """

    def __init__(self, chunk_size: int = 1000, overlap: int = 200, chars_per_token: int = 4) -> None:
        if chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}")
        if overlap < 0:
            raise ConfigurationError(f"overlap must be non-negative, got {overlap}")
        if overlap >= chunk_size:
            raise ConfigurationError(
                f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})"
            )
        if chars_per_token <= 0:
            raise ConfigurationError(f"chars_per_token must be positive, got {chars_per_token}")
        self._chunk_size = chunk_size
        self._overlap = overlap
        self._chars_per_token = chars_per_token

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    def chunk(self, text: str) -> ChunkSequence:
        """Return the lazy chunk sequence for *text*.

        Empty text yields no chunks.  Text shorter than one chunk yields a
        single chunk equal to the text.
        """
        sequence = ChunkSequence(text, self._chunk_size, self._overlap, self._chars_per_token)
        logger.debug(
            "chunking_planned",
            num_chunks=len(sequence),
            total_tokens=sequence.total_tokens,
            chunk_size=self._chunk_size,
            overlap=self._overlap,
        )
        return sequence

    def count_tokens(self, text: str) -> int:
        return estimate_tokens(text, self._chars_per_token)
