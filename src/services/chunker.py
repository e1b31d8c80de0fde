"""Split normalized text into bounded chunks on paragraph and sentence boundaries."""

import re
from typing import List

from src.constants import DEFAULT_MAX_CHUNK_CHARS, SUMMARY_PREVIEW_CHUNK_CHARS
from src.models.content_models import Chunk

_PARAGRAPH_BREAK_RE = re.compile(r"\n\s*\n")
_SENTENCE_BREAK_RE = re.compile(r"(?<=[.!?])\s+|\n+")

PARAGRAPH_SEPARATOR = "\n\n"
SENTENCE_SEPARATOR = " "


def split_paragraphs(text: str) -> List[str]:
    return [p.strip() for p in _PARAGRAPH_BREAK_RE.split(text) if p.strip()]


def split_sentences(text: str) -> List[str]:
    """Split after ``.``, ``!`` or ``?`` followed by whitespace, and at line breaks."""
    return [s.strip() for s in _SENTENCE_BREAK_RE.split(text) if s.strip()]


def pack(units: List[str], separator: str, limit: int) -> List[str]:
    """Greedily join units until adding the next one would pass ``limit``.

    A unit longer than ``limit`` on its own is emitted whole.
    """
    packed: List[str] = []
    current = ""
    for unit in units:
        if not current:
            current = unit
        elif len(current) + len(separator) + len(unit) <= limit:
            current += separator + unit
        else:
            packed.append(current)
            current = unit
    if current:
        packed.append(current)
    return packed


class TextChunker:
    """Chunk text for token-limited model calls."""

    def __init__(
        self,
        max_chunk_length: int = DEFAULT_MAX_CHUNK_CHARS,
        split_sentences: bool = True,
    ):
        """Initialize the text chunker.

        Args:
            max_chunk_length: Maximum characters per chunk
            split_sentences: Split oversize paragraphs into sentences; when
                False such a paragraph becomes a chunk of its own

        Raises:
            ValueError: If max_chunk_length is not positive
        """
        if max_chunk_length <= 0:
            raise ValueError("max_chunk_length must be positive")
        self._max_chunk_length = max_chunk_length
        self._split_sentences = split_sentences

    @property
    def max_chunk_length(self) -> int:
        return self._max_chunk_length

    def chunk(self, text: str) -> List[Chunk]:
        """Split text into ordered chunks.

        Args:
            text: Normalized text

        Returns:
            Chunks in document order; empty for blank text
        """
        limit = self._max_chunk_length
        texts: List[str] = []
        pending: List[str] = []

        for paragraph in split_paragraphs(text):
            if len(paragraph) > limit and self._split_sentences:
                texts.extend(pack(pending, PARAGRAPH_SEPARATOR, limit))
                pending = []
                texts.extend(pack(split_sentences(paragraph), SENTENCE_SEPARATOR, limit))
            else:
                pending.append(paragraph)
        texts.extend(pack(pending, PARAGRAPH_SEPARATOR, limit))

        return [Chunk(text=chunk_text, order=index) for index, chunk_text in enumerate(texts)]

    def chunk_to_strings(self, text: str) -> List[str]:
        return [chunk.text for chunk in self.chunk(text)]


def preview_chunk(text: str, max_chunk_length: int = SUMMARY_PREVIEW_CHUNK_CHARS) -> str:
    """First chunk of the text at the preview size, or "" for blank text."""
    chunks = TextChunker(max_chunk_length, split_sentences=True).chunk(text)
    return chunks[0].text if chunks else ""
