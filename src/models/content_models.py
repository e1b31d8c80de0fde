"""Models for the content pipeline: sources, raw documents, candidates, output."""

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List
from urllib.parse import urlparse

from pydantic import BaseModel, Field, model_validator

from src.exceptions import InvalidSourceError


class SourceKind(str, Enum):
    """Kinds of user-supplied sources the pipeline accepts."""

    TEXT = "text"
    URL = "url"
    PDF = "pdf"
    YOUTUBE = "youtube"


def normalize_http_url(value: str) -> str:
    """Add a missing scheme and check the URL has a host.

    Raises:
        InvalidSourceError: If the value cannot be a web URL.
    """
    url = value.strip()
    if not url:
        raise InvalidSourceError("URL is empty")
    if not url.startswith(("http://", "https://")):
        url = "https://" + url
    parsed = urlparse(url)
    host = parsed.hostname or ""
    if not host or " " in url or ("." not in host and host != "localhost"):
        raise InvalidSourceError(f"Invalid URL: {value}")
    return url


class SourceDescriptor(BaseModel):
    """Input to the pipeline: a tagged payload.

    ``text`` carries raw text, ``url`` a web URL, ``pdf`` the PDF bytes (or a
    URL to download them from) and ``youtube`` any YouTube link or video id.
    """

    kind: SourceKind
    payload: str | bytes

    @model_validator(mode="after")
    def _payload_matches_kind(self) -> "SourceDescriptor":
        payload = self.payload
        if self.kind == SourceKind.PDF:
            if isinstance(payload, bytes):
                if not payload:
                    raise InvalidSourceError("PDF payload is empty")
                return self
            self.payload = normalize_http_url(payload)
            return self
        if not isinstance(payload, str):
            raise InvalidSourceError(f"{self.kind.value} payload must be text")
        if not payload.strip():
            raise InvalidSourceError(f"{self.kind.value} payload is empty")
        if self.kind == SourceKind.URL:
            self.payload = normalize_http_url(payload)
        return self

    @property
    def locator(self) -> str:
        """Provenance string for the source; never empty."""
        if isinstance(self.payload, bytes):
            digest = hashlib.sha256(self.payload).hexdigest()[:16]
            return f"pdf:sha256:{digest}"
        if self.kind == SourceKind.TEXT:
            digest = hashlib.sha256(self.payload.encode()).hexdigest()[:16]
            return f"text:sha256:{digest}"
        return self.payload.strip()


@dataclass
class TranscriptSegment:
    """One caption line of a video transcript."""

    text: str
    offset_millis: int


@dataclass
class TextRun:
    """A positioned run of text on a PDF page (PDF points, origin top-left)."""

    x: float
    y: float
    text: str


@dataclass
class PdfPage:
    """Text of one PDF page in reading order."""

    number: int
    text: str


class Metadata(BaseModel):
    """Document-level descriptive fields."""

    title: str | None = None
    author: str | None = None
    date: str | None = None
    description: str | None = None
    source_url: str = Field(..., min_length=1, description="Original locator")


@dataclass
class RawDocument:
    """Fetched but unprocessed content.

    Exactly one of ``markup``, ``pages`` or ``segments`` is populated.
    ``metadata`` holds fields the fetcher read from the binary or an
    oEmbed response; HTML metadata is extracted later from the markup.
    """

    source_kind: SourceKind
    source_url: str
    markup: str | None = None
    pages: List[PdfPage] | None = None
    segments: List[TranscriptSegment] | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)


@dataclass
class BlockFeatures:
    """DOM-independent description of a block, used for scoring."""

    tag_name: str
    text_length: int
    word_count: int
    inner_html_length: int
    link_text_length: int
    class_and_id: str = ""


@dataclass
class ContentCandidate:
    """A scored region of a document considered for extraction.

    ``blocks`` are opaque handles into the parsed tree. Scores are only
    comparable within the same document.
    """

    blocks: List[Any]
    score: float
    strategy: str


class NormalizedDocument(BaseModel):
    """Final pipeline output."""

    metadata: Metadata
    text: str = Field(..., min_length=100)
    source_kind: SourceKind
    warnings: List[str] = Field(
        default_factory=list, description="Non-fatal diagnostics (e.g. metadata lookups)"
    )


@dataclass
class Chunk:
    """A bounded slice of normalized text, in document order."""

    text: str
    order: int
