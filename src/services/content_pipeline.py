"""Content extraction pipeline.

Coordinates the stages for every source kind:

    fetch -> (metadata || boilerplate filter -> content selector -> formatter)
          -> length floor -> NormalizedDocument

Chunking is a separate step (``chunk``) because callers pick the chunk size:
a short preview for summaries, a larger size for whole-document processing.

Every component is injected so each can be replaced in tests. The pipeline
holds no per-request state, so one instance serves concurrent extractions.
"""

import asyncio
from typing import List

import logfire
from bs4 import BeautifulSoup
from pydantic import ValidationError

from src.config import Settings
from src.constants import MIN_TEXT_CHARS_DEFAULT, MIN_TEXT_CHARS_URL
from src.exceptions import ExtractionTooShortError, InvalidSourceError
from src.models.content_models import (
    Chunk,
    Metadata,
    NormalizedDocument,
    RawDocument,
    SourceDescriptor,
    SourceKind,
)
from src.services.boilerplate_filter import BoilerplateFilter
from src.services.chunker import TextChunker
from src.services.content_selector import ContentSelector
from src.services.metadata_extractor import MetadataExtractor
from src.services.page_fetcher import PageFetcher, ProxyPageFetcher
from src.services.pdf_reader import PdfReader
from src.services.text_formatter import StructuredTextFormatter, normalize_whitespace
from src.services.youtube import YouTubeFetcher

# One canonical floor per source kind
DEFAULT_MIN_TEXT_CHARS: dict[SourceKind, int] = {
    SourceKind.TEXT: MIN_TEXT_CHARS_DEFAULT,
    SourceKind.URL: MIN_TEXT_CHARS_URL,
    SourceKind.PDF: MIN_TEXT_CHARS_DEFAULT,
    SourceKind.YOUTUBE: MIN_TEXT_CHARS_DEFAULT,
}


class ContentPipeline:
    """Turn a SourceDescriptor into a NormalizedDocument.

    Components (fetchers, filter, selector, formatter, chunker) can be
    injected for testing.
    """

    def __init__(
        self,
        fetcher: PageFetcher | None = None,
        pdf_reader: PdfReader | None = None,
        youtube: YouTubeFetcher | None = None,
        metadata_extractor: MetadataExtractor | None = None,
        boilerplate_filter: BoilerplateFilter | None = None,
        selector: ContentSelector | None = None,
        formatter: StructuredTextFormatter | None = None,
        chunker: TextChunker | None = None,
        min_text_chars: dict[SourceKind, int] | None = None,
    ):
        """Initialize the pipeline.

        Args:
            fetcher: Web page fetcher (defaults to ProxyPageFetcher)
            pdf_reader: PDF reader (defaults to one sharing ``fetcher``)
            youtube: Transcript fetcher (defaults to YouTubeFetcher)
            metadata_extractor: Metadata extractor
            boilerplate_filter: Markup cleaner applied before selection
            selector: Content region selector with its fallback strategies
            formatter: Structured text formatter
            chunker: Default chunker used by ``chunk``
            min_text_chars: Length floor per source kind
        """
        self._fetcher = fetcher or ProxyPageFetcher()
        self._pdf_reader = pdf_reader or PdfReader(fetcher=self._fetcher)
        self._youtube = youtube or YouTubeFetcher()
        self._metadata = metadata_extractor or MetadataExtractor()
        self._filter = boilerplate_filter or BoilerplateFilter()
        self._selector = selector or ContentSelector()
        self._formatter = formatter or StructuredTextFormatter()
        self._chunker = chunker or TextChunker()
        self._min_text_chars = {**DEFAULT_MIN_TEXT_CHARS, **(min_text_chars or {})}

    @classmethod
    def from_settings(cls, settings: Settings) -> "ContentPipeline":
        fetcher = ProxyPageFetcher(
            timeout=settings.scraper_timeout_seconds,
            proxy_templates=settings.proxy_templates,
            direct_fetch=settings.direct_fetch_enabled,
        )
        return cls(
            fetcher=fetcher,
            youtube=YouTubeFetcher(timeout=settings.scraper_timeout_seconds),
            chunker=TextChunker(settings.max_chunk_chars),
        )

    def min_text_chars(self, kind: SourceKind) -> int:
        return self._min_text_chars[kind]

    async def extract(self, source: SourceDescriptor) -> NormalizedDocument:
        """Run the pipeline for one source.

        Args:
            source: Validated source descriptor

        Returns:
            NormalizedDocument whose text meets the floor for its kind

        Raises:
            InvalidSourceError: Malformed URL, video link or empty payload
            FetchFailureError: Every transport failed
            ParseFailureError: Unreadable PDF or unavailable transcript
            ExtractionTooShortError: Every fallback ran and the text is still too short
        """
        kind = source.kind
        locator = source.locator
        with logfire.span("extract_content", kind=kind.value, source=locator):
            if kind == SourceKind.TEXT:
                text = normalize_whitespace(str(source.payload))
                metadata = Metadata(source_url=locator)
                warnings: List[str] = []
            elif kind == SourceKind.URL:
                text, metadata, warnings = await self._extract_web_page(locator)
            elif kind == SourceKind.PDF:
                raw = await self._pdf_reader.read(source.payload, source_url=locator)
                text = self._formatter.format_pages(raw.pages or [])
                metadata, warnings = self._document_metadata(raw)
            else:
                raw = await self._youtube.fetch(locator)
                text = self._formatter.format_transcript(raw.segments or [])
                metadata, warnings = self._document_metadata(raw)

            self._check_length(text, kind, locator)
            logfire.info(
                "Content extracted",
                kind=kind.value,
                source=locator,
                text_length=len(text),
                has_title=metadata.title is not None,
                warning_count=len(warnings),
            )
            return NormalizedDocument(
                metadata=metadata,
                text=text,
                source_kind=kind,
                warnings=warnings,
            )

    def chunk(self, document: NormalizedDocument, max_chunk_length: int | None = None) -> List[Chunk]:
        """Split a document's text, with the default chunker or a one-off size."""
        chunker = (
            self._chunker
            if max_chunk_length is None
            else TextChunker(max_chunk_length)
        )
        return chunker.chunk(document.text)

    async def _extract_web_page(self, url: str) -> tuple[str, Metadata, List[str]]:
        html = await self._fetcher.fetch(url)
        raw = RawDocument(source_kind=SourceKind.URL, source_url=url, markup=html)
        floor = self._min_text_chars[SourceKind.URL]

        # Each branch parses its own tree, so they can run side by side
        metadata_result, text = await asyncio.gather(
            asyncio.to_thread(self._metadata.extract, raw),
            asyncio.to_thread(self._extract_body, html, url, floor),
            return_exceptions=True,
        )
        if isinstance(text, BaseException):
            raise text

        warnings = list(raw.warnings)
        if isinstance(metadata_result, Exception):
            warnings.append(f"Page metadata unavailable: {metadata_result}")
            logfire.warning(
                "Metadata extraction failed", url=url, error=str(metadata_result)
            )
            metadata_result = Metadata(source_url=url)
        elif isinstance(metadata_result, BaseException):
            raise metadata_result
        return text, metadata_result, warnings

    def _extract_body(self, html: str, url: str, floor: int) -> str:
        soup = BeautifulSoup(html, "html.parser")
        self._filter.clean(soup)

        formatted: List[str] = []

        def long_enough(candidate) -> bool:
            formatted.append(self._formatter.format_blocks(candidate.blocks))
            return len(formatted[-1]) >= floor

        candidate = self._selector.select(soup, accept=long_enough)
        if candidate is None:
            longest = max((len(text) for text in formatted), default=0)
            raise ExtractionTooShortError(
                f"Could not find article content at {url} "
                f"({longest} characters, need {floor})",
                source_url=url,
                length=longest,
                minimum=floor,
            )
        return formatted[-1]

    def _document_metadata(self, raw: RawDocument) -> tuple[Metadata, List[str]]:
        warnings = list(raw.warnings)
        try:
            metadata = self._metadata.extract(raw, is_html=False)
        except ValidationError as e:
            warnings.append(f"Metadata unavailable: {e}")
            logfire.warning("Metadata extraction failed", url=raw.source_url, error=str(e))
            metadata = Metadata(source_url=raw.source_url)
        return metadata, warnings

    def _check_length(self, text: str, kind: SourceKind, locator: str) -> None:
        floor = self._min_text_chars[kind]
        if len(text) < floor:
            logfire.warning(
                "Extracted text below minimum length",
                kind=kind.value,
                source=locator,
                length=len(text),
                minimum=floor,
            )
            raise ExtractionTooShortError(
                f"Extracted text is {len(text)} characters; at least {floor} required",
                source_url=locator,
                length=len(text),
                minimum=floor,
            )


async def extract_content(
    source: SourceDescriptor | str | bytes,
    kind: SourceKind | str | None = None,
    pipeline: ContentPipeline | None = None,
) -> NormalizedDocument:
    """Extract normalized content from a source.

    Args:
        source: A SourceDescriptor, or a raw payload paired with ``kind``
        kind: Source kind for a raw payload ("text", "url", "pdf", "youtube")
        pipeline: Pipeline to run (defaults to a fresh ContentPipeline)

    Returns:
        NormalizedDocument

    Raises:
        InvalidSourceError: If the payload does not fit the kind
    """
    if not isinstance(source, SourceDescriptor):
        if kind is None:
            raise InvalidSourceError("A source kind is required for raw payloads")
        try:
            source = SourceDescriptor(kind=kind, payload=source)
        except ValidationError as e:
            raise InvalidSourceError(f"Invalid source: {e}") from e
    return await (pipeline or ContentPipeline()).extract(source)
