"""PDF reader producing pages of reading-order text plus info-dictionary metadata."""

import asyncio
import re
from typing import Iterable, List

import logfire
import pymupdf

from src.exceptions import ParseFailureError
from src.models.content_models import PdfPage, RawDocument, SourceKind, TextRun
from src.services.page_fetcher import PageFetcher, ProxyPageFetcher

_PDF_MAGIC = b"%PDF-"

# Runs whose top edges differ by at most this many points share a visual line
LINE_TOLERANCE_POINTS = 2.0

_PDF_DATE_RE = re.compile(
    r"^(?:D:)?(\d{4})(\d{2})?(\d{2})?(\d{2})?(\d{2})?(\d{2})?"
    r"(?:([Zz])|([+-])(\d{2})'?(\d{2})?'?)?"
)


def order_text_runs(
    runs: Iterable[TextRun], tolerance: float = LINE_TOLERANCE_POINTS
) -> str:
    """Join positioned runs top-to-bottom, left-to-right.

    Extraction order from the parser is not reading order, so runs are
    grouped into visual lines by ``y`` and each line is ordered by ``x``.
    """
    ordered = sorted((r for r in runs if r.text.strip()), key=lambda r: (r.y, r.x))
    lines: List[List[TextRun]] = []
    line_y: float | None = None
    for run in ordered:
        if line_y is None or abs(run.y - line_y) > tolerance:
            lines.append([run])
            line_y = run.y
        else:
            lines[-1].append(run)
    return "\n".join(
        " ".join(r.text.strip() for r in sorted(line, key=lambda r: r.x))
        for line in lines
    )


def parse_pdf_date(value: str | None) -> str | None:
    """Render a PDF date string (``D:YYYYMMDDHHmmSS+HH'mm'``) as ISO-8601."""
    if not value or not value.strip():
        return None
    raw = value.strip()
    match = _PDF_DATE_RE.match(raw)
    if not match:
        return raw
    year, month, day, hour, minute, second, zulu, sign, tz_h, tz_m = match.groups()
    date = f"{year}-{month or '01'}-{day or '01'}"
    if hour is None:
        return date
    iso = f"{date}T{hour}:{minute or '00'}:{second or '00'}"
    if zulu:
        return iso + "Z"
    if sign and tz_h:
        return f"{iso}{sign}{tz_h}:{tz_m or '00'}"
    return iso


def _page_runs(page: "pymupdf.Page") -> List[TextRun]:
    runs: List[TextRun] = []
    for block in page.get_text("dict").get("blocks", []):
        if block.get("type") != 0:
            continue
        for line in block.get("lines", []):
            text = "".join(span.get("text", "") for span in line.get("spans", []))
            if text.strip():
                x0, y0 = line["bbox"][0], line["bbox"][1]
                runs.append(TextRun(x=x0, y=y0, text=text))
    return runs


def _read_metadata(doc: "pymupdf.Document") -> dict[str, str]:
    info = doc.metadata or {}
    metadata: dict[str, str] = {}
    for field, key in (("title", "title"), ("author", "author")):
        value = (info.get(key) or "").strip()
        if value:
            metadata[field] = value
    date = parse_pdf_date(info.get("creationDate"))
    if date:
        metadata["date"] = date
    return metadata


def parse_pdf(data: bytes, source_url: str) -> RawDocument:
    """Parse PDF bytes into ordered pages.

    Raises:
        ParseFailureError: If the binary is not a readable PDF
    """
    # The header may follow a few junk bytes
    if _PDF_MAGIC not in data[:1024]:
        raise ParseFailureError("Not a PDF file", source_url=source_url)
    try:
        doc = pymupdf.open(stream=data, filetype="pdf")
    except (RuntimeError, ValueError) as e:
        raise ParseFailureError(f"Unreadable PDF: {e}", source_url=source_url) from e

    with doc:
        if doc.needs_pass:
            raise ParseFailureError("PDF is password protected", source_url=source_url)

        warnings: List[str] = []
        try:
            metadata = _read_metadata(doc)
        except (RuntimeError, ValueError) as e:
            metadata = {}
            warnings.append(f"PDF metadata unavailable: {e}")
            logfire.warning("PDF metadata unavailable", url=source_url, error=str(e))

        try:
            pages = [
                PdfPage(number=index, text=order_text_runs(_page_runs(page)))
                for index, page in enumerate(doc, start=1)
            ]
        except (RuntimeError, ValueError) as e:
            raise ParseFailureError(
                f"Failed to read PDF pages: {e}", source_url=source_url
            ) from e

    return RawDocument(
        source_kind=SourceKind.PDF,
        source_url=source_url,
        pages=pages,
        metadata=metadata,
        warnings=warnings,
    )


class PdfReader:
    """Fetch (when given a URL) and parse PDF documents."""

    def __init__(self, fetcher: PageFetcher | None = None):
        self._fetcher = fetcher or ProxyPageFetcher()

    async def read(self, payload: bytes | str, source_url: str) -> RawDocument:
        """Return a RawDocument with one PdfPage per page.

        Raises:
            FetchFailureError: If a URL payload cannot be downloaded
            ParseFailureError: If the binary is not a readable PDF
        """
        data = payload if isinstance(payload, bytes) else await self._fetcher.fetch_bytes(payload)
        document = await asyncio.to_thread(parse_pdf, data, source_url)
        logfire.info(
            "PDF parsed",
            url=source_url,
            page_count=len(document.pages or []),
            byte_length=len(data),
        )
        return document
