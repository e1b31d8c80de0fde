"""Turn a selected content region, PDF pages or a transcript into plain text.

Structure survives as lightweight markers: ``# `` headings, ``• `` list
items, ``> `` quotes and fenced code. Formatting only reads the tree, so
running it twice on the same region gives identical output.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from bs4 import Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag

from src.models.content_models import PdfPage, TranscriptSegment

HEADING_TAGS = frozenset(("h1", "h2", "h3", "h4", "h5", "h6"))

# Elements that start a new block; anything else is treated as inline
BLOCK_TAGS = frozenset(
    (
        "address", "article", "aside", "body", "dd", "details", "div", "dl",
        "dt", "fieldset", "figcaption", "figure", "form", "hr", "html", "main",
        "ol", "p", "section", "summary", "ul",
    )
)

_SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)

_INLINE_SPACE_RE = re.compile(r"[^\S\n]+")
_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")


def normalize_whitespace(text: str) -> str:
    """Collapse spaces within lines, cap blank lines at one, trim the result."""
    lines = (_INLINE_SPACE_RE.sub(" ", line).strip() for line in text.split("\n"))
    return _EXCESS_NEWLINES_RE.sub("\n\n", "\n".join(lines)).strip()


def _inline_text(element: Tag) -> str:
    return re.sub(r"\s+", " ", element.get_text(" ")).strip()


def format_timestamp(offset_millis: int) -> str:
    """``[M:SS]`` below an hour, ``[H:MM:SS]`` from an hour on."""
    total_seconds = max(offset_millis, 0) // 1000
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours:
        return f"[{hours}:{minutes:02d}:{seconds:02d}]"
    return f"[{minutes}:{seconds:02d}]"


@dataclass
class _Block:
    text: str
    list_item: bool = False


class _Renderer:
    """Walk a subtree, emitting one _Block per paragraph-level element."""

    def __init__(self) -> None:
        self.blocks: List[_Block] = []
        self._inline: List[str] = []

    def flush(self) -> None:
        lines = [line.strip() for line in "".join(self._inline).split("\n")]
        text = "\n".join(line for line in lines if line)
        if text:
            self.blocks.append(_Block(text))
        self._inline = []

    def visit(self, node: Tag) -> None:
        for child in node.children:
            self.render(child)

    def render(self, node) -> None:
        if isinstance(node, _SKIPPED_STRINGS):
            return
        if isinstance(node, NavigableString):
            self._inline.append(re.sub(r"\s+", " ", str(node)))
            return
        if not isinstance(node, Tag):
            return

        name = node.name
        if name == "br":
            self._inline.append("\n")
        elif name in HEADING_TAGS:
            self.flush()
            heading = _inline_text(node)
            if heading:
                self.blocks.append(_Block(f"# {heading}"))
        elif name == "li":
            self.flush()
            self._list_item(node)
        elif name == "blockquote":
            self.flush()
            self._quote(node)
        elif name == "pre":
            self.flush()
            code = node.get_text().strip("\n")
            if code.strip():
                self.blocks.append(_Block(f"```\n{code}\n```"))
        elif name == "table":
            self.flush()
            self._table(node)
        elif name in BLOCK_TAGS:
            self.flush()
            self.visit(node)
            self.flush()
        else:
            self.visit(node)

    def _list_item(self, item: Tag) -> None:
        inner = _Renderer()
        inner.visit(item)
        inner.flush()
        for block in inner.blocks:
            # Nested lists already carry their own bullets
            text = block.text if block.list_item else f"• {block.text}"
            self.blocks.append(_Block(text, list_item=True))

    def _quote(self, quote: Tag) -> None:
        inner = _Renderer()
        inner.visit(quote)
        inner.flush()
        lines = [
            f"> {line}"
            for block in inner.blocks
            for line in block.text.split("\n")
            if line.strip()
        ]
        if lines:
            self.blocks.append(_Block("\n".join(lines)))

    def _table(self, table: Tag) -> None:
        rows = []
        for row in table.find_all("tr"):
            cells = [_inline_text(cell) for cell in row.find_all(("td", "th"))]
            line = " | ".join(cell for cell in cells if cell)
            if line:
                rows.append(line)
        if rows:
            self.blocks.append(_Block("\n".join(rows)))


def _join_blocks(blocks: Sequence[_Block]) -> str:
    parts: List[str] = []
    previous: _Block | None = None
    for block in blocks:
        if previous is not None:
            parts.append("\n" if previous.list_item and block.list_item else "\n\n")
        parts.append(block.text)
        previous = block
    return "".join(parts)


class StructuredTextFormatter:
    """Render selected regions, PDF pages and transcripts as normalized text."""

    def format_blocks(self, blocks: Iterable[Tag]) -> str:
        """Format one or more elements of a parsed tree, in the given order."""
        renderer = _Renderer()
        for block in blocks:
            renderer.render(block)
            # Each selected element is its own block, even an inline one
            renderer.flush()
        return normalize_whitespace(_join_blocks(renderer.blocks))

    def format_pages(self, pages: Iterable[PdfPage]) -> str:
        """Prefix each non-blank page with a ``[Page N]`` marker."""
        parts = [
            f"[Page {page.number}]\n{page.text.strip()}"
            for page in pages
            if page.text.strip()
        ]
        return normalize_whitespace("\n\n".join(parts))

    def format_transcript(self, segments: Iterable[TranscriptSegment]) -> str:
        """One line per caption, each led by its timestamp marker."""
        lines = [
            f"{format_timestamp(segment.offset_millis)} {' '.join(segment.text.split())}"
            for segment in segments
            if segment.text.strip()
        ]
        return normalize_whitespace("\n".join(lines))
