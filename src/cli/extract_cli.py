"""Typer CLI: extract normalized text from a URL, PDF, YouTube video or text."""

import asyncio
import os
import re
import sys
from pathlib import Path
from typing import Optional

import typer

from src.config import get_settings
from src.exceptions import ExtractionError
from src.models.api_models import ExtractResponse
from src.models.content_models import SourceDescriptor, SourceKind
from src.services.content_pipeline import ContentPipeline

os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

app = typer.Typer(help="Extract study-ready text from a source.")

_YOUTUBE_HOST_RE = re.compile(r"(?:^|//|\.)(?:youtube(?:-nocookie)?\.com|youtu\.be)/", re.IGNORECASE)
_SCHEME_RE = re.compile(r"^https?://\S+$", re.IGNORECASE)
# Bare hosts only count as links when they end in a common top-level domain
_BARE_HOST_RE = re.compile(
    r"^(?:www\.)?[a-z0-9-]+(?:\.[a-z0-9-]+)*"
    r"\.(?:com|org|net|edu|gov|io|dev|app|ai|co|info|me|uk|us|ca|de|fr|au|in)"
    r"(?::\d+)?(?:[/?#]\S*)?$",
    re.IGNORECASE,
)


def detect_kind(source: str) -> SourceKind:
    """Guess the source kind from its shape."""
    if _YOUTUBE_HOST_RE.search(source):
        return SourceKind.YOUTUBE
    if source.lower().split("?", 1)[0].endswith(".pdf"):
        return SourceKind.PDF
    candidate = source.strip()
    if _SCHEME_RE.match(candidate) or _BARE_HOST_RE.match(candidate):
        return SourceKind.URL
    return SourceKind.TEXT


def read_payload(source: str, kind: SourceKind) -> str | bytes:
    """Resolve the CLI argument into the payload for ``kind``.

    ``-`` reads text from stdin; a local PDF path is read as bytes.
    """
    if source == "-":
        return sys.stdin.read()
    if kind == SourceKind.PDF:
        path = Path(source).expanduser()
        if path.is_file():
            return path.read_bytes()
    return source


@app.command()
def extract(
    source: str = typer.Argument(..., help="URL, PDF path/URL, YouTube link, text, or '-' for stdin"),
    kind: Optional[SourceKind] = typer.Option(
        None, "--kind", "-k", case_sensitive=False, help="Source kind (detected when omitted)"
    ),
    max_chunk_length: Optional[int] = typer.Option(
        None, "--max-chunk-length", min=1, help="Print chunks of at most this many characters"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the document and chunks as JSON"),
):
    """Extract and print normalized text."""
    resolved_kind = kind or detect_kind(source)
    pipeline = ContentPipeline.from_settings(get_settings())

    try:
        descriptor = SourceDescriptor(
            kind=resolved_kind, payload=read_payload(source, resolved_kind)
        )
        document = asyncio.run(pipeline.extract(descriptor))
    except ExtractionError as e:
        typer.echo(f"✗ {e.user_message}", err=True)
        typer.echo(f"  {e}", err=True)
        raise typer.Exit(1)

    chunks = pipeline.chunk(document, max_chunk_length)

    if as_json:
        typer.echo(ExtractResponse(document=document, chunks=chunks).model_dump_json(indent=2))
        return

    metadata = document.metadata
    if metadata.title:
        typer.echo(typer.style(metadata.title, bold=True))
    typer.echo(f"Source: {metadata.source_url} ({document.source_kind.value})")
    for warning in document.warnings:
        typer.echo(typer.style(f"! {warning}", fg=typer.colors.YELLOW), err=True)
    typer.echo("")

    if max_chunk_length is None:
        typer.echo(document.text)
        return
    for chunk in chunks:
        typer.echo(f"--- chunk {chunk.order + 1}/{len(chunks)} ({len(chunk.text)} chars) ---")
        typer.echo(chunk.text)


if __name__ == "__main__":
    app()
