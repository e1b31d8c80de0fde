"""Request and response bodies for the HTTP API."""

from typing import Any, Literal

from pydantic import BaseModel, Field

from src.models.content_models import Chunk, NormalizedDocument, SourceKind
from src.models.document_models import StoredDocument


class ExtractRequest(BaseModel):
    """A source to extract; PDF bytes travel base64-encoded."""

    kind: SourceKind
    payload: str = Field(..., min_length=1)
    payload_encoding: Literal["text", "base64"] = "text"
    max_chunk_length: int | None = Field(default=None, gt=0)


class ExtractResponse(BaseModel):
    document: NormalizedDocument
    chunks: list[Chunk]


class StudyRequest(BaseModel):
    """Generate one kind of study material from already extracted text."""

    action: Literal["summary", "full_summary", "quiz", "flashcards", "title", "description"]
    content: str = Field(..., min_length=1)


class StudyResponse(BaseModel):
    result: Any


class CreateDocumentRequest(ExtractRequest):
    """Extract a source, store it and attach a summary."""

    user_id: str | None = None
    title: str | None = Field(default=None, max_length=200)


class CreateDocumentResponse(BaseModel):
    document: StoredDocument
    warnings: list[str] = Field(default_factory=list)
