"""Stored document models (Supabase ``documents`` table)."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

ContentType = Literal["text", "url", "pdf", "youtube"]


class DocumentCreate(BaseModel):
    """Parameter object for creating a stored document."""

    title: str = Field(..., min_length=1)
    text_content: str = Field(..., min_length=1)
    content_type: ContentType
    user_id: str | None = None
    source_url: str | None = None


class StoredDocument(BaseModel):
    """A row of the documents table."""

    id: str
    title: str
    text_content: str
    content_type: ContentType
    user_id: str | None = None
    source_url: str | None = None
    summary: str | None = None
    quiz_questions: list[dict[str, Any]] | None = None
    flashcards: list[dict[str, Any]] | None = None
    created_at: datetime | None = None
