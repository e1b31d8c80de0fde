"""Stored document repository."""

import time
from typing import Any, List, Optional

import logfire

from src.db.client import get_supabase_client
from src.models.document_models import DocumentCreate, StoredDocument

DOCUMENTS_TABLE = "documents"

# Columns callers may change after creation
UPDATABLE_FIELDS = frozenset(
    ("title", "summary", "quiz_questions", "flashcards", "text_content")
)


def create_document(document: DocumentCreate) -> StoredDocument:
    """
    Insert a document.

    Args:
        document: Title, text and provenance of the new document

    Returns:
        The stored row

    Raises:
        ValueError: If the insert returns no row
    """
    start_time = time.time()
    supabase = get_supabase_client()
    data = document.model_dump(exclude_none=True)

    try:
        result = supabase.table(DOCUMENTS_TABLE).insert(data).execute()
    except Exception as e:
        logfire.error(
            "Error creating document",
            content_type=document.content_type,
            error=str(e),
            error_type=type(e).__name__,
            response_time_ms=(time.time() - start_time) * 1000,
        )
        raise

    if not result.data:
        logfire.error("Failed to create document", content_type=document.content_type)
        raise ValueError("Failed to create document")

    stored = StoredDocument(**result.data[0])
    logfire.info(
        "Document created",
        document_id=stored.id,
        content_type=stored.content_type,
        content_length=len(stored.text_content),
        response_time_ms=(time.time() - start_time) * 1000,
    )
    return stored


def update_document(document_id: str, **fields: Any) -> StoredDocument:
    """
    Update selected columns of a document.

    Args:
        document_id: Document UUID
        **fields: Column values (summary, quiz_questions, flashcards, title, text_content)

    Returns:
        The updated row

    Raises:
        ValueError: On unknown columns or when no row was updated
    """
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
    if not fields:
        raise ValueError("No fields to update")

    supabase = get_supabase_client()
    result = (
        supabase.table(DOCUMENTS_TABLE).update(fields).eq("id", document_id).execute()
    )
    if not result.data:
        logfire.error("Failed to update document", document_id=document_id)
        raise ValueError(f"Failed to update document {document_id}")

    logfire.info("Document updated", document_id=document_id, fields=sorted(fields))
    return StoredDocument(**result.data[0])


def get_document(document_id: str) -> Optional[StoredDocument]:
    """Get a document by ID, or None if it does not exist."""
    supabase = get_supabase_client()
    result = (
        supabase.table(DOCUMENTS_TABLE).select("*").eq("id", document_id).execute()
    )
    if not result.data:
        return None
    return StoredDocument(**result.data[0])


def list_documents(user_id: str | None = None) -> List[StoredDocument]:
    """List documents, newest first, optionally for one user."""
    supabase = get_supabase_client()
    query = supabase.table(DOCUMENTS_TABLE).select("*")
    if user_id:
        query = query.eq("user_id", user_id)
    result = query.order("created_at", desc=True).execute()
    return [StoredDocument(**row) for row in result.data or []]


def delete_document(document_id: str) -> None:
    """
    Delete a document.

    Raises:
        ValueError: If no row was deleted
    """
    supabase = get_supabase_client()
    result = supabase.table(DOCUMENTS_TABLE).delete().eq("id", document_id).execute()
    if not result.data:
        raise ValueError(f"Document {document_id} not found")
    logfire.info("Document deleted", document_id=document_id)
