"""Database client and repository layer."""

from src.db.repository import (
    create_document,
    delete_document,
    get_document,
    list_documents,
    update_document,
)

__all__ = [
    "create_document",
    "delete_document",
    "get_document",
    "list_documents",
    "update_document",
]
