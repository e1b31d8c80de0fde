"""Tests for repository functions."""

import pytest
from unittest.mock import patch, MagicMock

from src.db.repository import (
    DOCUMENTS_TABLE,
    create_document,
    delete_document,
    get_document,
    list_documents,
    update_document,
)
from src.models.document_models import DocumentCreate, StoredDocument


def document_row(**overrides):
    row = {
        "id": "doc-123",
        "title": "How Plants Eat",
        "text_content": "Photosynthesis converts light energy into sugar.",
        "content_type": "url",
        "user_id": "user-1",
        "source_url": "https://example.com/plants",
        "summary": None,
        "quiz_questions": None,
        "flashcards": None,
        "created_at": "2024-03-01T09:00:00+00:00",
    }
    row.update(overrides)
    return row


class TestCreateDocument:
    """Test create_document() function."""

    @patch("src.db.repository.get_supabase_client")
    def test_create_document_valid_inputs(self, mock_get_client, mock_supabase_client):
        """Test create_document() inserts the non-empty fields."""
        mock_supabase_client.table.return_value.insert.return_value.execute.return_value.data = [
            document_row()
        ]
        mock_get_client.return_value = mock_supabase_client

        stored = create_document(
            DocumentCreate(
                title="How Plants Eat",
                text_content="Photosynthesis converts light energy into sugar.",
                content_type="url",
                user_id="user-1",
                source_url="https://example.com/plants",
            )
        )

        assert isinstance(stored, StoredDocument)
        assert stored.id == "doc-123"
        mock_supabase_client.table.assert_called_with(DOCUMENTS_TABLE)
        insert_call = mock_supabase_client.table.return_value.insert.call_args[0][0]
        assert insert_call == {
            "title": "How Plants Eat",
            "text_content": "Photosynthesis converts light energy into sugar.",
            "content_type": "url",
            "user_id": "user-1",
            "source_url": "https://example.com/plants",
        }

    @patch("src.db.repository.get_supabase_client")
    def test_create_document_omits_missing_optional_fields(
        self, mock_get_client, mock_supabase_client
    ):
        """Test that None values are not sent to the table."""
        mock_supabase_client.table.return_value.insert.return_value.execute.return_value.data = [
            document_row(content_type="text", user_id=None, source_url=None)
        ]
        mock_get_client.return_value = mock_supabase_client

        create_document(
            DocumentCreate(title="Notes", text_content="Body", content_type="text")
        )

        insert_call = mock_supabase_client.table.return_value.insert.call_args[0][0]
        assert "user_id" not in insert_call
        assert "source_url" not in insert_call

    @patch("src.db.repository.get_supabase_client")
    def test_create_document_failure(self, mock_get_client, mock_supabase_client):
        """Test error handling when the insert returns no row."""
        mock_get_client.return_value = mock_supabase_client

        with pytest.raises(ValueError, match="Failed to create document"):
            create_document(
                DocumentCreate(title="Notes", text_content="Body", content_type="text")
            )

    @patch("src.db.repository.get_supabase_client")
    def test_create_document_client_error_propagates(self, mock_get_client):
        """Test that client exceptions are logged and re-raised."""
        mock_client = MagicMock()
        mock_client.table.return_value.insert.return_value.execute.side_effect = RuntimeError(
            "connection reset"
        )
        mock_get_client.return_value = mock_client

        with pytest.raises(RuntimeError, match="connection reset"):
            create_document(
                DocumentCreate(title="Notes", text_content="Body", content_type="text")
            )


class TestUpdateDocument:
    """Test update_document() function."""

    @patch("src.db.repository.get_supabase_client")
    def test_update_document(self, mock_get_client, mock_supabase_client):
        """Test that allowed columns are updated for the given id."""
        update_mock = mock_supabase_client.table.return_value.update
        update_mock.return_value.eq.return_value.execute.return_value.data = [
            document_row(summary="# Overview")
        ]
        mock_get_client.return_value = mock_supabase_client

        stored = update_document("doc-123", summary="# Overview")

        assert stored.summary == "# Overview"
        update_mock.assert_called_once_with({"summary": "# Overview"})
        update_mock.return_value.eq.assert_called_once_with("id", "doc-123")

    @patch("src.db.repository.get_supabase_client")
    def test_update_document_rejects_unknown_fields(self, mock_get_client):
        """Test that unknown columns are rejected before any query."""
        with pytest.raises(ValueError, match="Cannot update fields: user_id"):
            update_document("doc-123", user_id="someone-else")

        mock_get_client.assert_not_called()

    @patch("src.db.repository.get_supabase_client")
    def test_update_document_requires_fields(self, mock_get_client):
        with pytest.raises(ValueError, match="No fields to update"):
            update_document("doc-123")

    @patch("src.db.repository.get_supabase_client")
    def test_update_document_missing_row(self, mock_get_client, mock_supabase_client):
        mock_get_client.return_value = mock_supabase_client

        with pytest.raises(ValueError, match="Failed to update document doc-404"):
            update_document("doc-404", title="New")


class TestGetDocument:
    """Test get_document() function."""

    @patch("src.db.repository.get_supabase_client")
    def test_get_document_found(self, mock_get_client, mock_supabase_client):
        select_mock = mock_supabase_client.table.return_value.select
        select_mock.return_value.eq.return_value.execute.return_value.data = [document_row()]
        mock_get_client.return_value = mock_supabase_client

        stored = get_document("doc-123")

        assert stored is not None
        assert stored.title == "How Plants Eat"
        select_mock.return_value.eq.assert_called_once_with("id", "doc-123")

    @patch("src.db.repository.get_supabase_client")
    def test_get_document_not_found(self, mock_get_client, mock_supabase_client):
        mock_get_client.return_value = mock_supabase_client

        assert get_document("missing") is None


class TestListDocuments:
    """Test list_documents() function."""

    @patch("src.db.repository.get_supabase_client")
    def test_list_documents_for_user(self, mock_get_client, mock_supabase_client):
        select_mock = mock_supabase_client.table.return_value.select
        eq_mock = select_mock.return_value.eq
        eq_mock.return_value.order.return_value.execute.return_value.data = [
            document_row(id="doc-2"),
            document_row(id="doc-1"),
        ]
        mock_get_client.return_value = mock_supabase_client

        documents = list_documents(user_id="user-1")

        assert [d.id for d in documents] == ["doc-2", "doc-1"]
        eq_mock.assert_called_once_with("user_id", "user-1")
        eq_mock.return_value.order.assert_called_once_with("created_at", desc=True)

    @patch("src.db.repository.get_supabase_client")
    def test_list_all_documents(self, mock_get_client, mock_supabase_client):
        select_mock = mock_supabase_client.table.return_value.select
        mock_get_client.return_value = mock_supabase_client

        assert list_documents() == []
        select_mock.return_value.eq.assert_not_called()


class TestDeleteDocument:
    """Test delete_document() function."""

    @patch("src.db.repository.get_supabase_client")
    def test_delete_document(self, mock_get_client, mock_supabase_client):
        delete_mock = mock_supabase_client.table.return_value.delete
        delete_mock.return_value.eq.return_value.execute.return_value.data = [document_row()]
        mock_get_client.return_value = mock_supabase_client

        delete_document("doc-123")

        delete_mock.return_value.eq.assert_called_once_with("id", "doc-123")

    @patch("src.db.repository.get_supabase_client")
    def test_delete_missing_document(self, mock_get_client, mock_supabase_client):
        mock_get_client.return_value = mock_supabase_client

        with pytest.raises(ValueError, match="not found"):
            delete_document("missing")
