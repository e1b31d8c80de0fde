"""Tests for Pydantic models."""

import pytest
from hypothesis import given, strategies as st
from pydantic import ValidationError

from src.exceptions import InvalidSourceError
from src.models.api_models import ExtractRequest, StudyRequest
from src.models.content_models import (
    Metadata,
    NormalizedDocument,
    SourceDescriptor,
    SourceKind,
    normalize_http_url,
)
from src.models.document_models import DocumentCreate, StoredDocument
from src.models.study_models import Flashcard, Quiz, QuizQuestion


# Custom URL strategy since Hypothesis doesn't have st.urls()
def url_strategy():
    """Generate valid URL strings."""
    return st.builds(
        lambda scheme, domain, path: f"{scheme}://{domain}.com/{path}",
        scheme=st.sampled_from(["http", "https"]),
        domain=st.text(
            alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz0123456789"),
            min_size=3,
            max_size=20,
        ),
        path=st.text(
            alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz0123456789-_/"),
            min_size=0,
            max_size=50,
        ),
    )


class TestNormalizeHttpUrl:
    def test_adds_missing_scheme(self):
        assert normalize_http_url("example.com/page") == "https://example.com/page"

    def test_keeps_http(self):
        assert normalize_http_url(" http://example.com ") == "http://example.com"

    def test_allows_localhost(self):
        assert normalize_http_url("http://localhost:8000/x") == "http://localhost:8000/x"

    @pytest.mark.parametrize("value", ["", "   ", "not a url", "https://", "intranet"])
    def test_rejects_non_urls(self, value):
        with pytest.raises(InvalidSourceError):
            normalize_http_url(value)

    @given(url=url_strategy())
    def test_valid_urls_are_unchanged(self, url):
        assert normalize_http_url(url) == url


class TestSourceDescriptor:
    def test_text_locator_is_a_content_hash(self):
        first = SourceDescriptor(kind="text", payload="Some notes")
        second = SourceDescriptor(kind="text", payload="Some notes")

        assert first.locator == second.locator
        assert first.locator.startswith("text:sha256:")

    def test_pdf_bytes_locator(self):
        source = SourceDescriptor(kind="pdf", payload=b"%PDF-1.7 data")

        assert source.locator.startswith("pdf:sha256:")

    def test_pdf_url_payload_is_normalized(self):
        source = SourceDescriptor(kind="pdf", payload="example.com/paper.pdf")

        assert source.payload == "https://example.com/paper.pdf"
        assert source.locator == "https://example.com/paper.pdf"

    def test_url_payload_is_normalized(self):
        source = SourceDescriptor(kind=SourceKind.URL, payload="example.com")

        assert source.payload == "https://example.com"

    def test_youtube_locator_is_the_link(self):
        source = SourceDescriptor(kind="youtube", payload=" https://youtu.be/dQw4w9WgXcQ ")

        assert source.locator == "https://youtu.be/dQw4w9WgXcQ"

    @pytest.mark.parametrize(
        "kind,payload",
        [("text", ""), ("text", " \n "), ("youtube", "   "), ("pdf", b""), ("url", "bad url")],
    )
    def test_invalid_payloads(self, kind, payload):
        with pytest.raises(InvalidSourceError):
            SourceDescriptor(kind=kind, payload=payload)

    def test_bytes_only_for_pdf(self):
        with pytest.raises(InvalidSourceError, match="must be text"):
            SourceDescriptor(kind="url", payload=b"https://example.com")

    def test_unknown_kind(self):
        with pytest.raises(ValidationError):
            SourceDescriptor(kind="audio", payload="x")


class TestNormalizedDocument:
    def test_text_floor(self):
        with pytest.raises(ValidationError):
            NormalizedDocument(
                metadata=Metadata(source_url="text:sha256:abc"),
                text="too short",
                source_kind="text",
            )

    def test_metadata_requires_source_url(self):
        with pytest.raises(ValidationError):
            Metadata(source_url="")

    def test_warnings_default_empty(self, sample_document):
        assert sample_document.warnings == []


class TestStudyModels:
    def test_quiz_question_needs_four_options(self):
        with pytest.raises(ValidationError):
            QuizQuestion(question="Q?", options=["a", "b", "c"], correct_answer=0)

    def test_correct_answer_in_range(self):
        with pytest.raises(ValidationError):
            QuizQuestion(question="Q?", options=["a", "b", "c", "d"], correct_answer=4)

    def test_quiz_needs_a_question(self):
        with pytest.raises(ValidationError):
            Quiz(quiz=[])

    def test_flashcard_sides_are_stripped(self):
        card = Flashcard(front="  Front ", back=" Back  ")

        assert card.front == "Front"
        assert card.back == "Back"

    def test_blank_flashcard_side(self):
        with pytest.raises(ValidationError):
            Flashcard(front="   ", back="Back")


class TestApiModels:
    def test_extract_request_defaults(self):
        request = ExtractRequest(kind="url", payload="https://example.com")

        assert request.payload_encoding == "text"
        assert request.max_chunk_length is None

    def test_extract_request_rejects_non_positive_chunk_length(self):
        with pytest.raises(ValidationError):
            ExtractRequest(kind="text", payload="x", max_chunk_length=0)

    def test_study_request_action(self):
        with pytest.raises(ValidationError):
            StudyRequest(action="poem", content="x")


class TestDocumentModels:
    def test_document_create_content_type(self):
        with pytest.raises(ValidationError):
            DocumentCreate(title="T", text_content="Body", content_type="audio")

    def test_stored_document_parses_timestamp(self):
        stored = StoredDocument(
            id="doc-1",
            title="T",
            text_content="Body",
            content_type="pdf",
            created_at="2024-03-01T09:00:00+00:00",
        )

        assert stored.created_at.year == 2024
        assert stored.summary is None
