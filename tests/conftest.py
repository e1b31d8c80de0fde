"""Shared pytest fixtures and configuration.

Fixture Categories:
1. HTTP: respx_mock
2. Sample content: article_html, sample_document
3. Mock services: mock_pipeline, mock_study_service, mock_token_bucket
4. Infrastructure: mock_supabase_client, mock_settings, mock_logfire, logfire_capture
5. API: test_client
"""

import os
from unittest.mock import AsyncMock, MagicMock, Mock, patch

import pytest

import logfire
import respx

from src.models.content_models import Metadata, NormalizedDocument, SourceKind

# Tests never ship spans; suppress the "not configured" warning
os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")


PARAGRAPH = (
    "Photosynthesis converts light energy into chemical energy that plants store "
    "as sugar, releasing oxygen into the atmosphere as a by-product. Inside the "
    "chloroplast, chlorophyll absorbs red and blue light, water molecules are split, "
    "and carbon dioxide drawn in through the leaves is fixed into glucose that "
    "feeds the whole plant."
)


@pytest.fixture
def respx_mock():
    """Respx mock fixture for HTTP mocking."""
    with respx.mock:
        yield respx


# =============================================================================
# Sample Content
# =============================================================================


@pytest.fixture
def paragraph():
    """A 50-word paragraph of article text."""
    return PARAGRAPH


@pytest.fixture
def article_html():
    """A page with navigation, header, footer and one article of three paragraphs."""
    return f"""
    <html>
      <head>
        <title>How Plants Eat | Botany Weekly</title>
        <meta name="author" content="Ada Green">
        <meta name="description" content="A short primer on photosynthesis.">
        <meta property="article:published_time" content="2024-03-01T09:00:00Z">
      </head>
      <body>
        <nav><a href="/">Home</a> <a href="/about">About us</a></nav>
        <header><h1>Botany Weekly</h1></header>
        <article>
          <p>{PARAGRAPH}</p>
          <p>{PARAGRAPH}</p>
          <p>{PARAGRAPH}</p>
        </article>
        <footer>Copyright Botany Weekly, all rights reserved.</footer>
      </body>
    </html>
    """


@pytest.fixture
def sample_document():
    """A normalized document as returned by the pipeline."""
    return NormalizedDocument(
        metadata=Metadata(title="How Plants Eat", source_url="https://example.com/plants"),
        text="\n\n".join([PARAGRAPH] * 3),
        source_kind=SourceKind.URL,
    )


# =============================================================================
# Mock Services
# =============================================================================


@pytest.fixture
def mock_pipeline(sample_document):
    """ContentPipeline mock whose extract() returns sample_document."""
    from src.services.chunker import TextChunker
    from src.services.content_pipeline import ContentPipeline

    pipeline = MagicMock(spec=ContentPipeline)
    pipeline.extract = AsyncMock(return_value=sample_document)
    pipeline.chunk = Mock(
        side_effect=lambda document, max_chunk_length=None: TextChunker(
            max_chunk_length or 12000
        ).chunk(document.text)
    )
    return pipeline


@pytest.fixture
def mock_study_service():
    """StudyMaterialService mock with canned outputs."""
    from src.models.study_models import Flashcard, QuizQuestion
    from src.services.study_service import StudyMaterialService

    service = AsyncMock(spec=StudyMaterialService)
    service.generate_summary = AsyncMock(return_value="# Overview\nPlants make sugar.")
    service.generate_full_summary = AsyncMock(return_value="Plants make sugar.")
    service.generate_quiz = AsyncMock(
        return_value=[
            QuizQuestion(
                question="What do plants release?",
                options=["Oxygen", "Nitrogen", "Helium", "Argon"],
                correct_answer=0,
            )
        ]
    )
    service.generate_flashcards = AsyncMock(
        return_value=[Flashcard(front="What is photosynthesis?", back="Light to sugar")]
    )
    service.generate_title = AsyncMock(return_value="How Plants Eat")
    service.generate_card_description = AsyncMock(
        return_value="Plants turn sunlight into food."
    )
    return service


@pytest.fixture
def mock_token_bucket():
    """TokenBucket mock that never waits."""
    from src.services.rate_limiter import TokenBucket

    bucket = MagicMock(spec=TokenBucket)
    bucket.acquire = AsyncMock(return_value=None)
    bucket.try_acquire = Mock(return_value=True)
    return bucket


# =============================================================================
# Infrastructure
# =============================================================================


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client for testing."""
    client = MagicMock()

    table_mock = MagicMock()
    select_mock = MagicMock()
    eq_mock = MagicMock()
    insert_mock = MagicMock()
    update_mock = MagicMock()
    delete_mock = MagicMock()
    execute_mock = MagicMock()

    # Chain: table().select().eq().execute() and table().select().eq().order().execute()
    execute_mock.data = []
    eq_mock.execute.return_value = execute_mock
    eq_mock.order.return_value.execute.return_value = execute_mock
    select_mock.eq.return_value = eq_mock
    select_mock.order.return_value.execute.return_value = execute_mock
    table_mock.select.return_value = select_mock

    # Chain: table().insert().execute()
    insert_execute_mock = MagicMock()
    insert_execute_mock.data = []
    insert_mock.execute.return_value = insert_execute_mock
    table_mock.insert.return_value = insert_mock

    # Chain: table().update().eq().execute()
    update_execute_mock = MagicMock()
    update_execute_mock.data = []
    update_mock.eq.return_value = MagicMock()
    update_mock.eq.return_value.execute.return_value = update_execute_mock
    table_mock.update.return_value = update_mock

    # Chain: table().delete().eq().execute()
    delete_execute_mock = MagicMock()
    delete_execute_mock.data = []
    delete_mock.eq.return_value = MagicMock()
    delete_mock.eq.return_value.execute.return_value = delete_execute_mock
    table_mock.delete.return_value = delete_mock

    client.table.return_value = table_mock

    return client


@pytest.fixture
def mock_settings(monkeypatch):
    """Mock application settings."""
    from src.config import Settings

    settings = Settings(
        supabase_url="https://test.supabase.co",
        supabase_service_key="test-service-key",
        default_model="test",
        env="local",
        logfire_token=None,
        sentry_dsn=None,
    )

    monkeypatch.setattr("src.config.get_settings", lambda: settings)
    # Patch where get_settings is used so request handlers see the mock
    monkeypatch.setattr("src.main.get_settings", lambda: settings)
    monkeypatch.setattr("src.logging_config.get_settings", lambda: settings)
    monkeypatch.setattr("src.services.study_service.get_settings", lambda: settings)
    monkeypatch.setattr("src.db.client.get_settings", lambda: settings)
    return settings


@pytest.fixture
def logfire_capture():
    """
    Capture Logfire logs for testing.

    This fixture patches Logfire to capture log calls for assertion.
    """

    captured_logs = []

    original_info = logfire.info
    original_warning = logfire.warning
    original_error = logfire.error

    def capture_info(*args, **kwargs):
        captured_logs.append(("info", args, kwargs))
        return original_info(*args, **kwargs)

    def capture_warning(*args, **kwargs):
        captured_logs.append(("warning", args, kwargs))
        return original_warning(*args, **kwargs)

    def capture_error(*args, **kwargs):
        captured_logs.append(("error", args, kwargs))
        return original_error(*args, **kwargs)

    with (
        patch("logfire.info", side_effect=capture_info),
        patch("logfire.warning", side_effect=capture_warning),
        patch("logfire.error", side_effect=capture_error),
    ):
        yield captured_logs


@pytest.fixture
def mock_logfire(monkeypatch):
    """
    Mock Logfire for testing without actual logging.

    Useful for tests that don't need to verify logging behavior.
    """
    from contextlib import contextmanager

    @contextmanager
    def mock_span(*args, **kwargs):
        yield {}

    mock_logfire_module = MagicMock()
    mock_logfire_module.info = Mock()
    mock_logfire_module.warning = Mock()
    mock_logfire_module.error = Mock()
    mock_logfire_module.span = mock_span
    mock_logfire_module.configure = Mock()
    mock_logfire_module.instrument_fastapi = Mock()
    mock_logfire_module.instrument_pydantic = Mock()
    mock_logfire_module.instrument_httpx = Mock()
    mock_logfire_module.instrument_pydantic_ai = Mock()

    # Patch module-level imports in our code (only modules that use logfire)
    for module in (
        "src.main",
        "src.logging_config",
        "src.api.extract",
        "src.db.repository",
        "src.services.content_pipeline",
        "src.services.study_service",
    ):
        monkeypatch.setattr(f"{module}.logfire", mock_logfire_module)

    return mock_logfire_module


# =============================================================================
# API
# =============================================================================


@pytest.fixture
def test_client(mock_settings, mock_logfire, mock_pipeline, mock_study_service):
    """FastAPI TestClient with the pipeline and study service replaced by mocks."""
    from fastapi.testclient import TestClient

    from src.api.extract import get_pipeline, get_study_service
    from src.main import app

    app.dependency_overrides[get_pipeline] = lambda: mock_pipeline
    app.dependency_overrides[get_study_service] = lambda: mock_study_service
    yield TestClient(app)
    app.dependency_overrides.clear()
