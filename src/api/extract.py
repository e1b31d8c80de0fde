"""Content extraction and study material endpoints.

The handlers translate pipeline errors into HTTP responses; the pipeline
itself never formats user-facing messages beyond ``user_message``.
"""

import base64
import binascii
import logging

import logfire
from fastapi import APIRouter, Depends, HTTPException, Request

from src.db.repository import create_document, update_document
from src.exceptions import (
    ExtractionError,
    ExtractionTooShortError,
    FetchFailureError,
    InvalidSourceError,
    ParseFailureError,
    StudyMaterialError,
)
from src.models.api_models import (
    CreateDocumentRequest,
    CreateDocumentResponse,
    ExtractRequest,
    ExtractResponse,
    StudyRequest,
    StudyResponse,
)
from src.models.content_models import NormalizedDocument, SourceDescriptor, SourceKind
from src.models.document_models import DocumentCreate
from src.services.content_pipeline import ContentPipeline
from src.services.metadata_extractor import strip_site_name
from src.services.study_service import StudyMaterialService

logger = logging.getLogger(__name__)
router = APIRouter()

ERROR_STATUS_CODES: dict[type[ExtractionError], int] = {
    InvalidSourceError: 400,
    FetchFailureError: 502,
    ParseFailureError: 422,
    ExtractionTooShortError: 422,
}

DEFAULT_DOCUMENT_TITLE = "Untitled Content"


def get_pipeline(request: Request) -> ContentPipeline:
    return request.app.state.pipeline


def get_study_service(request: Request) -> StudyMaterialService:
    return request.app.state.study_service


def extraction_http_error(error: ExtractionError) -> HTTPException:
    """Map a pipeline error to an HTTPException carrying its user message."""
    status_code = 422
    for error_type, code in ERROR_STATUS_CODES.items():
        if isinstance(error, error_type):
            status_code = code
            break
    return HTTPException(status_code=status_code, detail=error.user_message)


def build_source(body: ExtractRequest) -> SourceDescriptor:
    """Decode the request payload into a SourceDescriptor.

    Raises:
        InvalidSourceError: On undecodable base64 or a payload/kind mismatch
    """
    payload: str | bytes = body.payload
    if body.payload_encoding == "base64":
        try:
            payload = base64.b64decode(body.payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidSourceError("Payload is not valid base64") from e
    return SourceDescriptor(kind=body.kind, payload=payload)


async def _extract(pipeline: ContentPipeline, body: ExtractRequest) -> NormalizedDocument:
    try:
        return await pipeline.extract(build_source(body))
    except ExtractionError as e:
        logfire.warning(
            "Content extraction failed",
            kind=body.kind.value,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise extraction_http_error(e) from e


@router.post("/extract", response_model=ExtractResponse)
async def extract(
    body: ExtractRequest,
    pipeline: ContentPipeline = Depends(get_pipeline),
) -> ExtractResponse:
    """Extract normalized text from a source and chunk it."""
    document = await _extract(pipeline, body)
    chunks = pipeline.chunk(document, body.max_chunk_length)
    return ExtractResponse(document=document, chunks=chunks)


@router.post("/ai", response_model=StudyResponse)
async def generate_study_material(
    body: StudyRequest,
    study: StudyMaterialService = Depends(get_study_service),
) -> StudyResponse:
    """Generate a summary, quiz, flashcards, title or card description."""
    actions = {
        "summary": study.generate_summary,
        "full_summary": study.generate_full_summary,
        "quiz": study.generate_quiz,
        "flashcards": study.generate_flashcards,
        "title": study.generate_title,
        "description": study.generate_card_description,
    }
    try:
        result = await actions[body.action](body.content)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except StudyMaterialError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return StudyResponse(result=result)


@router.post("/documents", response_model=CreateDocumentResponse, status_code=201)
async def create_study_document(
    body: CreateDocumentRequest,
    pipeline: ContentPipeline = Depends(get_pipeline),
    study: StudyMaterialService = Depends(get_study_service),
) -> CreateDocumentResponse:
    """Extract a source, store it, then summarize it and store the summary."""
    extracted = await _extract(pipeline, body)
    warnings = list(extracted.warnings)

    title = body.title or (
        strip_site_name(extracted.metadata.title) if extracted.metadata.title else None
    )
    if not title:
        try:
            title = await study.generate_title(extracted.text)
        except StudyMaterialError as e:
            warnings.append(f"Title generation failed: {e}")
            title = DEFAULT_DOCUMENT_TITLE

    source_url = (
        None
        if body.kind == SourceKind.TEXT or body.payload_encoding == "base64"
        else extracted.metadata.source_url
    )
    try:
        stored = create_document(
            DocumentCreate(
                title=title,
                text_content=extracted.text,
                content_type=extracted.source_kind.value,
                user_id=body.user_id,
                source_url=source_url,
            )
        )
    except ValueError as e:
        raise HTTPException(status_code=500, detail="Failed to save document") from e

    try:
        summary = await study.generate_summary(stored.text_content)
        stored = update_document(stored.id, summary=summary)
    except (ValueError, StudyMaterialError) as e:
        warnings.append(f"Summary unavailable: {e}")
        logfire.warning("Document summary failed", document_id=stored.id, error=str(e))

    logger.info(f"Document {stored.id} created from {body.kind.value} source")
    return CreateDocumentResponse(document=stored, warnings=warnings)
