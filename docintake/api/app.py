"""FastAPI application for the document intake service.

Provides endpoints to process an uploaded file or a document URL, plus
status and capability listings.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from docintake import __version__
from docintake.exceptions import (
    DocIntakeError,
    ExtractionError,
    OcrServiceError,
    TransportError,
    UnsupportedInput,
)
from docintake.extraction.fields import DocumentType
from docintake.models import IMAGE_MIME_TYPES, PDF_MIME_TYPE, ExtractionMode
from docintake.ocr.tools import KNOWN_TOOLS, is_tool_available
from docintake.pipeline import (
    DocumentPipeline,
    ProcessingOutcome,
    downloaded_document,
    saved_upload,
)
from docintake.utils.config import load_config
from docintake.utils.logger import get_logger

from .schemas import (
    CapabilitiesResponse,
    ErrorDetail,
    ProcessResponse,
    StatusResponse,
    UrlProcessRequest,
)

logger = get_logger(__name__)

app = FastAPI(
    title="Document Intake API",
    description="Extract text and structured fields from bills, invoices, and receipts",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_ALLOWED_CONTENT_TYPES = {PDF_MIME_TYPE, "application/octet-stream"} | IMAGE_MIME_TYPES

_MODE_DESCRIPTIONS = {
    ExtractionMode.SMART.value: "Detects the best method automatically",
    ExtractionMode.FORCE_OCR.value: "Forces OCR even when the PDF has text",
    ExtractionMode.TEXT_ONLY.value: "Extracts native PDF text only",
}


@lru_cache(maxsize=1)
def _get_pipeline() -> DocumentPipeline:
    """Build the processing pipeline once and share it across requests."""
    return DocumentPipeline(load_config())


def _http_error(exc: DocIntakeError) -> HTTPException:
    """Map a pipeline error to an HTTP error with a remediation hint."""
    if isinstance(exc, UnsupportedInput):
        status_code = 400
    elif isinstance(exc, ExtractionError) and isinstance(
        exc.__cause__, (TransportError, OcrServiceError)
    ):
        status_code = 502
    elif isinstance(exc, TransportError):
        status_code = 502
    else:
        status_code = 500
    detail = ErrorDetail(
        error=exc.message,
        details="Check that the file is valid",
        suggestion=exc.suggestion,
    )
    return HTTPException(status_code=status_code, detail=detail.model_dump())


def _response(
    outcome: ProcessingOutcome, include_raw_text: bool, preview_chars: int
) -> ProcessResponse:
    return ProcessResponse(
        **outcome.to_payload(include_raw_text=include_raw_text, preview_chars=preview_chars)
    )


@app.get("/status", response_model=StatusResponse)
async def status() -> StatusResponse:
    """Return service status and local tool availability."""
    config = _get_pipeline().config
    return StatusResponse(
        status="online",
        version=__version__,
        tools={tool: is_tool_available(tool) for tool in KNOWN_TOOLS},
        ocr_service_configured=bool(config.ocr_service.api_key),
    )


@app.get("/capabilities", response_model=CapabilitiesResponse)
async def capabilities() -> CapabilitiesResponse:
    """List supported formats, document types, and extracted data."""
    config = _get_pipeline().config
    return CapabilitiesResponse(
        supported_formats=["PDF", "JPG", "JPEG", "PNG", "GIF", "BMP"],
        max_file_size=f"{config.upload.max_file_size_mb}MB",
        document_types=[doc_type.label for doc_type in DocumentType],
        extraction_modes=_MODE_DESCRIPTIONS,
        data_extracted=[
            "amounts",
            "dates",
            "tax_ids",
            "emails",
            "phones",
            "reference_numbers",
            "organizations",
            "keywords",
            "specific",
        ],
    )


@app.post("/process", response_model=ProcessResponse)
async def process_document(
    file: Annotated[UploadFile | None, File()] = None,
    mode: Annotated[ExtractionMode, Form()] = ExtractionMode.SMART,
    include_raw_text: Annotated[bool, Form()] = False,
) -> ProcessResponse:
    """Extract text and structured fields from an uploaded document.

    Args:
        file: Uploaded PDF or image.
        mode: Extraction mode (smart, ocr_only, text_only).
        include_raw_text: Return the full text instead of a preview.

    Returns:
        Processing metadata, structured fields, and text.
    """
    if file is None:
        raise _http_error(UnsupportedInput("No file was sent"))

    content_type = (file.content_type or "application/octet-stream").lower()
    if content_type not in _ALLOWED_CONTENT_TYPES:
        raise _http_error(UnsupportedInput(f"Unsupported file type: {content_type}"))

    pipeline = _get_pipeline()
    upload = pipeline.config.upload
    content = await file.read()
    if len(content) > upload.max_file_size_bytes:
        raise HTTPException(
            status_code=413,
            detail=ErrorDetail(
                error=f"File exceeds the {upload.max_file_size_mb}MB limit",
                details=f"Received {len(content)} bytes",
            ).model_dump(),
        )

    filename = file.filename or "document"
    try:
        async with saved_upload(content, filename, content_type, upload) as document:
            outcome = await pipeline.process(document, mode)
    except DocIntakeError as exc:
        logger.error("Processing failed for %s: %s", filename, exc.message)
        raise _http_error(exc) from exc

    return _response(outcome, include_raw_text, upload.raw_text_preview_chars)


@app.post("/process/url", response_model=ProcessResponse)
async def process_url(request: UrlProcessRequest) -> ProcessResponse:
    """Download a document from a URL and process it."""
    pipeline = _get_pipeline()
    upload = pipeline.config.upload
    try:
        async with downloaded_document(request.url, upload) as document:
            outcome = await pipeline.process(document, request.mode)
    except DocIntakeError as exc:
        logger.error("Processing failed for %s: %s", request.url, exc.message)
        raise _http_error(exc) from exc

    return _response(outcome, request.include_raw_text, upload.raw_text_preview_chars)
