"""End-to-end processing of one document.

``DocumentPipeline.process`` runs text extraction and structured
extraction and returns a ``ProcessingOutcome``. Files the pipeline
creates itself (saved uploads and downloaded URLs) are managed by the
``saved_upload`` and ``downloaded_document`` context managers, which
delete them on every exit path.
"""

import asyncio
import mimetypes
import random
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import unquote, urlparse

import httpx

from docintake.exceptions import TransportError, UnsupportedInput
from docintake.extraction.fields import ExtractedFields
from docintake.extraction.structured import StructuredExtractor
from docintake.models import ExtractionMode, SourceDocument, TextExtraction
from docintake.ocr.converter import remove_quietly
from docintake.ocr.dispatcher import TextExtractionDispatcher
from docintake.utils.config import AppConfig, UploadConfig
from docintake.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ProcessingOutcome:
    """Result of processing one document."""

    document: SourceDocument
    mode: ExtractionMode
    extraction: TextExtraction
    fields: ExtractedFields
    processed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def text(self) -> str:
        return self.extraction.text

    def preview(self, limit: int) -> str:
        text = self.extraction.text
        return text if len(text) <= limit else text[:limit] + "..."

    def to_payload(self, include_raw_text: bool = False, preview_chars: int = 500) -> dict:
        """JSON-serializable response body."""
        analysis = self.extraction.analysis
        return {
            "success": True,
            "file": {
                "name": self.document.filename,
                "size": self.document.size_bytes,
                "type": self.document.mime_type,
            },
            "processing_info": {
                "mode": self.mode.value,
                "method": self.extraction.method.value,
                "pdf_has_text": bool(analysis and analysis.has_extractable_text),
                "used_ocr": self.extraction.used_ocr,
                "converted_to_image": self.extraction.rasterized,
                "analysis_error": analysis.error if analysis else None,
                "processing_time": self.processed_at.isoformat(),
            },
            "document_type": self.fields.document_type.value,
            "document_label": self.fields.document_type.label,
            "extracted_data": self.fields.to_dict(),
            "raw_text": self.text if include_raw_text else self.preview(preview_chars),
            "confidence_score": self.fields.confidence,
        }


def unique_upload_name(filename: str) -> str:
    """Name for a stored upload: epoch millis, a random suffix, original extension.

    Collisions are unlikely at normal load but not impossible.
    """
    suffix = Path(filename).suffix.lower()
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{suffix}"


@asynccontextmanager
async def saved_upload(
    content: bytes, filename: str, mime_type: str, config: UploadConfig
) -> AsyncIterator[SourceDocument]:
    """Write an upload into the upload directory and delete it afterwards.

    Raises:
        UnsupportedInput: If the payload is empty or over the size limit.
    """
    if not content:
        raise UnsupportedInput("No file was sent")
    if len(content) > config.max_file_size_bytes:
        raise UnsupportedInput(
            f"File exceeds the {config.max_file_size_mb}MB limit",
        )

    upload_dir = Path(config.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    path = upload_dir / unique_upload_name(filename)
    try:
        await asyncio.to_thread(path.write_bytes, content)
        yield SourceDocument(
            path=path, mime_type=mime_type, filename=filename, size_bytes=len(content)
        )
    finally:
        remove_quietly(path)


def _filename_from_url(url: str) -> str:
    name = Path(unquote(urlparse(url).path)).name
    return name or "document"


@asynccontextmanager
async def downloaded_document(
    url: str,
    config: UploadConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[SourceDocument]:
    """Download a remote document into the upload directory.

    The body is streamed and aborted once it exceeds the size limit.

    Raises:
        UnsupportedInput: If the URL is empty, not HTTP(S), or too large.
        TransportError: On network failure, timeout, or an error status.
    """
    if not url or not url.strip():
        raise UnsupportedInput("No URL was provided")
    if urlparse(url).scheme not in ("http", "https"):
        raise UnsupportedInput(f"Unsupported URL scheme: {url}")

    filename = _filename_from_url(url)
    limit = config.max_file_size_bytes
    chunks: list[bytes] = []
    received = 0

    try:
        async with httpx.AsyncClient(
            timeout=config.download_timeout_seconds,
            follow_redirects=True,
            transport=transport,
        ) as client:
            async with client.stream("GET", url) as response:
                response.raise_for_status()
                header = response.headers.get("content-type", "")
                mime_type = header.split(";")[0].strip().lower()
                async for chunk in response.aiter_bytes():
                    received += len(chunk)
                    if received > limit:
                        raise UnsupportedInput(
                            f"Download exceeds the {config.max_file_size_mb}MB limit"
                        )
                    chunks.append(chunk)
    except httpx.TimeoutException as exc:
        raise TransportError(f"Download timed out: {url}") from exc
    except httpx.HTTPStatusError as exc:
        raise TransportError(
            f"Download failed with HTTP {exc.response.status_code}: {url}"
        ) from exc
    except httpx.HTTPError as exc:
        raise TransportError(f"Download failed: {exc}") from exc

    if not mime_type or mime_type == "application/octet-stream":
        mime_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"

    logger.info("Downloaded %s (%d bytes, %s)", url, received, mime_type)
    async with saved_upload(b"".join(chunks), filename, mime_type, config) as document:
        yield document


class DocumentPipeline:
    """Runs text extraction followed by structured extraction.

    Args:
        config: Application configuration.
        dispatcher: Text extraction dispatcher; built from config if omitted.
        extractor: Structured field extractor.
    """

    def __init__(
        self,
        config: AppConfig,
        dispatcher: TextExtractionDispatcher | None = None,
        extractor: StructuredExtractor | None = None,
    ) -> None:
        self.config = config
        self.dispatcher = dispatcher or TextExtractionDispatcher.from_config(config)
        self.extractor = extractor or StructuredExtractor()

    async def process(
        self, document: SourceDocument, mode: ExtractionMode = ExtractionMode.SMART
    ) -> ProcessingOutcome:
        """Process one document.

        Raises:
            UnsupportedInput: If the file type is not a PDF or image.
            ExtractionError: If no text could be obtained.
        """
        if not document.is_supported:
            raise UnsupportedInput(f"Unsupported file type: {document.mime_type}")

        logger.info(
            "Processing %s (%.2fKB, mode=%s)",
            document.filename,
            document.size_bytes / 1024,
            mode.value,
        )
        extraction = await self.dispatcher.extract_text(document, mode)
        fields = self.extractor.extract(extraction.text)
        logger.info(
            "Finished %s: type=%s confidence=%d",
            document.filename,
            fields.document_type.value,
            fields.confidence,
        )
        return ProcessingOutcome(
            document=document, mode=mode, extraction=extraction, fields=fields
        )
