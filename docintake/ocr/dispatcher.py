"""Selects and runs the text extraction strategy for a document.

For PDFs the analyzer runs first and, together with the extraction
mode, decides between native text, OCR of the original file, and
rasterize-then-OCR. Images always go straight to OCR.

OCR itself prefers the remote service and falls back to local
tesseract when the service is unreachable, reports an error, or has no
API key configured.
"""

from pathlib import Path

from docintake.exceptions import (
    DocIntakeError,
    ExtractionError,
    OcrServiceError,
    ToolExecutionError,
    ToolUnavailableError,
    TransportError,
)
from docintake.models import (
    ExtractionMethod,
    ExtractionMode,
    PDF_MIME_TYPE,
    PdfAnalysis,
    SourceDocument,
    TextExtraction,
)
from docintake.utils.config import AppConfig
from docintake.utils.logger import get_logger

from .analyzer import PdfAnalyzer
from .converter import PdfRasterizer
from .ocr_space_client import OcrSpaceClient
from .tesseract_engine import TesseractEngine
from .tools import extract_native_text

logger = get_logger(__name__)

RASTERIZED_MIME_TYPE = "image/jpeg"


class TextExtractionDispatcher:
    """Runs the extraction state machine for one document at a time.

    Args:
        config: Application configuration.
        analyzer: PDF analyzer; built from config if omitted.
        rasterizer: PDF rasterizer; built from config if omitted.
        ocr_client: Remote OCR client, or ``None`` to use local OCR only.
        local_engine: Local tesseract engine; built from config if omitted.
    """

    def __init__(
        self,
        config: AppConfig,
        analyzer: PdfAnalyzer | None = None,
        rasterizer: PdfRasterizer | None = None,
        ocr_client: OcrSpaceClient | None = None,
        local_engine: TesseractEngine | None = None,
    ) -> None:
        self.config = config
        self.analyzer = analyzer or PdfAnalyzer(config.analysis, config.tools)
        self.rasterizer = rasterizer or PdfRasterizer(
            config.conversion, timeout=config.tools.timeout_seconds
        )
        self.ocr_client = ocr_client
        self.local_engine = local_engine or TesseractEngine(config.local_ocr)

    @classmethod
    def from_config(cls, config: AppConfig) -> "TextExtractionDispatcher":
        api_key = config.ocr_service.resolved_api_key()
        client = OcrSpaceClient(config.ocr_service, api_key) if api_key else None
        return cls(config, ocr_client=client)

    async def extract_text(
        self, document: SourceDocument, mode: ExtractionMode = ExtractionMode.SMART
    ) -> TextExtraction:
        """Extract raw text from a document.

        Args:
            document: File to read.
            mode: Which strategies are allowed.

        Returns:
            The text and how it was obtained.

        Raises:
            ExtractionError: Wrapping the deepest failure.
        """
        try:
            if not document.is_pdf:
                logger.info("Processing image %s with OCR", document.filename)
                text, method = await self._ocr(document.path, document.mime_type)
                return TextExtraction(text=text, method=method)

            analysis = await self.analyzer.analyze(document.path)
            return await self._extract_pdf(document, analysis, mode)
        except ExtractionError:
            raise
        except DocIntakeError as exc:
            logger.error("Text extraction failed for %s: %s", document.filename, exc.message)
            raise ExtractionError.wrap(exc) from exc

    async def _extract_pdf(
        self, document: SourceDocument, analysis: PdfAnalysis, mode: ExtractionMode
    ) -> TextExtraction:
        if mode is ExtractionMode.TEXT_ONLY:
            if not analysis.has_extractable_text:
                logger.warning(
                    "%s has no native text and mode is text_only; returning empty text",
                    document.filename,
                )
                return TextExtraction(text="", method=ExtractionMethod.NONE, analysis=analysis)
            text = await self._native(document.path)
            return TextExtraction(text=text, method=ExtractionMethod.NATIVE, analysis=analysis)

        if mode is ExtractionMode.FORCE_OCR:
            return await self._ocr_pdf(document, analysis, self._is_large(analysis))

        if analysis.has_extractable_text:
            try:
                text = await self._native(document.path)
                return TextExtraction(text=text, method=ExtractionMethod.NATIVE, analysis=analysis)
            except (ToolUnavailableError, ToolExecutionError) as exc:
                logger.warning(
                    "Native extraction failed for %s (%s), falling back to OCR",
                    document.filename,
                    exc.message,
                )
        return await self._ocr_pdf(document, analysis, self._is_large(analysis))

    def _is_large(self, analysis: PdfAnalysis) -> bool:
        # Size alone decides; a degraded analysis still records the real size.
        return analysis.size_bytes > self.config.analysis.rasterize_threshold_bytes

    async def _native(self, path: Path) -> str:
        logger.info("PDF has native text, extracting directly")
        return await extract_native_text(
            path,
            command=self.config.tools.pdftotext_cmd,
            timeout=self.config.tools.timeout_seconds,
        )

    async def _ocr_pdf(
        self, document: SourceDocument, analysis: PdfAnalysis, rasterize: bool
    ) -> TextExtraction:
        if rasterize:
            logger.info("Rasterizing %s before OCR", document.filename)
            async with self.rasterizer.rasterized(document.path) as image_path:
                text, method = await self._ocr(image_path, RASTERIZED_MIME_TYPE)
            return TextExtraction(text=text, method=method, rasterized=True, analysis=analysis)

        logger.info("Sending %s directly to OCR", document.filename)
        text, method = await self._ocr(document.path, PDF_MIME_TYPE)
        return TextExtraction(text=text, method=method, analysis=analysis)

    async def _ocr(self, path: Path, mime_type: str) -> tuple[str, ExtractionMethod]:
        """Recognize a file remotely, falling back to local tesseract."""
        is_image = mime_type != PDF_MIME_TYPE
        if self.ocr_client is None:
            if not self.local_engine.is_available():
                raise ExtractionError(
                    "No OCR capability available: no API key configured and tesseract is not installed",
                    suggestion="Set OCR_SPACE_API_KEY or install tesseract-ocr",
                )
            return await self.local_engine.recognize(path, is_image), ExtractionMethod.LOCAL_OCR

        try:
            text = await self.ocr_client.recognize(path, mime_type)
            return text, ExtractionMethod.REMOTE_OCR
        except (TransportError, OcrServiceError) as exc:
            if not self.local_engine.is_available():
                raise
            logger.warning("Remote OCR failed (%s), falling back to local tesseract", exc.message)
            return await self.local_engine.recognize(path, is_image), ExtractionMethod.LOCAL_OCR
