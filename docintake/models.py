"""Data types passed between the analyzer, converter, and dispatcher."""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

PDF_MIME_TYPE = "application/pdf"

IMAGE_MIME_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/bmp",
        "image/tiff",
        "image/webp",
    }
)

_GENERIC_MIME_TYPES = {"application/octet-stream", "binary/octet-stream", ""}


class ExtractionMode(StrEnum):
    """Which extraction branches the dispatcher may take."""

    SMART = "smart"
    FORCE_OCR = "ocr_only"
    TEXT_ONLY = "text_only"


class ExtractionMethod(StrEnum):
    """Engine that produced the raw text."""

    NATIVE = "native"
    REMOTE_OCR = "remote_ocr"
    LOCAL_OCR = "local_ocr"
    NONE = "none"


@dataclass(frozen=True)
class SourceDocument:
    """An uploaded or downloaded file waiting to be processed."""

    path: Path
    mime_type: str
    filename: str
    size_bytes: int

    @classmethod
    def from_path(
        cls, path: Path, mime_type: str, filename: str | None = None
    ) -> "SourceDocument":
        return cls(
            path=path,
            mime_type=mime_type,
            filename=filename or path.name,
            size_bytes=path.stat().st_size,
        )

    @property
    def is_pdf(self) -> bool:
        if self.mime_type == PDF_MIME_TYPE:
            return True
        return (
            self.mime_type in _GENERIC_MIME_TYPES
            and Path(self.filename).suffix.lower() == ".pdf"
        )

    @property
    def is_supported(self) -> bool:
        return self.is_pdf or self.mime_type in IMAGE_MIME_TYPES


@dataclass(frozen=True)
class PdfAnalysis:
    """Verdict on whether a PDF needs OCR and rasterization.

    ``needs_ocr`` is always the negation of ``has_extractable_text``.
    When ``error`` is set the analysis was degraded: the PDF is treated as
    needing OCR and ``should_rasterize`` still follows the file size.
    """

    has_extractable_text: bool
    sample_text: str
    size_bytes: int
    needs_ocr: bool
    should_rasterize: bool
    error: str | None = None

    @property
    def degraded(self) -> bool:
        return self.error is not None


@dataclass
class TextExtraction:
    """Raw text plus a record of how it was obtained."""

    text: str
    method: ExtractionMethod
    rasterized: bool = False
    analysis: PdfAnalysis | None = None

    @property
    def used_ocr(self) -> bool:
        return self.method in (ExtractionMethod.REMOTE_OCR, ExtractionMethod.LOCAL_OCR)
