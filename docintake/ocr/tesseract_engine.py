"""Local tesseract recognition, the fallback when remote OCR is unusable.

PDFs are rendered in memory (page 1 only) so no temporary image file is
written on this path.
"""

import asyncio
import shutil
from pathlib import Path

import pytesseract
from pdf2image import convert_from_path
from pdf2image.exceptions import PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError
from PIL import Image

from docintake.exceptions import LocalOcrError, ToolUnavailableError
from docintake.utils.config import LocalOCRConfig
from docintake.utils.logger import get_logger

from .preprocess import prepare_for_ocr

logger = get_logger(__name__)


class TesseractEngine:
    """Wrapper around pytesseract for single-page recognition.

    Args:
        config: Language, page segmentation mode, and rendering DPI.
    """

    def __init__(self, config: LocalOCRConfig | None = None) -> None:
        self.config = config or LocalOCRConfig()
        if self.config.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.config.tesseract_cmd

    @property
    def command(self) -> str:
        return self.config.tesseract_cmd or "tesseract"

    def is_available(self) -> bool:
        """Whether local OCR is enabled and the binary is installed."""
        return self.config.enabled and shutil.which(self.command) is not None

    def _load_page(self, path: Path, is_image: bool) -> Image.Image:
        if is_image:
            with Image.open(path) as img:
                img.load()
                return img.copy()
        pages = convert_from_path(
            str(path), dpi=self.config.pdf_dpi, first_page=1, last_page=1
        )
        if not pages:
            raise LocalOcrError(f"No pages rendered from {path.name}")
        return pages[0]

    def _recognize_sync(self, path: Path, is_image: bool) -> str:
        try:
            page = self._load_page(path, is_image)
            prepared = prepare_for_ocr(page, binarize=self.config.binarize)
            return pytesseract.image_to_string(
                prepared, lang=self.config.lang, config=f"--psm {self.config.psm}"
            )
        except pytesseract.TesseractNotFoundError as exc:
            raise ToolUnavailableError(self.command) from exc
        except PDFInfoNotInstalledError as exc:
            raise ToolUnavailableError("pdfinfo") from exc
        except (pytesseract.TesseractError, PDFPageCountError, PDFSyntaxError, OSError) as exc:
            raise LocalOcrError(f"Local OCR failed: {exc}") from exc

    async def recognize(self, path: Path, is_image: bool) -> str:
        """Recognize the first page of an image or PDF.

        Raises:
            ToolUnavailableError: If tesseract or poppler is missing.
            LocalOcrError: If recognition fails.
        """
        text = await asyncio.to_thread(self._recognize_sync, path, is_image)
        logger.info("Local OCR returned %d characters for %s", len(text), path.name)
        return text
