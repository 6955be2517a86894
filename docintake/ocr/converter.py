"""Rasterization of the first PDF page into a size-bounded JPEG.

Pages are rendered into a caller-supplied directory, never next to the
source PDF, so files belonging to the user are left alone. The page is
rendered at decreasing resolutions until the JPEG fits the
size budget. If even the lowest resolution is too large, the image is
recompressed once with Pillow and returned whatever its final size.
"""

import asyncio
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from pdf2image import convert_from_path
from pdf2image.exceptions import (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFPopplerTimeoutError,
    PDFSyntaxError,
)
from PIL import Image

from docintake.exceptions import ConversionError
from docintake.utils.config import ConversionConfig
from docintake.utils.logger import get_logger

logger = get_logger(__name__)

_PDF2IMAGE_ERRORS = (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFPopplerTimeoutError,
    PDFSyntaxError,
    OSError,
)


def remove_quietly(path: Path) -> None:
    """Delete a file, logging instead of raising on failure."""
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not delete temporary file %s: %s", path, exc)


class PdfRasterizer:
    """Renders page 1 of a PDF to a JPEG under a size budget.

    Args:
        config: Resolution ladder, size target, and fallback quality.
        timeout: Seconds allowed for each poppler call.
    """

    def __init__(
        self, config: ConversionConfig | None = None, timeout: float = 60.0
    ) -> None:
        self.config = config or ConversionConfig()
        self.timeout = timeout

    def _render(self, pdf_path: Path, dpi: int, output_dir: Path, stem: str) -> Path:
        paths = convert_from_path(
            str(pdf_path),
            dpi=dpi,
            first_page=1,
            last_page=1,
            fmt="jpeg",
            output_folder=str(output_dir),
            output_file=stem,
            single_file=True,
            paths_only=True,
            timeout=self.timeout,
        )
        if not paths:
            raise ConversionError(f"pdftoppm produced no image for {pdf_path.name}")
        return Path(paths[0])

    def _recompress(self, image_path: Path) -> None:
        with Image.open(image_path) as img:
            rgb = img.convert("RGB")
        rgb.save(image_path, format="JPEG", quality=self.config.fallback_quality, optimize=True)

    async def rasterize(
        self, pdf_path: Path, output_dir: Path, target_size_kb: int | None = None
    ) -> Path:
        """Render the first page of a PDF as a JPEG.

        Args:
            pdf_path: PDF file on disk.
            output_dir: Directory that receives the JPEG.
            target_size_kb: Size budget; defaults to the configured target.

        Returns:
            Path of the rendered JPEG inside ``output_dir``.

        Raises:
            ConversionError: If poppler is missing or rendering fails.
        """
        target = target_size_kb or self.config.target_size_kb
        stem = f"{pdf_path.stem}-page1"
        output: Path | None = None

        try:
            for dpi in self.config.dpi_ladder:
                output = await asyncio.to_thread(self._render, pdf_path, dpi, output_dir, stem)
                size_kb = output.stat().st_size / 1024
                logger.info("Rendered %s at %d DPI: %.2fKB", pdf_path.name, dpi, size_kb)
                if size_kb <= target:
                    return output

            if output is None:
                raise ConversionError("No rasterization resolutions configured")

            await asyncio.to_thread(self._recompress, output)
            logger.info(
                "Recompressed %s at quality %d: %.2fKB",
                output.name,
                self.config.fallback_quality,
                output.stat().st_size / 1024,
            )
            return output
        except ConversionError:
            if output is not None:
                remove_quietly(output)
            raise
        except _PDF2IMAGE_ERRORS as exc:
            if output is not None:
                remove_quietly(output)
            raise ConversionError(f"PDF to image conversion failed: {exc}") from exc

    @asynccontextmanager
    async def rasterized(self, pdf_path: Path) -> AsyncIterator[Path]:
        """Yield a first-page JPEG rendered in a private scratch directory.

        The image and its directory are removed when the block exits.
        """
        with tempfile.TemporaryDirectory(
            prefix="docintake-", ignore_cleanup_errors=True
        ) as scratch:
            image_path = await self.rasterize(pdf_path, Path(scratch))
            try:
                yield image_path
            finally:
                remove_quietly(image_path)
