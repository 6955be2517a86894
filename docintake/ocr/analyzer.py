"""PDF analysis: does the document carry a usable text layer?

A PDF counts as text bearing when the first ``sample_chars`` characters
of its native text hold more than ``text_threshold`` non-whitespace
characters. Anything that goes wrong while looking produces a degraded
verdict that routes the document through OCR instead of failing the
request.
"""

from pathlib import Path

from docintake.exceptions import DocIntakeError
from docintake.models import PdfAnalysis
from docintake.utils.config import AnalysisConfig, ToolsConfig
from docintake.utils.logger import get_logger

from .tools import extract_native_text

logger = get_logger(__name__)


def count_meaningful_chars(text: str) -> int:
    """Count characters that are not whitespace."""
    return sum(1 for ch in text if not ch.isspace())


class PdfAnalyzer:
    """Classifies PDFs as text bearing or image bearing.

    Args:
        config: Analysis thresholds.
        tools: Command settings for ``pdftotext``.
    """

    def __init__(
        self,
        config: AnalysisConfig | None = None,
        tools: ToolsConfig | None = None,
    ) -> None:
        self.config = config or AnalysisConfig()
        self.tools = tools or ToolsConfig()

    def verdict(self, sample_text: str, size_bytes: int) -> PdfAnalysis:
        """Build the analysis for a text sample and file size."""
        has_text = count_meaningful_chars(sample_text) > self.config.text_threshold
        needs_ocr = not has_text
        return PdfAnalysis(
            has_extractable_text=has_text,
            sample_text=sample_text,
            size_bytes=size_bytes,
            needs_ocr=needs_ocr,
            should_rasterize=needs_ocr
            and size_bytes > self.config.rasterize_threshold_bytes,
        )

    async def analyze(self, pdf_path: Path) -> PdfAnalysis:
        """Inspect a PDF. Never raises.

        Args:
            pdf_path: PDF file on disk.

        Returns:
            The analysis verdict, degraded if inspection failed.
        """
        size_bytes = 0
        try:
            size_bytes = pdf_path.stat().st_size
            sample = await extract_native_text(
                pdf_path,
                command=self.tools.pdftotext_cmd,
                timeout=self.tools.timeout_seconds,
                max_chars=self.config.sample_chars,
            )
        except (DocIntakeError, OSError) as exc:
            reason = getattr(exc, "message", None) or str(exc)
            logger.warning(
                "PDF analysis degraded for %s, assuming OCR is needed: %s",
                pdf_path.name,
                reason,
            )
            return PdfAnalysis(
                has_extractable_text=False,
                sample_text="",
                size_bytes=size_bytes,
                needs_ocr=True,
                should_rasterize=size_bytes > self.config.rasterize_threshold_bytes,
                error=reason,
            )

        analysis = self.verdict(sample, size_bytes)
        logger.info(
            "Analyzed %s: has_text=%s size=%.1fKB rasterize=%s",
            pdf_path.name,
            analysis.has_extractable_text,
            size_bytes / 1024,
            analysis.should_rasterize,
        )
        return analysis
