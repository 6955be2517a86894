"""Tests for the PDF text-layer analyzer."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from docintake.exceptions import ToolExecutionError, ToolUnavailableError
from docintake.ocr.analyzer import PdfAnalyzer, count_meaningful_chars
from docintake.utils.config import AnalysisConfig

MIB = 1024 * 1024


@pytest.fixture
def small_pdf(tmp_path: Path) -> Path:
    path = tmp_path / "small.pdf"
    path.write_bytes(b"%PDF-1.4\n" + b"0" * 100)
    return path


@pytest.fixture
def large_pdf(tmp_path: Path) -> Path:
    path = tmp_path / "large.pdf"
    path.write_bytes(b"%PDF-1.4\n" + b"0" * (2 * MIB))
    return path


class TestCountMeaningfulChars:
    """Tests for whitespace-insensitive character counting."""

    def test_ignores_whitespace(self) -> None:
        assert count_meaningful_chars(" a\tb\nc  ") == 3

    def test_empty(self) -> None:
        assert count_meaningful_chars("") == 0


class TestVerdict:
    """Tests for the threshold arithmetic."""

    def setup_method(self) -> None:
        self.analyzer = PdfAnalyzer(AnalysisConfig())

    def test_exactly_threshold_is_not_text(self) -> None:
        result = self.analyzer.verdict("x" * 50, 100)
        assert result.has_extractable_text is False
        assert result.needs_ocr is True

    def test_one_over_threshold_is_text(self) -> None:
        result = self.analyzer.verdict("x" * 51, 100)
        assert result.has_extractable_text is True
        assert result.needs_ocr is False
        assert result.should_rasterize is False

    def test_whitespace_does_not_count(self) -> None:
        result = self.analyzer.verdict("x " * 50, 100)
        assert result.has_extractable_text is False

    def test_large_image_pdf_rasterizes(self) -> None:
        assert self.analyzer.verdict("", 2 * MIB).should_rasterize is True

    def test_exactly_one_mib_does_not_rasterize(self) -> None:
        assert self.analyzer.verdict("", MIB).should_rasterize is False

    def test_large_text_pdf_never_rasterizes(self) -> None:
        assert self.analyzer.verdict("x" * 200, 5 * MIB).should_rasterize is False


class TestAnalyze:
    """Tests for the async analyze entry point."""

    def test_text_pdf(self, small_pdf: Path) -> None:
        native = AsyncMock(return_value="Fatura " * 20)
        with patch("docintake.ocr.analyzer.extract_native_text", native):
            result = asyncio.run(PdfAnalyzer().analyze(small_pdf))

        assert result.has_extractable_text is True
        assert result.size_bytes == small_pdf.stat().st_size
        assert result.error is None
        assert native.await_args.kwargs["max_chars"] == 1000

    def test_scanned_large_pdf(self, large_pdf: Path) -> None:
        native = AsyncMock(return_value="  \n ")
        with patch("docintake.ocr.analyzer.extract_native_text", native):
            result = asyncio.run(PdfAnalyzer().analyze(large_pdf))

        assert result.needs_ocr is True
        assert result.should_rasterize is True
        assert result.degraded is False

    def test_missing_tool_degrades(self, small_pdf: Path) -> None:
        native = AsyncMock(side_effect=ToolUnavailableError("pdftotext"))
        with patch("docintake.ocr.analyzer.extract_native_text", native):
            result = asyncio.run(PdfAnalyzer().analyze(small_pdf))

        assert result.has_extractable_text is False
        assert result.needs_ocr is True
        assert result.should_rasterize is False
        assert result.size_bytes == small_pdf.stat().st_size
        assert "pdftotext" in result.error

    def test_missing_tool_on_large_pdf_rasterizes(self, large_pdf: Path) -> None:
        native = AsyncMock(side_effect=ToolUnavailableError("pdftotext"))
        with patch("docintake.ocr.analyzer.extract_native_text", native):
            result = asyncio.run(PdfAnalyzer().analyze(large_pdf))

        assert result.degraded is True
        assert result.should_rasterize is True

    def test_tool_failure_degrades(self, small_pdf: Path) -> None:
        native = AsyncMock(side_effect=ToolExecutionError("pdftotext exited with status 1"))
        with patch("docintake.ocr.analyzer.extract_native_text", native):
            result = asyncio.run(PdfAnalyzer().analyze(small_pdf))

        assert result.degraded is True
        assert result.error == "pdftotext exited with status 1"

    def test_missing_file_degrades(self, tmp_path: Path) -> None:
        result = asyncio.run(PdfAnalyzer().analyze(tmp_path / "missing.pdf"))

        assert result.degraded is True
        assert result.size_bytes == 0
        assert result.should_rasterize is False
