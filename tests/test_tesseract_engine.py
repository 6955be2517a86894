"""Tests for the local tesseract engine wrapper."""

import asyncio
from pathlib import Path
from unittest.mock import patch

import pytest
import pytesseract
from pdf2image.exceptions import PDFInfoNotInstalledError
from PIL import Image

from docintake.exceptions import LocalOcrError, ToolUnavailableError
from docintake.ocr.tesseract_engine import TesseractEngine
from docintake.utils.config import LocalOCRConfig


@pytest.fixture
def png_path(tmp_path: Path) -> Path:
    path = tmp_path / "page.png"
    Image.new("RGB", (60, 30), color="white").save(path)
    return path


class TestAvailability:
    """Tests for is_available."""

    def test_disabled_is_unavailable(self) -> None:
        engine = TesseractEngine(LocalOCRConfig(enabled=False))
        with patch("docintake.ocr.tesseract_engine.shutil.which", return_value="/usr/bin/tesseract"):
            assert engine.is_available() is False

    def test_missing_binary(self) -> None:
        with patch("docintake.ocr.tesseract_engine.shutil.which", return_value=None):
            assert TesseractEngine().is_available() is False

    def test_installed(self) -> None:
        with patch("docintake.ocr.tesseract_engine.shutil.which", return_value="/usr/bin/tesseract"):
            assert TesseractEngine().is_available() is True


class TestRecognize:
    """Tests for recognition with pytesseract mocked out."""

    def test_image_recognition_arguments(self, png_path: Path) -> None:
        engine = TesseractEngine(LocalOCRConfig(lang="por", psm=6))
        with patch(
            "docintake.ocr.tesseract_engine.pytesseract.image_to_string",
            return_value="Recibo",
        ) as mock_ocr:
            text = asyncio.run(engine.recognize(png_path, is_image=True))

        assert text == "Recibo"
        args, kwargs = mock_ocr.call_args
        assert isinstance(args[0], Image.Image)
        assert args[0].mode == "L"
        assert kwargs == {"lang": "por", "config": "--psm 6"}

    def test_pdf_rendered_in_memory(self, tmp_path: Path) -> None:
        page = Image.new("RGB", (60, 30), color="white")
        pdf = tmp_path / "scan.pdf"
        pdf.write_bytes(b"%PDF-1.4\n")
        engine = TesseractEngine(LocalOCRConfig(pdf_dpi=200))
        with (
            patch(
                "docintake.ocr.tesseract_engine.convert_from_path", return_value=[page]
            ) as mock_convert,
            patch(
                "docintake.ocr.tesseract_engine.pytesseract.image_to_string",
                return_value="texto",
            ),
        ):
            assert asyncio.run(engine.recognize(pdf, is_image=False)) == "texto"

        assert mock_convert.call_args.kwargs == {"dpi": 200, "first_page": 1, "last_page": 1}

    def test_tesseract_missing(self, png_path: Path) -> None:
        with patch(
            "docintake.ocr.tesseract_engine.pytesseract.image_to_string",
            side_effect=pytesseract.TesseractNotFoundError(),
        ):
            with pytest.raises(ToolUnavailableError):
                asyncio.run(TesseractEngine().recognize(png_path, is_image=True))

    def test_poppler_missing(self, tmp_path: Path) -> None:
        with patch(
            "docintake.ocr.tesseract_engine.convert_from_path",
            side_effect=PDFInfoNotInstalledError("no pdfinfo"),
        ):
            with pytest.raises(ToolUnavailableError) as exc_info:
                asyncio.run(TesseractEngine().recognize(tmp_path / "x.pdf", is_image=False))
        assert exc_info.value.tool == "pdfinfo"

    def test_unreadable_image(self, tmp_path: Path) -> None:
        bogus = tmp_path / "bogus.png"
        bogus.write_bytes(b"not an image")
        with pytest.raises(LocalOcrError):
            asyncio.run(TesseractEngine().recognize(bogus, is_image=True))

    def test_no_pages_rendered(self, tmp_path: Path) -> None:
        with patch("docintake.ocr.tesseract_engine.convert_from_path", return_value=[]):
            with pytest.raises(LocalOcrError):
                asyncio.run(TesseractEngine().recognize(tmp_path / "x.pdf", is_image=False))
