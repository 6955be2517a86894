"""Tests for the subprocess wrappers."""

import asyncio
import sys
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from docintake.exceptions import ToolExecutionError, ToolUnavailableError
from docintake.ocr.tools import check_tools, extract_native_text, run_tool


class TestRunTool:
    """Tests for run_tool."""

    def test_returns_stdout(self) -> None:
        out = asyncio.run(run_tool([sys.executable, "-c", "print('ok')"]))
        assert out.strip() == b"ok"

    def test_missing_executable(self) -> None:
        with pytest.raises(ToolUnavailableError) as exc_info:
            asyncio.run(run_tool(["definitely-not-a-real-tool-xyz", "--help"]))
        assert exc_info.value.tool == "definitely-not-a-real-tool-xyz"
        assert exc_info.value.suggestion is not None

    def test_nonzero_exit(self) -> None:
        script = "import sys; sys.stderr.write('bad pdf'); sys.exit(3)"
        with pytest.raises(ToolExecutionError, match="status 3: bad pdf"):
            asyncio.run(run_tool([sys.executable, "-c", script]))

    def test_timeout_kills_child(self) -> None:
        with pytest.raises(ToolExecutionError, match="timed out"):
            asyncio.run(
                run_tool([sys.executable, "-c", "import time; time.sleep(10)"], timeout=0.5)
            )

    def test_file_names_are_not_shell_interpreted(self, tmp_path: Path) -> None:
        marker = tmp_path / "pwned"
        name = f"x; touch {marker}"
        asyncio.run(run_tool([sys.executable, "-c", "import sys; print(sys.argv[1])", name]))
        assert not marker.exists()


class TestExtractNativeText:
    """Tests for the pdftotext wrapper."""

    def test_argument_vector_and_truncation(self, tmp_path: Path) -> None:
        pdf = tmp_path / "doc.pdf"
        runner = AsyncMock(return_value="Olá mundo".encode("utf-8"))
        with patch("docintake.ocr.tools.run_tool", runner):
            text = asyncio.run(extract_native_text(pdf, max_chars=3))

        assert text == "Olá"
        assert runner.await_args.args[0] == ["pdftotext", str(pdf), "-"]

    def test_invalid_utf8_replaced(self, tmp_path: Path) -> None:
        runner = AsyncMock(return_value=b"abc\xff")
        with patch("docintake.ocr.tools.run_tool", runner):
            text = asyncio.run(extract_native_text(tmp_path / "doc.pdf"))
        assert text.startswith("abc")


class TestCheckTools:
    """Tests for startup tool detection."""

    def test_reports_presence(self) -> None:
        def fake_which(name: str) -> str | None:
            return "/usr/bin/pdftotext" if name == "pdftotext" else None

        with patch("docintake.ocr.tools.shutil.which", side_effect=fake_which):
            status = check_tools(("pdftotext", "tesseract"))

        assert status == {"pdftotext": True, "tesseract": False}
