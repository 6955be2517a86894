"""Thin async wrappers around the poppler and tesseract command-line tools.

Commands are always run from an argument vector, never through a shell,
so file names cannot inject extra commands.
"""

import asyncio
import shutil
from pathlib import Path

from docintake.exceptions import ToolExecutionError, ToolUnavailableError
from docintake.utils.logger import get_logger

logger = get_logger(__name__)

KNOWN_TOOLS = ("pdftotext", "pdftoppm", "pdfinfo", "tesseract")


def is_tool_available(name: str) -> bool:
    """Return whether an executable is on ``PATH``."""
    return shutil.which(name) is not None


def check_tools(tools: tuple[str, ...] = KNOWN_TOOLS) -> dict[str, bool]:
    """Report which local tools are installed and log any that are missing."""
    status = {tool: is_tool_available(tool) for tool in tools}
    for tool, present in status.items():
        if present:
            logger.info("Tool available: %s", tool)
        else:
            logger.warning("Tool not found: %s (related features will degrade)", tool)
    return status


async def run_tool(argv: list[str], timeout: float = 60.0) -> bytes:
    """Run a command and return its stdout.

    Args:
        argv: Command and arguments.
        timeout: Seconds before the child is killed.

    Returns:
        Raw stdout bytes.

    Raises:
        ToolUnavailableError: If the executable does not exist.
        ToolExecutionError: On non-zero exit status or timeout.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise ToolUnavailableError(argv[0]) from exc

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        proc.kill()
        await proc.wait()
        raise ToolExecutionError(
            f"{argv[0]} timed out after {timeout:.0f}s"
        ) from exc

    if proc.returncode != 0:
        detail = stderr.decode("utf-8", errors="replace").strip()
        raise ToolExecutionError(
            f"{argv[0]} exited with status {proc.returncode}: {detail}"
        )
    return stdout


async def extract_native_text(
    pdf_path: Path,
    command: str = "pdftotext",
    timeout: float = 60.0,
    max_chars: int | None = None,
) -> str:
    """Extract the embedded text layer of a PDF with ``pdftotext``.

    Args:
        pdf_path: PDF to read.
        command: ``pdftotext`` executable name or path.
        timeout: Seconds before the command is killed.
        max_chars: Return at most this many characters.

    Returns:
        Decoded text, possibly empty for image-only PDFs.
    """
    stdout = await run_tool([command, str(pdf_path), "-"], timeout=timeout)
    text = stdout.decode("utf-8", errors="replace")
    if max_chars is not None:
        text = text[:max_chars]
    logger.debug("pdftotext returned %d characters from %s", len(text), pdf_path.name)
    return text
