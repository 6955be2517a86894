"""Exceptions raised by the document intake pipeline.

Hierarchy::

    DocIntakeError
    ├── UnsupportedInput
    ├── ToolUnavailableError
    ├── ToolExecutionError
    ├── ConversionError
    ├── TransportError
    ├── OcrServiceError
    ├── LocalOcrError
    └── ExtractionError

Every error carries a human-readable ``message`` and an optional
``suggestion`` telling the caller what to try next. Analysis failures
are not raised at all; they end up in ``PdfAnalysis.error``.
"""


class DocIntakeError(Exception):
    """Base class for all pipeline errors.

    Attributes:
        message: Human-readable error message.
        suggestion: Remediation hint shown to the caller, if any.
    """

    default_suggestion: str | None = None

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion or self.default_suggestion
        super().__init__(message)


class UnsupportedInput(DocIntakeError):
    """No file or URL was given, or the payload cannot be processed."""

    default_suggestion = "Send a PDF or image file (JPG, PNG, GIF, BMP) up to 50MB"


class ToolUnavailableError(DocIntakeError):
    """A local command-line tool is not installed."""

    def __init__(self, tool: str) -> None:
        self.tool = tool
        super().__init__(
            f"Required tool '{tool}' is not installed",
            suggestion=f"Install '{tool}' (poppler-utils / tesseract-ocr) on the server",
        )


class ToolExecutionError(DocIntakeError):
    """A local tool ran but failed or timed out."""


class ConversionError(DocIntakeError):
    """PDF rasterization failed or no rendering capability is available."""

    default_suggestion = "Check that poppler-utils is installed and the PDF is valid"


class TransportError(DocIntakeError):
    """Network failure or timeout talking to the OCR service."""

    default_suggestion = "The OCR service could not be reached; try again later"


class OcrServiceError(DocIntakeError):
    """The OCR service reported a processing failure."""

    default_suggestion = "Try mode=ocr_only if the PDF is image based"


class LocalOcrError(DocIntakeError):
    """Local tesseract recognition failed."""


class ExtractionError(DocIntakeError):
    """Text could not be extracted; ``__cause__`` holds the deepest failure."""

    default_suggestion = "Check that the file is valid; try mode=ocr_only if the PDF is image based"

    @classmethod
    def wrap(cls, exc: DocIntakeError) -> "ExtractionError":
        """Build an extraction error that keeps the cause's hint."""
        return cls(exc.message, suggestion=exc.suggestion)
