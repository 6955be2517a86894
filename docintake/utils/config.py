"""Configuration for the document intake service.

Settings live in a YAML file (``configs/config.yaml`` by default) and
are validated into pydantic models. Every section has working defaults,
so a missing file still yields a usable configuration. The OCR.space
API key can also come from the ``OCR_SPACE_API_KEY`` environment
variable, which wins over the file.
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

API_KEY_ENV_VAR = "OCR_SPACE_API_KEY"

# Public demo key published by OCR.space; rate limited, development only.
DEMO_API_KEY = "helloworld"

MIB = 1024 * 1024


class AnalysisConfig(BaseModel):
    """Thresholds used to decide whether a PDF carries native text."""

    text_threshold: int = 50
    sample_chars: int = 1000
    rasterize_threshold_bytes: int = MIB


class ConversionConfig(BaseModel):
    """PDF page rasterization settings."""

    dpi_ladder: list[int] = Field(default_factory=lambda: [200, 150, 120, 100, 80])
    target_size_kb: int = 900
    fallback_quality: int = 70


class OCRServiceConfig(BaseModel):
    """Remote OCR.space service settings."""

    endpoint: str = "https://api.ocr.space/parse/image"
    api_key: str | None = None
    allow_demo_key: bool = True
    language: str = "por"
    engine: int = 2
    detect_tables: bool = True
    detect_orientation: bool = True
    scale: bool = True
    timeout_seconds: float = 60.0

    def resolved_api_key(self) -> str | None:
        """Return the key to send, falling back to the demo key if allowed."""
        if self.api_key:
            return self.api_key
        if self.allow_demo_key:
            logger.warning(
                "No OCR.space API key configured, using the public demo key"
            )
            return DEMO_API_KEY
        return None


class LocalOCRConfig(BaseModel):
    """Local tesseract fallback settings."""

    enabled: bool = True
    tesseract_cmd: str | None = None
    lang: str = "por"
    psm: int = 3
    pdf_dpi: int = 300
    binarize: bool = True


class ToolsConfig(BaseModel):
    """Command-line tool invocation settings."""

    pdftotext_cmd: str = "pdftotext"
    timeout_seconds: float = 60.0


class UploadConfig(BaseModel):
    """Upload and download limits."""

    upload_dir: str = "uploads"
    max_file_size_mb: int = 50
    download_timeout_seconds: float = 30.0
    raw_text_preview_chars: int = 500

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * MIB


class AppConfig(BaseModel):
    """Top-level application configuration."""

    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    conversion: ConversionConfig = Field(default_factory=ConversionConfig)
    ocr_service: OCRServiceConfig = Field(default_factory=OCRServiceConfig)
    local_ocr: LocalOCRConfig = Field(default_factory=LocalOCRConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    raw: dict = {}
    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    else:
        logger.info("No config file found at %s, using defaults", path)

    config = AppConfig(**raw)

    env_key = os.environ.get(API_KEY_ENV_VAR)
    if env_key:
        config.ocr_service.api_key = env_key
    return config
