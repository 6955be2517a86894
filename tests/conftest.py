"""Shared test fixtures for the document intake test suite."""

from pathlib import Path

import pytest

from docintake.models import SourceDocument
from docintake.utils.config import AppConfig, UploadConfig

UTILITY_BILL_TEXT = (
    "CONTA DE ENERGIA ELETRICA\n"
    "Cliente: Joao da Silva\n"
    "Instalacao: 1234567\n"
    "Consumo: 350 kWh\n"
    "Vencimento: 10/12/2024\n"
    "Total: R$ 150,00\n"
)


@pytest.fixture
def utility_bill_text() -> str:
    """OCR-like text of a utility bill with five specific fields."""
    return UTILITY_BILL_TEXT


@pytest.fixture
def pdf_document(tmp_path: Path) -> SourceDocument:
    """A small PDF-typed document on disk."""
    path = tmp_path / "bill.pdf"
    path.write_bytes(b"%PDF-1.4\n%fake\n")
    return SourceDocument.from_path(path, "application/pdf")


@pytest.fixture
def image_document(tmp_path: Path) -> SourceDocument:
    """A small image-typed document on disk."""
    path = tmp_path / "receipt.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0fake-jpeg")
    return SourceDocument.from_path(path, "image/jpeg")


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    """Default configuration with uploads under a temporary directory."""
    return AppConfig(upload=UploadConfig(upload_dir=str(tmp_path / "uploads")))


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent
