"""Pydantic request/response schemas for the FastAPI endpoints."""

from pydantic import BaseModel

from docintake.models import ExtractionMode


class FileInfo(BaseModel):
    name: str
    size: int
    type: str


class ProcessingInfo(BaseModel):
    """How the text was obtained."""

    mode: ExtractionMode
    method: str
    pdf_has_text: bool
    used_ocr: bool
    converted_to_image: bool
    analysis_error: str | None = None
    processing_time: str


class MonetaryValueResponse(BaseModel):
    literal: str
    value: float


class TaxIdResponse(BaseModel):
    kind: str
    value: str


class ReferenceNumberResponse(BaseModel):
    label: str
    number: str


class SpecificFieldsResponse(BaseModel):
    """Fields extracted only for the classified document type."""

    document_type: str
    values: dict[str, str]


class ExtractedDataResponse(BaseModel):
    """Structured fields pulled from the document text."""

    document_type: str
    amounts: list[MonetaryValueResponse]
    dates: list[str]
    tax_ids: list[TaxIdResponse]
    emails: list[str]
    phones: list[str]
    reference_numbers: list[ReferenceNumberResponse]
    organizations: list[str]
    keywords: list[str]
    specific: SpecificFieldsResponse | None = None
    char_count: int
    confidence: int


class ProcessResponse(BaseModel):
    """Response schema for a processed document."""

    success: bool
    file: FileInfo
    processing_info: ProcessingInfo
    document_type: str
    document_label: str
    extracted_data: ExtractedDataResponse
    raw_text: str
    confidence_score: int


class UrlProcessRequest(BaseModel):
    """Request body for processing a document fetched from a URL."""

    url: str = ""
    mode: ExtractionMode = ExtractionMode.SMART
    include_raw_text: bool = False


class ErrorDetail(BaseModel):
    """Error body returned inside ``HTTPException.detail``."""

    error: str
    details: str
    suggestion: str | None = None


class StatusResponse(BaseModel):
    status: str
    version: str
    tools: dict[str, bool]
    ocr_service_configured: bool


class CapabilitiesResponse(BaseModel):
    """What the service accepts and extracts."""

    supported_formats: list[str]
    max_file_size: str
    document_types: list[str]
    extraction_modes: dict[str, str]
    data_extracted: list[str]
