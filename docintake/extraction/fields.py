"""Typed results of structured extraction."""

from dataclasses import asdict, dataclass, field
from decimal import Decimal
from enum import StrEnum


class DocumentType(StrEnum):
    """Document categories, in classification priority order."""

    UTILITY_BILL = "utility_bill"
    TAX_INVOICE = "tax_invoice"
    PAYMENT_SLIP = "payment_slip"
    CONTRACT = "contract"
    BANK_STATEMENT = "bank_statement"
    RESUME = "resume"
    PRESCRIPTION = "prescription"
    CERTIFICATE = "certificate"
    QUOTE = "quote"
    RECEIPT = "receipt"
    GENERIC = "generic"

    @property
    def label(self) -> str:
        return DOCUMENT_LABELS[self]


DOCUMENT_LABELS: dict[DocumentType, str] = {
    DocumentType.UTILITY_BILL: "Conta de Energia",
    DocumentType.TAX_INVOICE: "Nota Fiscal",
    DocumentType.PAYMENT_SLIP: "Boleto",
    DocumentType.CONTRACT: "Contrato",
    DocumentType.BANK_STATEMENT: "Extrato Bancário",
    DocumentType.RESUME: "Currículo",
    DocumentType.PRESCRIPTION: "Receita Médica",
    DocumentType.CERTIFICATE: "Certidão/Certificado",
    DocumentType.QUOTE: "Orçamento",
    DocumentType.RECEIPT: "Recibo",
    DocumentType.GENERIC: "Documento Genérico",
}


class TaxIdKind(StrEnum):
    CPF = "CPF"
    CNPJ = "CNPJ"


@dataclass(frozen=True)
class MonetaryValue:
    """A currency literal and its numeric value."""

    literal: str
    value: Decimal


@dataclass(frozen=True)
class TaxId:
    kind: TaxIdKind
    value: str


@dataclass(frozen=True)
class ReferenceNumber:
    """A labeled document number such as ``NF: 12345``."""

    label: str
    number: str


@dataclass
class TypeSpecificFields:
    """Fields only extracted for one document type, keyed by field name."""

    document_type: DocumentType
    values: dict[str, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.values)


@dataclass
class ExtractedFields:
    """Everything the structured extractor found in one text."""

    document_type: DocumentType = DocumentType.GENERIC
    amounts: list[MonetaryValue] = field(default_factory=list)
    dates: list[str] = field(default_factory=list)
    tax_ids: list[TaxId] = field(default_factory=list)
    emails: list[str] = field(default_factory=list)
    phones: list[str] = field(default_factory=list)
    reference_numbers: list[ReferenceNumber] = field(default_factory=list)
    organizations: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    specific: TypeSpecificFields | None = None
    char_count: int = 0
    confidence: int = 0

    @property
    def classified(self) -> bool:
        return self.document_type is not DocumentType.GENERIC

    def to_dict(self) -> dict:
        """Plain JSON-friendly representation; amounts become floats."""
        data = asdict(self)
        data["document_type"] = self.document_type.value
        data["amounts"] = [
            {"literal": a.literal, "value": float(a.value)} for a in self.amounts
        ]
        data["tax_ids"] = [{"kind": t.kind.value, "value": t.value} for t in self.tax_ids]
        if self.specific is not None:
            data["specific"] = {
                "document_type": self.specific.document_type.value,
                "values": dict(self.specific.values),
            }
        return data
