"""Declarative regex rules for structured field extraction.

Generic rules collect every match of a pattern into a list field;
type-specific rules pull a single value for one document type. Each
rule is a small object with a pattern and a transform so it can be
tested in isolation.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from .fields import DocumentType, MonetaryValue, ReferenceNumber, TaxId, TaxIdKind

MAX_KEYWORDS = 20


@dataclass(frozen=True)
class ListRule:
    """Collects all matches of a pattern into the list field ``field``.

    ``transform`` turns a match into a value; returning ``None`` drops the
    match. With ``unique`` set, repeated values keep only their first
    occurrence.
    """

    field: str
    pattern: re.Pattern
    transform: Callable[[re.Match], Any]
    unique: bool = False
    limit: int | None = None

    def apply(self, text: str) -> list:
        values: list = []
        seen: set = set()
        for match in self.pattern.finditer(text):
            value = self.transform(match)
            if value is None:
                continue
            if self.unique:
                if value in seen:
                    continue
                seen.add(value)
            values.append(value)
            if self.limit is not None and len(values) >= self.limit:
                break
        return values


@dataclass(frozen=True)
class FieldRule:
    """Extracts the first match of group 1 as a single named value."""

    name: str
    pattern: re.Pattern
    transform: Callable[[str], str] = str.strip

    def apply(self, text: str) -> str | None:
        match = self.pattern.search(text)
        if not match:
            return None
        return self.transform(match.group(1)) or None


def parse_amount(literal: str) -> Decimal | None:
    """Parse a Brazilian-formatted currency literal.

    The last separator is the decimal mark unless it is a dot followed
    by exactly three digits with no comma anywhere, which reads as a
    thousands separator (``R$ 1.500`` is fifteen hundred).

    >>> parse_amount("R$ 1.234,56")
    Decimal('1234.56')
    """
    digits = re.sub(r"[^\d.,]", "", literal).strip(".,")
    if not digits:
        return None

    idx = max(digits.rfind(","), digits.rfind("."))
    try:
        if idx == -1:
            return Decimal(digits)
        head = re.sub(r"[.,]", "", digits[:idx]) or "0"
        tail = digits[idx + 1 :]
        if digits[idx] == "." and len(tail) == 3 and "," not in digits:
            return Decimal(head + tail)
        return Decimal(f"{head}.{tail}")
    except InvalidOperation:
        return None


def _money(match: re.Match) -> MonetaryValue | None:
    literal = match.group(0).strip().rstrip(".,")
    value = parse_amount(literal)
    if value is None:
        return None
    return MonetaryValue(literal=literal, value=value)


def _whole(match: re.Match) -> str:
    return match.group(0).strip()


def _tax_id(kind: TaxIdKind) -> Callable[[re.Match], TaxId]:
    return lambda match: TaxId(kind=kind, value=match.group(0))


def _reference(match: re.Match) -> ReferenceNumber:
    return ReferenceNumber(
        label=match.group("label").upper(),
        number=match.group("number").rstrip("-./"),
    )


MONEY_RE = re.compile(
    r"(?:R\$|(?<![A-Za-z])RS)\s*\d[\d.,]*"
    r"|\b\d{1,3}(?:\.\d{3})*,\d{2}\s*(?:reais|REAIS|Reais)\b"
)
DATE_RE = re.compile(
    r"(?<!\d)(?:\d{1,2}[/.\-]\d{1,2}[/.\-]\d{2,4}|\d{4}[/\-]\d{1,2}[/\-]\d{1,2})(?!\d)"
)
CPF_RE = re.compile(r"(?<!\d)(?:\d{3}\.\d{3}\.\d{3}-\d{2}|\d{11})(?!\d)")
CNPJ_RE = re.compile(r"(?<!\d)(?:\d{2}\.\d{3}\.\d{3}/\d{4}-\d{2}|\d{14})(?!\d)")
EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_RE = re.compile(
    r"(?<![\d+])(?:\+?55\s?)?(?:\(?\d{2}\)?\s?)?(?:9\s?)?\d{4}[-\s]?\d{4}(?!\d)"
)
REFERENCE_RE = re.compile(
    r"(?<!\w)(?P<label>NF|NOTA|PROTOCOLO|C[ÓO]DIGO|REGISTRO|REF|N[º°]|#)"
    r"\s*:?\s*(?P<number>\d+[\d\-./]*)",
    re.IGNORECASE,
)
ORGANIZATION_RE = re.compile(
    r"[A-ZÀ-Ý][A-ZÀ-Ý ]{3,} "
    r"(?:S\.?A\.?|S/A|LTDA|EIRELI|EPP|ME|IND(?:ÚSTRIA)?|COM(?:ÉRCIO)?)"
    r"(?![A-Za-zÀ-ÿ])"
)
KEYWORD_RE = re.compile(r"\b[A-Z]{4,}\b")

GENERIC_RULES: tuple[ListRule, ...] = (
    ListRule("amounts", MONEY_RE, _money),
    ListRule("dates", DATE_RE, _whole, unique=True),
    ListRule("tax_ids", CPF_RE, _tax_id(TaxIdKind.CPF)),
    ListRule("tax_ids", CNPJ_RE, _tax_id(TaxIdKind.CNPJ)),
    ListRule("emails", EMAIL_RE, _whole, unique=True),
    ListRule("phones", PHONE_RE, _whole, unique=True),
    ListRule("reference_numbers", REFERENCE_RE, _reference),
    ListRule("organizations", ORGANIZATION_RE, _whole, unique=True),
    ListRule("keywords", KEYWORD_RE, _whole, unique=True, limit=MAX_KEYWORDS),
)


def _currency(value: str) -> str:
    return "R$ " + value.strip().rstrip(".,")


def _no_spaces(value: str) -> str:
    return re.sub(r"\s", "", value)


def _rule(name: str, pattern: str, transform: Callable[[str], str] = str.strip) -> FieldRule:
    return FieldRule(name, re.compile(pattern, re.IGNORECASE), transform)


_DUE_DATE = r"(?:VENCIMENTO|VENCE)[:\s]*(\d{2}[/\-]\d{2}[/\-]\d{4})"

SPECIFIC_RULES: dict[DocumentType, tuple[FieldRule, ...]] = {
    DocumentType.UTILITY_BILL: (
        _rule("customer", r"(?:CLIENTE|NOME|TITULAR)[:\s]+([^\n]+)"),
        _rule("due_date", _DUE_DATE),
        _rule("total_amount", r"(?:TOTAL|VALOR)\s*:?\s*R\$\s*([\d.,]+)", _currency),
        _rule("consumption_kwh", r"(\d+)\s*KWH"),
        _rule(
            "installation_number",
            r"\b(?:INSTALA[ÇC][ÃA]O|UC|CONTA)[:\s]*(\d{6,})",
        ),
    ),
    DocumentType.TAX_INVOICE: (
        _rule(
            "invoice_number",
            r"\b(?:NF-?e?|NOTA\s+FISCAL)(?:\s*N[º°o.]*)?[:\s]*(\d+)",
        ),
        _rule("access_key", r"(?<!\d)((?:\d{4}\s?){10}\d{4})(?!\d)", _no_spaces),
        _rule(
            "issue_date",
            r"(?:EMISS[ÃA]O|EMITIDA)[:\s]*(\d{2}[/\-]\d{2}[/\-]\d{4})",
        ),
        _rule("total_amount", r"(?:VALOR TOTAL|TOTAL)[:\s]*R\$\s*([\d.,]+)", _currency),
    ),
    DocumentType.PAYMENT_SLIP: (
        _rule(
            "barcode",
            r"(\d{5}\.\d{5}\s\d{5}\.\d{6}\s\d{5}\.\d{6}\s\d\s\d{14})",
        ),
        _rule("due_date", r"VENCIMENTO[:\s]*(\d{2}[/\-]\d{2}[/\-]\d{4})"),
        _rule(
            "amount",
            r"VALOR(?:\s+DO\s+DOCUMENTO|\s+COBRADO)?[:\s]*R\$\s*([\d.,]+)",
            _currency,
        ),
    ),
}
