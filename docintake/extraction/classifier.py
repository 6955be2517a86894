"""Keyword-signature document classification.

Signatures are checked in declaration order and the first match wins.
Categories overlap in real text (a tax invoice often mentions payment),
so the order is the tie-break.
"""

import re

from docintake.utils.logger import get_logger

from .fields import DocumentType

logger = get_logger(__name__)

DOCUMENT_SIGNATURES: tuple[tuple[DocumentType, re.Pattern], ...] = tuple(
    (doc_type, re.compile(pattern, re.IGNORECASE))
    for doc_type, pattern in (
        (DocumentType.UTILITY_BILL, r"(?:CONTA|FATURA).*(?:ENERGIA|LUZ|EL[ÉE]TRICA)"),
        (DocumentType.TAX_INVOICE, r"NOTA\s*FISCAL|NF-?e|DANFE"),
        (DocumentType.PAYMENT_SLIP, r"BOLETO|COBRAN[ÇC]A|PAGAMENTO"),
        (DocumentType.CONTRACT, r"CONTRATO|ACORDO|TERMO"),
        (DocumentType.BANK_STATEMENT, r"EXTRATO|SALDO|MOVIMENTA[ÇC][ÃA]O"),
        (DocumentType.RESUME, r"CURRICULUM|CURR[ÍI]CULO|RESUME|\bCV\b"),
        (DocumentType.PRESCRIPTION, r"RECEITA|PRESCRI[ÇC][ÃA]O|M[ÉE]DIC[AO]"),
        (DocumentType.CERTIFICATE, r"CERTID[ÃA]O|CERTIFICADO|DIPLOMA"),
        (DocumentType.QUOTE, r"OR[ÇC]AMENTO|PROPOSTA|COTA[ÇC][ÃA]O"),
        (DocumentType.RECEIPT, r"RECIBO|COMPROVANTE"),
    )
)


def classify(text: str) -> DocumentType:
    """Return the first document type whose signature appears in ``text``."""
    for doc_type, pattern in DOCUMENT_SIGNATURES:
        if pattern.search(text):
            logger.debug("Classified document as %s", doc_type.value)
            return doc_type
    return DocumentType.GENERIC
