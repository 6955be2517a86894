"""Turns raw OCR or native text into typed fields.

Classification picks a document type, the generic rule battery always
runs, and the type-specific rules for the classified type add their
own payload. The confidence score is an additive completeness signal,
not a probability.
"""

from docintake.utils.logger import get_logger

from .classifier import classify
from .fields import ExtractedFields, TypeSpecificFields
from .rules import GENERIC_RULES, SPECIFIC_RULES, FieldRule, ListRule

logger = get_logger(__name__)

CLASSIFIED_POINTS = 20
AMOUNT_POINTS = 15
DATE_POINTS = 15
TAX_ID_POINTS = 15
SPECIFIC_POINTS = 20
ORGANIZATION_POINTS = 15
SPECIFIC_FIELDS_REQUIRED = 3


def compute_confidence(fields: ExtractedFields) -> int:
    """Score extraction completeness on a 0-100 scale."""
    score = 0
    if fields.classified:
        score += CLASSIFIED_POINTS
    if fields.amounts:
        score += AMOUNT_POINTS
    if fields.dates:
        score += DATE_POINTS
    if fields.tax_ids:
        score += TAX_ID_POINTS
    if fields.specific is not None and len(fields.specific) > SPECIFIC_FIELDS_REQUIRED:
        score += SPECIFIC_POINTS
    if fields.organizations:
        score += ORGANIZATION_POINTS
    return min(score, 100)


class StructuredExtractor:
    """Applies classification and rule batteries to text.

    Args:
        generic_rules: List rules run on every text.
        specific_rules: Single-value rules per document type.
    """

    def __init__(
        self,
        generic_rules: tuple[ListRule, ...] = GENERIC_RULES,
        specific_rules: dict | None = None,
    ) -> None:
        self.generic_rules = generic_rules
        self.specific_rules = SPECIFIC_RULES if specific_rules is None else specific_rules

    def extract_specific(self, fields: ExtractedFields, text: str) -> TypeSpecificFields | None:
        rules: tuple[FieldRule, ...] | None = self.specific_rules.get(fields.document_type)
        if rules is None:
            return None
        specific = TypeSpecificFields(document_type=fields.document_type)
        for rule in rules:
            value = rule.apply(text)
            if value is not None:
                specific.values[rule.name] = value
        return specific

    def extract(self, text: str) -> ExtractedFields:
        """Extract structured fields. Never raises; missing matches stay empty."""
        fields = ExtractedFields(char_count=len(text))
        if not text.strip():
            return fields

        fields.document_type = classify(text)
        for rule in self.generic_rules:
            getattr(fields, rule.field).extend(rule.apply(text))

        fields.specific = self.extract_specific(fields, text)
        fields.confidence = compute_confidence(fields)

        logger.info(
            "Extracted %s: %d amounts, %d dates, %d tax IDs, %d specific fields, confidence %d",
            fields.document_type.value,
            len(fields.amounts),
            len(fields.dates),
            len(fields.tax_ids),
            len(fields.specific) if fields.specific else 0,
            fields.confidence,
        )
        return fields
