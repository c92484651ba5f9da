"""
Field Validators Module.

Validates extracted fields against the rule declared on their FieldType
and proposes alternative values for fields that fail.

Rules:
    - Must be a valid number: value is a finite plain decimal
    - Must be valid date: value matches D/M/Y with '/' or '-' separators
    - No rule: the field's existing validation result is kept
"""

import math
import re
from typing import List, Optional

from invoice_scan.extraction.extraction_result import (
    ExtractedField,
    ValidationResult,
    ValidationType,
)
from invoice_scan.extraction.field_types import FieldCategory, ValidationRule
from invoice_scan.utils.logger import get_logger

logger = get_logger(__name__)

DATE_FORMAT_RE = re.compile(r"\d{1,2}[/-]\d{1,2}[/-]\d{2,4}")
NUMBER_RE = re.compile(r"\d+\.?\d*")
PLAIN_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)")

VALID_CONFIDENCE = 0.9
INVALID_CONFIDENCE = 0.1


def is_number(value: str) -> bool:
    """True for a finite plain decimal such as "12", "-3.5" or ".75"."""
    if not isinstance(value, str) or not PLAIN_NUMBER_RE.fullmatch(value.strip()):
        return False
    return math.isfinite(float(value))


class FieldValidator:
    """
    Validates ExtractedFields by their declared rule.

    Example:
        >>> validator = FieldValidator()
        >>> validator.validate_numeric("12.50").confidence
        0.9
        >>> validator.validate_date("2024-05-12").error_message
        'Invalid date format'
    """

    def validate_numeric(self, value: str) -> ValidationResult:
        valid = is_number(value)
        return ValidationResult(
            is_valid=valid,
            validation_type=ValidationType.FORMAT_VALIDATION,
            error_message=None if valid else "Invalid number format",
            confidence=VALID_CONFIDENCE if valid else INVALID_CONFIDENCE,
        )

    def validate_date(self, value: str) -> ValidationResult:
        valid = DATE_FORMAT_RE.fullmatch(value) is not None
        return ValidationResult(
            is_valid=valid,
            validation_type=ValidationType.FORMAT_VALIDATION,
            error_message=None if valid else "Invalid date format",
            confidence=VALID_CONFIDENCE if valid else INVALID_CONFIDENCE,
        )

    def validate(self, extracted: ExtractedField) -> ValidationResult:
        """
        Validate a field's processed value.

        Returns:
            A new ValidationResult, or the field's current one when its
            type declares no rule.
        """
        rule: Optional[ValidationRule] = extracted.field_type.validation_rule

        if rule is ValidationRule.NUMERIC:
            return self.validate_numeric(extracted.processed_value)
        if rule is ValidationRule.DATE:
            return self.validate_date(extracted.processed_value)
        return extracted.validation_result

    @staticmethod
    def suggest(extracted: ExtractedField) -> List[str]:
        """
        Alternative values for a field that failed validation.

        Financial fields get every number found in the raw value; date
        fields get the raw value with its separators swapped.
        """
        category = extracted.field_type.category
        raw = extracted.raw_value

        if category is FieldCategory.FINANCIAL:
            return NUMBER_RE.findall(raw)
        if category is FieldCategory.DATE:
            return [
                raw.replace('-', '/'),
                raw.replace('/', '-'),
                raw.replace('.', '/'),
            ]
        return []
