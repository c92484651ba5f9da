"""
Main Post-Processor Module.

This module provides the PostProcessor class that runs the validation
and normalization passes over an extraction map.

Each field is updated in place at most twice: validation replaces its
validation result and suggestions, normalization replaces its processed
value. Keys and field order are preserved.
"""

from typing import Dict

from invoice_scan.extraction.extraction_result import ExtractedField
from invoice_scan.utils.logger import get_logger
from .normalizers import FieldNormalizer
from .validators import FieldValidator

logger = get_logger(__name__)


class PostProcessor:
    """
    Validates and normalizes extracted fields.

    Example:
        >>> processor = PostProcessor()
        >>> processor.validate_fields(fields, enable_suggestions=True)
        >>> processor.normalize_fields(fields)
    """

    def __init__(self) -> None:
        self.validator = FieldValidator()
        self.normalizer = FieldNormalizer()

    def validate_fields(
        self,
        fields: Dict[str, ExtractedField],
        enable_suggestions: bool = True,
    ) -> Dict[str, ExtractedField]:
        """
        Validate every field by its type's rule.

        Args:
            fields: Extraction map, updated in place.
            enable_suggestions: Attach suggestions to fields that fail.

        Returns:
            The same map, for chaining.
        """
        invalid = 0
        for name, extracted in fields.items():
            result = self.validator.validate(extracted)
            extracted.validation_result = result

            if not result.is_valid:
                invalid += 1
                logger.debug(f"Field '{name}' failed validation: {result.error_message}")
                if enable_suggestions:
                    extracted.suggestions = self.validator.suggest(extracted)

        logger.info(f"Validated {len(fields)} fields ({invalid} invalid)")
        return fields

    def normalize_fields(self, fields: Dict[str, ExtractedField]) -> Dict[str, ExtractedField]:
        """Normalize every field's processed value by category, in place."""
        for name, extracted in fields.items():
            normalized = self.normalizer.normalize(extracted.processed_value, extracted.field_type)
            if normalized != extracted.processed_value:
                logger.debug(
                    f"Normalized '{name}': '{extracted.processed_value}' -> '{normalized}'"
                )
            extracted.processed_value = normalized
        return fields
