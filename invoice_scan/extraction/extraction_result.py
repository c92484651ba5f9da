"""
Extraction Result Data Classes.

ExtractedField is the unit that flows from extraction through validation
and normalization. It is mutable: validation replaces its
``validation_result``/``suggestions`` and normalization replaces its
``processed_value``; nothing else is changed after creation.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from invoice_scan.ocr_engine.ocr_result import BoundingBox
from .field_types import FieldType


class ValidationType(Enum):
    """How a ValidationResult was reached."""
    FORMAT_VALIDATION = "format_validation"
    PATTERN_MATCHING = "pattern_matching"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one field value."""
    is_valid: bool
    validation_type: ValidationType
    error_message: Optional[str] = None
    confidence: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'is_valid': self.is_valid,
            'validation_type': self.validation_type.value,
            'error_message': self.error_message,
            'confidence': self.confidence,
        }


@dataclass
class ExtractedField:
    """
    A single business field pulled out of the recognized text.

    Attributes:
        field_type: Catalogue type of the field.
        raw_value: Text exactly as matched.
        processed_value: Cleaned value; replaced during normalization.
        confidence: Extraction confidence (0-1).
        bounding_box: Union of the source blocks' boxes, if any.
        source_text_blocks: Ids of the TextBlocks containing the value.
        validation_result: Latest validation outcome.
        suggestions: Alternative values offered when validation fails.
    """
    field_type: FieldType
    raw_value: str
    processed_value: str
    confidence: float
    validation_result: ValidationResult
    bounding_box: Optional[BoundingBox] = None
    source_text_blocks: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'field_type': self.field_type.name,
            'display_name': self.field_type.display_name,
            'raw_value': self.raw_value,
            'processed_value': self.processed_value,
            'confidence': self.confidence,
            'bounding_box': self.bounding_box.to_list() if self.bounding_box else None,
            'source_text_blocks': list(self.source_text_blocks),
            'validation': self.validation_result.to_dict(),
            'suggestions': list(self.suggestions),
        }

    def __repr__(self) -> str:
        return (
            f"ExtractedField({self.field_type.name}, '{self.processed_value}', "
            f"conf={self.confidence:.2f})"
        )
