"""
Field Extraction Module.

Builds the field map for a scan from four sources, in order:

    1. Smart field detector (optional collaborator); its fields are final
    2. Canonical regex of every field the document type expects
    3. Table rows: three numeric columns -> item quantity
    4. Keyword/value pairs such as "Invoice No: 123" or "CGST 9%"

Later sources overwrite earlier ones except the smart detector's fields.
Missing fields are never an error; they are simply absent from the map.
"""

import re
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from config import get_config
from invoice_scan.ocr_engine.ocr_result import BoundingBox, TextBlock
from invoice_scan.utils.logger import get_logger
from .extraction_result import ExtractedField, ValidationResult, ValidationType
from .field_types import DocumentType, FieldType, field_type_for_name
from .text_processor import FieldTextProcessor

logger = get_logger(__name__)


# (field name override, keyword regex, field type); first match per field name wins
KEY_VALUE_PAIRS: Tuple[Tuple[Optional[str], str, FieldType], ...] = (
    (None, r"invoice.*?(?:number|no|#)", FieldType.INVOICE_NUMBER),
    (None, r"date", FieldType.INVOICE_DATE),
    (None, r"total", FieldType.TOTAL_AMOUNT),
    (None, r"amount", FieldType.TOTAL_AMOUNT),
    (None, r"gst.*?(?:number|no)", FieldType.GST_NUMBER),
    (None, r"phone", FieldType.PHONE_NUMBER),
    (None, r"email", FieldType.EMAIL),
    ("cgst", r"cgst", FieldType.TAX_AMOUNT),
    ("sgst", r"sgst", FieldType.TAX_AMOUNT),
    ("igst", r"igst", FieldType.TAX_AMOUNT),
)

KEY_VALUE_TEMPLATE = r"({keyword})\s*:?\s*([\w\s\-.@/]+)"

PATTERN_MATCH_CONFIDENCE = 0.8


class SmartFieldDetector(Protocol):
    """External detector whose fields take precedence over everything else."""

    def detect_fields(
        self,
        text_blocks: Sequence[TextBlock],
        document_type: DocumentType,
    ) -> Dict[str, ExtractedField]:
        ...


@dataclass(frozen=True)
class FieldExtractionOptions:
    """Which extraction sources run for a scan."""
    enable_smart_field_detection: bool = True
    enable_table_extraction: bool = True
    enable_key_value_pairing: bool = True

    @classmethod
    def from_settings(cls) -> 'FieldExtractionOptions':
        prefix = "pipeline.field_extraction"
        return cls(
            enable_smart_field_detection=get_config(f"{prefix}.enable_smart_field_detection", True),
            enable_table_extraction=get_config(f"{prefix}.enable_table_extraction", True),
            enable_key_value_pairing=get_config(f"{prefix}.enable_key_value_pairing", True),
        )


def field_confidence(value: str, field_type: FieldType) -> float:
    """
    Confidence of a pattern-extracted value.

    0.9 if the value fully matches the field's canonical pattern, 0.6 if
    it only matched the looser search, 0.7 for any non-blank value of a
    field without a pattern and 0.3 for a blank one.
    """
    if field_type.pattern is not None:
        return 0.9 if re.fullmatch(field_type.pattern, value) else 0.6
    if value.strip():
        return 0.7
    return 0.3


def is_numeric(text: str) -> bool:
    """True if the text's digits and dots form a number ("Rs. 1,200" is numeric)."""
    digits = re.sub(r"[^0-9.]", '', text)
    try:
        float(digits)
    except ValueError:
        return False
    return True


class FieldExtractor:
    """
    Extracts business fields from recognized text.

    Attributes:
        smart_detector: Optional SmartFieldDetector collaborator.
        text_processor: Computes each field's initial processed value.

    Example:
        >>> extractor = FieldExtractor()
        >>> fields = extractor.extract(blocks, filtered.filtered_text, DocumentType.INVOICE)
        >>> fields["invoice_number"].processed_value
        '12345'
    """

    def __init__(self, smart_detector: Optional[SmartFieldDetector] = None) -> None:
        self.smart_detector = smart_detector
        self.text_processor = FieldTextProcessor()

        self.table_row_height = get_config("extraction.table_row_height", 50)
        self.table_confidence = get_config("extraction.table_confidence", 0.7)
        self.key_value_confidence = get_config("extraction.key_value_confidence", 0.75)

    def extract(
        self,
        blocks: Sequence[TextBlock],
        filtered_text: str,
        document_type: DocumentType,
        options: Optional[FieldExtractionOptions] = None,
    ) -> Dict[str, ExtractedField]:
        """
        Extract fields for a document type.

        Args:
            blocks: Normalized text blocks of the scan.
            filtered_text: Output of the invoice text filter; searched by
                the canonical field patterns.
            document_type: Determines which fields are expected.
            options: Sources to enable; all enabled by default.

        Returns:
            Field name -> ExtractedField, in insertion order.
        """
        options = options or FieldExtractionOptions()
        fields: Dict[str, ExtractedField] = OrderedDict()
        protected = set()

        if options.enable_smart_field_detection and self.smart_detector is not None:
            detected = self.smart_detector.detect_fields(blocks, document_type)
            fields.update(detected)
            protected.update(detected)
            logger.debug(f"Smart detector supplied {len(detected)} fields")

        for field_name in document_type.expected_fields:
            if field_name in fields:
                continue
            extracted = self.extract_by_pattern(filtered_text, blocks, field_type_for_name(field_name))
            if extracted is not None:
                fields[field_name] = extracted

        if options.enable_table_extraction:
            self._merge(fields, self.extract_table_rows(blocks), protected)

        if options.enable_key_value_pairing:
            self._merge(fields, self.extract_key_values(blocks), protected)

        logger.info(f"Extracted {len(fields)} fields for {document_type.value}")
        return fields

    @staticmethod
    def _merge(
        fields: Dict[str, ExtractedField],
        new_fields: Dict[str, ExtractedField],
        protected: set,
    ) -> None:
        for name, extracted in new_fields.items():
            if name not in protected:
                fields[name] = extracted

    def extract_by_pattern(
        self,
        text: str,
        blocks: Sequence[TextBlock],
        field_type: FieldType,
    ) -> Optional[ExtractedField]:
        """First case-insensitive match of the field type's pattern, if any."""
        if field_type.pattern is None:
            return None

        match = re.search(field_type.pattern, text, re.IGNORECASE)
        if match is None:
            return None

        raw_value = match.group(0)
        sources = self.find_source_blocks(raw_value, blocks)

        return ExtractedField(
            field_type=field_type,
            raw_value=raw_value,
            processed_value=self.text_processor.process(raw_value, field_type),
            confidence=field_confidence(raw_value, field_type),
            validation_result=ValidationResult(
                is_valid=True,
                validation_type=ValidationType.PATTERN_MATCHING,
                confidence=PATTERN_MATCH_CONFIDENCE,
            ),
            bounding_box=BoundingBox.union(b.bounding_box for b in sources),
            source_text_blocks=[b.block_id for b in sources],
        )

    @staticmethod
    def find_source_blocks(value: str, blocks: Sequence[TextBlock]) -> List[TextBlock]:
        """Blocks whose text contains ``value``, ignoring case."""
        needle = value.lower()
        return [b for b in blocks if needle in b.text.lower()]

    def extract_table_rows(self, blocks: Sequence[TextBlock]) -> Dict[str, ExtractedField]:
        """
        Find quantity columns in rows of numeric blocks.

        Blocks are bucketed into rows by ``top // table_row_height``. A row
        of at least three blocks whose first three (left to right) are all
        numeric contributes its first block as an item quantity.
        """
        rows: Dict[int, List[TextBlock]] = OrderedDict()
        for block in sorted(blocks, key=lambda b: b.bounding_box.top):
            rows.setdefault(block.bounding_box.top // self.table_row_height, []).append(block)

        fields: Dict[str, ExtractedField] = OrderedDict()
        for row in rows.values():
            if len(row) < 3:
                continue

            columns = sorted(row, key=lambda b: b.bounding_box.left)
            quantity, rate, amount = columns[:3]
            if not all(is_numeric(b.text) for b in (quantity, rate, amount)):
                continue

            fields[f"item_quantity_{len(fields) + 1}"] = ExtractedField(
                field_type=FieldType.ITEM_QUANTITY,
                raw_value=quantity.text,
                processed_value=quantity.text,
                confidence=self.table_confidence,
                validation_result=ValidationResult(
                    is_valid=True,
                    validation_type=ValidationType.PATTERN_MATCHING,
                    confidence=self.table_confidence,
                ),
                bounding_box=quantity.bounding_box,
                source_text_blocks=[quantity.block_id],
            )

        logger.debug(f"Table extraction found {len(fields)} quantity rows")
        return fields

    def extract_key_values(self, blocks: Sequence[TextBlock]) -> Dict[str, ExtractedField]:
        """
        Find "keyword: value" pairs in the block text.

        The value runs from the keyword to the end of its line.
        """
        text = "\n".join(b.text for b in blocks)
        fields: Dict[str, ExtractedField] = OrderedDict()

        for name, keyword, field_type in KEY_VALUE_PAIRS:
            key = name or field_type.key
            if key in fields:
                continue

            match = re.search(KEY_VALUE_TEMPLATE.format(keyword=keyword), text, re.IGNORECASE)
            if match is None:
                continue

            value = match.group(2).split("\n", 1)[0].strip()
            if not value:
                continue

            fields[key] = ExtractedField(
                field_type=field_type,
                raw_value=value,
                processed_value=self.text_processor.process(value, field_type),
                confidence=self.key_value_confidence,
                validation_result=ValidationResult(
                    is_valid=True,
                    validation_type=ValidationType.PATTERN_MATCHING,
                    confidence=self.key_value_confidence,
                ),
            )

        logger.debug(f"Key-value pairing found {len(fields)} fields")
        return fields
