"""
Scan Result Data Classes.

A scan ends in exactly one of:
    - OCRSuccess wrapping a complete OCRScanResult
    - OCRError with an actionable message; partial results are discarded

Batches collect per-item outcomes in a BatchResult.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from invoice_scan.extraction.extraction_result import ExtractedField
from invoice_scan.extraction.field_types import DocumentType
from invoice_scan.extraction.product_lines import ProductLine
from invoice_scan.input_handler.handler import ImageRef
from invoice_scan.input_handler.quality import ImageQualityMetrics
from invoice_scan.ocr_engine.ocr_result import TextBlock
from invoice_scan.postprocessor.confidence import ConfidenceScore
from invoice_scan.utils.helpers import generate_scan_id
from .options import ScanConfig


@dataclass(frozen=True)
class OCRScanResult:
    """
    Everything a successful scan produced.

    Attributes:
        scan_id: Identifier shared with the scan's progress events.
        document_type: Document type the scan was configured for.
        source_image_path: Path of the source image, None for in-memory images.
        raw_text: Filtered recognized text.
        original_text: Recognized text before filtering.
        text_blocks: Normalized text blocks.
        extracted_fields: Field name -> validated, normalized field.
        product_lines: Line items found in the product section.
        confidence: Overall and per-stage confidence.
        quality: Quality metrics of the source image.
        processing_time_ms: Wall time of the whole scan.
        template_id: Detected layout template, if any.
        timestamp: When the scan finished.
    """
    scan_id: str
    document_type: DocumentType
    source_image_path: Optional[str]
    raw_text: str
    original_text: str
    text_blocks: Tuple[TextBlock, ...]
    extracted_fields: Dict[str, ExtractedField]
    product_lines: Tuple[ProductLine, ...]
    confidence: ConfidenceScore
    quality: ImageQualityMetrics
    processing_time_ms: int
    template_id: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def get_field_value(self, name: str) -> Optional[str]:
        """Processed value of a field, or None if it was not extracted."""
        extracted = self.extracted_fields.get(name)
        return extracted.processed_value if extracted else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'scan_id': self.scan_id,
            'document_type': self.document_type.value,
            'source_image_path': self.source_image_path,
            'raw_text': self.raw_text,
            'text_blocks': [b.to_dict() for b in self.text_blocks],
            'extracted_fields': {k: v.to_dict() for k, v in self.extracted_fields.items()},
            'product_lines': [p.to_dict() for p in self.product_lines],
            'confidence': self.confidence.to_dict(),
            'quality': self.quality.to_dict(),
            'processing_time_ms': self.processing_time_ms,
            'template_id': self.template_id,
            'timestamp': self.timestamp.isoformat(),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


@dataclass(frozen=True)
class OCRSuccess:
    result: OCRScanResult

    @property
    def scan_id(self) -> str:
        return self.result.scan_id

    @property
    def is_success(self) -> bool:
        return True


@dataclass(frozen=True)
class OCRError:
    """
    Terminal failure of a scan.

    Attributes:
        scan_id: Identifier of the failed scan.
        message: Actionable message for the person scanning.
        processing_time_ms: Time spent before the failure.
        details: Diagnostic text of the underlying error.
    """
    scan_id: str
    message: str
    processing_time_ms: int
    details: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'scan_id': self.scan_id,
            'message': self.message,
            'processing_time_ms': self.processing_time_ms,
            'details': self.details,
        }


OCRResult = Union[OCRSuccess, OCRError]


@dataclass(frozen=True)
class BatchJob:
    """Images to scan sequentially with one shared configuration."""
    image_refs: Sequence[ImageRef]
    config: Optional[ScanConfig] = None
    job_id: str = field(default_factory=generate_scan_id)


@dataclass(frozen=True)
class BatchItemError:
    source: str
    message: str

    def __str__(self) -> str:
        return f"{self.source}: {self.message}"


@dataclass(frozen=True)
class BatchResult:
    """
    Outcome of a batch job.

    ``error`` is only set when the batch itself could not run; failures
    of individual images are listed in ``errors``.
    """
    job_id: str
    successes: List[OCRScanResult] = field(default_factory=list)
    errors: List[BatchItemError] = field(default_factory=list)
    total_processed: int = 0
    error: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'job_id': self.job_id,
            'successes': [r.to_dict() for r in self.successes],
            'errors': [str(e) for e in self.errors],
            'total_processed': self.total_processed,
            'error': self.error,
        }
