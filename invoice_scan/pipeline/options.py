"""
Scan Configuration Module.

Per-scan options are passed explicitly to the pipeline; the defaults
come from the ``pipeline`` section of settings.yaml.
"""

from dataclasses import dataclass, field

from config import get_config
from invoice_scan.extraction.field_extractor import FieldExtractionOptions
from invoice_scan.extraction.field_types import DocumentType


@dataclass(frozen=True)
class PostProcessingOptions:
    enable_data_normalization: bool = True
    enable_suggestions: bool = True

    @classmethod
    def from_settings(cls) -> 'PostProcessingOptions':
        return cls(
            enable_data_normalization=get_config(
                "pipeline.post_processing.enable_data_normalization", True
            ),
            enable_suggestions=get_config("pipeline.post_processing.enable_suggestions", True),
        )


@dataclass(frozen=True)
class ScanConfig:
    """
    Options for one scan.

    Attributes:
        enable_field_extraction: Run field extraction at all.
        enable_validation: Validate extracted fields.
        document_type: Decides expected fields and templates.
        field_extraction_options: Extraction sources to enable.
        post_processing_options: Normalization and suggestion toggles.
    """
    enable_field_extraction: bool = True
    enable_validation: bool = True
    document_type: DocumentType = DocumentType.INVOICE
    field_extraction_options: FieldExtractionOptions = field(default_factory=FieldExtractionOptions)
    post_processing_options: PostProcessingOptions = field(default_factory=PostProcessingOptions)

    @classmethod
    def from_settings(cls) -> 'ScanConfig':
        return cls(
            enable_field_extraction=get_config("pipeline.enable_field_extraction", True),
            enable_validation=get_config("pipeline.enable_validation", True),
            document_type=DocumentType.from_name(get_config("pipeline.document_type", "invoice")),
            field_extraction_options=FieldExtractionOptions.from_settings(),
            post_processing_options=PostProcessingOptions.from_settings(),
        )
