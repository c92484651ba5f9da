"""
Invoice Scan - Source Package.

Turns photographed invoices and receipts into structured, validated
business fields.

Modules:
    - input_handler: Image loading, quality assessment, preprocessing
    - ocr_engine: Text recognition with retries and text block structures
    - extraction: Text filtering, product lines and field extraction
    - postprocessor: Validation, normalization and confidence scoring
    - pipeline: Scan orchestration, progress and results

Architecture:
    Image → Quality → Preprocess → Recognize → Filter → Extract
          → Validate → Normalize → Score → OCRScanResult
"""

__version__ = "1.0.0"

__all__ = [
    'input_handler',
    'ocr_engine',
    'extraction',
    'postprocessor',
    'pipeline',
    'utils',
]
