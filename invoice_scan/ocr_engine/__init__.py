"""
OCR Engine Module for Invoice Scanning.

This module provides:
    - Text block/line/word data classes with bounding boxes
    - Tesseract-backed text recognition
    - A retry ladder for sparse recognition output
"""

from .ocr_result import (
    BoundingBox,
    RecognizedBlock,
    RecognizedLine,
    RecognizedText,
    RecognizedWord,
    TextBlock,
    TextLine,
    TextWord,
)
from .engine import RecognitionBackend, RecognitionOrchestrator, RecognitionOutcome, RetryRung
from .tesseract_backend import TesseractBackend

__all__ = [
    'BoundingBox',
    'RecognizedBlock',
    'RecognizedLine',
    'RecognizedText',
    'RecognizedWord',
    'TextBlock',
    'TextLine',
    'TextWord',
    'RecognitionBackend',
    'RecognitionOrchestrator',
    'RecognitionOutcome',
    'RetryRung',
    'TesseractBackend',
]
