"""
Post-Processing Module for Invoice Scanning.

This module provides:
    - Category normalization of field values
    - Rule-based field validation with suggestions
    - Overall scan confidence scoring
"""

from .normalizers import FieldNormalizer
from .validators import FieldValidator
from .processor import PostProcessor
from .confidence import ConfidenceScore, ConfidenceScorer

__all__ = [
    'FieldNormalizer',
    'FieldValidator',
    'PostProcessor',
    'ConfidenceScore',
    'ConfidenceScorer',
]
