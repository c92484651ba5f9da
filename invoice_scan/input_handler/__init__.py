"""
Input Handler Module for Invoice Scanning.

This module provides functionality for:
    - Loading invoice photos from disk or memory
    - Scoring image quality (sharpness, brightness, contrast)
    - Quality-tiered preprocessing before recognition
"""

from .handler import InputHandler
from .quality import ImageQualityAssessor, ImageQualityMetrics
from .image_processor import (
    AdaptivePreprocessor,
    ImagePreprocessingOptions,
    PreprocessingStrategy,
    otsu_threshold,
)

__all__ = [
    'InputHandler',
    'ImageQualityAssessor',
    'ImageQualityMetrics',
    'AdaptivePreprocessor',
    'ImagePreprocessingOptions',
    'PreprocessingStrategy',
    'otsu_threshold',
]
