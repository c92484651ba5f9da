"""
Pipeline Module for Invoice Scanning.

This module provides:
    - ScanPipeline, the single-image and batch entry points
    - Per-scan configuration
    - Progress events and cooperative cancellation
    - Scan and batch result types
"""

from .options import PostProcessingOptions, ScanConfig
from .progress import CancellationToken, OCRPhase, ProgressChannel, ProgressEvent
from .scan_result import (
    BatchItemError,
    BatchJob,
    BatchResult,
    OCRError,
    OCRResult,
    OCRScanResult,
    OCRSuccess,
)
from .orchestrator import ScanPipeline

__all__ = [
    'PostProcessingOptions',
    'ScanConfig',
    'CancellationToken',
    'OCRPhase',
    'ProgressChannel',
    'ProgressEvent',
    'BatchItemError',
    'BatchJob',
    'BatchResult',
    'OCRError',
    'OCRResult',
    'OCRScanResult',
    'OCRSuccess',
    'ScanPipeline',
]
