"""
Utility Module for the invoice scan pipeline.

This module provides common utilities used across all other modules:
    - Logging configuration
    - Exception hierarchy
    - Common helpers
"""

from .logger import setup_logger, get_logger
from .helpers import ensure_directory, get_file_extension, generate_scan_id

__all__ = [
    'setup_logger',
    'get_logger',
    'ensure_directory',
    'get_file_extension',
    'generate_scan_id'
]
