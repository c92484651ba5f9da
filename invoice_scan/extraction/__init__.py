"""
Extraction Module for Invoice Scanning.

This module provides:
    - The field and document type catalogue
    - Invoice text filtering (boilerplate and address removal)
    - Product line parsing
    - Field extraction from patterns, table rows and key/value pairs
    - Rule-based template detection
"""

from .field_types import (
    DocumentType,
    FieldCategory,
    FieldType,
    ValidationRule,
    field_type_for_name,
)
from .extraction_result import ExtractedField, ValidationResult, ValidationType
from .text_processor import FieldTextProcessor
from .text_filter import FilteredOCRText, InvoiceTextFilter, RemovalReason, RemovedLine
from .product_lines import ProductLine, ProductLineExtractor
from .field_extractor import FieldExtractionOptions, FieldExtractor, SmartFieldDetector
from .template_matcher import RuleBasedTemplateMatcher, TemplateMatcher

__all__ = [
    'DocumentType',
    'FieldCategory',
    'FieldType',
    'ValidationRule',
    'field_type_for_name',
    'ExtractedField',
    'ValidationResult',
    'ValidationType',
    'FieldTextProcessor',
    'FilteredOCRText',
    'InvoiceTextFilter',
    'RemovalReason',
    'RemovedLine',
    'ProductLine',
    'ProductLineExtractor',
    'FieldExtractionOptions',
    'FieldExtractor',
    'SmartFieldDetector',
    'RuleBasedTemplateMatcher',
    'TemplateMatcher',
]
