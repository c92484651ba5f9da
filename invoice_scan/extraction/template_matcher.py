"""
Template Matching Module.

Names the layout family a scanned document belongs to, based on which
fields could be extracted from it.
"""

from typing import Dict, Optional, Protocol

from .extraction_result import ExtractedField
from .field_types import DocumentType


class TemplateMatcher(Protocol):
    """Maps a document's extracted fields to a template id."""

    def detect_template(
        self,
        document_type: DocumentType,
        fields: Dict[str, ExtractedField],
    ) -> Optional[str]:
        ...


class RuleBasedTemplateMatcher:
    """
    Template detection from field presence.

    Invoices:
        gst_number + vendor_name + invoice_number -> gst_invoice_standard
        invoice_number + vendor_name              -> simple_invoice
        otherwise                                 -> generic_invoice
    Receipts:
        receipt_number + merchant_name -> standard_receipt
        otherwise                      -> generic_receipt
    Other document types have no templates.
    """

    def detect_template(
        self,
        document_type: DocumentType,
        fields: Dict[str, ExtractedField],
    ) -> Optional[str]:
        if document_type is DocumentType.INVOICE:
            return self._invoice_template(fields)
        if document_type is DocumentType.RECEIPT:
            return self._receipt_template(fields)
        return None

    @staticmethod
    def _invoice_template(fields: Dict[str, ExtractedField]) -> str:
        has_invoice_number = "invoice_number" in fields
        has_vendor = "vendor_name" in fields

        if has_invoice_number and has_vendor and "gst_number" in fields:
            return "gst_invoice_standard"
        if has_invoice_number and has_vendor:
            return "simple_invoice"
        return "generic_invoice"

    @staticmethod
    def _receipt_template(fields: Dict[str, ExtractedField]) -> str:
        if "receipt_number" in fields and "merchant_name" in fields:
            return "standard_receipt"
        return "generic_receipt"
