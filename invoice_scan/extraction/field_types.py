"""
Field and Document Type Catalogue.

Defines every business field the scanner knows about, with its display
name, canonical regex, validation rule and category, plus the document
types and the field names each of them is expected to carry.
"""

from enum import Enum
from typing import Dict, Optional, Tuple


class FieldCategory(Enum):
    """Drives normalization and suggestion behaviour."""
    FINANCIAL = "financial"
    IDENTIFICATION = "identification"
    DATE = "date"
    ENTITY = "entity"
    ADDRESS = "address"
    CONTACT = "contact"
    ITEM = "item"
    PAYMENT = "payment"
    MISCELLANEOUS = "miscellaneous"


class ValidationRule(Enum):
    """Format rule a field value must satisfy."""
    NUMERIC = "Must be a valid number"
    DATE = "Must be valid date"


AMOUNT_PATTERN = r"\d+\.?\d*"
# Identifiers must carry at least one digit so plain words are not taken
IDENTIFIER_PATTERN = r"[A-Z0-9\-/]*\d[A-Z0-9\-/]*"
DATE_PATTERN = r"\d{1,2}[/-]\d{1,2}[/-]\d{2,4}"
GSTIN_PATTERN = r"[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[1-9A-Z]{1}Z[0-9A-Z]{1}"
PHONE_PATTERN = r"[\+]?[0-9\-\s\(\)]+"


class FieldType(Enum):
    """
    Known invoice/receipt fields.

    Each member's value is (display_name, pattern, validation_rule, category).

    Example:
        >>> FieldType.TOTAL_AMOUNT.category
        <FieldCategory.FINANCIAL: 'financial'>
    """

    # Financial
    TOTAL_AMOUNT = ("Total Amount", AMOUNT_PATTERN, ValidationRule.NUMERIC, FieldCategory.FINANCIAL)
    SUBTOTAL = ("Subtotal", AMOUNT_PATTERN, ValidationRule.NUMERIC, FieldCategory.FINANCIAL)
    TAX_AMOUNT = ("Tax Amount", AMOUNT_PATTERN, ValidationRule.NUMERIC, FieldCategory.FINANCIAL)
    DISCOUNT = ("Discount", AMOUNT_PATTERN, ValidationRule.NUMERIC, FieldCategory.FINANCIAL)
    CURRENCY = ("Currency", r"[A-Z]{3}", None, FieldCategory.FINANCIAL)

    # Identification
    INVOICE_NUMBER = ("Invoice Number", IDENTIFIER_PATTERN, None, FieldCategory.IDENTIFICATION)
    RECEIPT_NUMBER = ("Receipt Number", IDENTIFIER_PATTERN, None, FieldCategory.IDENTIFICATION)
    PO_NUMBER = ("PO Number", IDENTIFIER_PATTERN, None, FieldCategory.IDENTIFICATION)
    REFERENCE_NUMBER = ("Reference Number", IDENTIFIER_PATTERN, None, FieldCategory.IDENTIFICATION)
    GST_NUMBER = ("GST Number", GSTIN_PATTERN, None, FieldCategory.IDENTIFICATION)

    # Dates
    INVOICE_DATE = ("Invoice Date", DATE_PATTERN, ValidationRule.DATE, FieldCategory.DATE)
    DUE_DATE = ("Due Date", DATE_PATTERN, ValidationRule.DATE, FieldCategory.DATE)
    DELIVERY_DATE = ("Delivery Date", DATE_PATTERN, ValidationRule.DATE, FieldCategory.DATE)

    # Entities
    VENDOR_NAME = ("Vendor Name", None, None, FieldCategory.ENTITY)
    CUSTOMER_NAME = ("Customer Name", None, None, FieldCategory.ENTITY)
    MERCHANT_NAME = ("Merchant Name", None, None, FieldCategory.ENTITY)

    # Addresses
    BILLING_ADDRESS = ("Billing Address", None, None, FieldCategory.ADDRESS)
    SHIPPING_ADDRESS = ("Shipping Address", None, None, FieldCategory.ADDRESS)
    VENDOR_ADDRESS = ("Vendor Address", None, None, FieldCategory.ADDRESS)

    # Contact
    PHONE_NUMBER = ("Phone Number", PHONE_PATTERN, None, FieldCategory.CONTACT)
    EMAIL = ("Email", None, None, FieldCategory.CONTACT)

    # Line items
    ITEM_DESCRIPTION = ("Item Description", None, None, FieldCategory.ITEM)
    ITEM_QUANTITY = ("Quantity", AMOUNT_PATTERN, ValidationRule.NUMERIC, FieldCategory.ITEM)
    ITEM_RATE = ("Rate", AMOUNT_PATTERN, ValidationRule.NUMERIC, FieldCategory.ITEM)
    ITEM_AMOUNT = ("Amount", AMOUNT_PATTERN, ValidationRule.NUMERIC, FieldCategory.ITEM)

    # Payment
    PAYMENT_METHOD = ("Payment Method", None, None, FieldCategory.PAYMENT)
    PAYMENT_TERMS = ("Payment Terms", None, None, FieldCategory.PAYMENT)

    # Miscellaneous
    NOTES = ("Notes", None, None, FieldCategory.MISCELLANEOUS)
    UNKNOWN = ("Unknown", None, None, FieldCategory.MISCELLANEOUS)

    def __init__(
        self,
        display_name: str,
        pattern: Optional[str],
        validation_rule: Optional[ValidationRule],
        category: FieldCategory,
    ) -> None:
        self.display_name = display_name
        self.pattern = pattern
        self.validation_rule = validation_rule
        self.category = category

    @property
    def key(self) -> str:
        """Lowercase member name, used as the key-value field name."""
        return self.name.lower()


class DocumentType(Enum):
    """Document kinds the scanner can be asked to read."""
    INVOICE = "invoice"
    RECEIPT = "receipt"
    PURCHASE_ORDER = "purchase_order"
    DELIVERY_CHALLAN = "delivery_challan"
    CREDIT_NOTE = "credit_note"
    QUOTATION = "quotation"
    GENERIC = "generic"

    @property
    def expected_fields(self) -> Tuple[str, ...]:
        return EXPECTED_FIELDS[self]

    @classmethod
    def from_name(cls, name: str) -> 'DocumentType':
        """
        Look up a document type by value or member name, case-insensitively.

        Raises:
            ValueError: If no document type has that name.
        """
        normalized = name.strip().lower().replace('-', '_')
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(
            f"Unknown document type '{name}'. "
            f"Expected one of: {', '.join(m.value for m in cls)}"
        )


EXPECTED_FIELDS: Dict[DocumentType, Tuple[str, ...]] = {
    DocumentType.INVOICE: (
        "invoice_number", "date", "vendor_name", "total_amount",
        "items", "tax_amount", "subtotal",
    ),
    DocumentType.RECEIPT: (
        "receipt_number", "date", "merchant_name", "total_amount",
        "items", "payment_method",
    ),
    DocumentType.PURCHASE_ORDER: (
        "po_number", "date", "vendor_name", "items",
        "total_amount", "delivery_date",
    ),
    DocumentType.DELIVERY_CHALLAN: (
        "challan_number", "date", "from_address", "to_address",
        "items", "vehicle_number",
    ),
    DocumentType.CREDIT_NOTE: (
        "credit_note_number", "date", "customer_name", "amount",
        "reason", "reference_invoice",
    ),
    DocumentType.QUOTATION: (
        "quote_number", "date", "customer_name", "items",
        "total_amount", "validity_date",
    ),
    DocumentType.GENERIC: (
        "text_content", "date", "amount", "reference_number",
    ),
}

_FIELD_NAME_TYPES: Dict[str, FieldType] = {
    "invoice_number": FieldType.INVOICE_NUMBER,
    "receipt_number": FieldType.RECEIPT_NUMBER,
    "total_amount": FieldType.TOTAL_AMOUNT,
    "subtotal": FieldType.SUBTOTAL,
    "tax_amount": FieldType.TAX_AMOUNT,
    "date": FieldType.INVOICE_DATE,
    "vendor_name": FieldType.VENDOR_NAME,
    "customer_name": FieldType.CUSTOMER_NAME,
    "phone": FieldType.PHONE_NUMBER,
    "email": FieldType.EMAIL,
    "gst_number": FieldType.GST_NUMBER,
}


def field_type_for_name(field_name: str) -> FieldType:
    """Map an expected field name onto its FieldType (UNKNOWN if unmapped)."""
    return _FIELD_NAME_TYPES.get(field_name.lower(), FieldType.UNKNOWN)
