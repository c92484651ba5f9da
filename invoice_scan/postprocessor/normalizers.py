"""
Data Normalizers Module.

Post-processing pass that reduces field values to the canonical
character set of their category.
"""

import re

from invoice_scan.extraction.field_types import FieldCategory, FieldType


class FieldNormalizer:
    """
    Category-driven normalization applied during post-processing.

    Financial values keep digits and '.', dates keep digits and '/-',
    phone numbers keep digits and '+()-', emails are lowercased and
    trimmed, other contact values trimmed. Everything else is unchanged.
    """

    def normalize(self, value: str, field_type: FieldType) -> str:
        category = field_type.category

        if category is FieldCategory.FINANCIAL:
            return re.sub(r"[^0-9.]", '', value)
        if category is FieldCategory.DATE:
            return re.sub(r"[^0-9/-]", '', value)
        if category is FieldCategory.CONTACT:
            if field_type is FieldType.PHONE_NUMBER:
                return re.sub(r"[^0-9+()-]", '', value)
            if field_type is FieldType.EMAIL:
                return value.lower().strip()
            return value.strip()
        return value
