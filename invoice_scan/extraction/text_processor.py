"""
Field Text Processing Module.

Computes the initial ``processed_value`` of a field at extraction time:
OCR digit confusions, currency symbols, dates with month names, Indian
phone prefixes and brand spellings are cleaned up by field category.
"""

import re
from typing import Dict

from dateutil import parser as date_parser

from invoice_scan.utils.logger import get_logger
from .field_types import FieldCategory, FieldType

logger = get_logger(__name__)

# Characters OCR commonly reads in place of digits
OCR_DIGIT_CORRECTIONS: Dict[str, str] = {
    'O': '0',
    'l': '1',
    'I': '1',
    'Z': '2',
    'S': '5',
    'B': '8',
    'g': '9',
    '|': '1',
    'i': '1',
}

BRAND_CORRECTIONS: Dict[str, str] = {
    'redmi': 'Redmi',
    'realme': 'Realme',
    'samsung': 'Samsung',
    'vivo': 'Vivo',
    'oppo': 'Oppo',
    'oneplus': 'OnePlus',
    'iphone': 'iPhone',
    'poco': 'Poco',
    'motorola': 'Motorola',
    'nokia': 'Nokia',
    'iqoo': 'iQOO',
}

NUMERIC_LOOKALIKE_RE = re.compile(r"[0-9OlISZBg|i.,]+", re.IGNORECASE)
CURRENCY_SYMBOL_RE = re.compile(r"[₹$€£¥]")
CURRENCY_PREFIX_RE = re.compile(r"^(?:rs\.?|inr)", re.IGNORECASE)
MONTH_NAME_RE = re.compile(
    r"jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec", re.IGNORECASE
)
TWO_DIGIT_YEAR_RE = re.compile(r"^(\d{1,2}/\d{1,2}/)(\d{2})$")
STORAGE_RE = re.compile(r"(\d+)\s*(?:gb|pg|mg)", re.IGNORECASE)


def fix_numeric_ocr_errors(value: str) -> str:
    """
    Replace letters OCR confuses with digits, if the value looks numeric.

    Example:
        >>> fix_numeric_ocr_errors("1O5.B0")
        '105.80'
        >>> fix_numeric_ocr_errors("Total")
        'Total'
    """
    if not NUMERIC_LOOKALIKE_RE.fullmatch(value):
        return value
    return ''.join(OCR_DIGIT_CORRECTIONS.get(ch, ch) for ch in value)


def apply_brand_corrections(value: str, first_only: bool = False) -> str:
    """Fix the capitalisation of known phone brand names."""
    for incorrect, correct in BRAND_CORRECTIONS.items():
        pattern = re.compile(re.escape(incorrect), re.IGNORECASE)
        if pattern.search(value):
            value = pattern.sub(correct, value)
            if first_only:
                break
    return value


class FieldTextProcessor:
    """
    Cleans a raw matched value into the field's initial processed value.

    Example:
        >>> processor = FieldTextProcessor()
        >>> processor.process("₹ 1,23,456.789", FieldType.TOTAL_AMOUNT)
        '123456.78'
        >>> processor.process("5-Jan-24", FieldType.INVOICE_DATE)
        '05/01/2024'
    """

    def process(self, value: str, field_type: FieldType) -> str:
        processed = value.strip()
        category = field_type.category

        if category is FieldCategory.FINANCIAL:
            return self.process_financial(processed)
        if category is FieldCategory.IDENTIFICATION:
            return self.process_identification(processed, field_type)
        if category is FieldCategory.DATE:
            return self.process_date(processed)
        if category is FieldCategory.CONTACT:
            return self.process_contact(processed, field_type)
        if category is FieldCategory.ENTITY:
            return self.process_entity(processed)
        if category is FieldCategory.ITEM:
            return self.process_item(processed, field_type)
        return processed

    @staticmethod
    def process_financial(value: str) -> str:
        """Plain decimal string: no symbols, no grouping, at most 2 decimals."""
        processed = CURRENCY_SYMBOL_RE.sub('', value)
        processed = re.sub(r"\s+", '', processed)
        processed = CURRENCY_PREFIX_RE.sub('', processed)
        processed = fix_numeric_ocr_errors(processed)
        processed = re.sub(r"[^0-9.,]", '', processed)
        # Indian grouping (1,23,456.00) and western grouping alike
        processed = processed.replace(',', '')

        parts = processed.split('.')
        if len(parts) == 2:
            processed = f"{parts[0]}.{parts[1][:2]}"
        return processed

    @staticmethod
    def process_identification(value: str, field_type: FieldType) -> str:
        if field_type is FieldType.GST_NUMBER:
            processed = re.sub(r"\s+", '', value).upper()
            # The first two characters are the numeric state code
            if len(processed) >= 15:
                state_code = ''.join(
                    OCR_DIGIT_CORRECTIONS.get(ch, ch) if ch.isalpha() else ch
                    for ch in processed[:2]
                )
                processed = state_code + processed[2:]
            return processed

        if field_type in (FieldType.INVOICE_NUMBER, FieldType.RECEIPT_NUMBER):
            return re.sub(r"\s+", '', value.upper())

        return value.upper()

    @staticmethod
    def process_date(value: str) -> str:
        """
        Bring a date into DD/MM/YYYY form where possible.

        Month names are resolved with dateutil (day first); numeric dates
        keep their day/month order and only get separators, a four-digit
        year and zero padding fixed.
        """
        if MONTH_NAME_RE.search(value):
            try:
                return date_parser.parse(value, dayfirst=True, fuzzy=True).strftime('%d/%m/%Y')
            except (ValueError, OverflowError) as e:
                logger.debug(f"Could not parse date '{value}': {e}")

        processed = value.replace('-', '/')

        match = TWO_DIGIT_YEAR_RE.match(processed)
        if match:
            year = int(match.group(2))
            century = '20' if year < 50 else '19'
            processed = f"{match.group(1)}{century}{match.group(2)}"

        parts = processed.split('/')
        if len(parts) == 3:
            processed = f"{parts[0].zfill(2)}/{parts[1].zfill(2)}/{parts[2]}"
        return processed

    @staticmethod
    def process_contact(value: str, field_type: FieldType) -> str:
        if field_type is FieldType.PHONE_NUMBER:
            compact = re.sub(r"[\s\-()]", '', value)
            prefix = '+' if compact.startswith('+') else ''
            processed = prefix + fix_numeric_ocr_errors(compact[len(prefix):])
            processed = re.sub(r"[^0-9+]", '', processed)
            if processed.startswith('+91'):
                processed = processed[3:]
            elif processed.startswith('91') and len(processed) == 12:
                processed = processed[2:]
            if len(processed) > 10:
                processed = processed[-10:]
            return processed

        if field_type is FieldType.EMAIL:
            processed = re.sub(r"\s+", '', value.lower())
            return re.sub(r"[,;]", '.', processed)

        return value

    @staticmethod
    def process_entity(value: str) -> str:
        words = re.split(r"\s+", value)
        titled = ' '.join(w[0].upper() + w[1:].lower() if len(w) > 1 else w.upper() for w in words)
        return apply_brand_corrections(titled)

    def process_item(self, value: str, field_type: FieldType) -> str:
        if field_type is FieldType.ITEM_DESCRIPTION:
            processed = re.sub(r"\s+", ' ', value)
            processed = apply_brand_corrections(processed, first_only=True)
            processed = STORAGE_RE.sub(r"\1GB", processed)
            processed = re.sub(r"\s*5g\s*", ' 5G ', processed, flags=re.IGNORECASE)
            processed = re.sub(r"\s*4g\s*", ' 4G ', processed, flags=re.IGNORECASE)
            return re.sub(r"\s+", ' ', processed).strip()

        if field_type in (FieldType.ITEM_QUANTITY, FieldType.ITEM_RATE, FieldType.ITEM_AMOUNT):
            return self.process_financial(value)

        return value
