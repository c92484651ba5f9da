"""
Invoice Text Filter Module.

Recognition returns every piece of text on the page: letterheads, bank
details, legal small print and marketing copy along with the data we
need. InvoiceTextFilter is a section-aware line classifier that keeps
invoice headers, dates, GSTINs, party names, the product table and tax
totals, and records why every other line was dropped.

Two scans are made over the lines:
    1. Locate sections: product table start/end, end of the vendor
       block (first buyer keyword) and end of the buyer block.
    2. Classify each line, first matching rule wins.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from invoice_scan.utils.logger import get_logger

logger = get_logger(__name__)


# Lines matching any of these are relevant invoice content
KEEP_PATTERNS = [re.compile(p, re.IGNORECASE) for p in (
    r"(?:Invoice|Bill)\s*(?:No|Number|#)",
    r"(?:Date|Dated)\s*:?\s*\d",
    r"GSTIN\s*/\s*UIN",
    r"(Redmi|Realme|Samsung|Vivo|Oppo|OnePlus|iPhone|Poco|MI|Motorola|Nokia|Infinix|Itel|Lava)",
    r"\d+\s*(?:gb|GB|pg|PG)",
    r"(?:Black|White|Blue|Purple|Green|Red|Gold|Silver|Gray|Pink|Phantom|Midnight|Aurora|Nebula|Graphite)",
    r"\d+\.?\d*\s*(?:PCS|Nos|Unit)",
    r"(?:₹|Rs\.?|INR)\s*\d",
    r"\d+[,\d]*\.\d{2}",
    r"(?:CGST|SGST|IGST|GST)",
    r"HSN.*?\d{4,8}",
    r"(?:SI|Sl\.?\s*No|Description|Qty|Rate|Amount)",
)]

# A line is dropped when it matches one of these in full
REMOVE_PATTERNS = [re.compile(p, re.IGNORECASE) for p in (
    r".*(?:Registered Office|Corporate Office|Head Office).*",
    r".*(?:Terms and Conditions|Terms of Sale|Warranty|Disclaimer|E\.?&\.?O\.?E\.?).*",
    r".*(?:Subject to|Jurisdiction|Goods once sold|All disputes).*",
    r".*(?:Thank you for your business|Visit us|Follow us|Like us on Facebook).*",
    r".*(?:Bank Name|Account Number|IFSC Code|Branch).*",
    r".*(?:Pin Code|Postal Code|Zip Code).*",
    r".*(?:www\.|http|@gmail\.com|@yahoo\.com).*",
    r".*(?:Authorized Signatory|Certified|ISO Certified).*",
    r"[\s\W]{0,3}",
    r"(.)\1{5,}",
)]

VENDOR_KEYWORDS = (
    "seller", "vendor", "from", "supplier", "sold by",
    "consignor", "shipper", "gstin of supplier",
)

BUYER_KEYWORDS = (
    "buyer", "bill to", "ship to", "sold to", "consignee",
    "shipping address", "billing address", "customer",
)

TABLE_START_RE = re.compile(r".*si.*description.*quantity.*", re.IGNORECASE)
TABLE_END_RE = re.compile(r".*(?:output|total|sub.?total|grand total|taxable value).*", re.IGNORECASE)

INVOICE_DIGIT_RE = re.compile(r".*invoice.*\d+.*")
DATE_VALUE_RE = re.compile(r"\d{1,2}[-/.](?:\d{1,2}|[A-Za-z]{3})[-/.]\d{2,4}")
GSTIN_RE = re.compile(r"\d{2}[A-Z]{5}\d{4}[A-Z]", re.IGNORECASE)
VENDOR_ADDRESS_RE = re.compile(r".*(?:bihar|state|pin|mob|email|[a-z]{6,}\s*-\s*\d{6}).*")
BUYER_ADDRESS_RE = re.compile(r".*(?:bihar|state|pin|mob|email|code).*")
TAX_SUMMARY_RE = re.compile(r".*(?:cgst|sgst|igst|tax|total).*\d+.*")
DIGIT_RE = re.compile(r"\d")


class RemovalReason(Enum):
    """Why a line was left out of the filtered text."""
    PATTERN_MATCH = "pattern_match"
    VENDOR_ADDRESS = "vendor_address"
    BUYER_ADDRESS = "buyer_address"
    NO_PATTERN_MATCHED = "no_pattern_matched"


@dataclass(frozen=True)
class RemovedLine:
    reason: RemovalReason
    line: str

    def to_dict(self) -> Dict[str, str]:
        return {'reason': self.reason.value, 'line': self.line}


@dataclass(frozen=True)
class FilteredOCRText:
    """
    Result of filtering recognized text.

    Attributes:
        original_text: Text as recognized.
        filtered_text: Kept lines (stripped), newline-joined, in order.
        original_line_count: Number of lines in the original text.
        filtered_line_count: Number of kept lines.
        removed_lines: Dropped lines with the reason for each, in order.
        product_table_detected: Whether a product table heading was found.
    """
    original_text: str
    filtered_text: str
    original_line_count: int
    filtered_line_count: int
    removed_lines: Tuple[RemovedLine, ...] = field(default_factory=tuple)
    product_table_detected: bool = False

    @property
    def text_reduction(self) -> float:
        """Fraction of characters removed (0 when the original is empty)."""
        if not self.original_text:
            return 0.0
        return 1.0 - len(self.filtered_text) / len(self.original_text)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'filtered_text': self.filtered_text,
            'original_line_count': self.original_line_count,
            'filtered_line_count': self.filtered_line_count,
            'removed_lines': [r.to_dict() for r in self.removed_lines],
            'product_table_detected': self.product_table_detected,
        }


@dataclass
class _Sections:
    """Line indices located by the first scan (None when not found)."""
    table_start: Optional[int] = None
    table_end: Optional[int] = None
    vendor_end: Optional[int] = None
    buyer_end: Optional[int] = None

    def after_table_start(self, index: int) -> bool:
        return self.table_start is not None and index >= self.table_start

    def vendor_ended(self, index: int) -> bool:
        return self.vendor_end is not None and index >= self.vendor_end

    def buyer_ended(self, index: int) -> bool:
        return self.buyer_end is not None and index >= self.buyer_end


def _contains_any(text: str, keywords) -> bool:
    return any(keyword in text for keyword in keywords)


def matches_remove_pattern(line: str) -> bool:
    """True if the (stripped) line is boilerplate or an OCR artefact."""
    return any(pattern.fullmatch(line) for pattern in REMOVE_PATTERNS)


def matches_keep_pattern(line: str) -> bool:
    return any(pattern.search(line) for pattern in KEEP_PATTERNS)


class InvoiceTextFilter:
    """
    Keeps invoice-relevant lines of recognized text.

    Example:
        >>> result = InvoiceTextFilter().filter("Tax Invoice\\nVisit us at www.shop.in")
        >>> result.filtered_text
        'Tax Invoice'
    """

    def filter(self, text: str) -> FilteredOCRText:
        """
        Filter recognized text down to invoice content.

        Args:
            text: Full recognized text.

        Returns:
            FilteredOCRText; ``filtered_text`` is always an in-order
            subsequence of the original stripped lines.
        """
        lines = text.split("\n")
        sections = self._locate_sections(lines)

        kept: List[str] = []
        removed: List[RemovedLine] = []
        skip_vendor_address = False
        skip_buyer_address = False

        for index, raw_line in enumerate(lines):
            line = raw_line.strip()
            if not line:
                continue

            if matches_remove_pattern(line):
                removed.append(RemovedLine(RemovalReason.PATTERN_MATCH, line))
                continue

            lower = line.lower()

            # Invoice header
            if ("tax invoice" in lower or "invoice no" in lower or "invoice #" in lower
                    or INVOICE_DIGIT_RE.fullmatch(lower)):
                kept.append(line)
                continue

            if "date" in lower and DATE_VALUE_RE.search(line):
                kept.append(line)
                continue

            if "gstin" in lower and GSTIN_RE.search(line):
                kept.append(line)
                continue

            if not sections.vendor_ended(index) and _contains_any(lower, VENDOR_KEYWORDS):
                kept.append(line)
                skip_vendor_address = True
                continue

            if (skip_vendor_address and not sections.buyer_ended(index)
                    and VENDOR_ADDRESS_RE.fullmatch(lower)):
                removed.append(RemovedLine(RemovalReason.VENDOR_ADDRESS, line))
                continue

            if not sections.buyer_ended(index) and _contains_any(lower, BUYER_KEYWORDS):
                kept.append(line)
                skip_buyer_address = True
                continue

            if (skip_buyer_address and not sections.after_table_start(index)
                    and BUYER_ADDRESS_RE.fullmatch(lower)):
                removed.append(RemovedLine(RemovalReason.BUYER_ADDRESS, line))
                continue

            # From the table heading on, anything numeric is kept
            if sections.after_table_start(index):
                if matches_keep_pattern(line) or DIGIT_RE.search(line):
                    kept.append(line)
                    continue

            if TAX_SUMMARY_RE.fullmatch(lower):
                kept.append(line)
                continue

            if matches_keep_pattern(line):
                kept.append(line)
            else:
                removed.append(RemovedLine(RemovalReason.NO_PATTERN_MATCHED, line))

        result = FilteredOCRText(
            original_text=text,
            filtered_text="\n".join(kept),
            original_line_count=len(lines),
            filtered_line_count=len(kept),
            removed_lines=tuple(removed),
            product_table_detected=sections.table_start is not None,
        )

        logger.debug(
            f"Sections: table {sections.table_start}..{sections.table_end}, "
            f"vendor ends {sections.vendor_end}, buyer ends {sections.buyer_end}"
        )
        logger.debug(
            f"Text filter kept {result.filtered_line_count}/{result.original_line_count} lines, "
            f"removed {len(removed)} ({result.text_reduction:.1%} reduction), "
            f"product table: {result.product_table_detected}"
        )
        return result

    @staticmethod
    def _locate_sections(lines: List[str]) -> _Sections:
        sections = _Sections()
        in_table = False

        for index, raw_line in enumerate(lines):
            lower = raw_line.strip().lower()
            if not lower:
                continue

            if "description of goods" in lower or TABLE_START_RE.fullmatch(lower):
                if sections.table_start is None:
                    sections.table_start = index
                in_table = True
                continue

            if in_table and TABLE_END_RE.fullmatch(lower):
                in_table = False
                if sections.table_end is None:
                    sections.table_end = index
                continue

            if sections.vendor_end is None and _contains_any(lower, BUYER_KEYWORDS):
                sections.vendor_end = index

            if (sections.buyer_end is None and sections.vendor_end is not None
                    and (in_table or "description" in lower)):
                sections.buyer_end = index

        return sections
